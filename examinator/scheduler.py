# examinator/scheduler.py
import logging
import time
import uuid

from pymongo import ASCENDING, ReturnDocument

from examinator.errors import ErrorKind, to_examinator_error
from examinator.utils.helpers import now_ts

logger = logging.getLogger(__name__)


class TaskScheduler:
    """Deferred callbacks stored in the record store.

    ``schedule`` arms a task; ``run_due`` claims each due task with an atomic
    pending -> running update, so a task is handed to its handler once even
    with several runners polling the same collection.

    A storage failure inside the handler puts the task back to ``pending``
    ``retry_delay`` seconds later, up to ``max_attempts`` claims. A task left
    ``running`` for longer than ``lease`` seconds (its runner died) is due
    again. Any other failure is final.
    """

    def __init__(self, tasks, clock=now_ts, max_attempts=5, retry_delay=60, lease=300):
        self.tasks = tasks
        self.clock = clock
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.lease = lease

    def schedule(self, fire_at, payload):
        task_id = str(uuid.uuid4())
        self.tasks.insert_one({
            "taskId": task_id,
            "fireAt": int(fire_at),
            "payload": payload,
            "status": "pending",
            "attempts": 0,
            "error": None,
            "createdAt": int(self.clock()),
        })
        logger.info("Task %s armed for %s", task_id, int(fire_at))
        return task_id

    def _due(self, now):
        return {"$or": [
            {"status": "pending", "fireAt": {"$lte": now}},
            {"status": "running", "startedAt": {"$lte": now - self.lease}},
        ]}

    def claim_next(self):
        now = int(self.clock())
        due = self._due(now)
        while True:
            candidate = self.tasks.find_one(due, sort=[("fireAt", ASCENDING)])
            if candidate is None:
                return None
            # guarded by the due filter: a runner that claimed it first wins
            task = self.tasks.find_one_and_update(
                {"$and": [{"_id": candidate["_id"]}, due]},
                {"$set": {"status": "running", "startedAt": now}, "$inc": {"attempts": 1}},
                return_document=ReturnDocument.AFTER,
            )
            if task is not None:
                task.pop("_id", None)
                if candidate["status"] == "running":
                    logger.warning("Task %s lease expired, reclaiming", task["taskId"])
                return task

    def _close(self, task_id, status, error=None):
        self.tasks.update_one(
            {"taskId": task_id},
            {"$set": {"status": status, "error": error, "finishedAt": int(self.clock())}},
        )

    def _retry(self, task_id, error):
        fire_at = int(self.clock()) + self.retry_delay
        self.tasks.update_one(
            {"taskId": task_id},
            {"$set": {"status": "pending", "fireAt": fire_at, "error": error}},
        )
        return fire_at

    def run_due(self, handler):
        """Run every due task through ``handler(payload)``. Returns the count run."""
        count = 0
        while True:
            task = self.claim_next()
            if task is None:
                return count
            count += 1
            try:
                handler(task["payload"])
            except Exception as exc:
                err = to_examinator_error(exc)
                error = {"message": err.message, **err.addons}
                if err.kind is ErrorKind.UPSTREAM and task["attempts"] < self.max_attempts:
                    fire_at = self._retry(task["taskId"], error)
                    logger.warning(
                        "Task %s attempt %d failed: %s; retrying at %s",
                        task["taskId"], task["attempts"], err.message, fire_at,
                    )
                else:
                    logger.error("Task %s failed: %s", task["taskId"], err.message)
                    self._close(task["taskId"], "failed", error)
            else:
                self._close(task["taskId"], "done")
                logger.info("Task %s done", task["taskId"])

    def run_forever(self, handler, poll_interval):
        logger.info("Scheduler polling every %ss", poll_interval)
        while True:
            self.run_due(handler)
            time.sleep(poll_interval)
