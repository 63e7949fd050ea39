# examinator/services/__init__.py
from examinator.utils.helpers import now_ts

STAFF_ROLES = ("teacher", "admin")


class ExamServices:
    """Long-lived collaborators shared by every exam operation.

    Built once in ``create_app`` and passed to each handler; nothing in here
    is created per request.
    """

    def __init__(self, store, blobs, scheduler, config, clock=now_ts):
        self.store = store
        self.blobs = blobs
        self.scheduler = scheduler
        self.config = config
        self.clock = clock

    def now(self):
        return int(self.clock())


def is_staff(identity):
    return identity.get("userType") in STAFF_ROLES
