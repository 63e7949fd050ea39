# examinator/utils/helpers.py
import logging
import secrets
import string
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

# question and option ids never share an alphabet or a length
QUESTION_ID_ALPHABET = string.ascii_uppercase + string.digits
QUESTION_ID_LENGTH = 12
OPTION_ID_ALPHABET = string.ascii_lowercase + string.digits
OPTION_ID_LENGTH = 6

TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


def now_ts():
    return int(time.time())


def new_exam_id():
    return str(uuid.uuid4())


def _random_id(alphabet, length):
    return "".join(secrets.choice(alphabet) for _ in range(length))


def new_question_id():
    return _random_id(QUESTION_ID_ALPHABET, QUESTION_ID_LENGTH)


def new_option_id():
    return _random_id(OPTION_ID_ALPHABET, OPTION_ID_LENGTH)


def format_timestamp(ts):
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(TIME_FORMAT)


def run_concurrently(*calls):
    """Run independent zero-argument writes in parallel and wait for all of them.

    Every call is allowed to finish; the first failure (in call order) is
    re-raised afterwards. Writes that succeeded are left in place.
    """
    if len(calls) == 1:
        return [calls[0]()]

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(call) for call in calls]

    results, first_error = [], None
    for future in futures:
        exc = future.exception()
        if exc is not None:
            logger.warning("Concurrent write failed: %s", exc)
            if first_error is None:
                first_error = exc
            results.append(None)
        else:
            results.append(future.result())
    if first_error is not None:
        raise first_error
    return results
