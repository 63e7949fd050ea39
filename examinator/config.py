# examinator/config.py
import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _int_env(name, default):
    return int(os.getenv(name, str(default)))


class Config:
    """Settings read from the environment once at start-up."""

    # =====================================================
    # STORAGE
    # =====================================================
    MONGO_URI = os.getenv("MONGO_URI")
    MONGO_DB = os.getenv("MONGO_DB", "examinator")
    BLOB_ROOT = os.getenv("BLOB_ROOT", os.path.join(BASE_DIR, "blobs"))

    # =====================================================
    # TOKENS
    # =====================================================
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
    EXAM_TOKEN_SECRET = os.getenv("EXAM_TOKEN_SECRET")
    FINISHER_TOKEN_SECRET = os.getenv("FINISHER_TOKEN_SECRET")

    # seconds after the exam end before grading fires
    FINISHER_DELAY = _int_env("FINISHER_DELAY", 60)
    # seconds after the exam end the finisher ticket stays valid
    FINISHER_TICKET_BUFFER = _int_env("FINISHER_TICKET_BUFFER", 600)
    EXAM_TOKEN_LEEWAY = _int_env("EXAM_TOKEN_LEEWAY", 30)

    # =====================================================
    # RUNTIME
    # =====================================================
    SCHEDULER_POLL_INTERVAL = _int_env("SCHEDULER_POLL_INTERVAL", 15)
    # storage failures inside a task are retried this many claims, this far apart
    SCHEDULER_MAX_ATTEMPTS = _int_env("SCHEDULER_MAX_ATTEMPTS", 5)
    SCHEDULER_RETRY_DELAY = _int_env("SCHEDULER_RETRY_DELAY", 60)
    # seconds a claimed task may stay running before another runner reclaims it
    SCHEDULER_LEASE = _int_env("SCHEDULER_LEASE", 300)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = _int_env("PORT", 5000)

    REQUIRED = ("MONGO_URI", "ACCESS_TOKEN_SECRET", "EXAM_TOKEN_SECRET", "FINISHER_TOKEN_SECRET")

    @classmethod
    def as_dict(cls, **overrides):
        values = {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper() and key != "REQUIRED"
        }
        values.update(overrides)
        missing = [key for key in cls.REQUIRED if not values.get(key)]
        if missing:
            raise RuntimeError(f"{', '.join(missing)} environment variable not set")
        return values
