import os
import threading


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ["true", "1", "yes", "on"]


def _env_id_list(name: str) -> list[int]:
    raw = os.environ.get(name, "")
    return [int(part) for part in raw.split(",") if part.strip()]


class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    INVALID_CONTEXT_POLICIES = ("skip", "raise")

    def __init__(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE", "development")

        # Force disable debug info in API responses (overrides DEBUG_MODE)
        self.DISABLE_API_DEBUG_INFO = _env_flag("DISABLE_API_DEBUG_INFO", "false")

        # The root course of the site; exempt from the course:view requirement
        self.SITE_COURSE_ID = int(os.environ.get("SITE_COURSE_ID", "1"))

        # Users that pass every capability check
        self.SITE_ADMINS = _env_id_list("SITE_ADMINS")

        # What to do with a row whose authorization context does not validate
        self.INVALID_CONTEXT_POLICY = os.environ.get("INVALID_CONTEXT_POLICY", "skip").lower()
        if self.INVALID_CONTEXT_POLICY not in self.INVALID_CONTEXT_POLICIES:
            raise ValueError(
                f"INVALID_CONTEXT_POLICY must be one of {self.INVALID_CONTEXT_POLICIES}, "
                f"got {self.INVALID_CONTEXT_POLICY!r}"
            )

        # Service group all projection functions belong to
        self.SERVICE_SHORTNAME = os.environ.get("SERVICE_SHORTNAME", "som_api")

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

settings = BackendSettings()
