import os
import threading

def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ["true", "1", "yes", "on"]

class BackendSettings:
    _instance = None
    _lock = threading.Lock()

    def __init__(self):
        self.reload()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(BackendSettings, cls).__new__(cls)
        return cls._instance

    def reload(self):
        self.DEBUG_MODE = os.environ.get("DEBUG_MODE","development")
        self.DATABASE_URL = os.environ.get("DATABASE_URL", None)
        # ACL settings
        # "all" keeps blanket course-fallback access for teaching assistants, "none" disables it
        self.ACL_TEACHING_ASSISTANT_ACCESS = os.environ.get("ACL_TEACHING_ASSISTANT_ACCESS", "none").lower()
        self.ACL_CACHE_ENABLED = _env_flag("ACL_CACHE_ENABLED", "false")
        self.ACL_CACHE_TTL = int(os.environ.get("ACL_CACHE_TTL", "300"))
        self.ACL_STUDENT_ROLE = os.environ.get("ACL_STUDENT_ROLE", "student")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL

        user = os.environ.get("POSTGRES_USER")
        password = os.environ.get("POSTGRES_PASSWORD")
        host = os.environ.get("POSTGRES_URL")
        db = os.environ.get("POSTGRES_DB")
        return f"postgresql://{user}:{password}@{host}/{db}"

settings = BackendSettings()
