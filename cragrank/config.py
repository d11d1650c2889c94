"""Runtime settings read from the environment (.env loaded first)."""
import os

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.dirname(BASE_DIR)
load_dotenv(os.path.join(PROJECT_DIR, ".env"))


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    # Heroku / Neon expose postgres://, SQLAlchemy wants postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    """Snapshot of the environment. Build a new one to pick up changes."""

    def __init__(self):
        self.database_url = _database_url()
        self.data_dir = os.environ.get("DATA_DIR", "").strip() or os.path.join(BASE_DIR, "data")
        self.ranking_interval_minutes = _env_int("RANKING_INTERVAL_MINUTES", 30)
        self.recount_interval_minutes = _env_int("RECOUNT_INTERVAL_MINUTES", 0)
        self.ranking_max_workers = max(1, _env_int("RANKING_MAX_WORKERS", 8))
        self.transaction_max_attempts = max(1, _env_int("TRANSACTION_MAX_ATTEMPTS", 5))
        self.scheduler_enabled = _env_bool("SCHEDULER_ENABLED", True)
        self.admin_api_key = os.environ.get("ADMIN_API_KEY", "").strip()

        allowed = os.environ.get("ALLOWED_ORIGINS", "").strip()
        self.allowed_origins = (
            [o.strip() for o in allowed.split(",") if o.strip()] if allowed else ["*"]
        )

    @property
    def store_path(self) -> str:
        return os.path.join(self.data_dir, "store.json")

    @property
    def routes_seed_path(self) -> str:
        return os.path.join(self.data_dir, "routes.json")

    @property
    def persistence(self) -> str:
        return "sql" if self.database_url else "json"
