from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env next to the repo root; real environment variables still win.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    storage_backend: str
    database_url: str
    redis_url: str

    api_token: str | None
    environment: str
    debug_errors: bool

    history_default_limit: int
    event_log_default_limit: int

    sync_api_url: str
    sync_interval_seconds: float
    sync_timeout_seconds: float
    window_size: int
    monitor_embedded: bool

    ph_high: float
    ph_low: float
    ph_warn_high: float
    ph_warn_low: float
    ph_rate_delta: float

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("CHEM_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    # sql | redis | memory
    storage_backend = os.getenv("STORAGE_BACKEND", "sql").strip().lower()
    database_url = os.getenv("DATABASE_URL", "sqlite:///./chem_monitor.db")
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    api_token = os.getenv("SENSOR_API_TOKEN") or None
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()

    return Settings(
        storage_backend=storage_backend,
        database_url=database_url,
        redis_url=redis_url,
        api_token=api_token,
        environment=environment,
        debug_errors=_env_bool("SENSOR_API_DEBUG_ERRORS"),
        history_default_limit=int(os.getenv("HISTORY_DEFAULT_LIMIT", "50")),
        event_log_default_limit=int(os.getenv("EVENT_LOG_DEFAULT_LIMIT", "100")),
        sync_api_url=os.getenv("SYNC_API_URL", "http://localhost:8000"),
        sync_interval_seconds=float(os.getenv("SYNC_INTERVAL_SECONDS", "2.0")),
        sync_timeout_seconds=float(os.getenv("SYNC_TIMEOUT_SECONDS", "5.0")),
        window_size=int(os.getenv("SYNC_WINDOW_SIZE", "16")),
        monitor_embedded=_env_bool("MONITOR_EMBEDDED"),
        ph_high=float(os.getenv("PH_HIGH", "8.5")),
        ph_low=float(os.getenv("PH_LOW", "6.5")),
        ph_warn_high=float(os.getenv("PH_WARN_HIGH", "8.0")),
        ph_warn_low=float(os.getenv("PH_WARN_LOW", "6.8")),
        ph_rate_delta=float(os.getenv("PH_RATE_DELTA", "0.5")),
    )
