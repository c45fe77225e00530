from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    kwargs: dict = {"pool_pre_ping": True, "future": True}

    if url.get_backend_name() == "sqlite":
        # FastAPI runs sync handlers in a threadpool.
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # A single shared connection, otherwise every checkout sees an empty DB.
            kwargs["poolclass"] = StaticPool

    return create_engine(url, **kwargs)


def get_engine(settings: Settings | None = None) -> Engine:
    """Engine singleton for the configured DATABASE_URL."""
    global _engine

    if _engine is not None:
        return _engine

    settings = settings or get_settings()
    engine = build_engine(settings.database_url)

    # Password never reaches the logs.
    logger.info(
        "[DB] Creating engine backend=%s url=%s",
        engine.url.get_backend_name(),
        engine.url.render_as_string(hide_password=True),
    )

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Connection test OK")
    except Exception:
        logger.exception("[DB] Connection test FAILED")

    _engine = engine
    return _engine


def reset_engine() -> None:
    """Disposes the singleton (useful for testing)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None
