from __future__ import annotations

from typing import Optional
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from .config import Settings, get_settings


logger = logging.getLogger(__name__)


def _redacted(url: str) -> str:
    # user:password@host -> user:***@host
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    creds, host = rest.rsplit("@", 1)
    user = creds.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


def get_engine(settings: Optional[Settings] = None, url: Optional[str] = None) -> Engine:
    settings = settings or get_settings()
    url = url or settings.database_url

    logger.info("[DB] Creating engine url=%s", _redacted(url))

    connect_args = {}
    if url.startswith("sqlite"):
        # Pooled connections are reused across threads: the connection test
        # here, then the server's event loop thread (TestClient runs the app
        # in its own portal thread).
        connect_args["check_same_thread"] = False

    engine = create_engine(url, pool_pre_ping=True, future=True, connect_args=connect_args)

    # Connection test: shows in the logs whether the service actually reaches the DB.
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Connection test OK")
    except Exception:
        logger.exception("[DB] Connection test FAILED")

    return engine


