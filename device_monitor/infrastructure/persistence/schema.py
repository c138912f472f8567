"""Schema bootstrap for the SQL store.

Creates the two collections as tables if they don't exist. Safe to call
multiple times. Timestamps are stored as ISO-8601 UTC text so ordering
works the same on SQLite and PostgreSQL.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

_DDL = (
    """
    CREATE TABLE IF NOT EXISTS devices (
        id VARCHAR(64) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        latitude DOUBLE PRECISION NOT NULL,
        longitude DOUBLE PRECISION NOT NULL,
        temperature DOUBLE PRECISION NOT NULL,
        humidity DOUBLE PRECISION NOT NULL,
        wind_speed DOUBLE PRECISION NOT NULL,
        gas_level DOUBLE PRECISION NOT NULL,
        status VARCHAR(16) NOT NULL,
        last_updated VARCHAR(40) NOT NULL,
        thresholds TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alerts (
        id VARCHAR(64) PRIMARY KEY,
        device_id VARCHAR(64) NOT NULL,
        device_name VARCHAR(255) NOT NULL,
        type VARCHAR(16) NOT NULL,
        value DOUBLE PRECISION NOT NULL,
        threshold DOUBLE PRECISION NOT NULL,
        message TEXT NOT NULL,
        created_at VARCHAR(40) NOT NULL,
        acknowledged INTEGER NOT NULL DEFAULT 0,
        acknowledged_at VARCHAR(40)
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_alerts_created_at ON alerts (created_at)",
)


def ensure_schema(engine: Engine) -> None:
    logger.info("[DB] Ensuring monitor schema exists")
    with engine.begin() as conn:
        for statement in _DDL:
            conn.execute(text(statement))
