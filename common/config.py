from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _default_env_file() -> str:
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    store_backend: str

    liveness_interval_seconds: float
    offline_threshold_seconds: float
    movement_threshold_m: float
    location_suppression: str

    notify_window_seconds: float
    sound_enabled: bool

    api_key: Optional[str]
    backend_url: str
    internal_api_key: Optional[str]

    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("MONITOR_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./device_monitor.db")
    store_backend = os.getenv("MONITOR_STORE", "memory").strip().lower()

    liveness_interval_seconds = float(os.getenv("MONITOR_LIVENESS_INTERVAL_SECONDS", "60"))
    offline_threshold_seconds = float(os.getenv("MONITOR_OFFLINE_THRESHOLD_SECONDS", "300"))
    movement_threshold_m = float(os.getenv("MONITOR_MOVEMENT_THRESHOLD_M", "5"))

    # session | self_clearing
    location_suppression = os.getenv("MONITOR_LOCATION_SUPPRESSION", "session").strip().lower()

    notify_window_seconds = float(os.getenv("MONITOR_NOTIFY_WINDOW_SECONDS", "10"))

    return Settings(
        database_url=database_url,
        store_backend=store_backend,
        liveness_interval_seconds=liveness_interval_seconds,
        offline_threshold_seconds=offline_threshold_seconds,
        movement_threshold_m=movement_threshold_m,
        location_suppression=location_suppression,
        notify_window_seconds=notify_window_seconds,
        sound_enabled=_flag("MONITOR_SOUND_ENABLED", "1"),
        api_key=os.getenv("MONITOR_API_KEY") or None,
        backend_url=os.getenv("BACKEND_URL", "http://localhost:3000"),
        internal_api_key=os.getenv("INTERNAL_API_KEY") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
