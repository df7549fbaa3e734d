"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    log_file: Optional[Path]
    database_path: Path
    booking_store_enabled: bool
    admin_token: Optional[str]
    admin_session_ttl_minutes: int
    default_check_in_time: str
    default_check_out_time: str
    checkout_alert_window_minutes: int
    seed_room_count: int
    seed_random_seed: int
    date_regex: str
    time_regex: str


@lru_cache
def get_settings() -> Settings:
    """Build settings once per process; tests override with dataclasses.replace."""
    database_path = os.getenv(
        "FRONTDESK_DB_PATH",
        str(PROJECT_ROOT / "data" / "frontdesk.db"),
    )
    log_file = os.getenv("FRONTDESK_LOG_FILE")
    return Settings(
        app_name=os.getenv("APP_NAME", "HotelOS Front Desk"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=Path(log_file) if log_file else None,
        database_path=Path(database_path),
        booking_store_enabled=_env_bool("BOOKING_STORE_ENABLED", True),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        admin_session_ttl_minutes=_env_int("ADMIN_SESSION_TTL_MINUTES", 480),
        default_check_in_time=os.getenv("DEFAULT_CHECK_IN_TIME", "14:00"),
        default_check_out_time=os.getenv("DEFAULT_CHECK_OUT_TIME", "12:00"),
        checkout_alert_window_minutes=_env_int("CHECKOUT_ALERT_WINDOW_MINUTES", 120),
        seed_room_count=_env_int("SEED_ROOM_COUNT", 15),
        seed_random_seed=_env_int("SEED_RANDOM_SEED", 42),
        date_regex=r"^\d{4}-\d{2}-\d{2}$",
        time_regex=r"^([01]\d|2[0-3]):[0-5]\d$",
    )
