"""Domain-level validation rules for front-desk configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class FrontDeskConfig:
    default_check_in_time: str
    default_check_out_time: str
    checkout_alert_window_minutes: int
    seed_room_count: int


def validate_front_desk_config(config: FrontDeskConfig) -> None:
    if _TIME_PATTERN.fullmatch(config.default_check_in_time) is None:
        raise ValueError("default_check_in_time must follow HH:MM (24-hour)")
    if _TIME_PATTERN.fullmatch(config.default_check_out_time) is None:
        raise ValueError("default_check_out_time must follow HH:MM (24-hour)")
    if config.checkout_alert_window_minutes <= 0:
        raise ValueError("checkout_alert_window_minutes must be > 0")
    if config.seed_room_count <= 0:
        raise ValueError("seed_room_count must be > 0")
