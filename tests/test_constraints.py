"""Tests for front-desk configuration validation logic.

Covers every validation branch in validate_front_desk_config().
"""

from __future__ import annotations

import pytest

from frontdesk.domain.constraints import FrontDeskConfig, validate_front_desk_config


def valid_config(**overrides) -> FrontDeskConfig:
    """Return a valid baseline FrontDeskConfig, optionally overriding fields."""
    defaults = {
        "default_check_in_time": "14:00",
        "default_check_out_time": "12:00",
        "checkout_alert_window_minutes": 120,
        "seed_room_count": 15,
    }
    defaults.update(overrides)
    return FrontDeskConfig(**defaults)


# --- Baseline pass ---

def test_valid_config_passes() -> None:
    """A fully valid config must not raise."""
    validate_front_desk_config(valid_config())


# --- default times ---

@pytest.mark.parametrize("value", ["24:00", "9:00", "14:60", "1400", ""])
def test_malformed_check_in_time_raises(value: str) -> None:
    with pytest.raises(ValueError):
        validate_front_desk_config(valid_config(default_check_in_time=value))


def test_malformed_check_out_time_raises() -> None:
    with pytest.raises(ValueError):
        validate_front_desk_config(valid_config(default_check_out_time="noon"))


def test_midnight_and_last_minute_pass() -> None:
    validate_front_desk_config(
        valid_config(default_check_in_time="00:00", default_check_out_time="23:59")
    )


# --- checkout_alert_window_minutes ---

def test_alert_window_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_front_desk_config(valid_config(checkout_alert_window_minutes=0))


def test_alert_window_negative_raises() -> None:
    with pytest.raises(ValueError):
        validate_front_desk_config(valid_config(checkout_alert_window_minutes=-5))


# --- seed_room_count ---

def test_seed_room_count_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_front_desk_config(valid_config(seed_room_count=0))


def test_seed_room_count_one_passes() -> None:
    """Smallest valid floor."""
    validate_front_desk_config(valid_config(seed_room_count=1))
