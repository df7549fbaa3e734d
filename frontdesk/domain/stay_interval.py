"""Stay interval parsing for the date, time and instant wire formats."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union

DEFAULT_CHECK_IN_TIME = "14:00"
DEFAULT_CHECK_OUT_TIME = "12:00"

InstantLike = Union[datetime, str]


def parse_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def combine_date_time(
    day: str,
    time_of_day: Optional[str],
    default_time: str,
) -> datetime:
    """Resolve a YYYY-MM-DD date plus optional HH:MM into a local instant."""
    return datetime.fromisoformat(f"{day}T{time_of_day or default_time}:00")


def stay_bounds(
    check_in_date: str,
    check_out_date: str,
    check_in_time: Optional[str] = None,
    check_out_time: Optional[str] = None,
    default_check_in_time: str = DEFAULT_CHECK_IN_TIME,
    default_check_out_time: str = DEFAULT_CHECK_OUT_TIME,
) -> tuple[datetime, datetime]:
    return (
        combine_date_time(check_in_date, check_in_time, default_check_in_time),
        combine_date_time(check_out_date, check_out_time, default_check_out_time),
    )


def parse_instant(value: InstantLike) -> datetime:
    """Normalise an ISO instant to naive local time.

    Offset-carrying values (including a trailing ``Z``) are converted to the
    process-local timezone so they compare with locally combined bounds.
    """
    if isinstance(value, datetime):
        instant = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        instant = datetime.fromisoformat(text)
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant


def to_utc_iso(instant: datetime) -> str:
    """Render a local instant as a UTC ISO-8601 string with a ``Z`` suffix."""
    aware = instant if instant.tzinfo is not None else instant.astimezone()
    utc_value = aware.astimezone(timezone.utc).replace(microsecond=0)
    return utc_value.isoformat().replace("+00:00", "Z")
