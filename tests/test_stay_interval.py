from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from frontdesk.domain.stay_interval import (
    combine_date_time,
    parse_date,
    parse_instant,
    stay_bounds,
    to_utc_iso,
)


def test_missing_times_take_defaults() -> None:
    start, end = stay_bounds("2024-06-01", "2024-06-03")
    assert start == datetime(2024, 6, 1, 14, 0)
    assert end == datetime(2024, 6, 3, 12, 0)


def test_explicit_times_override_defaults() -> None:
    start, end = stay_bounds("2024-06-01", "2024-06-01", "09:30", "11:45")
    assert start == datetime(2024, 6, 1, 9, 30)
    assert end == datetime(2024, 6, 1, 11, 45)


def test_combine_rejects_malformed_date() -> None:
    with pytest.raises(ValueError):
        combine_date_time("06/01/2024", None, "14:00")


def test_parse_date_accepts_dates_and_datetimes() -> None:
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)
    assert parse_date(datetime(2024, 1, 1, 23, 0)) == date(2024, 1, 1)


def test_parse_instant_normalises_zulu_to_naive_local() -> None:
    parsed = parse_instant("2024-06-01T12:00:00Z")
    expected = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert parsed.tzinfo is None
    assert parsed == expected


def test_parse_instant_keeps_naive_values() -> None:
    assert parse_instant("2024-06-01T12:00:00") == datetime(2024, 6, 1, 12, 0)
    assert parse_instant(datetime(2024, 6, 1, 12, 0)) == datetime(2024, 6, 1, 12, 0)


def test_to_utc_iso_round_trips_through_parse_instant() -> None:
    local = datetime(2024, 6, 1, 14, 0)
    rendered = to_utc_iso(local)
    assert rendered.endswith("Z")
    assert parse_instant(rendered) == local
