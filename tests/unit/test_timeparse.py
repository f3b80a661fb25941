"""Unit tests for duration and date helpers."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from scorecraft.utils.timeparse import (
    format_date,
    format_duration,
    is_date_expression,
    is_duration,
    parse_duration,
    resolve_date,
)

NOW = datetime(2024, 12, 1, 12, 0, tzinfo=timezone.utc)


class TestDurations:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("90d", timedelta(days=90)),
            ("12h", timedelta(hours=12)),
            ("30m", timedelta(minutes=30)),
            ("45s", timedelta(seconds=45)),
            ("500ms", timedelta(milliseconds=500)),
            ("2w", timedelta(weeks=2)),
            ("1.5d", timedelta(hours=36)),
        ],
    )
    def test_parse(self, text: str, expected: timedelta) -> None:
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "90", "d", "90 days", "-1d"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_duration(text)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (timedelta(days=90), "90d"),
            (timedelta(hours=36), "36h"),
            (timedelta(minutes=90), "90m"),
            (timedelta(milliseconds=1500), "1500ms"),
            ("270d", "270d"),
        ],
    )
    def test_format(self, value: timedelta | str, expected: str) -> None:
        assert format_duration(value) == expected

    def test_is_duration(self) -> None:
        assert is_duration("7d")
        assert is_duration(timedelta(days=1))
        assert not is_duration("seven days")
        assert not is_duration(7)


class TestDates:
    def test_now(self) -> None:
        assert resolve_date("now", NOW) == NOW

    def test_now_shifted(self) -> None:
        assert resolve_date("now-90d", NOW) == NOW - timedelta(days=90)
        assert resolve_date("now+1h", NOW) == NOW + timedelta(hours=1)

    def test_iso_date_string(self) -> None:
        assert resolve_date("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self) -> None:
        assert resolve_date(datetime(2024, 3, 1, 8)).tzinfo == timezone.utc

    def test_date_value(self) -> None:
        assert resolve_date(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            resolve_date("last tuesday")

    def test_is_date_expression(self) -> None:
        assert is_date_expression("now-30d")
        assert is_date_expression(date(2024, 1, 1))
        assert not is_date_expression("soon")
        assert not is_date_expression(42)

    def test_format_date(self) -> None:
        assert format_date(date(2024, 7, 1)) == "2024-07-01"
        assert format_date("now-1d") == "now-1d"
        assert format_date(datetime(2024, 7, 1, 10, 30)) == "2024-07-01T10:30:00+00:00"
