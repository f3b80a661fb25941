"""Duration strings and date-math helpers.

Durations use the backend's compact notation (``"90d"``, ``"12h"``,
``"500ms"``).  Date expressions are ISO 8601 strings, ``date`` /
``datetime`` values, ``"now"`` or ``"now"`` shifted by a duration
(``"now-90d"``).  All resolved datetimes are timezone-aware UTC.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)\s*$")
_NOW_RE = re.compile(r"^now(?:\s*([+-])\s*(.+))?$")

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}

# Units tried when formatting, largest first.  Weeks are left out: the
# backend accepts them, but days read better in request bodies.
_FORMAT_UNITS = ("d", "h", "m", "s")


def parse_duration(value: timedelta | str) -> timedelta:
    """Convert a duration string (or timedelta) to a timedelta.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    if isinstance(value, timedelta):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Not a duration: {value!r}")
    m = _DURATION_RE.match(value)
    if not m:
        raise ValueError(f"Not a duration: {value!r}")
    amount, unit = m.groups()
    return timedelta(seconds=float(amount) * _UNIT_SECONDS[unit])


def format_duration(value: timedelta | str) -> str:
    """Render a duration in compact notation, e.g. ``timedelta(days=90)`` -> ``"90d"``."""
    if isinstance(value, str):
        parse_duration(value)
        return value.strip()

    millis = round(value.total_seconds() * 1000)
    for unit in _FORMAT_UNITS:
        unit_ms = round(_UNIT_SECONDS[unit] * 1000)
        if millis and millis % unit_ms == 0:
            return f"{millis // unit_ms}{unit}"
    return f"{millis}ms"


def is_duration(value: object) -> bool:
    """Return whether ``value`` is a timedelta or a valid duration string."""
    if isinstance(value, timedelta):
        return True
    if isinstance(value, str):
        return _DURATION_RE.match(value) is not None
    return False


def is_date_expression(value: object) -> bool:
    """Return whether ``value`` can be resolved by :func:`resolve_date`."""
    if isinstance(value, date):
        return True
    if not isinstance(value, str):
        return False
    try:
        resolve_date(value)
    except ValueError:
        return False
    return True


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_date(value: date | datetime | str, now: datetime | None = None) -> datetime:
    """Resolve a date expression to an aware UTC datetime.

    Args:
        value: ISO string, ``date``/``datetime``, ``"now"`` or ``"now±<duration>"``.
        now: Reference time for ``now`` expressions (default: current time).

    Raises:
        ValueError: If ``value`` cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Not a date: {value!r}")

    text = value.strip()
    m = _NOW_RE.match(text)
    if m:
        base = _as_utc(now) if now is not None else datetime.now(timezone.utc)
        sign, shift = m.groups()
        if sign is None:
            return base
        delta = parse_duration(shift)
        return base + delta if sign == "+" else base - delta

    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise ValueError(f"Not a date: {value!r}") from e


def format_date(value: date | datetime | str) -> str:
    """Render a date value for a request body; strings pass through."""
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return _as_utc(value).isoformat()
    return value.isoformat()
