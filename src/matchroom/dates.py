"""
Tolerant timestamp parsing for match records.

Match documents have accumulated several timestamp shapes over time:

- store-native timestamp objects exposing ``to_datetime()`` / ``toDate()``
- ``datetime`` instances
- numeric epoch values, in seconds or milliseconds
- ISO-8601 strings (``2025-06-03T14:32:08.063Z``)
- Finnish locale strings (``03.06.2025 14.32.08``, optionally with ``klo``,
  a comma, ``:`` separators or no seconds)

:func:`parse_timestamp` tries an ordered list of strategies and falls back
to the Unix epoch when none succeeds. It never raises, and the same input
always yields the same value, which the history replay relies on for its
ordering.

All results are timezone-aware UTC datetimes. Naive inputs are read as UTC.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Epoch values at or above this magnitude are treated as milliseconds.
# 1e11 seconds is roughly the year 5138, 1e11 ms is early 1973.
_MILLISECONDS_THRESHOLD = 100_000_000_000

# Fractional seconds of any length; normalized to microseconds before parsing
_ISO_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")

_LOCALE_PATTERN = re.compile(
    r"^(\d{1,2})\.(\d{1,2})\.(\d{4})"
    r"(?: (\d{1,2})[.:](\d{1,2})(?:[.:](\d{1,2}))?)?$"
)

ParseStrategy = Callable[[Any], Optional[datetime]]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_native(value: Any) -> Optional[datetime]:
    """Store-native timestamp objects and plain datetimes."""
    if isinstance(value, datetime):
        return _as_utc(value)
    for attr in ("to_datetime", "toDate"):
        converter = getattr(value, attr, None)
        if callable(converter):
            try:
                converted = converter()
            except (TypeError, ValueError, OverflowError):
                return None
            if isinstance(converted, datetime):
                return _as_utc(converted)
            return None
    return None


def _from_epoch(value: Any) -> Optional[datetime]:
    """Numbers (or numeric strings) holding epoch seconds or milliseconds."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not re.fullmatch(r"-?\d+(\.\d+)?", text):
            return None
        value = float(text)
    if not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    seconds = value / 1000 if abs(value) >= _MILLISECONDS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_iso(value: Any) -> Optional[datetime]:
    """ISO-8601 strings, including a trailing ``Z``."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not re.match(r"^\d{4}-\d{2}-\d{2}", text):
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _ISO_FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _from_locale(value: Any) -> Optional[datetime]:
    """Finnish ``dd.MM.yyyy HH.mm.ss`` strings and their legacy variants."""
    if not isinstance(value, str):
        return None
    text = value.replace("klo", "").replace(",", "")
    text = re.sub(r"\s+", " ", text).strip()
    match = _LOCALE_PATTERN.match(text)
    if not match:
        return None
    day, month, year, hour, minute, second = match.groups()
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


# Tried in order; the first strategy returning a datetime wins.
PARSE_STRATEGIES: tuple[ParseStrategy, ...] = (
    _from_native,
    _from_epoch,
    _from_iso,
    _from_locale,
)


def try_parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp, returning None when no strategy understands it."""
    if value is None or value == "":
        return None
    for strategy in PARSE_STRATEGIES:
        parsed = strategy(value)
        if parsed is not None:
            return parsed
    return None


def parse_timestamp(value: Any) -> datetime:
    """
    Parse any supported timestamp shape into an aware UTC datetime.

    Unparsable or missing values sort as the oldest possible match (epoch 0).

    Examples:
        >>> parse_timestamp("2025-06-03T14:32:08Z").hour
        14
        >>> parse_timestamp("03.06.2025 14.32.08").day
        3
        >>> parse_timestamp("not a date") == EPOCH
        True
    """
    parsed = try_parse_timestamp(value)
    return parsed if parsed is not None else EPOCH


def format_locale(value: datetime) -> str:
    """Format a datetime as ``dd.MM.yyyy HH.mm.ss``."""
    return value.strftime("%d.%m.%Y %H.%M.%S")


def to_iso(value: datetime) -> str:
    """Canonical ISO-8601 string (UTC, millisecond precision, ``Z`` suffix)."""
    utc = _as_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"
