"""ISO-8601 time instants exposed by WMS layers."""

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List

# Date-only up to a full timestamp with fractional seconds and an optional
# "Z" or +/-HH:MM offset.
ISO8601_PATTERN = (
    r"^(\d{4})-(\d{2})-(\d{2})"
    r"(?:T(\d{2}):(\d{2})(?::(\d{2})(?:\.(\d+))?)?(Z|[+-]\d{2}:\d{2})?)?$"
)

_ISO8601_RE = re.compile(ISO8601_PATTERN)


def is_iso8601(value: str) -> bool:
    """Return True when ``value`` matches the accepted ISO-8601 shape."""
    return bool(_ISO8601_RE.match(value))


def parse_instant(value: str) -> datetime:
    """
    Parse an ISO-8601 string into an aware datetime.

    Values without an offset are read as UTC so that ordering never depends
    on the host time zone.

    Raises:
        ValueError: If the string does not match the pattern or names an
            impossible date/time (e.g. month 13).
    """
    match = _ISO8601_RE.match(value)
    if not match:
        raise ValueError(f"Not an ISO-8601 date/time: {value!r}")

    year, month, day, hour, minute, second, fraction, offset = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))

    tz = timezone.utc
    if offset and offset != "Z":
        sign = 1 if offset[0] == "+" else -1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))

    return datetime(
        int(year),
        int(month),
        int(day),
        int(hour or 0),
        int(minute or 0),
        int(second or 0),
        microsecond,
        tzinfo=tz,
    )


def merge_times(sequences: Iterable[Iterable[str]]) -> List[str]:
    """
    Concatenate time sequences, drop exact-string duplicates (first wins)
    and sort ascending by parsed instant.

    Distinct strings naming the same instant (``2020-01-01`` and
    ``2020-01-01T00:00:00Z``) are both kept; their relative order is stable.
    """
    seen = set()
    merged: List[str] = []
    for sequence in sequences:
        for value in sequence:
            if value in seen:
                continue
            seen.add(value)
            merged.append(value)
    return sorted(merged, key=parse_instant)
