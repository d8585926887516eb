from __future__ import annotations

import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from core.data import CapsuleRecord


DATE_DISPLAY_FORMAT = "%b %d, %Y"
MISSING_DISPLAY = "—"

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, str, None]


def parse_iso_date(value: DateLike) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` string into a calendar date.

    ``None`` and blank strings mean "not happened yet" and return ``None``.
    Anything else that is not a valid calendar date raises ``ValueError``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO date string, got {type(value).__name__}: {value!r}")
    s = value.strip()
    if not s:
        return None
    if not ISO_DATE_RE.match(s):
        raise ValueError(f"Expected YYYY-MM-DD, got {s!r}")
    return datetime.strptime(s, "%Y-%m-%d").date()


def day_difference(a: DateLike, b: DateLike) -> Optional[int]:
    """Absolute number of days between two optional dates, or None if either is absent."""
    da = parse_iso_date(a)
    db = parse_iso_date(b)
    if da is None or db is None:
        return None
    return abs((db - da).days)


def availability_span(record: "CapsuleRecord", now: date) -> Optional[int]:
    """Introduced -> removed, or introduced -> now while the capsule is still in store."""
    if record.introduced_date is None:
        return None
    end = record.removed_date if record.removed_date is not None else now
    return day_difference(record.introduced_date, end)


def sale_duration(record: "CapsuleRecord") -> Optional[int]:
    return day_difference(record.sale_start_date, record.removed_date)


def format_date(value: DateLike) -> str:
    d = parse_iso_date(value)
    if d is None:
        return MISSING_DISPLAY
    return d.strftime(DATE_DISPLAY_FORMAT)
