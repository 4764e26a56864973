from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .validation import ValidationError

"""
Ledger date grammar (authoritative)

Cells written by older clients carry locale-rendered dates, so every read
goes through this module and nothing else parses ledger dates.

    date     := D/M/YYYY | YYYY-MM-DD
    time     := H:MM | H:MM:SS                     (24h)
    datetime := date
              | date "," time | date " " time      (date first)
              | time " " date | time "," date      (time first)
              | YYYY-MM-DDTHH:MM[:SS]

- Day and month may be one or two digits; the year is always four digits.
- Years before 2000 are rejected (legacy sheets carried 1970 epoch junk).
- Calendar validity is enforced (31/2/2026 is an error, not March 3rd).
- Written forms are "D/M/YYYY" and "D/M/YYYY, HH:MM:SS".
"""

MIN_YEAR = 2000

_DMY = r"(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4})"
_ISO_DATE = r"(?P<iyear>\d{4})-(?P<imonth>\d{2})-(?P<iday>\d{2})"
_TIME = r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?"

_DATE_RE = re.compile(rf"^(?:{_DMY}|{_ISO_DATE})$")
_DATE_THEN_TIME_RE = re.compile(rf"^(?:{_DMY}|{_ISO_DATE})(?:\s*,\s*|\s+|T){_TIME}$")
_TIME_THEN_DATE_RE = re.compile(rf"^{_TIME}(?:\s*,\s*|\s+)(?:{_DMY}|{_ISO_DATE})$")


class DateParseError(ValidationError):
    """Raised when a ledger cell does not match the date grammar."""


def now() -> datetime:
    """Business 'now' in local wall-clock time (naive, second precision)."""
    return datetime.now().replace(microsecond=0)


def _build_date(match: re.Match, raw: str) -> date:
    if match.group("day") is not None:
        year, month, day = match.group("year"), match.group("month"), match.group("day")
    else:
        year, month, day = match.group("iyear"), match.group("imonth"), match.group("iday")
    try:
        value = date(int(year), int(month), int(day))
    except ValueError:
        raise DateParseError(f"not a calendar date: {raw!r}")
    if value.year < MIN_YEAR:
        raise DateParseError(f"year before {MIN_YEAR}: {raw!r}")
    return value


def _build_time(match: re.Match, raw: str) -> time:
    second = match.group("second")
    try:
        return time(int(match.group("hour")), int(match.group("minute")), int(second or 0))
    except ValueError:
        raise DateParseError(f"not a valid time: {raw!r}")


def parse_ledger_date(value) -> date:
    """
    Parse a day-granularity ledger cell.

    Accepts datetimes too (the time part is dropped) so that a Sale timestamp
    can be used wherever a date is expected.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise DateParseError("date is required")

    s = str(value).strip()
    match = _DATE_RE.match(s)
    if match:
        return _build_date(match, s)
    return parse_ledger_datetime(s).date()


def parse_ledger_datetime(value) -> datetime:
    """Parse a ledger timestamp cell; a bare date means midnight."""
    if isinstance(value, datetime):
        return value.replace(microsecond=0)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if value is None:
        raise DateParseError("datetime is required")

    s = str(value).strip()
    if not s:
        raise DateParseError("datetime is required")

    match = _DATE_RE.match(s)
    if match:
        return datetime.combine(_build_date(match, s), time())

    match = _DATE_THEN_TIME_RE.match(s) or _TIME_THEN_DATE_RE.match(s)
    if match:
        return datetime.combine(_build_date(match, s), _build_time(match, s))

    raise DateParseError(f"unrecognized date format: {s!r}")


def format_ledger_date(value: date) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day}/{value.month}/{value.year}"


def format_ledger_datetime(value: datetime) -> str:
    return f"{format_ledger_date(value)}, {value:%H:%M:%S}"


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat()


PERIODS = ("today", "week", "month", "all")


def in_period(day: Optional[date], period: str, today: date) -> bool:
    """
    Report period membership of a ledger day.

    today: that day; week: the last 7 days up to today; month: the calendar
    month of today; all: everything, undated rows included.
    """
    if period not in PERIODS:
        raise ValidationError(f"period must be one of {', '.join(PERIODS)}")
    if period == "all":
        return True
    if day is None:
        return False
    if period == "today":
        return day == today
    if period == "week":
        return today - timedelta(days=7) <= day <= today
    return (day.year, day.month) == (today.year, today.month)
