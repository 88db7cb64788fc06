"""
Calendar key codec.

Sessions are keyed by the calendar date the school sees on its wall calendar,
never by an instant, so keys are built from the date fields directly with no
timezone conversion:

  date_key(date(2025, 6, 10))   ->  '2025-06-10'
  month_key(date(2025, 6, 10))  ->  '2025-06'

Public API:
  date_key(value), month_key(value)
  parse_date_key(key), parse_month_key(key)
  to_date(value)
  add_months(day, months), add_days(day, days)
  start_of_day(day)
"""
import re
from datetime import date as date_type, datetime, time as time_type, timedelta

from dateutil.relativedelta import relativedelta
from django.utils import timezone

DATE_KEY_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
MONTH_KEY_RE = re.compile(r'^(\d{4})-(\d{2})$')


def date_key(value) -> str:
    """Canonical 'YYYY-MM-DD' key for a date (or the date part of a datetime)."""
    day = to_date(value)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def month_key(value) -> str:
    """'YYYY-MM' key of the month a date falls in."""
    day = to_date(value)
    return f"{day.year:04d}-{day.month:02d}"


def parse_date_key(key: str) -> date_type:
    """
    Inverse of date_key().

    Raises ValueError for anything that is not a real 'YYYY-MM-DD' date.
    """
    match = DATE_KEY_RE.match(str(key).strip())
    if not match:
        raise ValueError(f"Invalid date key '{key}' (expected YYYY-MM-DD).")
    year, month, day = (int(part) for part in match.groups())
    return date_type(year, month, day)


def parse_month_key(key: str) -> tuple:
    """Returns (year, month) for a 'YYYY-MM' key. Raises ValueError if malformed."""
    match = MONTH_KEY_RE.match(str(key).strip())
    if not match:
        raise ValueError(f"Invalid month key '{key}' (expected YYYY-MM).")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month key '{key}' (month out of range).")
    return year, month


def to_date(value) -> date_type:
    """Coerce a date, datetime or date key into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if isinstance(value, str):
        return parse_date_key(value)
    raise TypeError(f"Cannot interpret {value!r} as a calendar date.")


def add_months(day, months: int) -> date_type:
    """Calendar-month arithmetic; the 31st clamps to the last day of shorter months."""
    return to_date(day) + relativedelta(months=months)


def add_days(day, days: int) -> date_type:
    return to_date(day) + timedelta(days=days)


def start_of_day(day) -> datetime:
    """Aware midnight of the given calendar date in the current time zone."""
    return timezone.make_aware(datetime.combine(to_date(day), time_type.min))
