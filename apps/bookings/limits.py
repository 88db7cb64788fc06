"""
Monthly limit registry: which calendar dates may become active exam days.

A date is selectable when it is already active, when its month has no cap,
or when the month's active-session count is still below the cap. A cap never
deactivates dates that are already active.
"""
from django.db.models import Exists, OuterRef, Q

from apps.core.calendar import month_key as month_key_of, parse_month_key, to_date
from .models import ExamSession, MonthlyLimit, StudentBooking, Turn


def active_sessions():
    """Sessions with a turn or at least one student."""
    has_students = Exists(StudentBooking.objects.filter(session=OuterRef('pk')))
    return ExamSession.objects.filter(~Q(turn=Turn.UNSET) | Q(has_students))


def active_sessions_in_month(month_key: str):
    year, month = parse_month_key(month_key)
    return active_sessions().filter(date__year=year, date__month=month)


def active_session_count(month_key: str, exclude=None) -> int:
    qs = active_sessions_in_month(month_key)
    if exclude is not None:
        qs = qs.exclude(date=to_date(exclude))
    return qs.count()


def get_monthly_limit(month_key: str):
    """The configured cap for a month, or None when the month is uncapped."""
    row = MonthlyLimit.objects.filter(month_key=month_key).first()
    return row.limit if row else None


def lock_monthly_limit(month_key: str):
    """
    Lock a month's limit row for the rest of the transaction and return the cap.

    Two workers activating different new dates in the same capped month both
    wait on this row, so the second one counts the first one's session.
    """
    row = MonthlyLimit.objects.select_for_update().filter(month_key=month_key).first()
    return row.limit if row else None


def is_active(day) -> bool:
    return active_sessions().filter(date=to_date(day)).exists()


def is_date_selectable(day, exclude=None) -> bool:
    """
    True if `day` may hold exam data.

    `exclude` names a date whose session is about to become inactive (the
    origin of a whole-session move); it is not counted against the cap.
    """
    day = to_date(day)
    if is_active(day):
        return True
    key = month_key_of(day)
    limit = get_monthly_limit(key)
    if not limit:
        return True
    return active_session_count(key, exclude=exclude) < limit


def month_overview(month_key: str) -> dict:
    count = active_session_count(month_key)
    limit = get_monthly_limit(month_key)
    return {
        'month': month_key,
        'active_count': count,
        'limit': limit,
        'limit_reached': bool(limit) and count >= limit,
    }
