"""
Read-only queries behind the search, summary, exam-day and statistics views.

PASSED bookings are removed when the outcome is recorded, so pass/fail
figures come from BookingOutcomeLog rather than from live bookings.
"""
from django.db.models import Count, Q

from apps.bookings.models import BookingOutcomeLog, ExamSession, LogAction, StudentBooking
from apps.core.calendar import add_months, month_key


def search_students(query: str) -> list:
    """Bookings whose name contains `query` (case-insensitive), most recent date first."""
    query = (query or '').strip().casefold()
    if not query:
        return []
    bookings = StudentBooking.objects.select_related('session').order_by('-session__date', 'position')
    return [b for b in bookings if query in b.name.casefold()]


def sessions_with_students():
    return (
        ExamSession.objects
        .filter(students__isnull=False)
        .distinct()
        .select_related('examiner')
        .order_by('date')
    )


def bookings_summary() -> dict:
    sessions = list(sessions_with_students())
    return {
        'sessions': sessions,
        'total_students': StudentBooking.objects.count(),
    }


def today_session(today):
    return ExamSession.objects.select_related('examiner').filter(date=today).first()


def outcome_counts(**filters) -> dict:
    counts = BookingOutcomeLog.objects.filter(**filters).aggregate(
        passed=Count('id', filter=Q(action=LogAction.PASSED)),
        failed=Count('id', filter=Q(action=LogAction.FAILED)),
    )
    return {'passed': counts['passed'] or 0, 'failed': counts['failed'] or 0}


def overall_stats() -> dict:
    total_sessions = sessions_with_students().count()
    total_students = StudentBooking.objects.count()
    outcomes = outcome_counts()
    completed = outcomes['passed'] + outcomes['failed']
    return {
        'total_sessions': total_sessions,
        'total_students': total_students,
        'passed': outcomes['passed'],
        'failed': outcomes['failed'],
        'pass_rate': round(outcomes['passed'] * 100 / completed, 1) if completed else None,
        'fail_rate': round(outcomes['failed'] * 100 / completed, 1) if completed else None,
        'avg_students_per_session': round(total_students / total_sessions, 1) if total_sessions else 0,
    }


def monthly_outcomes(today, months: int = 6) -> list:
    """Passed/failed counts for the last `months` months, oldest first, current month included."""
    series = []
    for offset in range(months - 1, -1, -1):
        first = add_months(today.replace(day=1), -offset)
        counts = outcome_counts(exam_date__year=first.year, exam_date__month=first.month)
        series.append({'month': month_key(first), **counts})
    return series


def examiner_session_counts(year: int) -> list:
    """Sessions per examiner in `year`, busiest first."""
    rows = (
        ExamSession.objects
        .filter(date__year=year, examiner__isnull=False)
        .values('examiner_id', 'examiner__name')
        .annotate(sessions=Count('id'))
        .order_by('-sessions', 'examiner__name')
    )
    return [
        {'id': str(row['examiner_id']), 'name': row['examiner__name'], 'sessions': row['sessions']}
        for row in rows
    ]


def available_years(current_year: int) -> list:
    years = {d.year for d in ExamSession.objects.dates('date', 'year')}
    years.add(current_year)
    return sorted(years, reverse=True)
