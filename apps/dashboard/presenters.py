"""
JSON shapes returned by the dashboard endpoints.
"""
from django.conf import settings
from apps.core.calendar import date_key


def booking_dict(booking):
    return {
        'id': str(booking.id),
        'name': booking.name,
        'phone': booking.phone,
        'status': booking.status,
        'fail_count': booking.fail_count,
        'position': booking.position,
        'date': date_key(booking.session.date),
    }


def session_dict(session, day=None):
    """A session, or the empty shape for a date without one."""
    if session is None:
        return {
            'date': date_key(day),
            'turn': None,
            'examiner': None,
            'students': [],
            'student_count': 0,
            'is_full': False,
        }
    students = list(session.students.order_by('position'))
    examiner = session.examiner
    return {
        'date': session.date_key,
        'turn': session.turn or None,
        'examiner': {'id': str(examiner.id), 'name': examiner.name} if examiner else None,
        'students': [booking_dict(b) for b in students],
        'student_count': len(students),
        'is_full': len(students) >= settings.MAX_STUDENTS_PER_SESSION,
    }


def entry_dict(entry, now=None):
    return {
        'id': str(entry.id),
        'name': entry.name,
        'phone': entry.phone,
        'added_at': entry.added_at.isoformat(),
        'can_book_after': entry.can_book_after.isoformat() if entry.can_book_after else None,
        'failed_three_times': entry.failed_three_times,
        'bookable': entry.is_bookable(now),
    }


def match_dict(match):
    return {'date': date_key(match.date), 'phone': match.phone}
