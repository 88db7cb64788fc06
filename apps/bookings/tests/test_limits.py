from datetime import date

import pytest

from apps.bookings import limits
from apps.bookings.models import ExamSession, Turn
from apps.examiners.models import Examiner

pytestmark = pytest.mark.django_db


def test_sessions_count_as_active_with_turn_or_students(engine):
    engine.set_turn(date(2025, 6, 2), Turn.MORNING)
    engine.book('Mario Rossi', date(2025, 6, 3))
    ExamSession.objects.create(date=date(2025, 6, 4), examiner=Examiner.objects.create(name='Ing. Rossi'))

    assert limits.active_session_count('2025-06') == 2
    assert limits.is_active(date(2025, 6, 2))
    assert limits.is_active('2025-06-03')
    assert not limits.is_active(date(2025, 6, 4))


def test_uncapped_month_accepts_any_date():
    assert limits.get_monthly_limit('2025-06') is None
    assert limits.is_date_selectable(date(2025, 6, 30))


def test_cap_blocks_only_inactive_dates(engine):
    engine.set_monthly_limit('2025-06', 2)
    engine.set_turn(date(2025, 6, 2), Turn.MORNING)
    engine.set_turn(date(2025, 6, 3), Turn.AFTERNOON)

    assert limits.is_date_selectable(date(2025, 6, 2))
    assert not limits.is_date_selectable(date(2025, 6, 4))
    assert limits.is_date_selectable(date(2025, 6, 4), exclude=date(2025, 6, 3))
    assert limits.is_date_selectable(date(2025, 7, 1))


def test_month_overview(engine):
    engine.set_monthly_limit('2025-06', 1)
    assert limits.month_overview('2025-06') == {
        'month': '2025-06', 'active_count': 0, 'limit': 1, 'limit_reached': False,
    }
    engine.set_turn(date(2025, 6, 2), Turn.MORNING)
    assert limits.month_overview('2025-06')['limit_reached'] is True
