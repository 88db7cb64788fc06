from datetime import date

import pytest
from django.urls import reverse

from apps.bookings.models import StudentStatus, Turn
from apps.dashboard import reports
from apps.examiners.models import Examiner

pytestmark = pytest.mark.django_db


def test_search_is_case_insensitive_and_newest_first(engine):
    engine.book('Mario Rossi', date(2025, 6, 10))
    engine.book('Maria Rossini', date(2025, 7, 1))
    engine.book('Luca Ferrari', date(2025, 7, 1))

    results = reports.search_students('ROSS')

    assert [(b.name, b.session.date) for b in results] == [
        ('Maria Rossini', date(2025, 7, 1)),
        ('Mario Rossi', date(2025, 6, 10)),
    ]
    assert reports.search_students('   ') == []


def test_summary_lists_only_sessions_with_students(engine):
    engine.set_turn(date(2025, 6, 2), Turn.MORNING)
    engine.book('Luca Ferrari', date(2025, 6, 20))
    engine.book('Mario Rossi', date(2025, 6, 10))
    engine.book('Sara Romano', date(2025, 6, 10))

    summary = reports.bookings_summary()

    assert [s.date for s in summary['sessions']] == [date(2025, 6, 10), date(2025, 6, 20)]
    assert summary['total_students'] == 3


def test_overall_stats_and_monthly_series(engine):
    passed = engine.book('Giulia Conti', date(2025, 6, 10))
    failed = engine.book('Mario Rossi', date(2025, 6, 10))
    engine.book('Sara Romano', date(2025, 6, 12))
    engine.record_outcome(passed.id, StudentStatus.PASSED)
    engine.record_outcome(failed.id, StudentStatus.FAILED)

    totals = reports.overall_stats()
    assert (totals['passed'], totals['failed']) == (1, 1)
    assert totals['pass_rate'] == 50.0
    assert totals['total_students'] == 1
    assert totals['avg_students_per_session'] == 1.0

    series = reports.monthly_outcomes(date(2025, 6, 15))
    assert [m['month'] for m in series] == ['2025-01', '2025-02', '2025-03', '2025-04', '2025-05', '2025-06']
    assert series[-1] == {'month': '2025-06', 'passed': 1, 'failed': 1}


def test_rates_are_empty_without_outcomes():
    totals = reports.overall_stats()
    assert totals['pass_rate'] is None and totals['avg_students_per_session'] == 0


def test_examiner_session_counts_per_year(engine):
    rossi = Examiner.objects.create(name='Ing. Rossi')
    bianchi = Examiner.objects.create(name='Ing. Bianchi')
    for day in (date(2025, 6, 2), date(2025, 6, 3)):
        engine.set_turn(day, Turn.MORNING)
        engine.set_examiner(day, rossi.id)
    engine.set_turn(date(2025, 6, 4), Turn.MORNING)
    engine.set_examiner(date(2025, 6, 4), bianchi.id)
    engine.set_turn(date(2026, 1, 5), Turn.MORNING)
    engine.set_examiner(date(2026, 1, 5), bianchi.id)

    counts = reports.examiner_session_counts(2025)

    assert [(c['name'], c['sessions']) for c in counts] == [('Ing. Rossi', 2), ('Ing. Bianchi', 1)]
    assert reports.available_years(2024) == [2026, 2025, 2024]


def test_report_endpoints(staff_client, engine):
    engine.book('Mario Rossi', date(2030, 3, 12))

    search = staff_client.get(reverse('dashboard:search'), {'q': 'mario'}).json()
    assert search['count'] == 1 and search['results'][0]['date'] == '2030-03-12'

    summary = staff_client.get(reverse('dashboard:summary')).json()
    assert summary['total_students'] == 1

    today = staff_client.get(reverse('dashboard:today')).json()
    assert 'students' in today

    stats = staff_client.get(reverse('dashboard:stats'), {'year': 2030}).json()
    assert stats['year'] == 2030 and len(stats['monthly']) == 6
    assert staff_client.get(reverse('dashboard:stats'), {'year': 'soon'}).status_code == 400
