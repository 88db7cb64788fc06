from datetime import date

import pytest
from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.urls import reverse

from apps.bookings import limits
from apps.bookings.models import BookingOutcomeLog, ExamSession, LogAction, StudentBooking, Turn

pytestmark = pytest.mark.django_db

JUNE_20 = date(2025, 6, 20)
JULY_1 = date(2025, 7, 1)


@pytest.fixture
def admin_site_client(client, django_user_model):
    user = django_user_model.objects.create_superuser(
        username='direzione', email='direzione@example.com', password='guida-2030',
    )
    client.force_login(user, backend='django.contrib.auth.backends.ModelBackend')
    return client


def test_session_date_cannot_be_changed_in_admin(admin_site_client, engine):
    engine.set_monthly_limit('2025-07', 1)
    engine.book('Mario Rossi', JULY_1)
    engine.book('Giulia Conti', JUNE_20)
    session = ExamSession.objects.get(date=JUNE_20)

    response = admin_site_client.post(
        reverse('admin:bookings_examsession_change', args=[session.pk]),
        {'date': '2025-07-15', 'turn': Turn.MORNING},
    )

    assert response.status_code == 403
    assert ExamSession.objects.filter(date=JUNE_20).exists()
    assert limits.active_session_count('2025-07') == 1


def test_admin_has_no_delete_or_add_for_sessions_and_bookings(admin_site_client, engine):
    booking = engine.book('Mario Rossi', JUNE_20)

    deleted = admin_site_client.post(
        reverse('admin:bookings_studentbooking_delete', args=[booking.pk]), {'post': 'yes'},
    )
    added = admin_site_client.get(reverse('admin:bookings_examsession_add'))

    assert deleted.status_code == 403
    assert added.status_code == 403
    assert StudentBooking.objects.filter(id=booking.id).exists()


def test_remove_action_goes_through_the_engine(admin_site_client, engine):
    booking = engine.book('Mario Rossi', JUNE_20)

    response = admin_site_client.post(
        reverse('admin:bookings_studentbooking_changelist'),
        {'action': 'remove_students', ACTION_CHECKBOX_NAME: [str(booking.pk)]},
    )

    assert response.status_code == 302
    assert not StudentBooking.objects.exists()
    assert not ExamSession.objects.exists()
    log = BookingOutcomeLog.objects.get(action=LogAction.REMOVED)
    assert (log.student_name, log.changed_by) == ('Mario Rossi', 'direzione')


def test_delete_sessions_action_logs_every_student(admin_site_client, engine, fill):
    fill(JUNE_20, 3)
    session = ExamSession.objects.get(date=JUNE_20)

    admin_site_client.post(
        reverse('admin:bookings_examsession_changelist'),
        {'action': 'delete_sessions', ACTION_CHECKBOX_NAME: [str(session.pk)]},
    )

    assert not ExamSession.objects.exists()
    assert BookingOutcomeLog.objects.filter(action=LogAction.REMOVED, changed_by='direzione').count() == 3
