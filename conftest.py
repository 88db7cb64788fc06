from datetime import datetime

import pytest
from django.utils import timezone

from apps.bookings.engine import BookingEngine


@pytest.fixture
def now():
    """Fixed 'current instant' for time-dependent tests."""
    return timezone.make_aware(datetime(2025, 6, 1, 9, 0))


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def engine(clock):
    return BookingEngine(clock=clock, changed_by='tests')


@pytest.fixture
def fill(engine):
    """Book `count` distinct students onto `day`; returns the bookings."""
    def _fill(day, count, prefix='Student'):
        return [engine.book(f'{prefix} {i}', day) for i in range(1, count + 1)]
    return _fill


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username='segreteria', password='guida-2030', is_staff=True,
    )


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user, backend='django.contrib.auth.backends.ModelBackend')
    return client
