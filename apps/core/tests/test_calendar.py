from datetime import date, datetime

import pytest
from django.utils import timezone

from apps.core.calendar import (
    add_days,
    add_months,
    date_key,
    month_key,
    parse_date_key,
    parse_month_key,
    start_of_day,
    to_date,
)


def test_keys_are_zero_padded():
    assert date_key(date(2025, 6, 1)) == '2025-06-01'
    assert month_key(date(2025, 6, 1)) == '2025-06'


def test_date_key_uses_the_calendar_date_of_a_datetime():
    late_evening = timezone.make_aware(datetime(2025, 6, 10, 23, 30))
    assert date_key(late_evening) == '2025-06-10'


def test_parse_date_key_round_trip():
    assert parse_date_key('2025-02-28') == date(2025, 2, 28)
    assert date_key(parse_date_key('2024-12-31')) == '2024-12-31'


@pytest.mark.parametrize('key', ['2025-6-1', '2025-02-30', '10/06/2025', '', 'oggi'])
def test_parse_date_key_rejects_malformed_keys(key):
    with pytest.raises(ValueError):
        parse_date_key(key)


def test_parse_month_key():
    assert parse_month_key('2025-06') == (2025, 6)
    with pytest.raises(ValueError):
        parse_month_key('2025-13')
    with pytest.raises(ValueError):
        parse_month_key('2025-06-01')


def test_to_date_accepts_keys_and_rejects_other_types():
    assert to_date('2025-06-10') == date(2025, 6, 10)
    assert to_date(date(2025, 6, 10)) == date(2025, 6, 10)
    with pytest.raises(TypeError):
        to_date(20250610)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 12, 15), 1) == date(2026, 1, 15)
    assert add_months(date(2025, 3, 10), -6) == date(2024, 9, 10)


def test_add_days_crosses_month_boundary():
    assert add_days(date(2025, 6, 20), 15) == date(2025, 7, 5)


def test_start_of_day_is_local_midnight():
    midnight = start_of_day(date(2025, 7, 10))
    assert timezone.is_aware(midnight)
    local = timezone.localtime(midnight)
    assert (local.date(), local.hour, local.minute) == (date(2025, 7, 10), 0, 0)
