from datetime import timedelta

import pytest

from apps.bookings.exceptions import NotFound
from apps.waitlist import services as waitlist
from apps.waitlist.models import WaitingListEntry

pytestmark = pytest.mark.django_db


def test_add_entry_trims_input(now):
    entry = waitlist.add_entry('  Paolo Moretti ', ' 339 4443332 ', added_at=now)
    assert (entry.name, entry.phone, entry.added_at) == ('Paolo Moretti', '339 4443332', now)
    assert entry.is_bookable(now)
    assert not entry.failed_three_times


def test_add_entry_requires_a_name():
    with pytest.raises(ValueError):
        waitlist.add_entry('  ')
    assert not WaitingListEntry.objects.exists()


def test_add_entries_accepts_pairs_and_dicts_and_skips_blank_names(now):
    created = waitlist.add_entries(
        [('Paolo Moretti', '339 4443332'), {'name': 'Valentina Barbieri'}, {'name': ' ', 'phone': '1'}],
        added_at=now,
    )
    assert [e.name for e in created] == ['Paolo Moretti', 'Valentina Barbieri']
    assert created[1].phone == ''


def test_remove_entry(now):
    entry = waitlist.add_entry('Paolo Moretti', added_at=now)
    waitlist.remove_entry(entry.id)
    assert not WaitingListEntry.objects.exists()
    with pytest.raises(NotFound):
        waitlist.remove_entry(entry.id)


def test_bookable_and_frozen_partition(now):
    free = waitlist.add_entry('Paolo Moretti', added_at=now)
    frozen = waitlist.add_entry(
        'Mario Rossi', can_book_after=now + timedelta(days=3), failed_three_times=True, added_at=now,
    )
    thawed = waitlist.add_entry('Sara Romano', can_book_after=now - timedelta(days=1), added_at=now)

    assert set(waitlist.bookable_entries(now)) == {free, thawed}
    assert list(waitlist.frozen_entries(now)) == [frozen]
    assert frozen.is_frozen(now)
    assert frozen.is_bookable(now + timedelta(days=3))
