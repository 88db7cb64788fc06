"""
Waiting list store operations.

Booking an entry onto a date is a BookingEngine operation
(book_from_waiting_list); this module only manages the list itself.

Public API:
  add_entry(name, phone='', can_book_after=None, failed_three_times=False, added_at=None)
  add_entries(contacts, added_at=None)
  remove_entry(entry_id)
  bookable_entries(now=None)
  frozen_entries(now=None)
"""
import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.bookings.exceptions import NotFound
from .models import WaitingListEntry

logger = logging.getLogger(__name__)


def add_entry(name: str, phone: str = '', can_book_after=None,
              failed_three_times: bool = False, added_at=None) -> WaitingListEntry:
    """Append a candidate to the list. Raises ValueError for a blank name."""
    name = (name or '').strip()
    if not name:
        raise ValueError('A waiting-list entry needs a name.')

    entry = WaitingListEntry.objects.create(
        name=name,
        phone=(phone or '').strip(),
        added_at=added_at or timezone.now(),
        can_book_after=can_book_after,
        failed_three_times=failed_three_times,
    )
    logger.info('Waiting list: added %s (cooldown until %s)', entry.name, can_book_after)
    return entry


@transaction.atomic
def add_entries(contacts, added_at=None) -> list:
    """
    Bulk-add already-parsed contacts, given as (name, phone) pairs or dicts
    with 'name'/'phone' keys. Contacts without a name are skipped.
    """
    added_at = added_at or timezone.now()
    created = []
    for contact in contacts:
        if isinstance(contact, dict):
            name, phone = contact.get('name'), contact.get('phone')
        else:
            name, phone = contact
        if not (name or '').strip():
            continue
        created.append(add_entry(name, phone or '', added_at=added_at))
    return created


def remove_entry(entry_id) -> None:
    deleted, _ = WaitingListEntry.objects.filter(id=entry_id).delete()
    if not deleted:
        raise NotFound('This candidate is no longer on the waiting list.')
    logger.info('Waiting list: removed entry %s', entry_id)


def bookable_entries(now=None):
    now = now or timezone.now()
    return WaitingListEntry.objects.filter(
        Q(can_book_after__isnull=True) | Q(can_book_after__lte=now)
    )


def frozen_entries(now=None):
    now = now or timezone.now()
    return WaitingListEntry.objects.filter(can_book_after__gt=now)
