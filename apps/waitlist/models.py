"""
Waiting list: candidates not yet assigned to an exam date.

An entry with can_book_after in the future is frozen (the candidate failed
three times and must wait before being booked again).
"""
from django.db import models
from django.utils import timezone
from apps.core.models import UUIDModel


class WaitingListEntry(UUIDModel):
    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=30, blank=True)
    added_at = models.DateTimeField(default=timezone.now, db_index=True)
    can_book_after = models.DateTimeField(null=True, blank=True)
    failed_three_times = models.BooleanField(
        default=False,
        help_text='Set when the entry was created by a third exam failure',
    )

    class Meta:
        verbose_name = 'Waiting List Entry'
        verbose_name_plural = 'Waiting List'
        ordering = ['added_at']

    def __str__(self):
        return f"{self.name} ({self.phone})" if self.phone else self.name

    def is_bookable(self, now=None):
        if self.can_book_after is None:
            return True
        return (now or timezone.now()) >= self.can_book_after

    def is_frozen(self, now=None):
        return not self.is_bookable(now)
