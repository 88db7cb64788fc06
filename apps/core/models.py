"""
Abstract model mixins shared by every app.

Bookings and sessions are hard-deleted when they move or conclude (the
audit log keeps the history), so there is no soft-delete layer here.
"""
import uuid
from django.db import models


class UUIDModel(models.Model):
    """UUID primary key; ids travel in URLs and backups."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BaseModel(UUIDModel, TimestampedModel):
    """UUID pk + timestamps, for the main business models."""
    class Meta:
        abstract = True
