"""
Daily snapshots: one version-3 backup payload per calendar day, rotated by
the daily_backup management command.
"""
from django.db import models
from django.utils import timezone
from apps.core.models import UUIDModel


class DailyBackup(UUIDModel):
    backup_date = models.DateField(unique=True)
    payload = models.JSONField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = 'Daily Backup'
        verbose_name_plural = 'Daily Backups'
        ordering = ['-backup_date']

    def __str__(self):
        return f"Backup {self.backup_date}"
