from django.contrib import admin
from .models import DailyBackup


@admin.register(DailyBackup)
class DailyBackupAdmin(admin.ModelAdmin):
    list_display = ['backup_date', 'created_at']
    readonly_fields = ['id', 'backup_date', 'payload', 'created_at']
    date_hierarchy = 'backup_date'
