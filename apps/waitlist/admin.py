from django.contrib import admin
from .models import WaitingListEntry


@admin.register(WaitingListEntry)
class WaitingListEntryAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'added_at', 'can_book_after', 'failed_three_times']
    list_filter = ['failed_three_times']
    search_fields = ['name', 'phone']
    readonly_fields = ['id']
