from django.contrib import admin
from .models import Examiner, ExaminerNote


class ExaminerNoteInline(admin.TabularInline):
    model = ExaminerNote
    extra = 0
    fields = ['text', 'created_at']


@admin.register(Examiner)
class ExaminerAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [ExaminerNoteInline]
