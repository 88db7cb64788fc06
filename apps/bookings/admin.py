from django.contrib import admin, messages
from .engine import BookingEngine
from .exceptions import BookingEngineError
from .models import ExamSession, StudentBooking, MonthlyLimit, BookingOutcomeLog


class StudentBookingInline(admin.TabularInline):
    """Read-only: bookings change only through the booking engine."""
    model = StudentBooking
    extra = 0
    fields = ['position', 'name', 'phone', 'status', 'fail_count']
    readonly_fields = fields
    can_delete = False
    ordering = ['position']

    def has_add_permission(self, request, obj=None):
        return False


class EngineOnlyAdmin(admin.ModelAdmin):
    """
    Browse-only admin. Sessions and bookings are written by BookingEngine,
    which enforces capacity, monthly caps and the audit log; deletions are
    offered as actions that call the engine.
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def _run(self, request, queryset, operation, label):
        engine = BookingEngine(changed_by=request.user.get_username() or 'admin')
        done = 0
        for obj in queryset:
            try:
                operation(engine, obj)
            except BookingEngineError as exc:
                self.message_user(request, f'{obj}: {exc}', level=messages.WARNING)
            else:
                done += 1
        if done:
            self.message_user(request, f'{done} {label}.', level=messages.SUCCESS)


@admin.register(ExamSession)
class ExamSessionAdmin(EngineOnlyAdmin):
    list_display = ['date', 'turn', 'examiner', 'student_count']
    list_filter = ['turn', 'examiner']
    readonly_fields = ['id', 'date', 'turn', 'examiner', 'created_at', 'updated_at']
    date_hierarchy = 'date'
    inlines = [StudentBookingInline]
    actions = ['delete_sessions']
    fieldsets = (
        ('Session', {'fields': ('id', 'date', 'turn', 'examiner')}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    @admin.action(description='Delete selected sessions with their students')
    def delete_sessions(self, request, queryset):
        self._run(
            request, queryset,
            lambda engine, session: engine.delete_session(session.date),
            'session(s) deleted',
        )


@admin.register(StudentBooking)
class StudentBookingAdmin(EngineOnlyAdmin):
    list_display = ['name', 'phone', 'exam_date', 'position', 'status', 'fail_count']
    list_filter = ['status', 'fail_count']
    search_fields = ['name', 'phone']
    readonly_fields = ['id', 'session', 'position', 'name', 'phone', 'status', 'fail_count',
                       'created_at', 'updated_at']
    actions = ['remove_students']

    @admin.action(description='Remove selected students from their sessions')
    def remove_students(self, request, queryset):
        self._run(
            request, queryset,
            lambda engine, booking: engine.remove_student(booking.id),
            'student(s) removed',
        )


@admin.register(MonthlyLimit)
class MonthlyLimitAdmin(admin.ModelAdmin):
    list_display = ['month_key', 'limit', 'updated_at']
    readonly_fields = ['id', 'created_at', 'updated_at']
    search_fields = ['month_key']


@admin.register(BookingOutcomeLog)
class BookingOutcomeLogAdmin(admin.ModelAdmin):
    list_display = ['student_name', 'exam_date', 'action', 'fail_count', 'changed_by', 'changed_at']
    list_filter = ['action']
    readonly_fields = ['id', 'booking_ref', 'student_name', 'exam_date', 'action', 'from_status',
                       'to_status', 'fail_count', 'changed_by', 'reason', 'changed_at']
    search_fields = ['student_name']
    date_hierarchy = 'exam_date'
