"""
Bookings app models:
  - ExamSession       : One exam day (turn, examiner, ordered candidate list)
  - StudentBooking    : One candidate's place in a session
  - MonthlyLimit      : Operator cap on active exam days per month
  - BookingOutcomeLog : Audit trail of every committed transition

All writes go through apps.bookings.engine.BookingEngine; nothing else
should create, move or delete StudentBooking rows.
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from apps.core.calendar import date_key, month_key
from apps.core.models import BaseModel, UUIDModel


# ── Enumerations ──────────────────────────────────────────────────────────────

class Turn(models.TextChoices):
    UNSET     = '',          'Not set'
    MORNING   = 'MORNING',   'Morning'
    AFTERNOON = 'AFTERNOON', 'Afternoon'


class StudentStatus(models.TextChoices):
    SCHEDULED = 'SCHEDULED', 'Scheduled'
    PASSED    = 'PASSED',    'Passed'
    FAILED    = 'FAILED',    'Failed'
    ABSENT    = 'ABSENT',    'Absent'


class LogAction(models.TextChoices):
    BOOKED      = 'BOOKED',      'Booked'
    MOVED       = 'MOVED',       'Moved'
    RESCHEDULED = 'RESCHEDULED', 'Rescheduled'
    PASSED      = 'PASSED',      'Passed'
    FAILED      = 'FAILED',      'Failed'
    ABSENT      = 'ABSENT',      'Absent'
    WAITLISTED  = 'WAITLISTED',  'Moved to waiting list'
    REMOVED     = 'REMOVED',     'Removed'
    OVERRIDE    = 'OVERRIDE',    'Operator override'


# ── Exam Session ──────────────────────────────────────────────────────────────

class ExamSession(BaseModel):
    """
    One row per calendar date that has (or had) exam data.

    A session is "active" while it has a turn or at least one student. The
    engine discards rows that become inactive, so an inactive row only exists
    transiently or when an examiner was assigned to an otherwise empty day.
    """
    date = models.DateField(unique=True)
    turn = models.CharField(
        max_length=10, choices=Turn.choices, default=Turn.UNSET, blank=True,
    )
    examiner = models.ForeignKey(
        'examiners.Examiner',
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='sessions',
    )

    class Meta:
        verbose_name = 'Exam Session'
        verbose_name_plural = 'Exam Sessions'
        ordering = ['date']

    def __str__(self):
        turn = self.get_turn_display() if self.turn else 'turn not set'
        return f"{self.date_key} ({turn})"

    @property
    def date_key(self):
        return date_key(self.date)

    @property
    def month_key(self):
        return month_key(self.date)

    @property
    def has_turn(self):
        return self.turn != Turn.UNSET

    @property
    def student_count(self):
        return self.students.count()

    @property
    def is_full(self):
        return self.student_count >= settings.MAX_STUDENTS_PER_SESSION

    @property
    def is_active(self):
        return self.has_turn or self.students.exists()


# ── Student Booking ───────────────────────────────────────────────────────────

class StudentBooking(BaseModel):
    """
    A candidate's place on one exam date.

    A booking is scoped to its date: relocating a candidate deletes this row
    and creates a new one (new id) carrying name, phone and fail count.
    """
    session = models.ForeignKey(ExamSession, on_delete=models.CASCADE, related_name='students')
    position = models.PositiveIntegerField(help_text='Exam order within the session (ascending)')
    name = models.CharField(max_length=120)
    phone = models.CharField(max_length=30, blank=True)
    status = models.CharField(
        max_length=10, choices=StudentStatus.choices,
        default=StudentStatus.SCHEDULED,
    )
    fail_count = models.PositiveSmallIntegerField(
        default=0,
        validators=[MaxValueValidator(3)],
        help_text='Previous failures carried across reschedules (3 = permit expired)',
    )

    class Meta:
        verbose_name = 'Student Booking'
        verbose_name_plural = 'Student Bookings'
        ordering = ['session__date', 'position']
        constraints = [
            models.UniqueConstraint(
                fields=['session', 'position'],
                name='uq_booking_session_position',
            )
        ]

    def __str__(self):
        return f"{self.name} on {self.session.date_key}"

    @property
    def exam_date(self):
        return self.session.date


# ── Monthly Limit ─────────────────────────────────────────────────────────────

class MonthlyLimit(BaseModel):
    """Cap on the number of active exam days in a month. No row = no cap."""
    month_key = models.CharField(max_length=7, unique=True, help_text='YYYY-MM')
    limit = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        verbose_name = 'Monthly Limit'
        verbose_name_plural = 'Monthly Limits'
        ordering = ['month_key']

    def __str__(self):
        return f"{self.month_key}: max {self.limit} exam days"


# ── Outcome Audit Log ─────────────────────────────────────────────────────────

class BookingOutcomeLog(UUIDModel):
    """
    Immutable audit trail of booking transitions.

    Bookings are deleted when they move or conclude, so the log keeps a copy
    of the person attributes instead of a foreign key. Statistics on passed
    and failed exams are computed from these rows.
    """
    booking_ref = models.UUIDField(db_index=True)
    student_name = models.CharField(max_length=120)
    exam_date = models.DateField(db_index=True)
    action = models.CharField(max_length=12, choices=LogAction.choices, db_index=True)
    from_status = models.CharField(max_length=10, choices=StudentStatus.choices, blank=True)
    to_status = models.CharField(max_length=10, choices=StudentStatus.choices, blank=True)
    fail_count = models.PositiveSmallIntegerField(default=0)
    changed_by = models.CharField(max_length=80, help_text='operator username / system')
    reason = models.TextField(blank=True)
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = 'Booking Outcome Log'
        verbose_name_plural = 'Booking Outcome Logs'
        ordering = ['changed_at']

    def __str__(self):
        return f"{self.student_name} {self.exam_date}: {self.get_action_display()}"
