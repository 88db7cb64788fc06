"""
Booking engine: exam sessions, outcomes and capacity rules. No HTTP awareness.

Every mutating method runs in one database transaction and locks the exam
session rows it reads (in date order), so each operation is indivisible.
Refusals raise a BookingEngineError subclass before anything is written, or
inside the transaction that then rolls back: a refused call changes nothing.

Public API (BookingEngine methods):
  find_duplicates(name)
  book(name, target_date, phone='', fail_count=0, confirm_duplicate=False)
  reschedule(booking_id, new_date, fail_count)
  record_outcome(booking_id, outcome, target_date=None)
  suggest_retry_date(exam_date, outcome)
  move_student(booking_id, new_date)
  move_entire_session(from_date, to_date)
  delete_session(day)
  set_monthly_limit(month_key, limit)
  book_from_waiting_list(entry_id, target_date, confirm_duplicate=False)
  set_turn(day, turn), set_examiner(day, examiner_id)
  remove_student(booking_id), set_status(booking_id, status), set_fail_count(booking_id, fail_count)
"""
import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from apps.core.calendar import (
    add_days,
    add_months,
    date_key,
    month_key as month_key_of,
    parse_month_key,
    start_of_day,
    to_date,
)
from apps.examiners.models import Examiner
from apps.waitlist import services as waitlist
from apps.waitlist.models import WaitingListEntry
from . import limits
from .exceptions import (
    CapacityExceeded,
    Cooldown,
    InvalidDate,
    InvalidFailCount,
    InvalidLimit,
    MonthlyLimitReached,
    NotFound,
    PossibleDuplicate,
    SameDate,
    ValidationFailed,
)
from .models import (
    BookingOutcomeLog,
    ExamSession,
    LogAction,
    MonthlyLimit,
    StudentBooking,
    StudentStatus,
    Turn,
)

logger = logging.getLogger(__name__)


# ── Result types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DuplicateMatch:
    """An existing booking whose name matches a new one."""
    date: date_type
    phone: str = ''


@dataclass
class OutcomeResult:
    """What record_outcome() did with the booking."""
    REMOVED = 'removed'
    RESCHEDULED = 'rescheduled'
    WAITLISTED = 'waitlisted'
    UNCHANGED = 'unchanged'

    action: str
    booking: Optional[StudentBooking] = None
    waiting_entry: Optional[WaitingListEntry] = None


def normalize_name(name: str) -> str:
    """Key used for duplicate detection: trimmed, case-folded."""
    return (name or '').strip().casefold()


def _day(value) -> date_type:
    try:
        return to_date(value)
    except (TypeError, ValueError) as exc:
        raise InvalidDate(str(exc))


def _choice(enum, value, what):
    try:
        return enum(value)
    except ValueError:
        raise ValidationFailed(f"'{value}' is not a valid {what}.")


# ── Engine ────────────────────────────────────────────────────────────────────

class BookingEngine:
    """
    Single mutation surface for exam sessions, bookings, monthly limits and
    the waiting-list transitions that involve bookings.

    `clock` is a zero-argument callable returning an aware datetime; it drives
    cooldown checks, "today" and audit timestamps.
    """

    def __init__(self, clock=None, changed_by: str = 'system'):
        self.clock = clock or timezone.now
        self.changed_by = changed_by

    def now(self):
        return self.clock()

    def today(self) -> date_type:
        return timezone.localtime(self.now()).date()

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _lock_sessions(self, *days) -> dict:
        """Lock the session rows of `days` in date order. Missing dates map to None."""
        wanted = sorted({to_date(d) for d in days})
        locked = {
            s.date: s
            for s in ExamSession.objects.select_for_update().filter(date__in=wanted).order_by('date')
        }
        return {d: locked.get(d) for d in wanted}

    def _get_booking(self, booking_id) -> StudentBooking:
        try:
            return StudentBooking.objects.select_related('session').get(id=booking_id)
        except (StudentBooking.DoesNotExist, ValueError, ValidationError):
            raise NotFound('This student booking no longer exists.')

    def _lock_booking(self, booking_id) -> StudentBooking:
        """Lock the booking's session, then re-read the booking under that lock."""
        booking = self._get_booking(booking_id)
        self._lock_sessions(booking.session.date)
        return self._get_booking(booking_id)

    def _check_fail_count(self, fail_count) -> int:
        try:
            fail_count = int(fail_count)
        except (TypeError, ValueError):
            raise InvalidFailCount(f"'{fail_count}' is not a valid fail count.")
        if not 0 <= fail_count <= settings.MAX_FAIL_COUNT:
            raise InvalidFailCount(
                f"Fail count must be between 0 and {settings.MAX_FAIL_COUNT}."
            )
        return fail_count

    def _ensure_capacity(self, session, day, incoming=1, leaving=0):
        present = session.students.count() if session else 0
        if present - leaving + incoming > settings.MAX_STUDENTS_PER_SESSION:
            raise CapacityExceeded(
                f"{date_key(day)} already has {present} students "
                f"(maximum {settings.MAX_STUDENTS_PER_SESSION}). Choose another date."
            )

    def _ensure_selectable(self, day, exclude=None):
        limits.lock_monthly_limit(month_key_of(day))
        if not limits.is_date_selectable(day, exclude=exclude):
            raise MonthlyLimitReached(
                f"The exam-day limit for {date_key(day)[:7]} has been reached. "
                f"Choose a date that already has a session or another month."
            )

    def _append(self, session, day, **fields) -> StudentBooking:
        if session is None:
            session, _ = ExamSession.objects.get_or_create(date=day)
        last = session.students.aggregate(last=Max('position'))['last'] or 0
        return StudentBooking.objects.create(session=session, position=last + 1, **fields)

    def _discard_if_empty(self, session) -> bool:
        """Delete a session that has neither a turn nor students. Returns True if deleted."""
        if session.turn == Turn.UNSET and not session.students.exists():
            session.delete()
            return True
        return False

    def _remove(self, booking):
        session = booking.session
        booking.delete()
        self._discard_if_empty(session)

    def _log(self, booking, action, from_status='', to_status='', fail_count=None, reason=''):
        BookingOutcomeLog.objects.create(
            booking_ref=booking.id,
            student_name=booking.name,
            exam_date=booking.session.date,
            action=action,
            from_status=from_status,
            to_status=to_status,
            fail_count=booking.fail_count if fail_count is None else fail_count,
            changed_by=self.changed_by,
            reason=reason,
            changed_at=self.now(),
        )

    def _retry_date(self, target_date) -> date_type:
        day = _day(target_date)
        if day < self.today():
            raise InvalidDate(f'{date_key(day)} is in the past. Choose today or a later date.')
        return day

    def _relocate(self, booking_id, new_date, action, fail_count=None, status=None) -> StudentBooking:
        """
        Delete a booking and re-create it (new id) at the end of `new_date`.
        fail_count/status of None carry the booking's current values.
        """
        day = _day(new_date)
        booking = self._get_booking(booking_id)
        origin_day = booking.session.date
        sessions = self._lock_sessions(origin_day, day)
        booking = self._get_booking(booking_id)
        destination = sessions[day]

        self._ensure_capacity(destination, day, leaving=1 if day == origin_day else 0)
        self._ensure_selectable(day)

        fail_count = booking.fail_count if fail_count is None else fail_count
        status = booking.status if status is None else status
        self._log(
            booking, action,
            from_status=booking.status, to_status=status,
            fail_count=fail_count, reason=f'to {date_key(day)}',
        )
        name, phone, origin = booking.name, booking.phone, booking.session
        booking.delete()
        if day == origin_day:
            destination = origin
        moved = self._append(
            destination, day,
            name=name, phone=phone, status=status, fail_count=fail_count,
        )
        if day != origin_day:
            self._discard_if_empty(origin)

        logger.info(
            '%s %s: %s -> %s (fail count %s)',
            action, name, date_key(origin_day), date_key(day), fail_count,
        )
        return moved

    # ── Duplicate detection ───────────────────────────────────────────────────

    def find_duplicates(self, name: str) -> list:
        """Every booking whose name matches `name` (trimmed, case-insensitive)."""
        wanted = normalize_name(name)
        return [
            DuplicateMatch(date=b.session.date, phone=b.phone)
            for b in StudentBooking.objects.select_related('session').order_by('session__date', 'position')
            if normalize_name(b.name) == wanted
        ]

    # ── Booking ───────────────────────────────────────────────────────────────

    @transaction.atomic
    def book(self, name: str, target_date, phone: str = '', fail_count: int = 0,
             confirm_duplicate: bool = False) -> StudentBooking:
        """
        Append a new SCHEDULED booking to `target_date`.

        Raises:
          CapacityExceeded     — the date already holds the maximum
          MonthlyLimitReached  — the date is inactive and its month is at its cap
          PossibleDuplicate    — same name already booked (unless confirm_duplicate)
        """
        name = (name or '').strip()
        if not name:
            raise ValidationFailed('Student name is required.')
        fail_count = self._check_fail_count(fail_count)
        day = _day(target_date)

        session = self._lock_sessions(day)[day]
        self._ensure_capacity(session, day)
        self._ensure_selectable(day)

        if not confirm_duplicate:
            matches = self.find_duplicates(name)
            if matches:
                raise PossibleDuplicate(
                    f'"{name}" is already booked on '
                    + ', '.join(date_key(m.date) for m in matches)
                    + '. Check the phone numbers before booking again.',
                    matches=matches,
                )

        booking = self._append(
            session, day,
            name=name, phone=(phone or '').strip(),
            status=StudentStatus.SCHEDULED, fail_count=fail_count,
        )
        self._log(booking, LogAction.BOOKED, to_status=StudentStatus.SCHEDULED)
        logger.info('Booked %s on %s', name, date_key(day))
        return booking

    @transaction.atomic
    def reschedule(self, booking_id, new_date, fail_count: int) -> StudentBooking:
        """Move a booking to `new_date` as a fresh SCHEDULED booking with `fail_count`."""
        fail_count = self._check_fail_count(fail_count)
        return self._relocate(
            booking_id, new_date, LogAction.RESCHEDULED,
            fail_count=fail_count, status=StudentStatus.SCHEDULED,
        )

    @transaction.atomic
    def move_student(self, booking_id, new_date) -> StudentBooking:
        """Manual relocation; status and fail count are carried verbatim."""
        return self._relocate(booking_id, new_date, LogAction.MOVED)

    # ── Outcomes ──────────────────────────────────────────────────────────────

    def suggest_retry_date(self, exam_date, outcome) -> date_type:
        """Default date offered to the operator after a failure or an absence."""
        outcome = _choice(StudentStatus, outcome, 'outcome')
        if outcome == StudentStatus.FAILED:
            return add_months(exam_date, settings.FAILED_RETRY_MONTHS)
        if outcome == StudentStatus.ABSENT:
            return add_days(exam_date, settings.ABSENT_RETRY_DAYS)
        raise ValidationFailed('Only failed or absent students get a retry date.')

    @transaction.atomic
    def record_outcome(self, booking_id, outcome, target_date=None) -> OutcomeResult:
        """
        Commit an exam outcome.

          PASSED  — booking removed.
          FAILED  — fail count + 1. At the third failure the booking is removed
                    and the candidate goes to the waiting list, frozen until one
                    calendar month after the exam date. Otherwise the booking is
                    rescheduled to `target_date`, or dropped if none was chosen.
          ABSENT  — fail count unchanged. Rescheduled to `target_date`, or left
                    in place if none was chosen.
        """
        outcome = _choice(StudentStatus, outcome, 'outcome')
        if outcome == StudentStatus.SCHEDULED:
            raise ValidationFailed('An outcome must be PASSED, FAILED or ABSENT.')

        booking = self._lock_booking(booking_id)
        exam_date = booking.session.date

        if outcome == StudentStatus.PASSED:
            self._log(booking, LogAction.PASSED, booking.status, StudentStatus.PASSED)
            self._remove(booking)
            logger.info('%s passed on %s', booking.name, date_key(exam_date))
            return OutcomeResult(OutcomeResult.REMOVED)

        if outcome == StudentStatus.FAILED:
            fail_count = booking.fail_count + 1
            self._log(booking, LogAction.FAILED, booking.status, StudentStatus.FAILED, fail_count=fail_count)

            if fail_count >= settings.MAX_FAIL_COUNT:
                entry = waitlist.add_entry(
                    booking.name,
                    booking.phone,
                    can_book_after=start_of_day(
                        add_months(exam_date, settings.THIRD_FAILURE_COOLDOWN_MONTHS)
                    ),
                    failed_three_times=True,
                    added_at=self.now(),
                )
                self._log(booking, LogAction.WAITLISTED, fail_count=fail_count)
                self._remove(booking)
                logger.info('%s failed for the third time; moved to the waiting list', entry.name)
                return OutcomeResult(OutcomeResult.WAITLISTED, waiting_entry=entry)

            if target_date is None:
                self._log(booking, LogAction.REMOVED, fail_count=fail_count, reason='no retry date chosen')
                self._remove(booking)
                logger.info('%s failed and was not rescheduled', booking.name)
                return OutcomeResult(OutcomeResult.REMOVED)

            target_date = self._retry_date(target_date)
            moved = self._relocate(
                booking.id, target_date, LogAction.RESCHEDULED,
                fail_count=fail_count, status=StudentStatus.SCHEDULED,
            )
            return OutcomeResult(OutcomeResult.RESCHEDULED, booking=moved)

        # ABSENT
        self._log(booking, LogAction.ABSENT, booking.status, StudentStatus.ABSENT)
        if target_date is None:
            if booking.status != StudentStatus.SCHEDULED:
                booking.status = StudentStatus.SCHEDULED
                booking.save(update_fields=['status', 'updated_at'])
            return OutcomeResult(OutcomeResult.UNCHANGED, booking=booking)

        target_date = self._retry_date(target_date)
        moved = self._relocate(
            booking.id, target_date, LogAction.RESCHEDULED,
            fail_count=booking.fail_count, status=StudentStatus.SCHEDULED,
        )
        return OutcomeResult(OutcomeResult.RESCHEDULED, booking=moved)

    # ── Whole sessions ────────────────────────────────────────────────────────

    @transaction.atomic
    def move_entire_session(self, from_date, to_date_) -> ExamSession:
        """
        Merge the session on `from_date` into `to_date_`.

        The destination keeps its own turn and examiner when set and otherwise
        takes the origin's; its students come first, followed by the origin's
        students in their original order (ids unchanged). The origin row is
        deleted.
        """
        origin_day, dest_day = _day(from_date), _day(to_date_)
        if origin_day == dest_day:
            raise SameDate('The destination date is the same as the current date.')

        sessions = self._lock_sessions(origin_day, dest_day)
        origin, destination = sessions[origin_day], sessions[dest_day]
        if origin is None:
            raise NotFound(f'There is no exam session on {date_key(origin_day)}.')

        moving = list(origin.students.order_by('position'))
        present = destination.students.count() if destination else 0
        if present + len(moving) > settings.MAX_STUDENTS_PER_SESSION:
            raise CapacityExceeded(
                f'{date_key(dest_day)} already has {present} students. '
                f'There is no room for all {len(moving)} students.'
            )
        self._ensure_selectable(dest_day, exclude=origin_day)

        if destination is None:
            destination = ExamSession.objects.create(
                date=dest_day, turn=origin.turn, examiner_id=origin.examiner_id,
            )
        else:
            update_fields = []
            if not destination.has_turn and origin.has_turn:
                destination.turn = origin.turn
                update_fields.append('turn')
            if destination.examiner_id is None and origin.examiner_id is not None:
                destination.examiner_id = origin.examiner_id
                update_fields.append('examiner')
            if update_fields:
                destination.save(update_fields=update_fields + ['updated_at'])

        last = destination.students.aggregate(last=Max('position'))['last'] or 0
        for offset, booking in enumerate(moving, start=1):
            self._log(booking, LogAction.MOVED, reason=f'session moved to {date_key(dest_day)}')
            booking.session = destination
            booking.position = last + offset
            booking.save(update_fields=['session', 'position', 'updated_at'])

        origin.delete()
        logger.info(
            'Moved session %s -> %s (%d students)',
            date_key(origin_day), date_key(dest_day), len(moving),
        )
        return destination

    @transaction.atomic
    def delete_session(self, day) -> None:
        """Delete a session with its turn, examiner and students. Confirmation is the caller's job."""
        day = _day(day)
        session = self._lock_sessions(day)[day]
        if session is None:
            raise NotFound(f'There is no exam session on {date_key(day)}.')
        for booking in session.students.all():
            self._log(booking, LogAction.REMOVED, reason='session deleted')
        session.delete()
        logger.info('Deleted session %s', date_key(day))

    @transaction.atomic
    def set_turn(self, day, turn) -> Optional[ExamSession]:
        """Set or clear a session's turn. Returns None if clearing it discarded the session."""
        turn = _choice(Turn, turn or Turn.UNSET, 'turn')
        day = _day(day)
        session = self._lock_sessions(day)[day]

        if turn == Turn.UNSET:
            if session is None:
                return None
            session.turn = Turn.UNSET
            session.save(update_fields=['turn', 'updated_at'])
            return None if self._discard_if_empty(session) else session

        self._ensure_selectable(day)
        if session is None:
            return ExamSession.objects.create(date=day, turn=turn)
        session.turn = turn
        session.save(update_fields=['turn', 'updated_at'])
        return session

    @transaction.atomic
    def set_examiner(self, day, examiner_id) -> Optional[ExamSession]:
        """Assign (or clear with None) the examiner reference of a date."""
        day = _day(day)
        examiner = None
        if examiner_id:
            try:
                examiner = Examiner.objects.get(id=examiner_id)
            except (Examiner.DoesNotExist, ValueError, ValidationError):
                raise NotFound('This examiner is not in the roster.')

        session = self._lock_sessions(day)[day]
        if session is None:
            if examiner is None:
                return None
            return ExamSession.objects.create(date=day, examiner=examiner)
        session.examiner = examiner
        session.save(update_fields=['examiner', 'updated_at'])
        if examiner is None and self._discard_if_empty(session):
            return None
        return session

    # ── Monthly limits ────────────────────────────────────────────────────────

    @transaction.atomic
    def set_monthly_limit(self, month_key: str, limit: int) -> Optional[MonthlyLimit]:
        """Cap active exam days in a month; 0 removes the cap. Returns the row or None."""
        try:
            parse_month_key(month_key)
            limit = int(limit)
        except (TypeError, ValueError) as exc:
            raise InvalidLimit(str(exc))
        if limit < 0:
            raise InvalidLimit('A monthly limit cannot be negative.')

        if limit == 0:
            MonthlyLimit.objects.filter(month_key=month_key).delete()
            logger.info('Monthly limit for %s removed', month_key)
            return None

        row, _ = MonthlyLimit.objects.update_or_create(
            month_key=month_key, defaults={'limit': limit},
        )
        logger.info('Monthly limit for %s set to %d', month_key, limit)
        return row

    # ── Waiting list ──────────────────────────────────────────────────────────

    @transaction.atomic
    def book_from_waiting_list(self, entry_id, target_date,
                               confirm_duplicate: bool = False) -> StudentBooking:
        """Book a waiting-list candidate onto `target_date` and take them off the list."""
        try:
            entry = WaitingListEntry.objects.select_for_update().get(id=entry_id)
        except (WaitingListEntry.DoesNotExist, ValueError, ValidationError):
            raise NotFound('This candidate is no longer on the waiting list.')

        if not entry.is_bookable(self.now()):
            until = timezone.localtime(entry.can_book_after).date()
            raise Cooldown(
                f'{entry.name} cannot be booked before {date_key(until)}.',
                can_book_after=entry.can_book_after,
            )

        booking = self.book(
            entry.name, target_date, phone=entry.phone,
            confirm_duplicate=confirm_duplicate,
        )
        entry.delete()
        return booking

    # ── Operator edits ────────────────────────────────────────────────────────

    @transaction.atomic
    def remove_student(self, booking_id) -> None:
        booking = self._lock_booking(booking_id)
        self._log(booking, LogAction.REMOVED, reason='removed by operator')
        self._remove(booking)
        logger.info('Removed %s from %s', booking.name, date_key(booking.session.date))

    @transaction.atomic
    def set_status(self, booking_id, status) -> StudentBooking:
        """Interactive marker while the operator confirms an outcome; nothing else changes."""
        status = _choice(StudentStatus, status, 'status')
        booking = self._lock_booking(booking_id)
        booking.status = status
        booking.save(update_fields=['status', 'updated_at'])
        return booking

    @transaction.atomic
    def set_fail_count(self, booking_id, fail_count) -> StudentBooking:
        """Operator override of the carried fail count."""
        fail_count = self._check_fail_count(fail_count)
        booking = self._lock_booking(booking_id)
        self._log(
            booking, LogAction.OVERRIDE,
            fail_count=fail_count, reason=f'fail count {booking.fail_count} -> {fail_count}',
        )
        booking.fail_count = fail_count
        booking.save(update_fields=['fail_count', 'updated_at'])
        return booking
