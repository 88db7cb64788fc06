"""
Backup export / import in the school's JSON backup format.

Versions understood by import_snapshot():
  1 — the bare sessions map { "YYYY-MM-DD": {turn, students, examinerId?} }
  2 — {version: 2, sessions, waitingList}
  3 — {version: 3, sessions, waitingList, examiners}

export_snapshot() always writes version 3. Turns travel as "MATTINA" /
"POMERIGGIO" / null; instants as ISO-8601 UTC strings.

Public API:
  export_snapshot()
  detect_version(payload)
  import_snapshot(payload, force=False, now=None)
  has_existing_data()
  store_daily_backup(today=None, keep=None)
"""
import logging
from datetime import timezone as dt_timezone

from dateutil.parser import isoparse
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.bookings.models import ExamSession, StudentBooking, StudentStatus, Turn
from apps.core.calendar import date_key, parse_date_key
from apps.examiners.models import Examiner, ExaminerNote
from apps.waitlist.models import WaitingListEntry
from .exceptions import BackupFormatError, ConfirmationRequired
from .models import DailyBackup

logger = logging.getLogger(__name__)

CURRENT_VERSION = 3

TURN_TO_WIRE = {
    Turn.MORNING: 'MATTINA',
    Turn.AFTERNOON: 'POMERIGGIO',
}
WIRE_TO_TURN = {
    None: Turn.UNSET,
    '': Turn.UNSET,
    'MATTINA': Turn.MORNING,
    'POMERIGGIO': Turn.AFTERNOON,
    'MORNING': Turn.MORNING,
    'AFTERNOON': Turn.AFTERNOON,
}


# ── Export ────────────────────────────────────────────────────────────────────

def _instant(value):
    if value is None:
        return None
    utc = value.astimezone(dt_timezone.utc)
    return utc.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _export_session(session):
    data = {
        'turn': TURN_TO_WIRE.get(session.turn),
        'students': [],
    }
    for booking in session.students.order_by('position'):
        student = {'id': str(booking.id), 'name': booking.name}
        if booking.phone:
            student['phone'] = booking.phone
        student['status'] = booking.status
        student['failCount'] = booking.fail_count
        data['students'].append(student)
    if session.examiner_id:
        data['examinerId'] = str(session.examiner_id)
    return data


def _export_entry(entry):
    data = {'id': str(entry.id), 'name': entry.name}
    if entry.phone:
        data['phone'] = entry.phone
    data['addedAt'] = _instant(entry.added_at)
    if entry.can_book_after:
        data['canBookAfter'] = _instant(entry.can_book_after)
    if entry.failed_three_times:
        data['failedThreeTimes'] = True
    return data


def _export_examiner(examiner):
    return {
        'id': str(examiner.id),
        'name': examiner.name,
        'notes': [
            {'id': str(note.id), 'text': note.text, 'createdAt': _instant(note.created_at)}
            for note in examiner.notes.all()
        ],
    }


def export_snapshot() -> dict:
    """The whole store as a version-3 backup dict (JSON-serialisable)."""
    sessions = ExamSession.objects.prefetch_related('students').order_by('date')
    return {
        'sessions': {session.date_key: _export_session(session) for session in sessions},
        'waitingList': [_export_entry(e) for e in WaitingListEntry.objects.order_by('added_at')],
        'examiners': [_export_examiner(x) for x in Examiner.objects.prefetch_related('notes')],
        'version': CURRENT_VERSION,
    }


# ── Import: validation ────────────────────────────────────────────────────────

def detect_version(payload) -> int:
    """2 or 3 for the wrapped formats, 1 for a bare sessions map."""
    if not isinstance(payload, dict):
        raise BackupFormatError('A backup must be a JSON object.')
    version = payload.get('version')
    if isinstance(version, int) and not isinstance(version, bool) \
            and version >= 2 and payload.get('sessions') is not None:
        return min(version, CURRENT_VERSION)
    return 1


def _name(raw, where):
    if not isinstance(raw, str) or not raw.strip():
        raise BackupFormatError(f'{where}: a name is required.')
    return raw.strip()


def _phone(raw):
    return raw.strip() if isinstance(raw, str) else ''


def _parse_instant(raw, where, default=None):
    if raw in (None, ''):
        return default
    try:
        value = isoparse(str(raw))
    except (TypeError, ValueError):
        raise BackupFormatError(f"{where}: '{raw}' is not a valid timestamp.")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _clean_sessions(raw):
    if not isinstance(raw, dict):
        raise BackupFormatError('"sessions" must be an object keyed by date.')

    cleaned = []
    for key, data in raw.items():
        try:
            day = parse_date_key(key)
        except ValueError:
            raise BackupFormatError(f"'{key}' is not a YYYY-MM-DD session key.")
        if not isinstance(data, dict):
            raise BackupFormatError(f'{key}: a session must be an object.')
        if data.get('turn') not in WIRE_TO_TURN:
            raise BackupFormatError(f"{key}: unknown turn '{data.get('turn')}'.")

        students = data.get('students') or []
        if not isinstance(students, list):
            raise BackupFormatError(f'{key}: "students" must be a list.')
        if len(students) > settings.MAX_STUDENTS_PER_SESSION:
            raise BackupFormatError(
                f'{key}: {len(students)} students exceed the maximum of '
                f'{settings.MAX_STUDENTS_PER_SESSION} per session.'
            )

        bookings = []
        for student in students:
            if not isinstance(student, dict):
                raise BackupFormatError(f'{key}: every student must be an object.')
            status = student.get('status') or StudentStatus.SCHEDULED
            if status not in StudentStatus.values:
                raise BackupFormatError(f"{key}: unknown student status '{status}'.")
            fail_count = student.get('failCount') or 0
            if isinstance(fail_count, bool) or not isinstance(fail_count, int) \
                    or not 0 <= fail_count <= settings.MAX_FAIL_COUNT:
                raise BackupFormatError(f"{key}: invalid failCount '{fail_count}'.")
            bookings.append({
                'name': _name(student.get('name'), key),
                'phone': _phone(student.get('phone')),
                'status': status,
                'fail_count': fail_count,
            })

        turn = WIRE_TO_TURN[data.get('turn')]
        examiner_ref = data.get('examinerId') or None
        if turn == Turn.UNSET and not bookings and examiner_ref is None:
            continue
        cleaned.append({
            'date': day,
            'turn': turn,
            'examiner_ref': str(examiner_ref) if examiner_ref else None,
            'students': bookings,
        })
    return cleaned


def _clean_waiting_list(raw, now):
    if not isinstance(raw, list):
        raise BackupFormatError('"waitingList" must be a list.')
    cleaned = []
    for item in raw:
        if not isinstance(item, dict):
            raise BackupFormatError('Every waiting-list entry must be an object.')
        cleaned.append({
            'name': _name(item.get('name'), 'waitingList'),
            'phone': _phone(item.get('phone')),
            'added_at': _parse_instant(item.get('addedAt'), 'waitingList', default=now),
            'can_book_after': _parse_instant(item.get('canBookAfter'), 'waitingList'),
            'failed_three_times': bool(item.get('failedThreeTimes')),
        })
    return cleaned


def _clean_examiners(raw, now):
    if not isinstance(raw, list):
        raise BackupFormatError('"examiners" must be a list.')
    cleaned = []
    for item in raw:
        if not isinstance(item, dict):
            raise BackupFormatError('Every examiner must be an object.')
        notes = item.get('notes') or []
        if not isinstance(notes, list):
            raise BackupFormatError('Examiner notes must be a list.')
        cleaned.append({
            'ref': str(item.get('id') or ''),
            'name': _name(item.get('name'), 'examiners'),
            'notes': [
                {
                    'text': str(note.get('text') or ''),
                    'created_at': _parse_instant(note.get('createdAt'), 'examiners', default=now),
                }
                for note in notes if isinstance(note, dict)
            ],
        })
    return cleaned


# ── Import ────────────────────────────────────────────────────────────────────

def has_existing_data() -> bool:
    return (
        ExamSession.objects.exists()
        or WaitingListEntry.objects.exists()
        or Examiner.objects.exists()
    )


def import_snapshot(payload, force: bool = False, now=None) -> dict:
    """
    Replace the stores with the content of a backup of any version.

    Sessions are always replaced; the waiting list only by version 2+ and
    the examiner roster only by version 3 payloads. Every record gets a
    fresh id; session examiner references follow the re-created examiners.

    Raises:
      BackupFormatError    — malformed payload (nothing is changed)
      ConfirmationRequired — data exists and force is False
    """
    now = now or timezone.now()
    version = detect_version(payload)
    if version == 1:
        sessions = _clean_sessions(payload)
        waiting_list = examiners = None
    else:
        sessions = _clean_sessions(payload['sessions'])
        waiting_list = _clean_waiting_list(payload.get('waitingList') or [], now)
        examiners = None
        if version >= 3 and payload.get('examiners') is not None:
            examiners = _clean_examiners(payload['examiners'], now)

    if not force and has_existing_data():
        raise ConfirmationRequired(
            'Importing this backup replaces all current data. Confirm to continue.'
        )

    with transaction.atomic():
        ExamSession.objects.all().delete()

        if waiting_list is not None:
            WaitingListEntry.objects.all().delete()
            WaitingListEntry.objects.bulk_create(
                WaitingListEntry(**entry) for entry in waiting_list
            )

        examiner_ids = {}
        if examiners is not None:
            Examiner.objects.all().delete()
            for item in examiners:
                examiner = Examiner.objects.create(name=item['name'])
                ExaminerNote.objects.bulk_create(
                    ExaminerNote(examiner=examiner, **note) for note in item['notes']
                )
                if item['ref']:
                    examiner_ids[item['ref']] = examiner.id
        else:
            examiner_ids = {str(pk): pk for pk in Examiner.objects.values_list('id', flat=True)}

        student_count = 0
        for data in sessions:
            session = ExamSession.objects.create(
                date=data['date'],
                turn=data['turn'],
                examiner_id=examiner_ids.get(data['examiner_ref']),
            )
            StudentBooking.objects.bulk_create(
                StudentBooking(session=session, position=position, **student)
                for position, student in enumerate(data['students'], start=1)
            )
            student_count += len(data['students'])

    summary = {
        'version': version,
        'sessions': len(sessions),
        'students': student_count,
        'waiting_list': None if waiting_list is None else len(waiting_list),
        'examiners': None if examiners is None else len(examiners),
    }
    logger.info('Backup imported: %s', summary)
    return summary


# ── Daily snapshots ───────────────────────────────────────────────────────────

def store_daily_backup(today=None, keep=None):
    """
    Store today's snapshot once per day, skipping an empty session store,
    and keep only the newest `keep` snapshots. Returns the new row or None.
    """
    today = today or timezone.localdate()
    keep = keep or settings.DAILY_BACKUPS_KEPT

    if not ExamSession.objects.exists():
        logger.info('Daily backup skipped: no sessions')
        return None
    if DailyBackup.objects.filter(backup_date=today).exists():
        logger.info('Daily backup for %s already stored', date_key(today))
        return None

    with transaction.atomic():
        backup = DailyBackup.objects.create(backup_date=today, payload=export_snapshot())
        stale = DailyBackup.objects.order_by('-backup_date').values_list('id', flat=True)[keep:]
        deleted, _ = DailyBackup.objects.filter(id__in=list(stale)).delete()

    logger.info('Daily backup stored for %s (%d old snapshots removed)', date_key(today), deleted)
    return backup
