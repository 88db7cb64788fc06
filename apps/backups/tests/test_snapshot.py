from datetime import date, timedelta

import pytest
from django.utils import timezone

from apps.backups.exceptions import BackupFormatError, ConfirmationRequired
from apps.backups.models import DailyBackup
from apps.backups.snapshot import (
    detect_version,
    export_snapshot,
    has_existing_data,
    import_snapshot,
    store_daily_backup,
)
from apps.bookings.models import ExamSession, StudentBooking, StudentStatus, Turn
from apps.examiners.models import Examiner, ExaminerNote
from apps.waitlist import services as waitlist
from apps.waitlist.models import WaitingListEntry

pytestmark = pytest.mark.django_db

V1_PAYLOAD = {
    '2025-06-10': {
        'turn': 'MATTINA',
        'students': [
            {'id': 'a1', 'name': 'Giulia Conti', 'phone': '333 1234567', 'status': 'SCHEDULED'},
            {'id': 'a2', 'name': 'Luca Ferrari', 'status': 'SCHEDULED', 'failCount': 1},
        ],
    },
    '2025-06-11': {'turn': None, 'students': []},
}


def v3_payload():
    return {
        'version': 3,
        'sessions': {
            '2025-06-12': {
                'turn': 'POMERIGGIO',
                'students': [{'id': 's1', 'name': 'Sara Romano', 'status': 'SCHEDULED', 'failCount': 2}],
                'examinerId': 'ex-1',
            },
        },
        'waitingList': [
            {'id': 'w1', 'name': 'Paolo Moretti', 'phone': '339 4443332', 'addedAt': '2025-05-20T08:00:00.000Z'},
            {
                'id': 'w2', 'name': 'Mario Rossi', 'addedAt': '2025-05-21T08:00:00.000Z',
                'canBookAfter': '2025-07-09T22:00:00.000Z', 'failedThreeTimes': True,
            },
        ],
        'examiners': [
            {
                'id': 'ex-1', 'name': 'Ing. Laura Bianchi',
                'notes': [{'id': 'n1', 'text': 'Prefers the ring road.', 'createdAt': '2025-01-02T10:00:00.000Z'}],
                'files': [{'id': 'f1', 'name': 'voice.webm'}],
            },
        ],
    }


# ── Export ────────────────────────────────────────────────────────────────────

def test_export_writes_version_3_wire_format(engine, now):
    examiner = Examiner.objects.create(name='Ing. Marco Rossi')
    ExaminerNote.objects.create(examiner=examiner, text='Strict.', created_at=now)
    engine.set_turn(date(2025, 6, 10), Turn.MORNING)
    engine.set_examiner(date(2025, 6, 10), examiner.id)
    booking = engine.book('Giulia Conti', date(2025, 6, 10), phone='333 1234567', fail_count=1)
    engine.book('Luca Ferrari', date(2025, 6, 10))
    waitlist.add_entry('Paolo Moretti', added_at=now)

    payload = export_snapshot()

    assert payload['version'] == 3
    session = payload['sessions']['2025-06-10']
    assert session['turn'] == 'MATTINA'
    assert session['examinerId'] == str(examiner.id)
    assert session['students'][0] == {
        'id': str(booking.id), 'name': 'Giulia Conti', 'phone': '333 1234567',
        'status': 'SCHEDULED', 'failCount': 1,
    }
    assert 'phone' not in session['students'][1]
    assert payload['waitingList'][0]['addedAt'] == '2025-06-01T07:00:00.000Z'
    assert 'canBookAfter' not in payload['waitingList'][0]
    assert payload['examiners'][0]['notes'][0]['text'] == 'Strict.'


# ── Import ────────────────────────────────────────────────────────────────────

def test_detect_version():
    assert detect_version(V1_PAYLOAD) == 1
    assert detect_version({'version': 2, 'sessions': {}, 'waitingList': []}) == 2
    assert detect_version(v3_payload()) == 3
    with pytest.raises(BackupFormatError):
        detect_version(['not', 'a', 'backup'])


def test_import_version_1_replaces_sessions_only(now):
    waitlist.add_entry('Already Waiting', added_at=now)

    summary = import_snapshot(V1_PAYLOAD, force=True, now=now)

    assert summary == {'version': 1, 'sessions': 1, 'students': 2, 'waiting_list': None, 'examiners': None}
    session = ExamSession.objects.get()
    assert (session.date, session.turn) == (date(2025, 6, 10), Turn.MORNING)
    assert list(session.students.order_by('position').values_list('name', 'fail_count')) == [
        ('Giulia Conti', 0), ('Luca Ferrari', 1),
    ]
    assert WaitingListEntry.objects.filter(name='Already Waiting').exists()


def test_import_version_3_remaps_examiner_references(now):
    summary = import_snapshot(v3_payload(), now=now)

    assert summary['examiners'] == 1 and summary['waiting_list'] == 2
    examiner = Examiner.objects.get()
    session = ExamSession.objects.get()
    assert session.examiner == examiner
    assert session.turn == Turn.AFTERNOON
    assert str(examiner.id) != 'ex-1'
    assert examiner.notes.get().text == 'Prefers the ring road.'
    frozen = WaitingListEntry.objects.get(name='Mario Rossi')
    assert frozen.failed_three_times
    assert timezone.localtime(frozen.can_book_after).date() == date(2025, 7, 10)
    assert StudentBooking.objects.get().fail_count == 2


def test_import_requires_confirmation_when_data_exists(engine, now):
    engine.book('Mario Rossi', date(2025, 6, 10))
    assert has_existing_data()

    with pytest.raises(ConfirmationRequired):
        import_snapshot(v3_payload(), now=now)

    assert StudentBooking.objects.get().name == 'Mario Rossi'


@pytest.mark.parametrize('payload', [
    {'2025-06-10': {'turn': 'SERA', 'students': []}},
    {'10/06/2025': {'turn': 'MATTINA', 'students': []}},
    {'2025-06-10': {'turn': 'MATTINA', 'students': [{'name': ''}]}},
    {'2025-06-10': {'turn': 'MATTINA', 'students': [{'name': 'Mario', 'failCount': 5}]}},
    {'2025-06-10': {'turn': 'MATTINA', 'students': [{'name': 'Mario', 'status': 'MAYBE'}]}},
    {'version': 2, 'sessions': {}, 'waitingList': [{'name': 'Paolo', 'addedAt': 'yesterday'}]},
])
def test_malformed_backups_are_rejected(payload, now):
    with pytest.raises(BackupFormatError):
        import_snapshot(payload, force=True, now=now)


def test_overfull_session_is_rejected_and_nothing_changes(engine, now):
    engine.book('Mario Rossi', date(2025, 6, 10))
    students = [{'id': str(i), 'name': f'Student {i}', 'status': 'SCHEDULED'} for i in range(8)]

    with pytest.raises(BackupFormatError):
        import_snapshot({'2025-06-20': {'turn': 'MATTINA', 'students': students}}, force=True, now=now)

    assert list(StudentBooking.objects.values_list('name', flat=True)) == ['Mario Rossi']


def test_export_then_import_restores_the_store(engine, now):
    engine.set_turn(date(2025, 6, 10), Turn.AFTERNOON)
    engine.book('Giulia Conti', date(2025, 6, 10))
    engine.book('Luca Ferrari', date(2025, 6, 10), fail_count=2)
    waitlist.add_entry('Paolo Moretti', added_at=now)
    payload = export_snapshot()

    import_snapshot(payload, force=True, now=now)

    session = ExamSession.objects.get()
    assert session.turn == Turn.AFTERNOON
    assert list(session.students.order_by('position').values_list('name', 'fail_count', 'status')) == [
        ('Giulia Conti', 0, StudentStatus.SCHEDULED), ('Luca Ferrari', 2, StudentStatus.SCHEDULED),
    ]
    assert WaitingListEntry.objects.get().added_at == now


# ── Daily snapshots ───────────────────────────────────────────────────────────

def test_daily_backup_skips_empty_store():
    assert store_daily_backup(today=date(2025, 6, 1)) is None
    assert not DailyBackup.objects.exists()


def test_daily_backup_once_per_day_and_rotation(engine):
    engine.book('Mario Rossi', date(2025, 6, 10))
    start = date(2025, 6, 1)

    for offset in range(9):
        assert store_daily_backup(today=start + timedelta(days=offset)) is not None
    assert store_daily_backup(today=start + timedelta(days=8)) is None

    kept = list(DailyBackup.objects.values_list('backup_date', flat=True))
    assert len(kept) == 7
    assert kept[0] == date(2025, 6, 9)
    assert kept[-1] == date(2025, 6, 3)
    assert DailyBackup.objects.first().payload['version'] == 3
