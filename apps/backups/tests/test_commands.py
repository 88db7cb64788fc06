import json
from datetime import date

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.backups.models import DailyBackup
from apps.bookings.models import ExamSession, StudentBooking
from apps.examiners.models import Examiner
from apps.waitlist.models import WaitingListEntry

pytestmark = pytest.mark.django_db


def test_export_and_import_commands(engine, tmp_path):
    engine.book('Mario Rossi', date(2030, 3, 12))
    path = tmp_path / 'backup.json'

    call_command('export_backup', str(path))
    payload = json.loads(path.read_text(encoding='utf-8'))
    assert payload['version'] == 3
    assert list(payload['sessions']) == ['2030-03-12']

    with pytest.raises(CommandError):
        call_command('import_backup', str(path))

    call_command('import_backup', str(path), '--force')
    assert StudentBooking.objects.get().name == 'Mario Rossi'


def test_import_command_reports_unreadable_files(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{not json', encoding='utf-8')
    with pytest.raises(CommandError):
        call_command('import_backup', str(path))


def test_daily_backup_command(engine):
    call_command('daily_backup')
    assert not DailyBackup.objects.exists()

    engine.book('Mario Rossi', date(2030, 3, 12))
    call_command('daily_backup')
    call_command('daily_backup')
    assert DailyBackup.objects.count() == 1


def test_seed_data_command():
    call_command('seed_data')
    assert Examiner.objects.count() == 2
    assert ExamSession.objects.count() == 3
    assert StudentBooking.objects.count() == 9
    assert WaitingListEntry.objects.count() == 3

    call_command('seed_data', '--flush')
    assert StudentBooking.objects.count() == 9
