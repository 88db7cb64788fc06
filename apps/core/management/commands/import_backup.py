"""
management command: import_backup

Replaces the stores with a JSON backup of any version (1, 2 or 3).

Usage:
    python manage.py import_backup path/to/backup.json
    python manage.py import_backup path/to/backup.json --force   # replace existing data
"""
import json

from django.core.management.base import BaseCommand, CommandError
from apps.backups.exceptions import BackupError
from apps.backups.snapshot import import_snapshot


class Command(BaseCommand):
    help = 'Import a JSON backup, replacing the current data'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Backup file to import')
        parser.add_argument(
            '--force', action='store_true',
            help='Replace existing data without asking',
        )

    def handle(self, *args, **options):
        try:
            with open(options['path'], encoding='utf-8') as fh:
                payload = json.load(fh)
        except (OSError, ValueError) as exc:
            raise CommandError(f'Cannot read backup: {exc}')

        try:
            summary = import_snapshot(payload, force=options['force'])
        except BackupError as exc:
            raise CommandError(str(exc))

        details = [f'{summary["sessions"]} sessions', f'{summary["students"]} students']
        if summary['waiting_list'] is not None:
            details.append(f'{summary["waiting_list"]} waiting')
        if summary['examiners'] is not None:
            details.append(f'{summary["examiners"]} examiners')
        self.stdout.write(
            self.style.SUCCESS(
                f'import_backup: version {summary["version"]} imported ({", ".join(details)})'
            )
        )
