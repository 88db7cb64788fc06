"""
management command: export_backup

Writes the whole store as a version-3 JSON backup.

Usage:
    python manage.py export_backup                      # esami-guida-backup-YYYY-MM-DD.json
    python manage.py export_backup path/to/backup.json
"""
import json

from django.core.management.base import BaseCommand
from django.utils import timezone
from apps.backups.snapshot import export_snapshot


class Command(BaseCommand):
    help = 'Export sessions, waiting list and examiners to a JSON backup file'

    def add_arguments(self, parser):
        parser.add_argument('path', nargs='?', help='Output file (default: dated file name)')

    def handle(self, *args, **options):
        path = options['path'] or f'esami-guida-backup-{timezone.localdate().isoformat()}.json'
        payload = export_snapshot()
        with open(path, 'w', encoding='utf-8') as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
        self.stdout.write(
            self.style.SUCCESS(
                f'export_backup: {len(payload["sessions"])} sessions, '
                f'{len(payload["waitingList"])} waiting, '
                f'{len(payload["examiners"])} examiners -> {path}'
            )
        )
