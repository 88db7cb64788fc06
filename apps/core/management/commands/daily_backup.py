"""
management command: daily_backup

Stores today's backup snapshot (once per day, skipped while there are no
sessions) and keeps only the newest DAILY_BACKUPS_KEPT snapshots.

Run via OS cron once a day:
  30 23 * * *  /path/to/venv/bin/python manage.py daily_backup
"""
from django.core.management.base import BaseCommand
from apps.backups.snapshot import store_daily_backup


class Command(BaseCommand):
    help = 'Store the daily backup snapshot and rotate old ones'

    def add_arguments(self, parser):
        parser.add_argument(
            '--keep', type=int, default=None,
            help='Number of daily snapshots to keep (default: DAILY_BACKUPS_KEPT)',
        )

    def handle(self, *args, **options):
        backup = store_daily_backup(keep=options['keep'])
        if backup is None:
            self.stdout.write('daily_backup: nothing to store')
            return
        self.stdout.write(
            self.style.SUCCESS(f'daily_backup: stored snapshot for {backup.backup_date}')
        )
