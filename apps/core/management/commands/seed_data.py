"""
Seed management command.

Populates the database with demo data, going through the booking engine:
  - 2 examiners (with a note each)
  - 3 exam sessions on the next weekdays (morning / afternoon)
  - 9 student bookings, one of them on its second attempt
  - 3 waiting-list candidates

Usage:
    python manage.py seed_data
    python manage.py seed_data --flush   # wipe and re-seed
"""
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone
from apps.bookings.engine import BookingEngine
from apps.bookings.models import ExamSession, MonthlyLimit, Turn
from apps.examiners.models import Examiner, ExaminerNote
from apps.waitlist import services as waitlist
from apps.waitlist.models import WaitingListEntry


def next_weekdays(start, count):
    days, day = [], start
    while len(days) < count:
        day += timedelta(days=1)
        if day.weekday() < 5:
            days.append(day)
    return days


class Command(BaseCommand):
    help = 'Seed demo examiners, exam sessions, bookings and waiting-list entries'

    def add_arguments(self, parser):
        parser.add_argument(
            '--flush', action='store_true',
            help='Delete all existing data before creating fresh records',
        )

    def handle(self, *args, **options):
        if options['flush']:
            self.stdout.write('Flushing existing data...')
            ExamSession.objects.all().delete()
            MonthlyLimit.objects.all().delete()
            WaitingListEntry.objects.all().delete()
            Examiner.objects.all().delete()
        elif ExamSession.objects.exists():
            self.stdout.write(self.style.WARNING('Sessions already exist; run with --flush to re-seed.'))
            return

        engine = BookingEngine(changed_by='seed_data')

        # ── Examiners ─────────────────────────────────────────────────────────
        self.stdout.write('Seeding examiners...')
        rossi, _ = Examiner.objects.get_or_create(name='Ing. Marco Rossi')
        bianchi, _ = Examiner.objects.get_or_create(name='Ing. Laura Bianchi')
        ExaminerNote.objects.get_or_create(examiner=rossi, text='Strict on parallel parking.')
        ExaminerNote.objects.get_or_create(examiner=bianchi, text='Prefers the ring-road route.')
        self.stdout.write(self.style.SUCCESS('  ✔ 2 examiners created'))

        # ── Sessions & bookings ───────────────────────────────────────────────
        self.stdout.write('Seeding exam sessions...')
        day1, day2, day3 = next_weekdays(timezone.localdate(), 3)
        plan = [
            (day1, Turn.MORNING, rossi, [
                ('Giulia Conti', '333 1234567', 0),
                ('Luca Ferrari', '333 2345678', 0),
                ('Sara Romano', '', 1),
                ('Matteo Greco', '340 1112223', 0),
            ]),
            (day2, Turn.AFTERNOON, bianchi, [
                ('Chiara Marino', '347 9876543', 0),
                ('Davide Galli', '', 0),
                ('Elena Costa', '320 5554443', 0),
            ]),
            (day3, Turn.MORNING, None, [
                ('Andrea Fontana', '328 7776665', 0),
                ('Francesca Rizzi', '', 0),
            ]),
        ]
        for day, turn, examiner, students in plan:
            engine.set_turn(day, turn)
            if examiner:
                engine.set_examiner(day, examiner.id)
            for name, phone, fail_count in students:
                engine.book(name, day, phone=phone, fail_count=fail_count)
        self.stdout.write(self.style.SUCCESS('  ✔ 3 sessions with 9 students created'))

        # ── Waiting list ──────────────────────────────────────────────────────
        self.stdout.write('Seeding waiting list...')
        waitlist.add_entries([
            ('Paolo Moretti', '339 4443332'),
            ('Valentina Barbieri', ''),
        ])
        waitlist.add_entry(
            'Simone Lombardi', '331 2223334',
            can_book_after=timezone.now() + timedelta(days=20),
            failed_three_times=True,
        )
        self.stdout.write(self.style.SUCCESS('  ✔ 3 waiting-list candidates created'))

        self.stdout.write(self.style.SUCCESS('\n✅ Seed complete! 2 examiners, 3 sessions, 9 bookings ready.'))
