import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid
from django.db import migrations, models


STUDENT_STATUS_CHOICES = [
    ('SCHEDULED', 'Scheduled'),
    ('PASSED', 'Passed'),
    ('FAILED', 'Failed'),
    ('ABSENT', 'Absent'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('examiners', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ExamSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('date', models.DateField(unique=True)),
                ('turn', models.CharField(
                    blank=True,
                    choices=[('', 'Not set'), ('MORNING', 'Morning'), ('AFTERNOON', 'Afternoon')],
                    default='',
                    max_length=10,
                )),
                ('examiner', models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='sessions',
                    to='examiners.examiner',
                )),
            ],
            options={
                'verbose_name': 'Exam Session',
                'verbose_name_plural': 'Exam Sessions',
                'ordering': ['date'],
            },
        ),
        migrations.CreateModel(
            name='StudentBooking',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('position', models.PositiveIntegerField(help_text='Exam order within the session (ascending)')),
                ('name', models.CharField(max_length=120)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('status', models.CharField(choices=STUDENT_STATUS_CHOICES, default='SCHEDULED', max_length=10)),
                ('fail_count', models.PositiveSmallIntegerField(
                    default=0,
                    help_text='Previous failures carried across reschedules (3 = permit expired)',
                    validators=[django.core.validators.MaxValueValidator(3)],
                )),
                ('session', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='students',
                    to='bookings.examsession',
                )),
            ],
            options={
                'verbose_name': 'Student Booking',
                'verbose_name_plural': 'Student Bookings',
                'ordering': ['session__date', 'position'],
            },
        ),
        migrations.AddConstraint(
            model_name='studentbooking',
            constraint=models.UniqueConstraint(fields=('session', 'position'), name='uq_booking_session_position'),
        ),
        migrations.CreateModel(
            name='MonthlyLimit',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('month_key', models.CharField(help_text='YYYY-MM', max_length=7, unique=True)),
                ('limit', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
            ],
            options={
                'verbose_name': 'Monthly Limit',
                'verbose_name_plural': 'Monthly Limits',
                'ordering': ['month_key'],
            },
        ),
        migrations.CreateModel(
            name='BookingOutcomeLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('booking_ref', models.UUIDField(db_index=True)),
                ('student_name', models.CharField(max_length=120)),
                ('exam_date', models.DateField(db_index=True)),
                ('action', models.CharField(
                    choices=[
                        ('BOOKED', 'Booked'),
                        ('MOVED', 'Moved'),
                        ('RESCHEDULED', 'Rescheduled'),
                        ('PASSED', 'Passed'),
                        ('FAILED', 'Failed'),
                        ('ABSENT', 'Absent'),
                        ('WAITLISTED', 'Moved to waiting list'),
                        ('REMOVED', 'Removed'),
                        ('OVERRIDE', 'Operator override'),
                    ],
                    db_index=True,
                    max_length=12,
                )),
                ('from_status', models.CharField(blank=True, choices=STUDENT_STATUS_CHOICES, max_length=10)),
                ('to_status', models.CharField(blank=True, choices=STUDENT_STATUS_CHOICES, max_length=10)),
                ('fail_count', models.PositiveSmallIntegerField(default=0)),
                ('changed_by', models.CharField(help_text='operator username / system', max_length=80)),
                ('reason', models.TextField(blank=True)),
                ('changed_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Booking Outcome Log',
                'verbose_name_plural': 'Booking Outcome Logs',
                'ordering': ['changed_at'],
            },
        ),
    ]
