import django.utils.timezone
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='WaitingListEntry',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=120)),
                ('phone', models.CharField(blank=True, max_length=30)),
                ('added_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('can_book_after', models.DateTimeField(blank=True, null=True)),
                ('failed_three_times', models.BooleanField(
                    default=False,
                    help_text='Set when the entry was created by a third exam failure',
                )),
            ],
            options={
                'verbose_name': 'Waiting List Entry',
                'verbose_name_plural': 'Waiting List',
                'ordering': ['added_at'],
            },
        ),
    ]
