import django.db.models.deletion
import django.utils.timezone
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Examiner',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=120)),
            ],
            options={
                'verbose_name': 'Examiner',
                'verbose_name_plural': 'Examiners',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ExaminerNote',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('text', models.TextField()),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('examiner', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='notes',
                    to='examiners.examiner',
                )),
            ],
            options={
                'verbose_name': 'Examiner Note',
                'verbose_name_plural': 'Examiner Notes',
                'ordering': ['created_at'],
            },
        ),
    ]
