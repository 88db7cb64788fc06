"""
Examiner roster.

Each exam session may reference one examiner; removing an examiner from the
roster clears those references. Notes are free text the
school keeps about each examiner.
"""
from django.db import models
from django.utils import timezone
from apps.core.models import BaseModel, UUIDModel


class Examiner(BaseModel):
    name = models.CharField(max_length=120)

    class Meta:
        verbose_name = 'Examiner'
        verbose_name_plural = 'Examiners'
        ordering = ['name']

    def __str__(self):
        return self.name


class ExaminerNote(UUIDModel):
    examiner = models.ForeignKey(
        Examiner,
        on_delete=models.CASCADE,
        related_name='notes',
    )
    text = models.TextField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = 'Examiner Note'
        verbose_name_plural = 'Examiner Notes'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.examiner.name}: {self.text[:40]}"
