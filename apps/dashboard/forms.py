"""Dashboard input forms.

The endpoints accept form-encoded or JSON bodies; both are bound to these
forms before anything reaches the booking engine.
"""
from django import forms
from django.conf import settings
from apps.bookings.models import StudentStatus, Turn
from apps.examiners.models import Examiner

OUTCOME_CHOICES = [
    (StudentStatus.PASSED, StudentStatus.PASSED.label),
    (StudentStatus.FAILED, StudentStatus.FAILED.label),
    (StudentStatus.ABSENT, StudentStatus.ABSENT.label),
]


class BookStudentForm(forms.Form):
    name = forms.CharField(max_length=120)
    phone = forms.CharField(max_length=30, required=False)
    fail_count = forms.IntegerField(min_value=0, max_value=settings.MAX_FAIL_COUNT, required=False)
    confirm_duplicate = forms.BooleanField(required=False)


class OutcomeForm(forms.Form):
    outcome = forms.ChoiceField(choices=OUTCOME_CHOICES)
    target_date = forms.DateField(required=False, input_formats=['%Y-%m-%d'])


class SuggestionForm(forms.Form):
    outcome = forms.ChoiceField(choices=OUTCOME_CHOICES[1:])


class MoveForm(forms.Form):
    to_date = forms.DateField(input_formats=['%Y-%m-%d'])


class TurnForm(forms.Form):
    turn = forms.ChoiceField(choices=Turn.choices, required=False)


class ExaminerAssignForm(forms.Form):
    examiner = forms.ModelChoiceField(queryset=Examiner.objects.all(), required=False)


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=StudentStatus.choices)


class FailCountForm(forms.Form):
    fail_count = forms.IntegerField(min_value=0, max_value=settings.MAX_FAIL_COUNT)


class MonthlyLimitForm(forms.Form):
    limit = forms.IntegerField(min_value=0, help_text='0 removes the limit')


class WaitingEntryForm(forms.Form):
    name = forms.CharField(max_length=120)
    phone = forms.CharField(max_length=30, required=False)


class WaitingBookForm(forms.Form):
    date = forms.DateField(input_formats=['%Y-%m-%d'])
    confirm_duplicate = forms.BooleanField(required=False)


class BackupImportForm(forms.Form):
    file = forms.FileField()
    force = forms.BooleanField(required=False)
