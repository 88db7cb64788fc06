"""
Operator dashboard views: authentication, calendar, sessions, students and
monthly limits. Every mutation goes through BookingEngine; refusals come
back as JSON errors and leave the data untouched.
"""
import calendar as month_calendar
import logging
from datetime import date, timedelta

from django.conf import settings
from django.contrib.auth import authenticate, login, logout
from django.db.models import Count
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from apps.bookings import limits
from apps.bookings.exceptions import BookingEngineError, NotFound
from apps.bookings.models import ExamSession, StudentBooking
from apps.core.calendar import date_key, parse_month_key
from apps.waitlist import services as waitlist

from .api import engine_for, form_error, refusal, request_data
from .decorators import dashboard_admin_required
from .forms import (
    BookStudentForm,
    ExaminerAssignForm,
    FailCountForm,
    MonthlyLimitForm,
    MoveForm,
    OutcomeForm,
    StatusForm,
    SuggestionForm,
    TurnForm,
)
from .presenters import booking_dict, entry_dict, session_dict

logger = logging.getLogger(__name__)


def _session_payload(day):
    session = ExamSession.objects.select_related('examiner').filter(date=day).first()
    return session_dict(session, day)


# ─────────────────────────────────────────────────────────────────────────────
# Auth views
# ─────────────────────────────────────────────────────────────────────────────

def dashboard_login(request):
    """POST username/password; only staff accounts may use the dashboard."""
    if request.method != 'POST':
        user = request.user
        return JsonResponse({
            'authenticated': user.is_authenticated and user.is_staff,
            'username': user.get_username() if user.is_authenticated else None,
        })

    data = request_data(request)
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''
    user = authenticate(request, username=username, password=password)
    if user is None:
        logger.info('Dashboard login failed for %s', username)
        return JsonResponse(
            {'error': 'invalid_credentials', 'message': 'Invalid username or password.'},
            status=401,
        )
    if not user.is_staff:
        return JsonResponse(
            {'error': 'forbidden', 'message': 'Your account does not have admin access.'},
            status=403,
        )
    login(request, user)
    return JsonResponse({'authenticated': True, 'username': user.get_username()})


@require_POST
def dashboard_logout(request):
    logout(request)
    return JsonResponse({'authenticated': False})


# ─────────────────────────────────────────────────────────────────────────────
# Overview / calendar
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
@dashboard_admin_required
def overview(request):
    engine = engine_for(request)
    today = engine.today()
    now = engine.now()
    week_end = today + timedelta(days=7)

    upcoming = (
        ExamSession.objects
        .filter(date__gt=today, date__lte=week_end, students__isnull=False)
        .distinct()
        .count()
    )
    return JsonResponse({
        'today': date_key(today),
        'today_session': _session_payload(today),
        'upcoming_sessions': upcoming,
        'waiting': {
            'bookable': waitlist.bookable_entries(now).count(),
            'frozen': waitlist.frozen_entries(now).count(),
        },
        'month': limits.month_overview(date_key(today)[:7]),
    })


@require_GET
@dashboard_admin_required
def calendar_month(request, month):
    """Every day of a month with its session summary and whether it can be selected."""
    year, number = parse_month_key(month)
    overview = limits.month_overview(month)
    active_dates = set(limits.active_sessions_in_month(month).values_list('date', flat=True))
    sessions = {
        s.date: s
        for s in ExamSession.objects
        .filter(date__year=year, date__month=number)
        .select_related('examiner')
        .annotate(students_booked=Count('students'))
    }

    days = []
    for day_number in range(1, month_calendar.monthrange(year, number)[1] + 1):
        day = date(year, number, day_number)
        session = sessions.get(day)
        active = day in active_dates
        days.append({
            'date': date_key(day),
            'turn': (session.turn or None) if session else None,
            'examiner': session.examiner.name if session and session.examiner else None,
            'student_count': session.students_booked if session else 0,
            'is_full': bool(session) and session.students_booked >= settings.MAX_STUDENTS_PER_SESSION,
            'active': active,
            'selectable': active or not overview['limit_reached'],
        })
    return JsonResponse({**overview, 'days': days})


@require_POST
@dashboard_admin_required
def monthly_limit(request, month):
    form = MonthlyLimitForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        engine_for(request).set_monthly_limit(month, form.cleaned_data['limit'])
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse(limits.month_overview(month))


# ─────────────────────────────────────────────────────────────────────────────
# Sessions
# ─────────────────────────────────────────────────────────────────────────────

@require_GET
@dashboard_admin_required
def session_detail(request, day):
    return JsonResponse(_session_payload(day))


@require_POST
@dashboard_admin_required
def session_turn(request, day):
    form = TurnForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        engine_for(request).set_turn(day, form.cleaned_data['turn'])
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse(_session_payload(day))


@require_POST
@dashboard_admin_required
def session_examiner(request, day):
    form = ExaminerAssignForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    examiner = form.cleaned_data['examiner']
    try:
        engine_for(request).set_examiner(day, examiner.id if examiner else None)
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse(_session_payload(day))


@require_POST
@dashboard_admin_required
def session_delete(request, day):
    try:
        engine_for(request).delete_session(day)
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse(session_dict(None, day))


@require_POST
@dashboard_admin_required
def session_move(request, day):
    """Move the whole session (turn, examiner, students) to another date."""
    form = MoveForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    destination = form.cleaned_data['to_date']
    try:
        engine_for(request).move_entire_session(day, destination)
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({
        'from': session_dict(None, day),
        'to': _session_payload(destination),
    })


@require_POST
@dashboard_admin_required
def session_book(request, day):
    form = BookStudentForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    cd = form.cleaned_data
    try:
        booking = engine_for(request).book(
            cd['name'], day,
            phone=cd['phone'],
            fail_count=cd['fail_count'] or 0,
            confirm_duplicate=cd['confirm_duplicate'],
        )
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse(
        {'booking': booking_dict(booking), 'session': _session_payload(day)},
        status=201,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Students
# ─────────────────────────────────────────────────────────────────────────────

@require_POST
@dashboard_admin_required
def student_outcome(request, booking_id):
    """
    Record PASSED / FAILED / ABSENT. For FAILED and ABSENT an optional
    target_date reschedules the student (see suggestion endpoint).
    """
    form = OutcomeForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        result = engine_for(request).record_outcome(
            booking_id,
            form.cleaned_data['outcome'],
            target_date=form.cleaned_data['target_date'],
        )
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({
        'action': result.action,
        'booking': booking_dict(result.booking) if result.booking else None,
        'waiting_entry': entry_dict(result.waiting_entry) if result.waiting_entry else None,
    })


@require_GET
@dashboard_admin_required
def student_suggestion(request, booking_id):
    form = SuggestionForm(request.GET)
    if not form.is_valid():
        return form_error(form)
    engine = engine_for(request)
    booking = StudentBooking.objects.select_related('session').filter(id=booking_id).first()
    if booking is None:
        return refusal(NotFound('This student booking no longer exists.'))
    suggested = engine.suggest_retry_date(booking.exam_date, form.cleaned_data['outcome'])
    return JsonResponse({
        'exam_date': date_key(booking.exam_date),
        'suggested_date': date_key(suggested),
        'selectable': limits.is_date_selectable(suggested),
    })


@require_POST
@dashboard_admin_required
def student_move(request, booking_id):
    form = MoveForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        booking = engine_for(request).move_student(booking_id, form.cleaned_data['to_date'])
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({'booking': booking_dict(booking)})


@require_POST
@dashboard_admin_required
def student_remove(request, booking_id):
    try:
        engine_for(request).remove_student(booking_id)
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({'removed': str(booking_id)})


@require_POST
@dashboard_admin_required
def student_status(request, booking_id):
    form = StatusForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        booking = engine_for(request).set_status(booking_id, form.cleaned_data['status'])
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({'booking': booking_dict(booking)})


@require_POST
@dashboard_admin_required
def student_fail_count(request, booking_id):
    form = FailCountForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        booking = engine_for(request).set_fail_count(booking_id, form.cleaned_data['fail_count'])
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({'booking': booking_dict(booking)})
