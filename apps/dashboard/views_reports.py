"""
Read-only endpoints: student search, bookings summary, exam-day view and
statistics.
"""
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from apps.core.calendar import date_key

from . import reports
from .api import engine_for, invalid
from .decorators import dashboard_admin_required
from .presenters import booking_dict, session_dict


@require_GET
@dashboard_admin_required
def search(request):
    query = request.GET.get('q', '')
    results = reports.search_students(query)
    return JsonResponse({
        'query': query.strip(),
        'results': [booking_dict(b) for b in results],
        'count': len(results),
    })


@require_GET
@dashboard_admin_required
def summary(request):
    data = reports.bookings_summary()
    return JsonResponse({
        'sessions': [session_dict(s) for s in data['sessions']],
        'total_students': data['total_students'],
    })


@require_GET
@dashboard_admin_required
def today(request):
    """Exam-day mode: today's session with its students in exam order."""
    day = engine_for(request).today()
    return JsonResponse(session_dict(reports.today_session(day), day))


@require_GET
@dashboard_admin_required
def stats(request):
    today = engine_for(request).today()
    try:
        year = int(request.GET.get('year') or today.year)
    except ValueError:
        return invalid('"year" must be a number.')

    return JsonResponse({
        'totals': reports.overall_stats(),
        'monthly': reports.monthly_outcomes(today),
        'year': year,
        'years': reports.available_years(today.year),
        'examiners': reports.examiner_session_counts(year),
        'generated_for': date_key(today),
    })
