"""
Waiting list endpoints: list, add, bulk import of already-parsed contacts,
book onto a date, remove.
"""
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods, require_POST

from apps.bookings.exceptions import BookingEngineError
from apps.waitlist import services as waitlist

from .api import engine_for, form_error, invalid, refusal, request_data
from .decorators import dashboard_admin_required
from .forms import WaitingBookForm, WaitingEntryForm
from .presenters import booking_dict, entry_dict

logger = logging.getLogger(__name__)


@require_http_methods(["GET", "POST"])
@dashboard_admin_required
def waiting_list(request):
    """GET: bookable and frozen candidates. POST: add one candidate."""
    engine = engine_for(request)
    now = engine.now()

    if request.method == 'POST':
        form = WaitingEntryForm(request_data(request))
        if not form.is_valid():
            return form_error(form)
        entry = waitlist.add_entry(
            form.cleaned_data['name'], form.cleaned_data['phone'], added_at=now,
        )
        return JsonResponse({'entry': entry_dict(entry, now)}, status=201)

    return JsonResponse({
        'bookable': [entry_dict(e, now) for e in waitlist.bookable_entries(now)],
        'frozen': [entry_dict(e, now) for e in waitlist.frozen_entries(now)],
    })


@require_POST
@dashboard_admin_required
def waiting_list_import(request):
    """
    Bulk add. Expects a JSON body {"contacts": [{"name": ..., "phone": ...}, ...]};
    parsing vCards or a phone's contact picker happens on the client.
    """
    contacts = request_data(request).get('contacts')
    if not isinstance(contacts, list):
        return invalid('"contacts" must be a list of {name, phone} objects.')
    if not all(isinstance(c, dict) for c in contacts):
        return invalid('Every contact must be an object with a name.')

    now = engine_for(request).now()
    created = waitlist.add_entries(contacts, added_at=now)
    return JsonResponse(
        {'added': len(created), 'entries': [entry_dict(e, now) for e in created]},
        status=201,
    )


@require_POST
@dashboard_admin_required
def waiting_list_book(request, entry_id):
    form = WaitingBookForm(request_data(request))
    if not form.is_valid():
        return form_error(form)
    try:
        booking = engine_for(request).book_from_waiting_list(
            entry_id,
            form.cleaned_data['date'],
            confirm_duplicate=form.cleaned_data['confirm_duplicate'],
        )
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({'booking': booking_dict(booking)}, status=201)


@require_POST
@dashboard_admin_required
def waiting_list_remove(request, entry_id):
    try:
        waitlist.remove_entry(entry_id)
    except BookingEngineError as exc:
        return refusal(exc)
    return JsonResponse({'removed': str(entry_id)})
