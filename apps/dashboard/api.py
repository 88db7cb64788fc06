"""
Helpers shared by the dashboard JSON views.
"""
import json
import logging

from django.http import JsonResponse

from apps.bookings.engine import BookingEngine
from apps.bookings.exceptions import Cooldown, NotFound, PossibleDuplicate, ValidationFailed
from .presenters import match_dict

logger = logging.getLogger(__name__)


def engine_for(request) -> BookingEngine:
    return BookingEngine(changed_by=request.user.get_username() or 'operator')


def request_data(request):
    """Form-encoded POST data, or the decoded JSON object for JSON requests."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    return request.POST


def invalid(message, errors=None):
    body = {'error': 'invalid', 'message': message}
    if errors:
        body['fields'] = errors
    return JsonResponse(body, status=400)


def form_error(form):
    return invalid('Please correct the highlighted fields.', errors=form.errors.get_json_data())


def refusal(exc):
    """JSON response for a refused engine operation."""
    if isinstance(exc, NotFound):
        status = 404
        logger.warning('Refused: %s', exc)
    else:
        status = 400 if isinstance(exc, ValidationFailed) else 409
        logger.info('Refused (%s): %s', exc.code, exc)

    body = {'error': exc.code, 'message': str(exc)}
    if isinstance(exc, PossibleDuplicate):
        body['matches'] = [match_dict(m) for m in exc.matches]
    if isinstance(exc, Cooldown) and exc.can_book_after:
        body['can_book_after'] = exc.can_book_after.isoformat()
    return JsonResponse(body, status=status)
