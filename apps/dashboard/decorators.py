"""
Dashboard authentication decorator.

Replaces the @login_required + @staff_member_required stack. The dashboard
only speaks JSON, so unauthenticated / non-staff requests get a 401 (or 403)
body pointing at the login endpoint instead of a redirect.
"""
from functools import wraps
from django.http import JsonResponse
from django.urls import reverse


def dashboard_admin_required(view_func):
    """Require is_authenticated + is_staff."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse(
                {'error': 'login_required', 'login_url': reverse('dashboard:login')},
                status=401,
            )
        if not request.user.is_staff:
            return JsonResponse(
                {'error': 'forbidden', 'message': 'Your account does not have admin access.'},
                status=403,
            )
        return view_func(request, *args, **kwargs)
    return wrapper
