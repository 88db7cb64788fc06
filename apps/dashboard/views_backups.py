"""
Backup download and upload.
"""
import json
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from apps.backups.exceptions import BackupError, ConfirmationRequired
from apps.backups.snapshot import export_snapshot, import_snapshot
from apps.core.calendar import date_key

from .api import engine_for, form_error, invalid
from .decorators import dashboard_admin_required
from .forms import BackupImportForm

logger = logging.getLogger(__name__)


@require_GET
@dashboard_admin_required
def backup_export(request):
    today = engine_for(request).today()
    response = JsonResponse(export_snapshot(), json_dumps_params={'indent': 2})
    response['Content-Disposition'] = (
        f'attachment; filename="esami-guida-backup-{date_key(today)}.json"'
    )
    return response


@require_POST
@dashboard_admin_required
def backup_import(request):
    """
    Upload a backup as multipart 'file' (+ 'force'), or POST the backup JSON
    itself with ?force=1. Existing data is only replaced when forced.
    """
    if request.content_type == 'application/json':
        try:
            payload = json.loads(request.body or b'null')
        except ValueError:
            return invalid('The backup is not valid JSON.')
        force = request.GET.get('force', '').lower() in ('1', 'true', 'yes')
    else:
        form = BackupImportForm(request.POST, request.FILES)
        if not form.is_valid():
            return form_error(form)
        try:
            payload = json.load(form.cleaned_data['file'])
        except ValueError:
            return invalid('The backup is not valid JSON.')
        force = form.cleaned_data['force']

    try:
        summary = import_snapshot(payload, force=force, now=engine_for(request).now())
    except ConfirmationRequired as exc:
        return JsonResponse({'error': exc.code, 'message': str(exc)}, status=409)
    except BackupError as exc:
        logger.warning('Backup import rejected: %s', exc)
        return JsonResponse({'error': exc.code, 'message': str(exc)}, status=400)
    return JsonResponse(summary)
