import json
import logging

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.shortcuts import render
from django.urls import reverse
from django.views.decorators.http import require_http_methods

from . import lifecycle
from .errors import Doc2HtmlError, ValidationRejected
from .formats import SUPPORTED_EXTENSIONS, is_supported
from .lifecycle import Identity
from .models import ConversionJob
from .security import sanitize_filename, validate_content
from .views_list_and_api import list_files  # noqa: F401

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_ANONYMOUS_MAX_UPLOAD_BYTES = 3 * 1024 * 1024
MAX_BATCH_ID_LENGTH = 64


def identity_from_request(request) -> Identity:
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return Identity(user_id=str(user.pk))
    return lifecycle.ANONYMOUS


def max_upload_bytes(identity: Identity) -> int:
    if identity.is_authenticated:
        return int(getattr(settings, 'DOC2HTML_MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES))
    return int(getattr(settings, 'DOC2HTML_ANONYMOUS_MAX_UPLOAD_BYTES', DEFAULT_ANONYMOUS_MAX_UPLOAD_BYTES))


def error_response(exc: Doc2HtmlError) -> JsonResponse:
    return JsonResponse({'error': exc.message}, status=exc.status_code)


def _truthy(value) -> bool:
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


def job_payload(job: ConversionJob) -> dict:
    payload = {
        'id': str(job.id),
        'filename': job.original_filename,
        'status': job.status,
        'error': job.error_message or None,
        'warnings': job.warnings.splitlines() if job.warnings else [],
        'batch_id': job.batch_id,
        'is_merge_candidate': job.is_merge_candidate,
        'created_at': job.created_at.isoformat(),
        'expires_at': job.expires_at.isoformat(),
        'status_url': reverse('doc2html:status', args=[job.id]),
    }
    if job.status == ConversionJob.STATUS_COMPLETED:
        payload['download_url'] = reverse('doc2html:download', args=[job.id])
    return payload


def home(request):
    """Render the upload form."""
    return render(request, 'doc2html/home.html', {
        'upload_url': reverse('doc2html:api_upload'),
        'accepted': ','.join(SUPPORTED_EXTENSIONS),
    })


@require_http_methods(["POST"])
def api_upload(request):
    """
    Accepts a multipart upload under 'file', with optional 'batch_id' and
    'is_merged' fields. Creates a pending ConversionJob that is converted in the
    background and answers 202 with the job id and the URLs to poll.
    """
    uploaded = request.FILES.get('file')
    if not uploaded:
        return JsonResponse({'error': 'No file provided'}, status=400)

    identity = identity_from_request(request)
    limit = max_upload_bytes(identity)
    if uploaded.size > limit:
        return JsonResponse({
            'error': f'The file is too large. Maximum allowed: {limit // (1024 * 1024)}MB',
            'requires_auth': not identity.is_authenticated,
        }, status=413)

    filename = sanitize_filename(getattr(uploaded, 'name', ''))
    if not is_supported(filename):
        return JsonResponse(
            {'error': f'Unsupported format. Allowed: {", ".join(SUPPORTED_EXTENSIONS)}'},
            status=400,
        )

    batch_id = (request.POST.get('batch_id') or '').strip()[:MAX_BATCH_ID_LENGTH] or None
    is_merge_candidate = bool(batch_id) and _truthy(request.POST.get('is_merged', ''))

    data = uploaded.read()
    try:
        validate_content(data, filename)
    except ValidationRejected as exc:
        logger.info('upload %s rejected: %s', filename, exc.message)
        return error_response(exc)

    job = lifecycle.create_job(
        filename,
        len(data),
        batch_id=batch_id,
        is_merge_candidate=is_merge_candidate,
        identity=identity,
        data=data,
    )

    merged = lifecycle.find_merged_artifact(batch_id) if is_merge_candidate else None
    payload = {
        'id': str(job.id),
        'status': job.status,
        'message': 'File accepted for conversion',
        'batch_id': job.batch_id,
        'is_merge_candidate': job.is_merge_candidate,
        'merged_file_id': str(merged.id) if merged else None,
        'status_url': reverse('doc2html:status', args=[job.id]),
        'download_url': reverse('doc2html:download', args=[job.id]),
    }
    return JsonResponse(payload, status=202)


@require_http_methods(["GET"])
def status(request, job_id):
    """Report the state of a job; expired jobs are deleted and answer 404."""
    try:
        job = lifecycle.get_job(job_id)
    except Doc2HtmlError as exc:
        return error_response(exc)
    return JsonResponse(job_payload(job))


@require_http_methods(["GET"])
def download(request, job_id):
    """Serve the completed conversion as a standalone HTML attachment."""
    try:
        job = lifecycle.get_job(job_id)
        filename, html = lifecycle.render_download(job)
    except Doc2HtmlError as exc:
        return error_response(exc)

    response = HttpResponse(html, content_type='text/html; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@require_http_methods(["POST"])
def merge_batch(request):
    """Build (or return the existing) merged artifact for a batch."""
    if request.content_type == 'application/json':
        try:
            body = json.loads(request.body or b'{}')
        except ValueError:
            return JsonResponse({'error': 'Invalid JSON body'}, status=400)
        batch_id = body.get('batch_id') if isinstance(body, dict) else None
    else:
        batch_id = request.POST.get('batch_id')

    batch_id = str(batch_id or '').strip()
    if not batch_id:
        return JsonResponse({'error': 'batch_id is required'}, status=400)

    try:
        artifact_id, created = lifecycle.merge_batch(batch_id)
    except Doc2HtmlError as exc:
        return error_response(exc)

    return JsonResponse({
        'id': str(artifact_id),
        'created': created,
        'message': 'Merged file created' if created else 'Merged file already exists',
        'status_url': reverse('doc2html:status', args=[artifact_id]),
        'download_url': reverse('doc2html:download', args=[artifact_id]),
    })
