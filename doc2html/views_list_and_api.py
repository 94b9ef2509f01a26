"""Additional views: listing the caller's conversions.

Kept apart from the upload/status/download views; ``views`` re-exports it so
``urls.py`` only imports one module.
"""
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from . import lifecycle


@require_http_methods(["GET"])
def list_files(request):
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return JsonResponse({'error': 'Unauthorized'}, status=401)

    jobs = lifecycle.list_jobs_for_user(str(user.pk))
    files = [
        {
            'id': str(job.id),
            'filename': job.original_filename,
            'file_size': job.file_size,
            'status': job.status,
            'created_at': job.created_at.isoformat(),
            'expires_at': job.expires_at.isoformat(),
        }
        for job in jobs
    ]
    return JsonResponse({'files': files})
