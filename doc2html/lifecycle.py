"""Job lifecycle: creation, lazy expiry, conversion, download and batch merges.

Expiry is enforced on read: ``get_job`` deletes a job whose ``expires_at`` has
passed and reports it as missing. ``sweep_expired`` exists for deployments that
want bounded storage; it does not change what a read returns.

Merge uniqueness per batch is enforced by the database: a merged artifact
carries its batch in the unique ``merged_batch_id`` column, so of two
concurrent merges only the first to commit succeeds and the other returns that
artifact. An expired artifact is deleted on lookup and a fresh one is built.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from .composer import merge_jobs
from .decoders import run_conversion
from .errors import (
    ConversionError,
    ConversionFailed,
    JobExpired,
    JobNotFound,
    NoMergeableContent,
    NotReady,
)
from .formats import extension_of, html_filename_for
from .models import MERGED_SUFFIX, ConversionJob
from .rendering import render_page
from .security import file_sha256

logger = logging.getLogger(__name__)

DEFAULT_JOB_TTL = timedelta(hours=3)
UNAVAILABLE_UPLOAD_MESSAGE = 'The uploaded file is no longer available'
UNEXPECTED_FAILURE_MESSAGE = 'Error processing the file'


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, if any. Only the id is needed by the core."""
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Identity()


def job_ttl() -> timedelta:
    return getattr(settings, 'DOC2HTML_JOB_TTL', DEFAULT_JOB_TTL)


def uploads_dir() -> Path:
    path = Path(getattr(settings, 'MEDIA_ROOT', settings.BASE_DIR)) / 'uploads'
    path.mkdir(parents=True, exist_ok=True)
    return path


def upload_path(job_id, filename) -> Path:
    ext = extension_of(filename)
    return uploads_dir() / (f'{job_id}.{ext}' if ext else str(job_id))


def discard_upload(job_id, filename):
    path = upload_path(job_id, filename)
    try:
        path.unlink()
    except FileNotFoundError:
        pass


# --- creation and reads -----------------------------------------------------

def create_job(filename, size, batch_id=None, is_merge_candidate=False, identity=ANONYMOUS, data=None):
    """Create a pending job. ``data``, when given, is stored for the worker first."""
    job_id = uuid.uuid4()
    created_at = timezone.now()
    sha = ''
    if data is not None:
        upload_path(job_id, filename).write_bytes(data)
        sha = file_sha256(data)

    job = ConversionJob.objects.create(
        id=job_id,
        original_filename=filename,
        file_size=size,
        file_sha256=sha,
        status=ConversionJob.STATUS_PENDING,
        batch_id=batch_id or None,
        is_merge_candidate=bool(is_merge_candidate),
        user_id=identity.user_id,
        created_at=created_at,
        expires_at=created_at + job_ttl(),
    )
    logger.info('created job %s (%s, %d bytes, batch=%s)', job.id, filename, size, job.batch_id)
    return job


def get_job(job_id, now=None):
    """Return a live job or raise JobNotFound; expired jobs are deleted on sight."""
    try:
        job = ConversionJob.objects.get(pk=job_id)
    except (ConversionJob.DoesNotExist, ValidationError, ValueError):
        raise JobNotFound() from None

    if job.is_expired(now):
        logger.info('job %s expired at %s, deleting', job.id, job.expires_at.isoformat())
        job.delete()
        raise JobExpired()
    return job


def list_jobs_for_user(user_id, now=None):
    if not user_id:
        return ConversionJob.objects.none()
    return ConversionJob.objects.live(now).filter(user_id=user_id).order_by('-created_at')


def sweep_expired(now=None, dry_run=False) -> int:
    expired = ConversionJob.objects.filter(expires_at__lt=now or timezone.now())
    count = expired.count()
    if not dry_run and count:
        for job in list(expired):
            job.delete()
        logger.info('swept %d expired jobs', count)
    return count


# --- conversion -------------------------------------------------------------

def process_job(job_id):
    """Run one pending job to completion or failure. Never retried."""
    job = ConversionJob.objects.get(pk=job_id)
    job.mark_processing()

    try:
        data = upload_path(job.id, job.original_filename).read_bytes()
    except OSError:
        logger.warning('upload for job %s is missing', job.id)
        job.mark_failed(UNAVAILABLE_UPLOAD_MESSAGE)
        return job

    try:
        result = run_conversion(data, job.original_filename)
    except ConversionError as exc:
        logger.info('job %s failed: %s', job.id, exc.message)
        job.mark_failed(exc.message)
    else:
        job.mark_completed(result.html, result.css, result.warnings)
        logger.info('job %s completed', job.id)
    finally:
        discard_upload(job.id, job.original_filename)
    return job


def fail_unexpectedly(job_id):
    """Record a generic failure after an unexpected error in a worker."""
    job = ConversionJob.objects.filter(pk=job_id).first()
    if job is None or job.is_terminal:
        return
    if job.status == ConversionJob.STATUS_PENDING:
        job.mark_processing()
    job.mark_failed(UNEXPECTED_FAILURE_MESSAGE)
    discard_upload(job.id, job.original_filename)


def render_download(job):
    """Return ``(download_filename, full_html_page)`` for a completed job."""
    if job.status == ConversionJob.STATUS_FAILED:
        raise ConversionFailed(f'Conversion failed: {job.error_message}' if job.error_message else None)
    if job.status != ConversionJob.STATUS_COMPLETED:
        raise NotReady()

    filename = html_filename_for(job.original_filename)
    html = render_page(job.html_fragment, job.css_fragment, title=filename)
    return filename, html


# --- batch merges -----------------------------------------------------------

MERGE_ATTEMPTS = 3


def merged_artifacts_for(batch_id):
    return ConversionJob.objects.filter(batch_id=batch_id).merged_artifacts().order_by('created_at', 'id')


def find_merged_artifact(batch_id, now=None):
    """Live merged artifact of a batch, or None. Expired artifacts are deleted."""
    now = now or timezone.now()
    found = None
    for artifact in merged_artifacts_for(batch_id):
        if artifact.is_expired(now):
            logger.info('merged artifact %s for batch %s expired, deleting', artifact.id, batch_id)
            artifact.delete()
        elif found is None:
            found = artifact
    return found


def mergeable_jobs(batch_id, now=None):
    return (
        ConversionJob.objects.live(now)
        .filter(batch_id=batch_id, status=ConversionJob.STATUS_COMPLETED, is_merge_candidate=True)
        .constituents()
        .order_by('created_at', 'id')
    )


def _create_merged_artifact(batch_id, jobs):
    fragment = merge_jobs(jobs)
    with transaction.atomic():
        artifact = ConversionJob.objects.create(
            original_filename=f'{len(jobs)}_files{MERGED_SUFFIX}',
            file_size=len(fragment.html.encode('utf-8')),
            status=ConversionJob.STATUS_PROCESSING,
            batch_id=batch_id,
            merged_batch_id=batch_id,
            is_merge_candidate=False,
            user_id=jobs[0].user_id,
            expires_at=jobs[0].expires_at,
        )
        artifact.mark_completed(fragment.html, fragment.css)
    return artifact


def merge_batch(batch_id, now=None):
    """Return ``(artifact_id, created)`` for the single merged artifact of a batch."""
    if not batch_id:
        raise NoMergeableContent()

    jobs = list(mergeable_jobs(batch_id, now))
    if not jobs:
        raise NoMergeableContent()

    for _ in range(MERGE_ATTEMPTS):
        existing = find_merged_artifact(batch_id, now)
        if existing is not None:
            logger.info('merged artifact %s already exists for batch %s', existing.id, batch_id)
            return existing.id, False
        try:
            artifact = _create_merged_artifact(batch_id, jobs)
        except IntegrityError:
            # Another worker committed first; its artifact is the one to return.
            logger.info('merge of batch %s lost to a concurrent merge', batch_id)
            continue
        logger.info('created merged artifact %s for batch %s from %d jobs', artifact.id, batch_id, len(jobs))
        return artifact.id, True

    raise IntegrityError(f'could not settle the merged artifact for batch {batch_id}')
