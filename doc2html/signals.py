"""Signal handlers for the doc2html app.

Pending ConversionJob entries are converted in a background thread once the
creating transaction commits, so the upload view returns quickly. Deleting a
job (explicitly or through lazy expiry) removes any upload still on disk.
"""
import logging
import threading

from django.conf import settings
from django.db import close_old_connections, transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from . import lifecycle
from .errors import InvalidTransition
from .models import ConversionJob

logger = logging.getLogger(__name__)


def _process_job(job_id):
    """Background job processor.

    Runs in a daemon thread; expected conversion errors are recorded by
    ``lifecycle.process_job``. Anything else is logged with its traceback and
    stored on the job as a generic failure.
    """
    close_old_connections()
    try:
        lifecycle.process_job(job_id)
    except ConversionJob.DoesNotExist:
        logger.info('job %s vanished before processing', job_id)
    except InvalidTransition:
        logger.info('job %s was already claimed by another worker', job_id)
    except Exception:
        logger.exception('unexpected error processing job %s', job_id)
        lifecycle.fail_unexpectedly(job_id)
    finally:
        close_old_connections()


def _start_worker(job_id):
    thread = threading.Thread(target=_process_job, args=(job_id,), daemon=True)
    thread.start()


@receiver(post_save, sender=ConversionJob)
def process_conversion_on_create(sender, instance, created, **kwargs):
    """Queue a freshly created pending job for conversion.

    Merged artifacts are created already in ``processing`` and never queued.
    ``DOC2HTML_BACKGROUND_CONVERSION = False`` leaves pending jobs to the
    ``process_jobs`` management command.
    """
    if not getattr(settings, 'DOC2HTML_BACKGROUND_CONVERSION', True):
        return

    if created and instance.status == ConversionJob.STATUS_PENDING:
        job_id = instance.id
        transaction.on_commit(lambda: _start_worker(job_id))


@receiver(post_delete, sender=ConversionJob)
def discard_upload_on_delete(sender, instance, **kwargs):
    lifecycle.discard_upload(instance.id, instance.original_filename)
