import time

from django.core.management.base import BaseCommand

from doc2html import lifecycle
from doc2html.errors import InvalidTransition
from doc2html.models import ConversionJob


class Command(BaseCommand):
    help = 'Convert pending ConversionJob entries (for deployments without background threads).'

    def add_arguments(self, parser):
        parser.add_argument('--once', action='store_true', help='Process pending jobs once and exit')
        parser.add_argument('--poll', type=int, default=5, help='Poll interval in seconds when running continuously')

    def handle(self, *args, **options):
        once = options.get('once')
        poll = options.get('poll', 5)

        self.stdout.write(self.style.NOTICE('Starting job processor'))

        while True:
            pending = ConversionJob.objects.filter(status=ConversionJob.STATUS_PENDING).order_by('created_at')
            if not pending.exists():
                if once:
                    self.stdout.write('No pending jobs, exiting')
                    return
                time.sleep(poll)
                continue

            for job in pending:
                self.stdout.write(f'Processing job {job.id}...')
                try:
                    job = lifecycle.process_job(job.id)
                except (ConversionJob.DoesNotExist, InvalidTransition):
                    self.stdout.write(f'Job {job.id} was taken by another worker or deleted, skipping')
                    continue
                except Exception as exc:
                    lifecycle.fail_unexpectedly(job.id)
                    self.stdout.write(self.style.ERROR(f'Unexpected error processing {job.id}: {exc}'))
                    continue

                if job.status == ConversionJob.STATUS_COMPLETED:
                    self.stdout.write(self.style.SUCCESS(f'Job {job.id} finished'))
                else:
                    self.stdout.write(self.style.ERROR(f'Job {job.id} failed: {job.error_message}'))

            if once:
                return
            time.sleep(poll)
