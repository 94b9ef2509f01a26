from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.utils import timezone

from .. import lifecycle
from ..models import ConversionJob
from .base import BaseTestCase, make_job


class ProcessJobsCommandTest(BaseTestCase):
	def test_once_converts_pending_jobs(self):
		good = lifecycle.create_job('notes.txt', 5, data=b'Hello')
		bad = lifecycle.create_job('empty.csv', 0, data=b'')
		out = StringIO()
		call_command('process_jobs', '--once', stdout=out)

		good.refresh_from_db()
		bad.refresh_from_db()
		self.assertEqual(good.status, ConversionJob.STATUS_COMPLETED)
		self.assertEqual(bad.status, ConversionJob.STATUS_FAILED)
		self.assertIn(f'Job {good.id} finished', out.getvalue())
		self.assertIn('The CSV file is empty', out.getvalue())

	def test_once_without_work(self):
		out = StringIO()
		call_command('process_jobs', '--once', stdout=out)
		self.assertIn('No pending jobs', out.getvalue())


class SweepExpiredCommandTest(BaseTestCase):
	def setUp(self):
		super().setUp()
		make_job('old.txt', created_at=timezone.now() - timedelta(hours=5))
		make_job('fresh.txt')

	def test_dry_run_keeps_jobs(self):
		out = StringIO()
		call_command('sweep_expired', '--dry-run', stdout=out)
		self.assertIn('1 expired jobs would be deleted', out.getvalue())
		self.assertEqual(ConversionJob.objects.count(), 2)

	def test_sweep_deletes_expired(self):
		out = StringIO()
		call_command('sweep_expired', stdout=out)
		self.assertIn('deleted jobs: 1', out.getvalue())
		self.assertEqual(list(ConversionJob.objects.values_list('original_filename', flat=True)), ['fresh.txt'])
