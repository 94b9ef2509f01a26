from django.db import models
from django.utils import timezone
import uuid

from .errors import InvalidTransition


MERGED_SUFFIX = '_merged.html'


class ConversionJobQuerySet(models.QuerySet):
	def live(self, now=None):
		return self.filter(expires_at__gt=now or timezone.now())

	def merged_artifacts(self):
		return self.filter(original_filename__endswith=MERGED_SUFFIX)

	def constituents(self):
		return self.exclude(original_filename__endswith=MERGED_SUFFIX)


class ConversionJob(models.Model):
	"""One tracked conversion, from upload until it fails, completes or expires.

	A merged artifact is the same record shape; it is told apart only by the
	``_merged.html`` suffix on ``original_filename``.
	"""

	STATUS_PENDING = 'pending'
	STATUS_PROCESSING = 'processing'
	STATUS_COMPLETED = 'completed'
	STATUS_FAILED = 'failed'

	STATUS_CHOICES = [
		(STATUS_PENDING, 'Pending'),
		(STATUS_PROCESSING, 'Processing'),
		(STATUS_COMPLETED, 'Completed'),
		(STATUS_FAILED, 'Failed'),
	]

	TRANSITIONS = {
		STATUS_PENDING: (STATUS_PROCESSING,),
		STATUS_PROCESSING: (STATUS_COMPLETED, STATUS_FAILED),
		STATUS_COMPLETED: (),
		STATUS_FAILED: (),
	}

	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	original_filename = models.CharField(max_length=255)
	file_size = models.PositiveBigIntegerField(default=0)
	file_sha256 = models.CharField(max_length=64, blank=True, default='')
	status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
	html_fragment = models.TextField(blank=True, default='')
	css_fragment = models.TextField(blank=True, default='')
	warnings = models.TextField(blank=True, default='')
	error_message = models.TextField(blank=True, default='')
	batch_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
	# Set only on merged artifacts; the unique index allows one per batch.
	merged_batch_id = models.CharField(max_length=64, null=True, blank=True, unique=True, editable=False)
	is_merge_candidate = models.BooleanField(default=False)
	user_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
	created_at = models.DateTimeField(default=timezone.now, db_index=True)
	expires_at = models.DateTimeField()
	updated_at = models.DateTimeField(auto_now=True)

	objects = ConversionJobQuerySet.as_manager()

	class Meta:
		ordering = ['created_at']

	def __str__(self) -> str:  # pragma: no cover - trivial
		return f"ConversionJob({self.id}) {self.status}"

	@property
	def is_merged_artifact(self) -> bool:
		return self.original_filename.endswith(MERGED_SUFFIX)

	@property
	def is_terminal(self) -> bool:
		return not self.TRANSITIONS[self.status]

	def is_expired(self, now=None) -> bool:
		return (now or timezone.now()) > self.expires_at

	def _transition(self, target):
		if target not in self.TRANSITIONS[self.status]:
			raise InvalidTransition(f'{self.status} -> {target} is not allowed for job {self.id}')
		self.status = target

	def mark_processing(self):
		# Conditional update so only one worker can claim a pending job.
		previous = self.status
		self._transition(self.STATUS_PROCESSING)
		claimed = type(self).objects.filter(pk=self.pk, status=previous).update(
			status=self.STATUS_PROCESSING, updated_at=timezone.now(),
		)
		if not claimed:
			self.status = previous
			raise InvalidTransition(f'job {self.id} was already claimed')

	def mark_completed(self, html, css, warnings=()):
		# Fragments are written exactly once, here.
		self._transition(self.STATUS_COMPLETED)
		self.html_fragment = html
		self.css_fragment = css
		self.warnings = '\n'.join(warnings)
		self.error_message = ''
		self.save(update_fields=['status', 'html_fragment', 'css_fragment', 'warnings', 'error_message', 'updated_at'])

	def mark_failed(self, message):
		self._transition(self.STATUS_FAILED)
		self.error_message = message
		self.save(update_fields=['status', 'error_message', 'updated_at'])
