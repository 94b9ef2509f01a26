from django.contrib import admin

from .models import ConversionJob


@admin.register(ConversionJob)
class ConversionJobAdmin(admin.ModelAdmin):
	list_display = ("id", "original_filename", "status", "batch_id", "is_merge_candidate", "created_at", "expires_at")
	list_filter = ("status", "is_merge_candidate")
	search_fields = ("original_filename", "batch_id")
	readonly_fields = (
		"id", "original_filename", "file_size", "file_sha256", "status", "merged_batch_id", "html_fragment", "css_fragment",
		"warnings", "error_message", "created_at", "expires_at", "updated_at",
	)
