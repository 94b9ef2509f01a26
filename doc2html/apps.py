from django.apps import AppConfig


class Doc2HtmlConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'doc2html'
    verbose_name = 'Document to HTML'

    def ready(self):
        """Import signals when the app is ready."""
        from . import signals  # noqa: F401
