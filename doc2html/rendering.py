from django.template.loader import render_to_string
from django.utils import timezone

from .prettify import prettify_html

PAGE_TEMPLATE = 'doc2html/document.html'
CONTENT_INDENT = ' ' * 12


def render_page(fragment: str, css: str, title: str, converted_at=None) -> str:
    """Wrap a fragment and its style sheet into a standalone HTML document."""
    return render_to_string(PAGE_TEMPLATE, {
        'title': title,
        'css': css or '',
        'content': prettify_html(fragment or '', base_indent=CONTENT_INDENT),
        'converted_at': converted_at or timezone.now(),
    })
