"""Compose several completed conversions into one navigable fragment."""
import logging
from dataclasses import dataclass

from django.utils import timezone
from django.utils.html import escape

from .errors import NoMergeableContent
from .formats import stem_of
from .prettify import prettify_html

logger = logging.getLogger(__name__)

EMPTY_SECTION = '<p>No content</p>'

COMPOSER_CSS = """
.merged-document {
    max-width: none;
}
.document-header {
    text-align: center;
    padding: 2rem 0;
    border-bottom: 3px solid #e5e7eb;
    margin-bottom: 2rem;
}
.document-header h1 {
    font-size: 2.5rem;
    color: #1f2937;
    margin-bottom: 0.5rem;
}
.document-header p {
    color: #6b7280;
    font-size: 1.1rem;
}
.table-of-contents {
    background: #f8fafc;
    padding: 1.5rem;
    border-radius: 12px;
    border: 1px solid #e2e8f0;
    margin-bottom: 2rem;
}
.table-of-contents h3 {
    margin-top: 0;
    color: #374151;
    font-size: 1.2rem;
}
.table-of-contents ul {
    list-style: none;
    padding: 0;
    margin: 1rem 0 0 0;
}
.toc-link {
    color: #2563eb;
    text-decoration: none;
    padding: 0.5rem 1rem;
    border-radius: 8px;
    display: block;
}
.toc-link:hover {
    background: #dbeafe;
    color: #1d4ed8;
}
.file-section {
    margin-bottom: 3rem;
    border: 1px solid #e5e7eb;
    border-radius: 12px;
    overflow: hidden;
}
.file-header {
    background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
    color: white;
    padding: 1.5rem 2rem;
}
.file-header h2 {
    margin: 0 0 0.5rem 0;
    font-size: 1.5rem;
}
.file-meta span {
    margin-right: 0.5rem;
}
.file-content {
    padding: 2rem;
}
@media (max-width: 768px) {
    .document-header h1 {
        font-size: 2rem;
    }
    .file-content {
        padding: 1.5rem;
    }
}
"""


@dataclass
class Fragment:
    html: str
    css: str


def section_anchor(index: int) -> str:
    return f'section-{index}'


def _display_name(job) -> str:
    return str(escape(stem_of(job.original_filename)))


def _section(job, index: int, total: int) -> str:
    created = timezone.localtime(job.created_at).date().isoformat()
    body = prettify_html(job.html_fragment or EMPTY_SECTION)
    return '\n'.join([
        f'<section id="{section_anchor(index)}" class="file-section">',
        '<div class="file-header">',
        f'<h2>{_display_name(job)}</h2>',
        '<div class="file-meta">',
        f'<span>File {index} of {total}</span>',
        '<span>&bull;</span>',
        f'<span>{created}</span>',
        '</div>',
        '</div>',
        '<div class="file-content">',
        body,
        '</div>',
        '</section>',
    ])


def merge_jobs(jobs) -> Fragment:
    """Merge completed jobs, oldest first, into one fragment with a table of contents.

    Constituent style sheets are appended verbatim after the composer's own
    rules, so on a class-name collision the later job wins.
    """
    ordered = sorted(jobs, key=lambda job: job.created_at)
    if not ordered:
        raise NoMergeableContent()

    total = len(ordered)
    toc_entries = []
    sections = []
    constituent_css = []
    for index, job in enumerate(ordered, start=1):
        toc_entries.append(
            f'<li><a href="#{section_anchor(index)}" class="toc-link">{_display_name(job)}</a></li>'
        )
        sections.append(_section(job, index, total))
        if job.css_fragment:
            constituent_css.append(job.css_fragment)

    noun = 'file' if total == 1 else 'files'
    html = '\n'.join([
        '<div class="merged-document">',
        '<header class="document-header">',
        '<h1>Merged documents</h1>',
        f'<p>Collection of {total} converted {noun}</p>',
        '</header>',
        '<nav class="table-of-contents">',
        '<h3>Table of contents</h3>',
        '<ul>',
        *toc_entries,
        '</ul>',
        '</nav>',
        '<main class="merged-content">',
        *sections,
        '</main>',
        '</div>',
    ])
    css = '\n\n'.join([COMPOSER_CSS.strip(), *constituent_css])

    logger.debug('merged %d jobs (%d style sheets)', total, len(constituent_css))
    return Fragment(html=html, css=css)
