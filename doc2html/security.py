"""Byte-level checks that run before any decoder sees an upload."""
import hashlib
import logging
import re
from pathlib import PurePosixPath

from django.conf import settings

from .errors import ValidationRejected
from .formats import FILE_SIGNATURES, TEXT_LIKE, extension_of

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTENT_BYTES = 50 * 1024 * 1024
SCAN_PREFIX_BYTES = 10 * 1024

# Coarse filter over a bounded prefix; the bare word "script" must not match.
ACTIVE_CONTENT_PATTERNS = [
    re.compile(r'<script\b[^>]*>', re.IGNORECASE),
    re.compile(r'\bjavascript\s*:', re.IGNORECASE),
    re.compile(r'\bvbscript\s*:', re.IGNORECASE),
    re.compile(r'\bdata\s*:\s*text/html', re.IGNORECASE),
    re.compile(
        r'<[a-z][^>]*\son(?:abort|afterprint|animation\w+|auxclick|before\w+|blur|cancel|change|click|close'
        r'|contextmenu|copy|cut|dblclick|drag\w*|drop|error|focus\w*|hashchange|input|invalid|key\w+|load\w*'
        r'|message|mouse\w+|offline|online|pagehide|pageshow|paste|pause|play\w*|pointer\w+|popstate|reset'
        r'|resize|scroll|search|select\w*|show|storage|submit|toggle|touch\w+|transition\w+|unload|wheel)\s*=',
        re.IGNORECASE,
    ),
    re.compile(r'<iframe\b', re.IGNORECASE),
    re.compile(r'<object\b', re.IGNORECASE),
    re.compile(r'<embed\b', re.IGNORECASE),
]


def max_content_bytes() -> int:
    return int(getattr(settings, 'DOC2HTML_MAX_CONTENT_BYTES', DEFAULT_MAX_CONTENT_BYTES))


def validate_content(data: bytes, filename: str) -> None:
    """Raise ValidationRejected unless ``data`` is plausible for ``filename``."""
    ext = extension_of(filename)
    if not ext:
        raise ValidationRejected('File rejected: file has no extension')

    signature = FILE_SIGNATURES.get(ext)
    if signature is not None and not data.startswith(signature):
        logger.info('signature mismatch for .%s upload', ext)
        raise ValidationRejected('File rejected: file type does not match its extension')

    if len(data) > max_content_bytes():
        raise ValidationRejected('File rejected: file is too large')

    if ext in TEXT_LIKE:
        prefix = data[:SCAN_PREFIX_BYTES].decode('utf-8', errors='ignore')
        for pattern in ACTIVE_CONTENT_PATTERNS:
            if pattern.search(prefix):
                logger.warning('active content marker %r found in .%s upload', pattern.pattern, ext)
                raise ValidationRejected('File rejected: potentially malicious content detected')


def sanitize_filename(filename: str) -> str:
    name = PurePosixPath((filename or '').replace('\\', '/')).name
    name = re.sub(r'[^\w\-.]', '_', name)
    name = re.sub(r'_{2,}', '_', name)
    name = name[:255]
    if not name.strip('.'):
        return 'upload'
    return name


def file_sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
