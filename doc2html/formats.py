"""Format support helpers for doc2html.

Maps accepted upload extensions to decoder kinds and to the container
signatures the validator expects. Reused across views, the validator and the
decoders.
"""
from pathlib import PurePosixPath

KIND_TEXT = 'text'
KIND_CSV = 'csv'
KIND_SPREADSHEET = 'spreadsheet'
KIND_WORD = 'word'
KIND_XML = 'xml'

DECODER_KINDS = {
    'txt': KIND_TEXT,
    'csv': KIND_CSV,
    'xlsx': KIND_SPREADSHEET,
    'xls': KIND_SPREADSHEET,
    'docx': KIND_WORD,
    'doc': KIND_WORD,
    'xml': KIND_XML,
}

SUPPORTED_EXTENSIONS = tuple(f'.{ext}' for ext in DECODER_KINDS)

ZIP_SIGNATURE = b'PK\x03\x04'
OLE2_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'

# Text-like formats have no signature and are scanned for active content instead.
FILE_SIGNATURES = {
    'docx': ZIP_SIGNATURE,
    'xlsx': ZIP_SIGNATURE,
    'doc': OLE2_SIGNATURE,
    'xls': OLE2_SIGNATURE,
}

TEXT_LIKE = ('txt', 'csv', 'xml')

def extension_of(filename: str) -> str:
    """Lower-case extension without the dot, '' when there is none."""
    return PurePosixPath(filename or '').suffix.lstrip('.').lower()


def is_supported(filename: str) -> bool:
    return extension_of(filename) in DECODER_KINDS


def decoder_kind_for(ext: str):
    return DECODER_KINDS.get((ext or '').lstrip('.').lower())


def stem_of(filename: str) -> str:
    """Filename with its last extension stripped."""
    name = filename or ''
    head, dot, tail = name.rpartition('.')
    if dot and head and tail and '/' not in tail:
        return head
    return name


def html_filename_for(filename: str) -> str:
    return f'{stem_of(filename)}.html'
