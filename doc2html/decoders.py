"""Format decoders: raw upload bytes -> (HTML fragment, CSS).

Every piece of user content is passed through ``django.utils.html.escape``
before it is put into markup, because fragments are later concatenated,
re-indented and rendered by a browser. Decoder failures raise ``DecodeError``
or ``EmptyInput``; they are deterministic in the input, so callers never retry.
"""
import datetime
import io
import logging
import re
from dataclasses import dataclass, field
from typing import List

import mammoth
import openpyxl
import xlrd
from django.utils.html import escape
from lxml import etree

from . import formats
from .errors import DecodeError, EmptyInput
from .security import validate_content

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    html: str
    css: str
    warnings: List[str] = field(default_factory=list)


def _esc(value) -> str:
    return str(escape(value))


def _read_text(data: bytes) -> str:
    text = data.decode('utf-8-sig', errors='replace')
    return text.replace('\r\n', '\n').replace('\r', '\n')


# --- plain text -------------------------------------------------------------

HEADING_MAX_LENGTH = 80

_BLANK_LINE_RE = re.compile(r'\n[ \t]*\n')
_BULLET_RE = re.compile(r'^[-*•]\s')
_NUMBERED_RE = re.compile(r'^\d+\.\s')

TEXT_CSS = """
p {
    margin-bottom: 1.2rem;
    line-height: 1.7;
    color: #374151;
    text-align: justify;
}
h1 {
    font-size: 2rem;
    font-weight: 700;
    color: #1f2937;
    margin: 2rem 0 1rem 0;
    border-bottom: 2px solid #e5e7eb;
    padding-bottom: 0.5rem;
}
h2 {
    font-size: 1.5rem;
    font-weight: 600;
    color: #374151;
    margin: 1.5rem 0 0.8rem 0;
}
ul, ol {
    margin: 1rem 0;
    padding-left: 2rem;
}
li {
    margin-bottom: 0.5rem;
    line-height: 1.6;
    color: #4b5563;
}
"""


def _is_title_case(line: str) -> bool:
    words = line.split()
    if len(words) < 2 or line.endswith('.'):
        return False
    alpha_words = [word for word in words if word[0].isalpha()]
    return bool(alpha_words) and all(word[0].isupper() for word in alpha_words)


def _is_heading(line: str) -> bool:
    if len(line) >= HEADING_MAX_LENGTH or not line.rstrip(':').strip():
        return False
    return line.endswith(':') or line.isupper() or _is_title_case(line)


def _is_list(lines) -> bool:
    if len(lines) < 2:
        return False
    return all(_BULLET_RE.match(line) or _NUMBERED_RE.match(line) for line in lines)


def _render_block(lines) -> str:
    if len(lines) == 1 and _is_heading(lines[0]):
        line = lines[0]
        level = 2 if line.endswith(':') else 1
        return f'<h{level}>{_esc(line.rstrip(":").strip())}</h{level}>'

    if _is_list(lines):
        tag = 'ol' if _NUMBERED_RE.match(lines[0]) else 'ul'
        items = []
        for line in lines:
            content = _NUMBERED_RE.sub('', _BULLET_RE.sub('', line, count=1), count=1)
            items.append(f'<li>{_esc(content)}</li>')
        return f'<{tag}>\n' + '\n'.join(items) + f'\n</{tag}>'

    return '<p>' + '<br>'.join(_esc(line) for line in lines) + '</p>'


def decode_text(data: bytes) -> ConversionResult:
    blocks = []
    for chunk in _BLANK_LINE_RE.split(_read_text(data)):
        lines = [line.strip() for line in chunk.split('\n')]
        lines = [line for line in lines if line]
        if lines:
            blocks.append(_render_block(lines))

    if not blocks:
        raise EmptyInput('The text file is empty')
    return ConversionResult(html='\n'.join(blocks), css=TEXT_CSS)


# --- tables (CSV and spreadsheets) -----------------------------------------

TABLE_CSS = """
table {
    width: 100%;
    border-collapse: collapse;
    margin: 1rem 0;
    box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
}
th, td {
    padding: 12px;
    text-align: left;
    border: 1px solid #e5e7eb;
}
th {
    background-color: #f9fafb;
    font-weight: 600;
    color: #374151;
}
tr:nth-child(even) {
    background-color: #f9fafb;
}
"""

SHEET_CSS = """
h2 {
    color: #1f2937;
    margin-bottom: 1rem;
    font-size: 1.5rem;
}
""" + TABLE_CSS


def render_table(rows) -> str:
    header, body = rows[0], rows[1:]
    parts = ['<table>', '<thead>', '<tr>']
    parts.extend(f'<th>{_esc(cell)}</th>' for cell in header)
    parts.extend(['</tr>', '</thead>', '<tbody>'])
    for row in body:
        parts.append('<tr>')
        parts.extend(f'<td>{_esc(cell)}</td>' for cell in row)
        parts.append('</tr>')
    parts.extend(['</tbody>', '</table>'])
    return '\n'.join(parts)


def decode_csv(data: bytes) -> ConversionResult:
    # Comma is the only separator; quoted fields are not interpreted.
    lines = [line for line in _read_text(data).split('\n') if line.strip()]
    if not lines:
        raise EmptyInput('The CSV file is empty')
    rows = [[cell.strip() for cell in line.split(',')] for line in lines]
    return ConversionResult(html=render_table(rows), css=TABLE_CSS)


def _cell_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def _normalize_rows(raw_rows):
    rows = []
    for raw in raw_rows:
        cells = [_cell_text(value) for value in raw]
        if any(cell.strip() for cell in cells):
            rows.append(cells)
    if not rows:
        return rows
    width = max(len(row) for row in rows)
    return [row + [''] * (width - len(row)) for row in rows]


def _read_xlsx(data: bytes):
    workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        if not workbook.worksheets:
            return '', []
        sheet = workbook.worksheets[0]
        return sheet.title, list(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_xls(data: bytes):
    book = xlrd.open_workbook(file_contents=data, on_demand=True)
    try:
        if book.nsheets == 0:
            return '', []
        sheet = book.sheet_by_index(0)
        raw_rows = []
        for index in range(sheet.nrows):
            row = []
            for cell in sheet.row(index):
                if cell.ctype == xlrd.XL_CELL_DATE:
                    row.append(xlrd.xldate_as_datetime(cell.value, book.datemode))
                elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                    row.append(bool(cell.value))
                elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
                    row.append(None)
                else:
                    row.append(cell.value)
            raw_rows.append(row)
        return sheet.name, raw_rows
    finally:
        book.release_resources()


def decode_spreadsheet(data: bytes, ext: str) -> ConversionResult:
    reader = _read_xls if ext == 'xls' else _read_xlsx
    try:
        sheet_name, raw_rows = reader(data)
    except Exception as exc:
        logger.warning('spreadsheet decode failed: %s', exc, exc_info=True)
        raise DecodeError('Error processing spreadsheet: the workbook could not be read') from exc

    rows = _normalize_rows(raw_rows)
    if not rows:
        raise EmptyInput('The spreadsheet is empty')

    html = f'<h2>Sheet: {_esc(sheet_name)}</h2>\n' + render_table(rows)
    return ConversionResult(html=html, css=SHEET_CSS)


# --- word processor ---------------------------------------------------------

WORD_CSS = """
p { margin-bottom: 1rem; line-height: 1.6; }
h1, h2, h3, h4, h5, h6 {
    margin-top: 2rem;
    margin-bottom: 1rem;
    color: #2563eb;
}
table {
    border-collapse: collapse;
    width: 100%;
    margin: 1rem 0;
}
th, td {
    border: 1px solid #ddd;
    padding: 8px;
    text-align: left;
}
th { background-color: #f3f4f6; }
"""


def decode_word(data: bytes) -> ConversionResult:
    try:
        result = mammoth.convert_to_html(io.BytesIO(data))
    except Exception as exc:
        logger.warning('word decode failed: %s', exc, exc_info=True)
        raise DecodeError('Error processing Word document: the document could not be read') from exc

    html = (result.value or '').strip()
    if not html:
        raise EmptyInput('The Word document has no content')
    warnings = [message.message for message in result.messages]
    return ConversionResult(html=html, css=WORD_CSS, warnings=warnings)


# --- XML --------------------------------------------------------------------

XML_CSS = """
.xml-container {
    background-color: #f8fafc;
    padding: 1rem;
    border-radius: 8px;
    border: 1px solid #e2e8f0;
}
.xml-container h2 {
    color: #1e40af;
    margin-bottom: 1rem;
}
.xml-content {
    background-color: #1f2937;
    color: #f9fafb;
    padding: 1rem;
    border-radius: 6px;
    overflow-x: auto;
    font-family: 'Monaco', 'Menlo', monospace;
    font-size: 14px;
    line-height: 1.4;
}
"""


def _xml_parser():
    return etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False, huge_tree=False)


def decode_xml(data: bytes) -> ConversionResult:
    if not data.strip():
        raise EmptyInput('The XML file is empty')
    try:
        etree.fromstring(data, parser=_xml_parser())
    except etree.XMLSyntaxError as exc:
        raise DecodeError(f'Error processing XML: document is not well-formed (line {exc.lineno})') from exc

    html = (
        '<div class="xml-container">\n'
        '<h2>XML content</h2>\n'
        f'<pre class="xml-content">{_esc(_read_text(data))}</pre>\n'
        '</div>'
    )
    return ConversionResult(html=html, css=XML_CSS)


# --- dispatch ---------------------------------------------------------------

def decode(data: bytes, ext: str) -> ConversionResult:
    ext = (ext or '').lstrip('.').lower()
    kind = formats.decoder_kind_for(ext)
    if kind == formats.KIND_TEXT:
        return decode_text(data)
    if kind == formats.KIND_CSV:
        return decode_csv(data)
    if kind == formats.KIND_SPREADSHEET:
        return decode_spreadsheet(data, ext)
    if kind == formats.KIND_WORD:
        return decode_word(data)
    if kind == formats.KIND_XML:
        return decode_xml(data)
    raise DecodeError(f'Unsupported file format: .{ext}' if ext else 'Unsupported file format')


def run_conversion(data: bytes, filename: str) -> ConversionResult:
    """Validate and decode one upload. Pure: the caller persists the result."""
    validate_content(data, filename)
    return decode(data, formats.extension_of(filename))
