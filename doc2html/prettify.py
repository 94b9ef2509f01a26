"""Whitespace-only re-indentation of HTML fragments.

The printer is purely textual: it never parses the markup, never changes what
is inside a tag, and only moves the whitespace between tags. Running it on its
own output returns that output unchanged.

``<pre>`` elements are stashed before formatting and put back verbatim, so the
only thing that changes for them is the indentation of the line they start on.
"""
import re

BLOCK_TAGS = (
    'div', 'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'ul', 'ol', 'li', 'table', 'thead', 'tbody', 'tr', 'th', 'td',
    'section', 'article', 'header', 'footer', 'nav', 'aside', 'main',
    'blockquote', 'pre', 'form', 'fieldset',
)

VOID_TAGS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'source', 'track', 'wbr',
})

DEFAULT_INDENT_UNIT = '    '

# Marker characters are drawn from the private use area and must not occur in
# the input. A synthetic break, unlike a real newline, never yields a blank line.
_MARKER_CANDIDATES = range(0xE000, 0xF900)

_TAG_NAMES = '|'.join(BLOCK_TAGS)
_OPEN_BLOCK_RE = re.compile(rf'<(?:{_TAG_NAMES})(?=[\s/>])[^>]*>', re.IGNORECASE)
_CLOSE_BLOCK_RE = re.compile(rf'</(?:{_TAG_NAMES})\s*>', re.IGNORECASE)
_BR_RE = re.compile(r'<br\s*/?>', re.IGNORECASE)
_PRE_RE = re.compile(r'<pre(?=[\s>])[^>]*>.*?</pre\s*>', re.IGNORECASE | re.DOTALL)

_LONE_CLOSE_RE = re.compile(r'^</([a-zA-Z][\w:-]*)\s*>$')
_LONE_OPEN_RE = re.compile(r'^<([a-zA-Z][\w:-]*)(?:\s[^>]*)?>$')


def prettify_html(fragment: str, base_indent: str = '', indent_unit: str = DEFAULT_INDENT_UNIT) -> str:
    if not fragment:
        return ''

    text = fragment.replace('\r\n', '\n').replace('\r', '\n')
    brk, stash_mark = _free_markers(text, 2)
    stash_re = re.compile(rf'{stash_mark}(\d+){stash_mark}')
    stashed = []

    def _stash(match):
        stashed.append(match.group(0))
        return f'{brk}{stash_mark}{len(stashed) - 1}{stash_mark}{brk}'

    text = _PRE_RE.sub(_stash, text)
    text = _OPEN_BLOCK_RE.sub(lambda m: brk + m.group(0), text)
    text = _CLOSE_BLOCK_RE.sub(lambda m: m.group(0) + brk, text)
    text = _BR_RE.sub(lambda m: m.group(0) + brk, text)

    lines = _collapse_blank_lines(_split_lines(text, brk))
    indented = _reindent(lines, base_indent, indent_unit)

    result = '\n'.join(indented)
    if stashed:
        result = stash_re.sub(lambda m: stashed[int(m.group(1))], result)
    return result


def _free_markers(text, count):
    markers = []
    for code in _MARKER_CANDIDATES:
        char = chr(code)
        if char not in text:
            markers.append(char)
            if len(markers) == count:
                return markers
    raise ValueError('no free marker character for this fragment')


def _split_lines(text, brk):
    lines = []
    for physical in text.split('\n'):
        if not physical.strip():
            lines.append('')
            continue
        for piece in physical.split(brk):
            piece = piece.strip()
            if piece:
                lines.append(piece)
    return lines


def _collapse_blank_lines(lines):
    out = []
    for line in lines:
        if not line and (not out or not out[-1]):
            continue
        out.append(line)
    while out and not out[-1]:
        out.pop()
    return out


def _reindent(lines, base_indent, indent_unit):
    depth = 0
    out = []
    for line in lines:
        if not line:
            out.append('')
            continue
        if _LONE_CLOSE_RE.match(line):
            depth = max(0, depth - 1)
            out.append(base_indent + indent_unit * depth + line)
            continue
        out.append(base_indent + indent_unit * depth + line)
        if _opens_element(line):
            depth += 1
    return out


def _opens_element(line):
    match = _LONE_OPEN_RE.match(line)
    if not match:
        return False
    if line.endswith('/>'):
        return False
    return match.group(1).lower() not in VOID_TAGS
