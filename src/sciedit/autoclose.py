"""Automatic closing of XML tags and LaTeX environments."""

import logging
import re

from .buffer import Buffer, leading_whitespace
from .lexers import LexerInfo, TokenKind

logger = logging.getLogger(__name__)

# Tags HTML never closes
VOID_TAGS = frozenset(
    "area base br col embed hr img input link meta param source track wbr".split()
)

_OPEN_TAG_END_RE = re.compile(r"<([A-Za-z_][\w:.-]*)(?:\s[^<>]*)?>$", re.DOTALL)
_TAG_RE = re.compile(r"<(/?)([A-Za-z_][\w:.-]*)[^<>]*?(/?)>", re.DOTALL)
_BEGIN_RE = re.compile(r"\\begin\{([^{}]+)\}")

_TAG_LOOKBACK = 4096


def close_xml_tag(buffer: Buffer, pos: int, lexer: LexerInfo) -> str | None:
    """Insert the end tag after a start tag whose '>' was just typed.

    pos is the cursor, just after the '>'. The cursor does not move.
    Returns the closed tag name.
    """
    if not lexer.xml_like or buffer.char_at(pos - 1) != ">":
        return None
    if buffer.token_kind_at(pos - 1) != TokenKind.CODE:
        return None

    before = buffer.text_range(max(0, pos - _TAG_LOOKBACK), pos)
    open_at = before.rfind("<")
    if open_at == -1:
        return None
    m = _OPEN_TAG_END_RE.match(before[open_at:])
    if not m or before.endswith("/>"):
        return None

    name = m.group(1)
    if lexer.case_insensitive_tags and name.lower() in VOID_TAGS:
        return None

    buffer.insert(pos, f"</{name}>")
    buffer.set_cursor(pos)
    logger.debug(f"Closed tag <{name}>")
    return name


def complete_closing_tag(buffer: Buffer, pos: int, lexer: LexerInfo) -> str | None:
    """Finish ``</`` with the name of the innermost open tag.

    Returns the completed tag name.
    """
    if not lexer.xml_like or buffer.text_range(pos - 2, pos) != "</":
        return None
    if buffer.token_kind_at(pos - 1) != TokenKind.CODE:
        return None

    window_start = max(0, pos - 2 - _TAG_LOOKBACK)
    before = buffer.text_range(window_start, pos - 2)
    norm = str.lower if lexer.case_insensitive_tags else str

    stack: list[str] = []
    for m in _TAG_RE.finditer(before):
        if m.group(3) or buffer.token_kind_at(window_start + m.start()) != TokenKind.CODE:
            continue
        name = m.group(2)
        if lexer.case_insensitive_tags and name.lower() in VOID_TAGS:
            continue
        if not m.group(1):
            stack.append(name)
            continue
        # Pop up to the matching start tag, tolerating unclosed inner tags
        for i in range(len(stack) - 1, -1, -1):
            if norm(stack[i]) == norm(name):
                del stack[i:]
                break

    if not stack:
        return None
    name = stack[-1]
    buffer.insert(pos, name + ">")
    buffer.set_cursor(pos + len(name) + 1)
    return name


def auto_latex(buffer: Buffer, pos: int, lexer: LexerInfo) -> str | None:
    """Add ``\\end{env}`` after a line that opened ``\\begin{env}``.

    Called after a newline with the cursor at pos on the new line. The end
    line is inserted below the cursor line. Returns the environment name.
    """
    if not lexer.latex:
        return None
    line = buffer.line_of(pos)
    if line == 0:
        return None

    prev_text = buffer.line_text(line - 1)
    begins = list(_BEGIN_RE.finditer(prev_text))
    if not begins:
        return None
    env = begins[-1].group(1)
    end_marker = f"\\end{{{env}}}"
    if end_marker in prev_text[begins[-1].end() :]:
        return None

    indent = leading_whitespace(prev_text)
    if line + 1 < buffer.line_count():
        following = buffer.line_text(line + 1)
        if following.strip() == end_marker and leading_whitespace(following) == indent:
            return None

    cursor = buffer.cursor
    buffer.insert(buffer.line_end(line), buffer.eol_mode.chars + indent + end_marker)
    buffer.set_cursor(cursor)
    logger.debug(f"Closed LaTeX environment {env}")
    return env
