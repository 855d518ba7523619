"""Comment engine: add, remove and toggle comments per lexer.

Line comments are inserted before the first non-whitespace character, so
commenting and then uncommenting a line gives back the same bytes. Toggled
comments carry a ``~`` mark so they can be told apart from comments the
user wrote.
"""

import logging
from enum import Enum

from .buffer import Buffer, leading_whitespace
from .lexers import CommentStyle, LexerInfo
from .prefs import DEFAULT_SCAN_DISTANCE, TOGGLE_MARK

logger = logging.getLogger(__name__)


class CommentAction(str, Enum):
    """What a toggle did to a line."""

    COMMENTED = "commented"
    UNCOMMENTED = "uncommented"
    UNCHANGED = "unchanged"


def comment_markers(lexer: LexerInfo) -> tuple[str, str | None] | None:
    """Opener and closer used for single-line commenting.

    Lexers with both styles comment lines with their line marker.
    """
    match lexer.comment_style:
        case CommentStyle.LINE | CommentStyle.BOTH:
            return lexer.line_comment, None
        case CommentStyle.BLOCK:
            return lexer.block_comment
        case CommentStyle.NONE:
            return None


def comment(
    buffer: Buffer,
    line: int,
    lexer: LexerInfo,
    allow_empty: bool = False,
    toggle: bool = False,
) -> bool:
    """Comment out line. Returns True if the line was changed."""
    markers = comment_markers(lexer)
    if markers is None:
        return False
    co, cc = markers

    text = buffer.line_text(line)
    indent = leading_whitespace(text)
    pos = buffer.line_start(line) + len(indent)

    if not text.strip():
        if not allow_empty:
            return False
        mark = co + TOGGLE_MARK.rstrip() if toggle else co
        buffer.insert(pos, mark + (cc or ""))
        return True

    if cc:
        buffer.insert(buffer.line_end(line), " " + cc)
    buffer.insert(pos, co + (TOGGLE_MARK if toggle else " "))
    return True


def uncomment(
    buffer: Buffer,
    line: int,
    lexer: LexerInfo,
    toggle: bool = False,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> int:
    """Remove one comment marker from the start of line.

    With ``toggle`` only comments carrying the toggle mark are removed. A
    block opener whose closer is not on the same line has its closer
    searched for on the following lines.

    Returns:
        Number of markers removed: 0, 1 (opener only) or 2 (opener and closer)
    """
    text = buffer.line_text(line)
    indent = leading_whitespace(text)
    body = text[len(indent) :]
    pos = buffer.line_start(line) + len(indent)

    block = lexer.block_comment
    if block and body.startswith(block[0]):
        return _uncomment_block(buffer, line, pos, block, max_distance)

    co = lexer.line_comment
    if not co or not body.startswith(co):
        return 0

    rest = body[len(co) :]
    remove = len(co)
    if rest.startswith(TOGGLE_MARK):
        remove += len(TOGGLE_MARK)
    elif rest.startswith(TOGGLE_MARK.rstrip()):
        remove += len(TOGGLE_MARK.rstrip())
    elif toggle:
        return 0
    elif rest.startswith(" "):
        remove += 1

    buffer.delete(pos, pos + remove)
    return 1


def _uncomment_block(
    buffer: Buffer,
    line: int,
    pos: int,
    block: tuple[str, str],
    max_distance: int,
) -> int:
    co, cc = block
    remove_open = len(co)
    if buffer.char_at(pos + remove_open) == " ":
        remove_open += 1

    search_from = pos + len(co)
    limit = min(buffer.length(), buffer.line_end(line) + max_distance)
    found = buffer.text_range(search_from, limit).find(cc)
    if found == -1:
        logger.debug(f"No closer for block comment on line {line}")
        buffer.delete(pos, pos + remove_open)
        return 1

    close = search_from + found
    close_start = close
    close_line = buffer.line_of(close)
    content_start = buffer.line_start(close_line) + len(leading_whitespace(buffer.line_text(close_line)))
    if buffer.char_at(close - 1) == " " and close - 1 >= max(content_start, pos + remove_open):
        close_start -= 1

    # Closer first so the opener position stays valid
    buffer.delete(close_start, close + len(cc))
    buffer.delete(pos, pos + remove_open)
    return 2


def toggle_comment(buffer: Buffer, line: int, lexer: LexerInfo) -> CommentAction:
    """Comment line with the toggle mark, or remove a toggled comment."""
    markers = comment_markers(lexer)
    if markers is None:
        return CommentAction.UNCHANGED
    co, cc = markers
    body = buffer.line_text(line).lstrip(" \t")

    if cc is None:
        if body.startswith(co + TOGGLE_MARK.rstrip()):
            removed = uncomment(buffer, line, lexer, toggle=True)
            return CommentAction.UNCOMMENTED if removed else CommentAction.UNCHANGED
        changed = comment(buffer, line, lexer, toggle=True)
        return CommentAction.COMMENTED if changed else CommentAction.UNCHANGED

    if body.startswith(co):
        removed = uncomment(buffer, line, lexer)
        return CommentAction.UNCOMMENTED if removed else CommentAction.UNCHANGED
    changed = comment(buffer, line, lexer)
    return CommentAction.COMMENTED if changed else CommentAction.UNCHANGED


def comment_block(buffer: Buffer, first: int, last: int, lexer: LexerInfo) -> bool:
    """Wrap lines first..last in one block comment pair.

    Leading and trailing blank lines stay outside the comment, blank lines
    in between are left as they are.
    """
    block = lexer.block_comment
    if block is None:
        return False
    co, cc = block

    nonblank = [line for line in range(first, last + 1) if buffer.line_text(line).strip()]
    if not nonblank:
        return False
    top, bottom = nonblank[0], nonblank[-1]

    buffer.insert(buffer.line_end(bottom), " " + cc)
    top_text = buffer.line_text(top)
    buffer.insert(buffer.line_start(top) + len(leading_whitespace(top_text)), co + " ")
    return True


def insert_multiline_comment(buffer: Buffer, lexer: LexerInfo, line: int | None = None) -> bool:
    """Insert an empty multi-line comment above line (default: cursor line).

    The cursor is left on the comment's middle line.
    """
    if line is None:
        line = buffer.line_of(buffer.cursor)
    indent = leading_whitespace(buffer.line_text(line))

    match lexer.comment_style:
        case CommentStyle.BLOCK | CommentStyle.BOTH if lexer.block_comment == ("/*", "*/"):
            lines = ["/*", " * ", " */"]
        case CommentStyle.BLOCK | CommentStyle.BOTH:
            co, cc = lexer.block_comment
            lines = [co, "", cc]
        case CommentStyle.LINE:
            lines = [lexer.line_comment + " "] * 3
        case CommentStyle.NONE:
            return False

    start = buffer.line_start(line)
    eol = buffer.eol_mode.chars
    text = "".join(indent + part + eol for part in lines)
    buffer.insert(start, text)
    middle = start + len(indent + lines[0] + eol) + len(indent + lines[1])
    buffer.set_cursor(middle)
    return True
