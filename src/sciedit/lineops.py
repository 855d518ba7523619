"""Whitespace and line normalisation commands."""

import logging
import re
from typing import Callable

from .buffer import EOL_RE, Buffer, EolMode, indent_columns, leading_whitespace, shift_position

logger = logging.getLogger(__name__)

_COLOR_PREFIXES = ("0x", "0X")
_TRAILING_RE = re.compile(r"[ \t]+$")


def replace_tabs(buffer: Buffer, tab_width: int) -> int:
    """Expand every tab to spaces up to the next tab stop.

    Returns the number of lines changed.
    """
    changed = _rewrite_lines(buffer, 0, buffer.line_count() - 1, lambda text: text.expandtabs(tab_width))
    if changed:
        logger.debug(f"Replaced tabs on {changed} lines")
    return changed


def replace_spaces(buffer: Buffer, tab_width: int) -> int:
    """Convert leading runs of spaces that fill a tab stop into tabs.

    Returns the number of lines changed.
    """

    def convert(text: str) -> str:
        indent = leading_whitespace(text)
        if " " * tab_width not in indent and not (" " in indent and "\t" in indent):
            return text

        result = []
        column = 0
        pending = 0  # Spaces since the last tab stop
        for ch in indent:
            if ch == "\t":
                result.append("\t")
                column += tab_width - column % tab_width
                pending = 0
                continue
            column += 1
            pending += 1
            if column % tab_width == 0:
                result.append("\t")
                pending = 0
        result.append(" " * pending)
        return "".join(result) + text[len(indent) :]

    changed = _rewrite_lines(buffer, 0, buffer.line_count() - 1, convert)
    if changed:
        logger.debug(f"Replaced spaces on {changed} lines")
    return changed


def strip_line_trailing_spaces(buffer: Buffer, line: int) -> bool:
    """Remove trailing spaces and tabs from line."""
    text = buffer.line_text(line)
    m = _TRAILING_RE.search(text)
    if not m:
        return False
    start = buffer.line_start(line)
    buffer.delete(start + m.start(), start + len(text))
    return True


def strip_trailing_spaces(buffer: Buffer, first: int | None = None, last: int | None = None) -> int:
    """Strip trailing whitespace from a line range, or the whole buffer.

    Returns the number of lines changed.
    """
    first = 0 if first is None else first
    last = buffer.line_count() - 1 if last is None else last
    return _rewrite_lines(buffer, first, last, lambda text: _TRAILING_RE.sub("", text))


def _rewrite_lines(buffer: Buffer, first: int, last: int, transform: Callable[[str], str]) -> int:
    """Run transform over each line of first..last and apply the result as one edit.

    Line endings are kept, so line numbers do not move. The cursor and
    anchor keep their line and are shifted within it as if each line had
    been edited on its own. Returns the number of lines transform changed.
    """
    if last < first:
        return 0
    start = buffer.line_start(first)
    end = buffer.line_end(last)
    # Split keeps the separators at the odd indexes
    pieces = EOL_RE.split(buffer.text_range(start, end))

    edits: dict[int, tuple[str, str]] = {}
    for i in range(0, len(pieces), 2):
        new = transform(pieces[i])
        if new != pieces[i]:
            edits[first + i // 2] = (pieces[i], new)
            pieces[i] = new
    if not edits:
        return 0

    anchor = _line_column(buffer, buffer.anchor)
    cursor = _line_column(buffer, buffer.cursor)
    buffer.replace_range(start, end, "".join(pieces))
    buffer.set_selection(_restore_position(buffer, anchor, edits), _restore_position(buffer, cursor, edits))
    return len(edits)


def _line_column(buffer: Buffer, pos: int) -> tuple[int, int]:
    line = buffer.line_of(pos)
    return line, pos - buffer.line_start(line)


def _restore_position(buffer: Buffer, where: tuple[int, int], edits: dict[int, tuple[str, str]]) -> int:
    line, column = where
    if line in edits:
        old, new = edits[line]
        prefix = 0
        limit = min(len(old), len(new))
        while prefix < limit and old[prefix] == new[prefix]:
            prefix += 1
        suffix = 0
        while suffix < limit - prefix and old[-1 - suffix] == new[-1 - suffix]:
            suffix += 1
        column = shift_position(column, prefix, len(old) - prefix - suffix, len(new) - prefix - suffix)
    return buffer.line_start(line) + min(column, len(buffer.line_text(line)))


def ensure_final_newline(buffer: Buffer, eol_mode: EolMode) -> bool:
    """Append an EOL when the last line is not terminated.

    Returns True if text was added.
    """
    length = buffer.length()
    if length == 0:
        return False
    last = buffer.char_at(length - 1)
    if last in ("\n", "\r"):
        return False
    buffer.insert(length, eol_mode.chars)
    return True


def insert_color(buffer: Buffer, color: str) -> None:
    """Insert a colour literal such as ``#FF8000``.

    A selected colour value is replaced, keeping its ``0x`` prefix when it
    has one. Without a selection the colour is inserted at the cursor.
    """
    start, end = buffer.selection()
    if start == end:
        buffer.insert(start, color)
        buffer.set_cursor(start + len(color))
        return

    selected = buffer.text_range(start, end)
    replacement = color
    if selected.startswith(_COLOR_PREFIXES):
        start += 2
        replacement = color.lstrip("#")
    elif buffer.char_at(start - 1) == "#" and not selected.startswith("#"):
        start -= 1

    buffer.replace_range(start, end, replacement)
    buffer.set_selection(start, start + len(replacement))


def break_line_if_needed(buffer: Buffer, pos: int, break_column: int, eol: str = "\n") -> int | None:
    """Wrap the line at pos when typing has passed break_column.

    The last space before the break column becomes a line break. Returns
    the newly opened line, or None when the line was left alone.
    """
    line = buffer.line_of(pos)
    start = buffer.line_start(line)
    if indent_columns(buffer.text_range(start, pos), buffer.tab_width, whole=True) <= break_column:
        return None

    # Never break at the character that was just typed
    limit = min(pos - 1, _position_of_column(buffer, start, break_column))
    indent_end = start + len(leading_whitespace(buffer.line_text(line)))
    for candidate in range(limit - 1, indent_end - 1, -1):
        if buffer.char_at(candidate) == " ":
            buffer.replace_range(candidate, candidate + 1, eol)
            logger.debug(f"Broke line {line} at column {candidate - start}")
            return line + 1
    return None


def _position_of_column(buffer: Buffer, start: int, column: int) -> int:
    end = buffer.line_end(buffer.line_of(start))
    col = 0
    pos = start
    while pos < end and col < column:
        if buffer.char_at(pos) == "\t":
            col += buffer.tab_width - col % buffer.tab_width
        else:
            col += 1
        pos += 1
    return pos
