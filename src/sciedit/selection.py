"""Selection helpers and view positioning."""

from .buffer import Buffer
from .prefs import WORDCHARS
from .words import find_current_word, is_word_char, word_range


def select_word(buffer: Buffer, word_chars: str = WORDCHARS) -> bool:
    """Select the word at the cursor.

    Between words the next word on the line is selected instead. Returns
    False when there is nothing to select.
    """
    pos = buffer.cursor
    start, end = word_range(buffer, pos, word_chars)
    if start == end:
        line_end = buffer.line_end(buffer.line_of(pos))
        while pos < line_end and not is_word_char(buffer.char_at(pos), word_chars):
            pos += 1
        start, end = word_range(buffer, pos, word_chars)
        if start == end:
            return False
    buffer.set_selection(start, end)
    return True


def select_lines(buffer: Buffer, extra_line: bool = False) -> None:
    """Extend the selection to whole lines, including the final EOL.

    A selection that already covers whole lines is left alone unless
    extra_line is set, in which case it grows by the following line.
    """
    start, end = buffer.selection()
    if (
        not extra_line
        and start != end
        and start == buffer.line_start(buffer.line_of(start))
        and end == buffer.line_start(buffer.line_of(end))
    ):
        return

    first = buffer.line_of(start)
    last = buffer.line_of(end)
    buffer.set_selection(buffer.line_start(first), _start_of_next_line(buffer, last))


def select_paragraph(buffer: Buffer) -> bool:
    """Select the block of non-blank lines around the cursor."""
    line = buffer.line_of(buffer.cursor)
    if not buffer.line_text(line).strip():
        return False

    first = line
    while first > 0 and buffer.line_text(first - 1).strip():
        first -= 1
    last = line
    while last < buffer.line_count() - 1 and buffer.line_text(last + 1).strip():
        last += 1

    buffer.set_selection(buffer.line_start(first), _start_of_next_line(buffer, last))
    return True


def _start_of_next_line(buffer: Buffer, line: int) -> int:
    if line + 1 < buffer.line_count():
        return buffer.line_start(line + 1)
    return buffer.length()


def default_selection(
    buffer: Buffer,
    use_current_word: bool = True,
    word_chars: str = WORDCHARS,
) -> str | None:
    """Text a search dialog should start from.

    A single-line selection wins, then the word under the cursor.
    """
    start, end = buffer.selection()
    if start != end:
        if buffer.line_of(start) == buffer.line_of(end):
            return buffer.text_range(start, end)
        return None
    if use_current_word:
        return find_current_word(buffer, buffer.cursor, word_chars) or None
    return None


def line_in_view(buffer: Buffer, line: int) -> bool:
    first = buffer.first_visible_line
    return first <= line < first + buffer.lines_on_screen


def scroll_to_line(buffer: Buffer, line: int, percent: float = 0.5) -> None:
    """Scroll so that line sits percent of the way down the view.

    A negative percent only scrolls when the line is off screen, keeping
    the current position otherwise.
    """
    if percent < 0:
        if line_in_view(buffer, line):
            return
        percent = 0.5
    percent = min(percent, 1.0)
    offset = int((buffer.lines_on_screen - 1) * percent)
    buffer.scroll_to_line(max(0, line - offset))


def display_current_line(buffer: Buffer, percent: float = 0.5) -> None:
    """Bring the cursor line into view if it is not visible."""
    line = buffer.line_of(buffer.cursor)
    if not line_in_view(buffer, line):
        scroll_to_line(buffer, line, percent)


def goto_pos(buffer: Buffer, pos: int, mark: bool = False) -> bool:
    """Move the cursor to pos and make it visible.

    With mark, the target line gets the jump arrow marker.
    """
    if pos < 0:
        return False
    line = buffer.line_of(pos)
    if mark:
        buffer.set_arrow_marker(line)
    buffer.set_cursor(pos)
    display_current_line(buffer)
    return True
