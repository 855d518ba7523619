"""Indentation engine.

Computes the indent string for a newly opened line and re-indents lines on
request. All calculations are local: the previous non-blank line, the
enclosing brace, and the token kinds reported by the buffer.
"""

import logging
import re
from dataclasses import dataclass

from .braces import CLOSERS, OPENERS, PAIRS, find_enclosing_opener, find_match
from .buffer import Buffer, indent_columns, leading_whitespace
from .lexers import CommentStyle, LexerInfo, TokenKind
from .lineops import strip_line_trailing_spaces
from .prefs import DEFAULT_SCAN_DISTANCE, IndentMode, IndentPrefs

logger = logging.getLogger(__name__)

_LIST_ITEM_RE = re.compile(r"(?:(?P<bullet>[-*+])|(?P<number>\d+)(?P<punct>[.)]))(?P<gap>[ \t]+)\S")


@dataclass(frozen=True)
class IndentStyle:
    """Resolved indentation settings for one editor."""

    width: int = 4
    tab_width: int = 8
    use_tabs: bool = True

    @classmethod
    def from_prefs(
        cls,
        prefs: IndentPrefs,
        width: int | None = None,
        use_tabs: bool | None = None,
    ) -> "IndentStyle":
        """Build a style from the defaults, applying editor-local overrides."""
        return cls(
            width=width if width is not None else prefs.width,
            tab_width=prefs.effective_tab_width,
            use_tabs=use_tabs if use_tabs is not None else prefs.use_tabs,
        )

    @property
    def unit(self) -> str:
        return self.render(self.width)

    def render(self, columns: int) -> str:
        """Whitespace that fills columns, using tabs where allowed."""
        columns = max(0, columns)
        if self.use_tabs:
            tabs, spaces = divmod(columns, self.tab_width)
            return "\t" * tabs + " " * spaces
        return " " * columns


def previous_nonblank_line(buffer: Buffer, line: int) -> int | None:
    """Nearest line above line that contains non-whitespace text."""
    for candidate in range(line - 1, -1, -1):
        if buffer.line_text(candidate).strip():
            return candidate
    return None


def continuation_marker(
    buffer: Buffer,
    line: int,
    lexer: LexerInfo,
    continue_comments: bool = True,
) -> str | None:
    """Marker the next line should repeat, if line starts one.

    Comment markers continue line comments and C-style block comments. List
    bullets and numbered items continue in plain text.
    """
    text = buffer.line_text(line)
    stripped = text.lstrip(" \t")
    if not stripped:
        return None
    first = buffer.line_start(line) + len(text) - len(stripped)
    in_comment = buffer.token_kind_at(first) == TokenKind.COMMENT

    if continue_comments and in_comment:
        block = lexer.block_comment
        if block == ("/*", "*/"):
            if stripped.rstrip().endswith("*/"):
                return None
            if stripped.startswith("/*"):
                return " * "
            if stripped.startswith("*"):
                return "* "
        marker = lexer.line_comment
        if marker and stripped.startswith(marker):
            rest = stripped[len(marker) :]
            return marker + leading_whitespace(rest)

    if lexer.comment_style == CommentStyle.NONE and not lexer.xml_like:
        m = _LIST_ITEM_RE.match(stripped)
        if m:
            if m.group("bullet"):
                return m.group("bullet") + m.group("gap")
            number = int(m.group("number")) + 1
            return f"{number}{m.group('punct')}{m.group('gap')}"

    return None


def _last_code_char(buffer: Buffer, line: int) -> str:
    start = buffer.line_start(line)
    pos = buffer.line_end(line) - 1
    while pos >= start:
        ch = buffer.char_at(pos)
        if ch not in " \t" and buffer.token_kind_at(pos) == TokenKind.CODE:
            return ch
        pos -= 1
    return ""


def _current_chars_indent(
    buffer: Buffer,
    line: int,
    prev: int,
    style: IndentStyle,
    lexer: LexerInfo,
    continue_comments: bool,
) -> str:
    base = leading_whitespace(buffer.line_text(prev))
    if prev == line - 1:
        marker = continuation_marker(buffer, prev, lexer, continue_comments)
        if marker is not None:
            return base + marker

    ch = _last_code_char(buffer, prev)
    if ch and ch in OPENERS + lexer.indent_openers:
        return style.render(indent_columns(base, style.tab_width) + style.width)
    return base


def _match_braces_indent(
    buffer: Buffer,
    line: int,
    prev: int,
    style: IndentStyle,
    lexer: LexerInfo,
    continue_comments: bool,
    max_distance: int,
) -> str:
    if prev == line - 1 and continuation_marker(buffer, prev, lexer, continue_comments) is not None:
        return _current_chars_indent(buffer, line, prev, style, lexer, continue_comments)

    opener = find_enclosing_opener(buffer, buffer.line_start(line), max_distance=max_distance)
    if opener is None:
        return _current_chars_indent(buffer, line, prev, style, lexer, continue_comments)

    opener_columns = buffer.line_indent(buffer.line_of(opener))
    first = buffer.line_text(line).lstrip(" \t")[:1]
    if first and first == PAIRS[buffer.char_at(opener)]:
        return style.render(opener_columns)
    return style.render(opener_columns + style.width)


def compute_indent(
    buffer: Buffer,
    line: int,
    mode: IndentMode,
    style: IndentStyle,
    lexer: LexerInfo | None = None,
    *,
    continue_comments: bool = True,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> str:
    """Indent string for line under the given mode.

    The line's own text is only consulted by the brace-aware mode, to
    dedent a line that starts with the matching closer.
    """
    lexer = lexer or buffer.lexer
    prev = previous_nonblank_line(buffer, line) if line > 0 else None

    match mode:
        case IndentMode.NONE:
            return ""
        case _ if prev is None:
            return ""
        case IndentMode.BASIC:
            return leading_whitespace(buffer.line_text(prev))
        case IndentMode.CURRENT_CHARS:
            return _current_chars_indent(buffer, line, prev, style, lexer, continue_comments)
        case IndentMode.MATCH_BRACES:
            return _match_braces_indent(
                buffer, line, prev, style, lexer, continue_comments, max_distance
            )


def apply_indent(buffer: Buffer, line: int, indent: str) -> None:
    """Replace the leading whitespace of line with indent.

    A cursor inside the old indentation ends up after the new one.
    """
    start = buffer.line_start(line)
    old = leading_whitespace(buffer.line_text(line))
    cursor = buffer.cursor
    if old != indent:
        buffer.replace_range(start, start + len(old), indent)
    if start <= cursor <= start + len(old):
        buffer.set_cursor(start + len(indent))


def on_new_line(
    buffer: Buffer,
    line: int,
    mode: IndentMode,
    style: IndentStyle,
    lexer: LexerInfo | None = None,
    *,
    newline_strip: bool = False,
    continue_comments: bool = True,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> str | None:
    """Handle a newline that opened line: strip the line above, then indent.

    Returns the indent applied, or None when auto-indentation is off.
    """
    if newline_strip and line > 0:
        strip_line_trailing_spaces(buffer, line - 1)
    if mode == IndentMode.NONE:
        return None

    indent = compute_indent(
        buffer,
        line,
        mode,
        style,
        lexer,
        continue_comments=continue_comments,
        max_distance=max_distance,
    )
    apply_indent(buffer, line, indent)
    return indent


def close_block(
    buffer: Buffer,
    pos: int,
    style: IndentStyle,
    *,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> str | None:
    """Dedent a line holding only the closer at pos to its opener's line.

    Returns the new indent, or None when nothing was changed.
    """
    ch = buffer.char_at(pos)
    if not ch or ch not in CLOSERS:
        return None
    line = buffer.line_of(pos)
    if buffer.line_text(line).strip() != ch:
        return None

    opener = find_match(buffer, pos, max_distance=max_distance)
    if opener is None:
        return None

    indent = style.render(buffer.line_indent(buffer.line_of(opener)))
    if leading_whitespace(buffer.line_text(line)) == indent:
        return None
    apply_indent(buffer, line, indent)
    return indent


def smart_line_indentation(
    buffer: Buffer,
    first: int,
    last: int,
    mode: IndentMode,
    style: IndentStyle,
    lexer: LexerInfo | None = None,
) -> int:
    """Re-indent lines first..last as if each had just been opened.

    Blank lines are skipped. Returns the number of lines changed.
    """
    if mode == IndentMode.NONE:
        mode = IndentMode.BASIC

    changed = 0
    for line in range(first, last + 1):
        text = buffer.line_text(line)
        if not text.strip():
            continue
        indent = compute_indent(buffer, line, mode, style, lexer, continue_comments=False)
        if leading_whitespace(text) != indent:
            apply_indent(buffer, line, indent)
            changed += 1
    return changed


def indentation_by_one_space(
    buffer: Buffer,
    first: int,
    last: int,
    decrease: bool,
    style: IndentStyle,
) -> None:
    """Shift the indentation of lines first..last by one column."""
    for line in range(first, last + 1):
        text = buffer.line_text(line)
        if not text.strip():
            continue
        columns = buffer.line_indent(line)
        if decrease and columns == 0:
            continue
        columns += -1 if decrease else 1
        apply_indent(buffer, line, style.render(columns))


def insert_alternative_whitespace(buffer: Buffer, style: IndentStyle) -> str:
    """Insert a tab when spaces are in use, or spaces up to the next tab stop.

    Replaces the selection. Returns the inserted text.
    """
    start, end = buffer.selection()
    if style.use_tabs:
        line_start = buffer.line_start(buffer.line_of(start))
        column = indent_columns(buffer.text_range(line_start, start), style.tab_width, whole=True)
        text = " " * (style.tab_width - column % style.tab_width)
    else:
        text = "\t"
    buffer.replace_range(start, end, text)
    buffer.set_cursor(start + len(text))
    return text


def smart_home_position(buffer: Buffer, pos: int, smart: bool = True) -> int:
    """Where Home moves the cursor.

    Smart home goes to the first non-whitespace character, or to the line
    start when already there.
    """
    line = buffer.line_of(pos)
    start = buffer.line_start(line)
    if not smart:
        return start
    text = buffer.line_text(line)
    first = start + len(leading_whitespace(text))
    if pos == first or first == buffer.line_end(line):
        return start
    return first


def detect_use_tabs(buffer: Buffer) -> bool | None:
    """Guess whether the buffer indents with tabs.

    Returns None when there is no clear winner.
    """
    tabs = spaces = 0
    for line in range(buffer.line_count()):
        text = buffer.line_text(line)
        if text.startswith("\t"):
            tabs += 1
        elif text.startswith("  ") and text.strip():
            spaces += 1

    if tabs == spaces:
        return None
    result = tabs > spaces
    logger.debug(f"Detected indentation with {'tabs' if result else 'spaces'} ({tabs} vs {spaces})")
    return result
