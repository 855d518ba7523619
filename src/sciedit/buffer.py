"""Buffer accessor: the text storage the engines read and edit.

Engines only talk to the ``Buffer`` protocol. ``TextBuffer`` is the in-memory
implementation used by the terminal host and the tests; a GUI host wraps its
own widget behind the same methods.
"""

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from .lexers import NULL_LEXER, LexerInfo, TokenKind, tokenize

EOL_RE = re.compile(r"(\r\n|\r|\n)")

# (start, removed_length, inserted_length)
ModifyListener = Callable[[int, int, int], None]


class EolMode(str, Enum):
    """Line ending convention of a document."""

    CRLF = "crlf"
    CR = "cr"
    LF = "lf"

    @property
    def chars(self) -> str:
        return {"crlf": "\r\n", "cr": "\r", "lf": "\n"}[self.value]

    @property
    def display_name(self) -> str:
        return {"crlf": "CRLF", "cr": "CR", "lf": "LF"}[self.value]


class LongLineMode(str, Enum):
    """How the long line marker is drawn."""

    LINE = "line"
    BACKGROUND = "background"
    DISABLED = "disabled"


@dataclass
class CompletionPopup:
    """An auto-completion list currently shown by the host."""

    word_length: int
    items: list[str]
    height: int


class Buffer(Protocol):
    """Capabilities the editing engines need from a text buffer."""

    tab_width: int
    lexer: LexerInfo
    eol_mode: EolMode

    # Settings applied from preferences
    indent_width: int
    use_tabs: bool
    wrap: bool
    edge_column: int
    edge_mode: LongLineMode
    font: str

    def length(self) -> int: ...
    def text(self) -> str: ...
    def char_at(self, pos: int) -> str: ...
    def text_range(self, start: int, end: int) -> str: ...
    def line_count(self) -> int: ...
    def line_of(self, pos: int) -> int: ...
    def line_start(self, line: int) -> int: ...
    def line_end(self, line: int) -> int: ...
    def line_text(self, line: int) -> str: ...
    def line_indent(self, line: int) -> int: ...
    def replace_range(self, start: int, end: int, text: str) -> None: ...
    def insert(self, pos: int, text: str) -> None: ...
    def delete(self, start: int, end: int) -> None: ...
    @property
    def cursor(self) -> int: ...
    def set_cursor(self, pos: int) -> None: ...
    @property
    def anchor(self) -> int: ...
    def set_selection(self, anchor: int, pos: int) -> None: ...
    def selection(self) -> tuple[int, int]: ...
    def token_kind_at(self, pos: int) -> TokenKind: ...
    def add_modify_listener(self, listener: ModifyListener) -> None: ...
    def remove_modify_listener(self, listener: ModifyListener) -> None: ...

    # Display hooks
    def highlight_braces(self, first: int, second: int) -> None: ...
    def badlight_brace(self, pos: int) -> None: ...
    def clear_brace_highlight(self) -> None: ...
    def show_calltip(self, pos: int, text: str) -> None: ...
    def cancel_calltip(self) -> None: ...
    def calltip_active(self) -> bool: ...
    def show_autocomplete(self, word_length: int, items: list[str], height: int) -> None: ...
    def cancel_autocomplete(self) -> None: ...
    def show_user_list(self, items: list[str]) -> None: ...
    def set_indicator(self, start: int, end: int) -> None: ...
    def clear_indicators(self) -> None: ...
    def toggle_marker(self, line: int) -> bool: ...
    def set_arrow_marker(self, line: int | None) -> None: ...

    # View
    first_visible_line: int
    lines_on_screen: int
    folded: set[int]
    def scroll_to_line(self, line: int) -> None: ...


class TextBuffer:
    """In-memory buffer with a line index and per-character token kinds."""

    def __init__(
        self,
        text: str = "",
        *,
        lexer: LexerInfo = NULL_LEXER,
        tab_width: int = 8,
        eol_mode: EolMode = EolMode.LF,
    ) -> None:
        self._text = text
        self._kinds: list[TokenKind] | None = None
        self.lexer = lexer
        self.tab_width = tab_width
        self.indent_width = tab_width
        self.use_tabs = True
        self.eol_mode = eol_mode
        self.wrap = False
        self.edge_column = 72
        self.edge_mode = LongLineMode.LINE
        self.font = ""

        self._cursor = 0
        self._anchor = 0
        self._line_starts: list[int] | None = None
        self._line_ends: list[int] | None = None
        self._listeners: list[ModifyListener] = []

        # Display state driven by the engines
        self.brace_highlight: tuple[int, int] | None = None
        self.brace_badlight: int | None = None
        self.calltip: tuple[int, str] | None = None
        self.autocomplete: CompletionPopup | None = None
        self.user_list: list[str] | None = None
        self.indicators: list[tuple[int, int]] = []
        self.markers: set[int] = set()
        self.arrow_marker: int | None = None
        self.folded: set[int] = set()
        self.first_visible_line = 0
        self.lines_on_screen = 24

    # === Reading ===

    def length(self) -> int:
        return len(self._text)

    def text(self) -> str:
        return self._text

    def char_at(self, pos: int) -> str:
        """Character at pos, or empty string when out of range."""
        if 0 <= pos < len(self._text):
            return self._text[pos]
        return ""

    def text_range(self, start: int, end: int) -> str:
        start, end = self._clamp(start), self._clamp(end)
        return self._text[start:end]

    def line_count(self) -> int:
        return len(self._starts())

    def line_of(self, pos: int) -> int:
        return bisect_right(self._starts(), self._clamp(pos)) - 1

    def line_start(self, line: int) -> int:
        starts = self._starts()
        return starts[self._clamp_line(line)]

    def line_end(self, line: int) -> int:
        """Position of the end of line, before its EOL characters."""
        self._starts()
        return self._line_ends[self._clamp_line(line)]

    def line_text(self, line: int) -> str:
        return self._text[self.line_start(line) : self.line_end(line)]

    def line_indent(self, line: int) -> int:
        """Indentation of line in columns."""
        return indent_columns(self.line_text(line), self.tab_width)

    @property
    def lexer(self) -> LexerInfo:
        return self._lexer

    @lexer.setter
    def lexer(self, info: LexerInfo) -> None:
        self._lexer = info
        self._kinds = None

    def column_of(self, pos: int) -> int:
        line = self.line_of(pos)
        prefix = self._text[self.line_start(line) : self._clamp(pos)]
        return indent_columns(prefix, self.tab_width, whole=True)

    def token_kind_at(self, pos: int) -> TokenKind:
        if self._kinds is None:
            self._kinds = tokenize(self._text, self.lexer)
        if 0 <= pos < len(self._kinds):
            return self._kinds[pos]
        return TokenKind.CODE

    # === Editing ===

    def replace_range(self, start: int, end: int, text: str) -> None:
        start, end = self._clamp(start), self._clamp(end)
        if end < start:
            start, end = end, start
        removed = end - start
        if removed == 0 and not text:
            return

        remap = None
        if self.markers or self.folded or self.arrow_marker is not None:
            remap = self._line_remap(start, end, text)

        self._text = self._text[:start] + text + self._text[end:]
        self._line_starts = None
        self._line_ends = None
        self._kinds = None

        self._cursor = shift_position(self._cursor, start, removed, len(text))
        self._anchor = shift_position(self._anchor, start, removed, len(text))

        if remap is not None:
            self.markers = {remap(line) for line in self.markers}
            self.folded = {remap(line) for line in self.folded}
            if self.arrow_marker is not None:
                self.arrow_marker = remap(self.arrow_marker)

        for listener in list(self._listeners):
            listener(start, removed, len(text))

    def insert(self, pos: int, text: str) -> None:
        self.replace_range(pos, pos, text)

    def delete(self, start: int, end: int) -> None:
        self.replace_range(start, end, "")

    def set_text(self, text: str) -> None:
        self.replace_range(0, len(self._text), text)
        self._cursor = self._anchor = 0
        self.markers.clear()
        self.folded.clear()
        self.arrow_marker = None

    def add_modify_listener(self, listener: ModifyListener) -> None:
        self._listeners.append(listener)

    def remove_modify_listener(self, listener: ModifyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # === Cursor and selection ===

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_cursor(self, pos: int) -> None:
        self._cursor = self._anchor = self._clamp(pos)

    @property
    def anchor(self) -> int:
        return self._anchor

    def set_selection(self, anchor: int, pos: int) -> None:
        self._anchor = self._clamp(anchor)
        self._cursor = self._clamp(pos)

    def selection(self) -> tuple[int, int]:
        """Selection as an ordered (start, end) pair."""
        return min(self._anchor, self._cursor), max(self._anchor, self._cursor)

    def has_selection(self) -> bool:
        return self._anchor != self._cursor

    def selected_text(self) -> str:
        start, end = self.selection()
        return self._text[start:end]

    # === Display hooks ===

    def highlight_braces(self, first: int, second: int) -> None:
        self.brace_highlight = (first, second)
        self.brace_badlight = None

    def badlight_brace(self, pos: int) -> None:
        self.brace_highlight = None
        self.brace_badlight = pos

    def clear_brace_highlight(self) -> None:
        self.brace_highlight = None
        self.brace_badlight = None

    def show_calltip(self, pos: int, text: str) -> None:
        self.calltip = (pos, text)

    def cancel_calltip(self) -> None:
        self.calltip = None

    def calltip_active(self) -> bool:
        return self.calltip is not None

    def show_autocomplete(self, word_length: int, items: list[str], height: int) -> None:
        self.autocomplete = CompletionPopup(word_length, list(items), height)

    def cancel_autocomplete(self) -> None:
        self.autocomplete = None

    def show_user_list(self, items: list[str]) -> None:
        self.user_list = list(items)

    def set_indicator(self, start: int, end: int) -> None:
        self.indicators.append((self._clamp(start), self._clamp(end)))

    def clear_indicators(self) -> None:
        self.indicators.clear()

    def toggle_marker(self, line: int) -> bool:
        """Toggle the bookmark marker on line, returning the new state."""
        if line in self.markers:
            self.markers.discard(line)
            return False
        self.markers.add(line)
        return True

    def set_arrow_marker(self, line: int | None) -> None:
        """Mark line as a jump target; None removes the mark."""
        self.arrow_marker = line

    def scroll_to_line(self, line: int) -> None:
        self.first_visible_line = max(0, self._clamp_line(line))

    # === Internals ===

    def _clamp(self, pos: int) -> int:
        return max(0, min(pos, len(self._text)))

    def _clamp_line(self, line: int) -> int:
        return max(0, min(line, len(self._starts()) - 1))

    def _line_remap(self, start: int, end: int, text: str) -> Callable[[int], int] | None:
        """Line number mapping for replacing start..end with text, or None when no line moves."""
        first = self.line_of(start)
        last = self.line_of(end)
        added = len(EOL_RE.findall(text))
        delta = added - (last - first)
        if delta == 0:
            return None
        # Inserting at the very start of a line pushes that line down
        pushed = start == end and start == self.line_start(first)

        def remap(line: int) -> int:
            if line < first or (line == first and not pushed):
                return line
            if line > last or pushed:
                return line + delta
            # Lines removed by the edit collapse onto what remains of it
            return min(line, first + added)

        return remap

    def _starts(self) -> list[int]:
        if self._line_starts is None:
            starts = [0]
            ends = []
            for match in EOL_RE.finditer(self._text):
                ends.append(match.start())
                starts.append(match.end())
            ends.append(len(self._text))
            self._line_starts = starts
            self._line_ends = ends
        return self._line_starts


def shift_position(pos: int, start: int, removed: int, inserted: int) -> int:
    """Map pos across an edit that replaced removed chars at start."""
    if pos <= start:
        return pos
    if pos >= start + removed:
        return pos + inserted - removed
    return start + inserted


def indent_columns(text: str, tab_width: int, whole: bool = False) -> int:
    """Width in columns of the leading whitespace of text.

    With ``whole`` the entire string is measured instead.
    """
    col = 0
    for ch in text:
        if ch == "\t":
            col += tab_width - (col % tab_width)
        elif ch == " " or whole:
            col += 1
        else:
            break
    return col


def leading_whitespace(text: str) -> str:
    return text[: len(text) - len(text.lstrip(" \t"))]
