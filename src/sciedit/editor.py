"""Editor, process-wide context and the editor commands.

``EditorContext`` holds the state every editor shares: preferences, the
snippet table, the hover info, the lexer table and the symbol provider. It
is written only from the event thread; engines read it.
"""

import logging
from dataclasses import dataclass, field

from . import autoclose, comments, folding, indent, lineops, selection
from .braces import BraceMatch, highlight_braces
from .buffer import Buffer, EolMode, TextBuffer, indent_columns, leading_whitespace
from .comments import CommentAction
from .completion import CompletionController, CompletionResult, StaticSymbolProvider, SymbolProvider
from .indent import IndentStyle
from .keybindings import EditorCommand, KeybindingManager
from .lexers import CommentStyle, LexerInfo, LexerTable
from .prefs import EditorPrefs, IndentMode
from .snippets import SnippetSession, SnippetTable, expand_snippet
from .words import find_current_word

logger = logging.getLogger(__name__)


@dataclass
class EditorInfo:
    """The word under the pointer and the position that produced it."""

    current_word: str = ""
    click_pos: int = -1

    def update(self, word: str, pos: int) -> None:
        self.current_word = word
        self.click_pos = pos

    def clear(self) -> None:
        self.current_word = ""
        self.click_pos = -1


@dataclass
class Document:
    """The parts of an open document the editor needs."""

    file_name: str | None = None
    lexer_id: str = "null"
    eol_mode: EolMode = EolMode.LF
    changed: bool = False
    editor: "Editor | None" = field(default=None, repr=False, compare=False)


@dataclass
class EditorContext:
    """Process-wide state passed to every editor."""

    prefs: EditorPrefs
    snippets: SnippetTable
    info: EditorInfo
    lexers: LexerTable
    provider: SymbolProvider
    keybindings: KeybindingManager
    completion: CompletionController

    def apply_prefs(self, prefs: EditorPrefs) -> None:
        """Swap in new preferences, e.g. after a reload."""
        self.prefs = prefs
        self.completion.prefs = prefs


def editor_init(
    prefs: EditorPrefs | None = None,
    snippets: SnippetTable | None = None,
    lexers: LexerTable | None = None,
    provider: SymbolProvider | None = None,
    keybindings: KeybindingManager | None = None,
) -> EditorContext:
    """Build the shared context once at startup."""
    prefs = prefs if prefs is not None else EditorPrefs()
    lexers = lexers if lexers is not None else LexerTable()
    provider = provider if provider is not None else StaticSymbolProvider()
    return EditorContext(
        prefs=prefs,
        snippets=snippets if snippets is not None else SnippetTable(),
        info=EditorInfo(),
        lexers=lexers,
        provider=provider,
        keybindings=keybindings if keybindings is not None else KeybindingManager(),
        completion=CompletionController(provider, lexers, prefs),
    )


def editor_finalize(ctx: EditorContext) -> None:
    """Release the shared state at shutdown."""
    ctx.snippets.clear()
    ctx.info.clear()


def editor_create(ctx: EditorContext, document: Document, buffer: Buffer | None = None) -> "Editor":
    """Create the editor for a document and apply preferences to its buffer."""
    editor = Editor(ctx, document, buffer if buffer is not None else TextBuffer())
    editor.apply_prefs()
    return editor


class Editor:
    """One editor per open document. Owns its buffer."""

    def __init__(self, ctx: EditorContext, document: Document, buffer: Buffer) -> None:
        self.ctx = ctx
        self.document = document
        self.buffer = buffer
        document.editor = self

        prefs = ctx.prefs
        self.line_wrapping = prefs.line_wrapping
        self.auto_indent = prefs.indentation.mode != IndentMode.NONE
        self.use_tabs = prefs.indentation.use_tabs
        self.line_breaking = False
        self.indent_width: int | None = None  # Local override of the preference
        self.snippet_session: SnippetSession | None = None
        self._scroll_percent = -1.0

    # === Settings ===

    @property
    def prefs(self) -> EditorPrefs:
        return self.ctx.prefs

    @property
    def lexer(self) -> LexerInfo:
        return self.ctx.lexers.get(self.document.lexer_id)

    @property
    def indent_style(self) -> IndentStyle:
        return IndentStyle.from_prefs(self.prefs.indentation, self.indent_width, self.use_tabs)

    @property
    def indent_mode(self) -> IndentMode:
        return self.prefs.indentation.mode if self.auto_indent else IndentMode.NONE

    def apply_prefs(self) -> None:
        """Push preferences and document settings into the buffer."""
        prefs = self.prefs
        buffer = self.buffer
        buffer.lexer = self.lexer
        buffer.eol_mode = self.document.eol_mode
        buffer.tab_width = prefs.indentation.effective_tab_width
        buffer.indent_width = self.indent_style.width
        buffer.wrap = self.line_wrapping
        buffer.edge_column = prefs.long_line_column
        buffer.edge_mode = prefs.long_line_type
        buffer.font = prefs.font

        if prefs.detect_tab_mode:
            detected = indent.detect_use_tabs(buffer)
            if detected is not None and detected != self.use_tabs:
                logger.debug(f"Detected {'tab' if detected else 'space'} indentation in {self.document.file_name}")
                self.use_tabs = detected
        buffer.use_tabs = self.use_tabs

    def set_indent_width(self, width: int | None) -> None:
        """Override the indent width for this editor; None restores the default."""
        self.indent_width = width
        self.buffer.indent_width = self.indent_style.width

    def set_use_tabs(self, use_tabs: bool) -> None:
        self.use_tabs = use_tabs
        self.buffer.use_tabs = use_tabs

    def set_line_wrapping(self, wrap: bool) -> None:
        self.line_wrapping = wrap
        self.buffer.wrap = wrap

    def set_font(self, font: str) -> None:
        self.buffer.font = font

    def set_scroll_percent(self, percent: float) -> None:
        """Request a scroll of the cursor line on the next paint."""
        self._scroll_percent = percent

    def consume_scroll_percent(self) -> float | None:
        """Apply and clear a pending scroll request. Called when painting."""
        if self._scroll_percent < 0:
            return None
        percent, self._scroll_percent = self._scroll_percent, -1.0
        selection.scroll_to_line(self.buffer, self.buffer.line_of(self.buffer.cursor), percent)
        return percent

    # === EOL ===

    def get_eol_char_name(self) -> str:
        return self.document.eol_mode.display_name

    def get_eol_char_len(self) -> int:
        return len(self.document.eol_mode.chars)

    def get_eol_char(self) -> str:
        return self.document.eol_mode.chars

    # === Comments ===

    def _selected_lines(self) -> tuple[int, int]:
        """First and last line touched by the selection.

        A selection ending at the start of a line does not include it.
        """
        start, end = self.buffer.selection()
        first = self.buffer.line_of(start)
        last = self.buffer.line_of(end)
        if last > first and end == self.buffer.line_start(last):
            last -= 1
        return first, last

    def _block_only(self) -> bool:
        return self.lexer.comment_style == CommentStyle.BLOCK

    def do_comment_toggle(self) -> int:
        """Toggle comments on the selected lines. Returns lines changed."""
        first, last = self._selected_lines()
        lexer = self.lexer

        if self._block_only() and last > first:
            nonblank = next((l for l in range(first, last + 1) if self.buffer.line_text(l).strip()), None)
            if nonblank is None:
                return 0
            if self.buffer.line_text(nonblank).lstrip().startswith(lexer.block_comment[0]):
                return 1 if comments.uncomment(self.buffer, nonblank, lexer) else 0
            return 1 if comments.comment_block(self.buffer, first, last, lexer) else 0

        changed = 0
        for line in range(first, last + 1):
            if comments.toggle_comment(self.buffer, line, lexer) != CommentAction.UNCHANGED:
                changed += 1
        return changed

    def do_comment(self, allow_empty: bool = False) -> int:
        """Comment the selected lines. Returns lines changed."""
        first, last = self._selected_lines()
        if self._block_only() and last > first:
            return 1 if comments.comment_block(self.buffer, first, last, self.lexer) else 0
        return sum(
            1 for line in range(first, last + 1) if comments.comment(self.buffer, line, self.lexer, allow_empty)
        )

    def do_uncomment(self) -> int:
        """Uncomment the selected lines. Returns the number of markers removed."""
        first, last = self._selected_lines()
        max_distance = self.prefs.brace_match_max_distance
        return sum(
            comments.uncomment(self.buffer, line, self.lexer, max_distance=max_distance)
            for line in range(first, last + 1)
        )

    def insert_multiline_comment(self) -> bool:
        return comments.insert_multiline_comment(self.buffer, self.lexer)

    # === Completion ===

    def auto_complete(self, force: bool = False) -> CompletionResult | None:
        if not force and not self.prefs.auto_complete_symbols:
            return None
        return self.ctx.completion.complete(self.buffer, self.buffer.cursor, force, self.document.lexer_id)

    def start_auto_complete(self, force: bool = False) -> bool:
        return self.auto_complete(force) is not None

    def calltip(self, pos: int | None = None) -> tuple[int, str] | None:
        pos = self.buffer.cursor if pos is None else pos
        return self.ctx.completion.calltip(self.buffer, pos, self.document.lexer_id)

    def show_calltip(self, pos: int | None = None) -> bool:
        return self.calltip(pos) is not None

    def show_macro_list(self) -> bool:
        return self.ctx.completion.show_macro_list(self.buffer, self.ctx.snippets, self.document.lexer_id)

    def find_current_word(self, pos: int | None = None) -> str:
        pos = self.buffer.cursor if pos is None else pos
        return find_current_word(self.buffer, pos, self.prefs.word_chars)

    # === Snippets ===

    def expand_snippet(self, whilst_editing: bool | None = None) -> SnippetSession | None:
        """Expand the snippet named before the cursor, starting a session."""
        if whilst_editing is None:
            whilst_editing = self.prefs.complete_snippets_whilst_editing
        session = expand_snippet(
            self.buffer,
            self.buffer.cursor,
            self.ctx.snippets,
            self.document.lexer_id,
            self.indent_style,
            self.prefs.word_chars,
            whilst_editing=whilst_editing,
        )
        if session is not None:
            self.end_snippet_session()
            self.snippet_session = session
            self.buffer.add_modify_listener(session.shift)
        return session

    def jump_to_next_tab_stop(self) -> int | None:
        """Move to the next stop of the active snippet, if the cursor is inside it."""
        session = self.snippet_session
        if session is None or not session.cycling or not session.contains(self.buffer.cursor):
            return None
        pos = session.next()
        self.buffer.set_cursor(pos)
        return pos

    def end_snippet_session(self) -> None:
        if self.snippet_session is not None:
            self.buffer.remove_modify_listener(self.snippet_session.shift)
            self.snippet_session = None

    def complete_snippet(self) -> bool:
        """Handle the snippet key: cycle tab stops, else expand a snippet.

        Returns False when neither applies, so the caller can insert a tab.
        """
        if self.jump_to_next_tab_stop() is not None:
            return True
        if not self.prefs.complete_snippets:
            return False
        return self.expand_snippet() is not None

    def insert_tab(self) -> str:
        """Insert indentation up to the next indent stop at the cursor."""
        style = self.indent_style
        start, end = self.buffer.selection()
        if style.use_tabs and style.width == style.tab_width:
            text = "\t"
        else:
            line_start = self.buffer.line_start(self.buffer.line_of(start))
            column = indent_columns(self.buffer.text_range(line_start, start), style.tab_width, whole=True)
            text = " " * (style.width - column % style.width)
        self.buffer.replace_range(start, end, text)
        self.buffer.set_cursor(start + len(text))
        return text

    # === Indentation ===

    def on_new_line(self, line: int) -> str | None:
        return indent.on_new_line(
            self.buffer,
            line,
            self.indent_mode,
            self.indent_style,
            self.lexer,
            newline_strip=self.prefs.newline_strip,
            continue_comments=self.prefs.auto_continue_multiline,
            max_distance=self.prefs.brace_match_max_distance,
        )

    def close_block(self, pos: int) -> str | None:
        """Dedent a sole closer at pos, in the modes that indent after openers."""
        if self.indent_mode not in (IndentMode.CURRENT_CHARS, IndentMode.MATCH_BRACES):
            return None
        return indent.close_block(
            self.buffer, pos, self.indent_style, max_distance=self.prefs.brace_match_max_distance
        )

    def smart_line_indentation(self) -> int:
        first, last = self._selected_lines()
        return indent.smart_line_indentation(
            self.buffer, first, last, self.indent_mode, self.indent_style, self.lexer
        )

    def indentation_by_one_space(self, decrease: bool) -> None:
        first, last = self._selected_lines()
        indent.indentation_by_one_space(self.buffer, first, last, decrease, self.indent_style)

    def insert_alternative_whitespace(self) -> str:
        return indent.insert_alternative_whitespace(self.buffer, self.indent_style)

    def smart_home(self) -> int:
        pos = indent.smart_home_position(self.buffer, self.buffer.cursor, self.prefs.smart_home_key)
        self.buffer.set_cursor(pos)
        return pos

    # === Auto-closing ===

    def auto_latex(self, pos: int | None = None) -> str | None:
        pos = self.buffer.cursor if pos is None else pos
        return autoclose.auto_latex(self.buffer, pos, self.lexer)

    def close_xml_tag(self, pos: int) -> str | None:
        if not self.prefs.auto_close_xml_tags:
            return None
        return autoclose.close_xml_tag(self.buffer, pos, self.lexer)

    def complete_closing_tag(self, pos: int) -> str | None:
        if not self.prefs.auto_close_xml_tags:
            return None
        return autoclose.complete_closing_tag(self.buffer, pos, self.lexer)

    def break_line_if_needed(self, pos: int) -> int | None:
        if not self.line_breaking:
            return None
        return lineops.break_line_if_needed(
            self.buffer, pos, self.prefs.line_break_column, self.get_eol_char()
        )

    # === Braces ===

    def highlight_braces(self, pos: int | None = None) -> BraceMatch:
        pos = self.buffer.cursor if pos is None else pos
        lexer = self.lexer
        return highlight_braces(
            self.buffer,
            pos,
            angle_brackets=self.prefs.brace_match_ltgt,
            xml=lexer.xml_like,
            case_insensitive=lexer.case_insensitive_tags,
            max_distance=self.prefs.brace_match_max_distance,
        )

    # === Folding ===

    def fold_all(self) -> int:
        return folding.fold_all(self.buffer)

    def unfold_all(self) -> None:
        folding.unfold_all(self.buffer)

    def toggle_fold(self, line: int | None = None) -> bool | None:
        if not self.prefs.folding:
            return None
        line = self.buffer.line_of(self.buffer.cursor) if line is None else line
        return folding.toggle_fold(self.buffer, line, self.prefs.unfold_all_children)

    # === Whitespace ===

    def replace_tabs(self) -> int:
        return lineops.replace_tabs(self.buffer, self.buffer.tab_width)

    def replace_spaces(self) -> int:
        return lineops.replace_spaces(self.buffer, self.buffer.tab_width)

    def strip_line_trailing_spaces(self, line: int) -> bool:
        return lineops.strip_line_trailing_spaces(self.buffer, line)

    def strip_trailing_spaces(self, ignore_selection: bool = False) -> int:
        """Strip the selected lines, or the whole buffer without a selection."""
        start, end = self.buffer.selection()
        if ignore_selection or start == end:
            return lineops.strip_trailing_spaces(self.buffer)
        first, last = self._selected_lines()
        return lineops.strip_trailing_spaces(self.buffer, first, last)

    def ensure_final_newline(self) -> bool:
        return lineops.ensure_final_newline(self.buffer, self.document.eol_mode)

    def insert_color(self, color: str) -> None:
        lineops.insert_color(self.buffer, color)

    # === Selection and view ===

    def goto_pos(self, pos: int, mark: bool = False) -> bool:
        return selection.goto_pos(self.buffer, pos, mark)

    def select_word(self) -> bool:
        return selection.select_word(self.buffer, self.prefs.word_chars)

    def select_lines(self, extra_line: bool = False) -> None:
        selection.select_lines(self.buffer, extra_line)

    def select_paragraph(self) -> bool:
        return selection.select_paragraph(self.buffer)

    def get_default_selection(self, use_current_word: bool = True) -> str | None:
        return selection.default_selection(self.buffer, use_current_word, self.prefs.word_chars)

    def line_in_view(self, line: int) -> bool:
        return selection.line_in_view(self.buffer, line)

    def scroll_to_line(self, line: int, percent: float = 0.5) -> None:
        selection.scroll_to_line(self.buffer, line, percent)

    def display_current_line(self, percent: float = 0.5) -> None:
        selection.display_current_line(self.buffer, percent)

    # === Indicators and markers ===

    def set_indicator(self, start: int, end: int) -> None:
        if self.prefs.use_indicators and end > start:
            self.buffer.set_indicator(start, end)

    def set_indicator_on_line(self, line: int) -> None:
        """Mark the text of line, without its indentation."""
        text = self.buffer.line_text(line)
        start = self.buffer.line_start(line) + len(leading_whitespace(text))
        end = self.buffer.line_start(line) + len(text.rstrip())
        self.set_indicator(start, end)

    def clear_indicators(self) -> None:
        self.buffer.clear_indicators()

    def toggle_marker(self, line: int | None = None) -> bool:
        line = self.buffer.line_of(self.buffer.cursor) if line is None else line
        return self.buffer.toggle_marker(line)

    # === Commands ===

    def run_command(self, command: EditorCommand) -> bool:
        """Run a keybinding command. Returns False if it had no effect."""
        match command:
            case EditorCommand.TOGGLE_COMMENT:
                return self.do_comment_toggle() > 0
            case EditorCommand.COMMENT:
                return self.do_comment() > 0
            case EditorCommand.UNCOMMENT:
                return self.do_uncomment() > 0
            case EditorCommand.INSERT_MULTILINE_COMMENT:
                return self.insert_multiline_comment()
            case EditorCommand.AUTOCOMPLETE:
                return self.start_auto_complete(force=True)
            case EditorCommand.CALLTIP:
                return self.show_calltip()
            case EditorCommand.MACRO_LIST:
                return self.show_macro_list()
            case EditorCommand.COMPLETE_SNIPPET:
                if not self.complete_snippet():
                    self.insert_tab()
                return True
            case EditorCommand.SMART_LINE_INDENT:
                return self.smart_line_indentation() > 0
            case EditorCommand.INCREASE_INDENT_BY_SPACE:
                self.indentation_by_one_space(decrease=False)
                return True
            case EditorCommand.DECREASE_INDENT_BY_SPACE:
                self.indentation_by_one_space(decrease=True)
                return True
            case EditorCommand.INSERT_ALTERNATIVE_WHITESPACE:
                self.insert_alternative_whitespace()
                return True
            case EditorCommand.SMART_HOME:
                self.smart_home()
                return True
            case EditorCommand.FOLD_ALL:
                return self.fold_all() > 0
            case EditorCommand.UNFOLD_ALL:
                self.unfold_all()
                return True
            case EditorCommand.TOGGLE_FOLD:
                return self.toggle_fold() is not None
            case EditorCommand.REPLACE_TABS:
                return self.replace_tabs() > 0
            case EditorCommand.REPLACE_SPACES:
                return self.replace_spaces() > 0
            case EditorCommand.STRIP_TRAILING_SPACES:
                return self.strip_trailing_spaces() > 0
            case EditorCommand.ENSURE_FINAL_NEWLINE:
                return self.ensure_final_newline()
            case EditorCommand.SELECT_WORD:
                return self.select_word()
            case EditorCommand.SELECT_LINES:
                self.select_lines()
                return True
            case EditorCommand.SELECT_PARAGRAPH:
                return self.select_paragraph()
            case EditorCommand.TOGGLE_MARKER:
                self.toggle_marker()
                return True
            case EditorCommand.CLEAR_INDICATORS:
                self.clear_indicators()
                return True
            case EditorCommand.TOGGLE_USE_TABS:
                self.set_use_tabs(not self.use_tabs)
                return True
            case EditorCommand.TOGGLE_LINE_WRAPPING:
                self.set_line_wrapping(not self.line_wrapping)
                return True
            case EditorCommand.DISPLAY_CURRENT_LINE:
                self.display_current_line()
                return True
        return False
