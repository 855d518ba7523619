"""Tests for the editor, its context and its commands."""

import pytest

from sciedit.buffer import EolMode, TextBuffer
from sciedit.editor import Document, EditorInfo, editor_create, editor_finalize, editor_init
from sciedit.keybindings import EditorCommand
from sciedit.prefs import EditorPrefs, IndentMode, IndentPrefs
from sciedit.snippets import DEFAULT_GROUP, SnippetTable


def make_editor(text="", lexer_id="c", prefs=None, cursor=None, **doc):
    ctx = editor_init(prefs or EditorPrefs())
    editor = editor_create(ctx, Document(lexer_id=lexer_id, **doc), TextBuffer(text))
    editor.buffer.set_cursor(len(text) if cursor is None else cursor)
    return editor


class TestEditorInfo:
    def test_update_and_clear(self):
        info = EditorInfo()
        info.update("foo", 3)
        assert (info.current_word, info.click_pos) == ("foo", 3)
        info.clear()
        assert (info.current_word, info.click_pos) == ("", -1)


class TestEditorCreate:
    def test_applies_prefs_to_buffer(self):
        prefs = EditorPrefs(
            indentation=IndentPrefs(width=2, use_tabs=False),
            line_wrapping=True,
            long_line_column=100,
        )
        editor = make_editor("x", prefs=prefs)
        buffer = editor.buffer
        assert buffer.lexer.lexer_id == "c"
        assert buffer.tab_width == 2
        assert buffer.indent_width == 2
        assert buffer.use_tabs is False
        assert buffer.wrap is True
        assert buffer.edge_column == 100
        assert editor.document.editor is editor

    def test_detects_tab_mode(self):
        editor = make_editor("{\n  a;\n  b;\n}")
        assert editor.use_tabs is False
        assert editor.indent_style.use_tabs is False

    def test_detection_disabled(self):
        editor = make_editor("{\n  a;\n}", prefs=EditorPrefs(detect_tab_mode=False))
        assert editor.use_tabs is True

    def test_unknown_lexer_is_plain_text(self):
        editor = make_editor("x", lexer_id="cobol")
        assert editor.lexer.lexer_id == "null"

    def test_eol_chars(self):
        editor = make_editor("x", eol_mode=EolMode.CRLF)
        assert editor.get_eol_char() == "\r\n"
        assert editor.get_eol_char_len() == 2
        assert editor.get_eol_char_name() == "CRLF"

    def test_finalize(self):
        table = SnippetTable()
        table.add("x", "y")
        ctx = editor_init(snippets=table)
        ctx.info.update("w", 1)
        editor_finalize(ctx)
        assert len(ctx.snippets) == 0
        assert ctx.info.current_word == ""


class TestEditorSettings:
    def test_indent_width_override(self):
        editor = make_editor()
        editor.set_indent_width(2)
        assert editor.indent_style.width == 2
        assert editor.buffer.indent_width == 2
        editor.set_indent_width(None)
        assert editor.indent_style.width == 4

    def test_auto_indent_off(self):
        editor = make_editor()
        editor.auto_indent = False
        assert editor.indent_mode == IndentMode.NONE

    def test_scroll_percent_applied_once(self):
        editor = make_editor("\n" * 100)
        editor.set_scroll_percent(0.0)
        assert editor.consume_scroll_percent() == 0.0
        assert editor.buffer.first_visible_line == 100
        assert editor.consume_scroll_percent() is None


class TestEditorComments:
    def test_toggle_selected_lines(self):
        editor = make_editor("a\nb\nc")
        editor.buffer.set_selection(0, 4)
        assert editor.do_comment_toggle() == 2
        assert editor.buffer.text() == "//~ a\n//~ b\nc"

    def test_selection_ending_at_line_start(self):
        editor = make_editor("a\nb\n")
        editor.buffer.set_selection(0, 2)
        assert editor._selected_lines() == (0, 0)

    def test_block_only_lexer_wraps_selection(self):
        editor = make_editor("a\nb", lexer_id="css")
        editor.buffer.set_selection(0, 3)
        assert editor.do_comment_toggle() == 1
        assert editor.buffer.text() == "/* a\nb */"
        editor.buffer.set_selection(0, editor.buffer.length())
        editor.do_comment_toggle()
        assert editor.buffer.text() == "a\nb"

    def test_comment_and_uncomment(self):
        editor = make_editor("x = 1;\ny = 2;", lexer_id="python")
        editor.buffer.set_selection(0, editor.buffer.length())
        assert editor.do_comment() == 2
        assert editor.buffer.text() == "# x = 1;\n# y = 2;"
        editor.buffer.set_selection(0, editor.buffer.length())
        assert editor.do_uncomment() == 2
        assert editor.buffer.text() == "x = 1;\ny = 2;"


class TestEditorSnippets:
    @pytest.fixture
    def editor(self):
        table = SnippetTable()
        table.load({DEFAULT_GROUP: {"for": "for (;;) {\n\t@cursor@\n}", "pair": "(@1@, @2@)"}})
        ctx = editor_init(EditorPrefs(), table)
        editor = editor_create(ctx, Document(lexer_id="c"), TextBuffer())
        return editor

    def test_complete_snippet(self, editor):
        editor.buffer.set_text("for")
        editor.buffer.set_cursor(3)
        assert editor.complete_snippet()
        assert editor.buffer.text() == "for (;;) {\n\t\n}"
        assert editor.buffer.cursor == 12

    def test_tab_stops_cycle(self, editor):
        editor.buffer.set_text("pair")
        editor.buffer.set_cursor(4)
        editor.complete_snippet()
        assert editor.buffer.cursor == 1
        editor.buffer.insert(1, "a")
        editor.buffer.set_cursor(2)
        assert editor.jump_to_next_tab_stop() == 4
        assert editor.jump_to_next_tab_stop() == 1

    def test_session_detached_on_end(self, editor):
        editor.buffer.set_text("pair")
        editor.buffer.set_cursor(4)
        editor.complete_snippet()
        editor.end_snippet_session()
        assert editor.snippet_session is None
        assert editor.jump_to_next_tab_stop() is None

    def test_insert_tab_without_snippet(self, editor):
        editor.set_use_tabs(False)
        editor.buffer.set_text("ab")
        editor.buffer.set_cursor(2)
        assert not editor.complete_snippet()
        assert editor.insert_tab() == "  "


class TestRunCommand:
    def test_toggle_use_tabs(self):
        editor = make_editor()
        before = editor.use_tabs
        assert editor.run_command(EditorCommand.TOGGLE_USE_TABS)
        assert editor.use_tabs is not before
        assert editor.buffer.use_tabs is not before

    def test_toggle_line_wrapping(self):
        editor = make_editor()
        editor.run_command(EditorCommand.TOGGLE_LINE_WRAPPING)
        assert editor.buffer.wrap is True

    def test_strip_trailing_spaces(self):
        editor = make_editor("a \nb ")
        assert editor.run_command(EditorCommand.STRIP_TRAILING_SPACES)
        assert editor.buffer.text() == "a\nb"

    def test_ensure_final_newline_uses_document_eol(self):
        editor = make_editor("a", eol_mode=EolMode.CR)
        editor.run_command(EditorCommand.ENSURE_FINAL_NEWLINE)
        assert editor.buffer.text() == "a\r"

    def test_smart_line_indent(self):
        prefs = EditorPrefs(indentation=IndentPrefs(mode=IndentMode.MATCH_BRACES, use_tabs=False), detect_tab_mode=False)
        editor = make_editor("{\nx", prefs=prefs)
        editor.buffer.set_selection(0, editor.buffer.length())
        assert editor.run_command(EditorCommand.SMART_LINE_INDENT)
        assert editor.buffer.text() == "{\n    x"

    def test_toggle_marker(self):
        editor = make_editor("a\nb", cursor=2)
        editor.run_command(EditorCommand.TOGGLE_MARKER)
        assert editor.buffer.markers == {1}

    def test_fold_commands(self):
        editor = make_editor("{\n  a;\n}")
        assert editor.run_command(EditorCommand.FOLD_ALL)
        assert editor.buffer.folded == {0}
        editor.run_command(EditorCommand.UNFOLD_ALL)
        assert editor.buffer.folded == set()

    def test_folding_disabled(self):
        editor = make_editor("{\n  a;\n}", prefs=EditorPrefs(folding=False), cursor=0)
        assert not editor.run_command(EditorCommand.TOGGLE_FOLD)

    def test_autocomplete_forced(self):
        editor = make_editor("f", lexer_id="null")
        editor.ctx.provider.add_symbols(["foo"])
        assert editor.run_command(EditorCommand.AUTOCOMPLETE)
        assert editor.buffer.autocomplete.items == ["foo"]

    def test_select_paragraph(self):
        editor = make_editor("a\nb\n\nc", cursor=0)
        assert editor.run_command(EditorCommand.SELECT_PARAGRAPH)
        assert editor.buffer.selection() == (0, 4)


class TestIndicators:
    def test_indicator_on_line(self):
        editor = make_editor("  abc  ")
        editor.set_indicator_on_line(0)
        assert editor.buffer.indicators == [(2, 5)]
        editor.clear_indicators()
        assert editor.buffer.indicators == []

    def test_indicators_disabled(self):
        editor = make_editor("abc", prefs=EditorPrefs(use_indicators=False))
        editor.set_indicator(0, 3)
        assert editor.buffer.indicators == []
