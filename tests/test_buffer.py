"""Tests for the in-memory buffer."""

from sciedit.buffer import EolMode, TextBuffer, indent_columns, leading_whitespace, shift_position
from sciedit.lexers import TokenKind


class TestTextBufferLines:
    def test_empty_buffer_has_one_line(self):
        buffer = TextBuffer()
        assert buffer.line_count() == 1
        assert buffer.line_text(0) == ""

    def test_line_index(self):
        buffer = TextBuffer("ab\ncd\n")
        assert buffer.line_count() == 3
        assert buffer.line_start(1) == 3
        assert buffer.line_end(1) == 5
        assert buffer.line_text(1) == "cd"
        assert buffer.line_of(4) == 1

    def test_crlf_line_end_excludes_eol(self):
        buffer = TextBuffer("ab\r\ncd")
        assert buffer.line_end(0) == 2
        assert buffer.line_start(1) == 4

    def test_line_indent_counts_tabs(self):
        buffer = TextBuffer("\t  x", tab_width=4)
        assert buffer.line_indent(0) == 6

    def test_char_at_out_of_range(self):
        buffer = TextBuffer("a")
        assert buffer.char_at(-1) == ""
        assert buffer.char_at(1) == ""


class TestTextBufferEditing:
    def test_insert_moves_cursor_after(self):
        buffer = TextBuffer("hello")
        buffer.set_cursor(5)
        buffer.insert(0, ">> ")
        assert buffer.text() == ">> hello"
        assert buffer.cursor == 8

    def test_insert_at_cursor_does_not_move_it(self):
        buffer = TextBuffer("ab")
        buffer.set_cursor(1)
        buffer.insert(1, "x")
        assert buffer.cursor == 1

    def test_delete_inside_selection_collapses(self):
        buffer = TextBuffer("abcdef")
        buffer.set_selection(2, 4)
        buffer.delete(1, 5)
        assert buffer.text() == "af"
        assert buffer.selection() == (1, 1)

    def test_modify_listener(self):
        buffer = TextBuffer("abc")
        calls = []
        buffer.add_modify_listener(lambda *args: calls.append(args))
        buffer.replace_range(1, 2, "xyz")
        assert calls == [(1, 1, 3)]

    def test_remove_modify_listener(self):
        buffer = TextBuffer("abc")
        calls = []
        listener = lambda *args: calls.append(args)
        buffer.add_modify_listener(listener)
        buffer.remove_modify_listener(listener)
        buffer.insert(0, "x")
        assert calls == []

    def test_token_kinds_refresh_after_edit(self, lexers):
        buffer = TextBuffer("x = 1", lexer=lexers.get("c"))
        assert buffer.token_kind_at(0) == TokenKind.CODE
        buffer.insert(0, "// ")
        assert buffer.token_kind_at(3) == TokenKind.COMMENT


class TestDisplayHooks:
    def test_brace_highlight_and_badlight_exclusive(self):
        buffer = TextBuffer("()")
        buffer.highlight_braces(0, 1)
        buffer.badlight_brace(0)
        assert buffer.brace_highlight is None
        assert buffer.brace_badlight == 0

    def test_toggle_marker(self):
        buffer = TextBuffer("a\nb")
        assert buffer.toggle_marker(1) is True
        assert buffer.toggle_marker(1) is False
        assert buffer.markers == set()


class TestLineStateFollowsEdits:
    def test_marker_moves_down_after_insert_above(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(2)
        buffer.insert(0, "x\n")
        assert buffer.markers == {3}

    def test_insert_at_line_start_pushes_that_line(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(1)
        buffer.insert(2, "y\n")
        assert buffer.markers == {2}

    def test_line_break_inside_line_keeps_its_marker(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(1)
        buffer.toggle_marker(2)
        buffer.insert(3, "\nz")
        assert buffer.markers == {1, 3}

    def test_delete_above_moves_marker_and_arrow_up(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(2)
        buffer.set_arrow_marker(2)
        buffer.delete(0, 2)
        assert buffer.markers == {1}
        assert buffer.arrow_marker == 1

    def test_deleted_line_marker_joins_remaining_line(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(1)
        buffer.delete(1, 3)
        assert buffer.text() == "a\nc"
        assert buffer.markers == {0}

    def test_folded_header_shifts(self):
        buffer = TextBuffer("a\nb\nc\nd")
        buffer.folded.add(1)
        buffer.insert(0, "\n")
        assert buffer.folded == {2}

    def test_edit_within_line_leaves_lines(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(0)
        buffer.toggle_marker(2)
        buffer.insert(1, "zz")
        assert buffer.markers == {0, 2}

    def test_set_text_clears_line_state(self):
        buffer = TextBuffer("a\nb\nc")
        buffer.toggle_marker(1)
        buffer.folded.add(0)
        buffer.set_arrow_marker(2)
        buffer.set_text("new")
        assert buffer.markers == set()
        assert buffer.folded == set()
        assert buffer.arrow_marker is None


class TestHelpers:
    def test_shift_position(self):
        assert shift_position(5, 5, 0, 3) == 5
        assert shift_position(6, 5, 0, 3) == 9
        assert shift_position(7, 5, 4, 0) == 5
        assert shift_position(12, 5, 4, 1) == 9

    def test_indent_columns(self):
        assert indent_columns("  \tx", 4) == 4
        assert indent_columns("ab\t", 4, whole=True) == 4

    def test_leading_whitespace(self):
        assert leading_whitespace(" \t x ") == " \t "

    def test_eol_mode_chars(self):
        assert EolMode.CRLF.chars == "\r\n"
        assert EolMode.CR.display_name == "CR"
