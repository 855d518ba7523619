"""Tests for whitespace and line commands."""

from sciedit.buffer import EolMode
from sciedit.lineops import (
    break_line_if_needed,
    ensure_final_newline,
    insert_color,
    replace_spaces,
    replace_tabs,
    strip_trailing_spaces,
)


class TestTabsAndSpaces:
    def test_replace_tabs(self, make_buffer):
        buffer = make_buffer("\ta\tb\nc")
        assert replace_tabs(buffer, 4) == 1
        assert buffer.text() == "    a   b\nc"

    def test_replace_spaces_full_stops(self, make_buffer):
        buffer = make_buffer("        x\n      y")
        assert replace_spaces(buffer, 4) == 2
        assert buffer.text() == "\t\tx\n\t  y"

    def test_replace_spaces_absorbed_by_tab(self, make_buffer):
        buffer = make_buffer("  \tx")
        replace_spaces(buffer, 4)
        assert buffer.text() == "\tx"

    def test_replace_spaces_short_indent_untouched(self, make_buffer):
        buffer = make_buffer("  x  y")
        assert replace_spaces(buffer, 4) == 0
        assert buffer.text() == "  x  y"


class TestLineEnds:
    def test_strip_trailing_spaces(self, make_buffer):
        buffer = make_buffer("a  \nb\t\nc")
        assert strip_trailing_spaces(buffer) == 2
        assert buffer.text() == "a\nb\nc"

    def test_strip_trailing_spaces_range(self, make_buffer):
        buffer = make_buffer("a \nb \nc ")
        assert strip_trailing_spaces(buffer, 1, 1) == 1
        assert buffer.text() == "a \nb\nc "

    def test_ensure_final_newline(self, make_buffer):
        buffer = make_buffer("a")
        assert ensure_final_newline(buffer, EolMode.CRLF)
        assert buffer.text() == "a\r\n"
        assert not ensure_final_newline(buffer, EolMode.CRLF)

    def test_ensure_final_newline_empty(self, make_buffer):
        buffer = make_buffer("")
        assert not ensure_final_newline(buffer, EolMode.LF)
        assert buffer.text() == ""


class TestWholeBufferCommands:
    def _count_edits(self, buffer):
        edits = []
        buffer.add_modify_listener(lambda start, removed, inserted: edits.append(start))
        return edits

    def test_replace_tabs_large_buffer_is_one_edit(self, make_buffer):
        buffer = make_buffer("\tx = 1\n" * 20000)
        edits = self._count_edits(buffer)
        assert replace_tabs(buffer, 4) == 20000
        assert len(edits) == 1
        assert buffer.text() == "    x = 1\n" * 20000

    def test_replace_spaces_large_buffer_is_one_edit(self, make_buffer):
        buffer = make_buffer("        y\n" * 20000)
        edits = self._count_edits(buffer)
        assert replace_spaces(buffer, 4) == 20000
        assert len(edits) == 1
        assert buffer.text() == "\t\ty\n" * 20000

    def test_strip_trailing_spaces_large_buffer_is_one_edit(self, make_buffer):
        buffer = make_buffer("z  \r\n" * 20000)
        edits = self._count_edits(buffer)
        assert strip_trailing_spaces(buffer) == 20000
        assert len(edits) == 1
        assert buffer.text() == "z\r\n" * 20000
        assert buffer.line_count() == 20001

    def test_no_change_makes_no_edit(self, make_buffer):
        buffer = make_buffer("a\nb\n")
        edits = self._count_edits(buffer)
        assert strip_trailing_spaces(buffer) == 0
        assert edits == []

    def test_cursor_keeps_its_line(self, make_buffer):
        buffer = make_buffer("a  \nb  \nc\td")
        buffer.set_cursor(buffer.line_start(2) + 2)  # Before "d"
        replace_tabs(buffer, 4)
        strip_trailing_spaces(buffer)
        assert buffer.text() == "a\nb\nc   d"
        assert buffer.char_at(buffer.cursor) == "d"

    def test_cursor_in_stripped_spaces_moves_to_line_end(self, make_buffer):
        buffer = make_buffer("a  \nb")
        buffer.set_cursor(3)
        strip_trailing_spaces(buffer)
        assert buffer.cursor == 1


class TestInsertColor:
    def test_at_cursor(self, make_buffer):
        buffer = make_buffer("c = ")
        insert_color(buffer, "#FF8000")
        assert buffer.text() == "c = #FF8000"
        assert buffer.cursor == 11

    def test_keeps_hex_prefix(self, make_buffer):
        buffer = make_buffer("c = 0x00ff00")
        buffer.set_selection(4, 12)
        insert_color(buffer, "#FF8000")
        assert buffer.text() == "c = 0xFF8000"

    def test_replaces_hash(self, make_buffer):
        buffer = make_buffer("c = #00ff00")
        buffer.set_selection(5, 11)
        insert_color(buffer, "#FF8000")
        assert buffer.text() == "c = #FF8000"


class TestBreakLine:
    def test_breaks_at_last_space(self, make_buffer):
        buffer = make_buffer("aaa bbb ccc")
        assert break_line_if_needed(buffer, 11, 8) == 1
        assert buffer.text() == "aaa bbb\nccc"

    def test_short_line(self, make_buffer):
        buffer = make_buffer("aaa bbb")
        assert break_line_if_needed(buffer, 7, 8) is None

    def test_no_space_to_break(self, make_buffer):
        buffer = make_buffer("    aaaaaaaaaa")
        assert break_line_if_needed(buffer, 14, 8) is None
