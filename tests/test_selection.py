"""Tests for selection helpers and view positioning."""

from sciedit.selection import (
    default_selection,
    display_current_line,
    goto_pos,
    line_in_view,
    scroll_to_line,
    select_lines,
    select_paragraph,
    select_word,
)


class TestSelectWord:
    def test_word_at_cursor(self, make_buffer):
        buffer = make_buffer("foo bar", cursor=5)
        assert select_word(buffer)
        assert buffer.selection() == (4, 7)

    def test_between_words_selects_next(self, make_buffer):
        buffer = make_buffer("foo  bar", cursor=4)
        assert select_word(buffer)
        assert buffer.selection() == (5, 8)

    def test_nothing_to_select(self, make_buffer):
        buffer = make_buffer("  ;;", cursor=0)
        assert not select_word(buffer)


class TestSelectLines:
    def test_extends_to_whole_lines(self, make_buffer):
        buffer = make_buffer("ab\ncd\nef")
        buffer.set_selection(1, 4)
        select_lines(buffer)
        assert buffer.selection() == (0, 6)

    def test_whole_lines_unchanged(self, make_buffer):
        buffer = make_buffer("ab\ncd\nef")
        buffer.set_selection(0, 3)
        select_lines(buffer)
        assert buffer.selection() == (0, 3)

    def test_extra_line(self, make_buffer):
        buffer = make_buffer("ab\ncd\nef")
        buffer.set_selection(0, 3)
        select_lines(buffer, extra_line=True)
        assert buffer.selection() == (0, 6)

    def test_last_line(self, make_buffer):
        buffer = make_buffer("ab\ncd", cursor=4)
        select_lines(buffer)
        assert buffer.selection() == (3, 5)


class TestSelectParagraph:
    def test_paragraph(self, make_buffer):
        buffer = make_buffer("a\nb\n\nc", cursor=0)
        assert select_paragraph(buffer)
        assert buffer.selection() == (0, 4)

    def test_blank_line(self, make_buffer):
        buffer = make_buffer("a\n\nc", cursor=2)
        assert not select_paragraph(buffer)


class TestDefaultSelection:
    def test_single_line_selection(self, make_buffer):
        buffer = make_buffer("foo bar")
        buffer.set_selection(0, 5)
        assert default_selection(buffer) == "foo b"

    def test_multi_line_selection(self, make_buffer):
        buffer = make_buffer("foo\nbar")
        buffer.set_selection(0, 5)
        assert default_selection(buffer) is None

    def test_current_word(self, make_buffer):
        buffer = make_buffer("foo bar", cursor=1)
        assert default_selection(buffer) == "foo"
        assert default_selection(buffer, use_current_word=False) is None


class TestView:
    def test_scroll_to_line_centres(self, make_buffer):
        buffer = make_buffer("\n" * 100)
        scroll_to_line(buffer, 50, 0.5)
        assert buffer.first_visible_line == 39
        assert line_in_view(buffer, 50)

    def test_negative_percent_keeps_visible_line(self, make_buffer):
        buffer = make_buffer("\n" * 100)
        scroll_to_line(buffer, 10, -1)
        assert buffer.first_visible_line == 0

    def test_display_current_line(self, make_buffer):
        buffer = make_buffer("\n" * 100)
        display_current_line(buffer)
        assert line_in_view(buffer, 100)

    def test_goto_pos_marks_line(self, make_buffer):
        buffer = make_buffer("a\nb\nc", cursor=0)
        assert goto_pos(buffer, 4, mark=True)
        assert buffer.cursor == 4
        assert buffer.arrow_marker == 2

    def test_goto_negative(self, make_buffer):
        buffer = make_buffer("a")
        assert not goto_pos(buffer, -1)
