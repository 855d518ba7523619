"""Tests for XML tag and LaTeX environment closing."""

from sciedit.autoclose import auto_latex, close_xml_tag, complete_closing_tag


class TestCloseXmlTag:
    def test_closes_start_tag(self, make_buffer):
        buffer = make_buffer("<a>", "xml")
        assert close_xml_tag(buffer, 3, buffer.lexer) == "a"
        assert buffer.text() == "<a></a>"
        assert buffer.cursor == 3

    def test_with_attributes(self, make_buffer):
        buffer = make_buffer('<a href="x" id="y">', "xml")
        assert close_xml_tag(buffer, buffer.length(), buffer.lexer) == "a"

    def test_self_closing(self, make_buffer):
        buffer = make_buffer("<a/>", "xml")
        assert close_xml_tag(buffer, 4, buffer.lexer) is None

    def test_end_tag(self, make_buffer):
        buffer = make_buffer("<a></a>", "xml")
        assert close_xml_tag(buffer, 7, buffer.lexer) is None

    def test_html_void_tag(self, make_buffer):
        buffer = make_buffer("<BR>", "html")
        assert close_xml_tag(buffer, 4, buffer.lexer) is None

    def test_not_xml(self, make_buffer):
        buffer = make_buffer("<a>", "c")
        assert close_xml_tag(buffer, 3, buffer.lexer) is None


class TestCompleteClosingTag:
    def test_innermost_open_tag(self, make_buffer):
        buffer = make_buffer("<a><b></b></", "xml")
        assert complete_closing_tag(buffer, 12, buffer.lexer) == "a"
        assert buffer.text() == "<a><b></b></a>"
        assert buffer.cursor == 14

    def test_case_insensitive_end_tags(self, make_buffer):
        buffer = make_buffer("<DIV><p>x</P><br></", "html")
        assert complete_closing_tag(buffer, buffer.length(), buffer.lexer) == "DIV"

    def test_nothing_open(self, make_buffer):
        buffer = make_buffer("<a></a></", "xml")
        assert complete_closing_tag(buffer, 9, buffer.lexer) is None


class TestAutoLatex:
    def test_closes_environment(self, make_buffer):
        buffer = make_buffer("\\begin{itemize}\n", "latex")
        assert auto_latex(buffer, 16, buffer.lexer) == "itemize"
        assert buffer.text() == "\\begin{itemize}\n\n\\end{itemize}"
        assert buffer.cursor == 16

    def test_keeps_indent(self, make_buffer):
        buffer = make_buffer("  \\begin{a}\n  ", "latex")
        auto_latex(buffer, buffer.length(), buffer.lexer)
        assert buffer.text() == "  \\begin{a}\n  \n  \\end{a}"

    def test_already_closed(self, make_buffer):
        buffer = make_buffer("\\begin{a}\n\n\\end{a}", "latex", cursor=10)
        assert auto_latex(buffer, 10, buffer.lexer) is None

    def test_closed_on_same_line(self, make_buffer):
        buffer = make_buffer("\\begin{a}x\\end{a}\n", "latex")
        assert auto_latex(buffer, buffer.length(), buffer.lexer) is None

    def test_other_lexers(self, make_buffer):
        buffer = make_buffer("\\begin{a}\n", "c")
        assert auto_latex(buffer, buffer.length(), buffer.lexer) is None
