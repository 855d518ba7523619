"""Tests for lexer classification and tokenizing."""

import logging

import pytest

from sciedit.errors import ConfigurationError
from sciedit.lexers import NULL_LEXER, CommentStyle, LexerInfo, LexerTable, TokenKind, tokenize


class TestLexerTable:
    def test_c_like(self, lexers):
        assert lexers.is_c_like("cpp")
        assert not lexers.is_c_like("python")

    def test_comment_styles(self, lexers):
        assert lexers.comment_style("c") == CommentStyle.BOTH
        assert lexers.comment_style("python") == CommentStyle.LINE
        assert lexers.comment_style("xml") == CommentStyle.BLOCK
        assert lexers.comment_style("null") == CommentStyle.NONE

    def test_unknown_lexer_warns_once(self, lexers, caplog):
        with caplog.at_level(logging.WARNING):
            assert lexers.get("cobol") is NULL_LEXER
            assert lexers.get("cobol") is NULL_LEXER
        assert len([r for r in caplog.records if "cobol" in r.message]) == 1

    def test_require_unknown_raises(self, lexers):
        with pytest.raises(ConfigurationError):
            lexers.require("cobol")

    def test_type_keywords(self, lexers):
        index = lexers.type_keyword_index("c")
        assert "int" in lexers.keywords("c", index)
        assert lexers.keywords("c", 99) == ()

    def test_set_keywords(self, lexers):
        lexers.set_keywords("c", 3, ["my_type", "other_t", "my_type"])
        assert lexers.keywords("c", 3) == ("my_type", "other_t")

    def test_register(self, lexers):
        lexers.register(LexerInfo("nim", line_comment="#"))
        assert "nim" in lexers
        assert lexers.comment_style("nim") == CommentStyle.LINE


class TestTokenize:
    def test_line_comment(self, lexers):
        text = "a // b\nc"
        kinds = tokenize(text, lexers.get("c"))
        assert kinds[0] == TokenKind.CODE
        assert kinds[2] == TokenKind.COMMENT
        assert kinds[text.index("c")] == TokenKind.CODE

    def test_block_comment_spans_lines(self, lexers):
        text = "/* a\nb */ c"
        kinds = tokenize(text, lexers.get("c"))
        assert kinds[5] == TokenKind.COMMENT
        assert kinds[text.index("c")] == TokenKind.CODE

    def test_string_with_escape(self, lexers):
        text = 'x = "a\\"(" + y'
        kinds = tokenize(text, lexers.get("c"))
        assert kinds[text.index("(")] == TokenKind.STRING
        assert kinds[text.index("y")] == TokenKind.CODE

    def test_comment_marker_inside_string(self, lexers):
        text = 's = "// not a comment"'
        kinds = tokenize(text, lexers.get("c"))
        assert all(k == TokenKind.STRING for k in kinds[4:])

    def test_xml_text_quotes_are_code(self, lexers):
        text = "<a href='x'>don't</a>"
        kinds = tokenize(text, lexers.get("xml"))
        assert kinds[text.index("x")] == TokenKind.STRING
        assert kinds[text.index("t<")] == TokenKind.CODE

    def test_python_triple_quotes(self, lexers):
        text = 'x = """a\n(b"""\ny'
        kinds = tokenize(text, lexers.get("python"))
        assert kinds[text.index("(")] == TokenKind.STRING
        assert kinds[-1] == TokenKind.CODE
