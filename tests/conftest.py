"""Pytest configuration."""

import pytest

from sciedit.buffer import TextBuffer
from sciedit.lexers import LexerTable


@pytest.fixture
def lexers():
    """The default lexer table."""
    return LexerTable()


@pytest.fixture
def make_buffer(lexers):
    """Build a buffer for a lexer id, with the cursor at the end or at cursor."""

    def _make(text: str = "", lexer_id: str = "null", cursor: int | None = None, tab_width: int = 8):
        buffer = TextBuffer(text, lexer=lexers.get(lexer_id), tab_width=tab_width)
        buffer.set_cursor(len(text) if cursor is None else cursor)
        return buffer

    return _make
