"""Word boundaries under a configurable word-character set."""

from .buffer import Buffer
from .prefs import MAX_WORD_LENGTH, WORDCHARS


def is_word_char(ch: str, word_chars: str = WORDCHARS) -> bool:
    return bool(ch) and ch in word_chars


def word_start(buffer: Buffer, pos: int, word_chars: str = WORDCHARS) -> int:
    """Start of the word that ends at pos."""
    start = pos
    lower = max(0, pos - MAX_WORD_LENGTH)
    while start > lower and is_word_char(buffer.char_at(start - 1), word_chars):
        start -= 1
    return start


def word_end(buffer: Buffer, pos: int, word_chars: str = WORDCHARS) -> int:
    """End of the word that starts at pos."""
    end = pos
    upper = min(buffer.length(), pos + MAX_WORD_LENGTH)
    while end < upper and is_word_char(buffer.char_at(end), word_chars):
        end += 1
    return end


def word_before(buffer: Buffer, pos: int, word_chars: str = WORDCHARS) -> str:
    """The word immediately left of pos, possibly empty."""
    return buffer.text_range(word_start(buffer, pos, word_chars), pos)


def word_range(buffer: Buffer, pos: int, word_chars: str = WORDCHARS) -> tuple[int, int]:
    """Bounds of the word touching pos, empty when pos is not in a word."""
    return word_start(buffer, pos, word_chars), word_end(buffer, pos, word_chars)


def find_current_word(buffer: Buffer, pos: int, word_chars: str = WORDCHARS) -> str:
    """The whole word under pos, or an empty string."""
    start, end = word_range(buffer, pos, word_chars)
    return buffer.text_range(start, end)
