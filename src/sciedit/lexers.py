"""Lexer classification table and a small token-kind scanner."""

import logging
from dataclasses import dataclass, replace
from enum import Enum

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class TokenKind(str, Enum):
    """Lexical class of a buffer position."""

    CODE = "code"
    STRING = "string"
    COMMENT = "comment"
    OTHER = "other"


class CommentStyle(str, Enum):
    """Which comment syntaxes a lexer supports."""

    NONE = "none"
    LINE = "line"
    BLOCK = "block"
    BOTH = "both"


@dataclass(frozen=True)
class LexerInfo:
    """Static facts about one lexer."""

    lexer_id: str
    line_comment: str | None = None
    block_comment: tuple[str, str] | None = None
    c_like: bool = False
    type_keyword_index: int | None = None
    xml_like: bool = False
    case_insensitive_tags: bool = False
    latex: bool = False
    string_delims: str = "\"'"
    triple_quotes: bool = False
    indent_openers: str = ""  # Extra chars that open an indented block
    keywords: tuple[tuple[str, ...], ...] = ()

    @property
    def comment_style(self) -> CommentStyle:
        if self.line_comment and self.block_comment:
            return CommentStyle.BOTH
        if self.line_comment:
            return CommentStyle.LINE
        if self.block_comment:
            return CommentStyle.BLOCK
        return CommentStyle.NONE


NULL_LEXER = LexerInfo(lexer_id="null", string_delims="")

_C_KEYWORDS = (
    "break case const continue default do else enum extern for goto if "
    "inline register restrict return sizeof static struct switch typedef "
    "union volatile while"
).split()
_C_TYPES = (
    "bool char double float int long short signed size_t ssize_t unsigned "
    "void int8_t int16_t int32_t int64_t uint8_t uint16_t uint32_t uint64_t"
).split()
_CPP_KEYWORDS = _C_KEYWORDS + (
    "catch class delete friend namespace new operator private protected "
    "public template this throw try using virtual"
).split()
_CPP_TYPES = _C_TYPES + "string vector map wchar_t".split()
_JAVA_KEYWORDS = (
    "abstract break case catch class continue default do else extends final "
    "finally for if implements import instanceof interface new package "
    "private protected public return static super switch this throw throws "
    "try while"
).split()
_JAVA_TYPES = "boolean byte char double float int long short void String Object".split()
_JS_KEYWORDS = (
    "break case catch class const continue default delete do else export "
    "extends finally for function if import in instanceof let new return "
    "switch this throw try typeof var void while yield"
).split()
_D_TYPES = "bool byte char double float int long real short string ubyte uint ulong ushort void".split()


def _keywords(primary: list[str], types: list[str]) -> tuple[tuple[str, ...], ...]:
    # Index 3 holds type names, matching the cpp lexer's keyword slots
    return (tuple(primary), (), (), tuple(sorted(types)))


DEFAULT_LEXERS: tuple[LexerInfo, ...] = (
    LexerInfo(
        "c", line_comment="//", block_comment=("/*", "*/"), c_like=True,
        type_keyword_index=3, keywords=_keywords(_C_KEYWORDS, _C_TYPES),
    ),
    LexerInfo(
        "cpp", line_comment="//", block_comment=("/*", "*/"), c_like=True,
        type_keyword_index=3, keywords=_keywords(_CPP_KEYWORDS, _CPP_TYPES),
    ),
    LexerInfo(
        "java", line_comment="//", block_comment=("/*", "*/"), c_like=True,
        type_keyword_index=3, keywords=_keywords(_JAVA_KEYWORDS, _JAVA_TYPES),
    ),
    LexerInfo(
        "javascript", line_comment="//", block_comment=("/*", "*/"), c_like=True,
        type_keyword_index=3, string_delims="\"'`",
        keywords=_keywords(_JS_KEYWORDS, []),
    ),
    LexerInfo(
        "csharp", line_comment="//", block_comment=("/*", "*/"), c_like=True,
        type_keyword_index=3, keywords=_keywords(_JAVA_KEYWORDS, _JAVA_TYPES),
    ),
    LexerInfo(
        "d", line_comment="//", block_comment=("/*", "*/"), c_like=True,
        type_keyword_index=3, keywords=_keywords(_C_KEYWORDS, _D_TYPES),
    ),
    LexerInfo("python", line_comment="#", triple_quotes=True, indent_openers=":"),
    LexerInfo("sh", line_comment="#"),
    LexerInfo("perl", line_comment="#"),
    LexerInfo("ruby", line_comment="#"),
    LexerInfo("makefile", line_comment="#", indent_openers=":"),
    LexerInfo("css", block_comment=("/*", "*/")),
    LexerInfo("xml", block_comment=("<!--", "-->"), xml_like=True),
    LexerInfo(
        "html", block_comment=("<!--", "-->"), xml_like=True,
        case_insensitive_tags=True,
    ),
    LexerInfo("latex", line_comment="%", latex=True, string_delims=""),
    LexerInfo("sql", line_comment="--", block_comment=("/*", "*/"), string_delims="'\""),
    LexerInfo("lua", line_comment="--", block_comment=("--[[", "]]")),
    LexerInfo("pascal", line_comment="//", block_comment=("(*", "*)"), string_delims="'"),
    NULL_LEXER,
)


class LexerTable:
    """Maps lexer ids to their classification.

    Unknown ids are reported once and then treated as the null lexer.
    """

    def __init__(self, lexers: tuple[LexerInfo, ...] | list[LexerInfo] = DEFAULT_LEXERS) -> None:
        self._lexers: dict[str, LexerInfo] = {info.lexer_id: info for info in lexers}
        self._warned: set[str] = set()

    def __contains__(self, lexer_id: str) -> bool:
        return lexer_id in self._lexers

    def get(self, lexer_id: str | None) -> LexerInfo:
        """Get lexer info, falling back to the null lexer."""
        if lexer_id is None:
            return NULL_LEXER
        info = self._lexers.get(lexer_id)
        if info is None:
            if lexer_id not in self._warned:
                self._warned.add(lexer_id)
                logger.warning(f"Unknown lexer '{lexer_id}', treating it as plain text")
            return NULL_LEXER
        return info

    def require(self, lexer_id: str) -> LexerInfo:
        """Get lexer info, raising for unknown ids."""
        try:
            return self._lexers[lexer_id]
        except KeyError:
            raise ConfigurationError(f"Unknown lexer '{lexer_id}'") from None

    def register(self, info: LexerInfo) -> None:
        self._lexers[info.lexer_id] = info
        self._warned.discard(info.lexer_id)

    def ids(self) -> list[str]:
        return sorted(self._lexers)

    def is_c_like(self, lexer_id: str | None) -> bool:
        return self.get(lexer_id).c_like

    def type_keyword_index(self, lexer_id: str | None) -> int | None:
        return self.get(lexer_id).type_keyword_index

    def comment_style(self, lexer_id: str | None) -> CommentStyle:
        return self.get(lexer_id).comment_style

    def keywords(self, lexer_id: str | None, index: int) -> tuple[str, ...]:
        words = self.get(lexer_id).keywords
        if 0 <= index < len(words):
            return words[index]
        return ()

    def set_keywords(self, lexer_id: str, index: int, words: list[str]) -> None:
        """Replace one keyword list, e.g. type names collected from a tag file."""
        info = self.require(lexer_id)
        lists = list(info.keywords)
        while len(lists) <= index:
            lists.append(())
        lists[index] = tuple(sorted(set(words)))
        self._lexers[lexer_id] = replace(info, keywords=tuple(lists))


def tokenize(text: str, info: LexerInfo) -> list[TokenKind]:
    """Classify every character of text.

    This is a lexical approximation: strings, line comments and block
    comments are recognised, everything else is code.
    """
    n = len(text)
    kinds = [TokenKind.CODE] * n
    line_marker = info.line_comment
    block = info.block_comment
    in_tag = False

    i = 0
    while i < n:
        ch = text[i]

        if block and text.startswith(block[0], i):
            end = text.find(block[1], i + len(block[0]))
            end = n if end == -1 else end + len(block[1])
            kinds[i:end] = [TokenKind.COMMENT] * (end - i)
            i = end
            continue

        if line_marker and text.startswith(line_marker, i):
            end = text.find("\n", i)
            end = n if end == -1 else end
            kinds[i:end] = [TokenKind.COMMENT] * (end - i)
            i = end
            continue

        if info.xml_like:
            if ch == "<":
                in_tag = True
            elif ch == ">":
                in_tag = False

        if ch in info.string_delims and (in_tag or not info.xml_like):
            end = _string_end(text, i, info.triple_quotes)
            kinds[i:end] = [TokenKind.STRING] * (end - i)
            i = end
            continue

        i += 1

    return kinds


def _string_end(text: str, start: int, triple_quotes: bool) -> int:
    """Return the index just past the string literal starting at start."""
    quote = text[start]
    n = len(text)

    if triple_quotes and text.startswith(quote * 3, start):
        end = text.find(quote * 3, start + 3)
        return n if end == -1 else end + 3

    j = start + 1
    while j < n:
        c = text[j]
        if c == "\\":
            j += 2
            continue
        if c == quote:
            return j + 1
        if c == "\n":
            # Unterminated literal stops at the end of the line
            return j
        j += 1
    return n
