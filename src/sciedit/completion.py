"""Auto-completion and calltip controller."""

import logging
from abc import ABC, abstractmethod
from bisect import bisect_left
from dataclasses import dataclass
from typing import Iterable

from .buffer import Buffer
from .lexers import LexerTable, TokenKind
from .prefs import DEFAULT_PREFS, DEFAULT_SCAN_DISTANCE, MAX_AUTOCOMPLETE_WORDS, EditorPrefs
from .snippets import SnippetTable
from .words import find_current_word, is_word_char, word_before, word_start

logger = logging.getLogger(__name__)

# Member access operators, longest first
MEMBER_OPERATORS = ("->", "::", ".")


@dataclass
class CompletionResult:
    """Candidates for the word before the cursor."""

    items: list[str]
    prefix: str  # The word being completed
    scope: str | None = None  # Set for member completion


class SymbolProvider(ABC):
    """Source of completion candidates and signatures.

    Implementations must answer from a prepared index; these methods run on
    every keystroke.
    """

    @abstractmethod
    def symbols(self, prefix: str, lexer_id: str | None) -> list[str]:
        """Symbols starting with prefix."""
        ...

    def members(self, scope: str, prefix: str, lexer_id: str | None) -> list[str]:
        """Members of scope starting with prefix."""
        return []

    def signatures(self, name: str, lexer_id: str | None) -> list[str]:
        """Call signatures known for name."""
        return []


class StaticSymbolProvider(SymbolProvider):
    """Provider over fixed symbol, member and signature tables."""

    def __init__(
        self,
        symbols: Iterable[str] = (),
        members: dict[str, Iterable[str]] | None = None,
        signatures: dict[str, list[str]] | None = None,
    ) -> None:
        self._symbols = sorted(set(symbols))
        self._members = {scope: sorted(set(names)) for scope, names in (members or {}).items()}
        self._signatures = {name: list(sigs) for name, sigs in (signatures or {}).items()}

    def add_symbols(self, names: Iterable[str]) -> None:
        self._symbols = sorted(set(self._symbols).union(names))

    def add_signature(self, name: str, signature: str) -> None:
        self._signatures.setdefault(name, []).append(signature)

    def symbols(self, prefix: str, lexer_id: str | None) -> list[str]:
        return _with_prefix(self._symbols, prefix)

    def members(self, scope: str, prefix: str, lexer_id: str | None) -> list[str]:
        return _with_prefix(self._members.get(scope, []), prefix)

    def signatures(self, name: str, lexer_id: str | None) -> list[str]:
        return list(self._signatures.get(name, []))


class CombinedProvider(SymbolProvider):
    """Merges the answers of several providers."""

    def __init__(self, providers: list[SymbolProvider]) -> None:
        self.providers = providers

    def symbols(self, prefix: str, lexer_id: str | None) -> list[str]:
        return [s for p in self.providers for s in p.symbols(prefix, lexer_id)]

    def members(self, scope: str, prefix: str, lexer_id: str | None) -> list[str]:
        return [s for p in self.providers for s in p.members(scope, prefix, lexer_id)]

    def signatures(self, name: str, lexer_id: str | None) -> list[str]:
        seen: list[str] = []
        for provider in self.providers:
            for signature in provider.signatures(name, lexer_id):
                if signature not in seen:
                    seen.append(signature)
        return seen


def _with_prefix(sorted_names: list[str], prefix: str) -> list[str]:
    """Slice of a sorted list whose entries start with prefix."""
    if not prefix:
        return list(sorted_names)
    result = []
    for name in sorted_names[bisect_left(sorted_names, prefix) :]:
        if not name.startswith(prefix):
            break
        result.append(name)
    return result


class CompletionController:
    """Decides when to complete or show a calltip, and what to show."""

    def __init__(
        self,
        provider: SymbolProvider | None = None,
        lexers: LexerTable | None = None,
        prefs: EditorPrefs = DEFAULT_PREFS,
    ) -> None:
        self.provider = provider or StaticSymbolProvider()
        self.lexers = lexers or LexerTable()
        self.prefs = prefs

    def _lexer_id(self, buffer: Buffer, lexer_id: str | None) -> str:
        return lexer_id if lexer_id is not None else buffer.lexer.lexer_id

    def _member_scope(self, buffer: Buffer, start: int) -> str | None:
        """Name before a member access operator that ends at start."""
        for op in MEMBER_OPERATORS:
            op_start = start - len(op)
            if op_start >= 0 and buffer.text_range(op_start, start) == op:
                return word_before(buffer, op_start, self.prefs.word_chars) or None
        return None

    def candidates(
        self,
        buffer: Buffer,
        pos: int,
        force: bool = False,
        lexer_id: str | None = None,
    ) -> CompletionResult | None:
        """Completion candidates for the word ending at pos, without showing them."""
        lexer_id = self._lexer_id(buffer, lexer_id)
        word_chars = self.prefs.word_chars

        if not force:
            if pos > 0 and buffer.token_kind_at(pos - 1) in (TokenKind.STRING, TokenKind.COMMENT):
                return None
            # Not in the middle of a word
            if is_word_char(buffer.char_at(pos), word_chars):
                return None

        start = word_start(buffer, pos, word_chars)
        word = buffer.text_range(start, pos)

        scope = None
        if self.lexers.is_c_like(lexer_id):
            scope = self._member_scope(buffer, start)

        if scope is not None:
            items = self.provider.members(scope, word, lexer_id)
        else:
            if not force and len(word) < self.prefs.symbolcompletion_min_chars:
                return None
            items = list(self.provider.symbols(word, lexer_id))
            index = self.lexers.type_keyword_index(lexer_id)
            if index is not None:
                items.extend(k for k in self.lexers.keywords(lexer_id, index) if k.startswith(word))

        items = sorted(set(items), key=lambda name: (name.lower(), name))[:MAX_AUTOCOMPLETE_WORDS]
        if not items:
            return None
        return CompletionResult(items=items, prefix=word, scope=scope)

    def start_auto_complete(
        self,
        buffer: Buffer,
        pos: int,
        force: bool = False,
        lexer_id: str | None = None,
    ) -> bool:
        """Show the completion list for the word ending at pos.

        Returns:
            True if a list was shown
        """
        return self.complete(buffer, pos, force, lexer_id) is not None

    def complete(
        self,
        buffer: Buffer,
        pos: int,
        force: bool = False,
        lexer_id: str | None = None,
    ) -> CompletionResult | None:
        """Like ``start_auto_complete``, returning what was shown."""
        result = self.candidates(buffer, pos, force, lexer_id)
        if result is None:
            # A list left over from a shorter prefix no longer applies
            buffer.cancel_autocomplete()
            return None
        height = min(len(result.items), self.prefs.symbolcompletion_max_height)
        buffer.show_autocomplete(len(result.prefix), result.items, height)
        return result

    def apply_completion(self, buffer: Buffer, pos: int, prefix: str, item: str) -> None:
        """Replace prefix before pos with the chosen item."""
        start = pos - len(prefix)
        buffer.replace_range(start, pos, item)
        buffer.set_cursor(start + len(item))
        buffer.cancel_autocomplete()

    def find_calltip(
        self,
        buffer: Buffer,
        pos: int,
        lexer_id: str | None = None,
        max_distance: int = DEFAULT_SCAN_DISTANCE,
    ) -> tuple[int, str] | None:
        """Signature text for the call enclosing pos, with the position of its name."""
        lexer_id = self._lexer_id(buffer, lexer_id)
        depth = 0
        lower = max(-1, pos - 1 - max_distance)

        paren = None
        i = pos - 1
        while i > lower:
            c = buffer.char_at(i)
            if c in "();{}" and buffer.token_kind_at(i) == TokenKind.CODE:
                if c == ")":
                    depth += 1
                elif c == "(":
                    if depth == 0:
                        paren = i
                        break
                    depth -= 1
                elif depth == 0:
                    # Statement boundary
                    return None
            i -= 1
        if paren is None:
            return None

        name_end = paren
        while name_end > 0 and buffer.char_at(name_end - 1) in (" ", "\t"):
            name_end -= 1
        name = word_before(buffer, name_end, self.prefs.word_chars)
        if not name:
            return None

        signatures = self.provider.signatures(name, lexer_id)
        if not signatures:
            return None
        return name_end - len(name), "\n".join(signatures)

    def show_calltip(self, buffer: Buffer, pos: int, lexer_id: str | None = None) -> bool:
        """Show the signature of the call enclosing pos.

        Returns:
            True if a calltip was shown
        """
        return self.calltip(buffer, pos, lexer_id) is not None

    def calltip(self, buffer: Buffer, pos: int, lexer_id: str | None = None) -> tuple[int, str] | None:
        """Like ``show_calltip``, returning the position and text shown."""
        found = self.find_calltip(buffer, pos, lexer_id, self.prefs.brace_match_max_distance)
        if found is not None:
            buffer.show_calltip(*found)
        return found

    def calltip_for_word(self, buffer: Buffer, pos: int, lexer_id: str | None = None) -> str | None:
        """Show the signature of the word under pos, as on hover."""
        word = find_current_word(buffer, pos, self.prefs.word_chars)
        if not word:
            return None
        signatures = self.provider.signatures(word, self._lexer_id(buffer, lexer_id))
        if not signatures:
            return None
        text = "\n".join(signatures)
        buffer.show_calltip(pos, text)
        return text

    def show_macro_list(self, buffer: Buffer, table: SnippetTable, lexer_id: str | None = None) -> bool:
        """Offer snippet names matching the word before the cursor as a user list."""
        lexer_id = self._lexer_id(buffer, lexer_id)
        word = word_before(buffer, buffer.cursor, self.prefs.word_chars)
        names = [name for name in table.names(lexer_id) if name.startswith(word)]
        if not names:
            logger.debug(f"No snippets match '{word}'")
            return False
        buffer.show_user_list(names)
        return True
