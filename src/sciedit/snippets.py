"""Snippet engine.

Templates are plain strings with markers:

- ``@cursor@``: where the cursor ends up (at most one per template)
- ``@1@``, ``@2@``, ...: tab stops, visited in number order
- ``@indent@``: the indentation of the line the snippet is expanded on

A newline in a template continues at the current line's indentation and
a tab character becomes one indent unit.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .buffer import Buffer, leading_whitespace, shift_position
from .errors import ConfigurationError, SnippetError
from .indent import IndentStyle
from .prefs import WORDCHARS
from .words import word_before

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "Default"

_MARKER_RE = re.compile(r"@(cursor|indent|\d+)@")
_UNTERMINATED_RE = re.compile(r"@(cursor|indent|\d+)(?![@\w])")


class PartKind(str, Enum):
    TEXT = "text"
    CURSOR = "cursor"
    STOP = "stop"
    INDENT = "indent"


@dataclass(frozen=True)
class Part:
    kind: PartKind
    text: str = ""
    number: int = 0


@dataclass(frozen=True)
class SnippetTemplate:
    """A parsed snippet body."""

    name: str
    body: str
    parts: tuple[Part, ...]

    @property
    def has_cursor(self) -> bool:
        return any(part.kind == PartKind.CURSOR for part in self.parts)

    @property
    def stop_numbers(self) -> list[int]:
        return sorted(part.number for part in self.parts if part.kind == PartKind.STOP)


@dataclass(frozen=True)
class ExpandedSnippet:
    """Template text ready for insertion, with offsets relative to its start."""

    text: str
    cursor: int
    ring: tuple[int, ...]


def _check_unterminated(name: str, chunk: str) -> None:
    m = _UNTERMINATED_RE.search(chunk)
    if m:
        raise SnippetError(name, f"unterminated marker '{m.group(0)}'")


def parse_template(name: str, body: str) -> SnippetTemplate:
    """Split a template body into text and marker parts.

    Raises:
        SnippetError: On an unterminated marker, a second cursor marker or a
            repeated tab stop number
    """
    if not isinstance(body, str):
        raise SnippetError(name, f"body must be a string, got {type(body).__name__}")

    parts: list[Part] = []
    seen_cursor = False
    seen_stops: set[int] = set()
    pos = 0

    for m in _MARKER_RE.finditer(body):
        chunk = body[pos : m.start()]
        _check_unterminated(name, chunk)
        if chunk:
            parts.append(Part(PartKind.TEXT, chunk))

        token = m.group(1)
        if token == "cursor":
            if seen_cursor:
                raise SnippetError(name, "more than one @cursor@ marker")
            seen_cursor = True
            parts.append(Part(PartKind.CURSOR))
        elif token == "indent":
            parts.append(Part(PartKind.INDENT))
        else:
            number = int(token)
            if number in seen_stops:
                raise SnippetError(name, f"tab stop @{number}@ appears twice")
            seen_stops.add(number)
            parts.append(Part(PartKind.STOP, number=number))
        pos = m.end()

    tail = body[pos:]
    _check_unterminated(name, tail)
    if tail:
        parts.append(Part(PartKind.TEXT, tail))

    return SnippetTemplate(name=name, body=body, parts=tuple(parts))


def expand_template(
    template: SnippetTemplate,
    line_indent: str,
    unit: str,
    eol: str = "\n",
) -> ExpandedSnippet:
    """Render a template for a line indented by line_indent.

    The ring lists the tab stops in number order followed by the cursor
    marker, when the template has one.
    """
    chunks: list[str] = []
    length = 0
    cursor: int | None = None
    stops: dict[int, int] = {}

    for part in template.parts:
        text = ""
        match part.kind:
            case PartKind.TEXT:
                text = part.text.replace("\t", unit).replace("\n", eol + line_indent)
            case PartKind.INDENT:
                text = line_indent
            case PartKind.CURSOR:
                cursor = length
            case PartKind.STOP:
                stops[part.number] = length
        chunks.append(text)
        length += len(text)

    ring = [stops[number] for number in sorted(stops)]
    if cursor is not None:
        ring.append(cursor)
    return ExpandedSnippet(
        text="".join(chunks),
        cursor=cursor if cursor is not None else length,
        ring=tuple(ring),
    )


class SnippetSession:
    """Tab stops of an expanded snippet that the trigger key cycles through.

    Positions follow later edits to the buffer through ``shift``.
    """

    def __init__(self, name: str, start: int, end: int, ring: list[int]) -> None:
        self.name = name
        self.start = start
        self.end = end
        self.ring = list(ring)
        self.index = 0

    @property
    def cycling(self) -> bool:
        """Whether there is more than one place to jump between."""
        return len(self.ring) > 1

    def current(self) -> int | None:
        return self.ring[self.index] if self.ring else None

    def next(self) -> int | None:
        """Advance to the next ring entry, wrapping after the last."""
        if not self.ring:
            return None
        self.index = (self.index + 1) % len(self.ring)
        return self.ring[self.index]

    def contains(self, pos: int) -> bool:
        return self.start <= pos <= self.end

    def shift(self, start: int, removed: int, inserted: int) -> None:
        # Typing at the end grows the snippet
        if start == self.end and removed == 0:
            self.end += inserted
        else:
            self.end = shift_position(self.end, start, removed, inserted)
        self.start = shift_position(self.start, start, removed, inserted)
        self.ring = [shift_position(p, start, removed, inserted) for p in self.ring]


class SnippetTable:
    """Snippet templates grouped by lexer id, with a shared default group.

    Loaded once at startup and shared read-only by every editor.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self.errors: list[SnippetError] = []
        self._groups: dict[str, dict[str, SnippetTemplate]] = {}

    def __len__(self) -> int:
        return sum(len(group) for group in self._groups.values())

    def load(self, mapping: dict[str, Any]) -> int:
        """Add templates from ``{group: {name: body}}``.

        Malformed templates are logged and skipped unless the table is strict.

        Returns:
            Number of templates added
        """
        added = 0
        for group, entries in mapping.items():
            if not isinstance(entries, dict):
                error = ConfigurationError(f"Snippet group '{group}' must be an object")
                if self.strict:
                    raise error
                logger.warning(str(error))
                continue

            for name, body in entries.items():
                try:
                    template = parse_template(name, body)
                except SnippetError as e:
                    if self.strict:
                        raise
                    logger.warning(f"Skipping snippet: {e}")
                    self.errors.append(e)
                    continue
                self._groups.setdefault(group, {})[name] = template
                added += 1

        logger.debug(f"Loaded {added} snippets")
        return added

    @classmethod
    def from_file(cls, path: Path | str, strict: bool = False) -> "SnippetTable":
        """Load a table from a JSON file.

        Raises:
            ConfigurationError: If the file is not a JSON object
        """
        table = cls(strict=strict)
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read snippets from {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Snippets file {path} must contain a JSON object")
        table.load(data)
        return table

    def add(self, name: str, body: str, group: str = DEFAULT_GROUP) -> SnippetTemplate:
        """Add one template, raising SnippetError if it is malformed."""
        template = parse_template(name, body)
        self._groups.setdefault(group, {})[name] = template
        return template

    def get(self, name: str, lexer_id: str | None = None) -> SnippetTemplate | None:
        """Exact, case-sensitive lookup; the lexer's group wins over the default."""
        if lexer_id is not None:
            template = self._groups.get(lexer_id, {}).get(name)
            if template is not None:
                return template
        return self._groups.get(DEFAULT_GROUP, {}).get(name)

    def names(self, lexer_id: str | None = None) -> list[str]:
        names = set(self._groups.get(DEFAULT_GROUP, {}))
        if lexer_id is not None:
            names.update(self._groups.get(lexer_id, {}))
        return sorted(names)

    def groups(self) -> list[str]:
        return sorted(self._groups)

    def clear(self) -> None:
        self._groups.clear()
        self.errors.clear()


def expand_snippet(
    buffer: Buffer,
    pos: int,
    table: SnippetTable,
    lexer_id: str | None,
    style: IndentStyle,
    word_chars: str = WORDCHARS,
    *,
    whilst_editing: bool = False,
) -> SnippetSession | None:
    """Replace the snippet name before pos with its expansion.

    Unless whilst_editing is set, only whitespace may follow pos on the
    line. Returns None when there is no snippet to expand.
    """
    name = word_before(buffer, pos, word_chars)
    if not name:
        return None

    line = buffer.line_of(pos)
    if not whilst_editing and buffer.text_range(pos, buffer.line_end(line)).strip():
        return None

    template = table.get(name, lexer_id)
    if template is None:
        return None

    line_indent = leading_whitespace(buffer.line_text(line))
    expanded = expand_template(template, line_indent, style.unit, buffer.eol_mode.chars)

    start = pos - len(name)
    buffer.replace_range(start, pos, expanded.text)
    ring = [start + offset for offset in expanded.ring]
    session = SnippetSession(name, start, start + len(expanded.text), ring)
    buffer.set_cursor(ring[0] if ring else start + expanded.cursor)

    logger.debug(f"Expanded snippet '{name}' at {start}")
    return session
