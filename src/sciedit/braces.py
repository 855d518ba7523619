"""Brace and tag matching.

Scans are bounded by a maximum distance so that a call always returns
quickly; a scan that runs out of budget reports ``UNKNOWN`` rather than a
mismatch.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .buffer import Buffer
from .lexers import TokenKind
from .prefs import DEFAULT_SCAN_DISTANCE

logger = logging.getLogger(__name__)

OPENERS = "([{"
CLOSERS = ")]}"
PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
REVERSE_PAIRS = {v: k for k, v in PAIRS.items()}

_TAG_RE = re.compile(r"<(/?)([A-Za-z_][\w:.-]*)([^<>]*?)(/?)>", re.DOTALL)


class MatchStatus(str, Enum):
    """Outcome of a brace match."""

    MATCHED = "matched"
    UNMATCHED = "unmatched"
    UNKNOWN = "unknown"  # Gave up at the scan distance cap
    NOT_A_BRACE = "not_a_brace"


@dataclass(frozen=True)
class BraceMatch:
    """Result of matching the delimiter at origin."""

    status: MatchStatus
    origin: int
    match: int | None = None

    @property
    def found(self) -> bool:
        return self.status == MatchStatus.MATCHED


def is_brace(ch: str, angle_brackets: bool = False) -> bool:
    """Check whether ch is a delimiter the matcher handles."""
    if not ch:
        return False
    if ch in OPENERS or ch in CLOSERS:
        return True
    return angle_brackets and ch in "<>"


def find_match(
    buffer: Buffer,
    pos: int,
    *,
    angle_brackets: bool = False,
    xml: bool = False,
    case_insensitive: bool = False,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> int | None:
    """Position of the delimiter matching the one at pos, or None."""
    result = match_brace(
        buffer,
        pos,
        angle_brackets=angle_brackets,
        xml=xml,
        case_insensitive=case_insensitive,
        max_distance=max_distance,
    )
    return result.match


def match_brace(
    buffer: Buffer,
    pos: int,
    *,
    angle_brackets: bool = False,
    xml: bool = False,
    case_insensitive: bool = False,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> BraceMatch:
    """Match the delimiter at pos, reporting why no match was found."""
    ch = buffer.char_at(pos)

    if xml and ch in "<>":
        return match_tag(buffer, pos, case_insensitive=case_insensitive, max_distance=max_distance)

    if not is_brace(ch, angle_brackets):
        return BraceMatch(MatchStatus.NOT_A_BRACE, pos)

    # Delimiters inside strings and comments never take part in matching
    if buffer.token_kind_at(pos) != TokenKind.CODE:
        return BraceMatch(MatchStatus.NOT_A_BRACE, pos)

    if ch in PAIRS:
        target, step = PAIRS[ch], 1
    else:
        target, step = REVERSE_PAIRS[ch], -1

    length = buffer.length()
    limit = pos + step * max_distance
    depth = 0
    i = pos
    while True:
        i += step
        if i < 0 or i >= length:
            return BraceMatch(MatchStatus.UNMATCHED, pos)
        if i == limit:
            logger.debug(f"Brace scan from {pos} hit the distance cap")
            return BraceMatch(MatchStatus.UNKNOWN, pos)

        c = buffer.char_at(i)
        if c != ch and c != target:
            continue
        if buffer.token_kind_at(i) != TokenKind.CODE:
            continue
        if c == ch:
            depth += 1
        elif depth == 0:
            return BraceMatch(MatchStatus.MATCHED, pos, i)
        else:
            depth -= 1


def find_enclosing_opener(
    buffer: Buffer,
    pos: int,
    *,
    openers: str = OPENERS,
    stop_chars: str = "",
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> int | None:
    """Find the innermost unmatched opener before pos.

    Scans backward from pos - 1. Closers increase the nesting depth of
    their own kind. A character in stop_chars at depth zero ends the scan.
    """
    closers = "".join(PAIRS[o] for o in openers)
    depth: dict[str, int] = {o: 0 for o in openers}
    lower = max(-1, pos - 1 - max_distance)

    i = pos - 1
    while i > lower:
        c = buffer.char_at(i)
        if (c in openers or c in closers or c in stop_chars) and buffer.token_kind_at(i) == TokenKind.CODE:
            if c in closers:
                depth[REVERSE_PAIRS[c]] += 1
            elif c in openers:
                if depth[c] == 0:
                    return i
                depth[c] -= 1
            elif not any(depth.values()):
                return None
        i -= 1
    return None


# === Tags ===


@dataclass(frozen=True)
class _Tag:
    start: int
    end: int
    name: str
    closing: bool
    self_closing: bool


def _tag_at(buffer: Buffer, pos: int, max_distance: int) -> _Tag | None:
    """Parse the tag that contains pos (on its '<' or '>')."""
    ch = buffer.char_at(pos)
    if ch == ">":
        # Walk back to the '<' that opened this tag
        start = pos
        lower = max(0, pos - max_distance)
        while start >= lower and buffer.char_at(start) != "<":
            start -= 1
        if start < lower:
            return None
    else:
        start = pos

    window = buffer.text_range(start, min(buffer.length(), start + max_distance))
    m = _TAG_RE.match(window)
    if not m:
        return None
    if ch == ">" and start + m.end() - 1 != pos:
        return None
    return _Tag(
        start=start,
        end=start + m.end(),
        name=m.group(2),
        closing=bool(m.group(1)),
        self_closing=bool(m.group(4)),
    )


def match_tag(
    buffer: Buffer,
    pos: int,
    *,
    case_insensitive: bool = False,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> BraceMatch:
    """Match a start tag to its end tag (or the reverse) by tag name.

    The result positions are the '<' of each tag.
    """
    tag = _tag_at(buffer, pos, max_distance)
    if tag is None or tag.self_closing or buffer.token_kind_at(tag.start) != TokenKind.CODE:
        return BraceMatch(MatchStatus.NOT_A_BRACE, pos)

    def norm(name: str) -> str:
        return name.lower() if case_insensitive else name

    name = norm(tag.name)

    if not tag.closing:
        window_end = min(buffer.length(), tag.end + max_distance)
        window = buffer.text_range(tag.end, window_end)
        candidates = [(tag.end + m.start(), m) for m in _TAG_RE.finditer(window)]
        opening_delta = 1
    else:
        window_start = max(0, tag.start - max_distance)
        window = buffer.text_range(window_start, tag.start)
        candidates = [(window_start + m.start(), m) for m in _TAG_RE.finditer(window)]
        candidates.reverse()
        opening_delta = -1

    depth = 0
    for start, m in candidates:
        if norm(m.group(2)) != name or m.group(4):
            continue
        if buffer.token_kind_at(start) != TokenKind.CODE:
            continue
        # Same kind as the origin nests deeper, the other kind unwinds
        same_kind = bool(m.group(1)) == tag.closing
        if same_kind:
            depth += 1
        elif depth == 0:
            return BraceMatch(MatchStatus.MATCHED, tag.start, start)
        else:
            depth -= 1

    searched_all = window_end == buffer.length() if opening_delta > 0 else window_start == 0
    if searched_all:
        return BraceMatch(MatchStatus.UNMATCHED, tag.start)
    return BraceMatch(MatchStatus.UNKNOWN, tag.start)


# === Highlighting ===


def highlight_braces(
    buffer: Buffer,
    cur_pos: int,
    *,
    angle_brackets: bool = False,
    xml: bool = False,
    case_insensitive: bool = False,
    max_distance: int = DEFAULT_SCAN_DISTANCE,
) -> BraceMatch:
    """Update the buffer's brace highlight for the cursor at cur_pos.

    The character before the cursor is checked first, then the one at it.
    """
    brace_pos = cur_pos - 1
    ch = buffer.char_at(brace_pos)
    if not _is_delimiter(ch, angle_brackets, xml):
        brace_pos = cur_pos
        ch = buffer.char_at(brace_pos)
        if not _is_delimiter(ch, angle_brackets, xml):
            buffer.clear_brace_highlight()
            return BraceMatch(MatchStatus.NOT_A_BRACE, cur_pos)

    result = match_brace(
        buffer,
        brace_pos,
        angle_brackets=angle_brackets,
        xml=xml,
        case_insensitive=case_insensitive,
        max_distance=max_distance,
    )

    match result.status:
        case MatchStatus.MATCHED:
            buffer.highlight_braces(result.origin, result.match)
        case MatchStatus.UNMATCHED:
            buffer.badlight_brace(result.origin)
        case MatchStatus.UNKNOWN | MatchStatus.NOT_A_BRACE:
            buffer.clear_brace_highlight()

    return result


def _is_delimiter(ch: str, angle_brackets: bool, xml: bool) -> bool:
    return is_brace(ch, angle_brackets or xml)
