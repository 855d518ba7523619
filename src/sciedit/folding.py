"""Fold regions from brace nesting or indentation, and fold state commands.

Lines are 0-based. A region is ``(header_line, last_line)``; folding it
hides the lines after the header.
"""

import logging

from .buffer import Buffer
from .lexers import TokenKind

logger = logging.getLogger(__name__)

FoldRegion = tuple[int, int]

BRACE_FOLD_LEXERS = frozenset({"css"})

_OPEN_FOR_CLOSE = {")": "(", "]": "[", "}": "{"}


def normalize_fold_ranges(ranges: list[FoldRegion], line_count: int) -> list[FoldRegion]:
    """Drop empty ranges, clamp to the buffer and keep the widest per header."""
    merged: dict[int, int] = {}
    max_line = max(0, line_count - 1)
    for start, end in ranges:
        start = max(0, start)
        end = min(end, max_line)
        if end <= start:
            continue
        prev = merged.get(start)
        if prev is None or end > prev:
            merged[start] = end
    return sorted(merged.items())


def brace_fold_ranges(buffer: Buffer) -> list[FoldRegion]:
    text = buffer.text()
    stack: list[tuple[str, int]] = []
    ranges: list[FoldRegion] = []

    for pos, ch in enumerate(text):
        if ch not in "([{)]}" or buffer.token_kind_at(pos) != TokenKind.CODE:
            continue
        if ch in "([{":
            stack.append((ch, buffer.line_of(pos)))
            continue

        expected = _OPEN_FOR_CLOSE[ch]
        matched = -1
        for i in range(len(stack) - 1, -1, -1):
            if stack[i][0] == expected:
                matched = i
                break
        if matched < 0:
            continue
        _, open_line = stack[matched]
        del stack[matched:]
        close_line = buffer.line_of(pos)
        if close_line > open_line:
            ranges.append((open_line, close_line))

    ranges.extend(_comment_fold_ranges(buffer))
    return ranges


def _comment_fold_ranges(buffer: Buffer) -> list[FoldRegion]:
    """Runs of consecutive lines that start inside a comment."""
    ranges: list[FoldRegion] = []
    run_start: int | None = None
    line_count = buffer.line_count()

    for line in range(line_count + 1):
        in_comment = False
        if line < line_count:
            text = buffer.line_text(line)
            stripped = text.lstrip(" \t")
            first = buffer.line_start(line) + len(text) - len(stripped)
            in_comment = bool(stripped) and buffer.token_kind_at(first) == TokenKind.COMMENT

        if in_comment and run_start is None:
            run_start = line
        elif not in_comment and run_start is not None:
            if line - 1 > run_start:
                ranges.append((run_start, line - 1))
            run_start = None
    return ranges


def indent_fold_ranges(buffer: Buffer) -> list[FoldRegion]:
    """Regions headed by a line whose followers are indented deeper."""
    stack: list[tuple[int, int]] = []
    ranges: list[FoldRegion] = []
    last_nonblank = 0

    for line in range(buffer.line_count()):
        if not buffer.line_text(line).strip():
            continue
        indent = buffer.line_indent(line)
        while stack and indent <= stack[-1][0]:
            _, start = stack.pop()
            if last_nonblank > start:
                ranges.append((start, last_nonblank))
        stack.append((indent, line))
        last_nonblank = line

    while stack:
        _, start = stack.pop()
        if last_nonblank > start:
            ranges.append((start, last_nonblank))
    return ranges


def fold_ranges(buffer: Buffer) -> list[FoldRegion]:
    """Fold regions for the buffer's lexer."""
    lexer = buffer.lexer
    if lexer.c_like or lexer.lexer_id in BRACE_FOLD_LEXERS:
        ranges = brace_fold_ranges(buffer)
    else:
        ranges = indent_fold_ranges(buffer)
    return normalize_fold_ranges(ranges, buffer.line_count())


def fold_region_at(buffer: Buffer, line: int) -> FoldRegion | None:
    """The region headed by line, if any."""
    for region in fold_ranges(buffer):
        if region[0] == line:
            return region
    return None


def hidden_lines(buffer: Buffer) -> set[int]:
    """Lines hidden by the folded headers."""
    hidden: set[int] = set()
    for start, end in fold_ranges(buffer):
        if start in buffer.folded and start not in hidden:
            hidden.update(range(start + 1, end + 1))
    return hidden


def toggle_fold(buffer: Buffer, line: int, unfold_all_children: bool = False) -> bool | None:
    """Fold or unfold the region headed by line.

    Returns the new folded state, or None when line heads no region.
    """
    region = fold_region_at(buffer, line)
    if region is None:
        return None

    if line in buffer.folded:
        buffer.folded.discard(line)
        if unfold_all_children:
            start, end = region
            buffer.folded.difference_update(range(start, end + 1))
        return False

    buffer.folded.add(line)
    return True


def fold_all(buffer: Buffer) -> int:
    """Fold every region. Returns the number of headers folded."""
    headers = [start for start, _ in fold_ranges(buffer)]
    buffer.folded.update(headers)
    logger.debug(f"Folded {len(headers)} regions")
    return len(headers)


def unfold_all(buffer: Buffer) -> None:
    buffer.folded.clear()
