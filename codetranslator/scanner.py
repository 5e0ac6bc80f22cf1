"""String-literal aware scanning of a single line.

Everything here is line-local: an unterminated quote does not carry over to
the next line, it simply produces no span.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from vocabulary.normalizer import TOKEN_RE, has_source_letters

QUOTE_CHARS = ('"', "'", "`")
ESCAPE_CHAR = "\\"


@dataclass(frozen=True)
class LiteralSpan:
    """Half-open ``[start, end)`` range of a quoted literal, delimiters included."""

    start: int
    end: int


@dataclass(frozen=True)
class Segment:
    start: int
    end: int
    text: str
    is_literal: bool


@dataclass(frozen=True)
class Token:
    """Maximal run of Arabic-block characters and underscores within a line."""

    text: str
    start: int
    end: int


def scan_literals(line: str) -> List[LiteralSpan]:
    """Return the quoted-literal spans of ``line`` in left-to-right order."""
    spans: List[LiteralSpan] = []
    quote = None
    opened_at = -1
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == ESCAPE_CHAR:
            # the escaped character never acts as a delimiter
            i += 2
            continue
        if quote is None:
            if ch in QUOTE_CHARS:
                quote = ch
                opened_at = i
        elif ch == quote:
            spans.append(LiteralSpan(opened_at, i + 1))
            quote = None
        i += 1
    return spans


def split_segments(line: str, spans: Sequence[LiteralSpan]) -> List[Segment]:
    """Partition ``line`` into alternating non-literal and literal segments."""
    segments: List[Segment] = []
    pos = 0
    for span in spans:
        if span.start > pos:
            segments.append(Segment(pos, span.start, line[pos:span.start], False))
        segments.append(Segment(span.start, span.end, line[span.start:span.end], True))
        pos = span.end
    if pos < len(line):
        segments.append(Segment(pos, len(line), line[pos:], False))
    return segments


def blank_literals(line: str, spans: Sequence[LiteralSpan]) -> str:
    """Replace every literal span by spaces of equal length."""
    if not spans:
        return line
    chars = list(line)
    for span in spans:
        for i in range(span.start, span.end):
            chars[i] = " "
    return "".join(chars)


def inside_spans(start: int, end: int, spans: Sequence[LiteralSpan]) -> bool:
    """Return ``True`` if ``[start, end)`` overlaps any of ``spans``."""
    return any(start < span.end and span.start < end for span in spans)


def extract_tokens(text: str, offset: int = 0) -> List[Token]:
    """Return the source-alphabet tokens in ``text``.

    Runs made only of underscores are not tokens. ``offset`` is added to the
    reported positions so callers can pass a segment and get line offsets.
    """
    tokens: List[Token] = []
    for match in TOKEN_RE.finditer(text):
        raw = match.group(0)
        if not has_source_letters(raw):
            continue
        tokens.append(Token(raw, match.start() + offset, match.end() + offset))
    return tokens
