"""Findings, highlight markers and the per-document collector.

A :class:`Finding` is what the caller sees in the error list; a
:class:`Marker` is only used to paint the finding back onto the source text.
Markers are recomputed from the findings on every call, nothing is cached.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence

from utils import escape, translate
from vocabulary.normalizer import TOKEN_CHAR_RE

from .scanner import blank_literals, inside_spans, scan_literals

SEVERITY_UNRESOLVED = "unresolved"
SEVERITY_STRUCTURAL = "structural"

CODE_UNRESOLVED_TOKEN = "unresolved_token"
CODE_UNMATCHED_PAREN = "unmatched_paren"
CODE_UNMATCHED_BRACE = "unmatched_brace"

_BRACKET_PAIRS = {CODE_UNMATCHED_PAREN: ("(", ")"), CODE_UNMATCHED_BRACE: ("{", "}")}


@dataclass(frozen=True)
class Finding:
    """Diagnostic tied to a 1-based line number."""

    line: int
    message: str
    token: str
    severity: str = SEVERITY_UNRESOLVED
    code: str = CODE_UNRESOLVED_TOKEN

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    def format(self, lang: str = "ar") -> str:
        return translate("finding_line", lang, line=self.line, message=self.message)


@dataclass(frozen=True)
class Marker:
    start: int
    end: int
    message: str


def _is_token_boundary(line: str, start: int, end: int) -> bool:
    before = line[start - 1] if start > 0 else ""
    after = line[end] if end < len(line) else ""
    return not (before and TOKEN_CHAR_RE.match(before)) and not (after and TOKEN_CHAR_RE.match(after))


def unmatched_open_positions(blanked: str, open_ch: str, close_ch: str) -> List[int]:
    """Return the positions of opening brackets left without a partner on the line."""
    stack: List[int] = []
    for pos, ch in enumerate(blanked):
        if ch == open_ch:
            stack.append(pos)
        elif ch == close_ch and stack:
            stack.pop()
    return stack


def merge_markers(markers: Iterable[Marker]) -> List[Marker]:
    """Sort by start and drop every marker that begins before the previous end."""
    merged: List[Marker] = []
    for marker in sorted(markers, key=lambda m: (m.start, m.end)):
        if merged and marker.start < merged[-1].end:
            continue
        merged.append(marker)
    return merged


def compute_markers(line: str, findings: Sequence[Finding]) -> List[Marker]:
    """Locate each finding's token in ``line`` outside string literals.

    Word tokens must match on token boundaries so ``اسم`` does not light up
    inside ``الاسم``. Bracket findings mark only the opening brackets that
    stay unmatched on the line, so ``f(a) + g(`` lights up the last ``(``.
    """
    spans = scan_literals(line)
    markers: List[Marker] = []
    for finding in findings:
        needle = finding.token
        if not needle:
            continue
        pair = _BRACKET_PAIRS.get(finding.code)
        if pair is not None:
            blanked = blank_literals(line, spans)
            for pos in unmatched_open_positions(blanked, *pair):
                markers.append(Marker(pos, pos + 1, finding.message))
            continue
        word_like = bool(TOKEN_CHAR_RE.match(needle[0]))
        pos = line.find(needle)
        while pos != -1:
            end = pos + len(needle)
            if not inside_spans(pos, end, spans) and (
                not word_like or _is_token_boundary(line, pos, end)
            ):
                markers.append(Marker(pos, end, finding.message))
            pos = line.find(needle, pos + 1)
    return merge_markers(markers)


def render_line_html(line: str, markers: Sequence[Marker]) -> str:
    """Return ``line`` as escaped HTML with the markers wrapped in spans."""
    parts: List[str] = []
    pos = 0
    for marker in markers:
        parts.append(escape(line[pos:marker.start]))
        parts.append(
            f'<span class="error-token" title="{escape(marker.message)}">'
            f"{escape(line[marker.start:marker.end])}</span>"
        )
        pos = marker.end
    parts.append(escape(line[pos:]))
    return "".join(parts)


class DiagnosticCollector:
    """Ordered findings of one document transform.

    The order is discovery order. Identical findings on the same line are
    kept; only the highlight markers are merged.
    """

    def __init__(self) -> None:
        self._findings: List[Finding] = []

    def reset(self) -> None:
        self._findings = []

    def add(self, finding: Finding) -> None:
        self._findings.append(finding)

    def extend(self, findings: Iterable[Finding]) -> None:
        self._findings.extend(findings)

    @property
    def findings(self) -> List[Finding]:
        return list(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    def for_line(self, line_number: int) -> List[Finding]:
        return [f for f in self._findings if f.line == line_number]

    def markers_for_line(self, line_number: int, text: str) -> List[Marker]:
        return compute_markers(text, self.for_line(line_number))

    def render_highlight_html(self, text: str) -> str:
        """Return ``text`` as HTML with every finding highlighted in place."""
        rendered: List[str] = []
        for idx, line in enumerate(text.split("\n"), start=1):
            rendered.append(render_line_html(line, self.markers_for_line(idx, line)))
        return "\n".join(rendered)

    def summary(self) -> Dict[str, int]:
        return dict(Counter(f.code for f in self._findings))
