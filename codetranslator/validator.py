"""Heuristische Klammerprüfung über alle Zeilen eines Dokuments.

Geprüft wird der Originaltext (vor der Ersetzung), Strings werden vorher
durch Leerzeichen gleicher Länge ersetzt. Es gibt bewusst keine
Tiefenverfolgung über Zeilen hinweg:

* runde Klammern: mehr ``(`` als ``)`` in derselben Zeile;
* geschweifte Klammern: mehr ``{`` als ``}`` in der Zeile und in keiner
  späteren Zeile ein ``}``.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from utils import DEFAULT_LANG, translate

from .diagnostics import (
    CODE_UNMATCHED_BRACE,
    CODE_UNMATCHED_PAREN,
    SEVERITY_STRUCTURAL,
    Finding,
)
from .scanner import blank_literals, scan_literals

logger = logging.getLogger(__name__)


def strip_literals(lines: Sequence[str]) -> List[str]:
    """Blank out the string literals of every line."""
    return [blank_literals(line, scan_literals(line)) for line in lines]


def has_unmatched_paren(stripped: str) -> bool:
    return stripped.count("(") > stripped.count(")")


def has_unmatched_brace(stripped: str) -> bool:
    return stripped.count("{") > stripped.count("}")


def validate_lines(
    lines: Sequence[str],
    lang: str = DEFAULT_LANG,
    first_line: int = 1,
) -> List[Finding]:
    """Return structural findings for ``lines`` in line order.

    ``first_line`` is the number reported for ``lines[0]``.
    """
    stripped = strip_literals(lines)

    # close_after[i]: some line after i contains "}"
    close_after = [False] * len(stripped)
    seen_close = False
    for idx in range(len(stripped) - 1, -1, -1):
        close_after[idx] = seen_close
        if "}" in stripped[idx]:
            seen_close = True

    findings: List[Finding] = []
    for idx, content in enumerate(stripped):
        line_no = idx + first_line
        if has_unmatched_paren(content):
            findings.append(Finding(
                line=line_no,
                message=translate("unmatched_paren", lang),
                token="(",
                severity=SEVERITY_STRUCTURAL,
                code=CODE_UNMATCHED_PAREN,
            ))
        if has_unmatched_brace(content) and not close_after[idx]:
            findings.append(Finding(
                line=line_no,
                message=translate("unmatched_brace", lang),
                token="{",
                severity=SEVERITY_STRUCTURAL,
                code=CODE_UNMATCHED_BRACE,
            ))

    if findings:
        logger.debug("Klammerpruefung: %s Befunde in %s Zeilen", len(findings), len(lines))
    return findings
