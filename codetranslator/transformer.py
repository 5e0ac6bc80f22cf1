"""Übersetzung arabischer Schlüsselwörter in JavaScript-Quelltext.

Ablauf pro Dokument:

1. Der Text wird in Zeilen zerlegt, jede Zeile in Code- und String-Segmente.
2. In Code-Segmenten wird jedes arabische Token über die Lookup-Tabellen
   (frei vor reserviert) und notfalls über den externen Resolver aufgelöst.
   In String-Segmenten werden nur mit dem Markierungszeichen umschlossene
   Wörter (``"ZمرحباZ"``) übersetzt, der restliche Stringinhalt bleibt stehen.
3. Die Zeile wird aus den Eingabebereichen und den Ersetzungen neu
   zusammengesetzt (keine Regex-Ersetzung auf dem ganzen Segment).
4. Unabhängig davon prüft :mod:`codetranslator.validator` die Klammern im
   Originaltext.

Externe Aufrufe werden nacheinander awaited; pro Dokument wird jedes Wort
höchstens einmal extern angefragt. Nicht auflösbare Wörter bleiben unverändert
im Ergebnis stehen und erzeugen einen Befund.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from utils import translate
from vocabulary.models import LookupTables
from vocabulary.normalizer import TOKEN_RE, has_source_letters, normalize_token

from .diagnostics import DiagnosticCollector, Finding
from .resolver import NullResolver, Resolver, ResolverResult
from .scanner import Segment, extract_tokens, scan_literals, split_segments
from .settings import TranslatorSettings
from .validator import validate_lines

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one raw token."""

    output: Optional[str]
    origin: str  # free | reserved | external | stoplist | unresolved

    @property
    def flagged(self) -> bool:
        return self.origin == "unresolved"


ResolutionCache = Dict[Tuple[str, bool], Resolution]


@dataclass
class LineResult:
    text: str
    findings: List[Finding] = field(default_factory=list)


@dataclass
class TransformResult:
    source: str
    text: str
    diagnostics: DiagnosticCollector

    @property
    def findings(self) -> List[Finding]:
        return self.diagnostics.findings

    @property
    def ready(self) -> bool:
        """``True`` when no finding was produced."""
        return len(self.diagnostics) == 0

    def highlight_html(self) -> str:
        return self.diagnostics.render_highlight_html(self.source)

    def to_dict(self) -> Dict[str, object]:
        return {
            "transformedText": self.text,
            "findings": [f.to_dict() for f in self.findings],
            "ready": self.ready,
        }


def normalize_identifier(text: str) -> str:
    """Lowercase ``text`` and join its words with underscores."""
    return _WHITESPACE_RE.sub("_", text.strip().lower())


def escape_for_literal(text: str, quote: str) -> str:
    """Escape backslashes and ``quote`` so ``text`` can sit inside that literal."""
    return text.replace("\\", "\\\\").replace(quote, "\\" + quote)


class CodeTransformer:
    """Rewrites Arabic keyword tokens using injected tables and resolver."""

    def __init__(
        self,
        tables: LookupTables,
        resolver: Optional[Resolver] = None,
        settings: Optional[TranslatorSettings] = None,
    ) -> None:
        self.tables = tables
        self.resolver: Resolver = resolver or NullResolver()
        self.settings = settings or TranslatorSettings()
        self.wrapper = self.settings.wrapper_char
        self._stop_keys = frozenset(normalize_token(word) for word in self.settings.stoplist)
        w = re.escape(self.wrapper)
        self._marked_re = re.compile(f"{w}({TOKEN_RE.pattern}){w}")

    def with_resolver(self, resolver: Resolver) -> "CodeTransformer":
        """Return a transformer sharing tables and settings but using ``resolver``."""
        return CodeTransformer(self.tables, resolver, self.settings)

    # --- Auflösung ------------------------------------------------------

    async def _external(self, raw: str, context_hint: bool) -> ResolverResult:
        try:
            return await self.resolver.resolve(raw, context_hint)
        except Exception as exc:
            logger.warning("Resolver-Fehler für '%s': %s", raw, exc)
            return ResolverResult(raw, False, str(exc))

    async def resolve_token(
        self,
        raw: str,
        context_hint: bool = True,
        cache: Optional[ResolutionCache] = None,
    ) -> Resolution:
        """Resolve ``raw``: free table, reserved table, stoplist, then external.

        ``context_hint`` is ``True`` for tokens in code, where an external
        translation is turned into an identifier (``"first name"`` ->
        ``first_name``). Marked words inside strings keep the translated text.
        """
        key = (raw, context_hint)
        if cache is not None and key in cache:
            return cache[key]

        origin = self.tables.lookup_source(raw)
        if origin is not None:
            resolution = Resolution(self.tables.resolve(raw), origin)
        elif normalize_token(raw) in self._stop_keys:
            resolution = Resolution(None, "stoplist")
        else:
            result = await self._external(raw, context_hint)
            text = ""
            if result.success:
                text = normalize_identifier(result.translated_text) if context_hint else result.translated_text.strip()
            if text and not has_source_letters(text):
                resolution = Resolution(text, "external")
            else:
                logger.debug("Nicht aufgelöst: '%s' (%s)", raw, result.error or "keine brauchbare Übersetzung")
                resolution = Resolution(None, "unresolved")

        if cache is not None:
            cache[key] = resolution
        return resolution

    def _unresolved_finding(self, raw: str, line_number: int) -> Finding:
        return Finding(
            line=line_number,
            message=translate("unresolved_token", self.settings.message_lang, word=raw),
            token=raw,
        )

    # --- Segmente -------------------------------------------------------

    async def _rewrite_code(
        self,
        segment: Segment,
        line_number: int,
        cache: ResolutionCache,
        findings: List[Finding],
    ) -> str:
        text = segment.text
        parts: List[str] = []
        pos = 0
        for token in extract_tokens(text):
            resolution = await self.resolve_token(token.text, True, cache)
            start, end = token.start, token.end
            # Markierung um ein Code-Token wird entfernt: ZمتغيرZ -> let
            if (
                start - 1 >= pos
                and text[start - 1] == self.wrapper
                and end < len(text)
                and text[end] == self.wrapper
            ):
                start -= 1
                end += 1
            parts.append(text[pos:start])
            parts.append(resolution.output if resolution.output is not None else token.text)
            pos = end
            if resolution.flagged:
                findings.append(self._unresolved_finding(token.text, line_number))
        parts.append(text[pos:])
        return "".join(parts)

    async def _rewrite_literal(
        self,
        segment: Segment,
        line_number: int,
        cache: ResolutionCache,
        findings: List[Finding],
    ) -> str:
        text = segment.text
        quote = text[0]
        parts: List[str] = []
        pos = 0
        for match in self._marked_re.finditer(text):
            raw = match.group(1)
            if not has_source_letters(raw):
                continue
            resolution = await self.resolve_token(raw, False, cache)
            parts.append(text[pos:match.start()])
            if resolution.output is not None:
                parts.append(escape_for_literal(resolution.output, quote))
            else:
                parts.append(raw)
            pos = match.end()
            if resolution.flagged:
                findings.append(self._unresolved_finding(raw, line_number))
        parts.append(text[pos:])
        return "".join(parts)

    async def _rewrite_line(
        self,
        line: str,
        line_number: int,
        cache: ResolutionCache,
    ) -> LineResult:
        if not line:
            return LineResult("")
        findings: List[Finding] = []
        parts: List[str] = []
        for segment in split_segments(line, scan_literals(line)):
            if segment.is_literal:
                parts.append(await self._rewrite_literal(segment, line_number, cache, findings))
            else:
                parts.append(await self._rewrite_code(segment, line_number, cache, findings))
        return LineResult("".join(parts), findings)

    # --- Öffentliche API ------------------------------------------------

    async def transform_line(
        self,
        line: str,
        line_number: int = 1,
        cache: Optional[ResolutionCache] = None,
    ) -> LineResult:
        """Translate a single line and check its brackets on their own."""
        result = await self._rewrite_line(line, line_number, cache if cache is not None else {})
        result.findings.extend(
            validate_lines([line], self.settings.message_lang, first_line=line_number)
        )
        return result

    async def transform_document(self, text: str) -> TransformResult:
        """Translate ``text`` line by line and collect all findings.

        Findings are ordered by line; within a line token findings come first,
        followed by the bracket findings for that line.
        """
        if not isinstance(text, str):
            text = "" if text is None else str(text)
        lines = text.split("\n")

        structural: Dict[int, List[Finding]] = defaultdict(list)
        for finding in validate_lines(lines, self.settings.message_lang):
            structural[finding.line].append(finding)

        collector = DiagnosticCollector()
        cache: ResolutionCache = {}
        out_lines: List[str] = []
        for idx, line in enumerate(lines, start=1):
            result = await self._rewrite_line(line, idx, cache)
            out_lines.append(result.text)
            collector.extend(result.findings)
            collector.extend(structural.get(idx, []))

        logger.info(
            "Übersetzung abgeschlossen: %s Zeilen, %s Befunde, %s externe Wörter",
            len(lines),
            len(collector),
            sum(1 for r in cache.values() if r.origin == "external"),
        )
        return TransformResult(source=text, text="\n".join(out_lines), diagnostics=collector)

    def transform_document_sync(self, text: str) -> TransformResult:
        """Blocking wrapper for callers without an event loop (CLI, Flask)."""
        return asyncio.run(self.transform_document(text))
