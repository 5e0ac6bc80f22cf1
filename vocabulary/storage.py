"""Storage helpers for the bilingual vocabulary.

The loader tolerates the encodings and shapes that show up when vocabulary
files are edited by hand or exported from spreadsheets (BOM, UTF-16, stray
control characters). Two formats are accepted: the flat mapping
``{"متغير": "let"}`` used by the bundled data and the word-list format
``[{"ar": ..., "en": ...}]`` of the original word database source. Saving
always emits the flat mapping.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional

from .models import LookupTables, Vocabulary, VocabularyEntry
from .normalizer import normalize_token

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_RESERVED_PATH = DATA_DIR / "reserved_keywords.json"
DEFAULT_FREE_PATH = DATA_DIR / "free_identifiers.json"


def _read_text(p: Path) -> str:
    raw = p.read_bytes()
    for enc in ("utf-8-sig", "utf-16"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


def _parse_json(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        cleaned = "".join(ch for ch in text if ch >= " " or ch in "\n\t\r")
        if not cleaned.strip():
            return None
        return json.loads(cleaned)


def _entry_from_pair(source: object, output: object) -> Optional[VocabularyEntry]:
    if not isinstance(source, str) or not isinstance(output, str):
        return None
    source = source.strip()
    if not source:
        return None
    return VocabularyEntry(source=source, output=output.strip())


def load_vocabulary(path: str | Path, name: str | None = None) -> Vocabulary:
    """Return the vocabulary stored at ``path`` or an empty one if not found."""
    p = Path(path)
    vocab = Vocabulary(name=name or p.stem)
    if not p.exists():
        logger.warning("Vokabular %s nicht gefunden – Tabelle bleibt leer", p)
        return vocab

    text = _read_text(p)
    if not text.strip():
        return vocab

    data = _parse_json(text)
    if data is None:
        return vocab

    if isinstance(data, dict):
        pairs = list(data.items())
    elif isinstance(data, list):
        pairs = []
        for item in data:
            if isinstance(item, dict):
                pairs.append((item.get("ar"), item.get("en")))
            else:
                logger.debug("Ignoriere Wortlisten-Eintrag %r in %s", item, p)
    else:
        logger.error("Unerwartetes Vokabular-Format: %s", type(data).__name__)
        return vocab

    for source, output in pairs:
        entry = _entry_from_pair(source, output)
        if entry is None:
            logger.debug("Ignoriere ungueltigen Eintrag %r -> %r in %s", source, output, p)
            continue
        vocab.entries.append(entry)
    return vocab


def save_vocabulary(vocab: Vocabulary, path: str | Path) -> None:
    """Persist ``vocab`` as a flat JSON mapping at ``path``."""
    p = Path(path)
    data: Dict[str, str] = {}
    for entry in vocab.entries:
        data[entry.source] = entry.output
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def validate_vocabulary(vocab: Vocabulary) -> None:
    """Raise ``ValueError`` if the vocabulary contains malformed entries."""
    if not isinstance(vocab.entries, list):
        raise ValueError("Invalid entry list")
    for idx, entry in enumerate(vocab.entries):
        if not isinstance(entry.source, str) or not entry.source.strip():
            raise ValueError(f"Invalid source phrase at position {idx}: {entry.source!r}")
        if not isinstance(entry.output, str):
            raise ValueError(f"Invalid output for {entry.source}: {entry.output!r}")
        if not normalize_token(entry.source):
            raise ValueError(f"Source phrase normalizes to nothing: {entry.source!r}")


def build_word_list(items: Iterable[dict], name: str = "words") -> Vocabulary:
    """Build a vocabulary from ``[{"ar": ..., "en": ...}]`` records.

    The first occurrence of a trimmed source phrase wins; later duplicates are
    dropped. Records without a source phrase are skipped.
    """
    vocab = Vocabulary(name=name)
    seen: set[str] = set()
    for item in items:
        if not isinstance(item, dict):
            continue
        entry = _entry_from_pair(item.get("ar"), item.get("en"))
        if entry is None or entry.source in seen:
            continue
        seen.add(entry.source)
        vocab.entries.append(entry)
    return vocab


def _index(vocab: Vocabulary) -> Dict[str, str]:
    table: Dict[str, str] = {}
    for entry in vocab.entries:
        key = normalize_token(entry.source)
        if not key:
            continue
        if key in table and table[key] != entry.output:
            logger.debug(
                "Schluessel %s in %s doppelt belegt: %s ersetzt %s",
                key,
                vocab.name,
                entry.output,
                table[key],
            )
        table[key] = entry.output
    return table


def build_lookup_tables(reserved: Vocabulary, free: Vocabulary | None = None) -> LookupTables:
    """Index ``reserved`` and ``free`` by normalized source phrase.

    Each vocabulary is iterated once in file order, so on key collisions the
    last entry wins.
    """
    return LookupTables(
        free=MappingProxyType(_index(free) if free is not None else {}),
        reserved=MappingProxyType(_index(reserved)),
    )


def load_default_tables(
    reserved_path: str | Path | None = None,
    free_path: str | Path | None = None,
) -> LookupTables:
    """Load the bundled (or configured) vocabulary files into lookup tables."""
    reserved = load_vocabulary(reserved_path or DEFAULT_RESERVED_PATH, name="reserved")
    free = load_vocabulary(free_path or DEFAULT_FREE_PATH, name="free")
    tables = build_lookup_tables(reserved, free)
    logger.info(
        "Vokabular geladen: %s reservierte, %s freie Eintraege",
        len(tables.reserved),
        len(tables.free),
    )
    return tables


def collisions(vocab: Vocabulary) -> Dict[str, List[str]]:
    """Return normalized keys that several source phrases collapse to."""
    groups: Dict[str, List[str]] = {}
    for entry in vocab.entries:
        key = normalize_token(entry.source)
        if not key:
            continue
        bucket = groups.setdefault(key, [])
        if entry.source not in bucket:
            bucket.append(entry.source)
    return {key: sources for key, sources in groups.items() if len(sources) > 1}


def compare_vocabularies(old: Vocabulary, new: Vocabulary) -> Dict[str, str]:
    """Return status mapping when ``new`` is compared against ``old``.

    The returned dictionary maps each source phrase to one of the following
    strings:

    ``"added"``     -- present only in ``new``.
    ``"removed"``   -- present only in ``old``.
    ``"changed"``   -- exists in both but maps to a different output.
    ``"unchanged"`` -- identical entries.
    """

    old_map = old.as_mapping()
    new_map = new.as_mapping()
    statuses: Dict[str, str] = {}
    for key in set(old_map) | set(new_map):
        if key not in old_map:
            statuses[key] = "added"
        elif key not in new_map:
            statuses[key] = "removed"
        elif old_map[key] != new_map[key]:
            statuses[key] = "changed"
        else:
            statuses[key] = "unchanged"
    return statuses
