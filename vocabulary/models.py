"""Dataclasses representing the bilingual vocabulary and its lookup tables."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional

from .normalizer import normalize_token


@dataclass
class VocabularyEntry:
    """Single vocabulary pair.

    Attributes:
        source: Canonical Arabic phrase as written in the vocabulary file.
        output: Replacement text emitted in the translated code.
    """

    source: str
    output: str


@dataclass
class Vocabulary:
    """Ordered collection of vocabulary entries.

    The order of ``entries`` is the file order. It matters when several
    spellings normalize to the same key: the later entry wins.
    """

    name: str = ""
    entries: List[VocabularyEntry] = field(default_factory=list)

    def as_mapping(self) -> dict:
        return {entry.source: entry.output for entry in self.entries}


@dataclass(frozen=True)
class LookupTables:
    """Read-only lookup tables keyed by normalized token.

    ``free`` holds project-local identifier overrides and is always consulted
    before ``reserved`` (keywords, literals, built-in objects).
    """

    free: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    reserved: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def lookup_source(self, token: str) -> Optional[str]:
        """Return ``"free"``, ``"reserved"`` or ``None`` for ``token``."""
        key = normalize_token(token)
        if not key:
            return None
        if key in self.free:
            return "free"
        if key in self.reserved:
            return "reserved"
        return None

    def resolve(self, token: str) -> Optional[str]:
        """Return the mapped output for ``token`` or ``None``."""
        key = normalize_token(token)
        if not key:
            return None
        hit = self.free.get(key)
        if hit is not None:
            return hit
        return self.reserved.get(key)

    def sizes(self) -> dict:
        return {"free": len(self.free), "reserved": len(self.reserved)}
