"""Helpers to normalize Arabic tokens before lookup."""

from __future__ import annotations

import re

# Arabic block plus underscore; a token is a maximal run of these characters.
TOKEN_RE = re.compile(r"[\u0600-\u06FF_]+")
SOURCE_ALPHABET_RE = re.compile(r"[\u0600-\u06FF]")
TOKEN_CHAR_RE = re.compile(r"[\u0600-\u06FF_]")

TATWEEL = "\u0640"

# Harakat, Quran annotation marks and the superscript alef.
_DIACRITICS_RE = re.compile(r"[\u0610-\u061A\u064B-\u065F\u0670\u06D6-\u06ED]")

_ALEF_VARIANTS = str.maketrans({
    "\u0623": "\u0627",  # hamza above
    "\u0625": "\u0627",  # hamza below
    "\u0622": "\u0627",  # madda
    "\u0671": "\u0627",  # wasla
})

_YA_VARIANT = "\u0649"  # alef maksura
_YA = "\u064A"
_TA_MARBUTA = "\u0629"
_HA = "\u0647"


def normalize_token(raw: str) -> str:
    """Return the lookup key for ``raw``.

    The folding is lossy on purpose: ta marbuta becomes ha and alef maksura
    becomes ya so that common spelling variants hit the same vocabulary
    entry. The result is only used as a dictionary key and never shown to
    the user.
    """

    if not isinstance(raw, str):
        return ""

    text = raw.replace(TATWEEL, "")
    text = _DIACRITICS_RE.sub("", text)
    text = text.translate(_ALEF_VARIANTS)
    text = text.replace(_YA_VARIANT, _YA)
    text = text.replace(_TA_MARBUTA, _HA)
    return text.strip()


def has_source_letters(text: str) -> bool:
    """Return ``True`` when ``text`` contains at least one Arabic-block character."""

    return bool(SOURCE_ALPHABET_RE.search(text or ""))
