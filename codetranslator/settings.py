"""Einstellungen des Übersetzungskerns.

Die Werte stammen aus ``config.ini`` (plus ``config.runtime.ini``) und können
einzeln über Umgebungsvariablen überschrieben werden. Das Ergebnis ist ein
unveränderliches Objekt, das an Transformer und Resolver übergeben wird, statt
globale Konfiguration zu lesen.
"""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from utils import normalize_lang

logger = logging.getLogger(__name__)

DEFAULT_STOPLIST: Tuple[str, ...] = ("في", "الـ", "إلى", "من", "أن", "هو", "هي")
DEFAULT_PROVIDERS: Tuple[str, ...] = ("mymemory", "libretranslate")
KNOWN_PROVIDERS = {"mymemory", "libretranslate", "openai"}

MYMEMORY_URL = "https://api.mymemory.translated.net/get"
LIBRETRANSLATE_URL = "https://libretranslate.de/translate"


@dataclass(frozen=True)
class TranslatorSettings:
    wrapper_char: str = "Z"
    message_lang: str = "ar"
    stoplist: Tuple[str, ...] = DEFAULT_STOPLIST
    reserved_path: Optional[str] = None
    free_path: Optional[str] = None
    resolver_enabled: bool = True
    providers: Tuple[str, ...] = DEFAULT_PROVIDERS
    source_lang: str = "ar"
    target_lang: str = "en"
    timeout_seconds: float = 10.0
    max_retries: int = 2
    backoff_seconds: float = 1.0
    min_call_interval_seconds: float = 0.0
    mymemory_url: str = MYMEMORY_URL
    libretranslate_url: str = LIBRETRANSLATE_URL
    libretranslate_api_key: Optional[str] = field(default=None, repr=False)
    openai_model: str = "gpt-4o-mini"
    openai_api_key: Optional[str] = field(default=None, repr=False)
    openai_base_url: Optional[str] = None


def _split_list(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _get_float(cfg: configparser.ConfigParser, section: str, option: str, default: float) -> float:
    if cfg.has_option(section, option):
        try:
            return cfg.getfloat(section, option)
        except ValueError:
            raw_value = cfg.get(section, option, fallback="").strip()
            logger.warning("Ignoriere ungueltigen Wert fuer %s.%s: %s", section, option, raw_value)
    return default


def _get_int(cfg: configparser.ConfigParser, section: str, option: str, default: int) -> int:
    if cfg.has_option(section, option):
        try:
            return cfg.getint(section, option)
        except ValueError:
            raw_value = cfg.get(section, option, fallback="").strip()
            logger.warning("Ignoriere ungueltigen Wert fuer %s.%s: %s", section, option, raw_value)
    return default


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def settings_from_config(cfg: configparser.ConfigParser | None = None) -> TranslatorSettings:
    """Build :class:`TranslatorSettings` from ``cfg`` and the environment."""
    cfg = cfg or configparser.ConfigParser()

    wrapper = cfg.get("TRANSLATOR", "wrapper_char", fallback="Z").strip() or "Z"
    if len(wrapper) != 1:
        logger.warning("wrapper_char muss genau ein Zeichen sein, nutze 'Z' statt %r", wrapper)
        wrapper = "Z"

    stoplist_raw = cfg.get("TRANSLATOR", "stoplist", fallback="")
    stoplist = _split_list(stoplist_raw) if stoplist_raw.strip() else DEFAULT_STOPLIST

    enabled = cfg.getboolean("RESOLVER", "enabled", fallback=True) if cfg.has_section("RESOLVER") else True
    env_enabled = _env_flag("TRANSLATOR_RESOLVER_ENABLED")
    if env_enabled is not None:
        enabled = env_enabled

    providers_raw = os.getenv("TRANSLATOR_RESOLVER_PROVIDERS") or cfg.get("RESOLVER", "providers", fallback="")
    providers = tuple(p.lower() for p in _split_list(providers_raw)) or DEFAULT_PROVIDERS
    unknown = [p for p in providers if p not in KNOWN_PROVIDERS]
    if unknown:
        logger.warning("Unbekannte Uebersetzungsdienste werden ignoriert: %s", ", ".join(unknown))
        providers = tuple(p for p in providers if p in KNOWN_PROVIDERS)

    return TranslatorSettings(
        wrapper_char=wrapper,
        message_lang=normalize_lang(cfg.get("TRANSLATOR", "message_lang", fallback="ar")),
        stoplist=stoplist,
        reserved_path=cfg.get("VOCABULARY", "reserved_path", fallback="").strip() or None,
        free_path=cfg.get("VOCABULARY", "free_path", fallback="").strip() or None,
        resolver_enabled=enabled,
        providers=providers,
        source_lang=cfg.get("RESOLVER", "source_lang", fallback="ar").strip() or "ar",
        target_lang=cfg.get("RESOLVER", "target_lang", fallback="en").strip() or "en",
        timeout_seconds=max(0.1, _get_float(cfg, "RESOLVER", "timeout_seconds", 10.0)),
        max_retries=max(1, _get_int(cfg, "RESOLVER", "max_retries", 2)),
        backoff_seconds=max(0.0, _get_float(cfg, "RESOLVER", "backoff_seconds", 1.0)),
        # Begrenze auf 0..1000 Sekunden
        min_call_interval_seconds=max(0.0, min(1000.0, _get_float(cfg, "RESOLVER", "min_call_interval_seconds", 0.0))),
        mymemory_url=cfg.get("RESOLVER", "mymemory_url", fallback=MYMEMORY_URL).strip() or MYMEMORY_URL,
        libretranslate_url=(
            os.getenv("LIBRETRANSLATE_URL")
            or cfg.get("RESOLVER", "libretranslate_url", fallback=LIBRETRANSLATE_URL).strip()
            or LIBRETRANSLATE_URL
        ),
        libretranslate_api_key=os.getenv("LIBRETRANSLATE_API_KEY") or None,
        openai_model=cfg.get("RESOLVER", "openai_model", fallback="gpt-4o-mini").strip() or "gpt-4o-mini",
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
    )
