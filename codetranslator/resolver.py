"""Externe Übersetzungsdienste für Wörter ohne Vokabulareintrag.

Ein Resolver nimmt ein einzelnes arabisches Wort und liefert asynchron eine
bestmögliche Übersetzung oder einen Fehlschlag. Fehler verlassen den Resolver
nie als Exception: Netzwerkprobleme, HTTP-Fehler und unerwartete Antworten
werden in ein :class:`ResolverResult` mit ``success=False`` übersetzt.

Die HTTP-Aufrufe sind blockierend (``requests``) und laufen über
``asyncio.to_thread``, damit der Transformer sie sequenziell awaiten kann.
Zwischen zwei Aufrufen wird ein konfigurierbarer Mindestabstand eingehalten.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import requests
from openai import OpenAI

from .settings import TranslatorSettings

logger = logging.getLogger(__name__)

USER_AGENT = "ArabicCodeTranslator/1.0"


@dataclass(frozen=True)
class ResolverResult:
    translated_text: str
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"translatedText": self.translated_text, "success": self.success}
        if self.error:
            data["error"] = self.error
        return data


class Resolver(Protocol):
    name: str

    async def resolve(self, word: str, context_hint: bool = False) -> ResolverResult:
        ...


class NullResolver:
    """Resolver used when external translation is switched off."""

    name = "disabled"

    async def resolve(self, word: str, context_hint: bool = False) -> ResolverResult:
        return ResolverResult(word, False, "resolver disabled")


# Globale Drossel für alle HTTP-Resolver (prozesslokal)
_THROTTLE_LOCK = threading.Lock()
_LAST_CALL_TS: float = 0.0


def enforce_min_interval(interval: float) -> None:
    """Erzwingt den konfigurierten Mindestabstand zwischen zwei Dienstaufrufen.

    Thread-sicher, prozesslokal.
    """
    if interval <= 0:
        return
    now = time.monotonic()
    with _THROTTLE_LOCK:
        global _LAST_CALL_TS
        elapsed = now - _LAST_CALL_TS if _LAST_CALL_TS else interval
        if elapsed < interval:
            wait = interval - elapsed
            logger.info("RESOLVER_THROTTLE_WAIT: Warte %.2fs (min %.2fs) bis zum nächsten Aufruf.", wait, interval)
            time.sleep(wait)
        _LAST_CALL_TS = time.monotonic()


def _should_retry_request(exc: requests.RequestException) -> bool:
    """Bestimmt, ob bei HTTP-Fehlern erneut versucht werden soll (429/5xx)."""
    resp_obj = getattr(exc, "response", None)
    status = getattr(resp_obj, "status_code", None)
    return isinstance(status, int) and (status == 429 or status >= 500)


def _request_with_retries(
    method: str,
    url: str,
    *,
    timeout: float,
    max_retries: int,
    backoff_seconds: float,
    logger_prefix: str,
    before_request: Optional[Callable[[], None]] = None,
    **kwargs: Any,
) -> requests.Response:
    """Führt die Anfrage mit Retry-Logik (429/5xx) und optionalem Hook vor Request aus."""
    last_error: requests.RequestException | None = None
    for attempt in range(max_retries):
        try:
            if before_request:
                before_request()
            response = requests.request(method, url, timeout=timeout, **kwargs)
            logger.debug("%s Antwort Status Code: %s", logger_prefix, response.status_code)
            if response.status_code == 429:
                raise requests.HTTPError(response=response)
            response.raise_for_status()
            return response
        except requests.RequestException as exc:
            last_error = exc
            if attempt < max_retries - 1 and _should_retry_request(exc):
                resp_obj = getattr(exc, "response", None)
                status = getattr(resp_obj, "status_code", None)
                wait_time = backoff_seconds * (2 ** attempt)
                logger.warning("%s Fehler %s. Neuer Versuch in %s Sekunden.", logger_prefix, status or str(exc), wait_time)
                time.sleep(wait_time)
                continue
            raise
    raise last_error if last_error else ConnectionError(f"{logger_prefix}: Keine Antwort erhalten")


class _BlockingResolver(ABC):
    """Base class: runs ``_translate`` in a worker thread and never raises."""

    name = "base"

    def __init__(self, settings: TranslatorSettings) -> None:
        self.settings = settings

    def _throttle(self) -> None:
        enforce_min_interval(self.settings.min_call_interval_seconds)

    @abstractmethod
    def _translate(self, word: str, context_hint: bool) -> str:
        """Return the raw translation of ``word``; may raise on any error."""

    async def resolve(self, word: str, context_hint: bool = False) -> ResolverResult:
        try:
            translated = await asyncio.to_thread(self._translate, word, context_hint)
        except Exception as exc:
            logger.warning("%s: Übersetzung von '%s' fehlgeschlagen: %s", self.name, word, exc)
            return ResolverResult(word, False, str(exc) or type(exc).__name__)
        translated = (translated or "").strip()
        if not translated:
            return ResolverResult(word, False, f"{self.name}: empty translation")
        return ResolverResult(translated, True)


class MyMemoryResolver(_BlockingResolver):
    """Free MyMemory API (``GET /get?q=...&langpair=ar|en``)."""

    name = "mymemory"

    def _translate(self, word: str, context_hint: bool) -> str:
        s = self.settings
        response = _request_with_retries(
            "GET",
            s.mymemory_url,
            params={"q": word, "langpair": f"{s.source_lang}|{s.target_lang}"},
            headers={"User-Agent": USER_AGENT},
            timeout=s.timeout_seconds,
            max_retries=s.max_retries,
            backoff_seconds=s.backoff_seconds,
            logger_prefix="MyMemory",
            before_request=self._throttle,
        )
        data = response.json()
        status = str(data.get("responseStatus", "200"))
        if status != "200":
            raise RuntimeError(f"MyMemory status {status}: {data.get('responseDetails', '')}")
        translated = (data.get("responseData") or {}).get("translatedText")
        if not isinstance(translated, str) or not translated.strip():
            raise RuntimeError("Keine Übersetzung gefunden")
        return translated


class LibreTranslateResolver(_BlockingResolver):
    """LibreTranslate instance (``POST /translate``)."""

    name = "libretranslate"

    def _translate(self, word: str, context_hint: bool) -> str:
        s = self.settings
        payload: Dict[str, Any] = {
            "q": word,
            "source": s.source_lang,
            "target": s.target_lang,
            "format": "text",
        }
        if s.libretranslate_api_key:
            payload["api_key"] = s.libretranslate_api_key
        response = _request_with_retries(
            "POST",
            s.libretranslate_url,
            json=payload,
            headers={"User-Agent": USER_AGENT},
            timeout=s.timeout_seconds,
            max_retries=s.max_retries,
            backoff_seconds=s.backoff_seconds,
            logger_prefix="LibreTranslate",
            before_request=self._throttle,
        )
        data = response.json()
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str):
            raise RuntimeError("Unexpected LibreTranslate response")
        return translated


class OpenAIResolver(_BlockingResolver):
    """OpenAI-compatible chat model asked for a one-word translation."""

    name = "openai"

    def __init__(self, settings: TranslatorSettings, client: Any = None) -> None:
        super().__init__(settings)
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise RuntimeError("API key not configured")
            # Deaktiviert SDK-interne Retries, damit unsere eigene Drossel greift
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url or None,
                max_retries=0,
                timeout=self.settings.timeout_seconds,
                default_headers={"User-Agent": USER_AGENT},
            )
        return self._client

    def _prompt(self, word: str, context_hint: bool) -> str:
        if context_hint:
            return (
                f"Translate the Arabic word '{word}' used as an identifier in JavaScript "
                "source code into English. Answer with the English word or short phrase only."
            )
        return f"Translate the Arabic text '{word}' into English. Answer with the translation only."

    def _translate(self, word: str, context_hint: bool) -> str:
        client = self._get_client()
        self._throttle()
        resp = client.chat.completions.create(
            model=self.settings.openai_model,
            messages=[
                {"role": "system", "content": "You are a precise Arabic to English translator."},
                {"role": "user", "content": self._prompt(word, context_hint)},
            ],
        )
        content = resp.choices[0].message.content
        if not isinstance(content, str):
            raise RuntimeError("Unexpected response")
        return content.strip().strip("\"'`.")


class ChainResolver:
    """Tries each resolver in order and returns the first success."""

    name = "chain"

    def __init__(self, resolvers: Sequence[Resolver]) -> None:
        self.resolvers: List[Resolver] = list(resolvers)

    async def resolve(self, word: str, context_hint: bool = False) -> ResolverResult:
        last = ResolverResult(word, False, "no resolver configured")
        for resolver in self.resolvers:
            try:
                result = await resolver.resolve(word, context_hint)
            except Exception as exc:
                logger.warning("%s: unerwarteter Fehler für '%s': %s", getattr(resolver, "name", "?"), word, exc)
                result = ResolverResult(word, False, str(exc))
            if result.success:
                return result
            last = result
        return last


_PROVIDERS: Dict[str, Callable[[TranslatorSettings], Resolver]] = {
    "mymemory": MyMemoryResolver,
    "libretranslate": LibreTranslateResolver,
    "openai": OpenAIResolver,
}


def build_resolver(settings: TranslatorSettings) -> Resolver:
    """Create the resolver chain described by ``settings``."""
    if not settings.resolver_enabled or not settings.providers:
        logger.info("Externe Übersetzung deaktiviert")
        return NullResolver()
    resolvers = [_PROVIDERS[name](settings) for name in settings.providers if name in _PROVIDERS]
    logger.info("Externe Übersetzung: %s", " -> ".join(r.name for r in resolvers))
    if len(resolvers) == 1:
        return resolvers[0]
    return ChainResolver(resolvers)
