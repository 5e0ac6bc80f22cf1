"""Gemeinsame Hilfsfunktionen für Server, CLI und Übersetzungskern.

Das Modul liefert HTML-Escaping und die Texte der Diagnosemeldungen in den
unterstützten Sprachen. Meldungen werden über Schlüssel angesprochen, damit
Kern, Server und Kommandozeile dieselben Formulierungen verwenden.
"""

# utils.py
import html
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_LANG = 'ar'
SUPPORTED_LANGS = ('ar', 'en')


def escape(text: Any) -> str:
    """Maskiert HTML-Sonderzeichen in einem String."""
    return html.escape(str(text))


_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    'unresolved_token': {
        'ar': 'كلمة غير معروفة في JavaScript: {word}',
        'en': 'Unknown word in JavaScript: {word}',
    },
    'unmatched_paren': {
        'ar': 'قوس مفتوح غير مغلق',
        'en': 'Unclosed opening parenthesis',
    },
    'unmatched_brace': {
        'ar': 'قوس معقوف مفتوح غير مغلق',
        'en': 'Unclosed opening brace',
    },
    'finding_line': {
        'ar': 'السطر {line}: {message}',
        'en': 'Line {line}: {message}',
    },
    'ready': {
        'ar': 'جاهز للتشغيل',
        'en': 'Ready to run',
    },
    'errors_header': {
        'ar': 'أخطاء في الكود:',
        'en': 'Errors in the code:',
    },
}


def normalize_lang(lang: Any) -> str:
    """Liefert einen unterstützten Sprachcode, sonst die Standardsprache."""
    value = str(lang or '').strip().lower()
    return value if value in SUPPORTED_LANGS else DEFAULT_LANG


def translate(key: str, lang: str = DEFAULT_LANG, **kwargs) -> str:
    """Einfache Übersetzung bestimmter Texte mit Platzhaltern."""
    lang = str(lang).lower()
    template = _TRANSLATIONS.get(key, {}).get(lang) or _TRANSLATIONS.get(key, {}).get(DEFAULT_LANG) or key
    return template.format(**kwargs)
