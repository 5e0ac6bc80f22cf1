# server.py - JSON-API für den arabischen JavaScript-Übersetzer
"""Flask-Server für den Übersetzungskern.

Stellt die Übersetzung, die Fehlermarkierung und einige Statusinformationen als
JSON-API bereit. Vokabular und Resolver werden einmal pro Prozess geladen;
jede Anfrage erzeugt ihren eigenen Übersetzungslauf, zwischen parallelen
Anfragen gibt es keinen gemeinsamen veränderlichen Zustand.
"""

import logging
import os
import shutil
import sys
from dataclasses import replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_compress import Compress

from codetranslator.resolver import NullResolver, build_resolver
from codetranslator.settings import TranslatorSettings, settings_from_config
from codetranslator.transformer import CodeTransformer
from runtime_config import load_merged_config
from utils import normalize_lang
from vocabulary.models import LookupTables
from vocabulary.storage import load_default_tables


# Custom StreamHandler to handle encoding errors
class SafeEncodingStreamHandler(logging.StreamHandler):
    def emit(self, record):
        """Schreibt Logzeilen robust unter Erhalt nicht-ASCII-Zeichen."""
        try:
            msg = self.format(record)
            stream = self.stream
            # Encode to UTF-8 with replacement for unencodable characters
            stream.write(msg.encode('utf-8', errors='replace').decode('utf-8', errors='ignore') + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


class SafeRotatingFileHandler(RotatingFileHandler):
    """Rotating handler that tolerates Windows file locks (e.g. OneDrive/AV)."""

    def rotate(self, source: str, dest: str) -> None:
        try:
            super().rotate(source, dest)
            return
        except PermissionError as exc:
            if getattr(exc, "winerror", None) != 32:
                raise
        # Fallback: Log kopieren und leeren statt umbenennen
        if os.path.exists(source):
            shutil.copy2(source, dest)
        with open(source, "w", encoding=self.encoding or "utf-8") as fh:
            fh.truncate(0)


logger = logging.getLogger(__name__)  # Module-level logger

formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

# --- Konfiguration ---
load_dotenv()
config = load_merged_config()

APP_VERSION = config.get('APP', 'version', fallback='unknown')


def _level_from_name(name: str, default: int) -> int:
    return logging._nameToLevel.get(name.strip().upper(), default)


def configure_logging(cfg=None) -> Optional[SafeRotatingFileHandler]:
    """Richtet Root- und Werkzeug-Logger gemäß ``[LOGGING]`` ein.

    Gibt den Datei-Handler zurück, falls Dateilogs aktiv sind.
    """
    cfg = cfg or config
    root_logger = logging.getLogger()

    # Bestehende Handler entfernen
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_level = _level_from_name(cfg.get('LOGGING', 'console_level', fallback='INFO'), logging.INFO)
    root_logger.setLevel(console_level)
    safe_handler = SafeEncodingStreamHandler(sys.stdout)
    safe_handler.setFormatter(formatter)
    root_logger.addHandler(safe_handler)

    # Optional: Dateibasiertes Logging (RotatingFileHandler) per config.ini
    file_handler: Optional[SafeRotatingFileHandler] = None
    try:
        file_enabled = cfg.getint('LOGGING', 'file_enabled', fallback=0) == 1
        max_bytes = max(0, cfg.getint('LOGGING', 'file_max_bytes', fallback=1048576))
        backup_count = max(0, cfg.getint('LOGGING', 'file_backup_count', fallback=5))
    except ValueError as exc:
        logger.warning("Ungültige LOGGING-Werte, Dateilogs deaktiviert: %s", exc)
        file_enabled, max_bytes, backup_count = False, 1048576, 5
    file_path = cfg.get('LOGGING', 'file_path', fallback='').strip()

    if file_enabled and file_path:
        try:
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = SafeRotatingFileHandler(
                file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8',
                delay=True,
            )
            file_handler.setLevel(_level_from_name(cfg.get('LOGGING', 'file_level', fallback='INFO'), console_level))
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as exc:
            logger.warning("Dateilogs konnten nicht initialisiert werden: %s", exc)
            file_handler = None

    # Werkzeug-Startmeldungen (inkl. URL) immer sichtbar halten
    werkzeug_logger = logging.getLogger('werkzeug')
    for handler in werkzeug_logger.handlers[:]:
        werkzeug_logger.removeHandler(handler)
        handler.close()
    desired_werkzeug_level = max(console_level, logging.INFO)
    werkzeug_logger.setLevel(desired_werkzeug_level)
    werkzeug_handler = SafeEncodingStreamHandler(sys.stdout)
    werkzeug_handler.setFormatter(formatter)
    werkzeug_handler.setLevel(desired_werkzeug_level)
    werkzeug_logger.addHandler(werkzeug_handler)
    werkzeug_logger.propagate = False
    if file_handler is not None:
        werkzeug_logger.addHandler(file_handler)

    return file_handler


def _json_payload() -> Tuple[Optional[Dict[str, Any]], Optional[Tuple[Any, int]]]:
    """Liest den JSON-Body; liefert bei ungültigen Daten eine 400-Antwort."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, (jsonify({"error": "Request must be a JSON object"}), 400)
    if not isinstance(data.get("text"), str):
        return None, (jsonify({"error": "'text' must be a string"}), 400)
    return data, None


def create_app(
    settings: Optional[TranslatorSettings] = None,
    tables: Optional[LookupTables] = None,
    resolver: Any = None,
) -> Flask:
    """
    Erstellt die Flask-Instanz.
    Tests können Einstellungen, Tabellen und Resolver direkt übergeben;
    ohne Argumente wird alles aus ``config.ini`` geladen.
    """
    settings = settings or settings_from_config(config)
    if tables is None:
        tables = load_default_tables(settings.reserved_path, settings.free_path)
    if resolver is None:
        resolver = build_resolver(settings)
    transformer = CodeTransformer(tables, resolver, settings)
    offline = transformer.with_resolver(NullResolver())

    app = Flask(__name__)
    # Alle JSON-Antworten in UTF-8, damit arabischer Text lesbar bleibt
    app.config.update(
        JSON_AS_ASCII=False,
        JSONIFY_MIMETYPE="application/json; charset=utf-8",
    )
    app.json.ensure_ascii = False

    def _for_request(base: CodeTransformer, data: Dict[str, Any]) -> CodeTransformer:
        lang = data.get("lang")
        if lang is None:
            return base
        lang = normalize_lang(lang)
        if lang == base.settings.message_lang:
            return base
        return CodeTransformer(base.tables, base.resolver, replace(base.settings, message_lang=lang))

    @app.after_request
    def _ensure_utf8_charset(response):
        """Stelle sicher, dass textbasierte Antworten explizit UTF-8 senden."""
        content_type = response.headers.get("Content-Type")
        if content_type:
            lowered = content_type.lower()
            needs_charset = "charset=" not in lowered and (
                lowered.startswith("text/")
                or lowered.startswith("application/json")
            )
            if needs_charset:
                response.headers["Content-Type"] = f"{content_type}; charset=utf-8"
        return response

    @app.route('/api/status')
    def api_status() -> Any:
        return jsonify({"status": "ok"})

    @app.route('/api/version')
    def api_version() -> Any:
        """Return the configured application version."""
        return jsonify({"version": APP_VERSION})

    @app.route('/api/vocabulary')
    def api_vocabulary() -> Any:
        sizes = tables.sizes()
        return jsonify({
            **sizes,
            "resolver": getattr(resolver, "name", "unknown"),
        })

    @app.route('/api/transform', methods=['POST'])
    def api_transform() -> Any:
        data, error = _json_payload()
        if error:
            return error
        resolve = data.get("resolve", True) is not False
        current = _for_request(transformer if resolve else offline, data)
        try:
            result = current.transform_document_sync(data["text"])
        except Exception as e:
            logger.exception("Fehler bei der Übersetzung")
            return jsonify({"error": f"Unerwarteter interner Fehler: {e}"}), 500
        payload = result.to_dict()
        payload["highlightHtml"] = result.highlight_html()
        return jsonify(payload)

    @app.route('/api/highlight', methods=['POST'])
    def api_highlight() -> Any:
        data, error = _json_payload()
        if error:
            return error
        current = _for_request(offline, data)
        try:
            result = current.transform_document_sync(data["text"])
        except Exception as e:
            logger.exception("Fehler bei der Markierung")
            return jsonify({"error": f"Unerwarteter interner Fehler: {e}"}), 500
        return jsonify({
            "highlightHtml": result.highlight_html(),
            "findings": [f.to_dict() for f in result.findings],
        })

    Compress(app)
    logger.info("App bereit: %s Einträge, Resolver %s", sum(tables.sizes().values()), getattr(resolver, "name", "?"))
    return app


def _run_local() -> None:
    """Lokaler Debug-Server."""
    port = int(os.environ.get("PORT", 8000))
    # WARNING, damit die URL auch bei höherem Log-Level sichtbar ist
    logger.warning("Lokal verfügbar auf http://127.0.0.1:%s", port)
    app.run(host="0.0.0.0", port=port, debug=True)


configure_logging()
app: Flask = create_app()


if __name__ == "__main__":
    _run_local()
