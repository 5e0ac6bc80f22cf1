"""Helper-Funktionen, um statische und lokale Konfiguration zu trennen.

Die Anwendung liest ``config.ini`` als Basis. Lokale Anpassungen (z.B. ein
anderer Übersetzungsdienst oder eigene Vokabulardateien) gehören in
``config.runtime.ini``; diese Datei wird nicht eingecheckt und überschreibt
einzelne Schlüssel der Basis. So bleiben Kommentare in der Hauptdatei erhalten.
"""

from __future__ import annotations

import configparser
from pathlib import Path

CONFIG_MAIN_PATH = Path(__file__).resolve().parent / "config.ini"
CONFIG_RUNTIME_PATH = Path(__file__).resolve().parent / "config.runtime.ini"


def load_base_config(path: Path | None = None) -> configparser.ConfigParser:
    """Lädt ausschließlich die statische Grundkonfiguration."""
    cfg = configparser.ConfigParser()
    cfg.read(path or CONFIG_MAIN_PATH, encoding="utf-8-sig")
    return cfg


def load_runtime_config(path: Path | None = None) -> configparser.ConfigParser:
    """Lädt nur die lokale Laufzeitkonfiguration."""
    cfg = configparser.ConfigParser()
    runtime_path = path or CONFIG_RUNTIME_PATH
    if runtime_path.exists():
        cfg.read(runtime_path, encoding="utf-8-sig")
    return cfg


def load_merged_config(
    base_path: Path | None = None,
    runtime_path: Path | None = None,
) -> configparser.ConfigParser:
    """Kombiniert statische und lokale Konfiguration."""
    base = load_base_config(base_path)
    runtime = load_runtime_config(runtime_path)
    for section in runtime.sections():
        if not base.has_section(section):
            base.add_section(section)
        for key, value in runtime.items(section):
            base.set(section, key, value)
    return base
