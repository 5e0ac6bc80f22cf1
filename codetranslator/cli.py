"""Kommandozeile für den Übersetzungskern.

Beispiele::

    python -m codetranslator translate programm.txt --output programm.js
    python -m codetranslator check programm.txt
    echo 'متغير س = 1' | python -m codetranslator translate --no-resolve

Befunde gehen immer nach ``stderr`` im Format ``السطر N: Meldung``.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List

from dotenv import load_dotenv

if __package__ in {None, ""}:
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    __package__ = "codetranslator"

from runtime_config import load_merged_config
from utils import SUPPORTED_LANGS, normalize_lang, translate
from vocabulary.storage import load_default_tables

from .resolver import NullResolver, build_resolver
from .settings import settings_from_config
from .transformer import CodeTransformer, TransformResult

logger = logging.getLogger(__name__)


def _read_input(path: Path | None) -> str:
    if path is None or str(path) == "-":
        return sys.stdin.read()
    if not path.exists():
        raise SystemExit(f"input file not found: {path}")
    return path.read_text(encoding="utf-8-sig")


def _write_output(text: str, path: Path | None) -> None:
    if path is None or str(path) == "-":
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
    else:
        path.write_text(text, encoding="utf-8")
        logger.info("Wrote %s", path)


def _build_transformer(args: argparse.Namespace, resolve: bool = True) -> CodeTransformer:
    cfg = load_merged_config(base_path=args.config) if args.config else load_merged_config()
    settings = settings_from_config(cfg)
    if args.lang:
        settings = replace(settings, message_lang=normalize_lang(args.lang))
    tables = load_default_tables(settings.reserved_path, settings.free_path)
    resolver = build_resolver(settings) if resolve else NullResolver()
    return CodeTransformer(tables, resolver, settings)


def _report(result: TransformResult, lang: str) -> None:
    if not result.findings:
        print(translate("ready", lang), file=sys.stderr)
        return
    print(translate("errors_header", lang), file=sys.stderr)
    for finding in result.findings:
        print(finding.format(lang), file=sys.stderr)


def translate_cmd(args: argparse.Namespace) -> int:
    """Translate a file (or stdin) and write the JavaScript result."""

    transformer = _build_transformer(args, resolve=not args.no_resolve)
    result = transformer.transform_document_sync(_read_input(args.input))
    if args.json:
        _write_output(json.dumps(result.to_dict(), ensure_ascii=False, indent=2), args.output)
    else:
        _write_output(result.text, args.output)
    _report(result, transformer.settings.message_lang)
    return 0


def check_cmd(args: argparse.Namespace) -> int:
    """Report findings only; exit status 1 when there are any."""

    transformer = _build_transformer(args, resolve=not args.no_resolve)
    result = transformer.transform_document_sync(_read_input(args.input))
    _report(result, transformer.settings.message_lang)
    return 0 if result.ready else 1


def highlight_cmd(args: argparse.Namespace) -> int:
    """Write the source text as HTML with the findings highlighted."""

    transformer = _build_transformer(args, resolve=False)
    result = transformer.transform_document_sync(_read_input(args.input))
    _write_output(result.highlight_html(), args.output)
    return 0


def main(argv: List[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Arabic keyword to JavaScript translator")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", type=Path, nargs="?", default=None, help="source file (defaults to stdin)")
        p.add_argument("--lang", choices=SUPPORTED_LANGS, default=None, help="language of the messages")

    p = sub.add_parser("translate", help="translate source text to JavaScript")
    add_common(p)
    p.add_argument("--output", type=Path, default=None, help="output file (defaults to stdout)")
    p.add_argument("--no-resolve", action="store_true", help="do not call external translation services")
    p.add_argument("--json", action="store_true", help="write the full result as JSON")
    p.set_defaults(func=translate_cmd)

    p = sub.add_parser("check", help="list findings, exit 1 if there are any")
    add_common(p)
    p.add_argument("--no-resolve", action="store_true", help="do not call external translation services")
    p.set_defaults(func=check_cmd)

    p = sub.add_parser("highlight", help="write the highlight overlay as HTML")
    add_common(p)
    p.add_argument("--output", type=Path, default=None, help="output file (defaults to stdout)")
    p.set_defaults(func=highlight_cmd)

    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    parser.add_argument("--log-file", type=Path, default=None, help="write logs to this file")
    parser.add_argument("--config", type=Path, default=None, help="alternative config.ini")

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", handlers=handlers)

    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
