import argparse
import json
import sys
from pathlib import Path
from typing import List
import logging

if __package__ in {None, ""}:
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    __package__ = "vocabulary"

from . import storage
from .normalizer import normalize_token


def validate(args: argparse.Namespace) -> None:
    """Validate vocabulary data from a JSON file."""

    vocab = storage.load_vocabulary(args.input)
    try:
        storage.validate_vocabulary(vocab)
    except ValueError as e:
        raise SystemExit(f"invalid vocabulary: {e}")

    print(f"Vocabulary '{args.input}' OK")


def stats(args: argparse.Namespace) -> None:
    """Show statistics about a vocabulary file."""

    vocab = storage.load_vocabulary(args.input)
    keys = {normalize_token(e.source) for e in vocab.entries}
    keys.discard("")
    clashes = storage.collisions(vocab)

    print(f"Entries: {len(vocab.entries)}")
    print(f"Keys: {len(keys)}")
    print(f"Collisions: {len(clashes)}")
    for key, sources in clashes.items():
        logging.info("%s <- %s", key, ", ".join(sources))


def export(args: argparse.Namespace) -> None:
    """Export vocabulary data as a plain text file."""

    vocab = storage.load_vocabulary(args.input)
    lines = [f"{entry.source}: {entry.output}" for entry in vocab.entries]

    path = args.output or Path("-")
    if path == Path("-"):
        for line in lines:
            print(line)
    else:
        Path(path).write_text("\n".join(lines), encoding="utf-8")


def build(args: argparse.Namespace) -> None:
    """Convert an ``[{"ar": ..., "en": ...}]`` word list into the flat format."""

    source = Path(args.input)
    if not source.exists():
        raise SystemExit(f"source file not found: {source}")
    try:
        items = json.loads(source.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise SystemExit(f"failed to parse word list: {e}")
    if not isinstance(items, list):
        raise SystemExit("word list must be a JSON array")

    vocab = storage.build_word_list(items, name=source.stem)
    storage.save_vocabulary(vocab, args.output)
    logging.info("Wrote %s with %s entries", args.output, len(vocab.entries))
    print(f"{len(vocab.entries)} entries -> {args.output}")


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Vocabulary utility")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="validate vocabulary data")
    p.add_argument("input", type=Path)
    p.set_defaults(func=validate)

    p = sub.add_parser("stats", help="show statistics")
    p.add_argument("input", type=Path)
    p.set_defaults(func=stats)

    p = sub.add_parser("export", help="export vocabulary data")
    p.add_argument("input", type=Path)
    p.add_argument(
        "--output",
        type=Path,
        default=None,
        help="output file (defaults to stdout)",
    )
    p.set_defaults(func=export)

    p = sub.add_parser("build", help="build a flat vocabulary from a word list")
    p.add_argument("input", type=Path)
    p.add_argument(
        "--output",
        type=Path,
        required=True,
        help="flat vocabulary JSON to write",
    )
    p.set_defaults(func=build)

    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    parser.add_argument("--log-file", type=Path, default=None, help="write logs to this file")

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

    args.func(args)


if __name__ == "__main__":
    main()
