"""Translate Arabic-keyword source text into runnable JavaScript."""

# Package exports should be side-effect free.

from . import (
    diagnostics,
    resolver,
    scanner,
    settings,
    transformer,
    validator,
)

__all__ = [
    "diagnostics",
    "resolver",
    "scanner",
    "settings",
    "transformer",
    "validator",
]
