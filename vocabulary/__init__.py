"""Bilingual vocabulary (Arabic -> JavaScript) and its lookup tables."""

# Package exports should be side-effect free.

from . import (
    models,
    normalizer,
    storage,
)

__all__ = [
    "models",
    "normalizer",
    "storage",
]
