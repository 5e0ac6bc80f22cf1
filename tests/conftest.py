"""
Pytest configuration: ensure project root is on sys.path for imports.

Tests import the local ``vocabulary`` and ``codetranslator`` packages as well
as the root modules (``server``, ``utils``) directly. The repository root is
prepended so imports work from IDEs and subdirectories too. External
translation services are switched off so no test touches the network.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _add_repo_root_to_sys_path() -> None:
    # tests/ -> repo root
    root = Path(__file__).resolve().parents[1]
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_add_repo_root_to_sys_path()

os.environ["TRANSLATOR_RESOLVER_ENABLED"] = "0"
