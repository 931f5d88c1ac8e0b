"""Global pytest configuration.

Tests run from the project root without installing the package, and import
both `tablescan_core` and the `scripts` entry points from there.
"""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    root_dir = Path(__file__).resolve().parents[1]

    raw = str(root_dir)
    if raw not in sys.path:
        sys.path.insert(0, raw)
