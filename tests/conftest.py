"""Pytest configuration.

The repository uses a flat `logbot/` layout. This conftest ensures tests can import from the
`logbot.*` namespace when running `pytest` without installing the package.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))
