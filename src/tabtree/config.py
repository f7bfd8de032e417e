"""Configuration and directory management for tabtree."""

import os
import time
from pathlib import Path

TABTREE_DIR = Path(os.environ.get("TABTREE_HOME", Path.home() / ".tabtree"))
DB_PATH = TABTREE_DIR / "history.db"

# Key under which the whole tracker snapshot is stored
STORAGE_KEY = "historyTrackerData"

# Only these URL schemes are tracked
VALID_SCHEMES = ("http:", "https:")

EXPORT_VERSION = "1.0"


def ensure_dirs() -> None:
    """Ensure the tabtree directory structure exists."""
    TABTREE_DIR.mkdir(parents=True, exist_ok=True)


def is_valid_url(url: str | None) -> bool:
    """Check whether a URL belongs to a tracked scheme."""
    return bool(url) and url.startswith(VALID_SCHEMES)


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)
