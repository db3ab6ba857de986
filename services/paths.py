"""Canonical path constants for runtime directories."""
from pathlib import Path

from config.loader import config

APP_ROOT = Path(__file__).parent.parent

METADATA_FILENAME = config.get("storage.metadata_filename", "metadata.json")


def resolve_songs_dir(value=None) -> Path:
    """Return the songs root; relative values resolve against APP_ROOT."""
    path = Path(value or config.get("storage.songs_dir", "runtime/songs")).expanduser()
    if not path.is_absolute():
        path = APP_ROOT / path
    return path
