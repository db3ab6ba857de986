"""
Filesystem store for song folders.

Layout under the songs root:

    <songs_dir>/
      <song id>/
        metadata.json      {"title": ..., "artist": ..., "songFile": ..., "coverFile": ...}
        <song file>
        <cover file>

Every operation is a coroutine and fails on its own; callers decide whether a
failure is recoverable.
"""

import asyncio
import json
import shutil
from pathlib import Path
from typing import List, Union

import aiofiles
import aiofiles.os

PathLike = Union[str, Path]


def _safe_path(base_dir: Path, *parts) -> Path | None:
    """
    Resolve a path within base_dir, rejecting any traversal outside it.
    Returns the resolved Path on success, or None if traversal is detected.
    """
    try:
        resolved = (base_dir / Path(*parts)).resolve()
        base_resolved = base_dir.resolve()
        if base_resolved in resolved.parents:
            return resolved
    except (OSError, ValueError, TypeError):
        pass
    return None


def _remove_sync(path: Path) -> None:
    """rm -rf: remove a file or directory tree, ignoring a missing path."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        pass


class SongStore:
    """Async access to the song folders under a single root directory."""

    def __init__(self, root: PathLike, metadata_filename: str = "metadata.json"):
        self.root = Path(root)
        self.metadata_filename = metadata_filename

    def folder_path(self, song_id: str) -> Path:
        """Path of a song folder; ids resolving outside the root do not exist."""
        path = _safe_path(self.root, song_id)
        if path is None or path.parent != self.root.resolve():
            raise FileNotFoundError(f"No song folder for id {song_id!r}")
        return path

    async def list_folders(self) -> List[str]:
        """Entry names of the songs root, in enumeration order."""
        return await aiofiles.os.listdir(self.root)

    async def read_metadata(self, song_id: str) -> dict:
        """Read and parse a folder's metadata file."""
        metadata_path = self.folder_path(song_id) / self.metadata_filename
        async with aiofiles.open(metadata_path, "r", encoding="utf-8") as f:
            raw = await f.read()
        metadata = json.loads(raw)
        if not isinstance(metadata, dict):
            raise ValueError(f"{metadata_path} does not hold a JSON object")
        return metadata

    async def write_metadata(self, folder: PathLike, metadata: dict) -> Path:
        """Write metadata.json into an existing folder."""
        metadata_path = Path(folder) / self.metadata_filename
        async with aiofiles.open(metadata_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(metadata, indent=2))
        return metadata_path

    async def remove(self, path: PathLike) -> None:
        """Remove a path recursively and forcibly."""
        await asyncio.to_thread(_remove_sync, Path(path))

    async def media_path(self, song_id: str, kind: str) -> Path:
        """
        Locate the song or cover file of a folder from its metadata.

        Raises FileNotFoundError when the metadata names no file for `kind`
        or the named file is missing or outside the folder.
        """
        metadata = await self.read_metadata(song_id)
        filename = metadata.get(f"{kind}File")
        folder = self.folder_path(song_id)
        path = _safe_path(folder, filename) if filename else None
        if path is None or not await aiofiles.os.path.isfile(path):
            raise FileNotFoundError(f"No {kind} file for song {song_id!r}")
        return path
