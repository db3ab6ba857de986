"""
Song library request handlers: list, upload and delete.

Each handler either returns a HandlerResponse or lets an exception propagate.
Propagated exceptions are rendered by the app-level error handler; handlers
never build a response for them.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from services.song_store import SongStore

logger = logging.getLogger(__name__)

MSG_TITLE_ARTIST_REQUIRED = "Title and artist are required."
MSG_FILES_REQUIRED = "Both a song and a cover image are required."
MSG_UPLOADED = "Song uploaded successfully"
MSG_ID_REQUIRED = "id is required."
MSG_NOT_FOUND = "music doesn't exist"


class UploadStagingError(RuntimeError):
    """An upload passed validation but has no staging folder to write into."""


@dataclass
class SongSummary:
    id: str
    title: Any
    artist: Any


@dataclass
class UploadedFile:
    filename: str
    path: Optional[str] = None


@dataclass
class UploadRequest:
    title: Optional[str] = None
    artist: Optional[str] = None
    song: List[UploadedFile] = field(default_factory=list)
    cover: List[UploadedFile] = field(default_factory=list)
    album_path: Optional[str] = None


@dataclass
class HandlerResponse:
    status: int
    body: Dict[str, Any]


def _failure(status: int, message: str) -> HandlerResponse:
    return HandlerResponse(status, {"success": False, "message": message})


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

async def _load_summary(store: SongStore, song_id: str) -> SongSummary:
    metadata = await store.read_metadata(song_id)
    return SongSummary(id=song_id, title=metadata.get("title"), artist=metadata.get("artist"))


async def list_songs(store: SongStore) -> HandlerResponse:
    """Summaries of every readable song folder, in directory order."""
    folders = await store.list_folders()

    results = await asyncio.gather(
        *(_load_summary(store, name) for name in folders),
        return_exceptions=True,
    )

    songs = []
    for name, result in zip(folders, results):
        if isinstance(result, Exception):
            logger.error(f"Skipping song folder {name!r}: {result}")
            continue
        songs.append(asdict(result))

    return HandlerResponse(200, {"success": True, "data": songs})


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

async def upload_song(store: SongStore, request: UploadRequest) -> HandlerResponse:
    """Validate a staged upload and persist its metadata."""
    if not request.title or not request.artist:
        if request.album_path:
            await store.remove(request.album_path)
        return _failure(400, MSG_TITLE_ARTIST_REQUIRED)

    if not request.song or not request.cover:
        return _failure(400, MSG_FILES_REQUIRED)

    if not request.album_path:
        raise UploadStagingError("Upload has no staging folder")

    song_file = request.song[0].filename
    cover_file = request.cover[0].filename

    await store.write_metadata(request.album_path, {
        "title": request.title,
        "artist": request.artist,
        "songFile": song_file,
        "coverFile": cover_file,
        "uploadedAt": datetime.now(timezone.utc).isoformat(),
    })
    logger.info(f"Uploaded '{request.title}' by {request.artist} → {Path(request.album_path).name}")

    return HandlerResponse(201, {
        "success": True,
        "message": MSG_UPLOADED,
        "data": {
            "title": request.title,
            "artist": request.artist,
            "songFile": song_file,
            "coverFile": cover_file,
        },
    })


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

async def delete_song(store: SongStore, song_id: Optional[str]) -> HandlerResponse:
    """Delete a song folder, answering with the deleted song's title."""
    if not song_id:
        return _failure(400, MSG_ID_REQUIRED)

    try:
        metadata = await store.read_metadata(song_id)
    except (OSError, ValueError):
        return _failure(404, MSG_NOT_FOUND)

    title = metadata.get("title") or song_id
    await store.remove(store.folder_path(song_id))
    logger.info(f"Deleted song {song_id!r} ({title})")

    return HandlerResponse(200, {"success": True, "message": f'The song "{title}" has been deleted'})
