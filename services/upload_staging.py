"""
Multipart upload staging.

Saves the `song` and `cover` parts of an upload into a fresh folder under the
songs root before the upload handler runs. The handler decides whether the
staged folder is kept (metadata written) or thrown away.
"""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from werkzeug.datastructures import FileStorage, MultiDict
from werkzeug.utils import secure_filename

from services.music_library import UploadedFile

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED = {
    "song": {".mp3", ".wav", ".ogg", ".m4a", ".flac", ".webm"},
    "cover": {".jpg", ".jpeg", ".png", ".webp", ".gif"},
}


def _accepts(field_name: str, file: FileStorage, allowed: Dict[str, Iterable[str]]) -> bool:
    if file is None:
        return False
    if not file.filename:
        logger.warning(f"Upload: empty '{field_name}' part ignored")
        return False
    ext = Path(file.filename).suffix.lower()
    if ext not in allowed.get(field_name, ()):
        logger.warning(f"Upload: '{field_name}' file {file.filename!r} rejected (type '{ext}' not allowed)")
        return False
    return True


def stage_upload(
    files: MultiDict,
    songs_dir: Path,
    allowed: Optional[Dict[str, Iterable[str]]] = None,
) -> Tuple[Optional[str], Dict[str, List[UploadedFile]]]:
    """
    Save accepted song/cover parts into a new album folder.

    Returns (album_path, staged) where staged maps "song"/"cover" to the saved
    files. album_path is None when no part was accepted; the folder is only
    created once there is something to put in it.
    """
    allowed = allowed or DEFAULT_ALLOWED
    staged: Dict[str, List[UploadedFile]] = {"song": [], "cover": []}
    album_dir: Optional[Path] = None

    for field_name in ("song", "cover"):
        file = files.get(field_name)
        if not _accepts(field_name, file, allowed):
            continue

        if album_dir is None:
            album_dir = Path(songs_dir) / uuid.uuid4().hex
            album_dir.mkdir(parents=True)

        safe_name = secure_filename(file.filename) or f"{field_name}{Path(file.filename).suffix.lower()}"
        save_name = f"{datetime.now().strftime('%Y%m%d_%H%M%S')}-{safe_name}"
        save_path = album_dir / save_name
        file.save(save_path)
        staged[field_name].append(UploadedFile(filename=save_name, path=str(save_path)))
        logger.info(f"Upload: {file.filename} → {save_path}")

    return (str(album_dir) if album_dir else None), staged
