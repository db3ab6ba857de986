"""
pytest fixtures for the SongShelf test suite.

Handlers are tested in isolation against a mocked store; endpoints are
tested through a Flask test client backed by a temporary songs directory.
"""

import json
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Ensure project root is on sys.path so imports work
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture
def songs_dir(tmp_path):
    """Empty songs root for one test."""
    path = tmp_path / "songs"
    path.mkdir()
    return path


@pytest.fixture
def make_song(songs_dir):
    """Create a song folder with metadata and media files."""
    def _make(song_id, title="Lunatic Eyes", artist="Zun", song_file="song.mp3", cover_file="cover.jpg"):
        folder = songs_dir / song_id
        folder.mkdir()
        (folder / song_file).write_bytes(b"ID3fake")
        (folder / cover_file).write_bytes(b"\xff\xd8fake")
        metadata = {"title": title, "artist": artist, "songFile": song_file, "coverFile": cover_file}
        (folder / "metadata.json").write_text(json.dumps(metadata))
        return folder
    return _make


@pytest.fixture
def flask_app(songs_dir):
    """Return a configured Flask test app via the create_app() factory."""
    from app import create_app
    return create_app(config_override={
        "TESTING": True,
        "RATELIMIT_ENABLED": False,
        "SONGS_DIR": str(songs_dir),
    })


@pytest.fixture
def client(flask_app):
    """Return a Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def store():
    """SongStore stand-in whose coroutine methods are AsyncMocks."""
    mock = MagicMock()
    mock.list_folders = AsyncMock(return_value=[])
    mock.read_metadata = AsyncMock()
    mock.write_metadata = AsyncMock()
    mock.remove = AsyncMock()
    mock.folder_path = MagicMock(side_effect=lambda song_id: f"/songs/{song_id}")
    return mock
