"""
Tests for routes/songs.py: Song Library Blueprint end to end on a temp songs dir.
"""

import io
import json

import pytest


def _form(**fields):
    data = {
        "title": "Test Title",
        "artist": "Test Artist",
        "song": (io.BytesIO(b"ID3fake"), "fakesong.mp3"),
        "cover": (io.BytesIO(b"\xff\xd8fake"), "fakecover.jpg"),
    }
    data.update(fields)
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# GET /api/songs
# ---------------------------------------------------------------------------

class TestListEndpoint:
    def test_empty_library(self, client):
        resp = client.get("/api/songs")
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "data": []}

    def test_lists_valid_folders_only(self, client, make_song, songs_dir):
        make_song("good", title="Lunatic Eyes", artist="Zun")
        (songs_dir / "broken").mkdir()
        (songs_dir / "broken" / "metadata.json").write_text("not json")
        (songs_dir / "empty").mkdir()

        resp = client.get("/api/songs")
        assert resp.status_code == 200
        assert resp.get_json()["data"] == [{"id": "good", "title": "Lunatic Eyes", "artist": "Zun"}]


# ---------------------------------------------------------------------------
# POST /api/songs
# ---------------------------------------------------------------------------

class TestUploadEndpoint:
    def test_upload_creates_song(self, client, songs_dir):
        resp = client.post("/api/songs", data=_form(), content_type="multipart/form-data")
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["success"] is True
        assert body["message"] == "Song uploaded successfully"
        assert body["data"]["title"] == "Test Title"
        assert body["data"]["songFile"].endswith("fakesong.mp3")
        assert body["data"]["coverFile"].endswith("fakecover.jpg")

        folders = list(songs_dir.iterdir())
        assert len(folders) == 1
        metadata = json.loads((folders[0] / "metadata.json").read_text())
        assert metadata["title"] == "Test Title"
        assert (folders[0] / metadata["songFile"]).read_bytes() == b"ID3fake"

    def test_uploaded_song_is_listed(self, client):
        client.post("/api/songs", data=_form(), content_type="multipart/form-data")
        data = client.get("/api/songs").get_json()["data"]
        assert len(data) == 1
        assert data[0]["title"] == "Test Title"
        assert data[0]["artist"] == "Test Artist"

    def test_missing_title_cleans_staging_folder(self, client, songs_dir):
        resp = client.post("/api/songs", data=_form(title=None), content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "message": "Title and artist are required."}
        assert list(songs_dir.iterdir()) == []

    def test_body_album_path_is_not_used_for_cleanup(self, client, tmp_path, songs_dir):
        keep = tmp_path / "keep"
        keep.mkdir()
        resp = client.post(
            "/api/songs",
            data=_form(artist=None, albumPath=str(keep)),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert keep.is_dir()

    def test_missing_cover_returns_400(self, client):
        resp = client.post("/api/songs", data=_form(cover=None), content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json() == {
            "success": False,
            "message": "Both a song and a cover image are required.",
        }

    def test_missing_files_leave_no_metadata(self, client, songs_dir):
        client.post("/api/songs", data=_form(cover=None), content_type="multipart/form-data")
        assert not any((f / "metadata.json").exists() for f in songs_dir.iterdir())

    def test_wrong_file_type_counts_as_missing(self, client):
        resp = client.post(
            "/api/songs",
            data=_form(song=(io.BytesIO(b"MZ"), "setup.exe")),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Both a song and a cover image are required."


# ---------------------------------------------------------------------------
# DELETE /api/songs/<song_id>
# ---------------------------------------------------------------------------

class TestDeleteEndpoint:
    def test_delete_existing(self, client, make_song):
        folder = make_song("abc", title="Test Song")
        resp = client.delete("/api/songs/abc")
        assert resp.status_code == 200
        assert resp.get_json() == {"success": True, "message": 'The song "Test Song" has been deleted'}
        assert not folder.exists()

    def test_delete_unknown(self, client):
        resp = client.delete("/api/songs/nonexistantID")
        assert resp.status_code == 404
        assert resp.get_json() == {"success": False, "message": "music doesn't exist"}

    def test_delete_without_id(self, client):
        resp = client.delete("/api/songs/")
        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "message": "id is required."}

    def test_delete_parent_id_refused(self, client, songs_dir, make_song):
        make_song("kept")
        for path in ("/api/songs/..", "/api/songs/%2E%2E"):
            resp = client.delete(path)
            assert resp.status_code == 404
            assert resp.get_json() == {"success": False, "message": "music doesn't exist"}
        assert (songs_dir / "kept" / "metadata.json").exists()


# ---------------------------------------------------------------------------
# GET /api/songs/<song_id>/<kind>
# ---------------------------------------------------------------------------

class TestMediaEndpoint:
    def test_serves_song(self, client, make_song):
        make_song("abc")
        resp = client.get("/api/songs/abc/song")
        assert resp.status_code == 200
        assert resp.data == b"ID3fake"
        resp.close()

    def test_serves_cover(self, client, make_song):
        make_song("abc")
        resp = client.get("/api/songs/abc/cover")
        assert resp.status_code == 200
        assert resp.data == b"\xff\xd8fake"
        resp.close()

    def test_unknown_kind(self, client, make_song):
        make_song("abc")
        resp = client.get("/api/songs/abc/lyrics")
        assert resp.status_code == 400

    def test_unknown_song(self, client):
        resp = client.get("/api/songs/ghost/song")
        assert resp.status_code == 404
        assert resp.get_json()["message"] == "music doesn't exist"


# ---------------------------------------------------------------------------
# Upload staging runs off the event loop
# ---------------------------------------------------------------------------

class TestUploadStagingThread:
    def test_staging_runs_in_worker_thread(self, client, monkeypatch):
        from routes import songs as songs_mod
        calls = []
        real_to_thread = songs_mod.asyncio.to_thread

        async def spy(func, *args, **kwargs):
            calls.append(func)
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr(songs_mod.asyncio, "to_thread", spy)
        resp = client.post("/api/songs", data=_form(), content_type="multipart/form-data")
        assert resp.status_code == 201
        assert songs_mod.stage_upload in calls


# ---------------------------------------------------------------------------
# Upload rate limit
# ---------------------------------------------------------------------------

class TestUploadRateLimit:
    @pytest.fixture
    def limited_client(self, songs_dir):
        from app import create_app
        app = create_app(config_override={
            "TESTING": True,
            "RATELIMIT_ENABLED": True,
            "UPLOAD_RATE_LIMIT": "2/minute",
            "SONGS_DIR": str(songs_dir),
        })
        return app.test_client()

    def test_upload_over_limit_returns_429(self, limited_client):
        codes = [
            limited_client.post("/api/songs", data=_form(), content_type="multipart/form-data").status_code
            for _ in range(3)
        ]
        assert codes == [201, 201, 429]

    def test_listing_not_limited_by_upload_rate(self, limited_client):
        for _ in range(3):
            limited_client.post("/api/songs", data=_form(), content_type="multipart/form-data")
        for _ in range(5):
            assert limited_client.get("/api/songs").status_code == 200

    def test_limit_read_from_config(self, songs_dir, monkeypatch):
        from app import create_app
        from config.loader import config
        monkeypatch.setitem(config._data.setdefault("upload", {}), "rate_limit", "1/minute")
        monkeypatch.setitem(config._data["upload"], "rate_limit_enabled", True)
        client = create_app(config_override={"TESTING": True, "SONGS_DIR": str(songs_dir)}).test_client()
        first = client.post("/api/songs", data=_form(), content_type="multipart/form-data")
        second = client.post("/api/songs", data=_form(), content_type="multipart/form-data")
        assert (first.status_code, second.status_code) == (201, 429)
