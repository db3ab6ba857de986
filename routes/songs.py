"""
routes/songs.py: Song Library Blueprint

Registers routes:
  GET    /api/songs                    (list song summaries)
  POST   /api/songs                    (multipart upload: title, artist, song, cover)
  DELETE /api/songs/<song_id>          (delete a song folder)
  GET    /api/songs/<song_id>/<kind>   (serve the song or cover file)

Errors the handlers do not answer themselves propagate to the app-level
error handler registered in app.py.
"""

import asyncio

from flask import Blueprint, current_app, jsonify, request, send_file

from services.music_library import (
    MSG_NOT_FOUND,
    HandlerResponse,
    UploadRequest,
    delete_song,
    list_songs,
    upload_song,
)
from services.upload_staging import stage_upload

songs_bp = Blueprint("songs", __name__)

MEDIA_KINDS = ("song", "cover")


def _store():
    return current_app.extensions["song_store"]


def _respond(result: HandlerResponse):
    return jsonify(result.body), result.status


@songs_bp.route("/api/songs", methods=["GET"])
async def get_songs():
    """List every song folder that has readable metadata."""
    return _respond(await list_songs(_store()))


@songs_bp.route("/api/songs", methods=["POST"])
async def post_song():
    """Stage the uploaded files, then validate and record the song."""
    store = _store()
    album_path, staged = await asyncio.to_thread(
        stage_upload,
        request.files,
        store.root,
        current_app.config.get("UPLOAD_ALLOWED_EXTENSIONS"),
    )
    upload = UploadRequest(
        title=request.form.get("title"),
        artist=request.form.get("artist"),
        song=staged["song"],
        cover=staged["cover"],
        album_path=album_path,
    )
    return _respond(await upload_song(store, upload))


@songs_bp.route("/api/songs/", defaults={"song_id": None}, methods=["DELETE"])
@songs_bp.route("/api/songs/<song_id>", methods=["DELETE"])
async def remove_song(song_id):
    """Delete a song folder by id."""
    return _respond(await delete_song(_store(), song_id))


@songs_bp.route("/api/songs/<song_id>/<kind>", methods=["GET"])
async def get_song_media(song_id, kind):
    """Serve a song's audio file or cover image."""
    if kind not in MEDIA_KINDS:
        return jsonify({"success": False, "message": "kind must be 'song' or 'cover'."}), 400

    try:
        path = await _store().media_path(song_id, kind)
    except (OSError, ValueError):
        return jsonify({"success": False, "message": MSG_NOT_FOUND}), 404

    return send_file(path)
