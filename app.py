"""
Flask application factory for the SongShelf API.

Usage:
    from app import create_app
    app = create_app()

This factory pattern allows:
- Blueprint registration in one place
- Test isolation via config_override (e.g. a temporary SONGS_DIR)
- Clean extension initialization
"""
import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from config.loader import config
from services.health import HealthChecker
from services.paths import METADATA_FILENAME, resolve_songs_dir
from services.song_store import SongStore

logger = logging.getLogger(__name__)

_MAX_UPLOAD_BYTES = int(config.get("upload.max_mb", 25)) * 1024 * 1024


def create_app(config_override: dict = None):
    """
    Create and configure the Flask application.

    Args:
        config_override: Optional dict of Flask config values to apply.
                         Primarily used in tests to inject TESTING=True,
                         SONGS_DIR=<tmp dir>, RATELIMIT_ENABLED=False,
                         UPLOAD_RATE_LIMIT="2/minute" etc.

    Returns:
        Flask: the configured app with song and health blueprints registered.
    """
    app = Flask(__name__, static_folder=None)

    app.config['MAX_CONTENT_LENGTH'] = _MAX_UPLOAD_BYTES
    app.config['SONGS_DIR'] = None
    app.config['METADATA_FILENAME'] = METADATA_FILENAME
    app.config['UPLOAD_ALLOWED_EXTENSIONS'] = {
        "song": set(config.get("upload.song_extensions", [])),
        "cover": set(config.get("upload.cover_extensions", [])),
    }
    app.config['RATELIMIT_ENABLED'] = bool(config.get("upload.rate_limit_enabled", True))
    app.config['UPLOAD_RATE_LIMIT'] = config.get("upload.rate_limit", "10/minute")

    # Apply test / caller overrides last so they take precedence
    if config_override:
        app.config.update(config_override)

    # Trust one level of X-Forwarded-* headers (nginx / reverse proxy)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Add extra origins via CORS_ORIGINS env var (comma-separated)
    _extra_origins = [o.strip() for o in os.getenv('CORS_ORIGINS', '').split(',') if o.strip()]
    CORS(app, origins=[
        r'^http://localhost:\d+$',
        *_extra_origins,
    ])

    # ── Song store ────────────────────────────────────────────────────────────
    songs_dir = resolve_songs_dir(app.config['SONGS_DIR'])
    songs_dir.mkdir(parents=True, exist_ok=True)
    app.extensions['song_store'] = SongStore(songs_dir, app.config['METADATA_FILENAME'])
    app.extensions['health_checker'] = HealthChecker(songs_dir)

    # ── Blueprints ────────────────────────────────────────────────────────────
    from routes.health import health_bp
    from routes.songs import songs_bp
    app.register_blueprint(health_bp)
    app.register_blueprint(songs_bp)

    # ── Rate limiting ─────────────────────────────────────────────────────────
    # Disable for tests: config_override={'RATELIMIT_ENABLED': False}.
    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=[os.getenv('RATELIMIT_DEFAULT', '200 per minute')],
        storage_uri='memory://',
    )
    app.limiter = limiter
    # limiter.limit() returns a wrapped function: must assign it back into
    # app.view_functions or the limit is silently discarded.
    upload_view = app.view_functions['songs.post_song']
    app.view_functions['songs.post_song'] = limiter.limit(
        app.config['UPLOAD_RATE_LIMIT']
    )(upload_view)

    # ── Forwarded errors ──────────────────────────────────────────────────────
    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Render any error a handler forwarded instead of answering."""
        if isinstance(error, HTTPException):
            return error
        logger.exception(f"Unhandled error: {error}")
        return jsonify({"success": False, "message": "Internal server error"}), 500

    # ── Security headers ──────────────────────────────────────────────────────
    @app.after_request
    def add_security_headers(response):
        """Add defensive HTTP security headers to every response."""
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'SAMEORIGIN')
        response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        return response

    return app
