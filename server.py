#!/usr/bin/env python3
"""
SongShelf Server: Entry Point

Loads .env, configures logging and runs the Flask app built by
app.create_app().

Start:
    python3 server.py
"""

import logging
import os
import signal
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before anything reads config
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path, override=True)

from config.loader import config  # noqa: E402

logging.basicConfig(level=str(config.get("logging.level", "INFO")).upper())
logger = logging.getLogger(__name__)

from app import create_app  # noqa: E402

app = create_app()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    port = int(config.get("server.port", 5001))

    # Clean SIGTERM shutdown so systemd stop/restart works correctly.
    def _handle_sigterm(signum, frame):
        logger.info("SIGTERM received: shutting down.")
        os._exit(0)

    signal.signal(signal.SIGTERM, _handle_sigterm)

    logger.info(f"SongShelf starting on port {port}")
    logger.info(f"  Songs     → {app.extensions['song_store'].root}")
    logger.info(f"  Health    → http://localhost:{port}/health/ready")

    host = config.get("server.host", "127.0.0.1")
    app.run(host=host, port=port, debug=False, threaded=True)
