"""
routes/health.py: Health Probe Blueprint

Registers routes:
  GET  /health/live
  GET  /health/ready
"""

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint("health", __name__)


def _payload(result):
    return {"healthy": result.healthy, "message": result.message, "details": result.details}


@health_bp.route("/health/live", methods=["GET"])
def health_live():
    """Liveness probe: always 200 while the process is running."""
    result = current_app.extensions["health_checker"].liveness()
    return jsonify(_payload(result)), 200


@health_bp.route("/health/ready", methods=["GET"])
def health_ready():
    """Readiness probe: 200 only when the songs directory is usable."""
    result = current_app.extensions["health_checker"].readiness()
    code = 200 if result.healthy else 503
    return jsonify(_payload(result)), code
