"""Health check endpoints."""
from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check, listing tenants whose OpenFGA binding is cached."""
    listener = current_app.config.get("EVENT_LISTENER")
    if listener is None:
        return jsonify({"status": "not ready", "tenants": []}), 503
    return jsonify({"status": "ready", "tenants": sorted(listener.publisher.registry.tenants())}), 200
