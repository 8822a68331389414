"""Webhook receiving Keycloak admin events.

Keycloak (through an HTTP event-listener extension) POSTs each admin event
here. The response is always 202 once the body parses: publishing problems
are reported per event in the body, never as an HTTP error, so the sender
does not retry or stall on them.
"""
import hashlib
import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from fga_publisher.core.listener import SessionContext

logger = logging.getLogger(__name__)

bp = Blueprint("events", __name__)

SESSION_REALM_HEADER = "X-Session-Realm"


def _validate_webhook_token(provided_token: str) -> bool:
    """Constant-time comparison against the configured webhook token."""
    cfg = current_app.config.get("APP_CONFIG")
    if not cfg or not cfg.webhook_token:
        return False
    return hmac.compare_digest(provided_token, cfg.webhook_token)


@bp.before_request
def validate_request():
    """Require the webhook bearer token when one is configured."""
    cfg = current_app.config.get("APP_CONFIG")
    if not cfg or not cfg.webhook_token:
        return None

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.warning("Admin event webhook called without Bearer token")
        return jsonify({"error": "Unauthorized", "message": "Bearer token required"}), 401

    token = auth_header[7:]
    if not _validate_webhook_token(token):
        # Only a truncated hash ever reaches the logs
        token_hash = hashlib.sha256(token.encode()).hexdigest()[:12]
        logger.warning(f"Admin event webhook rejected token_hash={token_hash} client_ip={request.remote_addr}")
        return jsonify({"error": "Unauthorized", "message": "Invalid token"}), 401
    return None


@bp.route("/events/admin", methods=["POST"])
def receive_admin_events():
    """Handle one admin event, or a JSON list of them."""
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Bad Request", "message": "Body must be a JSON admin event or list of events"}), 400

    events = payload if isinstance(payload, list) else [payload]
    session_realm = request.headers.get(SESSION_REALM_HEADER, "").strip() or None
    session_context = SessionContext(realm=session_realm)

    listener = current_app.config["EVENT_LISTENER"]
    results = [listener.on_event(event, session_context).to_dict() for event in events]
    return jsonify({"results": results}), 202
