"""Flask application factory for the admin-event webhook.

This module provides the create_app() factory function wiring the event
listener, blueprints and error handlers.
"""
from __future__ import annotations
import logging
import os
from typing import Optional

from flask import Flask

from fga_publisher.config import PublisherConfig, load_settings
from fga_publisher.core.listener import EventListener

# Admin event representations are small; anything bigger is not from Keycloak
MAX_CONTENT_LENGTH = 1024 * 1024


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[PublisherConfig] = None, listener: Optional[EventListener] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (default: load_settings())
        listener: Event listener (default: built from cfg, which authenticates
            against Keycloak)
    """
    cfg = cfg or load_settings()
    listener = listener or EventListener.from_config(cfg)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["EVENT_LISTENER"] = listener
    app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH

    from fga_publisher.api import errors, events, health

    app.register_blueprint(health.bp)
    app.register_blueprint(events.bp)
    errors.register_error_handlers(app)

    print(f"[flask_app] Admin event webhook registered at /events/admin -> {cfg.openfga_api_url}")
    return app


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", "5000")))
