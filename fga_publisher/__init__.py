"""Keycloak admin events -> OpenFGA tuples.

To handle events in-process:
    from fga_publisher.core.listener import EventListener

To run the webhook receiver:
    from fga_publisher.flask_app import create_app
"""
# Note: flask_app is not imported here so the core works without Flask
