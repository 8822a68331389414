"""Keycloak Admin API access used by the publisher.

Architecture:
- client.py: HTTP client with service account authentication and auto-refresh
- identity.py: Role and realm lookups (read-only)
- admin_events.py: Stored admin events as an event source
- exceptions.py: Typed exceptions for error handling

Usage:
    from fga_publisher.core.keycloak import KeycloakClient, KeycloakIdentityLookup

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_service_account("master", "openfga-events-publisher", "secret")

    identity = KeycloakIdentityLookup(client)
    realm = identity.lookup_realm_by_name("acme")
    identity.lookup_role_name_by_id(realm, "6f0c...")
"""
from .client import (
    KeycloakClient,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    RealmNotFoundError,
    RoleNotFoundError,
)
from .identity import (
    RealmHandle,
    IdentityLookup,
    KeycloakIdentityLookup,
)
from .admin_events import (
    EventSource,
    KeycloakAdminEventSource,
)

__all__ = [
    # Client
    "KeycloakClient",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "RealmNotFoundError",
    "RoleNotFoundError",

    # Lookups
    "RealmHandle",
    "IdentityLookup",
    "KeycloakIdentityLookup",

    # Event source
    "EventSource",
    "KeycloakAdminEventSource",
]
