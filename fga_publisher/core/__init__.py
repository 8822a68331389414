"""Core event-to-tuple logic.

This module provides the translation of Keycloak admin events into OpenFGA
tuples, independent of how events are delivered (webhook, polling, tests).

Module Structure:
    - events.py     : EventDescriptor and the closed resource/operation enums
    - classifier.py : Subject/object typing and field extraction
    - tuples.py     : RelationTuple and the relation vocabulary
    - registry.py   : Per-tenant store/model discovery and client cache
    - publisher.py  : Tuple writes and PublishOutcome
    - listener.py   : on_event() boundary that never raises
    - keycloak/     : Keycloak Admin API access (identity lookups, admin events)
    - openfga/      : OpenFGA API client, credentials, model snapshot

Usage Pattern:
    Modules are NOT auto-imported; import explicitly when needed:
        from fga_publisher.core.listener import EventListener, SessionContext
        from fga_publisher.config import load_settings

        listener = EventListener.from_config(load_settings())
        outcome = listener.on_event(admin_event, SessionContext(realm="acme"))
"""
