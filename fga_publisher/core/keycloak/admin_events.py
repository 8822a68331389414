"""Admin events stored by Keycloak, read back as EventDescriptors.

Keycloak only stores admin events when "Save admin events" is enabled on the
realm, and only includes representations when "Include representation" is on.
Without representations every role/group event is dropped as malformed.
"""
from __future__ import annotations
from typing import Iterator, List, Optional, Protocol

from ..events import EventDescriptor
from .client import KeycloakClient

# Only these can ever produce a tuple
HANDLED_OPERATION_TYPES = ("CREATE", "DELETE")
HANDLED_RESOURCE_TYPES = ("REALM_ROLE_MAPPING", "REALM_ROLE", "GROUP_MEMBERSHIP")

DEFAULT_PAGE_SIZE = 100


class EventSource(Protocol):
    """Anything that yields admin events as descriptors."""

    def __iter__(self) -> Iterator[EventDescriptor]:
        ...


class KeycloakAdminEventSource:
    """Pages through ``GET /admin/realms/{realm}/admin-events``.

    Iteration is synchronous and driven by the caller; nothing runs in the
    background.
    """

    def __init__(
        self,
        client: KeycloakClient,
        realm: str,
        *,
        date_from: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """Initialize event source.

        Args:
            client: Authenticated Keycloak client (needs view-events rights)
            realm: Realm whose admin events are read
            date_from: Optional lower bound (YYYY-MM-DD)
            page_size: Events requested per call
        """
        self.client = client
        self.realm = realm
        self.date_from = date_from
        self.page_size = page_size

    def fetch_page(self, first: int = 0) -> List[dict]:
        """Fetch one page of raw admin events, newest first."""
        params = {
            "first": first,
            "max": self.page_size,
            "operationTypes": list(HANDLED_OPERATION_TYPES),
            "resourceTypes": list(HANDLED_RESOURCE_TYPES),
        }
        if self.date_from:
            params["dateFrom"] = self.date_from
        resp = self.client.get(f"/admin/realms/{self.realm}/admin-events", params=params)
        return resp.json() or []

    def __iter__(self) -> Iterator[EventDescriptor]:
        first = 0
        while True:
            page = self.fetch_page(first)
            for raw in page:
                yield EventDescriptor.from_admin_event(raw)
            if len(page) < self.page_size:
                return
            first += len(page)
