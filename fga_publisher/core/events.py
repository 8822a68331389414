"""Normalized view over one Keycloak admin event.

Keycloak reports admin changes as ``AdminEventRepresentation`` documents:

    {
        "id": "6c1c...",
        "realmId": "acme",
        "operationType": "CREATE",
        "resourceType": "REALM_ROLE_MAPPING",
        "resourcePath": "users/u1/role-mappings/realm",
        "representation": "[{\\"id\\": \\"r1\\", \\"name\\": \\"admin\\"}]",
        "authDetails": {"realmId": "master", "clientId": "...", "userId": "...", "ipAddress": "..."}
    }

``EventDescriptor.from_admin_event`` folds the host's open-ended resource and
operation types into the closed enums below, so everything downstream only
deals with values this package knows about.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# Resource collections (first segment of the resource path)
RESOURCE_USERS = "users"
RESOURCE_GROUPS = "groups"
RESOURCE_ROLES_BY_ID = "roles-by-id"


class ResourceKind(str, Enum):
    """Kind of resource an admin event is about."""

    USER_ROLE_MAPPING = "USER_ROLE_MAPPING"
    ROLE = "ROLE"
    ROLE_TO_ROLE_MAPPING = "ROLE_TO_ROLE_MAPPING"
    GROUP_ROLE_MAPPING = "GROUP_ROLE_MAPPING"
    GROUP_MEMBERSHIP = "GROUP_MEMBERSHIP"
    OTHER = "OTHER"


class OperationType(str, Enum):
    """Admin operation reported by the host."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    OTHER = "OTHER"


class Intent(str, Enum):
    """What the remote store should do with the tuple."""

    WRITE = "write"
    DELETE = "delete"


class ObjectType(str, Enum):
    """Object types of the authorization model."""

    USER = "user"
    ROLE = "role"
    GROUP = "group"


def intent_for(operation: OperationType) -> Optional[Intent]:
    """Map an operation to a tuple intent, or None when the event is ignored."""
    if operation == OperationType.CREATE:
        return Intent.WRITE
    if operation == OperationType.DELETE:
        return Intent.DELETE
    return None


# Host resource types whose meaning depends on the resource collection
_ROLE_MAPPING_BY_COLLECTION = {
    RESOURCE_USERS: ResourceKind.USER_ROLE_MAPPING,
    RESOURCE_GROUPS: ResourceKind.GROUP_ROLE_MAPPING,
    RESOURCE_ROLES_BY_ID: ResourceKind.ROLE_TO_ROLE_MAPPING,
}

_HOST_RESOURCE_KINDS = {
    "REALM_ROLE": ResourceKind.ROLE,
    "GROUP_MEMBERSHIP": ResourceKind.GROUP_MEMBERSHIP,
}


def split_resource_path(resource_path: Optional[str]) -> Tuple[str, ...]:
    """Split a tenant-local resource path into its segments."""
    if not resource_path:
        return ()
    return tuple(resource_path.strip("/").split("/"))


def parse_resource_kind(resource_type: Optional[str], path_segments: Tuple[str, ...] = ()) -> ResourceKind:
    """Fold a host resource type into a ResourceKind.

    Args:
        resource_type: Host resource type (e.g. REALM_ROLE_MAPPING) or one of
            the ResourceKind names
        path_segments: Resource path segments, used to tell user and group
            role mappings apart

    Returns:
        Matching ResourceKind, OTHER when unrecognized
    """
    if not resource_type:
        return ResourceKind.OTHER
    name = resource_type.strip().upper()
    if name == "REALM_ROLE_MAPPING":
        collection = path_segments[0] if path_segments else ""
        return _ROLE_MAPPING_BY_COLLECTION.get(collection, ResourceKind.USER_ROLE_MAPPING)
    if name in _HOST_RESOURCE_KINDS:
        return _HOST_RESOURCE_KINDS[name]
    try:
        return ResourceKind(name)
    except ValueError:
        return ResourceKind.OTHER


def parse_operation(operation_type: Optional[str]) -> OperationType:
    """Fold a host operation type into an OperationType (OTHER when unknown)."""
    try:
        return OperationType((operation_type or "").strip().upper())
    except ValueError:
        return OperationType.OTHER


@dataclass(frozen=True)
class EventDescriptor:
    """Normalized admin event.

    Attributes:
        resource_kind: Closed resource kind
        operation: Closed operation type
        path_segments: Resource path split on "/"
        raw_payload: Event representation (JSON text or already parsed)
        tenant_id: Realm that owns the changed resource
        auth_tenant_id: Realm of the acting admin
        event_id: Host event id, for diagnostics
    """

    resource_kind: ResourceKind
    operation: OperationType
    path_segments: Tuple[str, ...]
    raw_payload: Any = None
    tenant_id: str = ""
    auth_tenant_id: str = ""
    event_id: str = ""
    auth_client_id: Optional[str] = None
    auth_user_id: Optional[str] = None
    ip_address: Optional[str] = None
    error: Optional[str] = None

    @property
    def resource_collection(self) -> str:
        return self.path_segments[0] if self.path_segments else ""

    @property
    def subject_id(self) -> str:
        return self.path_segments[1] if len(self.path_segments) > 1 else ""

    @property
    def resource_path(self) -> str:
        return "/".join(self.path_segments)

    @classmethod
    def from_admin_event(cls, raw: Dict[str, Any]) -> "EventDescriptor":
        """Build a descriptor from a Keycloak AdminEventRepresentation.

        Args:
            raw: Admin event document as delivered by the host

        Returns:
            EventDescriptor

        Raises:
            TypeError: If raw is not a mapping
        """
        if not isinstance(raw, dict):
            raise TypeError(f"Admin event must be a JSON object, got {type(raw).__name__}")

        auth = raw.get("authDetails") or {}
        segments = split_resource_path(raw.get("resourcePath"))
        return cls(
            resource_kind=parse_resource_kind(raw.get("resourceType"), segments),
            operation=parse_operation(raw.get("operationType")),
            path_segments=segments,
            raw_payload=raw.get("representation"),
            tenant_id=raw.get("realmId") or "",
            auth_tenant_id=auth.get("realmId") or "",
            event_id=str(raw.get("id") or raw.get("time") or ""),
            auth_client_id=auth.get("clientId"),
            auth_user_id=auth.get("userId"),
            ip_address=auth.get("ipAddress"),
            error=raw.get("error"),
        )

    def describe(self) -> str:
        """One-line summary for log messages (never includes the payload)."""
        parts = [
            f"resourceKind={self.resource_kind.value}",
            f"operationType={self.operation.value}",
            f"realmId={self.tenant_id}",
            f"authRealmId={self.auth_tenant_id}",
            f"clientId={self.auth_client_id}",
            f"userId={self.auth_user_id}",
            f"ipAddress={self.ip_address}",
            f"resourcePath={self.resource_path}",
        ]
        if self.error is not None:
            parts.append(f"error={self.error}")
        return "AdminEvent " + ", ".join(parts)
