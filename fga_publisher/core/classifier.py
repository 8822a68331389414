"""Event classification and field extraction.

Decides what an admin event is about (subject and object types), whether it
creates or removes a relationship, and pulls out the identifiers needed to
build a tuple.
"""
from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .events import (
    EventDescriptor,
    Intent,
    ObjectType,
    ResourceKind,
    RESOURCE_GROUPS,
    RESOURCE_ROLES_BY_ID,
    RESOURCE_USERS,
    intent_for,
)
from .exceptions import MalformedPayloadError, UnsupportedEventError
from .keycloak.identity import IdentityLookup, RealmHandle

NAME_ATTRIBUTE = "name"

# (resource kind, resource collection) -> (subject type, object type)
CLASSIFICATION_TABLE: Dict[Tuple[ResourceKind, str], Tuple[ObjectType, ObjectType]] = {
    (ResourceKind.USER_ROLE_MAPPING, RESOURCE_USERS): (ObjectType.USER, ObjectType.ROLE),
    (ResourceKind.ROLE, RESOURCE_USERS): (ObjectType.USER, ObjectType.ROLE),
    (ResourceKind.USER_ROLE_MAPPING, RESOURCE_ROLES_BY_ID): (ObjectType.ROLE, ObjectType.ROLE),
    (ResourceKind.ROLE, RESOURCE_ROLES_BY_ID): (ObjectType.ROLE, ObjectType.ROLE),
    (ResourceKind.ROLE_TO_ROLE_MAPPING, RESOURCE_ROLES_BY_ID): (ObjectType.ROLE, ObjectType.ROLE),
    (ResourceKind.GROUP_ROLE_MAPPING, RESOURCE_GROUPS): (ObjectType.GROUP, ObjectType.ROLE),
    (ResourceKind.ROLE, RESOURCE_GROUPS): (ObjectType.GROUP, ObjectType.ROLE),
    (ResourceKind.GROUP_MEMBERSHIP, RESOURCE_USERS): (ObjectType.USER, ObjectType.GROUP),
    (ResourceKind.GROUP_MEMBERSHIP, RESOURCE_GROUPS): (ObjectType.GROUP, ObjectType.GROUP),
}


@dataclass(frozen=True)
class ClassifiedFields:
    """Everything the tuple mapper needs from one event."""

    subject_type: ObjectType
    subject_id: str
    object_type: ObjectType
    object_name: str
    intent: Intent
    subject_name: Optional[str] = None

    @property
    def subject_key(self) -> Optional[str]:
        """Identifier used in the tuple: role name for roles, id otherwise."""
        if self.subject_type == ObjectType.ROLE:
            return self.subject_name
        return self.subject_id


def parse_payload(payload: Any) -> Any:
    """Parse an event representation into JSON data.

    Keycloak ships representations as JSON text; some delivery paths encode
    that text once more, so a decoded string is decoded again.

    Raises:
        MalformedPayloadError: If the payload is absent or not JSON
    """
    if payload is None:
        raise MalformedPayloadError("Event has no representation")
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    for _ in range(2):
        if not isinstance(payload, str):
            return payload
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedPayloadError(f"Event representation is not valid JSON: {e}") from e
    if isinstance(payload, str):
        raise MalformedPayloadError("Event representation is a string, not a JSON document")
    return payload


def extract_attribute(payload: Any, attribute: str = NAME_ATTRIBUTE) -> str:
    """Return an attribute's text from an object or the first element of a list.

    Raises:
        MalformedPayloadError: If the attribute is missing or not a scalar
    """
    document = parse_payload(payload)
    if isinstance(document, list):
        if not document:
            raise MalformedPayloadError("Event representation is an empty list")
        document = document[0]
    if not isinstance(document, dict):
        raise MalformedPayloadError(f"Event representation is not an object: {type(document).__name__}")

    value = document.get(attribute)
    if value is None:
        raise MalformedPayloadError(f"Event representation has no '{attribute}' attribute")
    if isinstance(value, (dict, list)):
        raise MalformedPayloadError(f"Event representation attribute '{attribute}' is not a scalar")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class EventClassifier:
    """Turns EventDescriptors into ClassifiedFields."""

    def __init__(self, identity: IdentityLookup):
        """Initialize classifier.

        Args:
            identity: Identity-store lookups, used to name role subjects
        """
        self.identity = identity

    def subject_and_object_types(self, descriptor: EventDescriptor) -> Tuple[ObjectType, ObjectType]:
        """Look up subject/object types for the event's kind and collection.

        Raises:
            UnsupportedEventError: If the combination is not handled
        """
        if len(descriptor.path_segments) < 2:
            raise UnsupportedEventError(
                f"Event {descriptor.event_id} has resource path '{descriptor.resource_path}' without a subject"
            )
        types = CLASSIFICATION_TABLE.get((descriptor.resource_kind, descriptor.resource_collection))
        if types is None:
            raise UnsupportedEventError(
                f"Event {descriptor.event_id} is not handled, resource: {descriptor.resource_kind.value} "
                f"on '{descriptor.resource_collection}'"
            )
        return types

    def classify(self, descriptor: EventDescriptor, session_realm: Optional[str] = None) -> ClassifiedFields:
        """Classify one event.

        Args:
            descriptor: Normalized event
            session_realm: Name of the current admin session's realm. Role
                subjects are looked up there, not in the event's own realm;
                without a session the acting admin's realm is used.

        Returns:
            ClassifiedFields

        Raises:
            UnsupportedEventError: Operation, kind or collection not handled
            MalformedPayloadError: Representation lacks a usable name
            RoleNotFoundError: Role subject id does not resolve to a name
        """
        intent = intent_for(descriptor.operation)
        if intent is None:
            raise UnsupportedEventError(
                f"Event {descriptor.event_id} has unhandled operation {descriptor.operation.value}"
            )
        subject_type, object_type = self.subject_and_object_types(descriptor)
        object_name = extract_attribute(descriptor.raw_payload, NAME_ATTRIBUTE)

        subject_id = descriptor.subject_id
        subject_name = None
        if subject_type == ObjectType.ROLE and subject_id:
            subject_name = self.identity.lookup_role_name_by_id(self._lookup_realm(descriptor, session_realm), subject_id)

        return ClassifiedFields(
            subject_type=subject_type,
            subject_id=subject_id,
            object_type=object_type,
            object_name=object_name,
            intent=intent,
            subject_name=subject_name,
        )

    def _lookup_realm(self, descriptor: EventDescriptor, session_realm: Optional[str]) -> RealmHandle:
        if session_realm:
            return self.identity.lookup_realm_by_name(session_realm)
        return self.identity.lookup_realm_by_id(descriptor.auth_tenant_id or descriptor.tenant_id)
