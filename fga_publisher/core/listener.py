"""Inbound boundary: one call per admin event.

``EventListener.on_event`` is what the event-delivery side calls. It never
raises: the authorization side-channel must not break the identity operation
that produced the event, so every failure ends as a log line and an outcome.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import requests

from .classifier import EventClassifier
from .events import EventDescriptor, intent_for
from .exceptions import MalformedPayloadError, UnsupportedEventError
from .keycloak.client import KeycloakClient
from .keycloak.exceptions import KeycloakError
from .keycloak.identity import IdentityLookup, KeycloakIdentityLookup
from .publisher import OutcomeStatus, PublishOutcome, Publisher
from .registry import TenantRegistry
from .tuples import TupleMapper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Admin session the event was raised in.

    Attributes:
        realm: Name of the session's active realm; role-id lookups happen here
    """

    realm: Optional[str] = None


class EventListener:
    """Classifies, maps and publishes admin events."""

    def __init__(
        self,
        identity: IdentityLookup,
        publisher: Publisher,
        *,
        classifier: Optional[EventClassifier] = None,
        mapper: Optional[TupleMapper] = None,
    ):
        self.identity = identity
        self.publisher = publisher
        self.classifier = classifier or EventClassifier(identity)
        self.mapper = mapper or TupleMapper()

    @classmethod
    def from_config(cls, cfg, identity: Optional[IdentityLookup] = None) -> "EventListener":
        """Wire a listener from PublisherConfig.

        Without an explicit identity lookup, a Keycloak service account client
        is authenticated here, so Keycloak must be reachable at startup.
        """
        if identity is None:
            kc_client = KeycloakClient(cfg.keycloak_url, timeout=cfg.read_timeout)
            kc_client.authenticate_service_account(
                cfg.keycloak_service_realm,
                cfg.keycloak_service_client_id,
                cfg.keycloak_service_client_secret,
            )
            identity = KeycloakIdentityLookup(kc_client)

        publisher = Publisher(
            TenantRegistry.from_config(cfg),
            validate_relations=cfg.validate_relations,
        )
        return cls(identity, publisher)

    def on_event(self, raw_event: Any, session_context: Optional[SessionContext] = None) -> PublishOutcome:
        """Handle one raw admin event (Keycloak AdminEventRepresentation).

        Returns:
            PublishOutcome describing what happened (never raises)
        """
        try:
            descriptor = EventDescriptor.from_admin_event(raw_event)
        except (TypeError, AttributeError) as e:
            logger.warning(f"Discarding event that is not an admin event document: {e}")
            return PublishOutcome(status=OutcomeStatus.MALFORMED, error=str(e))

        try:
            return self.handle(descriptor, session_context)
        except Exception as e:
            logger.exception(f"Unexpected error handling event {descriptor.event_id}, discarding: {descriptor.describe()}")
            return PublishOutcome(status=OutcomeStatus.DROPPED, error=str(e))

    def handle(self, descriptor: EventDescriptor, session_context: Optional[SessionContext] = None) -> PublishOutcome:
        """Handle one normalized event.

        Expected failure modes are turned into outcomes here; anything else
        propagates to ``on_event``.
        """
        intent = intent_for(descriptor.operation)
        if intent is None:
            logger.debug(f"Ignoring event {descriptor.event_id}: {descriptor.describe()}")
            return PublishOutcome(status=OutcomeStatus.IGNORED)

        session_realm = session_context.realm if session_context else None
        try:
            fields = self.classifier.classify(descriptor, session_realm)
        except UnsupportedEventError as e:
            logger.debug(f"Skipping event: {e}")
            return PublishOutcome(status=OutcomeStatus.UNSUPPORTED, intent=intent, error=str(e))
        except MalformedPayloadError as e:
            logger.warning(f"Discarding event {descriptor.event_id}, {e}: {descriptor.describe()}")
            return PublishOutcome(status=OutcomeStatus.MALFORMED, intent=intent, error=str(e))
        except (KeycloakError, requests.RequestException) as e:
            logger.error(f"Unable to resolve role name for event {descriptor.event_id}, discarding: {e}")
            return PublishOutcome(status=OutcomeStatus.DROPPED, intent=intent, error=str(e))

        relation_tuple = self.mapper.to_tuple(fields)
        if relation_tuple is None:
            logger.debug(
                f"No tuple for {fields.subject_type.value} -> {fields.object_type.value} "
                f"(event {descriptor.event_id})"
            )
            return PublishOutcome(status=OutcomeStatus.NOT_APPLICABLE, intent=intent)

        # Route by the event's own realm, not the session's
        try:
            tenant_name = self.identity.lookup_realm_by_id(descriptor.tenant_id).name
        except (KeycloakError, requests.RequestException) as e:
            logger.error(f"Unable to resolve realm '{descriptor.tenant_id}' for event {descriptor.event_id}, discarding: {e}")
            return PublishOutcome(
                status=OutcomeStatus.DROPPED,
                relation_tuple=relation_tuple,
                intent=intent,
                error=str(e),
            )

        return self.publisher.publish(tenant_name, relation_tuple, fields.intent, event_id=descriptor.event_id)

    def consume(self, source: Iterable[EventDescriptor], session_context: Optional[SessionContext] = None) -> List[PublishOutcome]:
        """Handle every event an EventSource yields, in order."""
        outcomes = []
        for descriptor in source:
            try:
                outcomes.append(self.handle(descriptor, session_context))
            except Exception as e:
                logger.exception(f"Unexpected error handling event {descriptor.event_id}, discarding")
                outcomes.append(PublishOutcome(status=OutcomeStatus.DROPPED, error=str(e)))
        return outcomes
