"""Publishing tuples to the tenant's OpenFGA store.

Delivery is at-most-once and best-effort: one synchronous write per tuple,
no retries, no re-queue. Failures end in a log line and a FAILED/DROPPED
outcome; nothing is raised to the caller.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import requests

from .events import Intent
from .openfga.exceptions import OpenFgaError
from .registry import ClientBinding, TenantRegistry
from .tuples import RelationTuple

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """How handling one event ended."""

    OK = "ok"                          # written/deleted remotely
    FAILED = "failed"                  # remote write failed
    DROPPED = "dropped"                # no binding for the tenant, nothing sent
    REJECTED = "rejected"              # relation not in the pinned model
    IGNORED = "ignored"                # operation other than create/delete
    UNSUPPORTED = "unsupported"        # resource kind/path not handled
    MALFORMED = "malformed"            # representation unusable
    NOT_APPLICABLE = "not_applicable"  # no tuple for these fields


@dataclass
class PublishOutcome:
    """Result of handling one event, kept for diagnostics and tests."""

    status: OutcomeStatus
    tenant_name: Optional[str] = None
    relation_tuple: Optional[RelationTuple] = None
    intent: Optional[Intent] = None
    response: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "tenant": self.tenant_name,
            "tuple": self.relation_tuple.to_tuple_key() if self.relation_tuple else None,
            "intent": self.intent.value if self.intent else None,
            "error": self.error,
        }


def build_write_request(relation_tuple: RelationTuple, intent: Intent) -> Dict[str, list]:
    """Wrap exactly one tuple key in write or delete mode."""
    key = relation_tuple.to_tuple_key()
    if intent == Intent.DELETE:
        return {"writes": [], "deletes": [key]}
    return {"writes": [key], "deletes": []}


class Publisher:
    """Writes tuples through the tenant registry's bindings."""

    def __init__(
        self,
        registry: TenantRegistry,
        *,
        validate_relations: bool = False,
    ):
        """Initialize publisher.

        Args:
            registry: Tenant registry resolving bindings
            validate_relations: Reject tuples the pinned model does not allow
                before writing, instead of waiting for the remote rejection
        """
        self.registry = registry
        self.validate_relations = validate_relations

    def publish(
        self,
        tenant_name: str,
        relation_tuple: RelationTuple,
        intent: Intent = Intent.WRITE,
        *,
        event_id: Optional[str] = None,
    ) -> PublishOutcome:
        """Write or delete one tuple in the tenant's store.

        Args:
            tenant_name: Realm name (equal to the store name)
            relation_tuple: Tuple to publish
            intent: WRITE for create events, DELETE for delete events
            event_id: Originating event id, for logs

        Returns:
            PublishOutcome (never raises)
        """
        outcome = PublishOutcome(
            status=OutcomeStatus.FAILED,
            tenant_name=tenant_name,
            relation_tuple=relation_tuple,
            intent=intent,
        )

        try:
            binding = self.registry.resolve(tenant_name)
        except (OpenFgaError, requests.RequestException) as e:
            logger.error(f"Unable to initialize OpenFGA client for tenant '{tenant_name}'. Discarding event {event_id}: {e}")
            outcome.status = OutcomeStatus.DROPPED
            outcome.error = str(e)
            return outcome

        if self.validate_relations and not self._allowed(binding, relation_tuple):
            logger.warning(
                f"Relation '{relation_tuple.relation}' on '{relation_tuple.object_type}' for "
                f"'{relation_tuple.subject_type}' is not in model {binding.authorization_model_id}; "
                f"discarding event {event_id}"
            )
            outcome.status = OutcomeStatus.REJECTED
            outcome.error = f"relation not allowed by model {binding.authorization_model_id}"
            return outcome

        request = build_write_request(relation_tuple, intent)
        logger.debug(f"Publishing event {event_id}: {intent.value} {relation_tuple}")
        try:
            response = binding.client.write(
                writes=request["writes"],
                deletes=request["deletes"],
                store_id=binding.store_id,
                authorization_model_id=binding.authorization_model_id,
            )
        except (OpenFgaError, requests.RequestException) as e:
            logger.error(f"Failed to {intent.value} tuple {relation_tuple} for tenant '{tenant_name}' (event {event_id}): {e}")
            outcome.error = str(e)
            return outcome

        logger.debug(f"Successfully sent tuple key to OpenFGA, response: {response}")
        outcome.status = OutcomeStatus.OK
        outcome.response = response
        return outcome

    @staticmethod
    def _allowed(binding: ClientBinding, relation_tuple: RelationTuple) -> bool:
        return binding.model.allows(relation_tuple.object_type, relation_tuple.relation, relation_tuple.subject_type)
