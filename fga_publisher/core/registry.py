"""Per-tenant OpenFGA client bindings.

Each Keycloak realm publishes into the OpenFGA store that carries the same
name. The first event for a realm discovers that store and its newest
authorization model, and the resulting binding is cached for the life of the
process. Store and model stay pinned: models added to the store later are
ignored until the binding is invalidated.

Concurrency: the cache is a plain dict whose single-key get/set are atomic.
Discovery runs outside any lock, so two threads racing on the same new
tenant may both discover; both produce the same binding and the last insert
wins.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .openfga.client import OpenFgaClient
from .openfga.credentials import Credentials
from .openfga.exceptions import NoAuthorizationModelError, StoreNotFoundError, UnexpectedResponseError
from .openfga.model import AuthorizationModelSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientBinding:
    """A tenant's discovered store and model, with the client bound to them."""

    tenant_name: str
    client: OpenFgaClient
    store_id: str
    authorization_model_id: str
    model: AuthorizationModelSnapshot


def client_factory_from_config(cfg) -> Callable[[], OpenFgaClient]:
    """Factory building unbound clients for the configured endpoint.

    Credentials are validated on every call, so a misconfiguration fails each
    discovery (and is logged each time) until the config is fixed.
    """
    def _factory() -> OpenFgaClient:
        credentials = Credentials.from_config(cfg)
        return OpenFgaClient(cfg.openfga_api_url, credentials, timeout=cfg.timeout)
    return _factory


class TenantRegistry:
    """Resolves tenant names to ClientBindings, discovering on first use."""

    def __init__(self, client_factory: Callable[[], OpenFgaClient]):
        """Initialize registry.

        Args:
            client_factory: Returns a new, unbound OpenFgaClient
        """
        self.client_factory = client_factory
        self._bindings: Dict[str, ClientBinding] = {}

    @classmethod
    def from_config(cls, cfg) -> "TenantRegistry":
        return cls(client_factory_from_config(cfg))

    def resolve(self, tenant_name: str) -> ClientBinding:
        """Return the cached binding for a tenant, discovering it if absent.

        Raises:
            MissingCredentialConfigError: Credential settings incomplete
            StoreNotFoundError: No store named after the tenant
            NoAuthorizationModelError: Store has no authorization model
            OpenFgaAPIError: OpenFGA answered with an error
            UnexpectedResponseError: Store or model listing lacks an id
            requests.RequestException: Network failure or timeout
        """
        binding = self._bindings.get(tenant_name)
        if binding is not None:
            return binding

        binding = self.discover(tenant_name)
        self._bindings[tenant_name] = binding
        return binding

    def discover(self, tenant_name: str) -> ClientBinding:
        """Find the tenant's store and newest model. Does not touch the cache."""
        logger.info(f"Discovering OpenFGA store and authorization model for tenant '{tenant_name}'")
        client = self.client_factory()

        wanted = tenant_name.lower()
        store = next((s for s in client.list_stores() if str(s.get("name") or "").lower() == wanted), None)
        if store is None:
            raise StoreNotFoundError(f"No store found for realm: {tenant_name}")
        if not store.get("id"):
            raise UnexpectedResponseError(f"Store '{store.get('name')}' for realm {tenant_name} has no id")
        logger.info(f"Found store id: {store['id']}")
        client.store_id = store["id"]

        models = client.read_authorization_models()
        if not models:
            raise NoAuthorizationModelError(f"No authorization model found in store {store['id']} for realm: {tenant_name}")
        model = models[0]
        if not model.get("id"):
            raise UnexpectedResponseError(f"Newest authorization model in store {store['id']} has no id")
        logger.info(f"Found authorization model id: {model['id']}")
        client.authorization_model_id = model["id"]

        return ClientBinding(
            tenant_name=tenant_name,
            client=client,
            store_id=store["id"],
            authorization_model_id=model["id"],
            model=AuthorizationModelSnapshot.from_model(model),
        )

    def cached(self, tenant_name: str) -> Optional[ClientBinding]:
        return self._bindings.get(tenant_name)

    def invalidate(self, tenant_name: Optional[str] = None) -> None:
        """Drop one tenant's binding, or all of them when no name is given."""
        if tenant_name is None:
            self._bindings.clear()
            logger.info("Invalidated all OpenFGA client bindings")
            return
        if self._bindings.pop(tenant_name, None) is not None:
            logger.info(f"Invalidated OpenFGA client binding for tenant '{tenant_name}'")

    def tenants(self) -> List[str]:
        return list(self._bindings)
