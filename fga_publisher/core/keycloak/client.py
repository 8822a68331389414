"""Read-only HTTP client for the Keycloak Admin API.

The publisher signs in with a confidential client's service account
(client credentials grant) and only ever issues GET requests.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict

import requests

from .exceptions import KeycloakAPIError

REQUEST_TIMEOUT = 5

# Keycloak's own default when the token response omits expires_in
DEFAULT_TOKEN_LIFETIME = 60

# Refresh tokens this long before Keycloak says they expire
TOKEN_REFRESH_LEEWAY = timedelta(seconds=10)


@dataclass(frozen=True)
class ServiceAccount:
    """Confidential client whose service account reads the Admin API."""

    realm: str
    client_id: str
    client_secret: str

    def token_path(self) -> str:
        return f"/realms/{self.realm}/protocol/openid-connect/token"

    def grant(self) -> Dict[str, str]:
        return {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }


class KeycloakClient:
    """Authenticated GETs against one Keycloak server.

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_service_account("master", "openfga-events-publisher", "secret")
        realm = client.get("/admin/realms/acme").json()
    """

    def __init__(self, base_url: str, timeout: float = REQUEST_TIMEOUT):
        if not base_url:
            raise ValueError("Keycloak base URL is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.account: Optional[ServiceAccount] = None
        self._access_token: Optional[str] = None
        self._valid_until: Optional[datetime] = None

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Sign in and remember the account so expired tokens can be renewed.

        Raises:
            KeycloakAPIError: Token endpoint refused the credentials
        """
        self.account = ServiceAccount(auth_realm, client_id, client_secret)
        return self._issue_token()

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """GET an Admin API path (e.g. "/admin/realms/acme") with the bearer token.

        Raises:
            KeycloakAPIError: Not authenticated, or an HTTP error status
        """
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {self._current_token()}"
        resp = requests.get(f"{self.base_url}{path}", params=params, headers=headers, timeout=self.timeout, **kwargs)
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)
        return resp

    def _current_token(self) -> str:
        if self.account is None:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_service_account first", "")
        if self._access_token is None or datetime.now() >= self._valid_until - TOKEN_REFRESH_LEEWAY:
            return self._issue_token()
        return self._access_token

    def _issue_token(self) -> str:
        url = f"{self.base_url}{self.account.token_path()}"
        resp = requests.post(url, data=self.account.grant(), timeout=self.timeout)
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise KeycloakAPIError(resp.status_code, "Token response has no access_token", url)

        try:
            lifetime = int(payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME
        self._access_token = payload["access_token"]
        self._valid_until = datetime.now() + timedelta(seconds=lifetime)
        return self._access_token
