"""Low-level HTTP client for the OpenFGA API.

Covers the three calls the publisher needs: list stores, read authorization
models, write tuples. Handles bearer credentials and client-credentials
token refresh.
"""
from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple
from datetime import datetime, timedelta

import requests

from .credentials import Credentials, CredentialsMethod
from .exceptions import OpenFgaAPIError, StoreNotBoundError, UnexpectedResponseError

DEFAULT_API_URL = "http://openfga:8080"

CONNECT_TIMEOUT = 5
READ_TIMEOUT = 5
REQUEST_TIMEOUT: Tuple[float, float] = (CONNECT_TIMEOUT, READ_TIMEOUT)

# Refresh client-credentials tokens this long before they expire
TOKEN_REFRESH_LEEWAY = timedelta(seconds=10)


class OpenFgaClient:
    """HTTP client for one OpenFGA endpoint.

    A client starts unbound; discovery sets ``store_id`` and
    ``authorization_model_id`` once, and store-scoped calls use them.

    Usage:
        client = OpenFgaClient("http://openfga:8080")
        stores = client.list_stores()
        client.store_id = stores[0]["id"]
        client.authorization_model_id = client.read_authorization_models()[0]["id"]
        client.write(writes=[{"user": "user:u1", "relation": "assignee", "object": "role:admin"}])
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        credentials: Optional[Credentials] = None,
        *,
        timeout: Tuple[float, float] = REQUEST_TIMEOUT,
    ):
        """Initialize OpenFGA client.

        Args:
            api_url: OpenFGA base URL (default: DEFAULT_API_URL)
            credentials: Credentials to attach (default: none)
            timeout: (connect, read) timeout in seconds
        """
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self.credentials = credentials or Credentials()
        self.timeout = timeout
        self.store_id: Optional[str] = None
        self.authorization_model_id: Optional[str] = None
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None

    # ─────────────────────────────────────────────────────────────────────────
    # API calls
    # ─────────────────────────────────────────────────────────────────────────
    def list_stores(self, page_size: Optional[int] = None) -> List[Dict[str, Any]]:
        """List every store at the endpoint, following continuation tokens.

        Returns:
            Store representations ({"id", "name", ...})
        """
        stores: List[Dict[str, Any]] = []
        continuation_token = ""
        while True:
            params: Dict[str, Any] = {}
            if page_size:
                params["page_size"] = page_size
            if continuation_token:
                params["continuation_token"] = continuation_token
            body = self._json_object(self._get("/stores", params=params))
            stores.extend(s for s in body.get("stores") or [] if isinstance(s, dict))
            continuation_token = body.get("continuation_token") or ""
            if not continuation_token:
                return stores

    def read_authorization_models(self, store_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Read the first page of authorization models, newest first.

        Args:
            store_id: Store to read (defaults to the bound store)

        Raises:
            StoreNotBoundError: If no store id is given or bound
        """
        store_id = self._require_store(store_id)
        body = self._json_object(self._get(f"/stores/{store_id}/authorization-models"))
        return [m for m in body.get("authorization_models") or [] if isinstance(m, dict)]

    def write(
        self,
        writes: Optional[List[Dict[str, str]]] = None,
        deletes: Optional[List[Dict[str, str]]] = None,
        *,
        store_id: Optional[str] = None,
        authorization_model_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Write and/or delete tuple keys in one request.

        Args:
            writes: Tuple keys to create ({"user", "relation", "object"})
            deletes: Tuple keys to remove
            store_id: Store to write (defaults to the bound store)
            authorization_model_id: Model to validate against (defaults to the bound model)

        Returns:
            Response body (empty object on success)

        Raises:
            ValueError: If both writes and deletes are empty
            OpenFgaAPIError: On HTTP error (e.g. 400 validation_error for unknown relations)
        """
        if not writes and not deletes:
            raise ValueError("write() needs at least one tuple key to write or delete")
        store_id = self._require_store(store_id)

        payload: Dict[str, Any] = {}
        if writes:
            payload["writes"] = {"tuple_keys": list(writes)}
        if deletes:
            payload["deletes"] = {"tuple_keys": list(deletes)}
        model_id = authorization_model_id or self.authorization_model_id
        if model_id:
            payload["authorization_model_id"] = model_id

        resp = self._post(f"/stores/{store_id}/write", json=payload)
        try:
            return resp.json() or {}
        except ValueError:
            return {}

    # ─────────────────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────────────────
    def _require_store(self, store_id: Optional[str]) -> str:
        store_id = store_id or self.store_id
        if not store_id:
            raise StoreNotBoundError("No store id bound on OpenFGA client")
        return store_id

    def _get(self, path: str, params: Optional[Dict] = None) -> requests.Response:
        url = f"{self.api_url}{path}"
        resp = requests.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        self._handle_error(resp)
        return resp

    def _post(self, path: str, json: Optional[Dict] = None) -> requests.Response:
        url = f"{self.api_url}{path}"
        resp = requests.post(url, json=json, headers=self._headers(), timeout=self.timeout)
        self._handle_error(resp)
        return resp

    def _headers(self) -> Dict[str, str]:
        """Headers for an API call, with credentials attached per method."""
        headers = {"Content-Type": "application/json"}
        method = self.credentials.method
        if method == CredentialsMethod.API_TOKEN:
            headers["Authorization"] = f"Bearer {self.credentials.api_token}"
        elif method == CredentialsMethod.CLIENT_CREDENTIALS:
            self._ensure_token()
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _ensure_token(self) -> None:
        """Ensure we have a valid client-credentials token, refreshing if necessary."""
        if self._token and self._token_expires_at and datetime.now() < self._token_expires_at - TOKEN_REFRESH_LEEWAY:
            return
        payload = self._get_client_credentials_token()
        self._token = payload["access_token"]
        try:
            expires_in = int(payload.get("expires_in") or 60)
        except (TypeError, ValueError):
            expires_in = 60
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)

    def _get_client_credentials_token(self) -> Dict[str, Any]:
        """Fetch an access token using the client credentials flow."""
        cc = self.credentials.client_credentials
        url = cc.token_url
        data = {
            "grant_type": "client_credentials",
            "client_id": cc.client_id,
            "client_secret": cc.client_secret,
            "audience": cc.api_audience,
        }
        resp = requests.post(url, data=data, timeout=self.timeout)
        if resp.status_code != 200:
            raise OpenFgaAPIError(resp.status_code, resp.text, url)
        payload = self._json_object(resp)
        if not payload.get("access_token"):
            raise UnexpectedResponseError(f"Token response from {url} has no access_token")
        return payload

    @staticmethod
    def _json_object(resp: requests.Response) -> Dict[str, Any]:
        """Decode a response body that must be a JSON object.

        Raises:
            UnexpectedResponseError: If the body is not JSON or not an object
        """
        try:
            body = resp.json()
        except ValueError as e:
            raise UnexpectedResponseError(f"Response from {resp.url} is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise UnexpectedResponseError(f"Response from {resp.url} is not a JSON object")
        return body

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            OpenFgaAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return
        code = None
        message = resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message
        raise OpenFgaAPIError(resp.status_code, message, resp.url, code)
