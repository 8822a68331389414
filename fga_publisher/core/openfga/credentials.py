"""Credential settings for the OpenFGA API."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from .exceptions import MissingCredentialConfigError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PATH = "/oauth/token"


class CredentialsMethod(str, Enum):
    """How requests to OpenFGA are authenticated."""

    NONE = "NONE"
    API_TOKEN = "API_TOKEN"
    CLIENT_CREDENTIALS = "CLIENT_CREDENTIALS"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "CredentialsMethod":
        """Parse a configured method name; blank means NONE.

        Raises:
            ValueError: If the name is not a known method
        """
        if raw is None or not raw.strip():
            return cls.NONE
        try:
            return cls(raw.strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown OpenFGA credentials method '{raw}' (expected one of: {allowed})")


@dataclass(frozen=True)
class ClientCredentials:
    """OAuth2 client-credentials grant parameters."""

    client_id: str
    client_secret: str
    api_token_issuer: str
    api_audience: str

    @property
    def token_url(self) -> str:
        """Token endpoint derived from the issuer.

        A bare host ("auth.fga.dev") becomes "https://auth.fga.dev/oauth/token";
        an issuer that already carries a path is used as-is.
        """
        issuer = self.api_token_issuer.strip()
        if "://" not in issuer:
            issuer = f"https://{issuer}"
        if urlparse(issuer).path in ("", "/"):
            return issuer.rstrip("/") + DEFAULT_TOKEN_PATH
        return issuer


@dataclass(frozen=True)
class Credentials:
    """Credential method plus the fields that method needs."""

    method: CredentialsMethod = CredentialsMethod.NONE
    api_token: Optional[str] = None
    client_credentials: Optional[ClientCredentials] = None

    @classmethod
    def from_config(cls, cfg) -> "Credentials":
        """Build and validate credentials from a PublisherConfig.

        Raises:
            MissingCredentialConfigError: If the selected method lacks a field
        """
        method = cfg.credentials_method
        if method == CredentialsMethod.API_TOKEN:
            if not (cfg.openfga_api_token or "").strip():
                logger.error("OpenFGA API token is not provided in the configuration")
                raise MissingCredentialConfigError("OpenFGA API token is not provided in the configuration")
            logger.info("API token provided in config, will use it for authentication with OpenFGA")
            return cls(method=method, api_token=cfg.openfga_api_token.strip())

        if method == CredentialsMethod.CLIENT_CREDENTIALS:
            fields = {
                "client id": cfg.openfga_client_id,
                "client secret": cfg.openfga_client_secret,
                "token issuer": cfg.openfga_api_token_issuer,
                "audience": cfg.openfga_api_audience,
            }
            missing = [label for label, value in fields.items() if not (value or "").strip()]
            if missing:
                logger.error(f"OpenFGA client credentials incomplete, missing: {', '.join(missing)}")
                raise MissingCredentialConfigError(
                    f"OpenFGA client credentials are not provided in the configuration (missing: {', '.join(missing)})"
                )
            logger.info("Client credentials provided in config, will use them for authentication with OpenFGA")
            return cls(
                method=method,
                client_credentials=ClientCredentials(
                    client_id=cfg.openfga_client_id.strip(),
                    client_secret=cfg.openfga_client_secret.strip(),
                    api_token_issuer=cfg.openfga_api_token_issuer.strip(),
                    api_audience=cfg.openfga_api_audience.strip(),
                ),
            )

        logger.warning("No OpenFGA API token or client credentials configured, sending unauthenticated requests")
        return cls()
