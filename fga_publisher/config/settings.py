"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from fga_publisher.core.openfga.client import CONNECT_TIMEOUT, DEFAULT_API_URL, READ_TIMEOUT
from fga_publisher.core.openfga.credentials import CredentialsMethod


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_flag(var_name: str, default: bool = False) -> bool:
    return os.environ.get(var_name, str(default)).strip().lower() in {"1", "true", "yes", "on"}


def _env_seconds(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{var_name} must be a positive number of seconds, got {raw!r}")
    return value


@dataclass
class PublisherConfig:
    """Static options handed to the publisher at startup."""
    # OpenFGA endpoint
    openfga_api_url: str = DEFAULT_API_URL
    credentials_method: CredentialsMethod = CredentialsMethod.NONE

    # API_TOKEN
    openfga_api_token: str = ""

    # CLIENT_CREDENTIALS
    openfga_client_id: str = ""
    openfga_client_secret: str = ""
    openfga_api_token_issuer: str = ""
    openfga_api_audience: str = ""

    # Timeouts (seconds)
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT

    # Reject tuples the discovered model does not allow, before writing
    validate_relations: bool = False

    # Keycloak (identity lookups)
    keycloak_url: str = "http://keycloak:8080"
    keycloak_service_realm: str = "master"
    keycloak_service_client_id: str = "openfga-events-publisher"
    keycloak_service_client_secret: str = ""

    # Webhook
    webhook_token: str = ""

    @property
    def timeout(self) -> Tuple[float, float]:
        """(connect, read) timeout tuple for requests."""
        return (self.connect_timeout, self.read_timeout)


def load_settings() -> PublisherConfig:
    """Load publisher settings from environment and /run/secrets.

    Raises:
        ValueError: On an unknown credentials method or a non-positive timeout
    """
    credentials_method = CredentialsMethod.parse(os.environ.get("OPENFGA_CREDENTIALS_METHOD"))

    cfg = PublisherConfig(
        openfga_api_url=os.environ.get("OPENFGA_API_URL", DEFAULT_API_URL).strip() or DEFAULT_API_URL,
        credentials_method=credentials_method,
        openfga_api_token=_load_secret_from_file("openfga_api_token", "OPENFGA_API_TOKEN") or "",
        openfga_client_id=os.environ.get("OPENFGA_CLIENT_ID", ""),
        openfga_client_secret=_load_secret_from_file("openfga_client_secret", "OPENFGA_CLIENT_SECRET") or "",
        openfga_api_token_issuer=os.environ.get("OPENFGA_API_TOKEN_ISSUER", ""),
        openfga_api_audience=os.environ.get("OPENFGA_API_AUDIENCE", ""),
        connect_timeout=_env_seconds("OPENFGA_CONNECT_TIMEOUT", CONNECT_TIMEOUT),
        read_timeout=_env_seconds("OPENFGA_READ_TIMEOUT", READ_TIMEOUT),
        validate_relations=_env_flag("OPENFGA_VALIDATE_RELATIONS"),
        keycloak_url=os.environ.get("KEYCLOAK_URL", "http://keycloak:8080"),
        keycloak_service_realm=os.environ.get("KEYCLOAK_SERVICE_REALM", "master"),
        keycloak_service_client_id=os.environ.get("KEYCLOAK_SERVICE_CLIENT_ID", "openfga-events-publisher"),
        keycloak_service_client_secret=_load_secret_from_file(
            "keycloak_service_client_secret",
            "KEYCLOAK_SERVICE_CLIENT_SECRET",
        ) or "",
        webhook_token=_load_secret_from_file("events_webhook_token", "EVENTS_WEBHOOK_TOKEN") or "",
    )

    print(
        f"[settings] OpenFGA={cfg.openfga_api_url}; credentials={cfg.credentials_method.value}; "
        f"keycloak={cfg.keycloak_url}; validate_relations={cfg.validate_relations}"
    )
    if not cfg.webhook_token:
        print("[settings] WARNING: EVENTS_WEBHOOK_TOKEN not set, webhook accepts unauthenticated events")

    return cfg
