"""OpenFGA API client library.

Architecture:
- client.py: HTTP client (list stores, read authorization models, write tuples)
- credentials.py: Credential methods and validation
- model.py: Local snapshot of an authorization model
- exceptions.py: Typed exceptions for error handling
"""
from .client import (
    OpenFgaClient,
    DEFAULT_API_URL,
    CONNECT_TIMEOUT,
    READ_TIMEOUT,
    REQUEST_TIMEOUT,
)
from .credentials import (
    CredentialsMethod,
    ClientCredentials,
    Credentials,
)
from .exceptions import (
    OpenFgaError,
    OpenFgaAPIError,
    StoreNotFoundError,
    NoAuthorizationModelError,
    MissingCredentialConfigError,
    StoreNotBoundError,
    UnexpectedResponseError,
)
from .model import AuthorizationModelSnapshot

__all__ = [
    # Client
    "OpenFgaClient",
    "DEFAULT_API_URL",
    "CONNECT_TIMEOUT",
    "READ_TIMEOUT",
    "REQUEST_TIMEOUT",

    # Credentials
    "CredentialsMethod",
    "ClientCredentials",
    "Credentials",

    # Exceptions
    "OpenFgaError",
    "OpenFgaAPIError",
    "StoreNotFoundError",
    "NoAuthorizationModelError",
    "MissingCredentialConfigError",
    "StoreNotBoundError",
    "UnexpectedResponseError",

    # Model
    "AuthorizationModelSnapshot",
]
