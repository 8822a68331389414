"""OpenFGA-specific exceptions for error handling."""
from typing import Optional


class OpenFgaError(Exception):
    """Base exception for all OpenFGA operations."""
    pass


class OpenFgaAPIError(OpenFgaError):
    """HTTP error from the OpenFGA API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        code: OpenFGA error code (e.g. validation_error), when the body has one
    """

    def __init__(self, status_code: int, message: str, endpoint: str, code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.code = code
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class StoreNotFoundError(OpenFgaError):
    """No store is named after the tenant."""
    pass


class NoAuthorizationModelError(OpenFgaError):
    """The tenant's store has no authorization model yet."""
    pass


class MissingCredentialConfigError(OpenFgaError):
    """Credential method is configured but its fields are blank."""
    pass


class StoreNotBoundError(OpenFgaError):
    """Store-scoped call made before discovery bound a store id."""
    pass


class UnexpectedResponseError(OpenFgaError):
    """Successful HTTP status, but the body lacks fields the client relies on."""
    pass
