"""
Error taxonomy for the catalog.

Backend SDK failures are collapsed into these two kinds at the storage
boundary, so the lister and issuer never see boto3 exception shapes:
- ClientInputError: the request itself is unusable (HTTP 4xx, no retry)
- BackendUnavailable: listing/signing/network/auth failures (HTTP 5xx)
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for catalog failures."""
    pass


class ClientInputError(CatalogError):
    """Raised when client-supplied input cannot be used."""
    pass


class InvalidKeyEncoding(ClientInputError):
    """Raised when a storage key is not valid percent-encoded UTF-8."""

    def __init__(self, raw_key: str, reason: str) -> None:
        self.raw_key = raw_key
        self.reason = reason
        super().__init__(f"Invalid key encoding: {reason}")


class BackendUnavailable(CatalogError):
    """
    Raised when the storage backend cannot serve a request.

    Carries the gateway operation that failed and, when the backend
    reported one, its error code (e.g. "AccessDenied", "NoSuchBucket").
    """

    def __init__(
        self,
        message: str,
        operation: str,
        code: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.code = code
        super().__init__(message)
