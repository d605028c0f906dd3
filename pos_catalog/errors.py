"""Error taxonomy for the catalog synchronization engine."""

from __future__ import annotations

from typing import Any, Dict, Optional


class CatalogError(Exception):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class StorageUnavailable(CatalogError):
    """The local catalog store could not be opened, read or written."""


class FetchFailed(CatalogError):
    """The remote catalog could not be retrieved (transport error, timeout, non-2xx)."""


class MalformedRemoteData(CatalogError):
    """A remote response did not carry the expected record array."""


class QuoteValidationError(CatalogError):
    """Raised when a budget line fails validation.

    Attributes:
        field_errors: mapping of field name -> human-readable error message.
    """

    def __init__(self, field_errors: Dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message, payload={"field_errors": field_errors})
        self.field_errors = field_errors
