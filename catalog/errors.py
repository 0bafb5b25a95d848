"""
Error taxonomy for catalog operations.

Core operations raise these; the HTTP layer maps each kind to a status code.
"""


class CatalogError(Exception):
    """Base class for failures reported to clients."""

    default_message = "error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedInput(CatalogError):
    """Request body or parameters could not be decoded."""
    default_message = "invalid JSON"


class ValidationFailed(CatalogError):
    """A required field is missing or blank."""
    default_message = "validation failed"


class NotFound(CatalogError):
    """No book with the requested id."""
    default_message = "book not found"


class Unauthorized(CatalogError):
    """Missing or invalid credential or token."""
    default_message = "unauthorized"


class InternalSerialization(CatalogError):
    """A response could not be encoded."""
    default_message = "internal error"
