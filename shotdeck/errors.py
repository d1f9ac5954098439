"""
Error types raised by the catalog and upload services.

Every error carries the HTTP status it maps to; the handlers in
`shotdeck.main` render them as `{"error": message}`.
"""


class ShotdeckError(Exception):
    """Base exception for all service failures."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ShotdeckError):
    """Raised when a request body or parameter does not match the expected shape."""

    status_code = 400


class NotFoundError(ShotdeckError):
    """Raised when a referenced movie or annotation does not exist."""

    status_code = 404

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} not found")


class StorageError(ShotdeckError):
    """Raised when signing against the object store fails or it is not configured."""


class PersistenceError(ShotdeckError):
    """Raised when a query or connection against the database fails."""
