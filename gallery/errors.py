"""Exception hierarchy for the gallery service."""

from typing import Any, Optional


class GalleryError(Exception):
    """Base exception for all gallery errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(GalleryError):
    """Required field missing or invalid."""

    status_code = 400


class NotFoundError(GalleryError):
    """Video ID not found in the catalog."""

    status_code = 404


class AuthError(GalleryError):
    """Missing or invalid admin session."""

    status_code = 401


class SchemaDriftError(GalleryError):
    """Catalog table is missing a field and no reduced operation is possible."""

    def __init__(self, message: str, column: Optional[str] = None, details: Optional[Any] = None):
        self.column = column
        super().__init__(message, details)


class CollaboratorError(GalleryError):
    """Blob storage is unavailable or misconfigured."""


PERMISSION_MARKERS = ("permission denied", "insufficient privilege", "must be owner")


def remediation_for(exc: Exception) -> Optional[str]:
    """Operator-facing hint for errors that have a known fix."""
    if isinstance(exc, SchemaDriftError):
        return "Run 'alembic upgrade head' to bring the videos table up to date."

    message = str(exc).lower()
    if any(marker in message for marker in PERMISSION_MARKERS):
        return (
            "The database role lacks privileges on the videos table. "
            "Grant SELECT, INSERT, UPDATE, DELETE on videos (and USAGE on its id sequence) "
            "to the application role."
        )
    return None
