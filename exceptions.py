"""
Application-specific exceptions for the gallery.

Routers and the ingestion/analytics layers raise these; the API maps each
one to an HTTP status in a single exception handler.
"""


class GalleryError(Exception):
    """Base exception for all gallery errors."""
    status_code = 500

    def __init__(self, message=''):
        super().__init__(message)
        self.message = message


class ValidationError(GalleryError):
    """A required request field is missing or malformed."""
    status_code = 400


class UnauthorizedError(GalleryError):
    """Missing or invalid admin session."""
    status_code = 401


class NotFoundError(GalleryError):
    """Referenced photo or album does not exist."""
    status_code = 404


class ConflictError(GalleryError):
    """Unique constraint collision (album slug, photo path)."""
    status_code = 409


class ProcessingError(GalleryError):
    """Image decode, thumbnail or encode failure during ingestion.

    Absorbed by batch operations and counted as a skipped file.
    """
    status_code = 422
