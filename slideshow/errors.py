from __future__ import annotations


class SlideshowError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class AccessDenied(SlideshowError):
    status_code = 403
    message = "Access denied"


class ImageNotFound(SlideshowError):
    status_code = 404
    message = "Image not found"


class MetadataReadError(SlideshowError):
    status_code = 500
    message = "Failed to read metadata"


class ImageSourceError(Exception):
    """Raised by image sources when the backend cannot be reached or answers with an error."""


class FullscreenUnavailable(Exception):
    """Raised by a view that cannot enter fullscreen."""
