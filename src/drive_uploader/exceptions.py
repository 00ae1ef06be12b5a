"""Exception hierarchy for the drive_uploader library."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from drive_uploader.models import ChunkResult


class DriveUploaderError(Exception):
    """Base exception for all drive_uploader errors."""

    pass


class AuthError(DriveUploaderError):
    """Raised when the access token cannot be refreshed or is rejected after a refresh."""

    pass


class TransportError(DriveUploaderError):
    """Raised when a request fails before a response is received."""

    pass


class ProtocolError(DriveUploaderError):
    """Raised when the server answers with something the upload protocol does not allow.

    The status_code attribute holds the HTTP status of the offending
    response, when there was one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UploadError(DriveUploaderError):
    """Raised when a streamed upload cannot make further progress."""

    def __init__(self, message: str, result: ChunkResult | None = None) -> None:
        super().__init__(message)
        self.result = result
