"""Drive Uploader - resumable, chunked uploads to Google Drive.

Example usage:
    from drive_uploader import Credential, DriveUploader, FileMetadata

    credential = Credential(access_token, refresh_token, client_id, client_secret)

    # Using context manager (recommended)
    with DriveUploader(FileMetadata("report.pdf", ["folder-id"]), size, credential) as uploader:
        with open("report.pdf", "rb") as f:
            result = uploader.upload(f)
        print(f"Created file {result.file_id}")

    # Persist refreshed tokens
    uploader.set_on_token_refreshed(lambda token: store.save(token))
"""

from drive_uploader.client import DriveUploader
from drive_uploader.config import UploaderConfig
from drive_uploader.exceptions import (
    AuthError,
    DriveUploaderError,
    ProtocolError,
    TransportError,
    UploadError,
)
from drive_uploader.models import (
    ChunkOutcome,
    ChunkRange,
    ChunkResult,
    Credential,
    FileMetadata,
    UploadResult,
    UploadSession,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "DriveUploader",
    "UploaderConfig",
    # Models
    "ChunkOutcome",
    "ChunkRange",
    "ChunkResult",
    "Credential",
    "FileMetadata",
    "UploadResult",
    "UploadSession",
    # Exceptions
    "DriveUploaderError",
    "AuthError",
    "ProtocolError",
    "TransportError",
    "UploadError",
]
