"""Main DriveUploader class for resumable uploads to Google Drive."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

from drive_uploader._internal.transport import HttpxTransport, Transport
from drive_uploader.auth import TokenCallback, TokenRefresher
from drive_uploader.config import UploaderConfig
from drive_uploader.exceptions import UploadError
from drive_uploader.models import (
    ChunkOutcome,
    ChunkResult,
    Credential,
    FileMetadata,
    UploadResult,
    UploadSession,
)
from drive_uploader.session import SessionInitiator
from drive_uploader.uploader import ChunkUploader

logger = logging.getLogger(__name__)


class DriveUploader:
    """Uploads one file through a resumable upload session.

    The session is opened when the uploader is created. Bytes are then sent
    either from a stream with upload() or one chunk at a time with
    upload_chunk().

    Example (context manager - recommended):
        credential = Credential(access, refresh, client_id, client_secret)
        with DriveUploader(FileMetadata("report.pdf"), size, credential) as uploader:
            with open("report.pdf", "rb") as f:
                result = uploader.upload(f)
            print(result.file_id)

    Example (chunk at a time):
        uploader = DriveUploader(FileMetadata("data.bin", ["folder-id"]), size, credential)
        outcome = uploader.upload_chunk(buffer, 0, count)
        if outcome.outcome is ChunkOutcome.RETRY:
            uploader.upload_chunk(buffer, 0, count)
        uploader.close()
    """

    def __init__(
        self,
        metadata: FileMetadata,
        total_size: int,
        credential: Credential,
        *,
        config: UploaderConfig | None = None,
        transport: Transport | None = None,
        on_token_refreshed: TokenCallback | None = None,
    ) -> None:
        """Open an upload session.

        Args:
            metadata: Name and parent folders of the new file
            total_size: Size of the whole file in bytes
            credential: OAuth credential, refreshed in place on a 401
            config: Endpoints, chunk size, timeouts and retry policy
            transport: HTTP transport (an HttpxTransport is created if omitted)
            on_token_refreshed: Called with the new access token after a refresh

        Raises:
            AuthError: If the session request stays unauthorized
            TransportError: If the session request could not be sent
            ProtocolError: If the server does not return a session
        """
        self._config = config or UploaderConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(
            connect_timeout=self._config.connect_timeout,
            timeout=self._config.timeout,
            user_agent=self._config.user_agent,
        )
        self._metadata = metadata
        self._credential = credential
        self._refresher = TokenRefresher(
            self._transport,
            token_endpoint=self._config.token_endpoint,
            on_token_refreshed=on_token_refreshed,
        )
        self._chunks = ChunkUploader(self._transport, self._config)
        self._cursor = 0
        self._chunks_sent = 0
        self._file_id: str | None = None

        initiator = SessionInitiator(
            self._transport,
            self._refresher,
            upload_endpoint=self._config.upload_endpoint,
        )
        try:
            self._session = initiator.open(metadata, total_size, credential)
        except Exception:
            self.close()
            raise

    def __enter__(self) -> DriveUploader:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit context manager."""
        self.close()

    @property
    def session(self) -> UploadSession:
        return self._session

    @property
    def uploaded_size(self) -> int:
        """Bytes the server is known to hold."""
        return self._cursor

    @property
    def uploaded_file_id(self) -> str | None:
        """Id of the created file, once the last chunk is accepted."""
        return self._file_id

    @property
    def is_complete(self) -> bool:
        return self._file_id is not None

    def get_uploaded_file_id(self) -> str | None:
        return self._file_id

    def set_on_token_refreshed(self, callback: TokenCallback | None) -> None:
        """Register a callback that receives each refreshed access token."""
        self._refresher.on_token_refreshed = callback

    def refresh_token(self) -> bool:
        """Refresh the access token now. Returns True on success."""
        return self._refresher.refresh(self._credential)

    def upload(self, source: BinaryIO) -> UploadResult | None:
        """Stream ``source`` from the current cursor to the end of the file.

        Args:
            source: Binary file-like object positioned at the current cursor

        Returns:
            UploadResult once the server creates the file, or None if the
            source ran out first

        Raises:
            UploadError: If a chunk fails, retries are exhausted or the source
                is longer than total_size
            TransportError: If the final offset query cannot be sent
            ProtocolError: If a finalizing response has no file id
        """
        self._ensure_open()
        for result in self._chunks.upload_stream(self._session, source, self._cursor):
            self._record(result)

        if self._file_id is None:
            logger.warning(
                f"Source ended at byte {self._cursor} of {self._session.total_size}"
            )
            return None
        return self._result()

    def upload_chunk(self, buffer: bytes, start: int = 0, end: int | None = None) -> ChunkResult:
        """Send ``buffer[start:end]`` as the next chunk.

        The chunk is not retried. A RETRY or FAILED outcome leaves the cursor
        where it was, so the same bytes can be sent again.

        Raises:
            UploadError: If the upload is already complete
            ValueError: If the slice is empty or runs past the end of the file
            TransportError: If the request could not be sent
        """
        self._ensure_open()
        result = self._chunks.send_chunk(self._session, self._cursor, bytes(buffer[start:end]))
        self._record(result)
        return result

    def resume(self) -> int:
        """Reconcile the cursor with the offset the server reports.

        Returns:
            The cursor after reconciliation
        """
        result = self._chunks.query_status(self._session)
        self._record(result)
        return self._cursor

    def close(self) -> None:
        """Close the transport if this uploader created it."""
        if self._owns_transport:
            self._transport.close()

    def _ensure_open(self) -> None:
        if self._file_id is not None:
            raise UploadError(f"Upload already complete (file id {self._file_id})")

    def _record(self, result: ChunkResult) -> None:
        if result.range.length > 0:
            self._chunks_sent += 1
        if result.outcome.advances and result.cursor > self._cursor:
            self._cursor = min(result.cursor, self._session.total_size)
        if result.outcome is ChunkOutcome.FINALIZED:
            self._file_id = result.file_id

    def _result(self) -> UploadResult:
        assert self._file_id is not None
        return UploadResult(
            file_id=self._file_id,
            name=self._metadata.name,
            total_size=self._session.total_size,
            chunks_sent=self._chunks_sent,
        )
