"""Chunked transfer over an open resumable upload session."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import BinaryIO

from drive_uploader._internal.transport import Transport, TransportResponse
from drive_uploader.config import UploaderConfig
from drive_uploader.exceptions import ProtocolError, TransportError, UploadError
from drive_uploader.models import ChunkOutcome, ChunkRange, ChunkResult, UploadSession

logger = logging.getLogger(__name__)

FINAL_CODES = frozenset({200, 201, 202, 204})
RESUME_CODE = 308
RETRY_CODES = frozenset({408, 429, 500, 502, 503, 504})


def classify(status_code: int) -> ChunkOutcome:
    """Map a chunk response status to its outcome."""
    if status_code in FINAL_CODES:
        return ChunkOutcome.FINALIZED
    if status_code == RESUME_CODE:
        return ChunkOutcome.CONTINUE
    if status_code in RETRY_CODES:
        return ChunkOutcome.RETRY
    return ChunkOutcome.FAILED


def parse_range_header(value: str | None) -> int | None:
    """Return the persisted byte count from a ``Range: bytes=0-N`` header.

    Examples:
        "bytes=0-1048575" -> 1048576
        None -> None
    """
    if not value:
        return None
    _, _, spec = value.strip().partition("=")
    start, sep, end = spec.partition("-")
    if not sep or not start.strip().isdigit() or not end.strip().isdigit():
        return None
    return int(end) + 1


def extract_file_id(response: TransportResponse) -> str:
    """Read the created file id from a finalizing response.

    Raises:
        ProtocolError: If the body has no ``id``
    """
    data = response.json()
    file_id = data.get("id") if isinstance(data, dict) else None
    if not file_id:
        raise ProtocolError(
            "Finalizing response has no file id", status_code=response.status_code
        )
    return str(file_id)


class ChunkUploader:
    """Sends byte ranges to a resumable upload session.

    The uploader holds no cursor of its own: every call takes the cursor
    and returns the cursor after the server's answer.
    """

    def __init__(
        self,
        transport: Transport,
        config: UploaderConfig | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._config = config or UploaderConfig()
        self._sleep = sleep

    @property
    def chunk_size(self) -> int:
        return self._config.chunk_size

    def send_chunk(self, session: UploadSession, cursor: int, data: bytes) -> ChunkResult:
        """Send ``data`` as the bytes starting at ``cursor``.

        A status the protocol does not accept is reported through the
        result, never raised. The cursor only moves forward on 2xx and 308.

        Args:
            session: Open upload session
            cursor: Bytes already held by the server
            data: Chunk payload

        Returns:
            ChunkResult describing the server's answer

        Raises:
            ValueError: If the chunk is empty or runs past the end of the file
            TransportError: If the request could not be sent
            ProtocolError: If a finalizing response has no file id
        """
        if not data:
            raise ValueError("Cannot send an empty chunk")
        if cursor < 0:
            raise ValueError(f"Cursor must not be negative, got {cursor}")

        chunk_range = ChunkRange.for_chunk(cursor, len(data), session.total_size)
        if chunk_range.end > session.total_size - 1:
            raise ValueError(
                f"Chunk {chunk_range.header} runs past the end of the file"
            )

        response = self._put(session, chunk_range, data)
        status = response.status_code
        logger.info(f"Upload return code {status}")

        outcome = classify(status)
        if outcome is ChunkOutcome.FINALIZED:
            file_id = extract_file_id(response)
            logger.info(f"Finish uploading. File id: {file_id}")
            return ChunkResult(
                outcome=outcome,
                status_code=status,
                range=chunk_range,
                cursor=cursor + len(data),
                file_id=file_id,
            )

        if outcome is ChunkOutcome.CONTINUE:
            new_cursor = self._reconcile(cursor, len(data), response)
            logger.info(f"Upload chunk {chunk_range.header} success")
            return ChunkResult(
                outcome=outcome,
                status_code=status,
                range=chunk_range,
                cursor=new_cursor,
            )

        error = response.describe()
        logger.warning(f"Upload chunk {chunk_range.header} fail: {error}")
        return ChunkResult(
            outcome=outcome,
            status_code=status,
            range=chunk_range,
            cursor=cursor,
            error=error,
        )

    def query_status(self, session: UploadSession) -> ChunkResult:
        """Ask the server how many bytes of the session it holds.

        Also finalizes a zero-byte upload, since an empty ``bytes */0``
        request completes the file.

        Returns:
            FINALIZED result with the file id if the upload is complete,
            otherwise a CONTINUE result whose cursor is the persisted offset

        Raises:
            TransportError: If the request could not be sent
            ProtocolError: If the server answers with any other status
        """
        empty = ChunkRange(start=0, end=-1, total=session.total_size)
        response = self._put(session, empty, b"")
        status = response.status_code

        if status in FINAL_CODES:
            file_id = extract_file_id(response)
            logger.info(f"Upload already complete. File id: {file_id}")
            return ChunkResult(
                outcome=ChunkOutcome.FINALIZED,
                status_code=status,
                range=empty,
                cursor=session.total_size,
                file_id=file_id,
            )

        if status == RESUME_CODE:
            # No Range header means the server holds nothing yet
            offset = parse_range_header(response.headers.get("Range")) or 0
            offset = min(offset, session.total_size)
            logger.info(f"Server holds {offset}/{session.total_size} bytes")
            return ChunkResult(
                outcome=ChunkOutcome.CONTINUE,
                status_code=status,
                range=empty,
                cursor=offset,
            )

        raise ProtocolError(
            f"Could not query upload status ({response.describe()})", status_code=status
        )

    def upload_stream(
        self, session: UploadSession, source: BinaryIO, cursor: int = 0
    ) -> Iterator[ChunkResult]:
        """Stream ``source`` to the session one chunk at a time.

        Reads up to chunk_size bytes per chunk until ``source.read`` returns
        nothing. Chunks are sent strictly in order with one request in
        flight. RETRY outcomes and transport failures are retried with
        exponential backoff, re-querying the server offset before each retry.
        When the server acknowledges only part of a chunk the remaining tail
        is sent again.

        Yields:
            ChunkResult for every chunk response and offset query

        Raises:
            UploadError: If a chunk fails, retries are exhausted or the source
                holds more bytes than the session declared
        """
        if session.total_size == 0 and cursor == 0:
            yield self.query_status(session)
            return

        while True:
            pending = source.read(self.chunk_size)
            if not pending:
                return

            if cursor + len(pending) > session.total_size:
                raise UploadError(
                    f"Source is longer than the declared size: "
                    f"{cursor + len(pending)} bytes read, {session.total_size} declared"
                )

            logger.info(f"Upload {len(pending)} bytes")
            attempt = 0
            while pending:
                failure: ChunkResult | None = None
                try:
                    result = self.send_chunk(session, cursor, pending)
                except TransportError as e:
                    last_error: Exception = e
                else:
                    yield result
                    if result.outcome is ChunkOutcome.FINALIZED:
                        return
                    if result.outcome is ChunkOutcome.FAILED:
                        raise UploadError(
                            f"Upload chunk {result.range.header} failed: {result.error}",
                            result=result,
                        )
                    if result.outcome is ChunkOutcome.CONTINUE and result.accepted > 0:
                        pending = pending[result.accepted :]
                        cursor = result.cursor
                        attempt = 0
                        continue
                    failure = result
                    last_error = UploadError(
                        result.error or "server accepted no bytes", result
                    )

                if attempt >= self._config.max_retries:
                    raise UploadError(
                        f"Giving up at byte {cursor} after {attempt} retries: {last_error}",
                        result=failure,
                    ) from last_error

                delay = self._config.backoff(attempt)
                attempt += 1
                logger.warning(
                    f"Retrying at byte {cursor} in {delay:.1f}s "
                    f"(attempt {attempt}/{self._config.max_retries})"
                )
                self._sleep(delay)

                try:
                    status = self.query_status(session)
                except (TransportError, ProtocolError) as e:
                    logger.warning(f"Could not query upload status: {e}")
                    continue

                if status.outcome is ChunkOutcome.FINALIZED:
                    yield status
                    return
                if status.cursor < cursor or status.cursor > cursor + len(pending):
                    raise UploadError(
                        f"Server offset {status.cursor} is outside the buffered "
                        f"range {cursor}-{cursor + len(pending)}",
                        result=status,
                    )
                if status.cursor > cursor:
                    yield status
                    pending = pending[status.cursor - cursor :]
                    cursor = status.cursor

    def _reconcile(self, cursor: int, length: int, response: TransportResponse) -> int:
        """Cursor after a 308: the server's Range if present, else the full chunk."""
        persisted = parse_range_header(response.headers.get("Range"))
        if persisted is None:
            return cursor + length
        reconciled = max(cursor, min(persisted, cursor + length))
        if reconciled != cursor + length:
            logger.warning(
                f"Server persisted {reconciled - cursor} of {length} bytes sent at {cursor}"
            )
        return reconciled

    def _put(
        self, session: UploadSession, chunk_range: ChunkRange, data: bytes
    ) -> TransportResponse:
        return self._transport.request(
            "PUT",
            session.resume_url,
            headers={
                "Content-Length": str(len(data)),
                "Content-Range": chunk_range.header,
                "Content-Type": "application/octet-stream",
            },
            content=data,
        )
