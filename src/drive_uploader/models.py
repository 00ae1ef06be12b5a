"""Data models for the drive_uploader library."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode


@dataclass(frozen=True)
class FileMetadata:
    """Name and parent folders of the file being created."""

    name: str
    parents: list[str] | None = None

    def to_json(self) -> dict[str, object]:
        return {"name": self.name, "parents": list(self.parents or [])}


@dataclass
class Credential:
    """OAuth credential shared by reference with the uploader.

    The access token is replaced in place when it is refreshed, so every
    holder of this object sees the new value. There is no locking; callers
    sharing a Credential across threads must synchronize access themselves.
    """

    access_token: str
    refresh_token: str
    client_id: str
    client_secret: str

    def refresh_payload(self) -> str:
        """Form-encoded body for the token endpoint."""
        return urlencode(
            {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            }
        )


@dataclass(frozen=True)
class UploadSession:
    """A resumable upload session opened on the server."""

    resume_url: str
    total_size: int


@dataclass(frozen=True)
class ChunkRange:
    """Inclusive byte range of a chunk within the whole file."""

    start: int
    end: int
    total: int

    @classmethod
    def for_chunk(cls, cursor: int, length: int, total: int) -> ChunkRange:
        return cls(start=cursor, end=cursor + length - 1, total=total)

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def header(self) -> str:
        """Value of the Content-Range header.

        An empty range renders as ``bytes */total``, which is how the server
        is asked for its persisted offset or told a zero-byte file is done.
        """
        if self.length <= 0:
            return f"bytes */{self.total}"
        return f"bytes {self.start}-{self.end}/{self.total}"


class ChunkOutcome(Enum):
    """How the server answered a chunk."""

    FINALIZED = "finalized"
    CONTINUE = "continue"
    RETRY = "retry"
    FAILED = "failed"

    @property
    def advances(self) -> bool:
        return self in (ChunkOutcome.FINALIZED, ChunkOutcome.CONTINUE)


@dataclass(frozen=True)
class ChunkResult:
    """Result of sending one chunk.

    cursor is the number of bytes the server is known to hold after the
    response; it equals range.start when the chunk was not accepted.
    """

    outcome: ChunkOutcome
    status_code: int
    range: ChunkRange
    cursor: int
    file_id: str | None = None
    error: str | None = None

    @property
    def accepted(self) -> int:
        """Bytes of this chunk the server acknowledged."""
        return self.cursor - self.range.start


@dataclass(frozen=True)
class UploadResult:
    """Result of a completed upload."""

    file_id: str
    name: str
    total_size: int
    chunks_sent: int
