"""Configuration for the drive_uploader library.

Defaults target the Google Drive v3 API. Every value can be overridden
from the environment with UploaderConfig.from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

UPLOAD_ENDPOINT = "https://www.googleapis.com/upload/drive/v3/files?uploadType=resumable"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"

# 256 * 8 KiB; the server requires chunks to be multiples of 256 KiB
CHUNK_SIZE = 256 * 8 * 1024

# Kept under 60s so a request returns before an enclosing 60s request times out
CONNECT_TIMEOUT = 50.0

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_11_2) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/48.0.2564.103 Safari/537.36"
)

ENV_PREFIX = "DRIVE_UPLOADER_"


@dataclass(frozen=True)
class UploaderConfig:
    """Endpoints, chunking, timeouts and retry policy for an upload."""

    upload_endpoint: str = UPLOAD_ENDPOINT
    token_endpoint: str = TOKEN_ENDPOINT
    chunk_size: int = CHUNK_SIZE
    connect_timeout: float = CONNECT_TIMEOUT
    timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    max_retries: int = 3
    backoff_base: float = 1.0
    backoff_max: float = 30.0

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must not be negative, got {self.max_retries}")
        if self.backoff_base < 0 or self.backoff_max < 0:
            raise ValueError(
                f"backoff_base and backoff_max must not be negative, "
                f"got {self.backoff_base} and {self.backoff_max}"
            )

    def backoff(self, attempt: int) -> float:
        """Seconds to wait before retry number ``attempt`` (0-based)."""
        return float(min(self.backoff_base * 2**attempt, self.backoff_max))

    @classmethod
    def from_env(cls, **overrides: object) -> UploaderConfig:
        """Load configuration from DRIVE_UPLOADER_* environment variables.

        Keyword overrides win over the environment.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        config = cls()
        values: dict[str, object] = {}

        for field_name, caster in (
            ("upload_endpoint", str),
            ("token_endpoint", str),
            ("user_agent", str),
            ("chunk_size", int),
            ("max_retries", int),
            ("connect_timeout", float),
            ("timeout", float),
            ("backoff_base", float),
            ("backoff_max", float),
        ):
            env_name = f"{ENV_PREFIX}{field_name.upper()}"
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                values[field_name] = caster(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {env_name}: {raw!r}") from e

        values.update({k: v for k, v in overrides.items() if v is not None})
        return replace(config, **values)  # type: ignore[arg-type]
