"""HTTP transport used by the upload driver."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from drive_uploader.config import CONNECT_TIMEOUT, DEFAULT_USER_AGENT
from drive_uploader.exceptions import ProtocolError, TransportError

logger = logging.getLogger(__name__)


class TransportResponse:
    """Status code, headers and body of an HTTP response."""

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        content: bytes = b"",
    ) -> None:
        self.status_code = status_code
        self.headers = httpx.Headers(headers or {})
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ProtocolError: If the body is not valid JSON
        """
        try:
            return json.loads(self.content)
        except ValueError as e:
            raise ProtocolError(
                f"Response body is not valid JSON: {self.text[:200]!r}",
                status_code=self.status_code,
            ) from e

    def describe(self) -> str:
        """One-line summary for log and error messages."""
        body = self.text.strip().replace("\n", " ")
        return f"code {self.status_code}: {body[:500]}"

    def __repr__(self) -> str:
        return f"TransportResponse(status_code={self.status_code})"


class Transport(Protocol):
    """Anything that can perform one blocking HTTP request."""

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        content: bytes = b"",
    ) -> TransportResponse: ...

    def close(self) -> None: ...


class HttpxTransport:
    """Transport backed by httpx.Client.

    Every request carries a fixed desktop-browser User-Agent. The connect
    timeout defaults to 50 seconds so a request fails before a caller's own
    60 second budget runs out.
    """

    def __init__(
        self,
        *,
        connect_timeout: float = CONNECT_TIMEOUT,
        timeout: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.Client | None = None,
    ) -> None:
        self._user_agent = user_agent
        if client is None:
            # 308 means "resume incomplete" here, never a redirect to follow
            client = httpx.Client(
                timeout=httpx.Timeout(timeout, connect=connect_timeout),
                follow_redirects=False,
                headers={"User-Agent": user_agent},
            )
        self._client = client

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        content: bytes = b"",
    ) -> TransportResponse:
        """Send one request and return the response without raising on status.

        Raises:
            TransportError: If the connection fails or times out
        """
        request_headers = dict(headers or {})
        request_headers["User-Agent"] = self._user_agent
        request_headers["Content-Length"] = str(len(content))

        logger.debug(f"{method} {url} ({len(content)} bytes)")
        try:
            response = self._client.request(
                method, url, headers=request_headers, content=content
            )
        except httpx.TransportError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
        )

    def close(self) -> None:
        self._client.close()
