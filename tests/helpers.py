"""Shared test helpers for drive_uploader tests."""

from __future__ import annotations

import json
from typing import Any

from drive_uploader._internal.transport import TransportResponse

RESUME_URL = "https://upload.example/resume/xyz"


def make_response(
    status_code: int,
    headers: dict[str, str] | None = None,
    body: Any = None,
) -> TransportResponse:
    """Build a TransportResponse, JSON-encoding dict bodies."""
    if body is None:
        content = b""
    elif isinstance(body, bytes):
        content = body
    else:
        content = json.dumps(body).encode("utf-8")
    return TransportResponse(status_code=status_code, headers=headers, content=content)


def session_created(url: str = RESUME_URL) -> TransportResponse:
    """Response to a successful session-open POST."""
    return make_response(200, headers={"Location": url})


def sent_headers(call: Any) -> dict[str, str]:
    """Headers passed to a recorded transport.request call."""
    return dict(call.kwargs["headers"])
