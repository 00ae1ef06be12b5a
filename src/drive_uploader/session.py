"""Opening resumable upload sessions."""

from __future__ import annotations

import json
import logging

from drive_uploader._internal.transport import Transport, TransportResponse
from drive_uploader.auth import TokenRefresher
from drive_uploader.config import UPLOAD_ENDPOINT
from drive_uploader.exceptions import AuthError, ProtocolError
from drive_uploader.models import Credential, FileMetadata, UploadSession

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401


class SessionInitiator:
    """Opens a resumable upload session and returns its resume URL."""

    def __init__(
        self,
        transport: Transport,
        refresher: TokenRefresher,
        upload_endpoint: str = UPLOAD_ENDPOINT,
    ) -> None:
        self._transport = transport
        self._refresher = refresher
        self._upload_endpoint = upload_endpoint

    def open(
        self, metadata: FileMetadata, total_size: int, credential: Credential
    ) -> UploadSession:
        """Open a session for a file of ``total_size`` bytes.

        A 401 triggers one token refresh and one retried request. A second
        401 is final.

        Args:
            metadata: Name and parent folders of the new file
            total_size: Size of the whole file in bytes
            credential: Credential used to authorize the request

        Returns:
            UploadSession holding the resume URL

        Raises:
            AuthError: If the request is still unauthorized after a refresh
            TransportError: If the request could not be sent
            ProtocolError: If the response is not a usable session
        """
        if total_size < 0:
            raise ValueError(f"total_size must not be negative, got {total_size}")

        payload = json.dumps(metadata.to_json(), separators=(",", ":")).encode("utf-8")

        response = self._post(payload, credential)
        if response.status_code == HTTP_UNAUTHORIZED:
            logger.info("Access token rejected; refreshing")
            self._refresher.refresh(credential)
            response = self._post(payload, credential)
            if response.status_code == HTTP_UNAUTHORIZED:
                raise AuthError(f"Unauthorized after token refresh ({response.describe()})")

        if not 200 <= response.status_code < 300:
            raise ProtocolError(
                f"Could not open upload session ({response.describe()})",
                status_code=response.status_code,
            )

        resume_url = response.headers.get("Location")
        if not resume_url:
            raise ProtocolError(
                "Upload session response has no Location header",
                status_code=response.status_code,
            )

        logger.info(f"Session: {resume_url}")
        return UploadSession(resume_url=resume_url, total_size=total_size)

    def _post(self, payload: bytes, credential: Credential) -> TransportResponse:
        return self._transport.request(
            "POST",
            self._upload_endpoint,
            headers={
                "Authorization": f"Bearer {credential.access_token}",
                "Content-Type": "application/json",
            },
            content=payload,
        )
