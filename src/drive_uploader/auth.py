"""OAuth access-token refresh."""

from __future__ import annotations

import logging
from collections.abc import Callable

from drive_uploader._internal.transport import Transport
from drive_uploader.config import TOKEN_ENDPOINT
from drive_uploader.exceptions import ProtocolError, TransportError
from drive_uploader.models import Credential

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], None]


class TokenRefresher:
    """Exchanges a refresh token for a new access token.

    A failed refresh is logged and reported through the return value; the
    stale token stays on the credential so the call that needed a fresh
    token fails again with its own error.
    """

    def __init__(
        self,
        transport: Transport,
        token_endpoint: str = TOKEN_ENDPOINT,
        on_token_refreshed: TokenCallback | None = None,
    ) -> None:
        self._transport = transport
        self._token_endpoint = token_endpoint
        self.on_token_refreshed = on_token_refreshed

    def refresh(self, credential: Credential) -> bool:
        """Refresh ``credential.access_token`` in place.

        Args:
            credential: Credential to update

        Returns:
            True if a new access token was stored
        """
        try:
            response = self._transport.request(
                "POST",
                self._token_endpoint,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                content=credential.refresh_payload().encode("utf-8"),
            )
        except TransportError as e:
            logger.warning(f"Can not refresh token: {e}")
            return False

        if not 200 <= response.status_code < 300:
            logger.warning(f"Can not refresh token {response.describe()}")
            return False

        try:
            data = response.json()
        except ProtocolError as e:
            logger.warning(f"Can not refresh token: {e}")
            return False

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            logger.warning("Can not refresh token: response has no access_token")
            return False

        credential.access_token = str(token)
        logger.info("Refresh token OK")

        if self.on_token_refreshed is not None:
            self.on_token_refreshed(credential.access_token)
        return True
