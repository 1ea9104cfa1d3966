import asyncio
import logging
from typing import Any, Dict, Optional

from domo_relay.core.exceptions import TokenAcquisitionError, UpstreamError
from domo_relay.providers.domo.client import DomoClient

logger = logging.getLogger(__name__)


class TokenManager:
    """Service for acquiring and caching the relay's Domo bearer token (Async)

    The cached token carries no expiry; it is only replaced when a caller
    reports that Domo rejected it (see ``invalidate``/``acquire_token``).
    """

    def __init__(
        self,
        client: DomoClient,
        client_id: str,
        client_secret: str,
        scope: str = "data dashboard user",
    ):
        """Initialize the token manager

        Args:
            client: Domo API client used for the client-credentials exchange
            client_id: OAuth client id
            client_secret: OAuth client secret
            scope: Scope requested for the cached relay token
        """
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self._access_token: str = ""
        self._lock = asyncio.Lock()
        self.acquisition_count = 0

    @property
    def access_token(self) -> str:
        return self._access_token

    async def ensure_token(self) -> str:
        """Return the cached token, acquiring one first if the cache is empty.

        Concurrent callers that find the cache empty wait for a single
        in-flight acquisition instead of each issuing their own.
        """
        if self._access_token:
            return self._access_token
        async with self._lock:
            if self._access_token:
                return self._access_token
            return await self.acquire_token()

    async def acquire_token(self) -> str:
        """Perform the client-credentials grant and cache the resulting token.

        Raises:
            TokenAcquisitionError: If Domo rejects the exchange or returns no token
        """
        payload = await self.request_token(self.scope)
        token = payload.get("access_token")
        if not token:
            logger.error("Domo token response did not include an access_token")
            raise TokenAcquisitionError("Failed to obtain Domo token", details=payload)

        self._access_token = token
        self.acquisition_count += 1
        logger.info("Domo access token generated successfully")
        return token

    async def request_token(self, scope: str) -> Dict[str, Any]:
        """Run a grant for ``scope`` without touching the cache.

        Returns:
            The raw token payload (access_token, expires_in, token_type, scope)

        Raises:
            TokenAcquisitionError: If the exchange fails
        """
        if not self.client_id or not self.client_secret:
            raise TokenAcquisitionError(
                "Failed to obtain Domo token",
                details="DOMO_CLIENT_ID and DOMO_CLIENT_SECRET must be configured",
            )
        try:
            return await self.client.request_token(self.client_id, self.client_secret, scope)
        except UpstreamError as e:
            logger.error(f"Error getting Domo token: {e.details or e.message}")
            raise TokenAcquisitionError("Failed to obtain Domo token", details=e.details) from e

    def invalidate(self, token: Optional[str] = None) -> None:
        """Discard the cached token.

        When ``token`` is given, the cache is only cleared if it still holds
        that token, so a stale 401 cannot evict a token another request has
        just refreshed.
        """
        if token is None or token == self._access_token:
            logger.info("Discarding cached Domo access token")
            self._access_token = ""
