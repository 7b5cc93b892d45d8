"""Async client for Unsplash photo search.

The admin media picker searches stock photos through this client so the
access key never reaches the browser. Results are passed through unchanged;
importing a chosen photo goes through RemoteImageFetcher like any other URL.
"""

import logging
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class StockPhotoError(Exception):
    """Search failed; ``status_code`` and ``payload`` form the API response."""

    def __init__(
        self, message: str, status_code: int = 502, payload: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload if payload is not None else {"error": message}


class StockPhotoClient:
    """Thin wrapper over ``GET /search/photos``.

    Usage:
        client = StockPhotoClient(access_key=settings.unsplash_access_key)
        results = await client.search("rooftop solar", page=2)
    """

    def __init__(
        self,
        *,
        access_key: str,
        base_url: str = "https://api.unsplash.com",
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._access_key = access_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._access_key)

    async def search(self, query: str, *, page: int = 1, per_page: int = 20) -> dict[str, Any]:
        """Return the provider's search payload.

        Raises:
            StockPhotoError: No access key (500), a provider error status
                (same status, provider body), or a transport failure (502).
        """
        if not self.configured:
            raise StockPhotoError("Unsplash access key missing", status_code=500)

        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    "/search/photos",
                    params={"query": query, "page": page, "per_page": per_page},
                    headers={"Authorization": f"Client-ID {self._access_key}"},
                )
        except httpx.HTTPError as e:
            raise StockPhotoError(f"Stock photo search failed: {e}") from e

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {"error": response.text or response.reason_phrase}
            if not isinstance(payload, dict):
                payload = {"error": payload}
            raise StockPhotoError(
                f"Stock photo search failed: HTTP {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        elapsed = (time.time() - start_time) * 1000  # ms
        logger.info(
            "[SEARCH] %r page %d → HTTP %d (%.0fms)", query, page, response.status_code, elapsed
        )
        try:
            return response.json()
        except ValueError as e:
            raise StockPhotoError("Stock photo search returned invalid JSON") from e
