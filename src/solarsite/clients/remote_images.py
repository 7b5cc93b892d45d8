"""Async HTTP client for importing images from remote URLs."""

import logging
import time

import httpx

logger = logging.getLogger(__name__)


class RemoteFetchError(Exception):
    """The remote image could not be downloaded."""


class RemoteImageFetcher:
    """Download image bytes over HTTP(S) with a size cap.

    Pass ``transport`` to swap the network layer (tests use
    ``httpx.MockTransport``).
    """

    def __init__(
        self,
        *,
        timeout: float = 20.0,
        max_bytes: int = 25 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._transport = transport

    async def fetch(self, url: str) -> bytes:
        """Return the body of a successful GET.

        Raises:
            RemoteFetchError: Bad scheme, HTTP error status, transport
                failure, or a body larger than max_bytes.
        """
        if not url.startswith(("http://", "https://")):
            raise RemoteFetchError(f"Unsupported URL scheme: {url}")

        start_time = time.time()
        chunks: list[bytes] = []
        received = 0
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport, follow_redirects=True
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code >= 400:
                        raise RemoteFetchError(
                            f"Failed to download image: HTTP {response.status_code}"
                        )
                    async for chunk in response.aiter_bytes():
                        received += len(chunk)
                        if received > self._max_bytes:
                            raise RemoteFetchError(
                                f"Remote image exceeds {self._max_bytes} bytes"
                            )
                        chunks.append(chunk)
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"Failed to download image: {e}") from e

        elapsed = (time.time() - start_time) * 1000  # ms
        logger.info("[FETCH] %s → %d bytes (%.0fms)", url, received, elapsed)
        return b"".join(chunks)
