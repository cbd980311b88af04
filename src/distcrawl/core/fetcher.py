"""HTTP fetcher implementation using httpx."""

import asyncio
import logging

import httpx

from ..config import MAX_BODY_BYTES
from .protocols import Response

DEFAULT_USER_AGENT = "distcrawl-worker/0.1"

logger = logging.getLogger(__name__)


class HttpFetcher:
    """Async HTTP fetcher with a wall-clock timeout and a body size cap."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_bytes: int = MAX_BODY_BYTES,
        user_agent: str = DEFAULT_USER_AGENT,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.user_agent = user_agent
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with double-checked locking."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=httpx.Timeout(self.timeout),
                        limits=self.limits,
                        headers={"User-Agent": self.user_agent},
                        follow_redirects=True,
                    )
        return self._client

    async def _read(self, url: str) -> Response:
        client = await self._get_client()
        async with client.stream("GET", url) as resp:
            chunks = []
            received = 0
            truncated = False
            async for chunk in resp.aiter_bytes():
                remaining = self.max_bytes - received
                if len(chunk) > remaining:
                    chunks.append(chunk[:remaining])
                    truncated = True
                    break
                chunks.append(chunk)
                received += len(chunk)

            return Response(
                url=str(resp.url),
                status=resp.status_code,
                content=b"".join(chunks),
                headers=dict(resp.headers),
                truncated=truncated,
            )

    async def fetch(self, url: str) -> Response:
        """Fetch a URL, reading at most ``max_bytes`` of the body.

        The timeout bounds the whole exchange, redirects and body included.
        Raises ``httpx.HTTPError`` or ``asyncio.TimeoutError`` on failure.
        """
        return await asyncio.wait_for(self._read(url), timeout=self.timeout)

    async def fetch_body(self, url: str) -> bytes:
        """Fetch a URL and return its body; b"" on any error or non-2xx status."""
        try:
            response = await self.fetch(url)
        except asyncio.TimeoutError:
            logger.warning("Fetch of %s timed out after %.1fs", url, self.timeout)
            return b""
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Fetch of %s failed: %s", url, e)
            return b""

        if not response.ok:
            logger.warning("Fetch of %s returned HTTP %d", url, response.status)
            return b""
        if response.truncated:
            logger.info("Body of %s truncated to %d bytes", url, self.max_bytes)
        return response.content

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
