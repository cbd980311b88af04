"""Crawl master: round-robin dispatch of crawl jobs to workers."""

import asyncio
import itertools
import logging
from collections.abc import AsyncIterator, Iterable

import httpx
from pydantic import ValidationError

from .config import master_settings
from .exceptions import WorkerTransportError
from .result import CrawlResult
from .wire import CrawlRequest, CrawlResponse, StatusRequest, StatusResponse

NO_WORKERS_ERROR = "No workers available"

logger = logging.getLogger(__name__)


def worker_base_url(address: str) -> str:
    """Turn a ``host:port`` worker address into an HTTP base URL."""
    if address.startswith(("http://", "https://")):
        return address.rstrip("/")
    return f"http://{address}"


class WorkerChannel:
    """Persistent connection to one worker."""

    def __init__(self, address: str, deadline: float):
        self.address = address
        self.deadline = deadline
        self.client = httpx.AsyncClient(
            base_url=worker_base_url(address),
            timeout=httpx.Timeout(deadline),
        )

    async def _call(self, path: str, message, response_type):
        try:
            resp = await asyncio.wait_for(
                self.client.post(path, json=message.model_dump()),
                timeout=self.deadline,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise WorkerTransportError(
                self.address, f"Deadline exceeded after {self.deadline}s"
            ) from None
        except httpx.HTTPError as e:
            raise WorkerTransportError(
                self.address, f"Worker {self.address} unreachable: {e}"
            ) from e

        if resp.status_code != 200:
            raise WorkerTransportError(
                self.address, f"Worker {self.address} returned HTTP {resp.status_code}"
            )

        try:
            return response_type.model_validate_json(resp.content)
        except ValidationError as e:
            raise WorkerTransportError(
                self.address, f"Malformed response from {self.address}: {e}"
            ) from e

    async def crawl(self, request: CrawlRequest) -> CrawlResponse:
        return await self._call("/rpc/crawl", request, CrawlResponse)

    async def report_status(self) -> StatusResponse:
        return await self._call("/rpc/status", StatusRequest(), StatusResponse)

    async def close(self):
        await self.client.aclose()


class CrawlMaster:
    """Dispatches crawl jobs to workers, one RPC per job.

    Workers are chosen round-robin. There is no retry, health tracking or
    failover: a failed call is reported in the result and the next call
    simply goes to the next worker.
    """

    def __init__(self, deadline: float | None = None):
        self.deadline = deadline if deadline is not None else master_settings.rpc_deadline
        self._channels: list[WorkerChannel] = []
        self._next_worker = itertools.count()

    @property
    def workers(self) -> list[str]:
        return [channel.address for channel in self._channels]

    def add_worker(self, address: str):
        """Add a worker endpoint. Adding one twice doubles its share."""
        self._channels.append(WorkerChannel(address, self.deadline))
        logger.info("Added worker %s", address)

    def _select(self) -> WorkerChannel:
        # next() on itertools.count is atomic under the GIL
        index = next(self._next_worker)
        return self._channels[index % len(self._channels)]

    async def crawl(self, url: str, doc_id: int) -> CrawlResult:
        """Crawl one URL on the next worker and return a normalized result."""
        if not self._channels:
            return CrawlResult.failure(doc_id, url, NO_WORKERS_ERROR)

        try:
            request = CrawlRequest(url=url, doc_id=doc_id)
        except ValidationError as e:
            return CrawlResult.failure(doc_id, url, f"Invalid crawl request: {e}")

        channel = self._select()
        logger.debug("Dispatching doc %d (%s) to %s", doc_id, url, channel.address)

        try:
            response = await channel.crawl(request)
        except WorkerTransportError as e:
            logger.warning("Crawl of %s (doc %d) failed: %s", url, doc_id, e.message)
            return CrawlResult.failure(doc_id, url, e.message)

        if not response.success:
            return CrawlResult.failure(
                response.doc_id, response.url, response.error, raw_text=response.raw_text
            )

        return CrawlResult(
            doc_id=response.doc_id,
            url=response.url,
            tokens=list(response.tokens),
            raw_text=response.raw_text,
            discovered_urls=list(response.discovered_urls),
            success=True,
        )

    async def crawl_many(
        self,
        jobs: Iterable[tuple[str, int]],
        concurrency: int | None = None,
    ) -> AsyncIterator[CrawlResult]:
        """Crawl ``(url, doc_id)`` jobs concurrently, yielding in completion order."""
        semaphore = asyncio.Semaphore(concurrency or master_settings.concurrency)

        async def run(url: str, doc_id: int) -> CrawlResult:
            async with semaphore:
                return await self.crawl(url, doc_id)

        tasks = [asyncio.create_task(run(url, doc_id)) for url, doc_id in jobs]
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def report_status(self, address: str | None = None) -> dict[str, StatusResponse | None]:
        """Ask workers for their counters; unreachable workers map to None."""
        channels = {}
        for channel in self._channels:
            if address is None or channel.address == address:
                channels.setdefault(channel.address, channel)

        statuses: dict[str, StatusResponse | None] = {}
        for addr, channel in channels.items():
            try:
                statuses[addr] = await channel.report_status()
            except WorkerTransportError as e:
                logger.warning("Status of %s unavailable: %s", addr, e.message)
                statuses[addr] = None
        return statuses

    async def close(self):
        """Close every worker channel."""
        for channel in self._channels:
            await channel.close()

    async def __aenter__(self) -> "CrawlMaster":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
