"""Crawl worker: fetch, tokenize and extract links behind an RPC surface."""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI

from .config import WorkerSettings, worker_settings
from .core import Fetcher, HttpFetcher
from .exceptions import InvalidAddressError
from .links import extract_links
from .tokenizer import strip_html, tokenize_text
from .wire import UINT32_MAX, CrawlRequest, CrawlResponse, StatusRequest, StatusResponse

EMPTY_RESPONSE_ERROR = "Empty response"

logger = logging.getLogger(__name__)


def parse_page(text: str, url: str) -> tuple[list[str], str, list[str]]:
    """Run the pure stages: tokens, raw text and discovered URLs."""
    raw_text = strip_html(text)
    return tokenize_text(raw_text), raw_text, extract_links(text, url)


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts. IPv6 hosts may be bracketed."""
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise InvalidAddressError(address)
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_num = int(port)
    except ValueError:
        raise InvalidAddressError(address, f"port '{port}' is not a number") from None
    if not 0 <= port_num <= 65535:
        raise InvalidAddressError(address, f"port {port_num} out of range")
    return host, port_num


class CrawlWorkerService:
    """Runs the crawl pipeline per request and keeps outcome counters.

    Per-page failures are reported inside the response; the RPC itself always
    succeeds so callers can tell a bad URL from an unreachable worker.
    """

    def __init__(self, fetcher: Fetcher):
        self.fetcher = fetcher
        self._pages_crawled = 0
        self._pages_failed = 0
        self._lock = threading.Lock()

    def _record(self, success: bool):
        with self._lock:
            if success:
                self._pages_crawled += 1
            else:
                self._pages_failed += 1

    async def crawl(self, request: CrawlRequest) -> CrawlResponse:
        response = CrawlResponse(doc_id=request.doc_id, url=request.url)

        try:
            body = await self.fetcher.fetch_body(request.url)
            if not body:
                response.error = EMPTY_RESPONSE_ERROR
                self._record(False)
                logger.warning("Empty response for %s (doc %d)", request.url, request.doc_id)
                return response

            text = body.decode("utf-8", errors="replace")
            # CPU-bound on large pages; keep the event loop serving other calls
            tokens, raw_text, links = await asyncio.to_thread(parse_page, text, request.url)
            response.tokens = tokens
            response.raw_text = raw_text
            response.discovered_urls = links
            response.success = True
        except Exception as e:
            logger.exception("Crawl of %s (doc %d) failed", request.url, request.doc_id)
            response.tokens = []
            response.discovered_urls = []
            response.success = False
            response.error = str(e) or type(e).__name__
            self._record(False)
            return response

        self._record(True)
        logger.info(
            "Crawled %s (doc %d): %d tokens, %d links",
            request.url, request.doc_id, len(response.tokens), len(response.discovered_urls),
        )
        return response

    def report_status(self, request: StatusRequest | None = None) -> StatusResponse:
        # counters saturate at the uint32 wire limit
        with self._lock:
            return StatusResponse(
                pages_crawled=min(self._pages_crawled, UINT32_MAX),
                pages_failed=min(self._pages_failed, UINT32_MAX),
            )


def create_rpc_router(service: CrawlWorkerService) -> APIRouter:
    """Create the Crawl / ReportStatus RPC router."""
    router = APIRouter(prefix="/rpc", tags=["CrawlService"])

    @router.post("/crawl", response_model=CrawlResponse)
    async def crawl(request: CrawlRequest):
        return await service.crawl(request)

    @router.post("/status", response_model=StatusResponse)
    def report_status(request: StatusRequest):
        return service.report_status(request)

    return router


def create_app(service: CrawlWorkerService) -> FastAPI:
    """Build the worker application around a service."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        close = getattr(service.fetcher, "close", None)
        if close is not None:
            await close()

    app = FastAPI(title="distcrawl worker", lifespan=lifespan)
    app.include_router(create_rpc_router(service))

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


class CrawlWorker:
    """A worker process serving the crawl RPCs on ``listen_addr``."""

    def __init__(
        self,
        listen_addr: str | None = None,
        fetcher: Fetcher | None = None,
        settings: WorkerSettings | None = None,
    ):
        self.settings = settings or worker_settings
        self.listen_addr = listen_addr or self.settings.listen_addr
        self.host, self.port = parse_address(self.listen_addr)

        if fetcher is None:
            fetcher = HttpFetcher(
                timeout=self.settings.fetch_timeout,
                max_bytes=self.settings.max_body_bytes,
                user_agent=self.settings.user_agent,
                max_connections=self.settings.max_connections,
                max_keepalive_connections=self.settings.max_keepalive_connections,
            )
        self.service = CrawlWorkerService(fetcher)
        self.app = create_app(self.service)
        self._server: uvicorn.Server | None = None

    def run(self):
        """Serve until shutdown() is called or the process is interrupted."""
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            timeout_graceful_shutdown=self.settings.shutdown_grace,
            log_config=None,
        )
        self._server = uvicorn.Server(config)
        logger.info("Worker listening on %s", self.listen_addr)
        self._server.run()

    def shutdown(self):
        """Stop accepting calls; in-flight calls drain up to the grace period."""
        if self._server is not None:
            self._server.should_exit = True
