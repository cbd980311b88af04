"""Protocol definitions for crawler components."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class Response:
    """HTTP response container."""

    url: str
    status: int
    content: bytes
    headers: dict[str, str]
    truncated: bool = False

    @property
    def ok(self) -> bool:
        """True for a 2xx terminal status."""
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        """Decode content as UTF-8."""
        return self.content.decode("utf-8", errors="replace")


class Fetcher(Protocol):
    """Protocol for page fetchers used by the worker."""

    async def fetch_body(self, url: str) -> bytes:
        """Fetch a URL and return its body, or b"" on any failure."""
        ...
