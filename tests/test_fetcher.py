"""Tests for HttpFetcher."""

import asyncio

import httpx
import pytest

from distcrawl.core import HttpFetcher, Response


@pytest.fixture
async def fetcher():
    fetcher = HttpFetcher(timeout=10.0, max_bytes=1024)
    yield fetcher
    await fetcher.close()


class TestHttpFetcher:
    async def test_fetch_returns_response_fields(self, fetcher, httpx_mock):
        """Verify all response fields are populated."""
        httpx_mock.add_response(
            url="http://example.com/",
            content=b"<p>Example Domain</p>",
            headers={"Content-Type": "text/html"},
        )

        response = await fetcher.fetch("http://example.com/")

        assert isinstance(response, Response)
        assert response.status == 200
        assert response.url == "http://example.com/"
        assert "Example Domain" in response.text
        assert "text/html" in response.headers.get("content-type", "")
        assert response.truncated is False

    async def test_fetch_follows_redirects(self, fetcher, httpx_mock):
        """Verify redirects are followed."""
        httpx_mock.add_response(
            url="http://example.com/old",
            status_code=301,
            headers={"Location": "http://example.com/new"},
        )
        httpx_mock.add_response(url="http://example.com/new", content=b"moved here")

        response = await fetcher.fetch("http://example.com/old")

        assert response.url == "http://example.com/new"
        assert response.content == b"moved here"

    async def test_fetch_caps_body(self, fetcher, httpx_mock):
        """Bodies larger than max_bytes should be truncated."""
        httpx_mock.add_response(url="http://example.com/big", content=b"x" * 5000)

        response = await fetcher.fetch("http://example.com/big")

        assert response.content == b"x" * 1024
        assert response.truncated is True

    async def test_fetch_body_at_exact_cap(self, fetcher, httpx_mock):
        """A body of exactly max_bytes is not truncated."""
        httpx_mock.add_response(url="http://example.com/exact", content=b"y" * 1024)

        response = await fetcher.fetch("http://example.com/exact")

        assert len(response.content) == 1024
        assert response.truncated is False


class TestFetchBody:
    async def test_returns_body_on_success(self, fetcher, httpx_mock):
        """2xx responses should return their body."""
        httpx_mock.add_response(url="http://example.com/", content=b"hello")
        assert await fetcher.fetch_body("http://example.com/") == b"hello"

    async def test_non_2xx_is_empty(self, fetcher, httpx_mock):
        """Non-2xx terminal status should give an empty body."""
        httpx_mock.add_response(url="http://example.com/missing", status_code=404, content=b"nope")
        assert await fetcher.fetch_body("http://example.com/missing") == b""

    async def test_server_error_is_empty(self, fetcher, httpx_mock):
        """5xx should give an empty body."""
        httpx_mock.add_response(url="http://example.com/err", status_code=503, content=b"down")
        assert await fetcher.fetch_body("http://example.com/err") == b""

    async def test_transport_timeout_is_empty(self, fetcher, httpx_mock):
        """httpx timeouts should give an empty body."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url="http://example.com/slow")
        assert await fetcher.fetch_body("http://example.com/slow") == b""

    async def test_connection_error_is_empty(self, fetcher, httpx_mock):
        """Connection errors should give an empty body."""
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"), url="http://example.com/down")
        assert await fetcher.fetch_body("http://example.com/down") == b""

    async def test_wall_clock_timeout_is_empty(self, monkeypatch):
        """The wall-clock limit should cover the whole exchange."""
        fetcher = HttpFetcher(timeout=0.05)

        async def slow_read(url):
            await asyncio.sleep(1)

        monkeypatch.setattr(fetcher, "_read", slow_read)
        assert await fetcher.fetch_body("http://example.com/") == b""


class TestResponse:
    def test_text_handles_invalid_utf8(self):
        """Verify text property handles invalid UTF-8."""
        response = Response(url="https://example.com", status=200, content=b"\xff\xfe", headers={})
        assert isinstance(response.text, str)

    def test_ok(self):
        """ok should be True only for 2xx."""
        assert Response(url="u", status=204, content=b"", headers={}).ok
        assert not Response(url="u", status=302, content=b"", headers={}).ok
