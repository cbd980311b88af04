"""Tests for CLI interface."""

import json

from typer.testing import CliRunner

from distcrawl import __version__
from distcrawl.cli import app
from distcrawl.master import WorkerChannel
from distcrawl.wire import CrawlResponse

runner = CliRunner()


class TestTokenizeCommand:
    def test_tokenizes_file(self, tmp_path):
        """Should print one token per line."""
        page = tmp_path / "page.html"
        page.write_text("<p>Hello, WORLD! The quick brown fox.</p>")

        result = runner.invoke(app, ["tokenize", str(page)])

        assert result.exit_code == 0
        assert result.stdout.split() == ["hello", "world", "quick", "brown", "fox"]

    def test_tokenizes_stdin(self):
        """Should read stdin when no file is given."""
        result = runner.invoke(app, ["tokenize"], input="<b>Indexer</b> rocks")

        assert result.exit_code == 0
        assert result.stdout.split() == ["indexer", "rocks"]


class TestCrawlCommands:
    def test_crawl_requires_workers(self):
        """Crawling without any worker should exit with usage error."""
        result = runner.invoke(app, ["crawl", "http://example.com"])
        assert result.exit_code == 2

    def test_crawl_writes_json(self, tmp_path, monkeypatch):
        """Should write the crawl result to a JSON file."""
        async def fake_crawl(self, request):
            return CrawlResponse(
                doc_id=request.doc_id, url=request.url, tokens=["example"], success=True
            )

        monkeypatch.setattr(WorkerChannel, "crawl", fake_crawl)
        output = tmp_path / "result.json"

        result = runner.invoke(app, [
            "crawl", "http://example.com", "-w", "w1:50051", "--doc-id", "5", "-o", str(output),
        ])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["doc_id"] == 5
        assert data["tokens"] == ["example"]

    def test_crawl_failure_exit_code(self, monkeypatch):
        """A failed crawl should exit with code 1."""
        async def fake_crawl(self, request):
            return CrawlResponse(
                doc_id=request.doc_id, url=request.url, success=False, error="Empty response"
            )

        monkeypatch.setattr(WorkerChannel, "crawl", fake_crawl)

        result = runner.invoke(app, ["crawl", "http://example.com", "-w", "w1:50051"])

        assert result.exit_code == 1
        assert "Error: Empty response" in result.stdout

    def test_crawl_many(self, tmp_path, monkeypatch):
        """Should crawl every URL in the file and write JSONL."""
        async def fake_crawl(self, request):
            return CrawlResponse(doc_id=request.doc_id, url=request.url, success=True)

        monkeypatch.setattr(WorkerChannel, "crawl", fake_crawl)
        urls = tmp_path / "urls.txt"
        urls.write_text("http://a.example\n\nhttp://b.example\nhttp://c.example\n")
        output = tmp_path / "out.jsonl"

        result = runner.invoke(app, [
            "crawl-many", str(urls), "-w", "w1:50051", "-w", "w2:50051", "-o", str(output),
        ])

        assert result.exit_code == 0
        lines = [json.loads(line) for line in output.read_text().splitlines()]
        assert sorted((line["doc_id"], line["url"]) for line in lines) == [
            (0, "http://a.example"),
            (1, "http://b.example"),
            (2, "http://c.example"),
        ]


class TestVersionCommand:
    def test_version(self):
        """Should print the package version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout
