"""CLI interface using typer."""

import asyncio
import json
import logging
import sys

import typer

from .config import master_settings, worker_settings
from .output import StreamingOutputWriter

app = typer.Typer(
    name="distcrawl",
    help="Distributed crawl workers and master dispatcher",
    no_args_is_help=True,
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def _configure_logging(level: str):
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _worker_addresses(workers: list[str] | None) -> list[str]:
    addresses = workers or master_settings.workers
    if not addresses:
        typer.echo("No workers given (use --worker or DISTCRAWL_MASTER_WORKERS)", err=True)
        raise typer.Exit(code=2)
    return addresses


def _make_master(addresses: list[str]):
    from .master import CrawlMaster

    master = CrawlMaster(deadline=master_settings.rpc_deadline)
    for address in addresses:
        master.add_worker(address)
    return master


@app.command()
def worker(
    listen: str = typer.Option(None, "-l", "--listen", help="Listen address host:port"),
):
    """Run a crawl worker until interrupted."""
    from .exceptions import InvalidAddressError
    from .worker import CrawlWorker

    _configure_logging(worker_settings.log_level)
    try:
        crawl_worker = CrawlWorker(listen_addr=listen)
    except InvalidAddressError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)
    crawl_worker.run()


async def _crawl(addresses: list[str], url: str, doc_id: int):
    async with _make_master(addresses) as master:
        return await master.crawl(url, doc_id)


@app.command()
def crawl(
    url: str = typer.Argument(..., help="URL to crawl"),
    workers: list[str] = typer.Option(None, "-w", "--worker", help="Worker address (repeatable)"),
    doc_id: int = typer.Option(0, "--doc-id", help="Document id echoed in the result"),
    output: str = typer.Option(None, "-o", "--output", help="Output file (JSON)"),
):
    """Crawl a single URL through a worker."""
    _configure_logging(master_settings.log_level)
    result = asyncio.run(_crawl(_worker_addresses(workers), url, doc_id))

    if output:
        with open(output, "w") as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        typer.echo(f"Saved to {output}")
    else:
        typer.echo(f"URL: {result.url}")
        typer.echo(f"Doc: {result.doc_id}")
        typer.echo(f"Success: {result.success}")
        if result.error:
            typer.echo(f"Error: {result.error}")
        typer.echo(f"Tokens: {len(result.tokens)}")
        typer.echo(f"Links: {len(result.discovered_urls)}")
        typer.echo("---")
        typer.echo(" ".join(result.tokens[:200]))

    if not result.success:
        raise typer.Exit(code=1)


async def _crawl_many(
    addresses: list[str],
    urls: list[str],
    writer: StreamingOutputWriter,
    concurrency: int,
) -> int:
    failed = 0
    async with _make_master(addresses) as master:
        jobs = [(url, doc_id) for doc_id, url in enumerate(urls)]
        async for result in master.crawl_many(jobs, concurrency=concurrency):
            writer.write_one(result)
            if result.success:
                typer.echo(f"[{writer.count}/{len(urls)}] {result.url}")
            else:
                failed += 1
                typer.echo(f"[{writer.count}/{len(urls)}] FAILED {result.url}: {result.error}")
    return failed


@app.command("crawl-many")
def crawl_many(
    url_file: str = typer.Argument(..., help="File with one URL per line"),
    workers: list[str] = typer.Option(None, "-w", "--worker", help="Worker address (repeatable)"),
    output: str = typer.Option("crawl_results.jsonl", "-o", "--output", help="Output file (JSONL)"),
    concurrency: int = typer.Option(None, "-c", "--concurrency", help="Concurrent crawls"),
    raw_text: bool = typer.Option(True, "--raw-text/--no-raw-text", help="Include raw text"),
):
    """Crawl every URL in a file; doc ids follow line order."""
    _configure_logging(master_settings.log_level)
    addresses = _worker_addresses(workers)

    with open(url_file) as f:
        urls = [line.strip() for line in f if line.strip()]

    with StreamingOutputWriter(output, include_raw_text=raw_text) as writer:
        failed = asyncio.run(_crawl_many(
            addresses, urls, writer, concurrency or master_settings.concurrency,
        ))

    typer.echo(f"\nCrawled {len(urls)} URLs, {failed} failed")
    typer.echo(f"Results saved to {output}")


async def _status(addresses: list[str]):
    async with _make_master(addresses) as master:
        return await master.report_status()


@app.command()
def status(
    workers: list[str] = typer.Option(None, "-w", "--worker", help="Worker address (repeatable)"),
):
    """Show crawl counters of each worker."""
    _configure_logging(master_settings.log_level)
    statuses = asyncio.run(_status(_worker_addresses(workers)))

    for address, report in statuses.items():
        if report is None:
            typer.echo(f"{address}: unreachable")
        else:
            typer.echo(f"{address}: crawled={report.pages_crawled} failed={report.pages_failed}")


@app.command()
def tokenize(
    path: str = typer.Argument(None, help="HTML file (stdin if omitted)"),
):
    """Tokenize a local HTML document."""
    from .tokenizer import tokenize as run_tokenizer

    if path:
        with open(path, "rb") as f:
            body = f.read()
    else:
        body = sys.stdin.buffer.read()

    for token in run_tokenizer(body.decode("utf-8", errors="replace")):
        typer.echo(token)


@app.command()
def version():
    """Show version."""
    from . import __version__

    typer.echo(f"distcrawl {__version__}")


if __name__ == "__main__":
    app()
