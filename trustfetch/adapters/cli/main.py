# /trustfetch/adapters/cli/main.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer

from trustfetch.adapters.http.aiohttp_transport import configure_transport
from trustfetch.adapters.security.trust_store import TrustStore, TrustStoreBuilder, TrustStoreError
from trustfetch.adapters.system.logging_cfg import configure_logger
from trustfetch.adapters.system.result_reporter import LoggingResultReporter
from trustfetch.config import settings
from trustfetch.domain.fetch_service import (
    ConcurrentFetcher,
    FatalFetchError,
    FetchReport,
)

app = typer.Typer(add_completion=False, help="Fetch URLs concurrently over TLS with a custom root CA.")


async def _run(
    urls: list[str],
    trust_store: TrustStore,
    fetcher: ConcurrentFetcher,
    *,
    insecure: bool,
    log: logging.Logger,
) -> FetchReport:
    transport = configure_transport(
        trust_store,
        insecure,
        follow_redirects=settings.FOLLOW_REDIRECTS,
        log=log,
    )
    async with transport:
        return await fetcher.fetch_all(urls, transport)


@app.command()
def fetch(
    urls: Optional[list[str]] = typer.Argument(None, help="URLs to fetch."),
    verbose: bool = typer.Option(False, "-v", help="verbose"),
    quiet: bool = typer.Option(False, "-q", help="don't print the data"),
    insecure: bool = typer.Option(False, "-insecure", help="skip certificate verification"),
) -> None:
    """Fetch every URL at once and log each response."""

    try:
        log = configure_logger(verbose=verbose)
    except Exception as e:
        typer.echo(f"Error building logger: {e}", err=True)
        raise typer.Exit(code=1) from e

    try:
        trust_store = TrustStoreBuilder(settings.CA_CERT_PATH, log=log).build()
    except TrustStoreError as e:
        log.critical("unable to build trust store", extra={"extra": {"error": str(e)}})
        raise typer.Exit(code=1) from e

    fetcher = ConcurrentFetcher(
        LoggingResultReporter(log, quiet=quiet),
        policy=settings.FAILURE_POLICY,
        max_concurrency=settings.MAX_CONCURRENCY,
        log=log,
    )

    try:
        report = asyncio.run(_run(list(urls or []), trust_store, fetcher, insecure=insecure, log=log))
    except FatalFetchError as e:
        raise typer.Exit(code=1) from e

    if report.failures:
        raise typer.Exit(code=1)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
