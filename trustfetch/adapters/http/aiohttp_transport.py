# /trustfetch/adapters/http/aiohttp_transport.py
from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import aiohttp

from trustfetch.adapters.security.trust_store import TrustStore

LOG = logging.getLogger("adapter.http_transport")


@dataclass(frozen=True, slots=True)
class TransportConfig:
    trust_store: TrustStore
    skip_verification: bool = False


class AiohttpTransport:
    """
    Shared client transport for one run.
    The session is opened on the first request, so a run with no URLs never
    touches the network. Use as an async context manager to guarantee close().
    """

    def __init__(
        self,
        config: TransportConfig,
        *,
        follow_redirects: bool = True,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self._ssl = config.trust_store.ssl_context(verify=not config.skip_verification)
        self._follow_redirects = follow_redirects
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()
        self._closed = False
        self._log = log or LOG

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ssl_context(self) -> ssl.SSLContext:
        return self._ssl

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise RuntimeError("transport is closed")
        # tasks start together; only the first one builds the session
        async with self._lock:
            if self._session is None:
                # limit=0: no connection cap, admission is up to the fetcher
                connector = aiohttp.TCPConnector(ssl=self._ssl, limit=0)
                self._session = aiohttp.ClientSession(connector=connector, raise_for_status=False)
                self._log.debug(
                    "transport.session_opened",
                    extra={"extra": {"verify_tls": not self.config.skip_verification}},
                )
        return self._session

    @asynccontextmanager
    async def get(self, url: str) -> AsyncIterator[aiohttp.ClientResponse]:
        sess = await self._ensure_session()
        async with sess.get(url, allow_redirects=self._follow_redirects) as resp:
            yield resp

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._session is not None and not self._session.closed:
            await self._session.close()
            self._log.debug("transport.session_closed")
        self._session = None

    async def __aenter__(self) -> AiohttpTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def configure_transport(
    trust_store: TrustStore,
    skip_verification: bool,
    *,
    follow_redirects: bool = True,
    log: logging.Logger | None = None,
) -> AiohttpTransport:
    log = log or LOG
    if skip_verification:
        log.warning("certificate verification disabled", extra={"extra": {"insecure": True}})
    return AiohttpTransport(
        TransportConfig(trust_store=trust_store, skip_verification=skip_verification),
        follow_redirects=follow_redirects,
        log=log,
    )
