# /trustfetch/ports/http_transport.py
from __future__ import annotations

from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class HTTPResponsePort(Protocol):
    status: int
    reason: str | None
    version: Any  # (major, minor)
    headers: Mapping[str, str]

    async def read(self) -> bytes:
        """Read the whole body into memory."""


class HTTPTransportPort(Protocol):
    def get(self, url: str) -> AbstractAsyncContextManager[HTTPResponsePort]:
        """Issue a GET; the response is released when the context exits."""

    async def close(self) -> None:
        """Release connections. Safe to call more than once."""
