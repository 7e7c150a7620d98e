# /trustfetch/domain/fetch_service.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

from trustfetch.ports.http_transport import HTTPResponsePort, HTTPTransportPort
from trustfetch.ports.result_reporter import ResultReporterPort

LOG = logging.getLogger("trustfetch.fetch_service")

# ==== DTOs ====


@dataclass(slots=True, frozen=True)
class FetchRequest:
    url: str


@dataclass(slots=True, frozen=True)
class StatusMetadata:
    status: int
    reason: str | None
    http_version: str
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_response(cls, resp: HTTPResponsePort) -> StatusMetadata:
        version = getattr(resp, "version", None)
        http_version = f"HTTP/{version[0]}.{version[1]}" if version else "HTTP/?"
        headers: Mapping[str, str] = getattr(resp, "headers", None) or {}
        return cls(
            status=resp.status,
            reason=getattr(resp, "reason", None),
            http_version=http_version,
            headers={str(k): str(v) for k, v in headers.items()},
        )

    def as_log_fields(self) -> dict:
        return {
            "status": self.status,
            "reason": self.reason,
            "proto": self.http_version,
            "headers": self.headers,
        }


@dataclass(slots=True, frozen=True)
class FetchOutcome:
    url: str
    status: StatusMetadata
    body: bytes

    @property
    def body_length(self) -> int:
        return len(self.body)


@dataclass(slots=True, frozen=True)
class FetchFailure:
    url: str
    stage: str  # "get" | "read"
    error: BaseException

    @property
    def message(self) -> str:
        if self.stage == "get":
            return "unable to get the url"
        return "unable to read response body"


@dataclass(slots=True)
class FetchReport:
    outcomes: list[FetchOutcome]
    failures: list[FetchFailure]


class FailurePolicy(str, Enum):
    FAIL_FAST = "fail_fast"
    ISOLATE = "isolate"


class FatalFetchError(Exception):
    """A fetch task failed while running under FailurePolicy.FAIL_FAST."""

    def __init__(self, failure: FetchFailure) -> None:
        super().__init__(f"{failure.message}: {failure.url}: {failure.error}")
        self.failure = failure


# ==== Service ====


class ConcurrentFetcher:
    """Fans out one task per URL over a shared transport and joins them all.

    Tasks never raise for network errors; they hand back a FetchOutcome or a
    FetchFailure and the failure policy is applied here, in one place.
    """

    def __init__(
        self,
        reporter: ResultReporterPort,
        *,
        policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        max_concurrency: int = 0,
        log: logging.Logger | None = None,
    ) -> None:
        if max_concurrency < 0:
            raise ValueError(f"max_concurrency must be >= 0, got {max_concurrency}")
        self.reporter = reporter
        self.policy = FailurePolicy(policy)
        self.max_concurrency = max_concurrency
        self.log = log or LOG

    # --- per-task steps ---

    async def _fetch_one(self, req: FetchRequest, transport: HTTPTransportPort) -> FetchOutcome | FetchFailure:
        stage = "get"
        try:
            async with transport.get(req.url) as resp:
                status = StatusMetadata.from_response(resp)
                self.reporter.report_receipt(req.url, status)
                stage = "read"
                body = await resp.read()
        except Exception as e:
            return FetchFailure(url=req.url, stage=stage, error=e)
        return FetchOutcome(url=req.url, status=status, body=body)

    async def _run_one(
        self,
        req: FetchRequest,
        transport: HTTPTransportPort,
        report: FetchReport,
        sem: asyncio.Semaphore | None,
    ) -> None:
        if sem is None:
            result = await self._fetch_one(req, transport)
        else:
            async with sem:
                result = await self._fetch_one(req, transport)

        if isinstance(result, FetchOutcome):
            report.outcomes.append(result)
            self.reporter.report(result)
            return

        report.failures.append(result)
        fatal = self.policy is FailurePolicy.FAIL_FAST
        self.reporter.report(result, fatal=fatal)
        if fatal:
            raise FatalFetchError(result)

    # --- primary entrypoint ---

    async def fetch_all(self, urls: Sequence[str], transport: HTTPTransportPort) -> FetchReport:
        report = FetchReport(outcomes=[], failures=[])
        if not urls:
            return report

        requests = [FetchRequest(url=u) for u in urls]
        sem = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        self.log.debug(
            "fetch.fan_out",
            extra={"extra": {"tasks": len(requests), "max_concurrency": self.max_concurrency or None}},
        )

        try:
            async with asyncio.TaskGroup() as tg:
                for req in requests:
                    self.log.info("accessing url", extra={"extra": {"url": req.url}})
                    tg.create_task(self._run_one(req, transport, report, sem))
        except* FatalFetchError as group:
            # siblings are already cancelled by the TaskGroup
            raise group.exceptions[0] from None

        return report
