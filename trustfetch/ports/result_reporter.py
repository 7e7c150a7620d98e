# /trustfetch/ports/result_reporter.py
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from trustfetch.domain.fetch_service import FetchFailure, FetchOutcome, StatusMetadata


class ResultReporterPort(Protocol):
    def report_receipt(self, url: str, status: StatusMetadata) -> None:
        """Called once the response head for url has arrived."""

    def report(self, result: FetchOutcome | FetchFailure, *, fatal: bool = False) -> None:
        """Called exactly once per fetch task with its final result."""
