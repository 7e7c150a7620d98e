# /trustfetch/adapters/system/result_reporter.py
from __future__ import annotations

import logging

from trustfetch.domain.fetch_service import FetchFailure, FetchOutcome, StatusMetadata

LOG = logging.getLogger("adapter.result_reporter")


class LoggingResultReporter:
    """Writes one structured log entry per response head and per final result."""

    def __init__(self, log: logging.Logger | None = None, *, quiet: bool = False) -> None:
        self.log = log or LOG
        self.quiet = quiet

    def report_receipt(self, url: str, status: StatusMetadata) -> None:
        self.log.info("response received", extra={"extra": {"url": url, **status.as_log_fields()}})

    def report(self, result: FetchOutcome | FetchFailure, *, fatal: bool = False) -> None:
        if isinstance(result, FetchFailure):
            self._report_failure(result, fatal=fatal)
            return

        fields = {"url": result.url, "status": result.status.status, "proto": result.status.http_version}
        if self.quiet:
            self.log.info("request body bytes", extra={"extra": {**fields, "length": result.body_length}})
        else:
            try:
                body: str | bytes = result.body.decode("utf-8")
            except UnicodeDecodeError:
                body = result.body  # binary, left as-is
            self.log.info("request body", extra={"extra": {**fields, "body": body}})

    def _report_failure(self, failure: FetchFailure, *, fatal: bool) -> None:
        level = logging.CRITICAL if fatal else logging.ERROR
        self.log.log(
            level,
            failure.message,
            extra={
                "extra": {
                    "url": failure.url,
                    "stage": failure.stage,
                    "error": f"{type(failure.error).__name__}: {failure.error}",
                    "fatal": fatal,
                }
            },
        )
