# /trustfetch/adapters/system/logging_cfg.py
from __future__ import annotations

import json
import logging
import sys
from typing import Any

from rich.logging import RichHandler

APP_LOGGER = "trustfetch"


class JSONHandler(logging.StreamHandler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            payload: dict[str, Any] = {
                "level": record.levelname,
                "msg": record.getMessage(),
                "logger": record.name,
            }
            extra = getattr(record, "extra", None)
            if isinstance(extra, dict):
                payload.update(extra)
            self.stream.write(json.dumps(payload, default=str) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)


class ExtraFormatter(logging.Formatter):
    """Append the structured payload as key=value pairs for console output."""

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict) and extra:
            pairs = " ".join(f"{k}={v!r}" for k, v in extra.items())
            msg = f"{msg} {pairs}"
        return msg


def configure_logger(verbose: bool = False) -> logging.Logger:
    """Install the run-wide handler and return the application logger.

    verbose: human-oriented console output at DEBUG.
    default: JSON lines on stdout at INFO.
    """
    if verbose:
        level = logging.DEBUG
        handler: logging.Handler = RichHandler(show_path=True, markup=False, rich_tracebacks=True)
        handler.setFormatter(ExtraFormatter("%(message)s"))
    else:
        level = logging.INFO
        handler = JSONHandler(stream=sys.stdout)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    log = logging.getLogger(APP_LOGGER)
    log.setLevel(level)
    return log
