"""JSON logging for cwtail.

One handler on the root logger; records go to stderr or to a log file because
stdout belongs to the chart. Before ``configure_logging`` runs, WARNING and
above still reach stderr through logging's last-resort handler.
"""

from __future__ import annotations

import json
import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Iterable

# Attributes every LogRecord carries; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


def get_logger(component: str) -> logging.Logger:
    return logging.getLogger(f"cwtail.{component}")


class JsonEventFormatter(logging.Formatter):  # type: ignore[misc]
    """Render a record as one JSON object: the event name plus its extras.

    Extra keys matching a redaction pattern (case-insensitive substring) are
    replaced with ``[REDACTED]``.
    """

    def __init__(
        self,
        service: str,
        environment: str,
        redaction_patterns: Iterable[str],
    ):
        super().__init__()
        self.service_name = service
        self.environment = environment
        self.pid = os.getpid()
        self.redaction_patterns = [p.lower() for p in redaction_patterns]

    def _extras(self, record: logging.LogRecord) -> dict:
        extras = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            if any(p in key.lower() for p in self.redaction_patterns):
                value = "[REDACTED]"
            extras[key] = value
        return extras

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
            "pid": self.pid,
        }
        entry.update(self._extras(record))
        if record.exc_info:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stack": traceback.format_tb(tb),
            }
        return json.dumps(entry, default=str)


def configure_logging(
    service: str,
    environment: str,
    level: str,
    redaction_patterns: Iterable[str],
    log_file: str | None = None,
):
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(JsonEventFormatter(service, environment, redaction_patterns))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # botocore is chatty below WARNING; only let it through when debugging
    if root.level > logging.DEBUG:
        logging.getLogger("botocore").setLevel(logging.WARNING)
    return root


__all__ = ["JsonEventFormatter", "configure_logging", "get_logger"]
