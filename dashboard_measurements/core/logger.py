"""JSON logging for the measurement engine.

Every record is rendered as one JSON object carrying the service name,
environment, host and pid next to the record's own attributes, so fields
passed through ``extra={...}`` end up as top-level keys. Keys matching one of
the configured redaction patterns are masked at any depth.
"""

from __future__ import annotations

import json
import logging
import os
import re
import socket
import traceback
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .config import settings

_configured = False

# LogRecord attributes that carry no information once the message is rendered.
_SKIPPED_ATTRIBUTES = frozenset({"args", "msg", "exc_info", "exc_text", "stack_info"})


class SensitiveDataFilter:
    """Masks values whose key contains one of ``patterns``, case-insensitively.

    Nested mappings are filtered too, including mappings inside lists and
    tuples, since ``extra`` fields such as query filters can carry records.
    """

    MASK = "[REDACTED]"

    def __init__(self, patterns: Iterable[str]):
        patterns = [p for p in patterns if p]
        self._matcher = (
            re.compile("|".join(map(re.escape, patterns)), re.IGNORECASE)
            if patterns
            else None
        )

    def is_sensitive(self, key: Any) -> bool:
        return self._matcher is not None and self._matcher.search(str(key)) is not None

    def filter(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            k: self.MASK if self.is_sensitive(k) else self._scrub(v)
            for k, v in data.items()
        }

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return self.filter(value)
        if isinstance(value, (list, tuple)):
            return [self._scrub(v) for v in value]
        return value


class JsonFormatter(logging.Formatter):
    def __init__(
        self,
        service: str,
        environment: str,
        redaction_patterns: Iterable[str],
    ):
        super().__init__()
        self.hostname = socket.gethostname()
        self.pid = os.getpid()
        self.service_name = service
        self.environment = environment
        self.sensitive_filter = SensitiveDataFilter(redaction_patterns)

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        data = {
            k: v for k, v in record.__dict__.items() if k not in _SKIPPED_ATTRIBUTES
        }
        data["message"] = record.getMessage()
        data["timestamp"] = datetime.now(timezone.utc).isoformat()
        data["service"] = self.service_name
        data["hostname"] = self.hostname
        data["pid"] = self.pid
        data["environment"] = self.environment
        if record.exc_info:
            data["exception"] = self.format_exception(record.exc_info)
        data = self.sensitive_filter.filter(data)
        return json.dumps(data, default=str)

    @staticmethod
    def format_exception(exc_info) -> dict:
        et, ev, tb = exc_info
        return {
            "type": et.__name__ if et else None,
            "message": str(ev),
            "stack": traceback.format_tb(tb),
        }


def configure_logging(
    service: str | None = None,
    environment: str | None = None,
    level: str | None = None,
    redaction_patterns: Iterable[str] | None = None,
) -> logging.Logger:
    """Install a single JSON handler on the root logger.

    Arguments left as ``None`` are taken from ``settings``. Calling this again
    replaces the handler, so tests can reconfigure freely.
    """
    global _configured

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(
            service or settings.otel_service_name,
            environment or settings.app_environment,
            redaction_patterns
            if redaction_patterns is not None
            else settings.app_log_redaction_patterns,
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    level_name = (level or settings.app_log_level).upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    _configured = True
    return root


def is_configured() -> bool:
    return _configured


def get_logger(name: str, auto_configure: bool = True) -> logging.Logger:
    """Return a named logger, configuring JSON logging on first use."""
    if auto_configure and not _configured:
        configure_logging()
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
