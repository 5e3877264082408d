"""Logging for the token server.

Every record handled by the root handler is stamped with the fields of the
request being served (correlation id, method, path). Token issue records add
the role they were minted for. Text output appends these as ``key=value``
pairs after the message; JSON output puts them at the top level of the line.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from cobrowse_demo.config import Config

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
request_line: ContextVar[Optional[tuple[str, str]]] = ContextVar("request_line", default=None)

# Record attributes rendered as structured fields, in output order.
LOG_FIELDS = ("correlation_id", "method", "path", "role")

TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def bind_request(method: str, path: str, cid: str | None = None) -> str:
    """Attach the current request to the logging context. Returns its correlation id."""
    cid = cid or str(uuid.uuid4())
    correlation_id.set(cid)
    request_line.set((method, path))
    return cid


class RequestContextFilter(logging.Filter):
    """Copy the bound request onto records that do not already carry it."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = record.__dict__
        if not fields.get("correlation_id"):
            fields["correlation_id"] = correlation_id.get()
        line = request_line.get()
        if line is not None:
            fields.setdefault("method", line[0])
            fields.setdefault("path", line[1])
        return True


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in LOG_FIELDS
        if getattr(record, name, None) not in (None, "")
    }


class TextFormatter(logging.Formatter):
    """``[time] LEVEL logger: message key=value ...``"""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        extras = " ".join(f"{k}={v}" for k, v in record_fields(record).items())
        return f"{line} {extras}" if extras else line


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(config: "Config") -> None:
    """Install a single root handler per ``config.logging``."""
    log_cfg = config.logging
    level = getattr(logging, log_cfg.level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(StructuredFormatter() if log_cfg.format.lower() == "json" else TextFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers[:] = [handler]

    # The middleware already logs one line per request.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
