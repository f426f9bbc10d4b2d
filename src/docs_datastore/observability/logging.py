"""JSON log lines for index builds, cache activity and queries."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import os
import sys
from typing import TYPE_CHECKING, Any, TextIO

import orjson

from docs_datastore.observability.tracing import current_trace_ids


if TYPE_CHECKING:
    from docs_datastore.config import IndexSettings

PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# attributes every LogRecord carries; anything else was passed via ``extra=``
_STANDARD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _shorten(value: str, limit: int) -> str:
    return value if len(value) <= limit else value[:limit] + "..."


def _to_json(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        items = list(value)
        try:
            return sorted(items)
        except TypeError:
            return items
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    if isinstance(value, BaseException):
        return str(value)
    return repr(value)


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object tagged with the active trace and span ids.

    Values passed through ``extra=`` become top-level keys. Keys that look like
    credentials are masked and long strings are shortened, so a stray document
    body cannot flood the log.
    """

    MASKED_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    MAX_MESSAGE_LEN = 2000
    MAX_EXTRA_LEN = 500

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _shorten(record.getMessage(), self.MAX_MESSAGE_LEN),
            **current_trace_ids(),
        }
        if "." in record.name:
            payload["component"] = record.name.rpartition(".")[2]
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            (key, self._extra_value(key, value))
            for key, value in vars(record).items()
            if key not in _STANDARD_FIELDS and not key.startswith("_")
        )
        return orjson.dumps(payload, default=_to_json).decode("utf-8")

    def _extra_value(self, key: str, value: Any) -> Any:
        if key.lower() in self.MASKED_KEYS:
            return "[REDACTED]"
        if isinstance(value, str):
            return _shorten(value, self.MAX_EXTRA_LEN)
        return value


def _resolve_level(name: str) -> int:
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    level: str = "info",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Send all logging to a single stream handler and return it.

    Handlers already attached to the root logger are replaced, so calling this
    again does not duplicate output. ``logger_levels`` maps logger names to
    level names, e.g. ``{"docs_datastore.search.cache": "debug"}``.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))

    for name, name_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_resolve_level(name_level))
    return handler


def configure_logging_from_settings(settings: IndexSettings, **kwargs: Any) -> logging.Handler:
    return configure_logging(settings.log_level, settings.log_json, **kwargs)
