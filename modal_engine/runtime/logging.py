"""Modal-engine logging implementation."""

from __future__ import annotations

import logging
import queue
import re
from collections import deque
from collections.abc import Mapping
from datetime import UTC, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path

from modal_engine.api.logging import LogCategory, ModalLoggingConfig
from modal_engine.diagnostics import dumps_text

_QUEUE_LISTENER: QueueListener | None = None
_SENSITIVE_FIELD = re.compile(r"password|token|secret|key", re.IGNORECASE)
_MASK = "[MASKED]"
_mask_enabled = True

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
        "category",
        "source",
        "fields",
    }
)


def build_payload(record: logging.LogRecord) -> dict[str, object]:
    """Shape one record as ``{level, category, message, fields, source}``."""
    fields: dict[str, object] = dict(getattr(record, "fields", None) or {})
    for key, value in record.__dict__.items():
        if key not in _STANDARD_ATTRS:
            fields.setdefault(key, value)
    payload: dict[str, object] = {
        "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "category": getattr(record, "category", "SYSTEM"),
        "source": getattr(record, "source", record.name),
        "message": record.getMessage(),
    }
    if fields:
        payload["fields"] = fields
    return payload


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured engine records."""

    def format(self, record: logging.LogRecord) -> str:
        payload = build_payload(record)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return dumps_text(payload)


class LogHistoryHandler(logging.Handler):
    """Keep the most recent structured payloads in memory, oldest first."""

    def __init__(self, capacity: int = 1000, level: int = logging.NOTSET) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        super().__init__(level=level)
        self._history: deque[dict[str, object]] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return self._history.maxlen or 0

    def emit(self, record: logging.LogRecord) -> None:
        self._history.append(build_payload(record))

    def records(
        self, *, limit: int | None = None, category: LogCategory | None = None
    ) -> list[dict[str, object]]:
        """Return stored payloads, optionally one category and only the newest ``limit``."""
        items = [
            payload
            for payload in tuple(self._history)
            if category is None or payload["category"] == category
        ]
        if limit is None or limit >= len(items):
            return items
        if limit <= 0:
            return []
        return items[-limit:]

    def clear(self) -> None:
        self._history.clear()


def set_field_masking(enabled: bool) -> None:
    global _mask_enabled
    _mask_enabled = bool(enabled)


def sanitize_fields(fields: Mapping[str, object]) -> dict[str, object]:
    """Mask values whose field names look like credentials."""
    if not _mask_enabled:
        return dict(fields)
    return {
        name: (_MASK if _SENSITIVE_FIELD.search(name) else value) for name, value in fields.items()
    }


def log_event(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    category: LogCategory,
    source: str,
    exc_info: object = None,
    **fields: object,
) -> None:
    """Emit one structured lifecycle record."""
    if not logger.isEnabledFor(level):
        return
    logger.log(
        level,
        message,
        exc_info=exc_info,
        extra={"category": category, "source": source, "fields": sanitize_fields(fields)},
    )


def configure_modal_logging(config: ModalLoggingConfig) -> LogHistoryHandler:
    """Configure root logging with optional async file streaming."""
    global _QUEUE_LISTENER

    if _QUEUE_LISTENER is not None:
        _QUEUE_LISTENER.stop()
        _QUEUE_LISTENER = None

    set_field_masking(config.mask_sensitive)
    level = getattr(logging, config.level_name.upper(), logging.INFO)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_resolve_formatter(config.console_format))
    history_handler = LogHistoryHandler(capacity=max(1, config.history_capacity))
    handlers: list[logging.Handler] = [console_handler]

    if config.file_path:
        file_path = Path(config.file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(file_path, mode="a", encoding="utf-8", delay=True)
        file_handler.setFormatter(_resolve_formatter(config.file_format))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    # History is read back synchronously, so it never goes through the queue.
    root.addHandler(history_handler)

    if len(handlers) == 1:
        root.addHandler(handlers[0])
        return history_handler

    log_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    root.addHandler(QueueHandler(log_queue))
    _QUEUE_LISTENER = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _QUEUE_LISTENER.start()
    return history_handler


def setup_modal_logging(config: ModalLoggingConfig | None = None) -> LogHistoryHandler | None:
    """Configure minimal engine logging if no handlers are present.

    Returns the active history handler: the new one, or one already installed on
    the root logger. None when foreign handlers own the root logger.
    """
    from modal_engine.runtime.config import resolve_log_level_name

    root = logging.getLogger()
    if root.handlers:
        return find_log_history()
    if config is None:
        config = ModalLoggingConfig(
            level_name=resolve_log_level_name(default="INFO"),
            console_format="text",
            file_path=None,
            file_format="json",
        )
    return configure_modal_logging(config)


def find_log_history() -> LogHistoryHandler | None:
    """Return the history handler installed on the root logger, if any."""
    for handler in logging.getLogger().handlers:
        if isinstance(handler, LogHistoryHandler):
            return handler
    return None


def shutdown_modal_logging() -> None:
    """Flush and stop the background file listener if one is running."""
    global _QUEUE_LISTENER
    if _QUEUE_LISTENER is not None:
        _QUEUE_LISTENER.stop()
        _QUEUE_LISTENER = None


def get_modal_logger(name: str) -> logging.Logger:
    """Return namespaced logger instance."""
    return logging.getLogger(name)


def _resolve_formatter(kind: str) -> logging.Formatter:
    if kind.strip().lower() == "json":
        return JsonFormatter()
    return logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [%(category)s/%(source)s]: %(message)s",
        defaults={"category": "SYSTEM", "source": "-"},
    )
