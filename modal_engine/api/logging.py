"""Public modal-engine logging API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

LogCategory = Literal["UI", "WORKFLOW", "VALIDATION", "SYSTEM"]


@dataclass(frozen=True, slots=True)
class ModalLoggingConfig:
    """Modal-engine logging pipeline configuration."""

    level_name: str = "INFO"
    console_format: str = "text"  # text|json
    file_path: str | None = None
    file_format: str = "json"  # text|json
    history_capacity: int = 1000
    mask_sensitive: bool = True


class LoggerPort(Protocol):
    """Minimal logger surface for engine components and their callers."""

    def debug(self, message: str, *args: object, **kwargs: object) -> None: ...

    def info(self, message: str, *args: object, **kwargs: object) -> None: ...

    def warning(self, message: str, *args: object, **kwargs: object) -> None: ...

    def error(self, message: str, *args: object, **kwargs: object) -> None: ...

    def log(self, level: int, message: str, *args: object, **kwargs: object) -> None: ...


def get_modal_logger(name: str) -> LoggerPort:
    """Return namespaced logger instance."""
    from modal_engine.runtime.logging import get_modal_logger as runtime_get_logger

    return runtime_get_logger(name)
