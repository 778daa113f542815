"""Modal-engine failure taxonomy and isolation logging helpers."""

from __future__ import annotations

import logging

from modal_engine.api.logging import LogCategory
from modal_engine.runtime.logging import log_event

CAPACITY_EVICTION = "capacity_eviction"


class ModalEngineError(Exception):
    """Base class for engine-defined errors."""


class CallbackExecutionError(ModalEngineError):
    """A consumer-supplied callback raised or its awaitable rejected.

    Built at the call site for logging only; never raised to the caller.
    """

    def __init__(self, *, modal_id: str | None, callback_id: str, cause: BaseException) -> None:
        super().__init__(f"callback {callback_id!r} failed for modal {modal_id!r}: {cause}")
        self.modal_id = modal_id
        self.callback_id = callback_id
        self.cause = cause
        self.__cause__ = cause


class NotFoundWarning(UserWarning):
    """Marker for update/close calls that name an unknown modal id."""


def log_callback_failure(
    logger: logging.Logger,
    *,
    modal_id: str | None,
    callback_id: str,
    cause: BaseException,
    source: str,
    category: LogCategory = "UI",
) -> CallbackExecutionError:
    """Log one isolated callback failure with full context."""
    error = CallbackExecutionError(modal_id=modal_id, callback_id=callback_id, cause=cause)
    log_event(
        logger,
        logging.ERROR,
        "modal callback failed",
        category=category,
        source=source,
        exc_info=(type(cause), cause, cause.__traceback__),
        error_kind=type(error).__name__,
        modal_id=modal_id,
        action_id=callback_id,
        error=str(cause) or type(cause).__name__,
    )
    return error


def log_not_found(
    logger: logging.Logger,
    operation: str,
    modal_id: str,
    *,
    resulting_count: int,
    level: int = logging.WARNING,
) -> None:
    """Log an operation that named no active modal; its ``type`` is unknown, so None."""
    log_event(
        logger,
        level,
        f"modal {operation} ignored: unknown id",
        category="UI",
        source="ModalRegistry",
        warning_kind=NotFoundWarning.__name__,
        modal_id=modal_id,
        type=None,
        resulting_count=resulting_count,
    )
