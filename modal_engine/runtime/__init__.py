"""Modal-engine runtime modules."""

from modal_engine.runtime.action_dispatch import ActionDispatcher
from modal_engine.runtime.approval import ApprovalController
from modal_engine.runtime.config import ModalEngineConfig, get_modal_config, load_modal_config
from modal_engine.runtime.context import RuntimeModalRuntime
from modal_engine.runtime.errors import CallbackExecutionError, ModalEngineError, NotFoundWarning
from modal_engine.runtime.events import ModalEventBus
from modal_engine.runtime.focus import ModalFocusController
from modal_engine.runtime.ids import ModalIdFactory, new_modal_id
from modal_engine.runtime.logging import (
    LogHistoryHandler,
    configure_modal_logging,
    find_log_history,
    setup_modal_logging,
    shutdown_modal_logging,
)
from modal_engine.runtime.registry import ModalRegistry
from modal_engine.runtime.renderer import ModalRenderer
from modal_engine.runtime.workflow import StepTransition, WorkflowEngine

__all__ = [
    "ActionDispatcher",
    "ApprovalController",
    "CallbackExecutionError",
    "ModalEngineConfig",
    "ModalEngineError",
    "ModalEventBus",
    "ModalFocusController",
    "ModalIdFactory",
    "ModalRegistry",
    "ModalRenderer",
    "NotFoundWarning",
    "RuntimeModalRuntime",
    "StepTransition",
    "WorkflowEngine",
    "LogHistoryHandler",
    "configure_modal_logging",
    "find_log_history",
    "get_modal_config",
    "load_modal_config",
    "new_modal_id",
    "setup_modal_logging",
    "shutdown_modal_logging",
]
