"""Public modal-engine API contracts."""

from modal_engine.api.actions import (
    ActionDispatcher,
    CallbackInvoker,
    DispatchStatus,
    ModalAction,
    create_action_dispatcher,
)
from modal_engine.api.approval import (
    ApprovalDecision,
    ApprovalHistoryEntry,
    ApprovalStep,
    append_history,
)
from modal_engine.api.context import ModalRuntime, create_modal_runtime
from modal_engine.api.dialogs import open_confirmation, open_display, open_form
from modal_engine.api.events import (
    ModalClosed,
    ModalEventBus,
    ModalEvicted,
    ModalLifecycleEvent,
    ModalOpened,
    ModalReplaced,
    ModalUpdated,
    RegistryCleared,
    Subscription,
    create_event_bus,
)
from modal_engine.api.focus import FocusHost, ModalFocusController, create_focus_controller
from modal_engine.api.logging import LogCategory, LoggerPort, ModalLoggingConfig, get_modal_logger
from modal_engine.api.modals import (
    AnalyticsModal,
    ApprovalModal,
    ConfirmationModal,
    DisplayModal,
    ExtractionModal,
    FormModal,
    LegalRecordModal,
    ModalBase,
    ModalConfig,
    ModalInstance,
    ModalSize,
    ModalType,
    ProcedureRecordModal,
    SearchModal,
    WorkflowModal,
    is_supported_variant,
)
from modal_engine.api.registry import ModalRegistry, create_modal_registry
from modal_engine.api.render import (
    ModalRenderer,
    ModalSurface,
    RenderStrategy,
    StaticBody,
    SurfaceElement,
    text_body,
)
from modal_engine.api.workflow import WorkflowStep, WorkflowStepEngine, create_workflow_engine

__all__ = [
    "ActionDispatcher",
    "AnalyticsModal",
    "ApprovalDecision",
    "ApprovalHistoryEntry",
    "ApprovalModal",
    "ApprovalStep",
    "CallbackInvoker",
    "ConfirmationModal",
    "DispatchStatus",
    "DisplayModal",
    "ExtractionModal",
    "FocusHost",
    "FormModal",
    "LegalRecordModal",
    "LogCategory",
    "LoggerPort",
    "ModalAction",
    "ModalBase",
    "ModalClosed",
    "ModalConfig",
    "ModalEventBus",
    "ModalEvicted",
    "ModalFocusController",
    "ModalInstance",
    "ModalLifecycleEvent",
    "ModalLoggingConfig",
    "ModalOpened",
    "ModalRegistry",
    "ModalRenderer",
    "ModalReplaced",
    "ModalRuntime",
    "ModalSize",
    "ModalSurface",
    "ModalType",
    "ModalUpdated",
    "ProcedureRecordModal",
    "RegistryCleared",
    "RenderStrategy",
    "SearchModal",
    "StaticBody",
    "Subscription",
    "SurfaceElement",
    "WorkflowModal",
    "WorkflowStep",
    "WorkflowStepEngine",
    "append_history",
    "create_action_dispatcher",
    "create_event_bus",
    "create_focus_controller",
    "create_modal_registry",
    "create_modal_runtime",
    "create_workflow_engine",
    "get_modal_logger",
    "is_supported_variant",
    "open_confirmation",
    "open_display",
    "open_form",
    "text_body",
]
