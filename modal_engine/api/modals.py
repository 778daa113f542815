"""Closed variant model for modal configurations.

Every modal is a frozen, keyword-only dataclass deriving from ``ModalBase``. The
variant tag is the class itself (and the ``modal_type`` class attribute), so
consumers dispatch with structural ``match`` over the classes below and keep a
fallback branch for anything outside the closed set.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import ClassVar, Literal

from modal_engine.api.actions import ModalAction
from modal_engine.api.approval import ApprovalHistoryEntry, ApprovalStep
from modal_engine.api.render import RenderStrategy
from modal_engine.api.workflow import WorkflowData, WorkflowStep

ModalSize = Literal["sm", "md", "lg", "xl", "2xl", "full"]
ModalType = Literal[
    "confirmation",
    "form",
    "display",
    "workflow",
    "approval",
    "ocr",
    "search",
    "legal",
    "procedure",
    "analytics",
]
ConfirmationTone = Literal["default", "destructive"]
SearchCategory = Literal["legal", "procedures", "news", "library", "all"]
LegalMode = Literal["view", "edit", "create", "approve"]
ProcedureMode = Literal["view", "edit", "create", "execute"]
ChartType = Literal["bar", "line", "pie", "area", "table"]
AnalyticsPeriod = Literal["day", "week", "month", "year"]
ExportFormat = Literal["pdf", "excel", "csv"]

AsyncResult = Awaitable[None] | None


@dataclass(frozen=True, slots=True, kw_only=True)
class ModalBase:
    """Fields shared by every modal variant."""

    modal_type: ClassVar[str] = "base"

    id: str
    title: str
    description: str | None = None
    size: ModalSize = "md"
    actions: tuple[ModalAction, ...] = ()
    closable: bool = True
    on_close: Callable[[], None] | None = None
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValueError("modal id must not be empty")


@dataclass(frozen=True, slots=True, kw_only=True)
class ConfirmationModal(ModalBase):
    modal_type: ClassVar[ModalType] = "confirmation"

    message: str
    on_confirm: Callable[[], AsyncResult]
    confirm_text: str = "Confirm"
    cancel_text: str = "Cancel"
    tone: ConfirmationTone = "default"
    on_cancel: Callable[[], None] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class FormModal(ModalBase):
    modal_type: ClassVar[ModalType] = "form"

    form: RenderStrategy
    on_submit: Callable[[Mapping[str, object]], AsyncResult]
    form_props: Mapping[str, object] = field(default_factory=dict)
    submit_text: str = "Save"
    cancel_text: str = "Cancel"
    on_cancel: Callable[[], None] | None = None
    validation: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class DisplayModal(ModalBase):
    modal_type: ClassVar[ModalType] = "display"

    content: RenderStrategy
    scrollable: bool = True
    footer_actions: tuple[ModalAction, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class WorkflowModal(ModalBase):
    modal_type: ClassVar[ModalType] = "workflow"

    steps: tuple[WorkflowStep, ...]
    current_step: int = 0
    on_step_change: Callable[[int], None] | None = None
    on_complete: Callable[[WorkflowData], None] | None = None
    can_navigate: bool = True

    def __post_init__(self) -> None:
        ModalBase.__post_init__(self)
        if not self.steps:
            raise ValueError("workflow modal requires at least one step")


@dataclass(frozen=True, slots=True, kw_only=True)
class ApprovalModal(ModalBase):
    modal_type: ClassVar[ModalType] = "approval"

    item: object
    approval_steps: tuple[ApprovalStep, ...]
    on_approve: Callable[[object, str | None], AsyncResult]
    on_reject: Callable[[object, str | None], AsyncResult]
    current_step: int = 0
    on_request_changes: Callable[[object, str], AsyncResult] | None = None
    history: tuple[ApprovalHistoryEntry, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractionModal(ModalBase):
    """Document capture and OCR extraction."""

    modal_type: ClassVar[ModalType] = "ocr"

    file: str | None = None
    extracted_data: Mapping[str, object] | None = None
    validation_results: Mapping[str, object] | None = None
    extraction_progress: float | None = None
    on_extract: Callable[[Mapping[str, object]], None] | None = None
    on_validate: Callable[[Mapping[str, object]], None] | None = None
    on_save: Callable[[Mapping[str, object]], None] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class SearchModal(ModalBase):
    modal_type: ClassVar[ModalType] = "search"

    on_search: Callable[[str, Mapping[str, object]], None]
    initial_query: str = ""
    filters: Mapping[str, object] = field(default_factory=dict)
    results: tuple[object, ...] = ()
    on_select: Callable[[object], None] | None = None
    search_category: SearchCategory = "all"


@dataclass(frozen=True, slots=True, kw_only=True)
class LegalRecordModal(ModalBase):
    modal_type: ClassVar[ModalType] = "legal"

    mode: LegalMode
    document: object | None = None
    on_save: Callable[[object], None] | None = None
    on_approve: Callable[[object], None] | None = None
    on_reject: Callable[[object, str], None] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcedureRecordModal(ModalBase):
    modal_type: ClassVar[ModalType] = "procedure"

    mode: ProcedureMode
    procedure: object | None = None
    on_save: Callable[[object], None] | None = None
    on_execute: Callable[[object, Mapping[str, object]], None] | None = None
    on_complete: Callable[[object, object], None] | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AnalyticsModal(ModalBase):
    modal_type: ClassVar[ModalType] = "analytics"

    chart_type: ChartType
    data: tuple[object, ...] = ()
    period: AnalyticsPeriod | None = None
    filters: Mapping[str, object] = field(default_factory=dict)
    on_export: Callable[[ExportFormat], None] | None = None


ModalConfig = (
    ConfirmationModal
    | FormModal
    | DisplayModal
    | WorkflowModal
    | ApprovalModal
    | ExtractionModal
    | SearchModal
    | LegalRecordModal
    | ProcedureRecordModal
    | AnalyticsModal
)
ModalInstance = ModalConfig

MODAL_VARIANTS: tuple[type[ModalBase], ...] = (
    ConfirmationModal,
    FormModal,
    DisplayModal,
    WorkflowModal,
    ApprovalModal,
    ExtractionModal,
    SearchModal,
    LegalRecordModal,
    ProcedureRecordModal,
    AnalyticsModal,
)


def is_supported_variant(config: ModalBase) -> bool:
    """Return whether ``config`` belongs to the closed variant set."""
    return type(config) in MODAL_VARIANTS
