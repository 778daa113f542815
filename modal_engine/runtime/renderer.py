"""Headless renderer: one surface per active modal, user intents routed back."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import get_args

from modal_engine.api.actions import ActionDispatcher, ModalAction
from modal_engine.api.modals import (
    AnalyticsModal,
    ApprovalModal,
    ConfirmationModal,
    DisplayModal,
    ExportFormat,
    ExtractionModal,
    FormModal,
    LegalRecordModal,
    ModalBase,
    ProcedureRecordModal,
    SearchModal,
    WorkflowModal,
)
from modal_engine.api.registry import ModalRegistry
from modal_engine.api.render import ElementTone, ModalSurface, RenderStrategy, SurfaceElement
from modal_engine.runtime.approval import RuntimeApprovalController
from modal_engine.runtime.logging import log_event
from modal_engine.runtime.workflow import RuntimeWorkflowEngine

_LOG = logging.getLogger("modal_engine.renderer")
_SOURCE = "ModalRenderer"

Payload = Mapping[str, object]


def _button(
    element_id: str,
    label: str,
    intent: str,
    *,
    tone: ElementTone = "default",
    enabled: bool = True,
    value: object | None = None,
) -> SurfaceElement:
    return SurfaceElement(
        element_id=element_id,
        kind="button",
        label=label,
        intent=intent,
        enabled=enabled,
        focusable=True,
        tone=tone,
        value=value,
    )


def _text(element_id: str, label: str, *, tone: ElementTone = "default") -> SurfaceElement:
    return SurfaceElement(element_id=element_id, kind="text", label=label, tone=tone)


def _action_button(action: ModalAction) -> SurfaceElement:
    return _button(
        f"action:{action.id}",
        action.label,
        "action",
        tone=action.variant,
        enabled=not (action.disabled or action.loading),
        value="loading" if action.loading else None,
    )


def _progress_state(index: int, current: int) -> str:
    if index < current:
        return "done"
    if index == current:
        return "current"
    return "upcoming"


class RuntimeModalRenderer:
    """Render contract implementation independent of any widget toolkit.

    ``render`` matches exhaustively over the closed variant set; anything else
    renders a visible "unsupported" surface. ``handle_intent`` translates
    gestures into registry, dispatcher, workflow and approval calls.
    """

    def __init__(
        self,
        registry: ModalRegistry,
        dispatcher: ActionDispatcher,
        *,
        approvals: RuntimeApprovalController | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._logger = logger or _LOG
        self._approvals = approvals or RuntimeApprovalController(
            registry, invoker=dispatcher, logger=logger
        )
        self._engines: dict[str, RuntimeWorkflowEngine] = {}

    def render(self) -> tuple[ModalSurface, ...]:
        modals = self._registry.modals()
        self._prune_engines({config.id for config in modals})
        return tuple(self._surface(config) for config in modals)

    def surface(self, modal_id: str) -> ModalSurface | None:
        config = self._registry.get(modal_id)
        return None if config is None else self._surface(config)

    def workflow_engine(self, modal_id: str) -> RuntimeWorkflowEngine | None:
        """Return the step engine backing an active workflow modal."""
        config = self._registry.get(modal_id)
        if not isinstance(config, WorkflowModal):
            return None
        return self._engine_for(config)

    def handle_intent(
        self,
        modal_id: str,
        element_id: str,
        payload: Payload | None = None,
    ) -> bool:
        config = self._registry.get(modal_id)
        if config is None:
            return False
        element = self._surface(config).element(element_id)
        if element is None or element.intent is None or not element.enabled:
            log_event(
                self._logger,
                logging.DEBUG,
                "intent ignored",
                category="UI",
                source=_SOURCE,
                modal_id=modal_id,
                element_id=element_id,
            )
            return False
        log_event(
            self._logger,
            logging.DEBUG,
            "intent received",
            category="UI",
            source=_SOURCE,
            modal_id=modal_id,
            element_id=element_id,
            intent=element.intent,
        )
        return self._route(config, element, dict(payload or {}))

    # Surfaces

    def _surface(self, config: ModalBase) -> ModalSurface:
        body: tuple[SurfaceElement, ...]
        footer: tuple[SurfaceElement, ...]
        scrollable = False
        match config:
            case ConfirmationModal():
                body = (_text("message", config.message),)
                footer = (
                    _button("cancel", config.cancel_text, "cancel", tone="outline"),
                    _button("confirm", config.confirm_text, "confirm", tone=config.tone),
                )
            case FormModal():
                body = self._body(config, config.form, config.form_props)
                footer = (
                    _button("cancel", config.cancel_text, "cancel", tone="outline"),
                    _button("submit", config.submit_text, "submit"),
                )
            case DisplayModal():
                body = self._body(config, config.content, {})
                footer = tuple(_action_button(action) for action in config.footer_actions)
                scrollable = config.scrollable
            case WorkflowModal():
                body, footer = self._workflow_surface(config)
            case ApprovalModal():
                body, footer = self._approval_surface(config)
            case ExtractionModal():
                body, footer = self._extraction_surface(config)
            case SearchModal():
                body, footer = self._search_surface(config)
            case LegalRecordModal():
                body = (
                    _text("mode", config.mode, tone="muted"),
                    SurfaceElement(element_id="document", kind="custom", value=config.document),
                )
                footer = self._optional_buttons(
                    (
                        ("save", "Save", "save", config.on_save),
                        ("reject", "Reject", "reject", config.on_reject),
                        ("approve", "Approve", "approve", config.on_approve),
                    )
                )
            case ProcedureRecordModal():
                body = (
                    _text("mode", config.mode, tone="muted"),
                    SurfaceElement(element_id="procedure", kind="custom", value=config.procedure),
                )
                footer = self._optional_buttons(
                    (
                        ("save", "Save", "save", config.on_save),
                        ("execute", "Execute", "execute", config.on_execute),
                        ("complete", "Complete", "complete", config.on_complete),
                    )
                )
            case AnalyticsModal():
                body = (
                    SurfaceElement(
                        element_id="chart", kind="custom", label=config.chart_type, value=config.data
                    ),
                )
                if config.period is not None:
                    body += (_text("period", config.period, tone="muted"),)
                footer = ()
                if config.on_export is not None:
                    footer = tuple(
                        _button(f"export:{fmt}", fmt.upper(), "export", tone="outline", value=fmt)
                        for fmt in get_args(ExportFormat)
                    )
            case _:
                body = (_text("unsupported", f"Unsupported modal type: {config.modal_type}"),)
                footer = ()

        footer += tuple(_action_button(action) for action in config.actions)
        if config.closable:
            footer += (_button("close", "Close", "close", tone="ghost"),)
        return ModalSurface(
            modal_id=config.id,
            modal_type=config.modal_type,
            title=config.title,
            description=config.description,
            size=config.size,
            closable=config.closable,
            scrollable=scrollable,
            body=body,
            footer=footer,
        )

    def _body(
        self, config: ModalBase, strategy: RenderStrategy, props: Mapping[str, object]
    ) -> tuple[SurfaceElement, ...]:
        try:
            return tuple(strategy.render_body(props))
        except Exception as exc:
            log_event(
                self._logger,
                logging.ERROR,
                "modal body render failed",
                category="UI",
                source=_SOURCE,
                exc_info=(type(exc), exc, exc.__traceback__),
                modal_id=config.id,
                error=str(exc),
            )
            return (_text("render_error", "Content unavailable", tone="muted"),)

    def _workflow_surface(
        self, config: WorkflowModal
    ) -> tuple[tuple[SurfaceElement, ...], tuple[SurfaceElement, ...]]:
        engine = self._engine_for(config)
        current = engine.current_step
        step = config.steps[current]
        indicators = tuple(
            SurfaceElement(
                element_id=f"step:{item.id}",
                kind="step",
                label=f"{index + 1}. {item.title}",
                value=_progress_state(index, current),
            )
            for index, item in enumerate(config.steps)
        )
        heading: tuple[SurfaceElement, ...] = (_text("step_title", step.title),)
        if step.description:
            heading += (_text("step_description", step.description, tone="muted"),)
        body = indicators + heading + self._body(config, step.body, step.props)
        footer = (
            _button(
                "previous",
                "Previous",
                "step_previous",
                tone="outline",
                enabled=config.can_navigate and current > 0 and not engine.completed,
            ),
            _button(
                "next",
                "Finish" if engine.is_last_step else "Next",
                "step_next",
                enabled=not engine.completed,
            ),
        )
        return body, footer

    def _approval_surface(
        self, config: ApprovalModal
    ) -> tuple[tuple[SurfaceElement, ...], tuple[SurfaceElement, ...]]:
        body: tuple[SurfaceElement, ...] = (
            SurfaceElement(element_id="item", kind="custom", value=config.item),
        )
        body += tuple(
            SurfaceElement(
                element_id=f"approval_step:{step.id}",
                kind="step",
                label=step.title,
                value="done" if step.is_complete else _progress_state(index, config.current_step),
            )
            for index, step in enumerate(config.approval_steps)
        )
        body += tuple(
            _text(
                f"history:{entry.id}",
                f"{entry.action} by {entry.actor}" + (f": {entry.comment}" if entry.comment else ""),
                tone="muted",
            )
            for entry in config.history
        )
        body += (
            SurfaceElement(element_id="comment", kind="input", label="Comment", focusable=True),
        )
        footer = (_button("reject", "Reject", "reject", tone="destructive"),)
        if config.on_request_changes is not None:
            footer += (_button("request_changes", "Request changes", "request_changes", tone="outline"),)
        footer += (_button("approve", "Approve", "approve"),)
        return body, footer

    def _extraction_surface(
        self, config: ExtractionModal
    ) -> tuple[tuple[SurfaceElement, ...], tuple[SurfaceElement, ...]]:
        body: tuple[SurfaceElement, ...] = (
            _text("file", config.file or "No file selected", tone="muted"),
        )
        if config.extraction_progress is not None:
            progress = min(100.0, max(0.0, float(config.extraction_progress)))
            body += (SurfaceElement(element_id="progress", kind="progress", value=progress),)
        if config.extracted_data is not None:
            body += (
                SurfaceElement(element_id="extracted_data", kind="custom", value=config.extracted_data),
            )
        if config.validation_results is not None:
            body += (
                SurfaceElement(
                    element_id="validation_results", kind="custom", value=config.validation_results
                ),
            )
        footer = self._optional_buttons(
            (
                ("extract", "Extract", "extract", config.on_extract),
                ("validate", "Validate", "validate", config.on_validate),
                ("save", "Save", "save", config.on_save),
            )
        )
        return body, footer

    def _search_surface(
        self, config: SearchModal
    ) -> tuple[tuple[SurfaceElement, ...], tuple[SurfaceElement, ...]]:
        body: tuple[SurfaceElement, ...] = (
            SurfaceElement(
                element_id="query",
                kind="input",
                label=config.search_category,
                focusable=True,
                value=config.initial_query,
            ),
        )
        body += tuple(
            _button(
                f"result:{index}",
                str(item),
                "select",
                tone="ghost",
                enabled=config.on_select is not None,
                value=item,
            )
            for index, item in enumerate(config.results)
        )
        return body, (_button("search", "Search", "search"),)

    @staticmethod
    def _optional_buttons(
        candidates: tuple[tuple[str, str, str, object | None], ...],
    ) -> tuple[SurfaceElement, ...]:
        return tuple(
            _button(element_id, label, intent)
            for element_id, label, intent, handler in candidates
            if handler is not None
        )

    # Intents

    def _route(self, config: ModalBase, element: SurfaceElement, payload: dict[str, object]) -> bool:
        modal_id = config.id
        intent = element.intent
        if intent == "close":
            self._registry.close(modal_id)
            return True
        if intent == "action":
            action = self._find_action(config, element.element_id.removeprefix("action:"))
            if action is None:
                return False
            self._dispatcher.dispatch(action, modal_id=modal_id)
            return True

        actor = str(payload.get("actor", "anonymous"))
        match config, intent:
            case ConfirmationModal(), "confirm":
                self._invoke(config.on_confirm, modal_id=modal_id, name="on_confirm", close=True)
            case (ConfirmationModal() | FormModal()), "cancel":
                if config.on_cancel is None:
                    self._registry.close(modal_id)
                else:
                    self._invoke(config.on_cancel, modal_id=modal_id, name="on_cancel", close=True)
            case FormModal(), "submit":
                self._invoke(config.on_submit, payload, modal_id=modal_id, name="on_submit", close=True)
            case WorkflowModal(), "step_previous":
                self._engine_for(config).previous()
            case WorkflowModal(), "step_next":
                self._step_next(config, payload)
            case ApprovalModal(), "approve":
                self._approvals.approve(modal_id, actor=actor, comment=_optional_str(payload, "comment"))
            case ApprovalModal(), "reject":
                self._approvals.reject(modal_id, actor=actor, reason=_optional_str(payload, "reason"))
            case ApprovalModal(), "request_changes":
                self._approvals.request_changes(
                    modal_id, actor=actor, changes=str(payload.get("changes", ""))
                )
            case ExtractionModal(), ("extract" | "validate" | "save"):
                callback = {
                    "extract": config.on_extract,
                    "validate": config.on_validate,
                    "save": config.on_save,
                }[intent]
                data = payload or dict(config.extracted_data or {})
                self._invoke(callback, data, modal_id=modal_id, name=f"on_{intent}")
            case SearchModal(), "search":
                query = str(payload.get("query", config.initial_query))
                filters = payload.get("filters", config.filters)
                self._invoke(config.on_search, query, dict(filters), modal_id=modal_id, name="on_search")
            case SearchModal(), "select":
                self._invoke(config.on_select, element.value, modal_id=modal_id, name="on_select")
            case LegalRecordModal(), "save":
                self._invoke(config.on_save, config.document, modal_id=modal_id, name="on_save")
            case LegalRecordModal(), "approve":
                self._invoke(config.on_approve, config.document, modal_id=modal_id, name="on_approve")
            case LegalRecordModal(), "reject":
                reason = str(payload.get("reason", ""))
                self._invoke(config.on_reject, config.document, reason, modal_id=modal_id, name="on_reject")
            case ProcedureRecordModal(), "save":
                self._invoke(config.on_save, config.procedure, modal_id=modal_id, name="on_save")
            case ProcedureRecordModal(), "execute":
                self._invoke(
                    config.on_execute, config.procedure, payload, modal_id=modal_id, name="on_execute"
                )
            case ProcedureRecordModal(), "complete":
                self._invoke(
                    config.on_complete,
                    config.procedure,
                    payload.get("result"),
                    modal_id=modal_id,
                    name="on_complete",
                )
            case AnalyticsModal(), "export":
                self._invoke(config.on_export, element.value, modal_id=modal_id, name="on_export")
            case _:
                return False
        return True

    def _invoke(
        self,
        callback: Callable[..., object] | None,
        *args: object,
        modal_id: str,
        name: str,
        close: bool = False,
    ) -> None:
        if callback is None:
            return
        on_success = (lambda: self._registry.close(modal_id)) if close else None
        self._dispatcher.invoke(
            callback, *args, modal_id=modal_id, callback_id=name, on_success=on_success
        )

    def _step_next(self, config: WorkflowModal, payload: dict[str, object]) -> None:
        engine = self._engine_for(config)
        if not _loop_running():
            if engine.next(payload):
                self._finish_if_completed(config.id, engine)
            return

        # Inside the host loop, validation may be async; track it like any callback.
        async def advance() -> None:
            if await engine.next_async(payload):
                self._finish_if_completed(config.id, engine)

        self._dispatcher.invoke(advance, modal_id=config.id, callback_id="step_next")

    def _finish_if_completed(self, modal_id: str, engine: RuntimeWorkflowEngine) -> None:
        if not engine.completed:
            return
        if self._engines.get(modal_id) is engine:
            del self._engines[modal_id]
        self._registry.close(modal_id)

    @staticmethod
    def _find_action(config: ModalBase, action_id: str) -> ModalAction | None:
        candidates = config.actions
        if isinstance(config, DisplayModal):
            candidates = config.footer_actions + candidates
        for action in candidates:
            if action.id == action_id:
                return action
        return None

    def _engine_for(self, config: WorkflowModal) -> RuntimeWorkflowEngine:
        engine = self._engines.get(config.id)
        if (
            engine is None
            or engine.steps is not config.steps
            or (not engine.completed and engine.current_step != config.current_step)
        ):
            engine = RuntimeWorkflowEngine(
                config, registry=self._registry, invoker=self._dispatcher
            )
            self._engines[config.id] = engine
        return engine

    def _prune_engines(self, active_ids: set[str]) -> None:
        for modal_id in tuple(self._engines):
            if modal_id not in active_ids:
                del self._engines[modal_id]


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _optional_str(payload: Payload, key: str) -> str | None:
    value = payload.get(key)
    return None if value is None else str(value)


ModalRenderer = RuntimeModalRenderer
