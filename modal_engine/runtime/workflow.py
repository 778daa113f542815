"""Step state machine embedded in workflow modals."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass

from modal_engine.api.actions import CallbackInvoker
from modal_engine.api.modals import WorkflowModal
from modal_engine.api.registry import ModalRegistry
from modal_engine.api.workflow import WorkflowData, WorkflowStep
from modal_engine.runtime.logging import log_event

_LOG = logging.getLogger("modal_engine.workflow")
_SOURCE = "WorkflowStepEngine"


@dataclass(frozen=True, slots=True)
class StepTransition:
    """Transition execution context."""

    trigger: str
    source: int
    target: int


class RuntimeWorkflowEngine:
    """Index-based step machine: ``0..N-1`` plus a terminal completed state.

    ``next`` at the last step fires ``on_complete`` once and stays on that
    step; callers are expected to close the modal afterwards. Validation
    failures block transitions silently; surfacing them is a render concern.
    """

    def __init__(
        self,
        modal: WorkflowModal,
        *,
        registry: ModalRegistry | None = None,
        invoker: CallbackInvoker | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not modal.steps:
            raise ValueError("workflow modal requires at least one step")
        if invoker is None:
            from modal_engine.runtime.action_dispatch import RuntimeActionDispatcher

            invoker = RuntimeActionDispatcher(logger=logger)
        self._modal = modal
        self._steps: tuple[WorkflowStep, ...] = modal.steps
        self._registry = registry
        self._invoker = invoker
        self._logger = logger or _LOG
        self._index = min(max(0, modal.current_step), len(self._steps) - 1)
        self._completed = False
        self._data: WorkflowData = {}

    @property
    def modal_id(self) -> str:
        return self._modal.id

    @property
    def current_step(self) -> int:
        return self._index

    @property
    def steps(self) -> tuple[WorkflowStep, ...]:
        return self._steps

    @property
    def step(self) -> WorkflowStep:
        return self._steps[self._index]

    @property
    def step_count(self) -> int:
        return len(self._steps)

    @property
    def is_last_step(self) -> bool:
        return self._index == len(self._steps) - 1

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def data(self) -> WorkflowData:
        return dict(self._data)

    def record(self, **values: object) -> None:
        self._data.update(values)

    def previous(self) -> bool:
        if self._completed or not self._modal.can_navigate or self._index == 0:
            return False
        self._move(StepTransition(trigger="previous", source=self._index, target=self._index - 1))
        return True

    def next(self, data: Mapping[str, object] | None = None) -> bool:
        if self._completed:
            return False
        if data:
            self._data.update(data)
        verdict = self._run_validation()
        if inspect.isawaitable(verdict):
            verdict = self._resolve_blocking(verdict)
        return self._advance(bool(verdict))

    async def next_async(self, data: Mapping[str, object] | None = None) -> bool:
        if self._completed:
            return False
        if data:
            self._data.update(data)
        verdict = self._run_validation()
        if inspect.isawaitable(verdict):
            try:
                verdict = await verdict
            except Exception as exc:
                self._log_blocked(exc)
                verdict = False
        return self._advance(bool(verdict))

    def _run_validation(self) -> bool | Awaitable[bool]:
        validate = self.step.validate
        if validate is None:
            return True
        try:
            return validate(dict(self._data))
        except Exception as exc:
            self._log_blocked(exc)
            return False

    def _resolve_blocking(self, verdict: Awaitable[bool]) -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            if inspect.iscoroutine(verdict):
                verdict.close()
            log_event(
                self._logger,
                logging.WARNING,
                "async step validation requires next_async inside a running loop",
                category="VALIDATION",
                source=_SOURCE,
                modal_id=self.modal_id,
                step_id=self.step.id,
            )
            return False

        async def _wait() -> bool:
            return bool(await verdict)

        try:
            return asyncio.run(_wait())
        except Exception as exc:
            self._log_blocked(exc)
            return False

    def _advance(self, validated: bool) -> bool:
        if not validated:
            log_event(
                self._logger,
                logging.DEBUG,
                "step transition blocked by validation",
                category="VALIDATION",
                source=_SOURCE,
                modal_id=self.modal_id,
                step_id=self.step.id,
                current_step=self._index,
            )
            return False
        if self.is_last_step:
            self._complete()
            return True
        self._move(StepTransition(trigger="next", source=self._index, target=self._index + 1))
        return True

    def _move(self, transition: StepTransition) -> None:
        self._index = min(max(0, transition.target), len(self._steps) - 1)
        log_event(
            self._logger,
            logging.INFO,
            "workflow step changed",
            category="WORKFLOW",
            source=_SOURCE,
            modal_id=self.modal_id,
            trigger=transition.trigger,
            from_step=transition.source,
            current_step=self._index,
        )
        self._sync_registry()
        callback = self._modal.on_step_change
        if callback is not None:
            self._invoker.invoke(
                callback, self._index, modal_id=self.modal_id, callback_id="on_step_change"
            )

    def _complete(self) -> None:
        self._completed = True
        log_event(
            self._logger,
            logging.INFO,
            "workflow completed",
            category="WORKFLOW",
            source=_SOURCE,
            modal_id=self.modal_id,
            current_step=self._index,
            step_count=len(self._steps),
        )
        callback = self._modal.on_complete
        if callback is not None:
            self._invoker.invoke(
                callback, dict(self._data), modal_id=self.modal_id, callback_id="on_complete"
            )

    def _sync_registry(self) -> None:
        registry = self._registry
        if registry is not None and registry.is_open(self.modal_id):
            registry.update(self.modal_id, current_step=self._index)

    def _log_blocked(self, error: BaseException) -> None:
        log_event(
            self._logger,
            logging.DEBUG,
            "step validation raised",
            category="VALIDATION",
            source=_SOURCE,
            exc_info=(type(error), error, error.__traceback__),
            modal_id=self.modal_id,
            step_id=self.step.id,
            error=str(error),
        )


WorkflowEngine = RuntimeWorkflowEngine
