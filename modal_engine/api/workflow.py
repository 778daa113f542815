"""Public workflow step-engine contracts."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from modal_engine.api.render import RenderStrategy

if TYPE_CHECKING:
    from modal_engine.api.actions import CallbackInvoker
    from modal_engine.api.modals import WorkflowModal
    from modal_engine.api.registry import ModalRegistry

WorkflowData = dict[str, object]
StepValidator = Callable[[WorkflowData], bool | Awaitable[bool]]


@dataclass(frozen=True, slots=True)
class WorkflowStep:
    """One stage of a workflow modal with an optional validation gate."""

    id: str
    title: str
    body: RenderStrategy
    description: str | None = None
    props: Mapping[str, object] = field(default_factory=dict)
    validate: StepValidator | None = None
    is_complete: bool = False


class WorkflowStepEngine(Protocol):
    """Per-instance step state machine for workflow modals."""

    @property
    def modal_id(self) -> str: ...

    @property
    def current_step(self) -> int: ...

    @property
    def step_count(self) -> int: ...

    @property
    def completed(self) -> bool: ...

    @property
    def data(self) -> WorkflowData: ...

    def record(self, **values: object) -> None:
        """Merge values into accumulated workflow data."""

    def previous(self) -> bool:
        """Step back. Return whether the index changed."""

    def next(self, data: Mapping[str, object] | None = None) -> bool:
        """Validate and advance, or complete at the last step."""

    async def next_async(self, data: Mapping[str, object] | None = None) -> bool:
        """Like ``next`` but awaits asynchronous validation inline."""


def create_workflow_engine(
    modal: "WorkflowModal",
    *,
    registry: "ModalRegistry | None" = None,
    invoker: "CallbackInvoker | None" = None,
) -> WorkflowStepEngine:
    """Create default step-engine implementation for one workflow modal."""
    from modal_engine.runtime.workflow import RuntimeWorkflowEngine

    return RuntimeWorkflowEngine(modal, registry=registry, invoker=invoker)
