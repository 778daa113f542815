from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import ClassVar

import pytest

from modal_engine.api.actions import ModalAction
from modal_engine.api.approval import ApprovalStep
from modal_engine.api.modals import (
    AnalyticsModal,
    ApprovalModal,
    ExtractionModal,
    FormModal,
    ModalBase,
    SearchModal,
    WorkflowModal,
)
from modal_engine.api.render import StaticBody, SurfaceElement, text_body
from modal_engine.api.workflow import WorkflowStep
from modal_engine.runtime.renderer import RuntimeModalRenderer


@dataclass(frozen=True, slots=True, kw_only=True)
class _LegacyModal(ModalBase):
    modal_type: ClassVar[str] = "legacy"


class _BrokenBody:
    def render_body(self, props):
        raise RuntimeError("template missing")


@pytest.fixture
def renderer(registry, dispatcher) -> RuntimeModalRenderer:
    return RuntimeModalRenderer(registry, dispatcher)


def _workflow(**overrides) -> WorkflowModal:
    values = {
        "id": "wf",
        "title": "Onboarding",
        "steps": tuple(
            WorkflowStep(id=f"s{i}", title=f"Step {i}", body=text_body(f"step {i}")) for i in range(2)
        ),
    }
    values.update(overrides)
    return WorkflowModal(**values)


def test_render_returns_one_surface_per_modal_in_order(registry, renderer, display_factory) -> None:
    registry.open(display_factory("a"))
    registry.open(display_factory("b"))

    surfaces = renderer.render()

    assert [surface.modal_id for surface in surfaces] == ["a", "b"]
    assert surfaces[0].element("content").label == "a body"
    assert surfaces[0].scrollable is True


def test_unsupported_variant_renders_visible_fallback(registry, renderer) -> None:
    registry.open(_LegacyModal(id="x", title="Old"))

    (surface,) = renderer.render()

    assert surface.element("unsupported").label == "Unsupported modal type: legacy"
    assert surface.element("close") is not None


def test_confirm_runs_callback_then_closes(registry, renderer, confirmation_factory) -> None:
    calls: list[str] = []
    registry.open(confirmation_factory("c", on_confirm=lambda: calls.append("confirmed")))

    assert renderer.handle_intent("c", "confirm") is True

    assert calls == ["confirmed"]
    assert not registry.is_open("c")


def test_failed_confirm_keeps_modal_open(registry, renderer, confirmation_factory) -> None:
    def explode() -> None:
        raise RuntimeError("nope")

    registry.open(confirmation_factory("c", on_confirm=explode))

    renderer.handle_intent("c", "confirm")

    assert registry.is_open("c")


def test_cancel_without_handler_closes(registry, renderer, confirmation_factory) -> None:
    closed: list[str] = []
    registry.open(confirmation_factory("c", on_close=lambda: closed.append("c")))

    renderer.handle_intent("c", "cancel")

    assert not registry.is_open("c")
    assert closed == ["c"]


def test_form_submit_passes_payload(registry, renderer) -> None:
    submitted: list[dict] = []
    registry.open(
        FormModal(
            id="f",
            title="Edit",
            form=StaticBody((SurfaceElement("name", "input", label="Name", focusable=True),)),
            on_submit=submitted.append,
        )
    )

    surface = renderer.surface("f")
    assert [item.element_id for item in surface.footer] == ["cancel", "submit", "close"]
    renderer.handle_intent("f", "submit", {"name": "Ada"})

    assert submitted == [{"name": "Ada"}]
    assert not registry.is_open("f")


def test_body_render_failure_is_contained(registry, renderer, display_factory, engine_caplog) -> None:
    registry.open(display_factory("d", content=_BrokenBody()))

    (surface,) = renderer.render()

    assert surface.element("render_error") is not None
    assert any(r.getMessage() == "modal body render failed" for r in engine_caplog.records)


def test_actions_dispatch_and_disabled_actions_are_ignored(registry, renderer, display_factory) -> None:
    clicks: list[str] = []
    registry.open(
        display_factory(
            "d",
            actions=(
                ModalAction(id="go", label="Go", on_click=lambda: clicks.append("go")),
                ModalAction(id="off", label="Off", on_click=lambda: clicks.append("off"), disabled=True),
            ),
        )
    )

    assert renderer.handle_intent("d", "action:go") is True
    assert renderer.handle_intent("d", "action:off") is False
    assert renderer.handle_intent("d", "missing") is False
    assert clicks == ["go"]


def test_workflow_intents_drive_the_step_engine(registry, renderer) -> None:
    completions: list[dict] = []
    registry.open(_workflow(on_complete=completions.append))

    surface = renderer.surface("wf")
    assert surface.element("previous").enabled is False
    assert surface.element("next").label == "Next"
    assert surface.element("step:s0").value == "current"

    renderer.handle_intent("wf", "next", {"answer": 42})
    surface = renderer.surface("wf")
    assert registry.get("wf").current_step == 1
    assert surface.element("next").label == "Finish"
    assert surface.element("step:s0").value == "done"
    assert surface.element("previous").enabled is True

    renderer.handle_intent("wf", "next")
    assert completions == [{"answer": 42}]
    assert not registry.is_open("wf")



def test_workflow_next_inside_running_loop_awaits_async_validation(
    registry, renderer, dispatcher
) -> None:
    checked: list[dict] = []
    completions: list[dict] = []

    async def validate(data) -> bool:
        checked.append(dict(data))
        return True

    steps = tuple(
        WorkflowStep(id=f"s{i}", title=f"Step {i}", body=text_body(f"step {i}"), validate=validate)
        for i in range(2)
    )
    registry.open(_workflow(steps=steps, on_complete=completions.append))

    async def scenario() -> None:
        assert renderer.handle_intent("wf", "next", {"answer": 42}) is True
        await dispatcher.drain()
        assert registry.get("wf").current_step == 1

        renderer.handle_intent("wf", "next")
        await dispatcher.drain()

    asyncio.run(scenario())

    assert checked == [{"answer": 42}, {"answer": 42}]
    assert completions == [{"answer": 42}]
    assert not registry.is_open("wf")

def test_workflow_engine_is_rebuilt_after_external_step_update(registry, renderer) -> None:
    registry.open(_workflow())
    renderer.workflow_engine("wf")

    registry.update("wf", current_step=1)

    assert renderer.workflow_engine("wf").current_step == 1


def test_approval_intents_record_history(registry, renderer) -> None:
    registry.open(
        ApprovalModal(
            id="ap",
            title="Review",
            item="contract",
            approval_steps=(ApprovalStep(id="one", title="One"),),
            on_approve=lambda item, comment: None,
            on_reject=lambda item, reason: None,
        )
    )

    renderer.handle_intent("ap", "approve", {"actor": "ines", "comment": "ok"})

    surface = renderer.surface("ap")
    entry = registry.get("ap").history[0]
    assert surface.element(f"history:{entry.id}").label == "approved by ines: ok"
    assert surface.element("request_changes") is None


def test_extraction_and_search_and_analytics_callbacks(registry, renderer) -> None:
    received: list[tuple] = []
    registry.open(
        ExtractionModal(
            id="ocr",
            title="Scan",
            file="deed.pdf",
            extraction_progress=140,
            extracted_data={"parcel": "12"},
            on_save=lambda data: received.append(("save", data)),
        )
    )
    registry.open(
        SearchModal(
            id="s",
            title="Find",
            on_search=lambda query, filters: received.append(("search", query, filters)),
            results=("first",),
            on_select=lambda item: received.append(("select", item)),
        )
    )
    registry.open(
        AnalyticsModal(
            id="an",
            title="Stats",
            chart_type="bar",
            on_export=lambda fmt: received.append(("export", fmt)),
        )
    )

    assert renderer.surface("ocr").element("progress").value == 100.0
    assert renderer.surface("ocr").element("extract") is None
    renderer.handle_intent("ocr", "save")
    renderer.handle_intent("s", "search", {"query": "land"})
    renderer.handle_intent("s", "result:0")
    renderer.handle_intent("an", "export:csv")

    assert received == [
        ("save", {"parcel": "12"}),
        ("search", "land", {}),
        ("select", "first"),
        ("export", "csv"),
    ]


def test_close_intent_is_absent_for_non_closable_modals(registry, renderer, display_factory) -> None:
    registry.open(display_factory("d", closable=False))

    assert renderer.surface("d").element("close") is None
    assert renderer.handle_intent("d", "close") is False
    assert registry.is_open("d")
