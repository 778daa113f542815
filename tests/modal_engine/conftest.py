from __future__ import annotations

import logging

import pytest

from modal_engine.api.modals import ConfirmationModal, DisplayModal
from modal_engine.api.render import text_body
from modal_engine.runtime.action_dispatch import RuntimeActionDispatcher
from modal_engine.runtime.events import RuntimeModalEventBus
from modal_engine.runtime.registry import RuntimeModalRegistry


class FakeFocusHost:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []

    def focus_element(self, modal_id: str, element_id: str) -> None:
        self.calls.append(("focus_element", (modal_id, element_id)))

    def set_background_scroll_locked(self, locked: bool) -> None:
        self.calls.append(("set_background_scroll_locked", (locked,)))


def make_display(modal_id: str, **overrides) -> DisplayModal:
    values = {"id": modal_id, "title": modal_id.title(), "content": text_body(f"{modal_id} body")}
    values.update(overrides)
    return DisplayModal(**values)


def make_confirmation(modal_id: str, on_confirm=None, **overrides) -> ConfirmationModal:
    values = {
        "id": modal_id,
        "title": "Confirm",
        "message": "Proceed?",
        "on_confirm": on_confirm or (lambda: None),
    }
    values.update(overrides)
    return ConfirmationModal(**values)


@pytest.fixture
def focus_host() -> FakeFocusHost:
    return FakeFocusHost()


@pytest.fixture
def dispatcher() -> RuntimeActionDispatcher:
    return RuntimeActionDispatcher()


@pytest.fixture
def events() -> RuntimeModalEventBus:
    return RuntimeModalEventBus()


@pytest.fixture
def registry(dispatcher, events) -> RuntimeModalRegistry:
    return RuntimeModalRegistry(max_concurrent_modals=3, invoker=dispatcher, events=events)


@pytest.fixture
def display_factory():
    return make_display


@pytest.fixture
def confirmation_factory():
    return make_confirmation


@pytest.fixture
def engine_caplog(caplog):
    caplog.set_level(logging.DEBUG, logger="modal_engine")
    return caplog
