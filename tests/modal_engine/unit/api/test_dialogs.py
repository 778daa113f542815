from __future__ import annotations

from modal_engine.api.dialogs import open_confirmation, open_display, open_form
from modal_engine.api.modals import ConfirmationModal, DisplayModal, FormModal
from modal_engine.api.render import StaticBody
from modal_engine.runtime.ids import ModalIdFactory


def test_open_confirmation_uses_defaults(registry) -> None:
    modal_id = open_confirmation(
        registry,
        "Delete",
        "Delete record?",
        lambda: None,
        tone="destructive",
        id_factory=lambda kind: f"{kind}_1",
    )

    modal = registry.get(modal_id)
    assert modal_id == "confirmation_1"
    assert isinstance(modal, ConfirmationModal)
    assert modal.tone == "destructive"
    assert modal.confirm_text == "Confirm"
    assert modal.size == "md"


def test_open_form_defaults_to_large(registry) -> None:
    modal_id = open_form(registry, "Edit", StaticBody(), lambda data: None, form_props={"x": 1})

    modal = registry.get(modal_id)
    assert isinstance(modal, FormModal)
    assert modal.size == "lg"
    assert modal.form_props == {"x": 1}
    assert modal_id.startswith("form_")


def test_open_display_wraps_plain_text(registry) -> None:
    modal_id = open_display(registry, "Notice", "Saved.")

    modal = registry.get(modal_id)
    assert isinstance(modal, DisplayModal)
    assert modal.content.render_body({})[0].label == "Saved."


def test_id_factory_stays_unique_within_one_millisecond() -> None:
    factory = ModalIdFactory(clock_ms=lambda: 1000)
    assert [factory.new_id("form") for _ in range(3)] == ["form_1000", "form_1001", "form_1002"]
