"""Convenience constructors for the common modal variants."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from modal_engine.api.actions import ModalAction
from modal_engine.api.modals import (
    AsyncResult,
    ConfirmationModal,
    ConfirmationTone,
    DisplayModal,
    FormModal,
    ModalSize,
)
from modal_engine.api.registry import ModalRegistry
from modal_engine.api.render import RenderStrategy, text_body


def _next_id(kind: str, id_factory: Callable[[str], str] | None) -> str:
    if id_factory is not None:
        return id_factory(kind)
    from modal_engine.runtime.ids import new_modal_id

    return new_modal_id(kind)


def open_confirmation(
    registry: ModalRegistry,
    title: str,
    message: str,
    on_confirm: Callable[[], AsyncResult],
    *,
    confirm_text: str = "Confirm",
    cancel_text: str = "Cancel",
    tone: ConfirmationTone = "default",
    id_factory: Callable[[str], str] | None = None,
) -> str:
    """Open a confirmation modal and return its id."""
    modal_id = _next_id("confirmation", id_factory)
    registry.open(
        ConfirmationModal(
            id=modal_id,
            title=title,
            message=message,
            confirm_text=confirm_text,
            cancel_text=cancel_text,
            tone=tone,
            on_confirm=on_confirm,
            size="md",
        )
    )
    return modal_id


def open_form(
    registry: ModalRegistry,
    title: str,
    form: RenderStrategy,
    on_submit: Callable[[Mapping[str, object]], AsyncResult],
    *,
    size: ModalSize = "lg",
    form_props: Mapping[str, object] | None = None,
    submit_text: str = "Save",
    cancel_text: str = "Cancel",
    id_factory: Callable[[str], str] | None = None,
) -> str:
    """Open a form modal and return its id."""
    modal_id = _next_id("form", id_factory)
    registry.open(
        FormModal(
            id=modal_id,
            title=title,
            form=form,
            form_props=dict(form_props or {}),
            submit_text=submit_text,
            cancel_text=cancel_text,
            on_submit=on_submit,
            size=size,
        )
    )
    return modal_id


def open_display(
    registry: ModalRegistry,
    title: str,
    content: RenderStrategy | str,
    *,
    size: ModalSize = "lg",
    description: str | None = None,
    scrollable: bool = True,
    actions: tuple[ModalAction, ...] = (),
    id_factory: Callable[[str], str] | None = None,
) -> str:
    """Open a display modal and return its id. Plain strings become a text body."""
    modal_id = _next_id("display", id_factory)
    registry.open(
        DisplayModal(
            id=modal_id,
            title=title,
            description=description,
            content=text_body(content) if isinstance(content, str) else content,
            scrollable=scrollable,
            footer_actions=actions,
            size=size,
        )
    )
    return modal_id
