"""Public accessibility and focus contracts for the render host."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from modal_engine.api.render import ModalSurface

if TYPE_CHECKING:
    from modal_engine.api.registry import ModalRegistry


class FocusHost(Protocol):
    """Host keyboard/focus primitives the engine drives."""

    def focus_element(self, modal_id: str, element_id: str) -> None:
        """Move keyboard focus to one element of a rendered modal."""

    def set_background_scroll_locked(self, locked: bool) -> None:
        """Suppress or restore scrolling behind the modal stack."""


class ModalFocusController(Protocol):
    """Applies focus, Escape and scroll-lock rules to the rendered stack."""

    def sync(self, surfaces: tuple[ModalSurface, ...]) -> None:
        """Reconcile host focus and scroll state with the current stack."""

    def handle_key(self, key_name: str) -> bool:
        """Route one key press. Return whether it was consumed."""


def create_focus_controller(
    registry: "ModalRegistry",
    host: FocusHost | None,
    *,
    focus_on_open: bool = True,
    lock_background_scroll: bool = True,
) -> ModalFocusController:
    """Create default focus controller implementation."""
    from modal_engine.runtime.focus import RuntimeModalFocusController

    return RuntimeModalFocusController(
        registry,
        host,
        focus_on_open=focus_on_open,
        lock_background_scroll=lock_background_scroll,
    )
