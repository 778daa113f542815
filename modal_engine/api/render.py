"""Public render-surface contracts shared by the engine and its render layer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from modal_engine.api.modals import ModalSize

ElementKind = Literal["text", "button", "input", "progress", "step", "custom"]
ElementTone = Literal["default", "destructive", "outline", "secondary", "ghost", "link", "muted"]


@dataclass(frozen=True, slots=True)
class SurfaceElement:
    """One renderable element inside a modal surface."""

    element_id: str
    kind: ElementKind
    label: str = ""
    intent: str | None = None
    enabled: bool = True
    focusable: bool = False
    tone: ElementTone = "default"
    value: object | None = None


@runtime_checkable
class RenderStrategy(Protocol):
    """Produces the body elements of a form, display content or workflow step."""

    def render_body(self, props: Mapping[str, object]) -> tuple[SurfaceElement, ...]:
        """Return body elements for the given props."""


@dataclass(frozen=True, slots=True)
class StaticBody:
    """Render strategy returning a fixed element tuple regardless of props."""

    elements: tuple[SurfaceElement, ...] = ()

    def render_body(self, props: Mapping[str, object]) -> tuple[SurfaceElement, ...]:
        return self.elements


def text_body(text: str, *, element_id: str = "content") -> StaticBody:
    """Build a single-paragraph body."""
    return StaticBody(elements=(SurfaceElement(element_id=element_id, kind="text", label=text),))


@dataclass(frozen=True, slots=True)
class ModalSurface:
    """Headless view of one active modal instance."""

    modal_id: str
    modal_type: str
    title: str
    size: "ModalSize"
    closable: bool
    description: str | None = None
    scrollable: bool = False
    body: tuple[SurfaceElement, ...] = ()
    footer: tuple[SurfaceElement, ...] = ()

    def element(self, element_id: str) -> SurfaceElement | None:
        for item in (*self.body, *self.footer):
            if item.element_id == element_id:
                return item
        return None

    def first_focusable(self) -> SurfaceElement | None:
        """Return the first focusable element, body before footer."""
        for item in (*self.body, *self.footer):
            if item.focusable and item.enabled:
                return item
        return None


class ModalRenderer(Protocol):
    """Turns the registry snapshot into surfaces and routes user intents back."""

    def render(self) -> tuple[ModalSurface, ...]:
        """Return one surface per active modal, oldest first."""

    def handle_intent(
        self,
        modal_id: str,
        element_id: str,
        payload: Mapping[str, object] | None = None,
    ) -> bool:
        """Apply one user gesture. Return whether it was handled."""
