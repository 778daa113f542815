"""Focus, Escape and scroll-lock handling for the modal stack."""

from __future__ import annotations

import logging

from modal_engine.api.focus import FocusHost
from modal_engine.api.registry import ModalRegistry
from modal_engine.api.render import ModalSurface
from modal_engine.runtime.logging import log_event

_LOG = logging.getLogger("modal_engine.focus")
_SOURCE = "ModalFocusController"


def map_key_name(key_name: str) -> str | None:
    """Normalize host key names to engine key identifiers."""
    normalized = key_name.strip().lower()
    key_map = {
        "escape": "escape",
        "esc": "escape",
        "enter": "enter",
        "return": "enter",
        "tab": "tab",
    }
    return key_map.get(normalized)


class RuntimeModalFocusController:
    """Tracks the top-most surface and drives the host only on changes."""

    def __init__(
        self,
        registry: ModalRegistry,
        host: FocusHost | None,
        *,
        focus_on_open: bool = True,
        lock_background_scroll: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._registry = registry
        self._host = host
        self._focus_on_open = focus_on_open
        self._lock_background_scroll = lock_background_scroll
        self._logger = logger or _LOG
        self._top_id: str | None = None
        self._scroll_locked = False

    @property
    def top_modal_id(self) -> str | None:
        return self._top_id

    @property
    def scroll_locked(self) -> bool:
        return self._scroll_locked

    def sync(self, surfaces: tuple[ModalSurface, ...]) -> None:
        top = surfaces[-1] if surfaces else None
        top_id = None if top is None else top.modal_id
        if top is not None and top_id != self._top_id:
            self._focus_first(top)
        self._top_id = top_id
        self._set_scroll_locked(bool(surfaces))

    def handle_key(self, key_name: str) -> bool:
        if map_key_name(key_name) != "escape":
            return False
        top = self._registry.top()
        if top is None or not top.closable:
            return False
        log_event(
            self._logger,
            logging.DEBUG,
            "escape closes top modal",
            category="UI",
            source=_SOURCE,
            modal_id=top.id,
        )
        self._registry.close(top.id)
        return True

    def _focus_first(self, surface: ModalSurface) -> None:
        if not self._focus_on_open or self._host is None:
            return
        element = surface.first_focusable()
        if element is None:
            return
        self._host.focus_element(surface.modal_id, element.element_id)

    def _set_scroll_locked(self, locked: bool) -> None:
        if not self._lock_background_scroll or locked == self._scroll_locked:
            return
        self._scroll_locked = locked
        if self._host is not None:
            self._host.set_background_scroll_locked(locked)
        log_event(
            self._logger,
            logging.DEBUG,
            "background scroll locked" if locked else "background scroll restored",
            category="UI",
            source=_SOURCE,
        )


ModalFocusController = RuntimeModalFocusController
