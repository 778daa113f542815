"""Time-based modal id generation."""

from __future__ import annotations

import time
from collections.abc import Callable


class ModalIdFactory:
    """Produce ``<kind>_<epoch-ms>`` ids, bumping the timestamp to stay unique."""

    def __init__(self, clock_ms: Callable[[], int] | None = None) -> None:
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._last_ms = 0

    def new_id(self, kind: str) -> str:
        stamp = max(int(self._clock_ms()), self._last_ms + 1)
        self._last_ms = stamp
        return f"{kind}_{stamp}"


_DEFAULT_FACTORY = ModalIdFactory()


def new_modal_id(kind: str) -> str:
    return _DEFAULT_FACTORY.new_id(kind)
