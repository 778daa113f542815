"""Modal and workflow orchestration engine."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modal_engine.api.context import ModalRuntime
    from modal_engine.runtime.config import ModalEngineConfig


def start(config: "ModalEngineConfig | None" = None) -> "ModalRuntime":
    """Configure logging from the environment and return a wired runtime.

    The runtime's ``log_history`` holds the in-memory record history when one is installed.
    """
    from modal_engine.runtime.config import get_modal_config
    from modal_engine.runtime.context import RuntimeModalRuntime
    from modal_engine.runtime.logging import setup_modal_logging

    resolved = config or get_modal_config()
    history = setup_modal_logging(resolved.logging)
    return RuntimeModalRuntime(resolved, log_history=history)


__all__ = ["start"]
