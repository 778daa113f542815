"""Approval decisions with an append-only audit history."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from modal_engine.api.actions import CallbackInvoker, DispatchStatus
from modal_engine.api.approval import ApprovalDecision, ApprovalHistoryEntry, append_history
from modal_engine.api.modals import ApprovalModal
from modal_engine.api.registry import ModalRegistry
from modal_engine.runtime.logging import log_event

_LOG = logging.getLogger("modal_engine.approval")
_SOURCE = "ApprovalController"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RuntimeApprovalController:
    """Run approval callbacks and record each successful decision in the modal history.

    History entries are only appended once the consumer callback has succeeded;
    an approval also advances ``current_step`` until the last approval stage.
    """

    def __init__(
        self,
        registry: ModalRegistry,
        *,
        invoker: CallbackInvoker,
        logger: logging.Logger | None = None,
        clock: Clock = _utc_now,
    ) -> None:
        self._registry = registry
        self._invoker = invoker
        self._logger = logger or _LOG
        self._clock = clock

    def approve(self, modal_id: str, *, actor: str, comment: str | None = None) -> DispatchStatus | None:
        config = self._resolve(modal_id, "approve")
        if config is None:
            return None
        return self._invoker.invoke(
            config.on_approve,
            config.item,
            comment,
            modal_id=modal_id,
            callback_id="on_approve",
            on_success=lambda: self._record(modal_id, "approved", actor, comment, advance=True),
        )

    def reject(self, modal_id: str, *, actor: str, reason: str | None = None) -> DispatchStatus | None:
        config = self._resolve(modal_id, "reject")
        if config is None:
            return None
        return self._invoker.invoke(
            config.on_reject,
            config.item,
            reason,
            modal_id=modal_id,
            callback_id="on_reject",
            on_success=lambda: self._record(modal_id, "rejected", actor, reason),
        )

    def request_changes(self, modal_id: str, *, actor: str, changes: str) -> DispatchStatus | None:
        config = self._resolve(modal_id, "request_changes")
        if config is None:
            return None
        callback = config.on_request_changes
        if callback is None:
            log_event(
                self._logger,
                logging.WARNING,
                "approval modal does not accept change requests",
                category="UI",
                source=_SOURCE,
                modal_id=modal_id,
            )
            return None
        items = tuple(line.strip() for line in changes.splitlines() if line.strip())
        return self._invoker.invoke(
            callback,
            config.item,
            changes,
            modal_id=modal_id,
            callback_id="on_request_changes",
            on_success=lambda: self._record(
                modal_id, "requested_changes", actor, changes, changes=items
            ),
        )

    def submit(self, modal_id: str, *, actor: str, comment: str | None = None) -> bool:
        """Record a submission entry; no consumer callback is involved."""
        if self._resolve(modal_id, "submit") is None:
            return False
        return self._record(modal_id, "submitted", actor, comment)

    def _resolve(self, modal_id: str, operation: str) -> ApprovalModal | None:
        config = self._registry.get(modal_id)
        if isinstance(config, ApprovalModal):
            return config
        log_event(
            self._logger,
            logging.WARNING,
            f"approval {operation} ignored: no active approval modal",
            category="UI",
            source=_SOURCE,
            modal_id=modal_id,
        )
        return None

    def _record(
        self,
        modal_id: str,
        action: ApprovalDecision,
        actor: str,
        comment: str | None,
        *,
        advance: bool = False,
        changes: tuple[str, ...] = (),
    ) -> bool:
        # Async callbacks may settle after the modal is gone.
        config = self._registry.get(modal_id)
        if not isinstance(config, ApprovalModal):
            log_event(
                self._logger,
                logging.INFO,
                "approval decision not recorded: modal closed",
                category="UI",
                source=_SOURCE,
                modal_id=modal_id,
                decision=action,
            )
            return False
        entry = ApprovalHistoryEntry(
            id=uuid.uuid4().hex,
            action=action,
            actor=actor,
            timestamp=self._clock(),
            comment=comment,
            changes=changes,
        )
        current_step = config.current_step
        if advance and config.approval_steps:
            current_step = min(current_step + 1, len(config.approval_steps) - 1)
        self._registry.update(
            modal_id,
            history=append_history(config.history, entry),
            current_step=current_step,
        )
        log_event(
            self._logger,
            logging.INFO,
            "approval decision recorded",
            category="UI",
            source=_SOURCE,
            modal_id=modal_id,
            decision=action,
            actor=actor,
            history_length=len(config.history) + 1,
        )
        return True


ApprovalController = RuntimeApprovalController
