"""Public approval-variant data contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

ApprovalDecision = Literal["approved", "rejected", "requested_changes", "submitted"]


@dataclass(frozen=True, slots=True)
class ApprovalStep:
    """One stage of an approval circuit."""

    id: str
    title: str
    description: str | None = None
    required: bool = True
    is_complete: bool = False


@dataclass(frozen=True, slots=True)
class ApprovalHistoryEntry:
    """Immutable audit record of one approval decision."""

    id: str
    action: ApprovalDecision
    actor: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    comment: str | None = None
    changes: tuple[str, ...] = ()


def append_history(
    history: tuple[ApprovalHistoryEntry, ...], entry: ApprovalHistoryEntry
) -> tuple[ApprovalHistoryEntry, ...]:
    """Return a new history with ``entry`` appended; existing entries are untouched."""
    return (*history, entry)
