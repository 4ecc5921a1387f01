"""
Batch and approval lifecycles -- pure state-machine tables.

Batch lifecycle:

    pending ──> processing ──> completed
       │             │
       └──> failed <─┘

``completed`` and ``failed`` are terminal.  The first adjustment recorded
against a pending batch moves it to processing.

Adjustment approval lifecycle (derived, never stored as a status column):

    not_required
    pending  ──approve──> approved
       └──────reverse───> reversed
    approved ──reverse──> reversed
"""

from __future__ import annotations

from enum import Enum

from inventory_ledger.domain.catalog import BatchStatus
from inventory_ledger.domain.dtos import AdjustmentRecord

BATCH_TRANSITIONS: dict[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.PENDING: frozenset({
        BatchStatus.PROCESSING,
        BatchStatus.FAILED,
    }),
    BatchStatus.PROCESSING: frozenset({
        BatchStatus.COMPLETED,
        BatchStatus.FAILED,
    }),
    BatchStatus.COMPLETED: frozenset(),
    BatchStatus.FAILED: frozenset(),
}

TERMINAL_BATCH_STATUSES: frozenset[BatchStatus] = frozenset({
    BatchStatus.COMPLETED,
    BatchStatus.FAILED,
})

# Statuses a batch may still accept adjustments in.
OPEN_BATCH_STATUSES: frozenset[BatchStatus] = frozenset({
    BatchStatus.PENDING,
    BatchStatus.PROCESSING,
})


def can_transition_batch(current: BatchStatus, target: BatchStatus) -> bool:
    return target in BATCH_TRANSITIONS.get(current, frozenset())


class ApprovalState(str, Enum):
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    APPROVED = "approved"
    REVERSED = "reversed"


def approval_state(record: AdjustmentRecord) -> ApprovalState:
    """Where ``record`` sits in the approval lifecycle."""
    if record.is_reversed:
        return ApprovalState.REVERSED
    if not record.requires_approval:
        return ApprovalState.NOT_REQUIRED
    if record.approved_at is None:
        return ApprovalState.PENDING
    return ApprovalState.APPROVED
