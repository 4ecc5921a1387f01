"""
DTOs -- pure domain data transfer objects.

Responsibility:
    Immutable structures that cross the service boundary: the caller's
    ``ActorContext`` and ``AdjustmentRequest`` going in; ``AdjustmentRecord``,
    ``AuditSession``, ``AuditBatch`` and the composite results coming out.
    Services never hand ORM instances to callers.

Architecture position:
    Domain layer -- zero I/O.  ``from_model`` converters live on the ORM
    classes (``to_dto``), not here.

Data flow:
    AdjustmentRequest -> (policy, derivation) -> AdjustmentRecord
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from inventory_ledger.domain.catalog import (
    AdjustmentReason,
    AdjustmentType,
    BatchStatus,
    BatchType,
    UserRole,
)


# =========================================================================
# Inputs
# =========================================================================


@dataclass(frozen=True)
class ActorContext:
    """
    Who is acting, supplied by the identity provider.

    One ActorContext per caller (device/user).  Values are trusted as
    already authenticated; the ledger only authorizes.
    """

    store_id: str
    user_id: str | None = None
    user_name: str | None = None
    user_role: UserRole | str | None = None
    device_id: str | None = None
    ip_address: str | None = None


@dataclass(frozen=True)
class AdjustmentRequest:
    """
    Raw request for one ledger entry.

    Quantities and unit cost are left as supplied (``Any``) so that
    validation can report non-numeric input instead of failing on
    construction.  ``requires_approval`` is an optional caller override;
    when None the policy engine decides.
    """

    store_id: str
    item_id: str
    location_id: str
    quantity_before: Any
    quantity_after: Any
    type: AdjustmentType | str | None
    reason: AdjustmentReason | str | None = None
    reference: str | None = None
    notes: str | None = None
    unit_cost: Any = None
    user_id: str | None = None
    user_name: str | None = None
    user_role: UserRole | str | None = None
    device_id: str | None = None
    ip_address: str | None = None
    session_id: UUID | None = None
    batch_id: UUID | None = None
    requires_approval: bool | None = None
    adjustment_id: UUID | None = None
    reversal_of_id: UUID | None = None


# =========================================================================
# Validation
# =========================================================================


@dataclass(frozen=True)
class ValidationError:
    """A single failed validation rule."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validating a request.

    ``is_valid`` is True only when there are no errors.  ``bool(result)``
    is ``result.is_valid``.
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        return cls(is_valid=False, errors=errors)

    @property
    def messages(self) -> tuple[str, ...]:
        """Human-readable error strings, in rule order."""
        return tuple(e.message for e in self.errors)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    def __bool__(self) -> bool:
        return self.is_valid


# =========================================================================
# Ledger records
# =========================================================================


@dataclass(frozen=True)
class AdjustmentRecord:
    """
    One immutable ledger entry.

    ``quantity_change`` and ``total_cost_impact`` are always derived from
    ``quantity_before``/``quantity_after``/``unit_cost``.
    """

    id: UUID
    seq: int
    store_id: str
    item_id: str
    location_id: str
    quantity_before: Decimal
    quantity_after: Decimal
    quantity_change: Decimal
    type: AdjustmentType
    created_at: datetime
    requires_approval: bool
    reason: AdjustmentReason | None = None
    reference: str | None = None
    notes: str | None = None
    unit_cost: Decimal | None = None
    total_cost_impact: Decimal | None = None
    user_id: str | None = None
    user_name: str | None = None
    user_role: UserRole | None = None
    device_id: str | None = None
    ip_address: str | None = None
    session_id: UUID | None = None
    batch_id: UUID | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    approval_notes: str | None = None
    is_reversed: bool = False
    reversal_reference: str | None = None
    reversal_of_id: UUID | None = None
    version: int = 1

    @property
    def is_pending_approval(self) -> bool:
        return self.requires_approval and self.approved_at is None and not self.is_reversed


@dataclass(frozen=True)
class RollupTotals:
    """Count and sums over a set of adjustment records."""

    total_adjustments: int = 0
    total_quantity_change: Decimal = Decimal("0")
    total_cost_impact: Decimal = Decimal("0")


@dataclass(frozen=True)
class UnbalancedTransfer:
    """A transfer reference whose legs do not pair up."""

    reference: str
    outgoing_legs: int
    incoming_legs: int
    quantity_out: Decimal
    quantity_in: Decimal


@dataclass(frozen=True)
class AuditSession:
    id: UUID
    store_id: str
    started_at: datetime
    is_active: bool
    total_adjustments: int
    total_quantity_change: Decimal
    total_cost_impact: Decimal
    user_id: str | None = None
    user_name: str | None = None
    user_role: UserRole | None = None
    device_id: str | None = None
    ip_address: str | None = None
    ended_at: datetime | None = None
    notes: str | None = None

    @property
    def totals(self) -> RollupTotals:
        return RollupTotals(
            total_adjustments=self.total_adjustments,
            total_quantity_change=self.total_quantity_change,
            total_cost_impact=self.total_cost_impact,
        )


@dataclass(frozen=True)
class AuditBatch:
    id: UUID
    store_id: str
    batch_type: BatchType
    status: BatchStatus
    created_at: datetime
    total_items: int
    processed_items: int
    total_quantity_change: Decimal
    total_cost_impact: Decimal
    error_count: int
    session_id: UUID | None = None
    user_id: str | None = None
    user_name: str | None = None
    description: str | None = None
    completed_at: datetime | None = None
    notes: str | None = None

    @property
    def totals(self) -> RollupTotals:
        return RollupTotals(
            total_adjustments=self.processed_items,
            total_quantity_change=self.total_quantity_change,
            total_cost_impact=self.total_cost_impact,
        )


# =========================================================================
# Composite results
# =========================================================================


@dataclass(frozen=True)
class TransferResult:
    """Both legs of a transfer; they share ``reference``."""

    outgoing: AdjustmentRecord
    incoming: AdjustmentRecord

    @property
    def reference(self) -> str | None:
        return self.outgoing.reference

    def __iter__(self):
        return iter((self.outgoing, self.incoming))


@dataclass(frozen=True)
class ReversalResult:
    """The flagged original and the compensating entry that undoes it."""

    original: AdjustmentRecord
    reversal: AdjustmentRecord


@dataclass(frozen=True)
class AuditSummary:
    store_id: str
    total_adjustments: int
    total_quantity_change: Decimal
    total_cost_impact: Decimal
    pending_approvals: int
    recent_records: tuple[AdjustmentRecord, ...] = ()
