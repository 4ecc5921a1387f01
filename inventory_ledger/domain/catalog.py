"""
Reason/type catalog (``inventory_ledger.domain.catalog``).

Responsibility
--------------
Closed enumerations for the four lookup catalogs (adjustment type, reason,
user role, batch type) plus the batch status and permission vocabularies,
each with a constant metadata map keyed by the enum.  Pure data.

Every metadata map is total over its enum; ``tests/domain/test_catalog.py``
checks that adding an enum member without catalog metadata fails.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class AdjustmentType(str, Enum):
    """Kind of stock movement an adjustment record describes."""

    ADJUSTMENT = "adjustment"
    SALE = "sale"
    RECEIVE = "receive"
    TRANSFER = "transfer"
    COUNT = "count"
    DAMAGE = "damage"
    RETURN = "return"
    CORRECTION = "correction"
    REVERSAL = "reversal"


class AdjustmentReason(str, Enum):
    DAMAGED = "damaged"
    EXPIRED = "expired"
    LOST = "lost"
    FOUND = "found"
    CORRECTION = "correction"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    SHRINKAGE = "shrinkage"
    PROMOTION = "promotion"
    SAMPLE = "sample"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    SYSTEM = "system"


class BatchType(str, Enum):
    BULK_ADJUSTMENT = "bulk_adjustment"
    CYCLE_COUNT = "cycle_count"
    TRANSFER = "transfer"
    RECEIVING = "receiving"


class BatchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Permission(str, Enum):
    ALL_ADJUSTMENTS = "all_adjustments"
    APPROVE_ADJUSTMENTS = "approve_adjustments"
    REVERSE_ADJUSTMENTS = "reverse_adjustments"
    BULK_OPERATIONS = "bulk_operations"
    MANUAL_ADJUSTMENTS = "manual_adjustments"
    APPROVE_SMALL_ADJUSTMENTS = "approve_small_adjustments"
    CYCLE_COUNTS = "cycle_counts"
    TRANSFERS = "transfers"
    BASIC_ADJUSTMENTS = "basic_adjustments"
    SALES = "sales"
    RECEIVING = "receiving"
    AUTOMATED_ADJUSTMENTS = "automated_adjustments"
    SYSTEM_CORRECTIONS = "system_corrections"


# =========================================================================
# Metadata records
# =========================================================================


@dataclass(frozen=True)
class ReasonInfo:
    label: str
    description: str
    requires_approval: bool = False


@dataclass(frozen=True)
class TypeInfo:
    label: str
    description: str
    icon: str = "📝"


@dataclass(frozen=True)
class RoleInfo:
    label: str
    permissions: frozenset[Permission]


@dataclass(frozen=True)
class BatchTypeInfo:
    label: str
    description: str


# =========================================================================
# Catalogs
# =========================================================================


AUDIT_REASONS: Mapping[AdjustmentReason, ReasonInfo] = MappingProxyType({
    AdjustmentReason.DAMAGED: ReasonInfo(
        "Damaged", "Items damaged or broken beyond use", requires_approval=True,
    ),
    AdjustmentReason.EXPIRED: ReasonInfo(
        "Expired", "Items past expiration date", requires_approval=True,
    ),
    AdjustmentReason.LOST: ReasonInfo(
        "Lost/Stolen", "Items lost, stolen, or missing", requires_approval=True,
    ),
    AdjustmentReason.FOUND: ReasonInfo(
        "Found", "Items found during inventory count",
    ),
    AdjustmentReason.CORRECTION: ReasonInfo(
        "Correction", "Data entry or system correction",
    ),
    AdjustmentReason.TRANSFER_IN: ReasonInfo(
        "Transfer In", "Incoming transfer from another location",
    ),
    AdjustmentReason.TRANSFER_OUT: ReasonInfo(
        "Transfer Out", "Outgoing transfer to another location",
    ),
    AdjustmentReason.SHRINKAGE: ReasonInfo(
        "Shrinkage", "Unexplained inventory loss", requires_approval=True,
    ),
    AdjustmentReason.PROMOTION: ReasonInfo(
        "Promotion", "Promotional giveaway or marketing sample",
    ),
    AdjustmentReason.SAMPLE: ReasonInfo(
        "Sample/Demo", "Used for demonstration or sampling",
    ),
})

AUDIT_TYPES: Mapping[AdjustmentType, TypeInfo] = MappingProxyType({
    AdjustmentType.ADJUSTMENT: TypeInfo(
        "Manual Adjustment", "Manual stock level adjustment", "⚖️",
    ),
    AdjustmentType.SALE: TypeInfo(
        "Sale", "Stock reduction from sale transaction", "💰",
    ),
    AdjustmentType.RECEIVE: TypeInfo(
        "Receiving", "Stock increase from receiving inventory", "📦",
    ),
    AdjustmentType.TRANSFER: TypeInfo(
        "Transfer", "Stock movement between locations", "🔄",
    ),
    AdjustmentType.COUNT: TypeInfo(
        "Cycle Count", "Adjustment from physical inventory count", "📊",
    ),
    AdjustmentType.DAMAGE: TypeInfo(
        "Damage", "Stock reduction due to damage", "💥",
    ),
    AdjustmentType.RETURN: TypeInfo(
        "Return", "Stock increase from customer return", "↩️",
    ),
    AdjustmentType.CORRECTION: TypeInfo(
        "Correction", "System or data correction", "🔧",
    ),
    AdjustmentType.REVERSAL: TypeInfo(
        "Reversal", "Compensating entry that undoes an earlier adjustment", "⏪",
    ),
})

USER_ROLES: Mapping[UserRole, RoleInfo] = MappingProxyType({
    UserRole.ADMIN: RoleInfo("Administrator", frozenset({
        Permission.ALL_ADJUSTMENTS,
        Permission.APPROVE_ADJUSTMENTS,
        Permission.REVERSE_ADJUSTMENTS,
        Permission.BULK_OPERATIONS,
    })),
    UserRole.MANAGER: RoleInfo("Manager", frozenset({
        Permission.MANUAL_ADJUSTMENTS,
        Permission.APPROVE_SMALL_ADJUSTMENTS,
        Permission.CYCLE_COUNTS,
        Permission.TRANSFERS,
    })),
    UserRole.STAFF: RoleInfo("Staff", frozenset({
        Permission.BASIC_ADJUSTMENTS,
        Permission.SALES,
        Permission.RECEIVING,
    })),
    UserRole.SYSTEM: RoleInfo("System", frozenset({
        Permission.AUTOMATED_ADJUSTMENTS,
        Permission.SALES,
        Permission.SYSTEM_CORRECTIONS,
    })),
})

BATCH_TYPES: Mapping[BatchType, BatchTypeInfo] = MappingProxyType({
    BatchType.BULK_ADJUSTMENT: BatchTypeInfo(
        "Bulk Adjustment", "Multiple inventory adjustments processed together",
    ),
    BatchType.CYCLE_COUNT: BatchTypeInfo(
        "Cycle Count", "Physical inventory count batch",
    ),
    BatchType.TRANSFER: BatchTypeInfo(
        "Transfer", "Inventory transfer between locations",
    ),
    BatchType.RECEIVING: BatchTypeInfo(
        "Receiving", "Batch receiving of inventory",
    ),
})

# Permission an actor needs to record each adjustment type.  ALL_ADJUSTMENTS
# satisfies every entry.  Types without a dedicated permission fall back to it.
TYPE_PERMISSIONS: Mapping[AdjustmentType, Permission] = MappingProxyType({
    AdjustmentType.ADJUSTMENT: Permission.MANUAL_ADJUSTMENTS,
    AdjustmentType.SALE: Permission.SALES,
    AdjustmentType.RECEIVE: Permission.RECEIVING,
    AdjustmentType.TRANSFER: Permission.TRANSFERS,
    AdjustmentType.COUNT: Permission.CYCLE_COUNTS,
    AdjustmentType.CORRECTION: Permission.SYSTEM_CORRECTIONS,
    AdjustmentType.DAMAGE: Permission.ALL_ADJUSTMENTS,
    AdjustmentType.RETURN: Permission.ALL_ADJUSTMENTS,
    AdjustmentType.REVERSAL: Permission.ALL_ADJUSTMENTS,
})

APPROVAL_REQUIRED_REASONS: frozenset[AdjustmentReason] = frozenset(
    reason for reason, info in AUDIT_REASONS.items() if info.requires_approval
)


# =========================================================================
# Coercion helpers
# =========================================================================


def _coerce(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def parse_type(value: AdjustmentType | str | None) -> AdjustmentType | None:
    """Return the AdjustmentType for ``value``, or None if unknown."""
    return _coerce(AdjustmentType, value)


def parse_reason(value: AdjustmentReason | str | None) -> AdjustmentReason | None:
    """Return the AdjustmentReason for ``value``, or None if unknown."""
    return _coerce(AdjustmentReason, value)


def parse_role(value: UserRole | str | None) -> UserRole | None:
    """Return the UserRole for ``value``, or None if unknown."""
    return _coerce(UserRole, value)


def role_permissions(role: UserRole | str | None) -> frozenset[Permission]:
    """Permission set for a role; unknown roles get none."""
    parsed = parse_role(role)
    if parsed is None:
        return frozenset()
    return USER_ROLES[parsed].permissions
