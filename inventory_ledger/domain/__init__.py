"""
Pure domain layer.

This package contains the catalog, DTOs and decision logic with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

Time enters only through an injected ``Clock``.
"""

from inventory_ledger.domain.catalog import (
    AUDIT_REASONS,
    AUDIT_TYPES,
    BATCH_TYPES,
    USER_ROLES,
    AdjustmentReason,
    AdjustmentType,
    BatchStatus,
    BatchType,
    Permission,
    UserRole,
)
from inventory_ledger.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_ledger.domain.dtos import (
    ActorContext,
    AdjustmentRecord,
    AdjustmentRequest,
    AuditBatch,
    AuditSession,
    AuditSummary,
    ReversalResult,
    RollupTotals,
    TransferResult,
    UnbalancedTransfer,
    ValidationError,
    ValidationResult,
)
from inventory_ledger.domain.policy import (
    can_approve,
    can_perform_adjustment,
    can_reverse,
    requires_approval,
    validate_adjustment_request,
)

__all__ = [
    # Catalog
    "AUDIT_REASONS",
    "AUDIT_TYPES",
    "BATCH_TYPES",
    "USER_ROLES",
    "AdjustmentReason",
    "AdjustmentType",
    "BatchStatus",
    "BatchType",
    "Permission",
    "UserRole",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # DTOs
    "ActorContext",
    "AdjustmentRecord",
    "AdjustmentRequest",
    "AuditBatch",
    "AuditSession",
    "AuditSummary",
    "ReversalResult",
    "RollupTotals",
    "TransferResult",
    "UnbalancedTransfer",
    "ValidationError",
    "ValidationResult",
    # Policy
    "can_approve",
    "can_perform_adjustment",
    "can_reverse",
    "requires_approval",
    "validate_adjustment_request",
]
