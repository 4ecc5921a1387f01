"""SQLAlchemy ORM models for the inventory ledger."""

from inventory_ledger.models.adjustment import ADJUSTMENT_MUTABLE_FIELDS, AdjustmentModel
from inventory_ledger.models.audit_batch import AuditBatchModel
from inventory_ledger.models.audit_session import AuditSessionModel
from inventory_ledger.models.sequence import SequenceCounter

__all__ = [
    "ADJUSTMENT_MUTABLE_FIELDS",
    "AdjustmentModel",
    "AuditBatchModel",
    "AuditSessionModel",
    "SequenceCounter",
]
