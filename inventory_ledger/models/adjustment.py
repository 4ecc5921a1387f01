"""
Module: inventory_ledger.models.adjustment
Responsibility: ORM persistence for inventory adjustment records, the
    append-only ledger of every stock quantity change.

Architecture position: Models.  May import from db/base.py and domain DTOs.

Invariants enforced:
    - quantity_change and total_cost_impact are stored, but always derived
      by the writer; this model never computes them.
    - Quantities are non-negative (DB check constraint).
    - seq is unique; it totally orders records by creation.
    - Content fields are immutable after INSERT.  Only the approval fields
      (approved_by, approved_at, approval_notes) and reversal fields
      (is_reversed, reversal_reference) may change, and each only once.
      Enforced in db/immutability.py.

Failure modes:
    - IntegrityError on duplicate id or seq.
    - ImmutabilityViolationError on content UPDATE or any DELETE.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_ledger.db.base import Base, UUIDString

if TYPE_CHECKING:
    from inventory_ledger.domain.dtos import AdjustmentRecord

# Fields that may change after INSERT.  Everything else is frozen.
ADJUSTMENT_MUTABLE_FIELDS: frozenset[str] = frozenset({
    "approved_by",
    "approved_at",
    "approval_notes",
    "is_reversed",
    "reversal_reference",
})


class AdjustmentModel(Base):
    """Persistent adjustment record. Append-only apart from workflow fields."""

    __tablename__ = "inventory_adjustments"

    __table_args__ = (
        CheckConstraint("quantity_before >= 0", name="ck_adjustments_qty_before"),
        CheckConstraint("quantity_after >= 0", name="ck_adjustments_qty_after"),
        CheckConstraint(
            "type IN ('adjustment', 'sale', 'receive', 'transfer', 'count', "
            "'damage', 'return', 'correction', 'reversal')",
            name="ck_adjustments_valid_type",
        ),
        Index("ix_adjustments_store_created", "store_id", "created_at"),
        Index("ix_adjustments_store_pending", "store_id", "requires_approval", "approved_at"),
        Index("ix_adjustments_item_location", "item_id", "location_id"),
        Index("ix_adjustments_session", "session_id"),
        Index("ix_adjustments_batch", "batch_id"),
        Index("ix_adjustments_reference", "reference"),
    )

    seq: Mapped[int] = mapped_column(nullable=False, unique=True)

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    item_id: Mapped[str] = mapped_column(String(100), nullable=False)
    location_id: Mapped[str] = mapped_column(String(100), nullable=False)

    quantity_before: Mapped[Decimal] = mapped_column(nullable=False)
    quantity_after: Mapped[Decimal] = mapped_column(nullable=False)
    quantity_change: Mapped[Decimal] = mapped_column(nullable=False)

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    unit_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_cost_impact: Mapped[Decimal | None] = mapped_column(nullable=True)

    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    session_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("audit_sessions.id"), nullable=True,
    )
    batch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("audit_batches.id"), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approval_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_reversed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reversal_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("inventory_adjustments.id"), nullable=True,
    )

    version: Mapped[int] = mapped_column(nullable=False, default=1)

    def __repr__(self) -> str:
        return (
            f"<Adjustment {self.id} seq={self.seq} {self.type} "
            f"{self.item_id}@{self.location_id} change={self.quantity_change}>"
        )

    def to_dto(self) -> AdjustmentRecord:
        """Convert ORM model to frozen domain DTO."""
        from inventory_ledger.domain.catalog import (
            AdjustmentReason,
            AdjustmentType,
            UserRole,
        )
        from inventory_ledger.domain.dtos import AdjustmentRecord

        return AdjustmentRecord(
            id=self.id,
            seq=self.seq,
            store_id=self.store_id,
            item_id=self.item_id,
            location_id=self.location_id,
            quantity_before=self.quantity_before,
            quantity_after=self.quantity_after,
            quantity_change=self.quantity_change,
            type=AdjustmentType(self.type),
            reason=AdjustmentReason(self.reason) if self.reason else None,
            reference=self.reference,
            notes=self.notes,
            unit_cost=self.unit_cost,
            total_cost_impact=self.total_cost_impact,
            user_id=self.user_id,
            user_name=self.user_name,
            user_role=UserRole(self.user_role) if self.user_role else None,
            device_id=self.device_id,
            ip_address=self.ip_address,
            session_id=self.session_id,
            batch_id=self.batch_id,
            created_at=self.created_at,
            requires_approval=self.requires_approval,
            approved_by=self.approved_by,
            approved_at=self.approved_at,
            approval_notes=self.approval_notes,
            is_reversed=self.is_reversed,
            reversal_reference=self.reversal_reference,
            reversal_of_id=self.reversal_of_id,
            version=self.version,
        )

    @classmethod
    def from_record(cls, record: AdjustmentRecord) -> AdjustmentModel:
        """Create ORM model from a freshly derived record."""
        return cls(
            id=record.id,
            seq=record.seq,
            store_id=record.store_id,
            item_id=record.item_id,
            location_id=record.location_id,
            quantity_before=record.quantity_before,
            quantity_after=record.quantity_after,
            quantity_change=record.quantity_change,
            type=record.type.value,
            reason=record.reason.value if record.reason else None,
            reference=record.reference,
            notes=record.notes,
            unit_cost=record.unit_cost,
            total_cost_impact=record.total_cost_impact,
            user_id=record.user_id,
            user_name=record.user_name,
            user_role=record.user_role.value if record.user_role else None,
            device_id=record.device_id,
            ip_address=record.ip_address,
            session_id=record.session_id,
            batch_id=record.batch_id,
            created_at=record.created_at,
            requires_approval=record.requires_approval,
            approved_by=record.approved_by,
            approved_at=record.approved_at,
            approval_notes=record.approval_notes,
            is_reversed=record.is_reversed,
            reversal_reference=record.reversal_reference,
            reversal_of_id=record.reversal_of_id,
            version=record.version,
        )
