"""
Module: inventory_ledger.models.audit_batch
Responsibility: ORM persistence for audit batches (bulk adjustment, cycle
    count, transfer and receiving runs).

Invariants enforced:
    - status follows domain.workflow.BATCH_TRANSITIONS (service layer);
      the DB check constraint limits the values.
    - processed_items, total_quantity_change and total_cost_impact equal
      the count/sums over records with a matching batch_id.
    - ``version`` is the optimistic-concurrency counter.
    - Terminal batches (completed, failed) are immutable.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_ledger.db.base import Base, UUIDString

if TYPE_CHECKING:
    from inventory_ledger.domain.dtos import AuditBatch


class AuditBatchModel(Base):
    """Persistent audit batch."""

    __tablename__ = "audit_batches"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'completed', 'failed')",
            name="ck_audit_batches_valid_status",
        ),
        CheckConstraint(
            "batch_type IN ('bulk_adjustment', 'cycle_count', 'transfer', 'receiving')",
            name="ck_audit_batches_valid_type",
        ),
        Index("ix_audit_batches_store_status", "store_id", "status"),
    )

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    session_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("audit_sessions.id"), nullable=True,
    )
    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    batch_type: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    total_items: Mapped[int] = mapped_column(nullable=False, default=0)
    processed_items: Mapped[int] = mapped_column(nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    created_at: Mapped[datetime] = mapped_column(nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    total_quantity_change: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    total_cost_impact: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    error_count: Mapped[int] = mapped_column(nullable=False, default=0)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<AuditBatch {self.id} {self.batch_type} status={self.status}>"

    def to_dto(self) -> AuditBatch:
        """Convert ORM model to frozen domain DTO."""
        from inventory_ledger.domain.catalog import BatchStatus, BatchType
        from inventory_ledger.domain.dtos import AuditBatch

        return AuditBatch(
            id=self.id,
            store_id=self.store_id,
            batch_type=BatchType(self.batch_type),
            status=BatchStatus(self.status),
            created_at=self.created_at,
            total_items=self.total_items,
            processed_items=self.processed_items,
            total_quantity_change=self.total_quantity_change,
            total_cost_impact=self.total_cost_impact,
            error_count=self.error_count,
            session_id=self.session_id,
            user_id=self.user_id,
            user_name=self.user_name,
            description=self.description,
            completed_at=self.completed_at,
            notes=self.notes,
        )
