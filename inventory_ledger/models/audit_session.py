"""
Module: inventory_ledger.models.audit_session
Responsibility: ORM persistence for audit sessions, the per-user working
    periods that group adjustments and carry their running totals.

Invariants enforced:
    - Rollups (total_adjustments, total_quantity_change, total_cost_impact)
      equal the count/sums over records with a matching session_id.  They
      are recomputed from records by the Aggregator, never incremented.
    - ``version`` is the optimistic-concurrency counter (version_id_col).
      A stale write raises StaleDataError, surfaced as OptimisticLockError.
    - A closed session (is_active False) is immutable.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_ledger.db.base import Base

if TYPE_CHECKING:
    from inventory_ledger.domain.dtos import AuditSession


class AuditSessionModel(Base):
    """Persistent audit session."""

    __tablename__ = "audit_sessions"

    __table_args__ = (
        Index("ix_audit_sessions_active", "store_id", "user_id", "is_active"),
    )

    store_id: Mapped[str] = mapped_column(String(100), nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    user_role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    device_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    started_at: Mapped[datetime] = mapped_column(nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    total_adjustments: Mapped[int] = mapped_column(nullable=False, default=0)
    total_quantity_change: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    total_cost_impact: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        state = "active" if self.is_active else "closed"
        return f"<AuditSession {self.id} store={self.store_id} user={self.user_id} {state}>"

    def to_dto(self) -> AuditSession:
        """Convert ORM model to frozen domain DTO."""
        from inventory_ledger.domain.catalog import UserRole
        from inventory_ledger.domain.dtos import AuditSession

        return AuditSession(
            id=self.id,
            store_id=self.store_id,
            started_at=self.started_at,
            is_active=self.is_active,
            total_adjustments=self.total_adjustments,
            total_quantity_change=self.total_quantity_change,
            total_cost_impact=self.total_cost_impact,
            user_id=self.user_id,
            user_name=self.user_name,
            user_role=UserRole(self.user_role) if self.user_role else None,
            device_id=self.device_id,
            ip_address=self.ip_address,
            ended_at=self.ended_at,
            notes=self.notes,
        )
