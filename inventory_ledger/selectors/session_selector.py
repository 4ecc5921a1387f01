"""
Module: inventory_ledger.selectors.session_selector
Responsibility: Read-only queries over audit sessions and audit batches.

The active session for a user is always resolved from the database, so two
facades for the same user on different devices agree on it.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from inventory_ledger.domain.catalog import BatchStatus
from inventory_ledger.domain.dtos import AuditBatch, AuditSession
from inventory_ledger.domain.workflow import OPEN_BATCH_STATUSES
from inventory_ledger.models.audit_batch import AuditBatchModel
from inventory_ledger.models.audit_session import AuditSessionModel
from inventory_ledger.selectors.base import DEFAULT_QUERY_LIMIT, BaseSelector


class AuditSessionSelector(BaseSelector[AuditSessionModel]):
    """Selector for audit session queries."""

    def get(self, session_id: UUID) -> AuditSession | None:
        model = self.session.get(AuditSessionModel, session_id)
        return model.to_dto() if model is not None else None

    def active_sessions(self, store_id: str) -> list[AuditSession]:
        rows = self.session.execute(
            select(AuditSessionModel)
            .where(
                AuditSessionModel.store_id == store_id,
                AuditSessionModel.is_active.is_(True),
            )
            .order_by(AuditSessionModel.started_at)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def get_active_for_user(self, store_id: str, user_id: str | None) -> AuditSession | None:
        """The user's open session in this store, if any."""
        stmt = select(AuditSessionModel).where(
            AuditSessionModel.store_id == store_id,
            AuditSessionModel.is_active.is_(True),
        )
        if user_id is None:
            stmt = stmt.where(AuditSessionModel.user_id.is_(None))
        else:
            stmt = stmt.where(AuditSessionModel.user_id == user_id)
        model = self.session.execute(
            stmt.order_by(AuditSessionModel.started_at.desc()).limit(1)
        ).scalar_one_or_none()
        return model.to_dto() if model is not None else None

    def history(self, store_id: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[AuditSession]:
        """Sessions for a store, most recently started first."""
        rows = self.session.execute(
            select(AuditSessionModel)
            .where(AuditSessionModel.store_id == store_id)
            .order_by(AuditSessionModel.started_at.desc())
            .limit(limit)
        ).scalars().all()
        return [row.to_dto() for row in rows]


class AuditBatchSelector(BaseSelector[AuditBatchModel]):
    """Selector for audit batch queries."""

    def get(self, batch_id: UUID) -> AuditBatch | None:
        model = self.session.get(AuditBatchModel, batch_id)
        return model.to_dto() if model is not None else None

    def open_batches(self, store_id: str) -> list[AuditBatch]:
        """Pending and processing batches, oldest first."""
        rows = self.session.execute(
            select(AuditBatchModel)
            .where(
                AuditBatchModel.store_id == store_id,
                AuditBatchModel.status.in_([s.value for s in OPEN_BATCH_STATUSES]),
            )
            .order_by(AuditBatchModel.created_at)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def by_status(
        self,
        store_id: str,
        status: BatchStatus,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[AuditBatch]:
        rows = self.session.execute(
            select(AuditBatchModel)
            .where(
                AuditBatchModel.store_id == store_id,
                AuditBatchModel.status == BatchStatus(status).value,
            )
            .order_by(AuditBatchModel.created_at.desc())
            .limit(limit)
        ).scalars().all()
        return [row.to_dto() for row in rows]
