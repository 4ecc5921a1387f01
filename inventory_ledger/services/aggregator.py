"""
Aggregator -- maintains audit session and audit batch rollups.

Responsibility:
    Keeps the stored totals on sessions and batches equal to the
    count/sums over their records.  ``refresh_session``/``refresh_batch``
    recompute from the ledger through ``AdjustmentSelector`` and persist
    the result; ``update_audit_session``/``update_audit_batch`` are the
    thin mutation boundaries that write given totals.

Architecture position:
    Services -- imperative shell.  Called by the facade after every write.

Invariants enforced:
    - Rollups are recomputed, never incremented, so two writers adding
      records concurrently both end with the correct totals.
    - Sessions and batches carry a version counter (version_id_col).  A
      writer whose copy is stale gets OptimisticLockError and must retry
      on a fresh transaction.
    - A pending batch moves to processing once it has records.
    - Closed sessions and terminal batches are never updated.

Failure modes:
    - SessionNotFoundError / BatchNotFoundError.
    - SessionClosedError / BatchAlreadyCompletedError.
    - OptimisticLockError on a lost update race.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_ledger.domain.catalog import BatchStatus
from inventory_ledger.domain.dtos import AuditBatch, AuditSession, RollupTotals
from inventory_ledger.domain.workflow import TERMINAL_BATCH_STATUSES
from inventory_ledger.exceptions import (
    BatchAlreadyCompletedError,
    BatchNotFoundError,
    SessionClosedError,
    SessionNotFoundError,
)
from inventory_ledger.logging_config import get_logger
from inventory_ledger.models.audit_batch import AuditBatchModel
from inventory_ledger.models.audit_session import AuditSessionModel
from inventory_ledger.selectors.adjustment_selector import AdjustmentSelector
from inventory_ledger.services.base import BaseService

logger = get_logger("services.aggregator")


class Aggregator(BaseService[AuditSessionModel]):
    """Rollup maintenance for sessions and batches."""

    def __init__(self, session: Session, selector: AdjustmentSelector | None = None):
        super().__init__(session)
        self._selector = selector or AdjustmentSelector(session)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_session(self, session_id: UUID) -> AuditSessionModel:
        model = self.session.execute(
            select(AuditSessionModel).where(AuditSessionModel.id == session_id)
        ).scalar_one_or_none()
        if model is None:
            raise SessionNotFoundError(str(session_id))
        return model

    def load_batch(self, batch_id: UUID) -> AuditBatchModel:
        model = self.session.execute(
            select(AuditBatchModel).where(AuditBatchModel.id == batch_id)
        ).scalar_one_or_none()
        if model is None:
            raise BatchNotFoundError(str(batch_id))
        return model

    def _open_session(self, session_id: UUID) -> AuditSessionModel:
        model = self.load_session(session_id)
        if not model.is_active:
            raise SessionClosedError(str(session_id))
        return model

    def _open_batch(self, batch_id: UUID) -> AuditBatchModel:
        model = self.load_batch(batch_id)
        if BatchStatus(model.status) in TERMINAL_BATCH_STATUSES:
            raise BatchAlreadyCompletedError(str(batch_id), model.status)
        return model

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def update_audit_session(self, session_id: UUID, totals: RollupTotals) -> AuditSession:
        """Persist ``totals`` on an active session."""
        model = self._open_session(session_id)
        model.total_adjustments = totals.total_adjustments
        model.total_quantity_change = totals.total_quantity_change
        model.total_cost_impact = totals.total_cost_impact
        self._flush_versioned("AuditSession", session_id)
        logger.debug(
            "session_totals_updated",
            extra={
                "session_id": str(session_id),
                "total_adjustments": totals.total_adjustments,
                "total_quantity_change": totals.total_quantity_change,
                "total_cost_impact": totals.total_cost_impact,
            },
        )
        return model.to_dto()

    def refresh_session(self, session_id: UUID) -> AuditSession:
        """Recompute a session's totals from its records and persist them."""
        return self.update_audit_session(session_id, self._selector.session_totals(session_id))

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def update_audit_batch(
        self,
        batch_id: UUID,
        totals: RollupTotals,
        error_count: int | None = None,
    ) -> AuditBatch:
        """
        Persist ``totals`` on a pending or processing batch.

        ``totals.total_adjustments`` is stored as ``processed_items``.  A
        pending batch with at least one record becomes processing.
        """
        model = self._open_batch(batch_id)
        model.processed_items = totals.total_adjustments
        model.total_quantity_change = totals.total_quantity_change
        model.total_cost_impact = totals.total_cost_impact
        if error_count is not None:
            model.error_count = error_count
        if model.status == BatchStatus.PENDING.value and totals.total_adjustments > 0:
            model.status = BatchStatus.PROCESSING.value
            logger.info(
                "batch_processing_started",
                extra={"batch_id": str(batch_id)},
            )
        self._flush_versioned("AuditBatch", batch_id)
        return model.to_dto()

    def refresh_batch(self, batch_id: UUID) -> AuditBatch:
        """Recompute a batch's totals from its records and persist them."""
        return self.update_audit_batch(batch_id, self._selector.batch_totals(batch_id))

    def record_batch_error(self, batch_id: UUID, count: int = 1) -> AuditBatch:
        """Count ``count`` failed items against a batch."""
        if count < 1:
            raise ValueError("count must be positive")
        model = self._open_batch(batch_id)
        model.error_count = model.error_count + count
        self._flush_versioned("AuditBatch", batch_id)
        logger.warning(
            "batch_item_failed",
            extra={"batch_id": str(batch_id), "error_count": model.error_count},
        )
        return model.to_dto()
