"""
Module: inventory_ledger.selectors.adjustment_selector
Responsibility: Read-only queries over the adjustment ledger: lookups,
    filtered history, pending approvals, rollup totals, the store summary,
    and the transfer pairing check.
Architecture position: Selectors.  The reactive subscription layer in the
    POS client polls or wraps these methods; nothing here pushes.

Invariants enforced:
    - Rollup totals are computed from records with SQL aggregates.  There are
      no stored totals on this read path.
    - Multi-record results are ordered by ``seq`` (creation order); "recent"
      queries are newest first.

Failure modes:
    - Returns None or empty results when nothing matches; never raises on
      absence of data.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_ledger.domain.catalog import (
    AdjustmentReason,
    AdjustmentType,
)
from inventory_ledger.domain.dtos import (
    AdjustmentRecord,
    AuditSummary,
    RollupTotals,
    UnbalancedTransfer,
)
from inventory_ledger.models.adjustment import AdjustmentModel
from inventory_ledger.selectors.base import DEFAULT_QUERY_LIMIT, BaseSelector


def _pending_filter():
    return (
        AdjustmentModel.requires_approval.is_(True),
        AdjustmentModel.approved_at.is_(None),
        AdjustmentModel.is_reversed.is_(False),
    )


class AdjustmentSelector(BaseSelector[AdjustmentModel]):
    """
    Selector for adjustment record queries.

    Guarantees:
        - Read-only: No mutations are performed.
        - Every public method returns AdjustmentRecord DTOs or totals.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _records(self, stmt) -> list[AdjustmentRecord]:
        return [m.to_dto() for m in self.session.execute(stmt).scalars().all()]

    def _totals(self, *criteria) -> RollupTotals:
        row = self.session.execute(
            select(
                func.count(AdjustmentModel.id),
                func.coalesce(func.sum(AdjustmentModel.quantity_change), 0),
                func.coalesce(func.sum(AdjustmentModel.total_cost_impact), 0),
            ).where(*criteria)
        ).one()
        return RollupTotals(
            total_adjustments=int(row[0]),
            total_quantity_change=Decimal(str(row[1])),
            total_cost_impact=Decimal(str(row[2])),
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, adjustment_id: UUID) -> AdjustmentRecord | None:
        model = self.session.get(AdjustmentModel, adjustment_id)
        return model.to_dto() if model is not None else None

    def by_reference(self, reference: str, store_id: str | None = None) -> list[AdjustmentRecord]:
        """All records sharing ``reference`` (e.g. both legs of a transfer)."""
        stmt = select(AdjustmentModel).where(AdjustmentModel.reference == reference)
        if store_id is not None:
            stmt = stmt.where(AdjustmentModel.store_id == store_id)
        return self._records(stmt.order_by(AdjustmentModel.seq))

    def by_session(self, session_id: UUID) -> list[AdjustmentRecord]:
        return self._records(
            select(AdjustmentModel)
            .where(AdjustmentModel.session_id == session_id)
            .order_by(AdjustmentModel.seq)
        )

    def by_batch(self, batch_id: UUID) -> list[AdjustmentRecord]:
        return self._records(
            select(AdjustmentModel)
            .where(AdjustmentModel.batch_id == batch_id)
            .order_by(AdjustmentModel.seq)
        )

    def reversals_of(self, adjustment_id: UUID) -> list[AdjustmentRecord]:
        """Compensating records pointing back at ``adjustment_id``."""
        return self._records(
            select(AdjustmentModel)
            .where(AdjustmentModel.reversal_of_id == adjustment_id)
            .order_by(AdjustmentModel.seq)
        )

    def item_history(
        self,
        store_id: str,
        item_id: str,
        location_id: str | None = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[AdjustmentRecord]:
        """Movements of one item, newest first."""
        stmt = select(AdjustmentModel).where(
            AdjustmentModel.store_id == store_id,
            AdjustmentModel.item_id == item_id,
        )
        if location_id is not None:
            stmt = stmt.where(AdjustmentModel.location_id == location_id)
        return self._records(stmt.order_by(AdjustmentModel.seq.desc()).limit(limit))

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def recent(self, store_id: str, limit: int = 10) -> list[AdjustmentRecord]:
        """Most recent records for a store, newest first."""
        return self._records(
            select(AdjustmentModel)
            .where(AdjustmentModel.store_id == store_id)
            .order_by(AdjustmentModel.seq.desc())
            .limit(limit)
        )

    def pending_approvals(self, store_id: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[AdjustmentRecord]:
        """Records that require approval, are unapproved and not reversed."""
        return self._records(
            select(AdjustmentModel)
            .where(AdjustmentModel.store_id == store_id, *_pending_filter())
            .order_by(AdjustmentModel.seq)
            .limit(limit)
        )

    def count_pending_approvals(self, store_id: str) -> int:
        return self.session.execute(
            select(func.count(AdjustmentModel.id))
            .where(AdjustmentModel.store_id == store_id, *_pending_filter())
        ).scalar_one()

    def search(
        self,
        store_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        user_id: str | None = None,
        type: AdjustmentType | str | None = None,
        reason: AdjustmentReason | str | None = None,
        item_id: str | None = None,
        location_id: str | None = None,
        min_cost_impact: Decimal | None = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> list[AdjustmentRecord]:
        """
        Filtered history for a store, newest first.

        ``start``/``end`` are inclusive bounds on ``created_at``.
        ``min_cost_impact`` keeps records whose cost impact is at least the
        threshold; records without a unit cost never match it.
        """
        stmt = select(AdjustmentModel).where(AdjustmentModel.store_id == store_id)
        if start is not None:
            stmt = stmt.where(AdjustmentModel.created_at >= start)
        if end is not None:
            stmt = stmt.where(AdjustmentModel.created_at <= end)
        if user_id is not None:
            stmt = stmt.where(AdjustmentModel.user_id == user_id)
        if type is not None:
            stmt = stmt.where(AdjustmentModel.type == AdjustmentType(type).value)
        if reason is not None:
            stmt = stmt.where(AdjustmentModel.reason == AdjustmentReason(reason).value)
        if item_id is not None:
            stmt = stmt.where(AdjustmentModel.item_id == item_id)
        if location_id is not None:
            stmt = stmt.where(AdjustmentModel.location_id == location_id)
        if min_cost_impact is not None:
            stmt = stmt.where(AdjustmentModel.total_cost_impact >= min_cost_impact)
        return self._records(stmt.order_by(AdjustmentModel.seq.desc()).limit(limit))

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def session_totals(self, session_id: UUID) -> RollupTotals:
        return self._totals(AdjustmentModel.session_id == session_id)

    def batch_totals(self, batch_id: UUID) -> RollupTotals:
        return self._totals(AdjustmentModel.batch_id == batch_id)

    def store_totals(self, store_id: str) -> RollupTotals:
        return self._totals(AdjustmentModel.store_id == store_id)

    def summary(self, store_id: str, recent_limit: int = 10) -> AuditSummary:
        """Store-wide totals, pending approval count and recent activity."""
        totals = self.store_totals(store_id)
        return AuditSummary(
            store_id=store_id,
            total_adjustments=totals.total_adjustments,
            total_quantity_change=totals.total_quantity_change,
            total_cost_impact=totals.total_cost_impact,
            pending_approvals=self.count_pending_approvals(store_id),
            recent_records=tuple(self.recent(store_id, recent_limit)),
        )

    # ------------------------------------------------------------------
    # Consistency checks
    # ------------------------------------------------------------------

    def find_unbalanced_transfers(self, store_id: str) -> list[UnbalancedTransfer]:
        """
        Transfer references that do not have exactly one outgoing and one
        incoming leg of equal size.

        A correctly written transfer is always balanced; anything reported
        here was written outside the transfer coordinator.
        """
        rows = self.session.execute(
            select(AdjustmentModel)
            .where(
                AdjustmentModel.store_id == store_id,
                AdjustmentModel.type == AdjustmentType.TRANSFER.value,
            )
            .order_by(AdjustmentModel.seq)
        ).scalars().all()

        groups: dict[str, list[AdjustmentModel]] = {}
        for row in rows:
            groups.setdefault(row.reference or "", []).append(row)

        unbalanced: list[UnbalancedTransfer] = []
        for reference, legs in groups.items():
            out_legs = [
                leg for leg in legs
                if leg.reason == AdjustmentReason.TRANSFER_OUT.value
            ]
            in_legs = [
                leg for leg in legs
                if leg.reason == AdjustmentReason.TRANSFER_IN.value
            ]
            quantity_out = sum((-leg.quantity_change for leg in out_legs), Decimal("0"))
            quantity_in = sum((leg.quantity_change for leg in in_legs), Decimal("0"))
            balanced = (
                len(out_legs) == 1
                and len(in_legs) == 1
                and len(legs) == 2
                and quantity_out == quantity_in
            )
            if not balanced:
                unbalanced.append(UnbalancedTransfer(
                    reference=reference,
                    outgoing_legs=len(out_legs),
                    incoming_legs=len(in_legs),
                    quantity_out=quantity_out,
                    quantity_in=quantity_in,
                ))
        return unbalanced
