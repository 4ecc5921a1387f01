"""
LedgerWriter -- the only writer of adjustment records.

Responsibility:
    Persists adjustment records derived from validated requests, and
    applies the two permitted post-insert changes: approval sign-off and
    the reversed flag.  Every derived field comes from
    ``domain.derivation``; callers cannot supply quantity_change,
    total_cost_impact, created_at or seq.

Architecture position:
    Services -- imperative shell.  Called by the transfer coordinator and
    the orchestration facade.  Policy decisions (validation, approval
    requirement, approver role) are made by the caller before any write.

Invariants enforced:
    - Append-only: a record is INSERTed once.  Content fields never change.
    - Atomic multi-write: ``create_records`` adds every record before a
      single flush, so both legs of a transfer persist or neither does.
    - Idempotent retry: a request carrying an existing ``adjustment_id``
      with an identical payload returns the stored record unchanged.

Failure modes:
    - DuplicateAdjustmentError: adjustment_id reused with a different payload.
    - AdjustmentNotFoundError: approve/flag on a missing record.
    - IntegrityError and other persistence errors propagate unchanged.
      There are no retries.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_ledger.domain.clock import Clock, SystemClock
from inventory_ledger.domain.derivation import derive_record, payload_differences
from inventory_ledger.domain.dtos import AdjustmentRecord, AdjustmentRequest
from inventory_ledger.exceptions import AdjustmentNotFoundError, DuplicateAdjustmentError
from inventory_ledger.logging_config import LogContext, get_logger
from inventory_ledger.models.adjustment import AdjustmentModel
from inventory_ledger.services.base import BaseService
from inventory_ledger.services.sequence_service import SequenceService

logger = get_logger("services.ledger_writer")


class LedgerWriter(BaseService[AdjustmentModel]):
    """
    Writes adjustment records.

    Contract:
        ``create_record``/``create_records`` accept requests that have
        already passed ``validate_adjustment_request`` together with the
        approval decision for each.

    Non-goals:
        - Does NOT validate or authorize -- the facade does.
        - Does NOT update session/batch rollups -- the Aggregator does.
        - Does NOT commit.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequence_service: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequence_service or SequenceService(session)

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------

    def create_record(
        self,
        request: AdjustmentRequest,
        *,
        requires_approval: bool,
    ) -> AdjustmentRecord:
        """Derive and persist one record.  See ``create_records``."""
        (record,) = self.create_records([(request, requires_approval)])
        return record

    def create_records(
        self,
        items: Iterable[tuple[AdjustmentRequest, bool]],
    ) -> tuple[AdjustmentRecord, ...]:
        """
        Derive and persist several records in one flush.

        Args:
            items: ``(request, requires_approval)`` pairs, in write order.
                Sequence numbers are allocated in this order.

        Returns:
            The stored records, in the same order as ``items``.  Records
            that already existed (idempotent retry) are returned as stored.

        Raises:
            DuplicateAdjustmentError: An ``adjustment_id`` already exists
                with a different payload.
        """
        results: list[AdjustmentRecord | None] = []
        new_models: list[AdjustmentModel] = []
        new_positions: list[int] = []
        created_at = self._clock.now()

        for request, requires_approval in items:
            existing = self._existing(request, requires_approval, created_at)
            if existing is not None:
                results.append(existing)
                continue

            record = derive_record(
                request,
                adjustment_id=request.adjustment_id or uuid4(),
                seq=self._sequences.next_value(SequenceService.ADJUSTMENT),
                created_at=created_at,
                requires_approval=requires_approval,
            )
            new_models.append(AdjustmentModel.from_record(record))
            new_positions.append(len(results))
            results.append(record)

        if new_models:
            self.session.add_all(new_models)
            self.session.flush()

        for position in new_positions:
            record = results[position]
            with LogContext.bind(adjustment_id=record.id):
                logger.info(
                    "adjustment_recorded",
                    extra={
                        "seq": record.seq,
                        "adjustment_type": record.type,
                        "reason": record.reason,
                        "item_id": record.item_id,
                        "location_id": record.location_id,
                        "quantity_change": record.quantity_change,
                        "total_cost_impact": record.total_cost_impact,
                        "requires_approval": record.requires_approval,
                        "session_id": record.session_id,
                        "batch_id": record.batch_id,
                    },
                )

        return tuple(results)

    def _existing(
        self,
        request: AdjustmentRequest,
        requires_approval: bool,
        created_at: datetime,
    ) -> AdjustmentRecord | None:
        if request.adjustment_id is None:
            return None
        model = self.session.get(AdjustmentModel, request.adjustment_id)
        if model is None:
            return None

        stored = model.to_dto()
        candidate = derive_record(
            request,
            adjustment_id=stored.id,
            seq=stored.seq,
            created_at=created_at,
            requires_approval=requires_approval,
        )
        mismatched = payload_differences(stored, candidate)
        if mismatched:
            logger.warning(
                "adjustment_id_conflict",
                extra={
                    "adjustment_id": str(stored.id),
                    "mismatched_fields": mismatched,
                },
            )
            raise DuplicateAdjustmentError(str(stored.id), mismatched)

        logger.info(
            "adjustment_replayed",
            extra={"adjustment_id": str(stored.id), "seq": stored.seq},
        )
        return stored

    # ------------------------------------------------------------------
    # Workflow updates
    # ------------------------------------------------------------------

    def load_for_update(self, adjustment_id: UUID) -> AdjustmentModel:
        """Load a record with a row lock, or raise AdjustmentNotFoundError."""
        model = self.session.execute(
            select(AdjustmentModel)
            .where(AdjustmentModel.id == adjustment_id)
            .with_for_update()
        ).scalar_one_or_none()
        if model is None:
            raise AdjustmentNotFoundError(str(adjustment_id))
        return model

    def mark_approved(
        self,
        model: AdjustmentModel,
        *,
        approved_by: str | None,
        approval_notes: str | None = None,
    ) -> AdjustmentRecord:
        """Set the write-once approval fields and flush."""
        model.approved_by = approved_by
        model.approved_at = self._clock.now()
        model.approval_notes = approval_notes
        self.session.flush()
        return model.to_dto()

    def mark_reversed(self, model: AdjustmentModel, reversal_reference: str) -> AdjustmentRecord:
        """Flag a record as reversed.  False -> True only, once."""
        model.is_reversed = True
        model.reversal_reference = reversal_reference
        self.session.flush()
        return model.to_dto()
