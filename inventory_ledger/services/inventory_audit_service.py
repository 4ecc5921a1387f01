"""
InventoryAuditService -- the orchestration facade over the ledger.

Responsibility:
    The public entry point for POS callers.  Every call runs as:

        ActorContext + arguments
          -> Policy Engine   (validate, authorize, decide approval)
          -> LedgerWriter    (derive + persist records)
          -> Aggregator      (recompute session/batch rollups)
          -> DTO result

    Also owns the session and batch lifecycles, approval sign-off and
    reversal.

Architecture position:
    Services -- imperative shell.  One instance per actor per unit of work.
    There are no module-level singletons: the actor, clock and settings
    are explicit constructor arguments.

Invariants enforced:
    - Nothing is written unless validation passes.
    - requires_approval is decided once, at creation, and never recomputed.
    - Approval is a second-party sign-off by a role allowed to approve an
      adjustment of that size; the decision is re-checked here, never
      trusted from the caller.
    - Reversal appends a compensating record and flags the original; the
      original's content is untouched.
    - At most one active audit session per (store, user).
    - Rollups equal the sums over records after every call.
    - Never commits; the caller owns the transaction.

Failure modes:
    See ``inventory_ledger.exceptions``.  Persistence errors propagate
    unchanged apart from StaleDataError -> OptimisticLockError.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_ledger.config.schema import (
    CycleCountSettings,
    LedgerSettings,
    SummarySettings,
    DEFAULT_THRESHOLDS,
)
from inventory_ledger.domain.catalog import (
    AdjustmentReason,
    AdjustmentType,
    BatchStatus,
    BatchType,
    parse_role,
)
from inventory_ledger.domain.clock import Clock, SystemClock
from inventory_ledger.domain.derivation import (
    compute_quantity_change,
    to_decimal,
    to_stored_decimal,
)
from inventory_ledger.domain.dtos import (
    ActorContext,
    AdjustmentRecord,
    AdjustmentRequest,
    AuditBatch,
    AuditSession,
    AuditSummary,
    ReversalResult,
    TransferResult,
)
from inventory_ledger.domain.formatting import format_quantity
from inventory_ledger.domain.policy import (
    approval_triggers,
    can_approve,
    can_reverse,
    validate_adjustment_request,
)
from inventory_ledger.domain.workflow import (
    TERMINAL_BATCH_STATUSES,
    can_transition_batch,
)
from inventory_ledger.exceptions import (
    AdjustmentAlreadyApprovedError,
    AdjustmentAlreadyReversedError,
    AdjustmentNotFoundError,
    AdjustmentValidationError,
    ApprovalNotRequiredError,
    BatchAlreadyCompletedError,
    BatchStoreMismatchError,
    InvalidBatchTransitionError,
    NoActiveSessionError,
    ReversalNotAllowedError,
    SelfApprovalError,
    SessionAlreadyActiveError,
    UnauthorizedApproverError,
    UnauthorizedReversalError,
)
from inventory_ledger.logging_config import LogContext, get_logger
from inventory_ledger.models.adjustment import AdjustmentModel
from inventory_ledger.models.audit_batch import AuditBatchModel
from inventory_ledger.models.audit_session import AuditSessionModel
from inventory_ledger.selectors.adjustment_selector import AdjustmentSelector
from inventory_ledger.selectors.session_selector import AuditSessionSelector
from inventory_ledger.services.aggregator import Aggregator
from inventory_ledger.services.base import BaseService
from inventory_ledger.services.ledger_writer import LedgerWriter
from inventory_ledger.services.sequence_service import SequenceService
from inventory_ledger.services.transfer_coordinator import TransferCoordinator

logger = get_logger("services.inventory_audit")

_COMPLETION_STATUSES = frozenset({BatchStatus.COMPLETED, BatchStatus.FAILED})


class InventoryAuditService(BaseService[AdjustmentModel]):
    """
    Facade for recording, approving and reversing inventory adjustments.

    Contract:
        Constructed per actor.  Every recorded adjustment is attributed to
        ``actor`` and tagged with the actor's active session, if any.

    Non-goals:
        - Does NOT read or store current stock levels; quantities before
          and after are supplied by the caller.
        - Does NOT authenticate; ``actor`` is trusted as verified.
        - Does NOT commit.
    """

    def __init__(
        self,
        session: Session,
        actor: ActorContext,
        clock: Clock | None = None,
        settings: LedgerSettings | None = None,
    ):
        super().__init__(session)
        self._actor = actor
        self._clock = clock or SystemClock()
        self._thresholds = settings.approval if settings else DEFAULT_THRESHOLDS
        self._cycle_count = settings.cycle_count if settings else CycleCountSettings()
        self._summary = settings.summary if settings else SummarySettings()

        self._selector = AdjustmentSelector(session)
        self._session_selector = AuditSessionSelector(session)
        self._writer = LedgerWriter(session, self._clock, SequenceService(session))
        self._aggregator = Aggregator(session, self._selector)
        self._transfers = TransferCoordinator(session, self._writer, self._thresholds)

    @property
    def actor(self) -> ActorContext:
        return self._actor

    def _log_context(self, **fields: Any):
        return LogContext.bind(
            store_id=self._actor.store_id,
            actor_id=self._actor.user_id,
            **fields,
        )

    # =========================================================================
    # Audit sessions
    # =========================================================================

    def get_active_session(self) -> AuditSession | None:
        """The actor's open session in this store, resolved from the database."""
        return self._session_selector.get_active_for_user(
            self._actor.store_id, self._actor.user_id,
        )

    def _active_session_id(self) -> UUID | None:
        active = self.get_active_session()
        return active.id if active is not None else None

    def start_audit_session(self, notes: str | None = None) -> AuditSession:
        """
        Open a session for the actor.

        Raises:
            SessionAlreadyActiveError: The actor already has an open session
                in this store.
        """
        existing = self.get_active_session()
        if existing is not None:
            raise SessionAlreadyActiveError(
                str(existing.id), self._actor.user_id, self._actor.store_id,
            )

        role = parse_role(self._actor.user_role)
        model = AuditSessionModel(
            store_id=self._actor.store_id,
            user_id=self._actor.user_id,
            user_name=self._actor.user_name,
            user_role=role.value if role else None,
            device_id=self._actor.device_id,
            ip_address=self._actor.ip_address,
            started_at=self._clock.now(),
            is_active=True,
            total_adjustments=0,
            total_quantity_change=Decimal("0"),
            total_cost_impact=Decimal("0"),
            notes=notes,
        )
        self.session.add(model)
        self._flush_versioned("AuditSession", model.id)

        with self._log_context(session_id=model.id):
            logger.info("session_started", extra={"device_id": self._actor.device_id})
        return model.to_dto()

    def end_audit_session(self, notes: str | None = None) -> AuditSession:
        """
        Close the actor's open session with final totals.

        Raises:
            NoActiveSessionError: The actor has no open session.
        """
        active = self.get_active_session()
        if active is None:
            raise NoActiveSessionError(self._actor.user_id, self._actor.store_id)

        model = self._aggregator.load_session(active.id)
        totals = self._selector.session_totals(active.id)
        model.total_adjustments = totals.total_adjustments
        model.total_quantity_change = totals.total_quantity_change
        model.total_cost_impact = totals.total_cost_impact
        model.ended_at = self._clock.now()
        model.is_active = False
        if notes is not None:
            model.notes = notes
        self._flush_versioned("AuditSession", model.id)

        with self._log_context(session_id=model.id):
            logger.info(
                "session_ended",
                extra={
                    "total_adjustments": totals.total_adjustments,
                    "total_quantity_change": totals.total_quantity_change,
                    "total_cost_impact": totals.total_cost_impact,
                },
            )
        return model.to_dto()

    # =========================================================================
    # Audit batches
    # =========================================================================

    def start_audit_batch(
        self,
        batch_type: BatchType | str,
        description: str | None = None,
        total_items: int = 0,
        notes: str | None = None,
    ) -> AuditBatch:
        """Open a pending batch, attached to the actor's active session if any."""
        batch_type = BatchType(batch_type)
        if total_items < 0:
            raise ValueError(f"total_items cannot be negative: {total_items}")

        model = AuditBatchModel(
            store_id=self._actor.store_id,
            session_id=self._active_session_id(),
            user_id=self._actor.user_id,
            user_name=self._actor.user_name,
            batch_type=batch_type.value,
            description=description,
            total_items=total_items,
            processed_items=0,
            status=BatchStatus.PENDING.value,
            created_at=self._clock.now(),
            total_quantity_change=Decimal("0"),
            total_cost_impact=Decimal("0"),
            error_count=0,
            notes=notes,
        )
        self.session.add(model)
        self._flush_versioned("AuditBatch", model.id)

        with self._log_context(batch_id=model.id, session_id=model.session_id):
            logger.info(
                "batch_started",
                extra={"batch_type": batch_type, "total_items": total_items},
            )
        return model.to_dto()

    def _batch_for_actor(self, batch_id: UUID) -> AuditBatchModel:
        model = self._aggregator.load_batch(batch_id)
        if model.store_id != self._actor.store_id:
            raise BatchStoreMismatchError(str(batch_id), model.store_id, self._actor.store_id)
        return model

    def _open_batch_for_actor(self, batch_id: UUID | None) -> None:
        if batch_id is None:
            return
        model = self._batch_for_actor(batch_id)
        if BatchStatus(model.status) in TERMINAL_BATCH_STATUSES:
            raise BatchAlreadyCompletedError(str(batch_id), model.status)

    def complete_audit_batch(
        self,
        batch_id: UUID,
        status: BatchStatus | str = BatchStatus.COMPLETED,
        notes: str | None = None,
    ) -> AuditBatch:
        """
        Move a batch to completed or failed, with final totals.

        Raises:
            BatchAlreadyCompletedError: The batch is already terminal.
            InvalidBatchTransitionError: ``status`` is not completed/failed,
                or the move is not allowed (pending -> completed).
        """
        target = BatchStatus(status)
        model = self._batch_for_actor(batch_id)
        current = BatchStatus(model.status)

        if current in TERMINAL_BATCH_STATUSES:
            raise BatchAlreadyCompletedError(str(batch_id), current.value)
        if target not in _COMPLETION_STATUSES or not can_transition_batch(current, target):
            raise InvalidBatchTransitionError(str(batch_id), current.value, target.value)

        totals = self._selector.batch_totals(batch_id)
        model.processed_items = totals.total_adjustments
        model.total_quantity_change = totals.total_quantity_change
        model.total_cost_impact = totals.total_cost_impact
        model.status = target.value
        model.completed_at = self._clock.now()
        if notes is not None:
            model.notes = notes
        self._flush_versioned("AuditBatch", batch_id)

        with self._log_context(batch_id=batch_id):
            logger.info(
                "batch_completed" if target is BatchStatus.COMPLETED else "batch_failed",
                extra={
                    "processed_items": model.processed_items,
                    "total_items": model.total_items,
                    "error_count": model.error_count,
                },
            )
        return model.to_dto()

    def record_batch_error(self, batch_id: UUID, count: int = 1) -> AuditBatch:
        """Count failed items against an open batch."""
        self._batch_for_actor(batch_id)
        with self._log_context(batch_id=batch_id):
            return self._aggregator.record_batch_error(batch_id, count)

    # =========================================================================
    # Recording
    # =========================================================================

    def _refresh_rollups(self, session_id: UUID | None, batch_id: UUID | None) -> None:
        if session_id is not None:
            self._aggregator.refresh_session(session_id)
        if batch_id is not None:
            self._aggregator.refresh_batch(batch_id)

    def record_adjustment(
        self,
        item_id: str,
        location_id: str,
        quantity_before: Any,
        quantity_after: Any,
        type: AdjustmentType | str,
        *,
        reason: AdjustmentReason | str | None = None,
        reference: str | None = None,
        notes: str | None = None,
        unit_cost: Any = None,
        requires_approval: bool | None = None,
        batch_id: UUID | None = None,
        adjustment_id: UUID | None = None,
    ) -> AdjustmentRecord:
        """
        Validate, decide approval, write one record and refresh rollups.

        ``requires_approval`` overrides the policy decision when given.
        ``adjustment_id`` makes the call safe to retry.

        Raises:
            AdjustmentValidationError: One or more rules failed.
            BatchStoreMismatchError / BatchAlreadyCompletedError: bad batch.
            DuplicateAdjustmentError: ``adjustment_id`` reused differently.
        """
        session_id = self._active_session_id()
        with self._log_context(session_id=session_id, batch_id=batch_id):
            self._open_batch_for_actor(batch_id)

            request = AdjustmentRequest(
                store_id=self._actor.store_id,
                item_id=item_id,
                location_id=location_id,
                quantity_before=quantity_before,
                quantity_after=quantity_after,
                type=type,
                reason=reason,
                reference=reference,
                notes=notes,
                unit_cost=unit_cost,
                user_id=self._actor.user_id,
                user_name=self._actor.user_name,
                user_role=self._actor.user_role,
                device_id=self._actor.device_id,
                ip_address=self._actor.ip_address,
                session_id=session_id,
                batch_id=batch_id,
                requires_approval=requires_approval,
                adjustment_id=adjustment_id,
            )
            self._validate(request)

            decision = self._decide_approval(request)
            record = self._writer.create_record(request, requires_approval=decision)
            self._refresh_rollups(record.session_id, record.batch_id)
            return record

    def _validate(self, request: AdjustmentRequest) -> None:
        result = validate_adjustment_request(request)
        if not result.is_valid:
            logger.warning(
                "adjustment_rejected",
                extra={
                    "item_id": request.item_id,
                    "error_codes": result.codes,
                    "errors": result.messages,
                },
            )
            raise AdjustmentValidationError(result.errors)

    def _decide_approval(self, request: AdjustmentRequest) -> bool:
        # Judged on the values as they will be stored.
        change = compute_quantity_change(
            to_stored_decimal(request.quantity_before),
            to_stored_decimal(request.quantity_after),
        )
        unit_cost = None if request.unit_cost is None else to_stored_decimal(request.unit_cost)
        triggers = approval_triggers(
            change,
            request.reason,
            request.user_role,
            unit_cost,
            thresholds=self._thresholds,
        )
        decision = (
            request.requires_approval
            if request.requires_approval is not None
            else bool(triggers)
        )
        if decision:
            logger.info(
                "approval_required",
                extra={
                    "item_id": request.item_id,
                    "quantity_change": change,
                    "triggers": triggers,
                    "overridden": request.requires_approval is not None,
                },
            )
        return decision

    def record_sale(
        self,
        item_id: str,
        location_id: str,
        quantity_before: Any,
        quantity_sold: Any,
        order_id: str,
        *,
        unit_cost: Any = None,
        batch_id: UUID | None = None,
        adjustment_id: UUID | None = None,
    ) -> AdjustmentRecord:
        """Stock leaving through a sale; the order id is the reference."""
        return self.record_adjustment(
            item_id,
            location_id,
            quantity_before,
            _offset(quantity_before, quantity_sold, -1),
            AdjustmentType.SALE,
            reference=order_id,
            notes=f"Sale of {_quantity_text(quantity_sold)} units",
            unit_cost=unit_cost,
            batch_id=batch_id,
            adjustment_id=adjustment_id,
        )

    def record_receiving(
        self,
        item_id: str,
        location_id: str,
        quantity_before: Any,
        quantity_received: Any,
        reference_number: str | None = None,
        *,
        unit_cost: Any = None,
        batch_id: UUID | None = None,
        adjustment_id: UUID | None = None,
    ) -> AdjustmentRecord:
        """Stock arriving from a supplier or purchase order."""
        return self.record_adjustment(
            item_id,
            location_id,
            quantity_before,
            _offset(quantity_before, quantity_received, 1),
            AdjustmentType.RECEIVE,
            reference=reference_number,
            notes=f"Received {_quantity_text(quantity_received)} units",
            unit_cost=unit_cost,
            batch_id=batch_id,
            adjustment_id=adjustment_id,
        )

    def record_transfer(
        self,
        item_id: str,
        from_location_id: str,
        to_location_id: str,
        from_quantity_before: Any,
        to_quantity_before: Any,
        quantity_moved: Any,
        transfer_ref: str | None = None,
        *,
        unit_cost: Any = None,
        batch_id: UUID | None = None,
        outgoing_id: UUID | None = None,
        incoming_id: UUID | None = None,
    ) -> TransferResult:
        """
        Move stock between two locations as one atomic pair of records.

        Passing ``outgoing_id`` and ``incoming_id`` makes a retry return the
        stored pair instead of writing a second one.

        Raises:
            InvalidTransferError: The transfer or either leg is invalid.
        """
        session_id = self._active_session_id()
        with self._log_context(session_id=session_id, batch_id=batch_id):
            self._open_batch_for_actor(batch_id)
            result = self._transfers.record_transfer(
                self._actor,
                item_id,
                from_location_id,
                to_location_id,
                from_quantity_before,
                to_quantity_before,
                quantity_moved,
                transfer_ref,
                unit_cost=unit_cost,
                session_id=session_id,
                batch_id=batch_id,
                outgoing_id=outgoing_id,
                incoming_id=incoming_id,
            )
            self._refresh_rollups(session_id, batch_id)
            return result

    def record_cycle_count(
        self,
        item_id: str,
        location_id: str,
        system_quantity: Any,
        counted_quantity: Any,
        count_id: str,
        *,
        unit_cost: Any = None,
        notes: str | None = None,
        batch_id: UUID | None = None,
        adjustment_id: UUID | None = None,
    ) -> AdjustmentRecord:
        """
        Record a physical count against the system quantity.

        The reason follows the variance (found / shrinkage / correction).
        A variance above the configured limit always requires approval;
        otherwise the general policy decides.
        """
        try:
            variance = compute_quantity_change(system_quantity, counted_quantity)
        except (TypeError, ArithmeticError):
            variance = None
        if variance is None or not variance.is_finite():
            # Non-numeric input; let validation report it.
            return self.record_adjustment(
                item_id, location_id, system_quantity, counted_quantity,
                AdjustmentType.COUNT,
                reference=count_id, notes=notes, unit_cost=unit_cost,
                batch_id=batch_id, adjustment_id=adjustment_id,
            )

        if variance > 0:
            reason = AdjustmentReason.FOUND
        elif variance < 0:
            reason = AdjustmentReason.SHRINKAGE
        else:
            reason = AdjustmentReason.CORRECTION

        # None lets the general policy decide.
        decision = True if abs(variance) > self._cycle_count.variance_approval_limit else None

        return self.record_adjustment(
            item_id,
            location_id,
            system_quantity,
            counted_quantity,
            AdjustmentType.COUNT,
            reason=reason,
            reference=count_id,
            notes=notes or f"Cycle count variance: {format_quantity(variance)} units",
            unit_cost=unit_cost,
            requires_approval=decision,
            batch_id=batch_id,
            adjustment_id=adjustment_id,
        )

    # =========================================================================
    # Approval
    # =========================================================================

    def _load_in_store(self, adjustment_id: UUID) -> AdjustmentModel:
        model = self._writer.load_for_update(adjustment_id)
        if model.store_id != self._actor.store_id:
            raise AdjustmentNotFoundError(str(adjustment_id))
        return model

    def approve_adjustment(
        self,
        adjustment_id: UUID,
        approval_notes: str | None = None,
    ) -> AdjustmentRecord:
        """
        Sign off on a pending adjustment as the current actor.

        Raises:
            AdjustmentNotFoundError: No such record in this store.
            AdjustmentAlreadyReversedError: The record was reversed.
            ApprovalNotRequiredError: The record never needed approval.
            AdjustmentAlreadyApprovedError: Someone already signed off.
            UnauthorizedApproverError: The actor's role may not approve
                an adjustment of this size.
            SelfApprovalError: The actor created the record.
        """
        with self._log_context(adjustment_id=adjustment_id):
            model = self._load_in_store(adjustment_id)

            if model.is_reversed:
                raise AdjustmentAlreadyReversedError(str(adjustment_id))
            if not model.requires_approval:
                raise ApprovalNotRequiredError(str(adjustment_id))
            if model.approved_at is not None:
                raise AdjustmentAlreadyApprovedError(str(adjustment_id), model.approved_by)

            role = self._actor.user_role
            if not self._actor.user_id or not can_approve(
                role, model.quantity_change, model.unit_cost,
                thresholds=self._thresholds,
            ):
                logger.warning(
                    "approval_denied",
                    extra={"role": role, "quantity_change": model.quantity_change},
                )
                raise UnauthorizedApproverError(
                    str(adjustment_id),
                    self._actor.user_id,
                    _role_text(role),
                )
            if model.user_id is not None and model.user_id == self._actor.user_id:
                raise SelfApprovalError(str(adjustment_id), self._actor.user_id)

            record = self._writer.mark_approved(
                model,
                approved_by=self._actor.user_id,
                approval_notes=approval_notes,
            )
            logger.info(
                "adjustment_approved",
                extra={"approved_by": record.approved_by, "seq": record.seq},
            )
            return record

    # =========================================================================
    # Reversal
    # =========================================================================

    def reverse_adjustment(
        self,
        adjustment_id: UUID,
        reversal_reason: str,
        current_quantity: Any = None,
    ) -> ReversalResult:
        """
        Undo an adjustment with a compensating ``reversal`` record.

        The reversal record starts from ``current_quantity`` (default: the
        original's quantity_after) and applies the inverse change.  It
        points back through ``reversal_of_id`` and carries the original id
        as its reference.  The original is flagged ``is_reversed`` with
        ``reversal_reference = "Reversed: <reason>"``.

        Raises:
            UnauthorizedReversalError: The actor lacks reverse_adjustments.
            AdjustmentNotFoundError: No such record in this store.
            ReversalNotAllowedError: The record is itself a reversal, the
                reason is blank, or the result would be negative stock.
            AdjustmentAlreadyReversedError: Already reversed.
        """
        with self._log_context(adjustment_id=adjustment_id):
            if not can_reverse(self._actor.user_role):
                raise UnauthorizedReversalError(
                    str(adjustment_id), self._actor.user_id, _role_text(self._actor.user_role),
                )

            original = self._load_in_store(adjustment_id)
            if original.type == AdjustmentType.REVERSAL.value:
                raise ReversalNotAllowedError(
                    str(adjustment_id), "Reversal records cannot be reversed",
                )
            if original.is_reversed:
                raise AdjustmentAlreadyReversedError(str(adjustment_id))
            if not reversal_reason or not reversal_reason.strip():
                raise ReversalNotAllowedError(str(adjustment_id), "A reversal reason is required")

            start = original.quantity_after if current_quantity is None else current_quantity
            session_id = self._active_session_id()
            request = AdjustmentRequest(
                store_id=original.store_id,
                item_id=original.item_id,
                location_id=original.location_id,
                quantity_before=start,
                quantity_after=_offset(start, original.quantity_change, -1),
                type=AdjustmentType.REVERSAL,
                reference=str(original.id),
                notes=f"Reversal of adjustment {original.id}: {reversal_reason}",
                unit_cost=original.unit_cost,
                user_id=self._actor.user_id,
                user_name=self._actor.user_name,
                user_role=self._actor.user_role,
                device_id=self._actor.device_id,
                ip_address=self._actor.ip_address,
                session_id=session_id,
                reversal_of_id=original.id,
            )
            result = validate_adjustment_request(request)
            if not result.is_valid:
                raise ReversalNotAllowedError(str(adjustment_id), "; ".join(result.messages))

            # Reversals never wait for sign-off.
            reversal = self._writer.create_record(request, requires_approval=False)
            flagged = self._writer.mark_reversed(original, f"Reversed: {reversal_reason}")
            self._refresh_rollups(session_id, None)

            logger.info(
                "adjustment_reversed",
                extra={
                    "reversal_id": str(reversal.id),
                    "reversal_seq": reversal.seq,
                    "quantity_change": reversal.quantity_change,
                    "reason": reversal_reason,
                },
            )
            return ReversalResult(original=flagged, reversal=reversal)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_adjustment(self, adjustment_id: UUID) -> AdjustmentRecord:
        record = self._selector.get(adjustment_id)
        if record is None or record.store_id != self._actor.store_id:
            raise AdjustmentNotFoundError(str(adjustment_id))
        return record

    def get_pending_approvals(self) -> list[AdjustmentRecord]:
        return self._selector.pending_approvals(
            self._actor.store_id, limit=self._summary.query_limit,
        )

    def get_audit_summary(self, recent_limit: int | None = None) -> AuditSummary:
        """Store-wide totals, pending approval count and recent records."""
        return self._selector.summary(
            self._actor.store_id,
            recent_limit if recent_limit is not None else self._summary.recent_limit,
        )


def _offset(base: Any, amount: Any, sign: int) -> Any:
    """``base + sign * amount`` for numeric inputs, else None so that
    validation reports QUANTITY_NOT_NUMERIC."""
    try:
        return to_decimal(base) + sign * to_decimal(amount)
    except (TypeError, ArithmeticError):
        return None


def _quantity_text(value: Any) -> str:
    try:
        return format_quantity(to_decimal(value))
    except (TypeError, ArithmeticError):
        return str(value)


def _role_text(role: Any) -> str | None:
    parsed = parse_role(role)
    return parsed.value if parsed else (str(role) if role is not None else None)
