"""
TransferCoordinator -- writes both legs of a location-to-location transfer.

Responsibility:
    Turns one transfer (item, from, to, quantity moved) into two adjustment
    records that share a reference:

        outgoing  from_location  before -> before - moved   reason transfer_out
        incoming  to_location    before -> before + moved   reason transfer_in

    The caller supplies the destination's real prior quantity.

Invariants enforced:
    - Both legs are written by one ``LedgerWriter.create_records`` call and
      so one flush: either both exist or neither does.
    - moved > 0, from != to, and both legs pass request validation before
      anything is written.
    - The legs carry equal and opposite quantity changes.

Failure modes:
    - InvalidTransferError listing every failed rule across both legs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from inventory_ledger.config.schema import DEFAULT_THRESHOLDS, ApprovalThresholds
from inventory_ledger.domain.catalog import AdjustmentReason, AdjustmentType
from inventory_ledger.domain.derivation import to_decimal
from inventory_ledger.domain.dtos import (
    ActorContext,
    AdjustmentRequest,
    TransferResult,
    ValidationError,
)
from inventory_ledger.domain.formatting import format_quantity
from inventory_ledger.domain.policy import requires_approval, validate_adjustment_request
from inventory_ledger.exceptions import InvalidTransferError
from inventory_ledger.logging_config import get_logger
from inventory_ledger.models.adjustment import AdjustmentModel
from inventory_ledger.services.base import BaseService
from inventory_ledger.services.ledger_writer import LedgerWriter

logger = get_logger("services.transfer")


def new_transfer_reference() -> str:
    return f"TRF-{uuid4().hex[:12].upper()}"


class TransferCoordinator(BaseService[AdjustmentModel]):
    """
    Atomic two-leg transfer writer.

    Non-goals:
        - Does NOT read current stock levels; both prior quantities come
          from the caller.
        - Does NOT update rollups.
    """

    def __init__(
        self,
        session: Session,
        writer: LedgerWriter,
        thresholds: ApprovalThresholds = DEFAULT_THRESHOLDS,
    ):
        super().__init__(session)
        self._writer = writer
        self._thresholds = thresholds

    def record_transfer(
        self,
        actor: ActorContext,
        item_id: str,
        from_location_id: str,
        to_location_id: str,
        from_quantity_before: Any,
        to_quantity_before: Any,
        quantity_moved: Any,
        transfer_ref: str | None = None,
        *,
        unit_cost: Any = None,
        session_id: UUID | None = None,
        batch_id: UUID | None = None,
        outgoing_id: UUID | None = None,
        incoming_id: UUID | None = None,
    ) -> TransferResult:
        """
        Record a transfer as an outgoing and an incoming leg.

        ``outgoing_id``/``incoming_id`` make the call retry-safe the same
        way ``adjustment_id`` does for single records.

        Raises:
            InvalidTransferError: The transfer or either leg is invalid.
        """
        reference = transfer_ref or new_transfer_reference()
        errors = self._check_shape(from_location_id, to_location_id, quantity_moved)
        if errors:
            raise InvalidTransferError(reference, errors)

        moved = to_decimal(quantity_moved)
        moved_text = format_quantity(moved)
        common = dict(
            store_id=actor.store_id,
            item_id=item_id,
            type=AdjustmentType.TRANSFER,
            reference=reference,
            unit_cost=unit_cost,
            user_id=actor.user_id,
            user_name=actor.user_name,
            user_role=actor.user_role,
            device_id=actor.device_id,
            ip_address=actor.ip_address,
            session_id=session_id,
            batch_id=batch_id,
        )

        outgoing = AdjustmentRequest(
            location_id=from_location_id,
            quantity_before=from_quantity_before,
            quantity_after=_shift(from_quantity_before, -moved),
            reason=AdjustmentReason.TRANSFER_OUT,
            notes=f"Transfer out {moved_text} units to location {to_location_id}",
            adjustment_id=outgoing_id,
            **common,
        )
        incoming = AdjustmentRequest(
            location_id=to_location_id,
            quantity_before=to_quantity_before,
            quantity_after=_shift(to_quantity_before, moved),
            reason=AdjustmentReason.TRANSFER_IN,
            notes=f"Transfer in {moved_text} units from location {from_location_id}",
            adjustment_id=incoming_id,
            **common,
        )

        leg_errors: list[ValidationError] = []
        for leg in (outgoing, incoming):
            leg_errors.extend(validate_adjustment_request(leg).errors)
        if leg_errors:
            raise InvalidTransferError(reference, _dedupe(leg_errors))

        out_record, in_record = self._writer.create_records([
            (outgoing, self._needs_approval(-moved, outgoing)),
            (incoming, self._needs_approval(moved, incoming)),
        ])

        logger.info(
            "transfer_recorded",
            extra={
                "reference": reference,
                "item_id": item_id,
                "from_location_id": from_location_id,
                "to_location_id": to_location_id,
                "quantity_moved": moved,
                "outgoing_id": str(out_record.id),
                "incoming_id": str(in_record.id),
            },
        )
        return TransferResult(outgoing=out_record, incoming=in_record)

    def _needs_approval(self, change: Decimal, request: AdjustmentRequest) -> bool:
        return requires_approval(
            change,
            request.reason,
            request.user_role,
            request.unit_cost,
            thresholds=self._thresholds,
        )

    @staticmethod
    def _check_shape(from_location_id, to_location_id, quantity_moved) -> list[ValidationError]:
        errors: list[ValidationError] = []
        if from_location_id and from_location_id == to_location_id:
            errors.append(ValidationError(
                "SAME_LOCATION",
                "Source and destination locations must differ",
                "to_location_id",
            ))
        try:
            moved = to_decimal(quantity_moved)
        except (TypeError, ArithmeticError):
            errors.append(ValidationError(
                "QUANTITY_NOT_NUMERIC", "Quantity moved must be a number", "quantity_moved",
            ))
            return errors
        if not moved.is_finite() or moved <= 0:
            errors.append(ValidationError(
                "NON_POSITIVE_TRANSFER",
                "Quantity moved must be greater than zero",
                "quantity_moved",
            ))
        return errors


def _shift(quantity: Any, delta: Decimal) -> Any:
    """``quantity + delta`` when quantity is numeric; otherwise unchanged so
    validation reports it."""
    try:
        return to_decimal(quantity) + delta
    except (TypeError, ArithmeticError):
        return quantity


def _dedupe(errors: list[ValidationError]) -> list[ValidationError]:
    # Store/item/role errors repeat on both legs.
    seen: set[tuple[str, str, str | None]] = set()
    unique: list[ValidationError] = []
    for error in errors:
        key = (error.code, error.message, error.field)
        if key not in seen:
            seen.add(key)
            unique.append(error)
    return unique
