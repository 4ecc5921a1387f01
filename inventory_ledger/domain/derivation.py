"""
Record derivation -- the pure half of the ledger writer.

Responsibility:
    Turns an ``AdjustmentRequest`` plus the writer-supplied identity,
    timestamp and sequence into a fully-derived ``AdjustmentRecord``.
    ``quantity_change`` and ``total_cost_impact`` are computed here and
    nowhere else; callers cannot supply them.

Invariants:
    quantity_change == quantity_after - quantity_before
    total_cost_impact == quantity_change * unit_cost   (unit_cost present)
    total_cost_impact is None                          (unit_cost absent)

All arithmetic is Decimal.  Floats are converted through ``str`` so that
``10.5`` becomes ``Decimal("10.5")`` rather than its binary expansion.
Quantities, unit cost and cost impact are rounded half-up to
``STORED_SCALE`` (the scale of the Numeric(38, 9) columns) before the record
is built, so a returned record equals the row read back later.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any
from uuid import UUID

from inventory_ledger.domain.catalog import parse_reason, parse_role, parse_type
from inventory_ledger.domain.dtos import AdjustmentRecord, AdjustmentRequest

RECORD_SCHEMA_VERSION = 1

STORED_SCALE = Decimal("1e-9")
_STORED_CONTEXT = Context(prec=38, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Convert an int, float, str or Decimal to Decimal."""
    if isinstance(value, bool):
        raise TypeError("bool is not a quantity")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_stored_decimal(value: Any) -> Decimal:
    """``to_decimal`` rounded to the scale the ledger columns hold."""
    return to_decimal(value).quantize(STORED_SCALE, context=_STORED_CONTEXT)


def compute_quantity_change(quantity_before: Any, quantity_after: Any) -> Decimal:
    return to_decimal(quantity_after) - to_decimal(quantity_before)


def compute_cost_impact(quantity_change: Any, unit_cost: Any) -> Decimal | None:
    """Cost impact of a change at stored scale; None (not zero) without a unit cost."""
    if unit_cost is None:
        return None
    product = _STORED_CONTEXT.multiply(to_decimal(quantity_change), to_decimal(unit_cost))
    return to_stored_decimal(product)


def derive_record(
    request: AdjustmentRequest,
    *,
    adjustment_id: UUID,
    seq: int,
    created_at: datetime,
    requires_approval: bool,
) -> AdjustmentRecord:
    """
    Build the record that will be persisted for ``request``.

    Preconditions:
        ``request`` has passed ``validate_adjustment_request``.
    Postconditions:
        Approval and reversal workflow fields are unset.
    """
    quantity_before = to_stored_decimal(request.quantity_before)
    quantity_after = to_stored_decimal(request.quantity_after)
    unit_cost = None if request.unit_cost is None else to_stored_decimal(request.unit_cost)
    quantity_change = compute_quantity_change(quantity_before, quantity_after)

    return AdjustmentRecord(
        id=adjustment_id,
        seq=seq,
        store_id=request.store_id,
        item_id=request.item_id,
        location_id=request.location_id,
        quantity_before=quantity_before,
        quantity_after=quantity_after,
        quantity_change=quantity_change,
        type=parse_type(request.type),
        reason=parse_reason(request.reason),
        reference=request.reference,
        notes=request.notes,
        unit_cost=unit_cost,
        total_cost_impact=compute_cost_impact(quantity_change, unit_cost),
        user_id=request.user_id,
        user_name=request.user_name,
        user_role=parse_role(request.user_role),
        device_id=request.device_id,
        ip_address=request.ip_address,
        session_id=request.session_id,
        batch_id=request.batch_id,
        created_at=created_at,
        requires_approval=bool(requires_approval),
        reversal_of_id=request.reversal_of_id,
        version=RECORD_SCHEMA_VERSION,
    )


def derived_fields_consistent(record: AdjustmentRecord) -> bool:
    """True when the stored derived fields match a fresh derivation."""
    change = compute_quantity_change(record.quantity_before, record.quantity_after)
    cost = compute_cost_impact(change, record.unit_cost)
    return record.quantity_change == change and record.total_cost_impact == cost


# Fields that must match for an idempotent retry to be accepted.
IDENTITY_FIELDS = (
    "store_id",
    "item_id",
    "location_id",
    "quantity_before",
    "quantity_after",
    "type",
    "reason",
    "reference",
    "unit_cost",
    "user_id",
    "session_id",
    "batch_id",
    "reversal_of_id",
)


def payload_differences(existing: AdjustmentRecord, candidate: AdjustmentRecord) -> tuple[str, ...]:
    """Names of identity fields that differ between two records."""
    return tuple(
        name for name in IDENTITY_FIELDS
        if getattr(existing, name) != getattr(candidate, name)
    )
