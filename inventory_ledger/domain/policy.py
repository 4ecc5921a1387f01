"""
Policy engine (``inventory_ledger.domain.policy``).

Responsibility
--------------
Pure decisions about adjustments:

* ``can_perform_adjustment`` -- may this role record this type?
* ``requires_approval`` -- does this change need second-party sign-off?
* ``validate_adjustment_request`` -- does this request satisfy every rule?
* ``can_approve`` / ``can_reverse`` -- may this role sign off or undo?

Architecture position
---------------------
Domain layer.  ZERO I/O.  Every function is re-derivable from its
arguments alone; the approval decision is stored on the record at
creation time but never trusted from a caller without a policy check.

Approval rule
-------------
The logical OR of four independently sufficient conditions:

1. ``|change| > quantity_limit``                      (large movement)
2. ``unit_cost`` present and ``|change * unit_cost| > cost_limit``
3. reason is one of the always-approve reasons        (damaged, expired,
                                                       lost, shrinkage)
4. role is staff and ``|change| > staff_quantity_limit``

No condition vetoes another.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from inventory_ledger.config.schema import DEFAULT_THRESHOLDS, ApprovalThresholds
from inventory_ledger.domain.catalog import (
    APPROVAL_REQUIRED_REASONS,
    AdjustmentType,
    Permission,
    TYPE_PERMISSIONS,
    UserRole,
    parse_reason,
    parse_role,
    parse_type,
    role_permissions,
)
from inventory_ledger.domain.dtos import (
    AdjustmentRequest,
    ValidationError,
    ValidationResult,
)

# Approval trigger names, reported by approval_triggers()
TRIGGER_LARGE_QUANTITY = "large_quantity"
TRIGGER_HIGH_VALUE = "high_value"
TRIGGER_REASON = "reason_requires_approval"
TRIGGER_STAFF_LIMIT = "staff_limit"


def _value(x: Any) -> str:
    return x.value if hasattr(x, "value") else str(x)


# =========================================================================
# Authorization
# =========================================================================


def required_permission(adjustment_type: AdjustmentType | str | None) -> Permission:
    """Permission needed to record ``adjustment_type``.

    Unknown types need the broadest permission.
    """
    parsed = parse_type(adjustment_type)
    if parsed is None:
        return Permission.ALL_ADJUSTMENTS
    return TYPE_PERMISSIONS[parsed]


def can_perform_adjustment(
    role: UserRole | str | None,
    adjustment_type: AdjustmentType | str | None,
) -> bool:
    permissions = role_permissions(role)
    if Permission.ALL_ADJUSTMENTS in permissions:
        return True
    return required_permission(adjustment_type) in permissions


def can_reverse(role: UserRole | str | None) -> bool:
    return Permission.REVERSE_ADJUSTMENTS in role_permissions(role)


def is_large_adjustment(
    quantity_change: Any,
    unit_cost: Any = None,
    *,
    thresholds: ApprovalThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """True when the change trips the quantity or cost threshold."""
    change = abs(Decimal(str(quantity_change)))
    if change > thresholds.quantity_limit:
        return True
    if unit_cost is not None:
        return abs(change * Decimal(str(unit_cost))) > thresholds.cost_limit
    return False


def can_approve(
    role: UserRole | str | None,
    quantity_change: Any,
    unit_cost: Any = None,
    *,
    thresholds: ApprovalThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """
    May ``role`` sign off on a change of this size?

    admin holds approve_adjustments and may approve anything.  manager
    holds approve_small_adjustments and may approve only changes that are
    not large by quantity or cost.
    """
    permissions = role_permissions(role)
    if Permission.APPROVE_ADJUSTMENTS in permissions:
        return True
    if Permission.APPROVE_SMALL_ADJUSTMENTS in permissions:
        return not is_large_adjustment(
            quantity_change, unit_cost, thresholds=thresholds,
        )
    return False


# =========================================================================
# Approval requirement
# =========================================================================


def approval_triggers(
    quantity_change: Any,
    reason: Any = None,
    role: Any = None,
    unit_cost: Any = None,
    *,
    thresholds: ApprovalThresholds = DEFAULT_THRESHOLDS,
) -> tuple[str, ...]:
    """Names of every approval condition the inputs satisfy."""
    change = abs(Decimal(str(quantity_change)))
    triggers: list[str] = []

    if change > thresholds.quantity_limit:
        triggers.append(TRIGGER_LARGE_QUANTITY)

    if unit_cost is not None and abs(change * Decimal(str(unit_cost))) > thresholds.cost_limit:
        triggers.append(TRIGGER_HIGH_VALUE)

    if parse_reason(reason) in APPROVAL_REQUIRED_REASONS:
        triggers.append(TRIGGER_REASON)

    if parse_role(role) is UserRole.STAFF and change > thresholds.staff_quantity_limit:
        triggers.append(TRIGGER_STAFF_LIMIT)

    return tuple(triggers)


def requires_approval(
    quantity_change: Any,
    reason: Any = None,
    role: Any = None,
    unit_cost: Any = None,
    *,
    thresholds: ApprovalThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    return bool(approval_triggers(
        quantity_change, reason, role, unit_cost, thresholds=thresholds,
    ))


# =========================================================================
# Request validation
# =========================================================================


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    try:
        return Decimal(str(value)).is_finite()
    except InvalidOperation:
        return False


def validate_adjustment_request(request: AdjustmentRequest) -> ValidationResult:
    """
    Check every rule and collect all failures.

    Never short-circuits: a request with an empty store id AND a negative
    quantity reports both.
    """
    errors: list[ValidationError] = []

    if not request.store_id:
        errors.append(ValidationError("STORE_ID_REQUIRED", "Store ID is required", "store_id"))
    if not request.item_id:
        errors.append(ValidationError("ITEM_ID_REQUIRED", "Item ID is required", "item_id"))
    if not request.location_id:
        errors.append(ValidationError(
            "LOCATION_ID_REQUIRED", "Location ID is required", "location_id",
        ))

    before_numeric = _is_number(request.quantity_before)
    after_numeric = _is_number(request.quantity_after)
    if not before_numeric:
        errors.append(ValidationError(
            "QUANTITY_NOT_NUMERIC", "Quantity before must be a number", "quantity_before",
        ))
    if not after_numeric:
        errors.append(ValidationError(
            "QUANTITY_NOT_NUMERIC", "Quantity after must be a number", "quantity_after",
        ))

    if not request.type:
        errors.append(ValidationError("TYPE_REQUIRED", "Adjustment type is required", "type"))
    elif parse_type(request.type) is None:
        errors.append(ValidationError(
            "UNKNOWN_TYPE", f"Unknown adjustment type: {_value(request.type)}", "type",
        ))

    if request.reason is not None and parse_reason(request.reason) is None:
        errors.append(ValidationError(
            "UNKNOWN_REASON", f"Unknown reason code: {_value(request.reason)}", "reason",
        ))

    if before_numeric and Decimal(str(request.quantity_before)) < 0:
        errors.append(ValidationError(
            "NEGATIVE_QUANTITY", "Quantity before cannot be negative", "quantity_before",
        ))
    if after_numeric and Decimal(str(request.quantity_after)) < 0:
        errors.append(ValidationError(
            "NEGATIVE_QUANTITY", "Quantity after cannot be negative", "quantity_after",
        ))

    if request.unit_cost is not None:
        if not _is_number(request.unit_cost):
            errors.append(ValidationError(
                "INVALID_UNIT_COST", "Unit cost must be a number", "unit_cost",
            ))
        elif Decimal(str(request.unit_cost)) < 0:
            errors.append(ValidationError(
                "INVALID_UNIT_COST", "Unit cost cannot be negative", "unit_cost",
            ))

    if request.user_id and request.user_role and request.type:
        if not can_perform_adjustment(request.user_role, request.type):
            errors.append(ValidationError(
                "PERMISSION_DENIED",
                f"User role {_value(request.user_role)} cannot perform "
                f"{_value(request.type)} adjustments",
                "user_role",
            ))

    if parse_type(request.type) is AdjustmentType.ADJUSTMENT and not request.reason:
        errors.append(ValidationError(
            "REASON_REQUIRED", "Reason is required for manual adjustments", "reason",
        ))

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()
