"""Display helpers for adjustment records. Pure functions, no I/O."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from inventory_ledger.domain.catalog import (
    AUDIT_REASONS,
    AUDIT_TYPES,
    AdjustmentReason,
    AdjustmentType,
    parse_reason,
    parse_type,
)

DEFAULT_ICON = "📝"

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
}


def format_quantity(value: Any) -> str:
    """Plain quantity text without trailing zeros: ``5.000000000`` -> ``5``."""
    return format(Decimal(str(value)).normalize(), "f")


def format_quantity_change(quantity_change: Any) -> str:
    """``+5`` for increases (and zero), ``-3`` for decreases."""
    change = Decimal(str(quantity_change))
    sign = "+" if change >= 0 else "-"
    return f"{sign}{format_quantity(abs(change))}"


def format_cost_impact(cost_impact: Any, currency: str = "USD") -> str:
    """Signed currency amount, e.g. ``+$1,250.00`` or ``-$52.50``."""
    amount = Decimal(str(cost_impact))
    sign = "+" if amount >= 0 else "-"
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    body = f"{abs(amount).quantize(Decimal('0.01')):,}"
    if symbol is None:
        return f"{sign}{currency.upper()} {body}"
    return f"{sign}{symbol}{body}"


def format_audit_type(adjustment_type: AdjustmentType | str) -> str:
    parsed = parse_type(adjustment_type)
    if parsed is None:
        return str(adjustment_type)
    return AUDIT_TYPES[parsed].label


def format_audit_reason(reason: AdjustmentReason | str) -> str:
    parsed = parse_reason(reason)
    if parsed is None:
        return str(reason)
    return AUDIT_REASONS[parsed].label


def get_audit_type_icon(adjustment_type: AdjustmentType | str) -> str:
    parsed = parse_type(adjustment_type)
    if parsed is None:
        return DEFAULT_ICON
    return AUDIT_TYPES[parsed].icon


def format_audit_date(value: datetime) -> str:
    """``Jan 5, 2024, 09:30 AM``"""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return (
        f"{value:%b} {value.day}, {value.year}, "
        f"{hour:02d}:{value.minute:02d} {meridiem}"
    )


def generate_audit_summary(
    adjustment_type: AdjustmentType | str,
    quantity_change: Any,
    reason: AdjustmentReason | str | None = None,
    reference: str | None = None,
) -> str:
    """One-line description, e.g. ``Sale: -5 units (Damaged) - Ref: ORD-1``."""
    text = (
        f"{format_audit_type(adjustment_type)}: "
        f"{format_quantity_change(quantity_change)} units"
    )
    if reason:
        text += f" ({format_audit_reason(reason)})"
    if reference:
        text += f" - Ref: {reference}"
    return text
