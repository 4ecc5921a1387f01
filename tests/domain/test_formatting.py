"""Tests for display formatting helpers."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from inventory_ledger.domain.catalog import AdjustmentReason, AdjustmentType
from inventory_ledger.domain.formatting import (
    DEFAULT_ICON,
    format_audit_date,
    format_audit_reason,
    format_audit_type,
    format_cost_impact,
    format_quantity,
    format_quantity_change,
    generate_audit_summary,
    get_audit_type_icon,
)


class TestQuantities:

    @pytest.mark.parametrize("value, expected", [
        (Decimal("5.000000000"), "5"),
        (Decimal("2.500"), "2.5"),
        (Decimal("100"), "100"),
        (0, "0"),
    ])
    def test_format_quantity(self, value, expected):
        assert format_quantity(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (5, "+5"),
        (-3, "-3"),
        (0, "+0"),
        (Decimal("-1.50"), "-1.5"),
    ])
    def test_format_quantity_change(self, value, expected):
        assert format_quantity_change(value) == expected


class TestCost:

    def test_positive_and_negative(self):
        assert format_cost_impact(Decimal("1250")) == "+$1,250.00"
        assert format_cost_impact(Decimal("-52.5")) == "-$52.50"

    def test_other_currencies(self):
        assert format_cost_impact(Decimal("10"), "EUR") == "+€10.00"
        assert format_cost_impact(Decimal("-10"), "chf") == "-CHF 10.00"


class TestLabels:

    def test_type_and_reason_labels(self):
        assert format_audit_type(AdjustmentType.COUNT) == "Cycle Count"
        assert format_audit_type("receive") == "Receiving"
        assert format_audit_reason(AdjustmentReason.LOST) == "Lost/Stolen"

    def test_unknown_values_pass_through(self):
        assert format_audit_type("teleport") == "teleport"
        assert format_audit_reason("borrowed") == "borrowed"

    def test_icons(self):
        assert get_audit_type_icon(AdjustmentType.SALE) == "💰"
        assert get_audit_type_icon("teleport") == DEFAULT_ICON


class TestDatesAndSummaries:

    def test_format_audit_date(self):
        assert format_audit_date(datetime(2024, 1, 5, 9, 30, tzinfo=timezone.utc)) == (
            "Jan 5, 2024, 09:30 AM"
        )
        assert format_audit_date(datetime(2024, 12, 25, 0, 5)) == "Dec 25, 2024, 12:05 AM"
        assert format_audit_date(datetime(2024, 7, 4, 15, 0)) == "Jul 4, 2024, 03:00 PM"

    def test_generate_audit_summary(self):
        assert generate_audit_summary(
            AdjustmentType.SALE, Decimal("-5"), AdjustmentReason.DAMAGED, "X",
        ) == "Sale: -5 units (Damaged) - Ref: X"
        assert generate_audit_summary("receive", 12) == "Receiving: +12 units"
