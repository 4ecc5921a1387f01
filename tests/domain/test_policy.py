"""
Tests for the policy engine.

Covers:
- Role x type authorization
- The four approval triggers and threshold boundaries
- Approver sizing (admin vs manager)
- Request validation collecting every failure
"""

from decimal import Decimal

import pytest

from inventory_ledger.config.schema import ApprovalThresholds
from inventory_ledger.domain.catalog import (
    AdjustmentReason,
    AdjustmentType,
    Permission,
    UserRole,
)
from inventory_ledger.domain.policy import (
    TRIGGER_HIGH_VALUE,
    TRIGGER_LARGE_QUANTITY,
    TRIGGER_REASON,
    TRIGGER_STAFF_LIMIT,
    approval_triggers,
    can_approve,
    can_perform_adjustment,
    can_reverse,
    is_large_adjustment,
    required_permission,
    requires_approval,
    validate_adjustment_request,
)


class TestAuthorization:

    @pytest.mark.parametrize("adjustment_type", list(AdjustmentType))
    def test_admin_can_perform_every_type(self, adjustment_type):
        assert can_perform_adjustment(UserRole.ADMIN, adjustment_type)

    @pytest.mark.parametrize("role, adjustment_type, allowed", [
        (UserRole.MANAGER, AdjustmentType.ADJUSTMENT, True),
        (UserRole.MANAGER, AdjustmentType.COUNT, True),
        (UserRole.MANAGER, AdjustmentType.TRANSFER, True),
        (UserRole.MANAGER, AdjustmentType.SALE, False),
        (UserRole.MANAGER, AdjustmentType.DAMAGE, False),
        (UserRole.STAFF, AdjustmentType.SALE, True),
        (UserRole.STAFF, AdjustmentType.RECEIVE, True),
        (UserRole.STAFF, AdjustmentType.ADJUSTMENT, False),
        (UserRole.STAFF, AdjustmentType.TRANSFER, False),
        (UserRole.SYSTEM, AdjustmentType.SALE, True),
        (UserRole.SYSTEM, AdjustmentType.CORRECTION, True),
        (UserRole.SYSTEM, AdjustmentType.RECEIVE, False),
    ])
    def test_role_type_matrix(self, role, adjustment_type, allowed):
        assert can_perform_adjustment(role, adjustment_type) is allowed

    def test_unknown_role_cannot_perform_anything(self):
        assert not can_perform_adjustment("cashier", AdjustmentType.SALE)

    def test_unknown_type_needs_all_adjustments(self):
        assert required_permission("teleport") is Permission.ALL_ADJUSTMENTS
        assert can_perform_adjustment(UserRole.ADMIN, "teleport")
        assert not can_perform_adjustment(UserRole.MANAGER, "teleport")

    def test_only_admin_can_reverse(self):
        assert can_reverse(UserRole.ADMIN)
        assert not can_reverse(UserRole.MANAGER)
        assert not can_reverse(UserRole.STAFF)
        assert not can_reverse(None)


class TestApprovalTriggers:

    def test_small_change_needs_no_approval(self):
        assert approval_triggers(Decimal("-5")) == ()
        assert not requires_approval(Decimal("-5"), role=UserRole.MANAGER)

    def test_quantity_limit_is_exclusive(self):
        assert not requires_approval(Decimal("100"))
        assert approval_triggers(Decimal("101")) == (TRIGGER_LARGE_QUANTITY,)
        assert approval_triggers(Decimal("-101")) == (TRIGGER_LARGE_QUANTITY,)

    def test_cost_limit_uses_absolute_impact(self):
        assert not requires_approval(Decimal("-10"), unit_cost=Decimal("100"))
        assert approval_triggers(Decimal("-10"), unit_cost=Decimal("100.01")) == (
            TRIGGER_HIGH_VALUE,
        )

    def test_cost_trigger_ignored_without_unit_cost(self):
        assert TRIGGER_HIGH_VALUE not in approval_triggers(Decimal("50"))

    @pytest.mark.parametrize("reason", [
        AdjustmentReason.DAMAGED,
        AdjustmentReason.EXPIRED,
        AdjustmentReason.LOST,
        "shrinkage",
    ])
    def test_reasons_that_always_need_approval(self, reason):
        assert approval_triggers(Decimal("-1"), reason) == (TRIGGER_REASON,)

    def test_reason_trigger_applies_even_at_zero_change(self):
        assert requires_approval(Decimal("0"), AdjustmentReason.DAMAGED)

    def test_staff_limit(self):
        assert not requires_approval(Decimal("10"), role=UserRole.STAFF)
        assert approval_triggers(Decimal("11"), role="staff") == (TRIGGER_STAFF_LIMIT,)
        assert not requires_approval(Decimal("11"), role=UserRole.MANAGER)

    def test_triggers_accumulate(self):
        triggers = approval_triggers(
            Decimal("-150"),
            AdjustmentReason.LOST,
            UserRole.STAFF,
            Decimal("20"),
        )
        assert triggers == (
            TRIGGER_LARGE_QUANTITY,
            TRIGGER_HIGH_VALUE,
            TRIGGER_REASON,
            TRIGGER_STAFF_LIMIT,
        )

    def test_custom_thresholds(self):
        strict = ApprovalThresholds(
            quantity_limit=Decimal("5"),
            cost_limit=Decimal("10"),
            staff_quantity_limit=Decimal("1"),
        )
        assert requires_approval(Decimal("6"), thresholds=strict)
        assert requires_approval(Decimal("2"), unit_cost=Decimal("6"), thresholds=strict)
        assert requires_approval(Decimal("2"), role=UserRole.STAFF, thresholds=strict)
        assert not requires_approval(Decimal("1"), role=UserRole.STAFF, thresholds=strict)


class TestApproverSizing:

    def test_admin_approves_anything(self):
        assert can_approve(UserRole.ADMIN, Decimal("-5000"), Decimal("999"))

    def test_manager_approves_small_only(self):
        assert can_approve(UserRole.MANAGER, Decimal("-20"))
        assert not can_approve(UserRole.MANAGER, Decimal("-101"))
        assert not can_approve(UserRole.MANAGER, Decimal("-20"), Decimal("60"))

    def test_staff_and_system_never_approve(self):
        assert not can_approve(UserRole.STAFF, Decimal("1"))
        assert not can_approve(UserRole.SYSTEM, Decimal("1"))
        assert not can_approve(None, Decimal("1"))

    def test_is_large_adjustment(self):
        assert is_large_adjustment(Decimal("101"))
        assert is_large_adjustment(Decimal("11"), Decimal("100"))
        assert not is_large_adjustment(Decimal("10"), Decimal("100"))


class TestValidation:

    def test_valid_request(self, make_request):
        result = validate_adjustment_request(make_request())
        assert result.is_valid
        assert result
        assert result.errors == ()

    def test_collects_every_failure(self, make_request):
        request = make_request(
            store_id="",
            item_id="",
            quantity_after=Decimal("-3"),
            unit_cost=Decimal("-1"),
        )
        result = validate_adjustment_request(request)

        assert not result.is_valid
        assert result.codes == (
            "STORE_ID_REQUIRED",
            "ITEM_ID_REQUIRED",
            "NEGATIVE_QUANTITY",
            "INVALID_UNIT_COST",
        )
        assert "Quantity after cannot be negative" in result.messages

    @pytest.mark.parametrize("bad", ["ten", None, True, float("nan"), Decimal("Infinity")])
    def test_non_numeric_quantity(self, make_request, bad):
        result = validate_adjustment_request(make_request(quantity_before=bad))
        assert result.codes == ("QUANTITY_NOT_NUMERIC",)

    def test_unit_cost_must_be_numeric(self, make_request):
        result = validate_adjustment_request(make_request(unit_cost="cheap"))
        assert result.codes == ("INVALID_UNIT_COST",)

    def test_missing_location_and_type(self, make_request):
        result = validate_adjustment_request(make_request(location_id="", type=None))
        assert result.codes == ("LOCATION_ID_REQUIRED", "TYPE_REQUIRED")

    def test_unknown_type_and_reason(self, make_request):
        result = validate_adjustment_request(make_request(
            type="teleport", reason="borrowed", user_role=UserRole.ADMIN,
        ))
        assert "UNKNOWN_TYPE" in result.codes
        assert "UNKNOWN_REASON" in result.codes
        assert "Unknown adjustment type: teleport" in result.messages

    def test_permission_denied_message(self, make_request):
        result = validate_adjustment_request(make_request(
            type=AdjustmentType.TRANSFER,
            reason=AdjustmentReason.TRANSFER_OUT,
        ))
        assert result.codes == ("PERMISSION_DENIED",)
        assert result.messages == ("User role staff cannot perform transfer adjustments",)

    def test_permission_not_checked_without_user(self, make_request):
        result = validate_adjustment_request(make_request(
            user_id=None, type=AdjustmentType.TRANSFER,
        ))
        assert result.is_valid

    def test_manual_adjustment_requires_reason(self, make_request):
        result = validate_adjustment_request(make_request(
            type=AdjustmentType.ADJUSTMENT,
            user_role=UserRole.MANAGER,
        ))
        assert result.codes == ("REASON_REQUIRED",)
        assert result.messages == ("Reason is required for manual adjustments",)

    def test_zero_change_is_valid(self, make_request):
        result = validate_adjustment_request(make_request(
            quantity_before=Decimal("7"), quantity_after=Decimal("7"),
        ))
        assert result.is_valid

    def test_plain_numbers_accepted(self, make_request):
        result = validate_adjustment_request(make_request(
            quantity_before=10, quantity_after=7.5, unit_cost=3,
        ))
        assert result.is_valid
