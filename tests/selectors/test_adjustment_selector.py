"""Tests for AdjustmentSelector and the session/batch selectors."""

from datetime import timedelta
from decimal import Decimal

import pytest

from inventory_ledger.domain.catalog import AdjustmentReason, AdjustmentType, BatchStatus, BatchType
from inventory_ledger.domain.dtos import RollupTotals, UnbalancedTransfer


@pytest.fixture
def seeded(ledger_writer, make_request, deterministic_clock):
    """Three records in STORE-001 one minute apart, and one in STORE-002."""
    records = []
    records.append(ledger_writer.create_record(
        make_request(item_id="SKU-1", quantity_before=100, quantity_after=90, unit_cost=Decimal("5")),
        requires_approval=False,
    ))
    deterministic_clock.advance(60)
    records.append(ledger_writer.create_record(
        make_request(
            item_id="SKU-2", location_id="LOC-B", type=AdjustmentType.ADJUSTMENT,
            reason=AdjustmentReason.LOST, quantity_before=10, quantity_after=4,
            unit_cost=None, user_id="user-manager",
        ),
        requires_approval=True,
    ))
    deterministic_clock.advance(60)
    records.append(ledger_writer.create_record(
        make_request(item_id="SKU-1", type=AdjustmentType.RECEIVE, reference="PO-1",
                     quantity_before=90, quantity_after=130, unit_cost=Decimal("5")),
        requires_approval=False,
    ))
    ledger_writer.create_record(
        make_request(store_id="STORE-002", quantity_before=5, quantity_after=1),
        requires_approval=True,
    )
    return records


class TestLookups:

    def test_get(self, adjustment_selector, seeded):
        assert adjustment_selector.get(seeded[0].id).item_id == "SKU-1"

    def test_by_reference_scoped_to_store(self, adjustment_selector, seeded):
        assert len(adjustment_selector.by_reference("ORD-1")) == 3
        assert len(adjustment_selector.by_reference("ORD-1", store_id="STORE-001")) == 2

    def test_item_history_newest_first(self, adjustment_selector, seeded):
        history = adjustment_selector.item_history("STORE-001", "SKU-1")
        assert [r.id for r in history] == [seeded[2].id, seeded[0].id]
        assert adjustment_selector.item_history("STORE-001", "SKU-2", "LOC-A") == []


class TestLists:

    def test_recent(self, adjustment_selector, seeded):
        recent = adjustment_selector.recent("STORE-001", limit=2)
        assert [r.id for r in recent] == [seeded[2].id, seeded[1].id]

    def test_pending_approvals(self, adjustment_selector, seeded):
        pending = adjustment_selector.pending_approvals("STORE-001")
        assert [r.id for r in pending] == [seeded[1].id]
        assert adjustment_selector.count_pending_approvals("STORE-001") == 1
        assert adjustment_selector.count_pending_approvals("STORE-002") == 1


class TestSearch:

    def test_by_time_window(self, adjustment_selector, seeded, deterministic_clock):
        start = seeded[1].created_at
        found = adjustment_selector.search("STORE-001", start=start)
        assert [r.id for r in found] == [seeded[2].id, seeded[1].id]

        found = adjustment_selector.search(
            "STORE-001", end=seeded[0].created_at + timedelta(seconds=30),
        )
        assert [r.id for r in found] == [seeded[0].id]

    def test_by_type_reason_user(self, adjustment_selector, seeded):
        assert [r.id for r in adjustment_selector.search("STORE-001", type="receive")] == [seeded[2].id]
        assert [r.id for r in adjustment_selector.search(
            "STORE-001", reason=AdjustmentReason.LOST,
        )] == [seeded[1].id]
        assert [r.id for r in adjustment_selector.search(
            "STORE-001", user_id="user-manager",
        )] == [seeded[1].id]

    def test_by_item_and_location(self, adjustment_selector, seeded):
        assert len(adjustment_selector.search("STORE-001", item_id="SKU-1")) == 2
        assert len(adjustment_selector.search("STORE-001", location_id="LOC-B")) == 1

    def test_min_cost_impact_skips_uncosted(self, adjustment_selector, seeded):
        found = adjustment_selector.search("STORE-001", min_cost_impact=Decimal("-100"))
        assert [r.id for r in found] == [seeded[2].id, seeded[0].id]

    def test_unknown_type_filter(self, adjustment_selector, seeded):
        with pytest.raises(ValueError):
            adjustment_selector.search("STORE-001", type="teleport")


class TestTotals:

    def test_store_totals(self, adjustment_selector, seeded):
        totals = adjustment_selector.store_totals("STORE-001")
        assert totals == RollupTotals(3, Decimal("24"), Decimal("150"))

    def test_empty_totals_are_zero(self, adjustment_selector):
        assert adjustment_selector.store_totals("STORE-404") == RollupTotals()

    def test_summary(self, adjustment_selector, seeded):
        summary = adjustment_selector.summary("STORE-001", recent_limit=1)
        assert summary.total_adjustments == 3
        assert summary.pending_approvals == 1
        assert [r.id for r in summary.recent_records] == [seeded[2].id]


class TestUnbalancedTransfers:

    def test_coordinated_transfers_are_balanced(self, adjustment_selector, audit_service):
        audit_service.record_transfer("SKU-1", "LOC-A", "LOC-B", 10, 0, 4)
        assert adjustment_selector.find_unbalanced_transfers("STORE-001") == []

    def test_orphan_leg_is_reported(self, adjustment_selector, ledger_writer, make_request):
        ledger_writer.create_record(
            make_request(
                type=AdjustmentType.TRANSFER, reason=AdjustmentReason.TRANSFER_OUT,
                reference="TRF-ORPHAN", quantity_before=10, quantity_after=6,
            ),
            requires_approval=False,
        )
        (unbalanced,) = adjustment_selector.find_unbalanced_transfers("STORE-001")
        assert unbalanced == UnbalancedTransfer("TRF-ORPHAN", 1, 0, Decimal("4"), Decimal("0"))
        assert unbalanced.reference == "TRF-ORPHAN"
        assert unbalanced.outgoing_legs == 1
        assert unbalanced.incoming_legs == 0
        assert unbalanced.quantity_out == Decimal("4")


class TestSessionAndBatchSelectors:

    def test_active_sessions_and_history(self, session_selector, audit_service, staff_service, deterministic_clock):
        first = audit_service.start_audit_session()
        deterministic_clock.advance(5)
        second = staff_service.start_audit_session()
        audit_service.end_audit_session()

        assert [s.id for s in session_selector.active_sessions("STORE-001")] == [second.id]
        assert [s.id for s in session_selector.history("STORE-001")] == [second.id, first.id]
        assert session_selector.get(first.id).is_active is False

    def test_get_active_for_user(self, session_selector, audit_service, manager_actor):
        assert session_selector.get_active_for_user("STORE-001", manager_actor.user_id) is None
        started = audit_service.start_audit_session()
        assert session_selector.get_active_for_user("STORE-001", manager_actor.user_id).id == started.id
        assert session_selector.get_active_for_user("STORE-002", manager_actor.user_id) is None

    def test_open_batches_and_by_status(self, batch_selector, audit_service):
        open_batch = audit_service.start_audit_batch(BatchType.RECEIVING)
        failed = audit_service.start_audit_batch(BatchType.TRANSFER)
        audit_service.complete_audit_batch(failed.id, BatchStatus.FAILED)

        assert [b.id for b in batch_selector.open_batches("STORE-001")] == [open_batch.id]
        assert [b.id for b in batch_selector.by_status("STORE-001", "failed")] == [failed.id]
        assert batch_selector.get(failed.id).status is BatchStatus.FAILED
