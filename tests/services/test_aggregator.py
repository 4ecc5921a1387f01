"""
Tests for the Aggregator.

Rollups are recomputed from the records, so every test checks the
stored totals against the records that exist.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import update

from inventory_ledger.domain.catalog import BatchStatus, BatchType
from inventory_ledger.domain.dtos import RollupTotals
from inventory_ledger.exceptions import (
    BatchAlreadyCompletedError,
    BatchNotFoundError,
    OptimisticLockError,
    SessionClosedError,
    SessionNotFoundError,
)
from inventory_ledger.models.audit_session import AuditSessionModel


@pytest.fixture
def open_session(audit_service):
    return audit_service.start_audit_session()


@pytest.fixture
def open_batch(audit_service):
    return audit_service.start_audit_batch(BatchType.BULK_ADJUSTMENT, total_items=3)


class TestSessionRollups:

    def test_refresh_matches_records(self, aggregator, ledger_writer, make_request, open_session):
        ledger_writer.create_record(
            make_request(session_id=open_session.id, quantity_after=95, unit_cost=2),
            requires_approval=False,
        )
        ledger_writer.create_record(
            make_request(session_id=open_session.id, quantity_before=95, quantity_after=105, unit_cost=2),
            requires_approval=False,
        )

        refreshed = aggregator.refresh_session(open_session.id)

        assert refreshed.total_adjustments == 2
        assert refreshed.total_quantity_change == Decimal("5")
        assert refreshed.total_cost_impact == Decimal("10")

    def test_records_without_unit_cost_add_zero_cost(self, aggregator, ledger_writer, make_request, open_session):
        ledger_writer.create_record(
            make_request(session_id=open_session.id, unit_cost=None),
            requires_approval=False,
        )
        refreshed = aggregator.refresh_session(open_session.id)
        assert refreshed.total_cost_impact == Decimal("0")
        assert refreshed.total_quantity_change == Decimal("-5")

    def test_update_writes_given_totals(self, aggregator, open_session):
        totals = RollupTotals(3, Decimal("-7"), Decimal("-14.5"))
        updated = aggregator.update_audit_session(open_session.id, totals)
        assert updated.totals == totals

    def test_missing_session(self, aggregator):
        with pytest.raises(SessionNotFoundError):
            aggregator.refresh_session(uuid4())

    def test_closed_session_is_not_updated(self, aggregator, audit_service, open_session):
        audit_service.end_audit_session()
        with pytest.raises(SessionClosedError):
            aggregator.refresh_session(open_session.id)

    def test_stale_copy_raises_optimistic_lock_error(
        self, session, aggregator, ledger_writer, make_request, open_session, captured_logs,
    ):
        aggregator.load_session(open_session.id)
        # Another writer bumps the version behind this session's back.
        session.connection().execute(
            update(AuditSessionModel.__table__)
            .where(AuditSessionModel.__table__.c.id == open_session.id)
            .values(version=AuditSessionModel.__table__.c.version + 1)
        )
        ledger_writer.create_record(
            make_request(session_id=open_session.id), requires_approval=False,
        )

        with pytest.raises(OptimisticLockError) as exc_info:
            aggregator.refresh_session(open_session.id)

        assert exc_info.value.entity_type == "AuditSession"
        assert any(r["message"] == "optimistic_lock_conflict" for r in captured_logs())


class TestBatchRollups:

    def test_first_record_moves_batch_to_processing(self, aggregator, ledger_writer, make_request, open_batch):
        assert open_batch.status is BatchStatus.PENDING
        ledger_writer.create_record(
            make_request(batch_id=open_batch.id), requires_approval=False,
        )

        refreshed = aggregator.refresh_batch(open_batch.id)

        assert refreshed.status is BatchStatus.PROCESSING
        assert refreshed.processed_items == 1
        assert refreshed.total_quantity_change == Decimal("-5")

    def test_empty_refresh_stays_pending(self, aggregator, open_batch):
        assert aggregator.refresh_batch(open_batch.id).status is BatchStatus.PENDING

    def test_error_count(self, aggregator, open_batch, captured_logs):
        aggregator.record_batch_error(open_batch.id)
        updated = aggregator.record_batch_error(open_batch.id, count=2)
        assert updated.error_count == 3
        assert any(r["message"] == "batch_item_failed" for r in captured_logs())

    def test_error_count_must_be_positive(self, aggregator, open_batch):
        with pytest.raises(ValueError):
            aggregator.record_batch_error(open_batch.id, count=0)

    def test_missing_batch(self, aggregator):
        with pytest.raises(BatchNotFoundError):
            aggregator.refresh_batch(uuid4())

    def test_terminal_batch_is_not_updated(self, aggregator, audit_service, open_batch):
        audit_service.complete_audit_batch(open_batch.id, BatchStatus.FAILED)
        with pytest.raises(BatchAlreadyCompletedError):
            aggregator.refresh_batch(open_batch.id)
