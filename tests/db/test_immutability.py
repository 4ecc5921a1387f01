"""
ORM immutability listeners.

Each test writes through the services, then tampers with the mapped row
directly and expects the flush to be refused.
"""

from decimal import Decimal

import pytest

from inventory_ledger.domain.catalog import BatchStatus, BatchType
from inventory_ledger.exceptions import ImmutabilityViolationError
from inventory_ledger.models.adjustment import AdjustmentModel
from inventory_ledger.models.audit_batch import AuditBatchModel
from inventory_ledger.models.audit_session import AuditSessionModel


@pytest.fixture
def stored(ledger_writer, make_request, session):
    record = ledger_writer.create_record(make_request(), requires_approval=True)
    return session.get(AdjustmentModel, record.id)


class TestAdjustmentRecords:

    def test_content_update_is_blocked(self, stored, session):
        stored.quantity_after = Decimal("1")
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "AdjustmentRecord"
        assert "quantity_after" in exc_info.value.reason

    def test_notes_are_content_too(self, stored, session):
        stored.notes = "edited later"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_is_blocked(self, stored, session):
        session.delete(stored)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_approval_is_write_once(self, stored, ledger_writer, session, deterministic_clock):
        ledger_writer.mark_approved(stored, approved_by="user-admin", approval_notes="ok")
        deterministic_clock.advance(10)
        stored.approval_notes = "changed my mind"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.reason == "Approval fields are write-once"

    def test_reversal_flag_cannot_be_cleared(self, stored, ledger_writer, session):
        ledger_writer.mark_reversed(stored, "Reversed: miscount")
        stored.is_reversed = False
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_reversal_reference_needs_the_flag(self, stored, session):
        stored.reversal_reference = "Reversed: nothing"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert "false to true" in exc_info.value.reason

    def test_workflow_updates_pass(self, stored, ledger_writer):
        approved = ledger_writer.mark_approved(stored, approved_by="user-admin")
        reversed_ = ledger_writer.mark_reversed(stored, "Reversed: miscount")
        assert approved.approved_by == "user-admin"
        assert reversed_.is_reversed is True


class TestAuditSessions:

    def test_closing_is_allowed_then_frozen(self, audit_service, session):
        started = audit_service.start_audit_session()
        audit_service.end_audit_session()

        model = session.get(AuditSessionModel, started.id)
        model.notes = "rewritten"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "AuditSession"

    def test_closed_session_cannot_be_deleted(self, audit_service, session):
        started = audit_service.start_audit_session()
        audit_service.end_audit_session()

        session.delete(session.get(AuditSessionModel, started.id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_active_session_can_change(self, audit_service, session):
        started = audit_service.start_audit_session()
        model = session.get(AuditSessionModel, started.id)
        model.notes = "still counting"
        session.flush()
        assert model.notes == "still counting"


class TestAuditBatches:

    def test_terminal_batch_is_frozen(self, audit_service, session):
        batch = audit_service.start_audit_batch(BatchType.CYCLE_COUNT)
        audit_service.complete_audit_batch(batch.id, BatchStatus.FAILED)

        model = session.get(AuditBatchModel, batch.id)
        model.error_count = 99
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "AuditBatch"

    def test_terminal_batch_cannot_be_deleted(self, audit_service, session):
        batch = audit_service.start_audit_batch(BatchType.CYCLE_COUNT)
        audit_service.complete_audit_batch(batch.id, BatchStatus.FAILED)

        session.delete(session.get(AuditBatchModel, batch.id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
