"""End-to-end tests for scripts/ledger_summary.py against a SQLite file."""

import importlib.util
import logging
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from inventory_ledger.config import CONFIG_ENV_VAR
from inventory_ledger.db.engine import build_engine, create_tables
from inventory_ledger.domain.catalog import AdjustmentReason, AdjustmentType, UserRole
from inventory_ledger.domain.clock import DeterministicClock
from inventory_ledger.domain.dtos import ActorContext, AdjustmentRequest
from inventory_ledger.services import InventoryAuditService, LedgerWriter, SequenceService

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "ledger_summary.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("ledger_summary", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def ledger_summary(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    yield _load_script()
    logging.disable(logging.NOTSET)


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    engine = build_engine(url)
    create_tables(engine)
    clock = DeterministicClock()
    staff = ActorContext(store_id="STORE-001", user_id="user-staff", user_role=UserRole.STAFF)

    with Session(engine, expire_on_commit=False) as session:
        service = InventoryAuditService(session, staff, clock)
        service.record_sale("SKU-1", "LOC-A", 50, 3, "ORD-77", unit_cost=Decimal("4.00"))
        clock.advance(30)
        service.record_receiving("SKU-1", "LOC-A", 47, 5, "PO-9", unit_cost=Decimal("4.00"))
        LedgerWriter(session, clock, SequenceService(session)).create_record(
            AdjustmentRequest(
                store_id="STORE-001", item_id="SKU-3", location_id="LOC-A",
                quantity_before=Decimal("8"), quantity_after=Decimal("5"),
                type=AdjustmentType.TRANSFER, reason=AdjustmentReason.TRANSFER_OUT,
                reference="TRF-LOST", user_id="user-manager", user_role=UserRole.MANAGER,
            ),
            requires_approval=True,
        )
        session.commit()

    engine.dispose()
    return url


def test_summary_output(ledger_summary, database_url, capsys):
    code = ledger_summary.main(["--store", "STORE-001", "--database-url", database_url])
    out = capsys.readouterr().out

    assert code == 0
    assert "INVENTORY ADJUSTMENTS - STORE-001" in out
    assert "Adjustments:        3" in out
    assert "Pending approvals:  1" in out
    assert "SKU-1 @ LOC-A" in out


def test_pending_and_transfer_check(ledger_summary, database_url, capsys):
    code = ledger_summary.main([
        "--store", "STORE-001", "--database-url", database_url,
        "--pending", "--check-transfers", "--recent", "1",
    ])
    out = capsys.readouterr().out

    assert code == 1
    assert "PENDING APPROVAL (1)" in out
    assert "UNBALANCED TRANSFERS (1)" in out
    assert "TRF-LOST: 1 out / 0 in" in out


def test_empty_store(ledger_summary, database_url, capsys):
    code = ledger_summary.main(["--store", "STORE-404", "--database-url", database_url])
    out = capsys.readouterr().out

    assert code == 0
    assert "No adjustments recorded." in out


def test_bad_config_path(ledger_summary, tmp_path, capsys):
    code = ledger_summary.main(["--store", "STORE-001", "--config", str(tmp_path / "none.yaml")])
    assert code == 1
    assert "ERROR" in capsys.readouterr().err
