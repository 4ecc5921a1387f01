"""Tests for module-level engine management and session_scope."""

import pytest

from inventory_ledger.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from inventory_ledger.domain.catalog import UserRole
from inventory_ledger.domain.dtos import ActorContext
from inventory_ledger.selectors.adjustment_selector import AdjustmentSelector
from inventory_ledger.services import InventoryAuditService


@pytest.fixture
def module_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    reset_engine()


@pytest.fixture
def staff():
    return ActorContext(store_id="STORE-001", user_id="user-staff", user_role=UserRole.STAFF)


def test_uninitialized_engine_raises():
    reset_engine()
    with pytest.raises(RuntimeError):
        get_engine()
    with pytest.raises(RuntimeError):
        get_session()


def test_sqlite_dialect(module_engine):
    assert get_engine() is module_engine
    assert module_engine.dialect.name == "sqlite"


def test_session_scope_commits(module_engine, staff):
    with session_scope() as session:
        record = InventoryAuditService(session, staff).record_sale("SKU-1", "LOC-A", 10, 1, "ORD-1")

    with session_scope() as session:
        assert AdjustmentSelector(session).get(record.id) is not None


def test_session_scope_rolls_back(module_engine, staff):
    with pytest.raises(RuntimeError):
        with session_scope() as session:
            InventoryAuditService(session, staff).record_sale("SKU-1", "LOC-A", 10, 1, "ORD-2")
            raise RuntimeError("register crashed")

    with session_scope() as session:
        assert AdjustmentSelector(session).by_reference("ORD-2") == []
