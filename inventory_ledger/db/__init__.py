"""Database layer - engine, base classes, and immutability listeners."""

from inventory_ledger.db.base import UUID, Base, UTCDateTime, UUIDString
from inventory_ledger.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from inventory_ledger.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)

__all__ = [
    "Base",
    "UUID",
    "UUIDString",
    "UTCDateTime",
    "build_engine",
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
]
