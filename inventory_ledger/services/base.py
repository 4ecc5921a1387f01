"""
BaseService -- abstract base for all ledger services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service.  Services receive a SQLAlchemy ``Session``
    and use ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  The caller (``session_scope``,
    a request handler, or the test harness) owns commit/rollback.

Failure modes:
    - OptimisticLockError when a versioned row (audit session, audit batch)
      was changed by another writer since it was loaded.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from inventory_ledger.db.base import Base
from inventory_ledger.exceptions import OptimisticLockError
from inventory_ledger.logging_config import get_logger

ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger("services.base")


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all ledger services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session

    def _flush_versioned(self, entity_type: str, entity_id) -> None:
        """Flush, surfacing a lost optimistic-lock race as OptimisticLockError."""
        try:
            self.session.flush()
        except StaleDataError as exc:
            logger.warning(
                "optimistic_lock_conflict",
                extra={"entity_type": entity_type, "entity_id": str(entity_id)},
            )
            raise OptimisticLockError(entity_type, str(entity_id)) from exc
