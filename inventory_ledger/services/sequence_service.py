"""
SequenceService -- the ledger's ``seq`` allocator.

Every adjustment record gets a ``seq`` from a named counter row.  The row
is read ``FOR UPDATE``, so two POS devices committing at once on PostgreSQL
queue on the lock instead of sharing a number.  SQLite ignores the lock
clause and serializes writers itself.

Invariants enforced:
    - ``seq`` values only grow; they are never derived from MAX(seq).
    - An allocation becomes visible when the caller commits and is
      returned to the pool when the caller rolls back.

Failure modes:
    - Two transactions creating the same counter for the first time: the
      loser's INSERT hits the unique constraint inside a savepoint, which
      is rolled back before the row is re-read under lock.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_ledger.logging_config import get_logger
from inventory_ledger.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """Allocates ``seq`` values; flushes, never commits."""

    ADJUSTMENT = "inventory_adjustment"

    def __init__(self, session: Session):
        self._session = session

    def _lock(self, name: str) -> SequenceCounter | None:
        stmt = (
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def _create(self, name: str) -> SequenceCounter | None:
        """Insert a fresh counter at 0, or None if another writer won."""
        savepoint = self._session.begin_nested()
        counter = SequenceCounter(name=name, current_value=0)
        self._session.add(counter)
        try:
            self._session.flush()
        except IntegrityError:
            savepoint.rollback()
            logger.info("sequence_counter_contended", extra={"sequence_name": name})
            return None
        savepoint.commit()
        return counter

    def next_value(self, name: str = ADJUSTMENT) -> int:
        """The next ``seq`` for ``name``; the first value is 1."""
        counter = self._lock(name) or self._create(name) or self._lock(name)
        if counter is None:
            raise RuntimeError(f"sequence counter {name!r} vanished after creation")

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "seq_allocated",
            extra={"sequence_name": name, "seq": counter.current_value},
        )
        return counter.current_value

    def current_value(self, name: str = ADJUSTMENT) -> int | None:
        """Last value handed out, or None before the first allocation."""
        return self._session.execute(
            select(SequenceCounter.current_value).where(SequenceCounter.name == name)
        ).scalar_one_or_none()
