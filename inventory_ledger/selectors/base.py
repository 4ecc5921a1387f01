"""
Module: inventory_ledger.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Selectors.  May import from db/, models/ and domain
    DTOs.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), delete(),
      commit() or flush().
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from inventory_ledger.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)

DEFAULT_QUERY_LIMIT = 100


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
