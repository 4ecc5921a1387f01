"""Ledger services -- the imperative shell over the domain layer."""

from inventory_ledger.services.aggregator import Aggregator
from inventory_ledger.services.base import BaseService
from inventory_ledger.services.inventory_audit_service import InventoryAuditService
from inventory_ledger.services.ledger_writer import LedgerWriter
from inventory_ledger.services.sequence_service import SequenceService
from inventory_ledger.services.transfer_coordinator import (
    TransferCoordinator,
    new_transfer_reference,
)

__all__ = [
    "Aggregator",
    "BaseService",
    "InventoryAuditService",
    "LedgerWriter",
    "SequenceService",
    "TransferCoordinator",
    "new_transfer_reference",
]
