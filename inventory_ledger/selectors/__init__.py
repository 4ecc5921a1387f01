"""Read-only selectors over the ledger."""

from inventory_ledger.selectors.adjustment_selector import (
    AdjustmentSelector,
    UnbalancedTransfer,
)
from inventory_ledger.selectors.base import BaseSelector
from inventory_ledger.selectors.session_selector import (
    AuditBatchSelector,
    AuditSessionSelector,
)

__all__ = [
    "AdjustmentSelector",
    "AuditBatchSelector",
    "AuditSessionSelector",
    "BaseSelector",
    "UnbalancedTransfer",
]
