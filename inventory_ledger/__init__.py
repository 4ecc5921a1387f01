"""
Inventory Ledger - adjustment audit trail for the point-of-sale stack.

An append-only record of stock quantity changes with:
- Derived quantity and cost fields (never caller supplied)
- Role-based authorization and approval policy
- Session and batch rollups reconciled against their records
- Atomic two-leg transfers and compensating reversals
"""

__version__ = "0.1.0"
