"""
Configuration schema (``inventory_ledger.config.schema``).

Frozen dataclasses produced by the loader.  Nothing here reads files or the
environment; see ``inventory_ledger.config.get_active_settings``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ApprovalThresholds:
    """Limits above which an adjustment needs second-party sign-off."""

    quantity_limit: Decimal = Decimal("100")
    cost_limit: Decimal = Decimal("1000")
    staff_quantity_limit: Decimal = Decimal("10")

    def __post_init__(self) -> None:
        for name in ("quantity_limit", "cost_limit", "staff_quantity_limit"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                raise ValueError(f"{name} must be Decimal, not {type(value).__name__}")
            if value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")


@dataclass(frozen=True)
class CycleCountSettings:
    variance_approval_limit: Decimal = Decimal("10")

    def __post_init__(self) -> None:
        if self.variance_approval_limit < 0:
            raise ValueError(
                f"variance_approval_limit cannot be negative: {self.variance_approval_limit}"
            )


@dataclass(frozen=True)
class SummarySettings:
    recent_limit: int = 10
    query_limit: int = 100

    def __post_init__(self) -> None:
        if self.recent_limit < 1 or self.query_limit < 1:
            raise ValueError("summary limits must be positive")


@dataclass(frozen=True)
class LedgerSettings:
    """Complete runtime configuration for the ledger."""

    database_url: str
    approval: ApprovalThresholds = field(default_factory=ApprovalThresholds)
    cycle_count: CycleCountSettings = field(default_factory=CycleCountSettings)
    summary: SummarySettings = field(default_factory=SummarySettings)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database_url is required")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )


DEFAULT_THRESHOLDS = ApprovalThresholds()
