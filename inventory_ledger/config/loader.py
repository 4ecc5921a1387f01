"""
Configuration loader (``inventory_ledger.config.loader``).

Parses YAML documents into the frozen dataclasses of
``inventory_ledger.config.schema``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``database.url``  -> ``KeyError`` propagates.
* Non-numeric threshold  -> ``ValueError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from inventory_ledger.config.schema import (
    ApprovalThresholds,
    CycleCountSettings,
    LedgerSettings,
    SummarySettings,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a Decimal from a YAML scalar (string or number)."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be numeric, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be numeric, got {value!r}") from None


def parse_approval(data: dict[str, Any]) -> ApprovalThresholds:
    defaults = ApprovalThresholds()
    return ApprovalThresholds(
        quantity_limit=parse_decimal(
            data.get("quantity_limit", defaults.quantity_limit), "quantity_limit"
        ),
        cost_limit=parse_decimal(
            data.get("cost_limit", defaults.cost_limit), "cost_limit"
        ),
        staff_quantity_limit=parse_decimal(
            data.get("staff_quantity_limit", defaults.staff_quantity_limit),
            "staff_quantity_limit",
        ),
    )


def parse_cycle_count(data: dict[str, Any]) -> CycleCountSettings:
    return CycleCountSettings(
        variance_approval_limit=parse_decimal(
            data.get("variance_approval_limit", "10"), "variance_approval_limit"
        ),
    )


def parse_summary(data: dict[str, Any]) -> SummarySettings:
    return SummarySettings(
        recent_limit=int(data.get("recent_limit", 10)),
        query_limit=int(data.get("query_limit", 100)),
    )


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Build ``LedgerSettings`` from a parsed YAML document.

    Sections other than ``database`` are optional and fall back to
    schema defaults.
    """
    return LedgerSettings(
        database_url=data["database"]["url"],
        approval=parse_approval(data.get("approval") or {}),
        cycle_count=parse_cycle_count(data.get("cycle_count") or {}),
        summary=parse_summary(data.get("summary") or {}),
        log_level=str((data.get("logging") or {}).get("level", "INFO")).upper(),
    )
