"""
inventory_ledger.config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  No other component reads configuration
    files or environment variables directly.

Resolution order:
    1. ``config_path`` argument, if given.
    2. ``INVENTORY_LEDGER_CONFIG`` environment variable, if set.
    3. The packaged ``defaults.yaml``.
    ``DATABASE_URL`` always overrides ``database.url`` when set.

Audit relevance:
    Every call emits a ``LEDGER_CONFIG_TRACE`` log entry recording the
    source file and the approval thresholds in force, so any approval
    decision can be tied to the limits that produced it.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path

from inventory_ledger.config.loader import load_yaml_file, parse_settings
from inventory_ledger.config.schema import (
    DEFAULT_THRESHOLDS,
    ApprovalThresholds,
    CycleCountSettings,
    LedgerSettings,
    SummarySettings,
)
from inventory_ledger.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults.yaml"

CONFIG_ENV_VAR = "INVENTORY_LEDGER_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def get_active_settings(config_path: Path | str | None = None) -> LedgerSettings:
    """The ONLY public configuration entrypoint.

    Raises:
        FileNotFoundError: the resolved config file does not exist.
        ValueError: a value fails schema validation.
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR) or _DEFAULT_CONFIG_FILE
    path = Path(config_path)

    settings = parse_settings(load_yaml_file(path))

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        settings = dataclasses.replace(settings, database_url=database_url)

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "config_source": str(path),
            "quantity_limit": settings.approval.quantity_limit,
            "cost_limit": settings.approval.cost_limit,
            "staff_quantity_limit": settings.approval.staff_quantity_limit,
            "variance_approval_limit": settings.cycle_count.variance_approval_limit,
        },
    )
    return settings


__all__ = [
    "ApprovalThresholds",
    "CycleCountSettings",
    "DEFAULT_THRESHOLDS",
    "LedgerSettings",
    "SummarySettings",
    "get_active_settings",
]
