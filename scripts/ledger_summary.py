#!/usr/bin/env python3
"""
Print a store's adjustment summary from the ledger database.

Shows store-wide totals, the most recent adjustments, records waiting for
approval and any transfer references whose legs do not pair up.

Uses DATABASE_URL if set, otherwise the database.url from the active
configuration (INVENTORY_LEDGER_CONFIG or the packaged defaults).

Usage:
    python3 scripts/ledger_summary.py --store STORE-001
    python3 scripts/ledger_summary.py --store STORE-001 --recent 25 --pending --check-transfers
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 80


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inventory adjustment summary for one store")
    parser.add_argument("--store", required=True, help="Store id")
    parser.add_argument("--config", default=None, help="Path to a settings YAML file")
    parser.add_argument("--database-url", default=None, help="Overrides the configured URL")
    parser.add_argument("--recent", type=int, default=None, help="Number of recent records")
    parser.add_argument("--pending", action="store_true", help="List pending approvals")
    parser.add_argument(
        "--check-transfers", action="store_true",
        help="Report transfer references with unpaired legs",
    )
    parser.add_argument("--currency", default="USD")
    return parser.parse_args(argv)


def _print_record(record, currency: str) -> None:
    from inventory_ledger.domain.formatting import (
        format_audit_date,
        format_cost_impact,
        generate_audit_summary,
        get_audit_type_icon,
    )

    line = generate_audit_summary(
        record.type, record.quantity_change, record.reason, record.reference,
    )
    cost = (
        format_cost_impact(record.total_cost_impact, currency)
        if record.total_cost_impact is not None else ""
    )
    print(f"  #{record.seq:<6} {get_audit_type_icon(record.type)} {line}")
    print(
        f"          {record.item_id} @ {record.location_id}  "
        f"{format_audit_date(record.created_at)}  {cost}"
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.disable(logging.CRITICAL)

    from inventory_ledger.config import get_active_settings
    from inventory_ledger.db.engine import get_session, init_engine_from_url, reset_engine
    from inventory_ledger.domain.formatting import (
        format_cost_impact,
        format_quantity,
        format_quantity_change,
    )
    from inventory_ledger.selectors.adjustment_selector import AdjustmentSelector

    try:
        settings = get_active_settings(args.config)
        init_engine_from_url(args.database_url or settings.database_url)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    recent_limit = args.recent if args.recent is not None else settings.summary.recent_limit
    session = get_session()
    try:
        selector = AdjustmentSelector(session)
        summary = selector.summary(args.store, recent_limit)

        print()
        print("=" * W)
        print(f"INVENTORY ADJUSTMENTS - {args.store}".center(W))
        print("=" * W)
        print(f"  Adjustments:        {summary.total_adjustments}")
        print(f"  Net quantity:       {format_quantity_change(summary.total_quantity_change)}")
        print(f"  Net cost impact:    {format_cost_impact(summary.total_cost_impact, args.currency)}")
        print(f"  Pending approvals:  {summary.pending_approvals}")
        print()

        print("-" * W)
        print("  RECENT")
        print("-" * W)
        if not summary.recent_records:
            print("  No adjustments recorded.")
        for record in summary.recent_records:
            _print_record(record, args.currency)
        print()

        if args.pending:
            pending = selector.pending_approvals(args.store, limit=settings.summary.query_limit)
            print("-" * W)
            print(f"  PENDING APPROVAL ({len(pending)})")
            print("-" * W)
            for record in pending:
                _print_record(record, args.currency)
            print()

        if args.check_transfers:
            unbalanced = selector.find_unbalanced_transfers(args.store)
            print("-" * W)
            print(f"  UNBALANCED TRANSFERS ({len(unbalanced)})")
            print("-" * W)
            for item in unbalanced:
                print(
                    f"  {item.reference or '(no reference)'}: "
                    f"{item.outgoing_legs} out / {item.incoming_legs} in, "
                    f"{format_quantity(item.quantity_out)} out vs "
                    f"{format_quantity(item.quantity_in)} in"
                )
            print()

        return 1 if args.check_transfers and unbalanced else 0
    finally:
        session.close()
        reset_engine()


if __name__ == "__main__":
    sys.exit(main())
