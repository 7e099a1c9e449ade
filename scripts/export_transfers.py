#!/usr/bin/env python3
"""
Export stock transfers to CSV, one row per item.

Usage:
    python3 scripts/export_transfers.py [--out transfers.csv] [filters]

Examples:
    # Everything, to stdout
    python3 scripts/export_transfers.py

    # Sent transfers leaving the main warehouse
    python3 scripts/export_transfers.py --state SENT --origin "main warehouse" --out sent.csv
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export transfers as CSV (one row per item).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--out", type=Path, default=None, help="Output file (default: stdout).")
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML file.")
    parser.add_argument("--db-url", default=None, help="Database URL (overrides settings).")
    parser.add_argument("--store-id", type=UUID, default=None, help="Only this store.")
    parser.add_argument("--state", default=None, help="Only this state (e.g. SENT).")
    parser.add_argument("--origin", default=None, help="Origin location contains (case-insensitive).")
    parser.add_argument(
        "--destination", default=None, help="Destination location contains (case-insensitive).",
    )
    parser.add_argument(
        "--created-from", type=date.fromisoformat, default=None,
        help="Created on or after (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--created-to", type=date.fromisoformat, default=None,
        help="Created on or before (YYYY-MM-DD).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    from stock_ingestion.services import TransferExportService
    from stock_kernel.db.engine import init_engine_from_url, session_scope
    from stock_kernel.logging_config import configure_logging
    from stock_kernel.settings import load_settings
    from stock_modules.transfers.config import TransferConfig
    from stock_modules.transfers.models import TransferState
    from stock_modules.transfers.repository import TransferFilters

    try:
        settings = load_settings(args.config)
        config = TransferConfig.from_dict(settings.transfers)
        state = TransferState(args.state.upper()) if args.state else None
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    init_engine_from_url(args.db_url or settings.database_url, echo=settings.sql_echo)

    filters = TransferFilters(
        store_id=args.store_id,
        origin_location=args.origin,
        destination_location=args.destination,
        state=state,
        created_from=args.created_from,
        created_to=args.created_to,
    )

    with session_scope() as session:
        text = TransferExportService(session, config=config).export_csv(filters)

    if args.out is None:
        sys.stdout.write(text)
    else:
        args.out.write_text(text, encoding="utf-8")
        print(f"Wrote {args.out}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
