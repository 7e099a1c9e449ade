#!/usr/bin/env python3
"""
Import stock transfers from a CSV file: validate, group, and create DRAFT transfers.

Settings come from the YAML file named by --config (or $STOCK_CONFIG_FILE)
overlaid by STOCK_* environment variables; --db-url wins over both.

Usage:
    python3 scripts/import_transfers.py --file <path> [options]

Examples:
    # Validate and group only (no DB writes)
    python3 scripts/import_transfers.py --file transfers.csv --dry-run

    # Import into a store, creating tables first
    python3 scripts/import_transfers.py --file transfers.csv \
        --store-id 6f1c... --create-tables
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from uuid import UUID, uuid4

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import transfers: read CSV -> validate -> group -> create DRAFT transfers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--file", required=True, type=Path, help="CSV file to import (UTF-8).")
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML file.")
    parser.add_argument("--db-url", default=None, help="Database URL (overrides settings).")
    parser.add_argument(
        "--actor-id",
        default=None,
        help="Creator UUID (default: IMPORT_ACTOR_ID env or new UUID).",
    )
    parser.add_argument("--store-id", default=None, help="Store UUID to scope the transfers to.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and group only; do not write to the database.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before importing.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    source_path = args.file.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return 1
    try:
        actor_id = UUID(args.actor_id or os.environ.get("IMPORT_ACTOR_ID") or str(uuid4()))
        store_id = UUID(args.store_id) if args.store_id else None
    except ValueError as e:
        print(f"ERROR: Invalid UUID for --actor-id or --store-id: {e}", file=sys.stderr)
        return 1

    # Lazy imports so we fail fast on args first
    from stock_ingestion.services import TransferImportService
    from stock_kernel.db.engine import create_tables, get_session, init_engine_from_url
    from stock_kernel.exceptions import CsvImportError
    from stock_kernel.logging_config import configure_logging
    from stock_kernel.settings import load_settings
    from stock_modules.transfers.config import TransferConfig

    try:
        settings = load_settings(args.config)
        config = TransferConfig.from_dict(settings.transfers)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    try:
        text = source_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        print(f"ERROR: {source_path} is not valid UTF-8: {e}", file=sys.stderr)
        return 1

    init_engine_from_url(args.db_url or settings.database_url, echo=settings.sql_echo)
    if args.create_tables:
        create_tables()

    session = get_session()
    try:
        service = TransferImportService(session, config=config)
        if args.dry_run:
            groups, warnings, row_count = service.parse(text)
            print(f"Rows: {row_count}")
            print(f"Transfers to create: {len(groups)}")
            for group in groups:
                print(f"  {group.key}: {len(group.rows)} item(s)")
        else:
            result = service.import_csv(text, actor_id=actor_id, store_id=store_id)
            warnings = result.warnings
            print(f"Rows: {result.row_count}")
            print(f"Transfers created: {result.transfer_count}")
            for transfer in result.transfers:
                print(f"  {transfer.transfer_number}: {transfer.origin_location} -> "
                      f"{transfer.destination_location} ({len(transfer.items)} item(s))")
        for warning in warnings:
            print(f"WARNING [{warning.code}]: {warning.message}")
    except CsvImportError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        for error in getattr(e, "errors", ()):
            print(f"  {error.message}", file=sys.stderr)
        return 1
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
