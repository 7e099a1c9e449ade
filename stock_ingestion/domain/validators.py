"""
Header and row validators for transfer CSV imports.

Row validators collect ``ValidationError`` DTOs instead of raising, so one
pass reports every bad row.  Within a row only the first failing check is
reported.  Messages start with ``line N`` where N counts the header as
line 1.

Architecture: stock_ingestion/domain. ZERO I/O. Imports only kernel exceptions
and DTOs.
"""

from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence

from stock_kernel.domain.dtos import ValidationError
from stock_kernel.exceptions import MissingColumnsError

from stock_ingestion.domain.types import (
    REQUIRED_IMPORT_COLUMNS,
    TransferCsvColumn,
    TransferRow,
)


# -----------------------------------------------------------------------------
# Header
# -----------------------------------------------------------------------------


def missing_columns(columns: Sequence[str]) -> list[str]:
    """Required header names absent from ``columns`` (exact, case-sensitive)."""
    present = set(columns)
    return [c.value for c in REQUIRED_IMPORT_COLUMNS if c.value not in present]


def require_columns(columns: Sequence[str]) -> None:
    """Raise ``MissingColumnsError`` naming every missing required header."""
    missing = missing_columns(columns)
    if missing:
        raise MissingColumnsError(missing, found=tuple(columns))


# -----------------------------------------------------------------------------
# Field parsing
# -----------------------------------------------------------------------------


def _cell(record: Mapping[str, str], column: TransferCsvColumn) -> str:
    return (record.get(column.value) or "").strip()


def parse_quantity(raw: str) -> int | None:
    """Positive integer or None."""
    try:
        value = int(raw.strip())
    except (AttributeError, ValueError):
        return None
    return value if value > 0 else None


def parse_optional_date(raw: str) -> date | None:
    """ISO ``YYYY-MM-DD``; empty or unparseable reads as None."""
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None


def _row_error(line_number: int, code: str, column: TransferCsvColumn, text: str,
               value: str | None = None) -> ValidationError:
    return ValidationError(
        code=code,
        message=f"line {line_number}: {text}",
        field=column.value,
        details={"line": line_number, "value": value} if value is not None else {"line": line_number},
    )


# -----------------------------------------------------------------------------
# Row validation
# -----------------------------------------------------------------------------


def validate_row(
    line_number: int,
    record: Mapping[str, str],
) -> tuple[TransferRow | None, ValidationError | None]:
    """
    Validate one import row.

    Returns ``(row, None)`` when valid, else ``(None, first_error)``.
    """
    origin = _cell(record, TransferCsvColumn.ORIGIN_LOCATION)
    if not origin:
        return None, _row_error(
            line_number, "REQUIRED_FIELD", TransferCsvColumn.ORIGIN_LOCATION,
            "origin location is required",
        )

    destination = _cell(record, TransferCsvColumn.DESTINATION_LOCATION)
    if not destination:
        return None, _row_error(
            line_number, "REQUIRED_FIELD", TransferCsvColumn.DESTINATION_LOCATION,
            "destination location is required",
        )

    product_id = _cell(record, TransferCsvColumn.PRODUCT_ID)
    if not product_id:
        return None, _row_error(
            line_number, "REQUIRED_FIELD", TransferCsvColumn.PRODUCT_ID,
            "product id is required",
        )

    raw_qty = _cell(record, TransferCsvColumn.REQUESTED_QTY)
    requested_qty = parse_quantity(raw_qty)
    if requested_qty is None:
        return None, _row_error(
            line_number, "INVALID_QUANTITY", TransferCsvColumn.REQUESTED_QTY,
            "requested quantity must be an integer greater than 0", raw_qty,
        )

    if origin == destination:
        return None, _row_error(
            line_number, "SAME_LOCATION", TransferCsvColumn.DESTINATION_LOCATION,
            "origin and destination locations must differ", destination,
        )

    return TransferRow(
        line_number=line_number,
        origin_location=origin,
        destination_location=destination,
        product_id=product_id,
        requested_qty=requested_qty,
        expected_date=parse_optional_date(_cell(record, TransferCsvColumn.EXPECTED_DATE)),
        notes=_cell(record, TransferCsvColumn.NOTES) or None,
        batch_id=_cell(record, TransferCsvColumn.BATCH_ID) or None,
        transfer_number=_cell(record, TransferCsvColumn.TRANSFER_NUMBER) or None,
    ), None


def validate_rows(
    rows: Sequence[tuple[int, Mapping[str, str]]],
) -> tuple[list[TransferRow], list[ValidationError]]:
    """Validate every row; returns the valid rows and all row errors."""
    valid: list[TransferRow] = []
    errors: list[ValidationError] = []
    for line_number, record in rows:
        row, error = validate_row(line_number, record)
        if error is not None:
            errors.append(error)
        else:
            valid.append(row)
    return valid, errors
