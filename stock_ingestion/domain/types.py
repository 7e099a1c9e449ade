"""
stock_ingestion.domain.types -- Pure frozen dataclasses for transfer CSV exchange.

ZERO I/O.  The column schema is the single place header names are spelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stock_modules.transfers.models import Transfer


# =============================================================================
# Column schema
# =============================================================================


class TransferCsvColumn(str, Enum):
    """Header names of the transfer CSV format."""

    TRANSFER_NUMBER = "Transfer Number"
    ORIGIN_LOCATION = "Origin Location"
    DESTINATION_LOCATION = "Destination Location"
    STATE = "State"
    EXPECTED_DATE = "Expected Date"
    COMPLETED_DATE = "Completed Date"
    NOTES = "Notes"
    PRODUCT_ID = "Product ID"
    REQUESTED_QTY = "Requested Qty"
    SHIPPED_QTY = "Shipped Qty"
    RECEIVED_QTY = "Received Qty"
    SHIP_PERCENTAGE = "Ship Percentage"
    RECEIVE_PERCENTAGE = "Receive Percentage"
    BATCH_ID = "Batch ID"  # Import only


EXPORT_COLUMNS: tuple[TransferCsvColumn, ...] = (
    TransferCsvColumn.TRANSFER_NUMBER,
    TransferCsvColumn.ORIGIN_LOCATION,
    TransferCsvColumn.DESTINATION_LOCATION,
    TransferCsvColumn.STATE,
    TransferCsvColumn.EXPECTED_DATE,
    TransferCsvColumn.COMPLETED_DATE,
    TransferCsvColumn.NOTES,
    TransferCsvColumn.PRODUCT_ID,
    TransferCsvColumn.REQUESTED_QTY,
    TransferCsvColumn.SHIPPED_QTY,
    TransferCsvColumn.RECEIVED_QTY,
    TransferCsvColumn.SHIP_PERCENTAGE,
    TransferCsvColumn.RECEIVE_PERCENTAGE,
)

REQUIRED_IMPORT_COLUMNS: tuple[TransferCsvColumn, ...] = (
    TransferCsvColumn.ORIGIN_LOCATION,
    TransferCsvColumn.DESTINATION_LOCATION,
    TransferCsvColumn.PRODUCT_ID,
    TransferCsvColumn.REQUESTED_QTY,
)


# =============================================================================
# Parsed rows and groups
# =============================================================================


@dataclass(frozen=True)
class TransferRow:
    """One validated import row: a product line plus its transfer header fields."""

    line_number: int
    origin_location: str
    destination_location: str
    product_id: str
    requested_qty: int
    expected_date: date | None = None
    notes: str | None = None
    batch_id: str | None = None
    transfer_number: str | None = None


class GroupKeySource(str, Enum):
    """Which row field produced a group key."""

    BATCH_ID = "batch_id"
    TRANSFER_NUMBER = "transfer_number"
    LOCATIONS = "locations"  # origin|destination fallback


@dataclass(frozen=True)
class TransferGroup:
    """Rows that become one transfer, in file order."""

    key: str
    source: GroupKeySource
    origin_location: str
    destination_location: str
    rows: tuple[TransferRow, ...]

    @property
    def expected_date(self) -> date | None:
        return next((r.expected_date for r in self.rows if r.expected_date), None)

    @property
    def notes(self) -> str | None:
        return next((r.notes for r in self.rows if r.notes), None)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ImportWarning:
    """Non-fatal finding attached to an import result."""

    code: str
    message: str
    group_key: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a committed import."""

    transfers: tuple[Transfer, ...]
    warnings: tuple[ImportWarning, ...]
    row_count: int

    @property
    def transfer_count(self) -> int:
        return len(self.transfers)
