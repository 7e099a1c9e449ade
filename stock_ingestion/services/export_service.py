"""
Transfer export service: transfers -> CSV text, one row per item.

A transfer with no items has no row to carry it and is left out of the
export; each such transfer is logged as ``export_transfer_without_items``.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from stock_kernel.logging_config import get_logger
from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import Transfer
from stock_modules.transfers.repository import (
    Pagination,
    SqlTransferRepository,
    TransferFilters,
    TransferRepository,
)

from stock_ingestion.adapters.csv_adapter import CsvTextAdapter
from stock_ingestion.domain.types import EXPORT_COLUMNS

logger = get_logger("ingestion.export_service")


def _iso_date(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "date"):
        value = value.date()
    return value.isoformat()


def transfer_rows(transfer: Transfer) -> list[list[str]]:
    """Flatten one transfer into rows ordered as ``EXPORT_COLUMNS``."""
    header = [
        transfer.transfer_number,
        transfer.origin_location,
        transfer.destination_location,
        transfer.state.value,
        _iso_date(transfer.expected_date),
        _iso_date(transfer.completed_at),
        transfer.notes or "",
    ]
    return [
        header + [
            item.product_id,
            str(item.requested_qty),
            str(item.shipped_qty),
            str(item.received_qty),
            f"{item.ship_percentage():.2f}",
            f"{item.receive_percentage():.2f}",
        ]
        for item in transfer.items
    ]


class TransferExportService:
    """Render transfers as CSV text."""

    def __init__(
        self,
        session: Session,
        repository: TransferRepository | None = None,
        config: TransferConfig | None = None,
        adapter: CsvTextAdapter | None = None,
    ):
        self._session = session
        self._config = config or TransferConfig()
        self._repository = repository or SqlTransferRepository(session, config=self._config)
        self._adapter = adapter or CsvTextAdapter(delimiter=self._config.csv_delimiter)

    def render(self, transfers: Iterable[Transfer]) -> str:
        """CSV text for the given transfers (header always first)."""
        rows: list[list[str]] = []
        transfer_count = 0
        for transfer in transfers:
            transfer_count += 1
            if not transfer.items:
                logger.info("export_transfer_without_items", extra={
                    "transfer_number": transfer.transfer_number,
                })
                continue
            rows.extend(transfer_rows(transfer))

        logger.info("csv_export_rendered", extra={
            "transfer_count": transfer_count,
            "row_count": len(rows),
        })
        return self._adapter.write_text([c.value for c in EXPORT_COLUMNS], rows)

    def _all_matching(self, filters: TransferFilters | None) -> Iterable[Transfer]:
        limit = self._config.max_page_size
        page = 1
        while True:
            batch = self._repository.list(filters, Pagination(page=page, limit=limit))
            yield from batch
            if len(batch) < limit:
                return
            page += 1

    def export_csv(self, filters: TransferFilters | None = None) -> str:
        """Every transfer matching ``filters``, newest first."""
        return self.render(self._all_matching(filters))
