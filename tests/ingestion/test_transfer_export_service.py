"""Tests for TransferExportService and re-importing its output."""

from datetime import date

import pytest

from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import TransferState
from stock_modules.transfers.repository import TransferFilters
from stock_modules.transfers.service import CreateTransferRequest, QuantityUpdate, TransferLineRequest
from stock_ingestion.adapters import CsvTextAdapter
from stock_ingestion.domain.types import EXPORT_COLUMNS
from stock_ingestion.services import TransferExportService, TransferImportService, transfer_rows


@pytest.fixture
def export_service(session, repository, transfer_config):
    return TransferExportService(session, repository=repository, config=transfer_config)


@pytest.fixture
def shipped_transfer(transfer_service, actor_id):
    transfer = transfer_service.create_transfer(CreateTransferRequest(
        origin_location="WH-A",
        destination_location="STORE-B",
        creator_id=actor_id,
        items=(TransferLineRequest("SKU-1", 3), TransferLineRequest("SKU-2", 4)),
        notes="aisle 4, bay 2",
        expected_date=date(2024, 1, 10),
    ))
    transfer_service.send_transfer(transfer.id)
    return transfer_service.ship_items(transfer.id, [
        QuantityUpdate(transfer.item_for_product("SKU-1").id, 1),
        QuantityUpdate(transfer.item_for_product("SKU-2").id, 4),
    ])


class TestTransferRows:

    def test_one_row_per_item(self, shipped_transfer):
        rows = transfer_rows(shipped_transfer)
        assert rows[0] == [
            "TRF-000001", "WH-A", "STORE-B", "PARTIALLY_RECEIVED", "2024-01-10", "",
            "aisle 4, bay 2", "SKU-1", "3", "1", "0", "33.33", "0.00",
        ]
        assert rows[1][7:] == ["SKU-2", "4", "4", "0", "100.00", "0.00"]

    def test_completed_date(self, transfer_service, shipped_transfer, clock):
        completed = transfer_service.ship_items(shipped_transfer.id, [
            QuantityUpdate(shipped_transfer.item_for_product("SKU-1").id, 3),
        ])
        assert completed.state is TransferState.COMPLETED
        assert transfer_rows(completed)[0][5] == clock.now().date().isoformat()


class TestExportCsv:

    def test_header_and_quoting(self, export_service, shipped_transfer):
        lines = export_service.export_csv().splitlines()
        assert lines[0] == ",".join(c.value for c in EXPORT_COLUMNS)
        assert '"aisle 4, bay 2"' in lines[1]
        assert len(lines) == 3

    def test_empty_export_is_header_only(self, export_service):
        assert export_service.export_csv() == ",".join(c.value for c in EXPORT_COLUMNS) + "\n"

    def test_filters(self, export_service, shipped_transfer):
        text = export_service.export_csv(TransferFilters(state=TransferState.DRAFT))
        assert len(text.splitlines()) == 1

    def test_transfer_without_items_dropped(self, export_service, make_transfer, captured_logs):
        text = export_service.render([make_transfer(), make_transfer(("SKU-1", 2), number="TRF-000002")])

        rows = CsvTextAdapter().read_text(text).rows
        assert [r["Transfer Number"] for _, r in rows] == ["TRF-000002"]
        dropped = [r for r in captured_logs() if r["message"] == "export_transfer_without_items"]
        assert [r["transfer_number"] for r in dropped] == ["TRF-000001"]

    def test_pages_through_every_transfer(self, session, repository, clock, transfer_service, actor_id):
        for _ in range(3):
            transfer_service.create_transfer(CreateTransferRequest(
                "WH-A", "STORE-B", actor_id, items=(TransferLineRequest("SKU-1", 1),),
            ))
            clock.advance(60)

        service = TransferExportService(
            session, repository=repository, config=TransferConfig(default_page_size=2, max_page_size=2),
        )
        numbers = [r["Transfer Number"] for _, r in CsvTextAdapter().read_text(service.export_csv()).rows]
        assert numbers == ["TRF-000003", "TRF-000002", "TRF-000001"]


class TestExportReimport:

    def test_export_reimports_as_draft(self, session, repository, clock, export_service,
                                       shipped_transfer, actor_id):
        text = export_service.export_csv()
        result = TransferImportService(session, repository=repository, clock=clock).import_csv(text, actor_id)

        (imported,) = result.transfers
        assert result.warnings == ()
        assert imported.transfer_number == "TRF-000002"
        assert imported.state is TransferState.DRAFT
        assert imported.notes == "aisle 4, bay 2"
        assert imported.expected_date == date(2024, 1, 10)
        assert [(i.product_id, i.requested_qty, i.shipped_qty, i.received_qty)
                for i in imported.items] == [("SKU-1", 3, 0, 0), ("SKU-2", 4, 0, 0)]
