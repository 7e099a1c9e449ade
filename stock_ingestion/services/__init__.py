"""Import and export services for transfer CSV exchange."""

from stock_ingestion.services.export_service import TransferExportService, transfer_rows
from stock_ingestion.services.import_service import TransferImportService

__all__ = ["TransferExportService", "TransferImportService", "transfer_rows"]
