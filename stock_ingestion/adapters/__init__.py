"""Text adapters for bulk transfer exchange."""

from stock_ingestion.adapters.csv_adapter import CsvDocument, CsvTextAdapter

__all__ = ["CsvDocument", "CsvTextAdapter"]
