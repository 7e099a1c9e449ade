"""
Stock Ingestion.

Bulk CSV exchange for stock transfers: export of transfers one row per item,
and import of flat rows back into DRAFT transfers.

Layers:
- adapters: CSV text in and out
- domain: column schema, row validators, row grouping (ZERO I/O)
- services: import (single transaction) and export orchestration
"""
