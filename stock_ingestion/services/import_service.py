"""
Transfer import service: CSV text -> validated groups -> DRAFT transfers.

Pipeline:
    1. Read text (``CsvTextAdapter``); blank lines ignored.
    2. Header check -- missing required columns fail before any row is read.
    3. Row validation -- every bad row reported at once.
    4. Grouping -- one transfer per group key.
    5. Persist every group inside ONE transaction: numbers are allocated from
       the locked sequence row, so a failed import creates no transfer and
       consumes no number.

Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

import csv
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.exceptions import EmptyImportError, MalformedCsvError, RowValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import Transfer, TransferItem
from stock_modules.transfers.repository import SqlTransferRepository, TransferRepository

from stock_ingestion.adapters.csv_adapter import CsvTextAdapter
from stock_ingestion.domain.grouping import group_rows
from stock_ingestion.domain.types import ImportResult, ImportWarning, TransferGroup
from stock_ingestion.domain.validators import require_columns, validate_rows

logger = get_logger("ingestion.import_service")


class TransferImportService:
    """
    Bulk-create DRAFT transfers from CSV text.

    Transaction boundary: ``import_csv`` commits once after every group is
    saved and rolls back everything on any failure.
    """

    def __init__(
        self,
        session: Session,
        repository: TransferRepository | None = None,
        clock: Clock | None = None,
        config: TransferConfig | None = None,
        adapter: CsvTextAdapter | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or TransferConfig()
        self._repository = repository or SqlTransferRepository(
            session, config=self._config, clock=self._clock,
        )
        self._adapter = adapter or CsvTextAdapter(delimiter=self._config.csv_delimiter)

    def parse(self, text: str) -> tuple[list[TransferGroup], list[ImportWarning], int]:
        """
        Validate and group CSV text without touching the database.

        Returns ``(groups, warnings, row_count)``.

        Raises:
            EmptyImportError: no header or no data rows.
            MalformedCsvError: text the CSV reader rejects.
            MissingColumnsError: required header(s) absent.
            RowValidationError: carrying every row and grouping error.
        """
        try:
            document = self._adapter.read_text(text)
        except csv.Error as e:
            raise MalformedCsvError(str(e)) from e
        if not document.columns:
            raise EmptyImportError(document.line_count)
        require_columns(document.columns)
        if not document.rows:
            raise EmptyImportError(document.line_count)

        rows, errors = validate_rows(document.rows)
        groups, group_errors, warnings = group_rows(
            rows, allow_implicit=self._config.allow_implicit_grouping,
        )
        errors.extend(group_errors)
        if errors:
            logger.warning("csv_import_rejected", extra={
                "row_count": len(document.rows),
                "error_count": len(errors),
                "first_errors": [e.to_dict() for e in errors[:10]],
            })
            raise RowValidationError(errors)

        for warning in warnings:
            logger.warning("csv_import_implicit_grouping", extra={
                "group_key": warning.group_key,
            })
        return groups, warnings, len(document.rows)

    def _build_transfer(
        self,
        group: TransferGroup,
        actor_id: UUID,
        store_id: UUID | None,
    ) -> Transfer:
        transfer = Transfer.create(
            self._repository.next_transfer_number(),
            group.origin_location,
            group.destination_location,
            actor_id,
            store_id=store_id,
            acting_user_id=actor_id,
            notes=group.notes,
            expected_date=group.expected_date,
            clock=self._clock,
        )
        for row in group.rows:
            transfer.add_item(TransferItem.create(row.product_id, row.requested_qty))
        return transfer

    def import_csv(
        self,
        text: str,
        actor_id: UUID,
        store_id: UUID | None = None,
    ) -> ImportResult:
        """Create one DRAFT transfer per group; all or nothing."""
        batch_id = uuid4()
        with LogContext.bind(
            batch_id=batch_id, actor_id=actor_id, producer="ingestion",
        ):
            groups, warnings, row_count = self.parse(text)
            logger.info("csv_import_started", extra={
                "row_count": row_count,
                "group_count": len(groups),
            })

            created: list[Transfer] = []
            try:
                for group in groups:
                    transfer = self._build_transfer(group, actor_id, store_id)
                    self._repository.save(transfer)
                    created.append(transfer)
                    logger.debug("csv_import_group_saved", extra={
                        "group_key": group.key,
                        "transfer_number": transfer.transfer_number,
                        "item_count": len(transfer.items),
                    })
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.error("csv_import_failed", extra={
                    "saved_before_failure": len(created),
                    "group_count": len(groups),
                }, exc_info=True)
                raise

            logger.info("csv_import_completed", extra={
                "row_count": row_count,
                "transfer_count": len(created),
                "warning_count": len(warnings),
            })
            return ImportResult(
                transfers=tuple(created),
                warnings=tuple(warnings),
                row_count=row_count,
            )
