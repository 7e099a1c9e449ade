"""
Transfer persistence (``stock_modules.transfers.repository``).

Responsibility
--------------
The persistence port the transfer core depends on (``TransferRepository``)
and its SQLAlchemy adapter (``SqlTransferRepository``).  Also owns the
``TRF-NNNNNN`` number format.

Architecture
------------
Layer: **Modules** -- imperative shell.  The adapter never commits; the
calling service owns the transaction boundary.

Invariants
----------
- Transfer numbers come from ``SequenceService.next_value`` (locked counter
  row), never from "last stored number + 1".  A rolled back transaction
  does not consume a number.
- ``list`` returns newest first (created_at desc, then transfer_number desc).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Protocol
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.exceptions import InvalidArgumentError, SequenceFormatError, TransferNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.services.sequence_service import SequenceService
from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import Transfer, TransferState
from stock_modules.transfers.orm import TransferModel

logger = get_logger("modules.transfers.repository")


# =============================================================================
# Number format
# =============================================================================


def format_transfer_number(value: int, prefix: str = "TRF", width: int = 6) -> str:
    """``format_transfer_number(42) == "TRF-000042"``."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise SequenceFormatError(value, f"{prefix}-{'N' * width}")
    return f"{prefix}-{value:0{width}d}"


def parse_transfer_number(number: str, prefix: str = "TRF") -> int:
    """Numeric part of a transfer number."""
    match = re.fullmatch(rf"{re.escape(prefix)}-(\d+)", number or "")
    if match is None:
        raise SequenceFormatError(number, f"{prefix}-NNNNNN")
    return int(match.group(1))


# =============================================================================
# Query objects
# =============================================================================


@dataclass(frozen=True)
class TransferFilters:
    """
    Listing filters.  ``None`` means "no constraint".

    Location and number filters are case-insensitive substring matches.
    ``created_from`` / ``created_to`` are inclusive; a plain date covers the
    whole day.
    """

    store_id: UUID | None = None
    origin_location: str | None = None
    destination_location: str | None = None
    state: TransferState | None = None
    created_from: datetime | date | None = None
    created_to: datetime | date | None = None
    transfer_number: str | None = None
    creator_id: UUID | None = None
    acting_user_id: UUID | None = None


@dataclass(frozen=True)
class Pagination:
    """1-based page number and page size (None -> configured default)."""

    page: int = 1
    limit: int | None = None

    def resolve(self, config: TransferConfig) -> tuple[int, int]:
        """Validated ``(page, limit)``; limit is capped at ``max_page_size``."""
        if self.page < 1:
            raise InvalidArgumentError("page", self.page, "must be at least 1")
        limit = config.default_page_size if self.limit is None else self.limit
        if limit < 1:
            raise InvalidArgumentError("limit", self.limit, "must be at least 1")
        return self.page, min(limit, config.max_page_size)


def _day_start(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=UTC)


def _day_end(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max, tzinfo=UTC)


# =============================================================================
# Port
# =============================================================================


class TransferRepository(Protocol):
    """Persistence port for the Transfer aggregate."""

    def save(self, transfer: Transfer) -> Transfer: ...

    def find_by_id(self, transfer_id: UUID) -> Transfer | None: ...

    def find_by_transfer_number(self, transfer_number: str) -> Transfer | None: ...

    def list(
        self,
        filters: TransferFilters | None = None,
        pagination: Pagination | None = None,
    ) -> list[Transfer]: ...

    def count(self, filters: TransferFilters | None = None) -> int: ...

    def update(self, transfer: Transfer) -> Transfer: ...

    def delete(self, transfer_id: UUID) -> bool: ...

    def next_transfer_number(self) -> str: ...


# =============================================================================
# SQLAlchemy adapter
# =============================================================================


class SqlTransferRepository:
    """
    ``TransferRepository`` backed by the ``stock_transfers`` tables.

    Contract:
        Flushes but never commits.  Returned aggregates carry the
        repository's clock.
    """

    def __init__(
        self,
        session: Session,
        sequence_service: SequenceService | None = None,
        config: TransferConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._sequences = sequence_service or SequenceService(session)
        self._config = config or TransferConfig()
        self._clock = clock

    # -- reads ---------------------------------------------------------------

    def find_by_id(self, transfer_id: UUID) -> Transfer | None:
        model = self._session.get(TransferModel, transfer_id)
        return model.to_dto(self._clock) if model is not None else None

    def find_by_transfer_number(self, transfer_number: str) -> Transfer | None:
        model = self._session.execute(
            select(TransferModel).where(TransferModel.transfer_number == transfer_number)
        ).scalar_one_or_none()
        return model.to_dto(self._clock) if model is not None else None

    def _apply_filters(self, stmt: Select, filters: TransferFilters | None) -> Select:
        if filters is None:
            return stmt
        if filters.store_id is not None:
            stmt = stmt.where(TransferModel.store_id == filters.store_id)
        if filters.origin_location:
            stmt = stmt.where(
                func.lower(TransferModel.origin_location).contains(
                    filters.origin_location.lower(), autoescape=True,
                )
            )
        if filters.destination_location:
            stmt = stmt.where(
                func.lower(TransferModel.destination_location).contains(
                    filters.destination_location.lower(), autoescape=True,
                )
            )
        if filters.state is not None:
            stmt = stmt.where(TransferModel.state == filters.state.value)
        if filters.created_from is not None:
            stmt = stmt.where(TransferModel.created_at >= _day_start(filters.created_from))
        if filters.created_to is not None:
            stmt = stmt.where(TransferModel.created_at <= _day_end(filters.created_to))
        if filters.transfer_number:
            stmt = stmt.where(
                func.lower(TransferModel.transfer_number).contains(
                    filters.transfer_number.lower(), autoescape=True,
                )
            )
        if filters.creator_id is not None:
            stmt = stmt.where(TransferModel.created_by_id == filters.creator_id)
        if filters.acting_user_id is not None:
            stmt = stmt.where(TransferModel.acting_user_id == filters.acting_user_id)
        return stmt

    def list(
        self,
        filters: TransferFilters | None = None,
        pagination: Pagination | None = None,
    ) -> list[Transfer]:
        page, limit = (pagination or Pagination()).resolve(self._config)
        stmt = self._apply_filters(select(TransferModel), filters)
        stmt = (
            stmt.order_by(TransferModel.created_at.desc(), TransferModel.transfer_number.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        models = self._session.execute(stmt).scalars().all()
        return [m.to_dto(self._clock) for m in models]

    def count(self, filters: TransferFilters | None = None) -> int:
        stmt = self._apply_filters(select(func.count(TransferModel.id)), filters)
        return self._session.execute(stmt).scalar_one()

    # -- writes --------------------------------------------------------------

    def save(self, transfer: Transfer) -> Transfer:
        model = TransferModel.from_dto(transfer)
        self._session.add(model)
        self._session.flush()
        transfer.id = model.id
        logger.info("transfer_saved", extra={
            "transfer_id": str(model.id),
            "transfer_number": transfer.transfer_number,
            "item_count": len(transfer.items),
        })
        return transfer

    def update(self, transfer: Transfer) -> Transfer:
        model = self._session.get(TransferModel, transfer.id) if transfer.id else None
        if model is None:
            raise TransferNotFoundError(str(transfer.id or transfer.transfer_number))
        model.apply_dto(transfer)
        self._session.flush()
        logger.debug("transfer_updated", extra={
            "transfer_id": str(model.id),
            "state": transfer.state.value,
        })
        return transfer

    def delete(self, transfer_id: UUID) -> bool:
        model = self._session.get(TransferModel, transfer_id)
        if model is None:
            return False
        self._session.delete(model)
        self._session.flush()
        logger.info("transfer_deleted", extra={"transfer_id": str(transfer_id)})
        return True

    # -- numbering -----------------------------------------------------------

    def next_transfer_number(self) -> str:
        value = self._sequences.next_value(self._config.sequence_name)
        return format_transfer_number(
            value, self._config.number_prefix, self._config.number_width,
        )

    def sync_sequence(self) -> int:
        """
        Move the counter up to the highest stored transfer number.

        For migrating data created outside the sequence; the counter never
        moves backwards.  Returns the counter value afterwards.
        """
        numbers = self._session.execute(select(TransferModel.transfer_number)).scalars().all()
        highest = max(
            (parse_transfer_number(n, self._config.number_prefix) for n in numbers),
            default=0,
        )
        current = self._sequences.current_value(self._config.sequence_name) or 0
        if highest > current:
            self._sequences.reset(self._config.sequence_name, highest)
            return highest
        return current
