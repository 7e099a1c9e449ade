"""
Transfers Module Service (``stock_modules.transfers.service``).

Responsibility
--------------
Application service for stock transfers: validates creation requests, loads
aggregates through the ``TransferRepository`` port, applies lifecycle
operations and persists the result.  Business rules live on the aggregate
(``transfers.models``); this is glue.

Architecture
------------
Layer: **Modules** -- stateful orchestration wrapper.

Invariants
----------
- Each public method that writes owns its transaction boundary: it calls
  ``session.commit()`` on success and ``session.rollback()`` on failure.
- Batch quantity updates are all-or-nothing: if any line fails, nothing of
  the batch is persisted.

Failure Modes
-------------
- ``TransferRequestInvalidError`` -- creation request has problems (all of
  them are reported at once).
- ``TransferNotFoundError`` -- unknown transfer id.
- Aggregate errors (``InvalidTransferStateError``, ``InvalidQuantityError``,
  ...) propagate after rollback.

Usage::

    service = TransferService(session, clock=clock)
    transfer = service.create_transfer(CreateTransferRequest(
        origin_location="WH-1", destination_location="STORE-7",
        creator_id=user_id,
        items=(TransferLineRequest("SKU-1", 10),),
    ))
    service.send_transfer(transfer.id)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.dtos import ValidationError
from stock_kernel.exceptions import (
    InvalidArgumentError,
    TransferNotFoundError,
    TransferRequestInvalidError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import Transfer, TransferItem
from stock_modules.transfers.repository import (
    Pagination,
    SqlTransferRepository,
    TransferFilters,
    TransferRepository,
)

logger = get_logger("modules.transfers.service")


# =============================================================================
# Request / response DTOs
# =============================================================================


@dataclass(frozen=True)
class TransferLineRequest:
    product_id: str
    requested_qty: int


@dataclass(frozen=True)
class CreateTransferRequest:
    """Input for ``TransferService.create_transfer``."""

    origin_location: str
    destination_location: str
    creator_id: UUID | None
    items: tuple[TransferLineRequest, ...] = ()
    store_id: UUID | None = None
    acting_user_id: UUID | None = None
    notes: str | None = None
    expected_date: date | None = None


@dataclass(frozen=True)
class QuantityUpdate:
    """New shipped or received quantity for one item."""

    item_id: UUID
    quantity: int


@dataclass(frozen=True)
class TransferPage:
    transfers: tuple[Transfer, ...]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0


# =============================================================================
# Request validation
# =============================================================================


def validate_create_request(request: CreateTransferRequest) -> list[ValidationError]:
    """Every problem with a creation request; empty list when valid."""
    errors: list[ValidationError] = []
    origin = (request.origin_location or "").strip()
    destination = (request.destination_location or "").strip()

    if not origin:
        errors.append(ValidationError(
            code="REQUIRED_FIELD",
            message="Origin location is required",
            field="origin_location",
        ))
    if not destination:
        errors.append(ValidationError(
            code="REQUIRED_FIELD",
            message="Destination location is required",
            field="destination_location",
        ))
    if origin and origin == destination:
        errors.append(ValidationError(
            code="SAME_LOCATION",
            message="Origin and destination locations must differ",
            field="destination_location",
        ))
    if request.creator_id is None:
        errors.append(ValidationError(
            code="REQUIRED_FIELD",
            message="Creator is required",
            field="creator_id",
        ))
    if not request.items:
        errors.append(ValidationError(
            code="NO_ITEMS",
            message="At least one item is required",
            field="items",
        ))

    seen: set[str] = set()
    for index, line in enumerate(request.items):
        product_id = (line.product_id or "").strip()
        if not product_id:
            errors.append(ValidationError(
                code="REQUIRED_FIELD",
                message=f"Item {index + 1}: product id is required",
                field=f"items[{index}].product_id",
            ))
        elif product_id in seen:
            errors.append(ValidationError(
                code="DUPLICATE_PRODUCT",
                message=f"Item {index + 1}: product {product_id} is listed twice",
                field=f"items[{index}].product_id",
            ))
        seen.add(product_id)

        qty = line.requested_qty
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            errors.append(ValidationError(
                code="INVALID_QUANTITY",
                message=f"Item {index + 1}: requested quantity must be a positive integer",
                field=f"items[{index}].requested_qty",
                details={"value": qty},
            ))
    return errors


# =============================================================================
# Service
# =============================================================================


class TransferService:
    """
    Orchestrates transfer lifecycle operations.

    Contract
    --------
    Accepts transfer ids and domain-typed parameters, loads the aggregate,
    applies one lifecycle operation (or one batch of quantity updates) and
    persists it.  Commits on success, rolls back on failure.

    Non-goals
    ---------
    - Does NOT decide which operation is legal in which state -- the
      aggregate and ``TRANSFER_WORKFLOW`` do.
    - Does NOT read or write CSV -- see ``stock_ingestion``.
    """

    def __init__(
        self,
        session: Session,
        repository: TransferRepository | None = None,
        clock: Clock | None = None,
        config: TransferConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or TransferConfig()
        self._repository = repository or SqlTransferRepository(
            session, config=self._config, clock=self._clock,
        )

    @property
    def repository(self) -> TransferRepository:
        return self._repository

    def _load(self, transfer_id: UUID) -> Transfer:
        transfer = self._repository.find_by_id(transfer_id)
        if transfer is None:
            raise TransferNotFoundError(str(transfer_id))
        return transfer

    # =========================================================================
    # Creation
    # =========================================================================

    def create_transfer(self, request: CreateTransferRequest) -> Transfer:
        """
        Create and persist a DRAFT transfer with the requested items.

        Raises:
            TransferRequestInvalidError: listing every problem in the request.
        """
        errors = validate_create_request(request)
        if errors:
            logger.warning("transfer_request_rejected", extra={
                "error_count": len(errors),
                "error_codes": [e.code for e in errors],
            })
            raise TransferRequestInvalidError(errors)

        try:
            transfer = Transfer.create(
                self._repository.next_transfer_number(),
                request.origin_location,
                request.destination_location,
                request.creator_id,
                store_id=request.store_id,
                acting_user_id=request.acting_user_id,
                notes=request.notes,
                expected_date=request.expected_date,
                clock=self._clock,
            )
            for line in request.items:
                transfer.add_item(TransferItem.create(line.product_id, line.requested_qty))

            self._repository.save(transfer)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info("transfer_created", extra={
            "transfer_id": str(transfer.id),
            "transfer_number": transfer.transfer_number,
            "item_count": len(transfer.items),
        })
        return transfer

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def send_transfer(self, transfer_id: UUID) -> Transfer:
        with LogContext.bind(transfer_id=transfer_id):
            try:
                transfer = self._load(transfer_id)
                transfer.send()
                self._repository.update(transfer)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            return transfer

    def ship_items(self, transfer_id: UUID, lines: Sequence[QuantityUpdate]) -> Transfer:
        """Apply shipped quantities; the state is re-derived after each line."""
        return self._apply_lines(transfer_id, lines, "ship")

    def receive_items(self, transfer_id: UUID, lines: Sequence[QuantityUpdate]) -> Transfer:
        """Apply received quantities; the state is re-derived after each line."""
        return self._apply_lines(transfer_id, lines, "receive")

    def _apply_lines(
        self,
        transfer_id: UUID,
        lines: Sequence[QuantityUpdate],
        action: str,
    ) -> Transfer:
        if not lines:
            raise InvalidArgumentError("lines", lines, "at least one line is required")

        with LogContext.bind(transfer_id=transfer_id):
            try:
                transfer = self._load(transfer_id)
                for line in lines:
                    if action == "ship":
                        transfer.update_shipped_qty(line.item_id, line.quantity)
                    else:
                        transfer.update_received_qty(line.item_id, line.quantity)
                self._repository.update(transfer)
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning("transfer_quantity_batch_rejected", extra={
                    "action": action,
                    "line_count": len(lines),
                })
                raise

            logger.info("transfer_quantities_updated", extra={
                "action": action,
                "line_count": len(lines),
                "state": transfer.state.value,
            })
            return transfer

    def complete_transfer(self, transfer_id: UUID) -> Transfer:
        with LogContext.bind(transfer_id=transfer_id):
            try:
                transfer = self._load(transfer_id)
                transfer.complete()
                self._repository.update(transfer)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            return transfer

    def cancel_transfer(self, transfer_id: UUID, reason: str | None) -> Transfer:
        with LogContext.bind(transfer_id=transfer_id):
            try:
                transfer = self._load(transfer_id)
                transfer.cancel(reason)
                self._repository.update(transfer)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            return transfer

    # =========================================================================
    # Queries
    # =========================================================================

    def get_transfer(self, transfer_id: UUID) -> Transfer:
        return self._load(transfer_id)

    def list_transfers(
        self,
        filters: TransferFilters | None = None,
        pagination: Pagination | None = None,
    ) -> TransferPage:
        pagination = pagination or Pagination()
        page, limit = pagination.resolve(self._config)
        transfers = self._repository.list(filters, pagination)
        total = self._repository.count(filters)
        return TransferPage(
            transfers=tuple(transfers),
            total=total,
            page=page,
            limit=limit,
        )
