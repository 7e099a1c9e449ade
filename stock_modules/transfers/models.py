"""
Transfer Domain Models (``stock_modules.transfers.models``).

Responsibility
--------------
The nouns of a stock transfer: the per-product quantity ledger
(``TransferItem``), the ``Transfer`` aggregate that owns the items and the
lifecycle state, and ``derive_state`` -- the single rule that turns item
quantity totals into a lifecycle state.

Architecture
------------
Layer: **Modules** -- pure domain objects, NO database identity handling and
NO I/O.  The aggregate is mutated in place by its lifecycle operations; the
ORM layer (``transfers.orm``) maps it to and from rows.

Invariants
----------
- Every item satisfies ``0 <= received_qty <= shipped_qty <= requested_qty``
  after any mutation.
- ``origin_location != destination_location``; both non-empty.
- No two items share a ``product_id``.
- A transfer leaves DRAFT only with at least one item.
- Which operation is legal in which state is declared once in
  ``TRANSFER_WORKFLOW``; the aggregate only consults it.

Failure Modes
-------------
- Every guard is checked before any field changes, so a failed operation
  leaves the aggregate exactly as it was.
- Errors are the typed ``stock_kernel.exceptions`` classes (``code``
  attribute for callers).

Completion from shipment
------------------------
Shipping the full requested total derives COMPLETED even though nothing has
been received yet.  Such a transfer records
``completion_source == CompletionSource.SHIPMENT`` and keeps accepting
receipt updates, which re-derive its state from received vs shipped totals.
A transfer completed from receipt totals or by ``complete()`` is final.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable
from uuid import UUID

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.exceptions import (
    DuplicateProductError,
    EmptyTransferError,
    IncompleteReceiptError,
    InvalidArgumentError,
    InvalidQuantityError,
    InvalidTransferStateError,
    TransferItemNotFoundError,
)
from stock_kernel.logging_config import get_logger
from stock_modules.transfers.workflows import COMPLETED_FROM_SHIPMENT, TRANSFER_WORKFLOW

logger = get_logger("modules.transfers.models")


class TransferState(Enum):
    """Lifecycle states of a transfer."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class CompletionSource(Enum):
    """Which path moved a transfer to COMPLETED."""
    SHIPMENT = "shipment"
    RECEIPT = "receipt"
    EXPLICIT = "explicit"


class QuantityBasis(Enum):
    """Pair of totals compared by ``derive_state``."""
    SHIPMENT = "shipment"  # shipped vs requested
    RECEIPT = "receipt"  # received vs shipped


def _require_int(argument: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(argument, value, "must be an integer")
    return value


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


# =============================================================================
# Quantity ledger
# =============================================================================


@dataclass
class TransferItem:
    """
    One product line of a transfer.

    ``id`` is assigned by persistence on save and is None before that.
    """

    product_id: str
    requested_qty: int
    shipped_qty: int = 0
    received_qty: int = 0
    id: UUID | None = None

    def __post_init__(self) -> None:
        for name in ("requested_qty", "shipped_qty", "received_qty"):
            _require_int(name, getattr(self, name))
        if not 0 <= self.received_qty <= self.shipped_qty <= self.requested_qty:
            raise InvalidArgumentError(
                "quantities",
                (self.requested_qty, self.shipped_qty, self.received_qty),
                "must satisfy 0 <= received <= shipped <= requested",
            )

    @classmethod
    def create(cls, product_id: str, requested_qty: int) -> TransferItem:
        """New item with nothing shipped or received."""
        if not isinstance(product_id, str) or not product_id.strip():
            raise InvalidArgumentError("product_id", product_id, "must not be empty")
        _require_int("requested_qty", requested_qty)
        if requested_qty <= 0:
            raise InvalidQuantityError("requested_qty", requested_qty, 1)
        return cls(product_id=product_id.strip(), requested_qty=requested_qty)

    def set_requested_qty(self, qty: int) -> None:
        _require_int("requested_qty", qty)
        if qty <= 0 or qty < self.shipped_qty:
            raise InvalidQuantityError("requested_qty", qty, max(1, self.shipped_qty))
        self.requested_qty = qty

    def set_shipped_qty(self, qty: int) -> None:
        """Shipped may not exceed requested nor drop below what was received."""
        _require_int("shipped_qty", qty)
        if qty < self.received_qty or qty > self.requested_qty:
            raise InvalidQuantityError(
                "shipped_qty", qty, self.received_qty, self.requested_qty,
            )
        self.shipped_qty = qty

    def set_received_qty(self, qty: int) -> None:
        _require_int("received_qty", qty)
        if qty < 0 or qty > self.shipped_qty:
            raise InvalidQuantityError("received_qty", qty, 0, self.shipped_qty)
        self.received_qty = qty

    def ship_percentage(self) -> float:
        return _percentage(self.shipped_qty, self.requested_qty)

    def receive_percentage(self) -> float:
        return _percentage(self.received_qty, self.shipped_qty)

    def is_fully_shipped(self) -> bool:
        return self.shipped_qty == self.requested_qty

    def is_fully_received(self) -> bool:
        return self.received_qty == self.shipped_qty


# =============================================================================
# Derived state
# =============================================================================


def derive_state(items: Iterable[TransferItem], basis: QuantityBasis) -> TransferState:
    """
    Lifecycle state implied by the item totals.

    With ``QuantityBasis.SHIPMENT`` the totals are shipped vs requested, with
    ``QuantityBasis.RECEIPT`` received vs shipped:

        done == 0            -> SENT
        0 < done < target    -> PARTIALLY_RECEIVED
        done >= target       -> COMPLETED
    """
    done = 0
    target = 0
    for item in items:
        if basis is QuantityBasis.SHIPMENT:
            done += item.shipped_qty
            target += item.requested_qty
        else:
            done += item.received_qty
            target += item.shipped_qty

    if done == 0:
        return TransferState.SENT
    if done < target:
        return TransferState.PARTIALLY_RECEIVED
    return TransferState.COMPLETED


# =============================================================================
# Transfer aggregate
# =============================================================================


@dataclass
class Transfer:
    """
    Aggregate root for a movement of products between two locations.

    Contract:
        Sole authority over its items and its state.  Callers serialize
        mutations of one instance; there is no internal locking.
    """

    transfer_number: str
    origin_location: str
    destination_location: str
    creator_id: UUID
    state: TransferState = TransferState.DRAFT
    id: UUID | None = None
    expected_date: date | None = None
    completed_at: datetime | None = None
    completion_source: CompletionSource | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    store_id: UUID | None = None
    acting_user_id: UUID | None = None
    items: list[TransferItem] = field(default_factory=list)
    clock: Clock = field(default_factory=SystemClock, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        transfer_number: str,
        origin_location: str,
        destination_location: str,
        creator_id: UUID,
        *,
        store_id: UUID | None = None,
        acting_user_id: UUID | None = None,
        notes: str | None = None,
        expected_date: date | None = None,
        clock: Clock | None = None,
    ) -> Transfer:
        """New DRAFT transfer without items or id."""
        origin = (origin_location or "").strip()
        destination = (destination_location or "").strip()
        if not origin:
            raise InvalidArgumentError("origin_location", origin_location, "must not be empty")
        if not destination:
            raise InvalidArgumentError(
                "destination_location", destination_location, "must not be empty",
            )
        if origin == destination:
            raise InvalidArgumentError(
                "destination_location", destination_location, "must differ from origin",
            )
        if creator_id is None:
            raise InvalidArgumentError("creator_id", creator_id, "is required")

        clock = clock or SystemClock()
        now = clock.now()
        return cls(
            transfer_number=transfer_number,
            origin_location=origin,
            destination_location=destination,
            creator_id=creator_id,
            expected_date=expected_date,
            notes=notes or None,
            created_at=now,
            updated_at=now,
            store_id=store_id,
            acting_user_id=acting_user_id,
            clock=clock,
        )

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _permits(self, action: str) -> bool:
        for t in TRANSFER_WORKFLOW.transitions:
            if t.action != action or t.from_state != self.state.value:
                continue
            if (
                t.guard == COMPLETED_FROM_SHIPMENT
                and self.completion_source is not CompletionSource.SHIPMENT
            ):
                continue
            return True
        return False

    def _require(self, action: str) -> None:
        if not self._permits(action):
            raise InvalidTransferStateError(
                self.transfer_number,
                action,
                self.state.value,
                TRANSFER_WORKFLOW.allowed_from(action),
            )

    def _find_item(self, item_id: UUID) -> TransferItem:
        for item in self.items:
            if item.id is not None and item.id == item_id:
                return item
        raise TransferItemNotFoundError(self.transfer_number, str(item_id))

    def _touch(self) -> datetime:
        now = self.clock.now()
        self.updated_at = now
        return now

    # -------------------------------------------------------------------------
    # DRAFT editing
    # -------------------------------------------------------------------------

    def add_item(self, item: TransferItem) -> None:
        self._require("add_item")
        if any(existing.product_id == item.product_id for existing in self.items):
            raise DuplicateProductError(self.transfer_number, item.product_id)
        self.items.append(item)
        self._touch()

    def remove_item(self, item_id: UUID) -> TransferItem:
        self._require("remove_item")
        item = self._find_item(item_id)
        self.items.remove(item)
        self._touch()
        return item

    def update_requested_qty(self, item_id: UUID, qty: int) -> None:
        self._require("update_requested_qty")
        self._find_item(item_id).set_requested_qty(qty)
        self._touch()

    def item_for_product(self, product_id: str) -> TransferItem | None:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def send(self) -> None:
        self._require("send")
        if not self.items:
            raise EmptyTransferError(self.transfer_number)
        for item in self.items:
            if item.requested_qty <= 0:
                raise InvalidQuantityError(
                    f"requested_qty[{item.product_id}]", item.requested_qty, 1,
                )
        self.state = TransferState.SENT
        self._touch()
        logger.info("transfer_sent", extra={
            "transfer_number": self.transfer_number,
            "item_count": len(self.items),
        })

    def update_shipped_qty(self, item_id: UUID, qty: int) -> TransferState:
        self._require("ship")
        self._find_item(item_id).set_shipped_qty(qty)
        return self._rederive(QuantityBasis.SHIPMENT)

    def update_received_qty(self, item_id: UUID, qty: int) -> TransferState:
        self._require("receive")
        self._find_item(item_id).set_received_qty(qty)
        return self._rederive(QuantityBasis.RECEIPT)

    def _rederive(self, basis: QuantityBasis) -> TransferState:
        previous = self.state
        new_state = derive_state(self.items, basis)
        now = self._touch()

        if new_state is TransferState.COMPLETED:
            self.completed_at = now
            self.completion_source = (
                CompletionSource.SHIPMENT
                if basis is QuantityBasis.SHIPMENT
                else CompletionSource.RECEIPT
            )
            if basis is QuantityBasis.SHIPMENT:
                logger.warning("transfer_completed_from_shipment", extra={
                    "transfer_number": self.transfer_number,
                    "total_shipped": self.total_shipped,
                    "total_received": self.total_received,
                })
        else:
            self.completed_at = None
            self.completion_source = None

        self.state = new_state
        if new_state is not previous:
            logger.info("transfer_state_derived", extra={
                "transfer_number": self.transfer_number,
                "basis": basis.value,
                "from_state": previous.value,
                "to_state": new_state.value,
            })
        return new_state

    def complete(self) -> None:
        self._require("complete")
        pending = [i.product_id for i in self.items if not i.is_fully_received()]
        if pending:
            raise IncompleteReceiptError(self.transfer_number, pending)
        self.state = TransferState.COMPLETED
        self.completed_at = self._touch()
        self.completion_source = CompletionSource.EXPLICIT
        logger.info("transfer_completed", extra={
            "transfer_number": self.transfer_number,
            "total_received": self.total_received,
        })

    def cancel(self, reason: str | None) -> None:
        self._require("cancel")
        previous = self.state
        self.state = TransferState.CANCELLED
        self.notes = reason
        self._touch()
        logger.info("transfer_cancelled", extra={
            "transfer_number": self.transfer_number,
            "from_state": previous.value,
        })

    # -------------------------------------------------------------------------
    # Read-only helpers
    # -------------------------------------------------------------------------

    def can_edit(self) -> bool:
        return self.state is TransferState.DRAFT

    def can_cancel(self) -> bool:
        return not TRANSFER_WORKFLOW.is_terminal(self.state.value)

    @property
    def total_products(self) -> int:
        return len(self.items)

    @property
    def total_requested(self) -> int:
        return sum(i.requested_qty for i in self.items)

    @property
    def total_shipped(self) -> int:
        return sum(i.shipped_qty for i in self.items)

    @property
    def total_received(self) -> int:
        return sum(i.received_qty for i in self.items)

    def overall_ship_percentage(self) -> float:
        return _percentage(self.total_shipped, self.total_requested)

    def overall_receive_percentage(self) -> float:
        return _percentage(self.total_received, self.total_shipped)
