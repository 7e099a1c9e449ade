"""
Module: stock_modules.transfers.orm
Responsibility: SQLAlchemy ORM persistence models for the Transfers module.
    Maps the ``Transfer`` aggregate and its ``TransferItem`` lines from
    transfers.models to relational tables.

Architecture position: Modules > Transfers > ORM.  TransferModel inherits
    from TrackedBase (stock_kernel.db.base); ``created_by_id`` holds the
    transfer's creator.  Locations, products, stores and users live in other
    systems and are referenced by value with NO foreign key constraints.

Invariants enforced:
    - transfer_number is unique.
    - (transfer_id, product_id) is unique -- no duplicate product per transfer.
    - Item rows are owned by their transfer (cascade delete-orphan).
    - Enum fields stored as String(50) for portability and readability.

Failure modes:
    - IntegrityError on duplicate transfer_number or duplicate product line.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import Base, TrackedBase
from stock_kernel.domain.clock import Clock


# =============================================================================
# TransferModel
# =============================================================================


class TransferModel(TrackedBase):
    """
    ORM model for a stock transfer header.

    Maps to: stock_modules.transfers.models.Transfer (aggregate).
    """

    __tablename__ = "stock_transfers"

    __table_args__ = (
        Index("idx_transfer_state", "state"),
        Index("idx_transfer_store", "store_id"),
        Index("idx_transfer_created", "created_at"),
        Index("idx_transfer_route", "origin_location", "destination_location"),
    )

    transfer_number: Mapped[str] = mapped_column(String(50), unique=True)
    origin_location: Mapped[str] = mapped_column(String(255))
    destination_location: Mapped[str] = mapped_column(String(255))

    # TransferState enum stored as string
    state: Mapped[str] = mapped_column(String(50), default="DRAFT")

    expected_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completion_source: Mapped[str | None] = mapped_column(
        String(50), nullable=True,
    )  # shipment, receipt, explicit
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # External references (no FK)
    store_id: Mapped[UUID | None] = mapped_column(nullable=True)
    acting_user_id: Mapped[UUID | None] = mapped_column(nullable=True)

    items: Mapped[list[TransferItemModel]] = relationship(
        back_populates="transfer",
        order_by="TransferItemModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self, clock: Clock | None = None):
        """Convert ORM model to a ``Transfer`` aggregate."""
        from stock_modules.transfers.models import CompletionSource, Transfer, TransferState

        kwargs = {}
        if clock is not None:
            kwargs["clock"] = clock
        return Transfer(
            id=self.id,
            transfer_number=self.transfer_number,
            origin_location=self.origin_location,
            destination_location=self.destination_location,
            creator_id=self.created_by_id,
            state=TransferState(self.state),
            expected_date=self.expected_date,
            completed_at=self.completed_at,
            completion_source=(
                CompletionSource(self.completion_source) if self.completion_source else None
            ),
            notes=self.notes,
            created_at=self.created_at,
            updated_at=self.updated_at,
            store_id=self.store_id,
            acting_user_id=self.acting_user_id,
            items=[item.to_dto() for item in self.items],
            **kwargs,
        )

    @classmethod
    def from_dto(cls, dto) -> TransferModel:
        """
        Create ORM model from a ``Transfer`` aggregate.

        Item ids missing on the aggregate are generated here and written back
        so the caller's aggregate matches the stored rows.
        """
        model = cls(
            id=dto.id or uuid4(),
            transfer_number=dto.transfer_number,
            created_by_id=dto.creator_id,
        )
        model.apply_dto(dto)
        return model

    def apply_dto(self, dto) -> None:
        """Copy mutable aggregate fields and reconcile item rows."""
        self.origin_location = dto.origin_location
        self.destination_location = dto.destination_location
        self.state = dto.state.value
        self.expected_date = dto.expected_date
        self.completed_at = dto.completed_at
        self.completion_source = (
            dto.completion_source.value if dto.completion_source else None
        )
        self.notes = dto.notes
        self.store_id = dto.store_id
        self.acting_user_id = dto.acting_user_id
        self.updated_by_id = dto.acting_user_id
        if dto.created_at is not None:
            self.created_at = dto.created_at
        if dto.updated_at is not None:
            self.updated_at = dto.updated_at

        by_id = {m.id: m for m in self.items}
        by_product = {m.product_id: m for m in self.items}
        rows: list[TransferItemModel] = []
        for position, item in enumerate(dto.items):
            row = by_id.get(item.id) if item.id is not None else None
            if row is None:
                # A product removed and re-added keeps its row.
                row = by_product.get(item.product_id)
            if row is None:
                row = TransferItemModel(id=item.id or uuid4(), product_id=item.product_id)
            row.position = position
            row.product_id = item.product_id
            row.requested_qty = item.requested_qty
            row.shipped_qty = item.shipped_qty
            row.received_qty = item.received_qty
            item.id = row.id
            rows.append(row)
        self.items = rows

    def __repr__(self) -> str:
        return f"<TransferModel {self.transfer_number} [{self.state}]>"


# =============================================================================
# TransferItemModel
# =============================================================================


class TransferItemModel(Base):
    """
    ORM model for one product line of a transfer.

    Maps to: stock_modules.transfers.models.TransferItem.
    """

    __tablename__ = "stock_transfer_items"

    __table_args__ = (
        UniqueConstraint("transfer_id", "product_id", name="uq_transfer_item_product"),
        Index("idx_transfer_item_product", "product_id"),
    )

    transfer_id: Mapped[UUID] = mapped_column(ForeignKey("stock_transfers.id"))
    position: Mapped[int] = mapped_column(Integer, default=0)
    product_id: Mapped[str] = mapped_column(String(100))
    requested_qty: Mapped[int] = mapped_column(Integer)
    shipped_qty: Mapped[int] = mapped_column(Integer, default=0)
    received_qty: Mapped[int] = mapped_column(Integer, default=0)

    transfer: Mapped[TransferModel] = relationship(back_populates="items")

    def to_dto(self):
        """Convert ORM model to a ``TransferItem``."""
        from stock_modules.transfers.models import TransferItem
        return TransferItem(
            id=self.id,
            product_id=self.product_id,
            requested_qty=self.requested_qty,
            shipped_qty=self.shipped_qty,
            received_qty=self.received_qty,
        )

    def __repr__(self) -> str:
        return (
            f"<TransferItemModel {self.product_id} "
            f"{self.received_qty}/{self.shipped_qty}/{self.requested_qty}>"
        )
