"""Tests for the Transfer aggregate and derive_state."""

from uuid import uuid4

import pytest

from stock_kernel.exceptions import (
    DuplicateProductError,
    EmptyTransferError,
    IncompleteReceiptError,
    InvalidArgumentError,
    InvalidQuantityError,
    InvalidTransferStateError,
    TransferItemNotFoundError,
)
from stock_modules.transfers.models import (
    CompletionSource,
    QuantityBasis,
    Transfer,
    TransferItem,
    TransferState,
    derive_state,
)


def _sent(make_transfer, *lines):
    transfer = make_transfer(*lines)
    transfer.send()
    return transfer


def _item(transfer, product_id):
    return transfer.item_for_product(product_id)


class TestDeriveState:

    def _items(self, *triples):
        return [
            TransferItem(product_id=f"P{i}", requested_qty=r, shipped_qty=s, received_qty=v)
            for i, (r, s, v) in enumerate(triples)
        ]

    @pytest.mark.parametrize("triples, expected", [
        ([(10, 0, 0)], TransferState.SENT),
        ([(10, 4, 0)], TransferState.PARTIALLY_RECEIVED),
        ([(10, 10, 0)], TransferState.COMPLETED),
        ([(10, 10, 0), (5, 0, 0)], TransferState.PARTIALLY_RECEIVED),
    ])
    def test_shipment_basis(self, triples, expected):
        assert derive_state(self._items(*triples), QuantityBasis.SHIPMENT) is expected

    @pytest.mark.parametrize("triples, expected", [
        ([(10, 10, 0)], TransferState.SENT),
        ([(10, 10, 6)], TransferState.PARTIALLY_RECEIVED),
        ([(10, 10, 10)], TransferState.COMPLETED),
        ([(10, 4, 4)], TransferState.COMPLETED),
    ])
    def test_receipt_basis(self, triples, expected):
        assert derive_state(self._items(*triples), QuantityBasis.RECEIPT) is expected


class TestCreate:

    def test_new_transfer_is_draft(self, make_transfer, clock):
        transfer = make_transfer()
        assert transfer.state is TransferState.DRAFT
        assert transfer.id is None
        assert transfer.created_at == clock.now()
        assert transfer.can_edit()

    @pytest.mark.parametrize("origin, destination", [("", "B"), ("A", " "), ("A", "A")])
    def test_locations_validated(self, origin, destination, actor_id):
        with pytest.raises(InvalidArgumentError):
            Transfer.create("TRF-000001", origin, destination, actor_id)

    def test_creator_required(self):
        with pytest.raises(InvalidArgumentError):
            Transfer.create("TRF-000001", "A", "B", None)


class TestDraftEditing:

    def test_duplicate_product_rejected(self, make_transfer):
        transfer = make_transfer(("SKU-1", 5))
        with pytest.raises(DuplicateProductError):
            transfer.add_item(TransferItem.create("SKU-1", 2))
        assert transfer.total_products == 1

    def test_remove_item(self, make_transfer):
        transfer = make_transfer(("SKU-1", 5), ("SKU-2", 3))
        removed = transfer.remove_item(_item(transfer, "SKU-1").id)
        assert removed.product_id == "SKU-1"
        assert [i.product_id for i in transfer.items] == ["SKU-2"]

    def test_remove_unknown_item(self, make_transfer):
        transfer = make_transfer(("SKU-1", 5))
        with pytest.raises(TransferItemNotFoundError):
            transfer.remove_item(uuid4())

    def test_update_requested(self, make_transfer):
        transfer = make_transfer(("SKU-1", 5))
        transfer.update_requested_qty(_item(transfer, "SKU-1").id, 9)
        assert transfer.total_requested == 9

    def test_editing_rejected_after_send(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 5))
        with pytest.raises(InvalidTransferStateError):
            transfer.add_item(TransferItem.create("SKU-2", 1))
        with pytest.raises(InvalidTransferStateError):
            transfer.remove_item(_item(transfer, "SKU-1").id)
        assert not transfer.can_edit()


class TestSend:

    def test_send(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 5))
        assert transfer.state is TransferState.SENT

    def test_empty_transfer_rejected(self, make_transfer):
        transfer = make_transfer()
        with pytest.raises(EmptyTransferError):
            transfer.send()
        assert transfer.state is TransferState.DRAFT

    def test_send_twice_rejected(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 5))
        with pytest.raises(InvalidTransferStateError) as info:
            transfer.send()
        assert info.value.current_state == "SENT"
        assert info.value.allowed_states == ("DRAFT",)

    def test_zero_requested_rejected(self, make_transfer):
        transfer = make_transfer()
        transfer.items.append(TransferItem(product_id="SKU-0", requested_qty=0, id=uuid4()))
        with pytest.raises(InvalidQuantityError):
            transfer.send()


class TestShipping:

    def test_full_shipment_completes(self, make_transfer, captured_logs):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 10)

        assert transfer.state is TransferState.COMPLETED
        assert transfer.completed_at is not None
        assert transfer.completion_source is CompletionSource.SHIPMENT
        assert any(
            r["message"] == "transfer_completed_from_shipment" and r["level"] == "WARNING"
            for r in captured_logs()
        )

    def test_partial_shipment(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10), ("SKU-2", 5))
        transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 10)
        assert transfer.state is TransferState.PARTIALLY_RECEIVED
        assert transfer.completed_at is None
        assert transfer.overall_ship_percentage() == pytest.approx(10 / 15 * 100)

    def test_shipping_back_to_zero_reverts_to_sent(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        item_id = _item(transfer, "SKU-1").id
        transfer.update_shipped_qty(item_id, 4)
        transfer.update_shipped_qty(item_id, 0)
        assert transfer.state is TransferState.SENT

    def test_over_shipment_leaves_transfer_unchanged(self, make_transfer, clock):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        before = transfer.updated_at
        clock.advance(60)
        with pytest.raises(InvalidQuantityError):
            transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 11)
        assert transfer.state is TransferState.SENT
        assert transfer.total_shipped == 0
        assert transfer.updated_at == before

    def test_unknown_item(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        with pytest.raises(TransferItemNotFoundError):
            transfer.update_shipped_qty(uuid4(), 1)

    def test_shipping_in_draft_rejected(self, make_transfer):
        transfer = make_transfer(("SKU-1", 10))
        with pytest.raises(InvalidTransferStateError):
            transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 1)


class TestReceiving:

    def test_receipt_after_ship_completion_reopens(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        item_id = _item(transfer, "SKU-1").id
        transfer.update_shipped_qty(item_id, 10)
        assert transfer.state is TransferState.COMPLETED

        transfer.update_received_qty(item_id, 6)

        assert transfer.state is TransferState.PARTIALLY_RECEIVED
        assert transfer.completed_at is None
        assert transfer.completion_source is None

    def test_full_receipt_completes_for_good(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        item_id = _item(transfer, "SKU-1").id
        transfer.update_shipped_qty(item_id, 10)
        transfer.update_received_qty(item_id, 10)

        assert transfer.state is TransferState.COMPLETED
        assert transfer.completion_source is CompletionSource.RECEIPT
        with pytest.raises(InvalidTransferStateError):
            transfer.update_received_qty(item_id, 9)

    def test_receipt_limited_to_shipped(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        item_id = _item(transfer, "SKU-1").id
        transfer.update_shipped_qty(item_id, 5)
        with pytest.raises(InvalidQuantityError):
            transfer.update_received_qty(item_id, 6)
        assert transfer.total_received == 0

    def test_overall_receive_percentage(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10), ("SKU-2", 10))
        transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 8)
        transfer.update_received_qty(_item(transfer, "SKU-1").id, 2)
        assert transfer.overall_receive_percentage() == pytest.approx(25.0)

    def test_percentages_zero_without_quantities(self, make_transfer):
        transfer = make_transfer()
        assert transfer.overall_ship_percentage() == 0
        assert transfer.overall_receive_percentage() == 0

    def test_ledger_holds_through_lifecycle(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10), ("SKU-2", 4))
        a, b = (_item(transfer, "SKU-1").id, _item(transfer, "SKU-2").id)
        for op, item_id, qty in [
            ("ship", a, 7), ("ship", b, 4), ("receive", a, 7),
            ("receive", b, 2), ("ship", a, 9), ("receive", b, 4),
        ]:
            if op == "ship":
                transfer.update_shipped_qty(item_id, qty)
            else:
                transfer.update_received_qty(item_id, qty)
            for item in transfer.items:
                assert 0 <= item.received_qty <= item.shipped_qty <= item.requested_qty


class TestComplete:

    def test_complete_requires_full_receipt(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10), ("SKU-2", 3))
        transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 5)
        transfer.update_received_qty(_item(transfer, "SKU-1").id, 4)

        with pytest.raises(IncompleteReceiptError) as info:
            transfer.complete()
        assert info.value.product_ids == ("SKU-1",)
        assert transfer.state is TransferState.PARTIALLY_RECEIVED

    def test_matching_receipt_totals_complete_without_call(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10), ("SKU-2", 3))
        transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 5)
        transfer.update_received_qty(_item(transfer, "SKU-1").id, 4)
        transfer.update_received_qty(_item(transfer, "SKU-1").id, 5)
        assert transfer.state is TransferState.COMPLETED
        assert transfer.completion_source is CompletionSource.RECEIPT

    def test_explicit_complete_from_sent(self, make_transfer, clock):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        clock.advance(30)
        transfer.complete()
        assert transfer.state is TransferState.COMPLETED
        assert transfer.completion_source is CompletionSource.EXPLICIT
        assert transfer.completed_at == clock.now()

    def test_explicitly_completed_rejects_receipts(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        transfer.complete()
        with pytest.raises(InvalidTransferStateError):
            transfer.update_received_qty(_item(transfer, "SKU-1").id, 0)

    def test_complete_from_draft_rejected(self, make_transfer):
        with pytest.raises(InvalidTransferStateError):
            make_transfer(("SKU-1", 1)).complete()


class TestCancel:

    def test_cancel_from_draft(self, make_transfer):
        transfer = make_transfer(("SKU-1", 1))
        transfer.cancel("not needed")
        assert transfer.state is TransferState.CANCELLED
        assert transfer.notes == "not needed"
        assert not transfer.can_cancel()

    def test_cancel_from_sent_and_partial(self, make_transfer):
        sent = _sent(make_transfer, ("SKU-1", 10))
        sent.cancel("lost")
        assert sent.state is TransferState.CANCELLED

        partial = _sent(make_transfer, ("SKU-1", 10))
        partial.update_shipped_qty(_item(partial, "SKU-1").id, 3)
        partial.cancel("damaged")
        assert partial.state is TransferState.CANCELLED

    def test_cancel_twice_rejected(self, make_transfer):
        transfer = make_transfer(("SKU-1", 1))
        transfer.cancel("first")
        with pytest.raises(InvalidTransferStateError):
            transfer.cancel("second")
        assert transfer.notes == "first"

    def test_cancel_completed_rejected(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        transfer.complete()
        with pytest.raises(InvalidTransferStateError):
            transfer.cancel("too late")

    def test_cancel_after_ship_completion_rejected(self, make_transfer):
        transfer = _sent(make_transfer, ("SKU-1", 10))
        transfer.update_shipped_qty(_item(transfer, "SKU-1").id, 10)
        with pytest.raises(InvalidTransferStateError):
            transfer.cancel("too late")
        assert transfer.state is TransferState.COMPLETED
