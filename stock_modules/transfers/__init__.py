"""
Transfers Module.

Tracks stock moving between two locations: a DRAFT list of products is
sent, shipped and received line by line, and its lifecycle state follows
the item quantity totals.
"""

from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import (
    CompletionSource,
    QuantityBasis,
    Transfer,
    TransferItem,
    TransferState,
    derive_state,
)
from stock_modules.transfers.repository import (
    Pagination,
    SqlTransferRepository,
    TransferFilters,
    TransferRepository,
    format_transfer_number,
    parse_transfer_number,
)
from stock_modules.transfers.service import (
    CreateTransferRequest,
    QuantityUpdate,
    TransferLineRequest,
    TransferPage,
    TransferService,
    validate_create_request,
)
from stock_modules.transfers.workflows import TRANSFER_WORKFLOW

__all__ = [
    "CompletionSource",
    "CreateTransferRequest",
    "Pagination",
    "QuantityBasis",
    "QuantityUpdate",
    "SqlTransferRepository",
    "TRANSFER_WORKFLOW",
    "Transfer",
    "TransferConfig",
    "TransferFilters",
    "TransferItem",
    "TransferLineRequest",
    "TransferPage",
    "TransferRepository",
    "TransferService",
    "TransferState",
    "derive_state",
    "format_transfer_number",
    "parse_transfer_number",
    "validate_create_request",
]
