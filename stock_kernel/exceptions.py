"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP adapters, CLIs, batch jobs) must react to failures precisely.
Matching on message text is fragile, so every error here:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

Example:
    try:
        transfer.send()
    except EmptyTransferError as e:
        return api_response(code=e.code, transfer=e.transfer_number)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockKernelError (base)
    |
    +-- InvalidArgumentError
    |   +-- InvalidQuantityError
    |
    +-- TransferError
    |   +-- InvalidTransferStateError
    |   +-- TransferNotFoundError
    |   +-- TransferItemNotFoundError
    |   +-- DuplicateProductError
    |   +-- EmptyTransferError
    |   +-- IncompleteReceiptError
    |   +-- TransferRequestInvalidError
    |
    +-- CsvImportError
    |   +-- EmptyImportError
    |   +-- MalformedCsvError
    |   +-- MissingColumnsError
    |   +-- RowValidationError
    |
    +-- SequenceError
        +-- SequenceFormatError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                      | When Raised
-----------|---------------------------|------------------------------------------
Argument   | INVALID_ARGUMENT          | Malformed input value (empty id, qty <= 0)
           | INVALID_QUANTITY          | Quantity outside the item's legal range
-----------|---------------------------|------------------------------------------
Transfer   | INVALID_STATE             | Operation illegal in the current state
           | TRANSFER_NOT_FOUND        | Transfer id/number does not exist
           | TRANSFER_ITEM_NOT_FOUND   | Item id not part of the transfer
           | DUPLICATE_PRODUCT         | Product already on the transfer
           | EMPTY_TRANSFER            | Sending a transfer without items
           | INCOMPLETE_RECEIPT        | Completing with received != shipped
           | TRANSFER_REQUEST_INVALID  | Creation request failed validation
-----------|---------------------------|------------------------------------------
CSV import | EMPTY_IMPORT              | No header or no data rows
           | MALFORMED_CSV             | Text the CSV reader cannot parse
           | MISSING_COLUMNS           | Required header(s) absent
           | ROW_VALIDATION_FAILED     | One or more data rows rejected
-----------|---------------------------|------------------------------------------
Sequence   | SEQUENCE_FORMAT           | Stored number cannot be parsed/formatted

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Exceptions inherit from Exception, not ValueError, so domain errors are
   catchable as a group without mixing in programming errors.  The one
   exception is InvalidArgumentError, which also subclasses ValueError so
   generic callers that validate input with ``except ValueError`` still work.

2. ``code`` is a class attribute: codes are static per type and readable
   without instantiation (API documentation, logging).

3. Aggregated failures (row validation, request validation) carry the full
   tuple of ValidationError DTOs so a caller gets every problem in one pass.
"""

from __future__ import annotations

from typing import Any, Sequence


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"


# Argument exceptions


class InvalidArgumentError(StockKernelError, ValueError):
    """A supplied value is malformed or out of range."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, argument: str, value: Any, reason: str):
        self.argument = argument
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {argument} {value!r}: {reason}")


class InvalidQuantityError(InvalidArgumentError):
    """A quantity falls outside the legal range for an item."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, argument: str, value: Any, minimum: int, maximum: int | None = None):
        self.minimum = minimum
        self.maximum = maximum
        if maximum is None:
            reason = f"must be at least {minimum}"
        else:
            reason = f"must be between {minimum} and {maximum}"
        super().__init__(argument, value, reason)


# Transfer exceptions


class TransferError(StockKernelError):
    """Base exception for transfer lifecycle errors."""

    code: str = "TRANSFER_ERROR"


class InvalidTransferStateError(TransferError):
    """The operation is not legal in the transfer's current state."""

    code: str = "INVALID_STATE"

    def __init__(
        self,
        transfer_number: str,
        action: str,
        current_state: str,
        allowed_states: Sequence[str] = (),
    ):
        self.transfer_number = transfer_number
        self.action = action
        self.current_state = current_state
        self.allowed_states = tuple(allowed_states)
        allowed = ", ".join(self.allowed_states) or "none"
        super().__init__(
            f"Cannot {action} transfer {transfer_number or '<unsaved>'} "
            f"in state {current_state} (allowed: {allowed})"
        )


class TransferNotFoundError(TransferError):
    """Transfer with the given id or number does not exist."""

    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_ref: str):
        self.transfer_ref = transfer_ref
        super().__init__(f"Transfer not found: {transfer_ref}")


class TransferItemNotFoundError(TransferError):
    """Item id is not part of the transfer."""

    code: str = "TRANSFER_ITEM_NOT_FOUND"

    def __init__(self, transfer_number: str, item_id: str):
        self.transfer_number = transfer_number
        self.item_id = item_id
        super().__init__(
            f"Item {item_id} not found in transfer {transfer_number or '<unsaved>'}"
        )


class DuplicateProductError(TransferError):
    """The product is already on the transfer."""

    code: str = "DUPLICATE_PRODUCT"

    def __init__(self, transfer_number: str, product_id: str):
        self.transfer_number = transfer_number
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} already exists in transfer "
            f"{transfer_number or '<unsaved>'}"
        )


class EmptyTransferError(TransferError):
    """A transfer without items cannot leave DRAFT."""

    code: str = "EMPTY_TRANSFER"

    def __init__(self, transfer_number: str):
        self.transfer_number = transfer_number
        super().__init__(
            f"Transfer {transfer_number or '<unsaved>'} has no items and cannot be sent"
        )


class IncompleteReceiptError(TransferError):
    """Some items have received quantity different from shipped quantity."""

    code: str = "INCOMPLETE_RECEIPT"

    def __init__(self, transfer_number: str, product_ids: Sequence[str]):
        self.transfer_number = transfer_number
        self.product_ids = tuple(product_ids)
        super().__init__(
            f"Transfer {transfer_number or '<unsaved>'} cannot be completed: "
            f"{len(self.product_ids)} item(s) not fully received "
            f"({', '.join(self.product_ids)})"
        )


class TransferRequestInvalidError(TransferError):
    """A transfer creation request failed validation."""

    code: str = "TRANSFER_REQUEST_INVALID"

    def __init__(self, errors: Sequence[Any]):
        self.errors = tuple(errors)
        super().__init__(
            f"Transfer request has {len(self.errors)} validation error(s): "
            + "; ".join(getattr(e, "message", str(e)) for e in self.errors)
        )


# CSV import exceptions


class CsvImportError(StockKernelError):
    """Base exception for bulk CSV import errors."""

    code: str = "CSV_IMPORT_ERROR"


class EmptyImportError(CsvImportError):
    """The CSV text has no header or no data rows."""

    code: str = "EMPTY_IMPORT"

    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__(
            f"CSV import is empty or malformed: {line_count} non-blank line(s), "
            "need a header and at least one data row"
        )


class MalformedCsvError(CsvImportError):
    """The CSV text cannot be parsed (e.g. a cell over the reader's size limit)."""

    code: str = "MALFORMED_CSV"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"CSV text could not be parsed: {reason}")


class MissingColumnsError(CsvImportError):
    """Required header columns are absent."""

    code: str = "MISSING_COLUMNS"

    def __init__(self, missing: Sequence[str], found: Sequence[str] = ()):
        self.missing = tuple(missing)
        self.found = tuple(found)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class RowValidationError(CsvImportError):
    """One or more CSV rows failed validation; nothing was imported."""

    code: str = "ROW_VALIDATION_FAILED"

    def __init__(self, errors: Sequence[Any]):
        self.errors = tuple(errors)
        super().__init__(
            f"CSV import rejected with {len(self.errors)} error(s): "
            + "; ".join(getattr(e, "message", str(e)) for e in self.errors)
        )


# Sequence exceptions


class SequenceError(StockKernelError):
    """Base exception for sequence allocation errors."""

    code: str = "SEQUENCE_ERROR"


class SequenceFormatError(SequenceError):
    """A sequence value cannot be formatted or parsed."""

    code: str = "SEQUENCE_FORMAT"

    def __init__(self, value: Any, pattern: str):
        self.value = value
        self.pattern = pattern
        super().__init__(f"Value {value!r} does not match sequence format {pattern}")
