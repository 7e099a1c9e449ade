"""
Domain DTOs shared by the transfers module and CSV ingestion.

Frozen value objects, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """
    One problem found while validating input.

    Collected into lists by request and CSV row validators; the caller
    decides whether to raise (``TransferRequestInvalidError``,
    ``RowValidationError``) once every problem is known.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "details": self.details,
        }
