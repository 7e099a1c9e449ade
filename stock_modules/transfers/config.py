"""
Transfer Configuration Schema.

Defines the structure and defaults for transfer settings.  Actual values
come from the ``transfers`` section of the settings file at runtime.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping, Self

from stock_kernel.logging_config import get_logger

logger = get_logger("modules.transfers.config")


@dataclass
class TransferConfig:
    """
    Configuration schema for the transfers module.

    Override at instantiation or build from settings:

        config = TransferConfig.from_dict(settings.transfers)
    """

    # Document numbering
    number_prefix: str = "TRF"
    number_width: int = 6
    sequence_name: str = "transfer_number"

    # Listing
    default_page_size: int = 10
    max_page_size: int = 100

    # CSV exchange
    allow_implicit_grouping: bool = True
    csv_delimiter: str = ","

    def __post_init__(self):
        if not self.number_prefix:
            raise ValueError("number_prefix must not be empty")
        if self.number_width < 1:
            raise ValueError("number_width must be at least 1")
        if not self.sequence_name:
            raise ValueError("sequence_name must not be empty")
        if self.default_page_size < 1:
            raise ValueError("default_page_size must be at least 1")
        if self.max_page_size < self.default_page_size:
            raise ValueError("max_page_size cannot be less than default_page_size")
        if len(self.csv_delimiter) != 1:
            raise ValueError("csv_delimiter must be a single character")
        logger.info(
            "transfer_config_initialized",
            extra={
                "number_prefix": self.number_prefix,
                "number_width": self.number_width,
                "default_page_size": self.default_page_size,
                "allow_implicit_grouping": self.allow_implicit_grouping,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create config from a settings mapping; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown transfer settings: {', '.join(unknown)}")
        return cls(**dict(data))
