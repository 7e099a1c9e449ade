"""
Pure domain layer.

Pure data transfer objects and value types with NO dependencies on the ORM,
the database, or I/O (SystemClock is the single sanctioned time boundary).
"""

from stock_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
)
from stock_kernel.domain.dtos import ValidationError
from stock_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ValidationError",
    "Guard",
    "Transition",
    "Workflow",
]
