"""
Stock Kernel

Shared infrastructure for the stock-transfer back-office:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clock and validation DTOs
- SQLAlchemy base classes, engine and atomic sequence allocation
"""

__version__ = "0.1.0"
