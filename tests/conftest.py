"""
Pytest fixtures for the stock transfers test suite.

Provides:
- Structured logging setup and LogContext cleanup
- A fresh database per test with every table created
- Deterministic clock, actor ids and service factories

Environment Variables:
- STOCK_TEST_DATABASE_URL: database URL for DB-backed tests.  Defaults to an
  in-memory SQLite database (single shared connection); point it at a
  throwaway PostgreSQL database to run the suite against PostgreSQL.
"""

import json
import logging
import os
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from stock_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from stock_kernel.domain.clock import DeterministicClock
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from stock_kernel.services.sequence_service import SequenceService
from stock_modules.transfers.config import TransferConfig
from stock_modules.transfers.models import Transfer, TransferItem
from stock_modules.transfers.repository import SqlTransferRepository
from stock_modules.transfers.service import TransferService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_TEST_DATABASE_URL = "sqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, transfer_service):
            transfer_service.send_transfer(transfer_id)
            logs = captured_logs()
            assert any(r["message"] == "transfer_sent" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Time and actors
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Database
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("STOCK_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Provide a session on a freshly created schema.

    Sequence rows are created and committed up front so number allocation
    always takes the locked-row path.
    """
    init_engine_from_url(get_database_url())
    create_tables()
    sess = get_session()
    SequenceService(sess).initialize_sequences()
    sess.commit()
    yield sess
    sess.close()
    drop_tables()
    reset_engine()


@pytest.fixture
def transfer_config() -> TransferConfig:
    return TransferConfig()


@pytest.fixture
def repository(session, clock, transfer_config) -> SqlTransferRepository:
    return SqlTransferRepository(session, config=transfer_config, clock=clock)


@pytest.fixture
def transfer_service(session, repository, clock, transfer_config) -> TransferService:
    return TransferService(session, repository=repository, clock=clock, config=transfer_config)


# =============================================================================
# Aggregate builders
# =============================================================================


@pytest.fixture
def make_transfer(clock, actor_id):
    """
    Build an in-memory DRAFT transfer whose items already carry ids.

    Usage::

        transfer = make_transfer(("SKU-1", 10), ("SKU-2", 5))
    """

    def _make(*lines: tuple[str, int], origin: str = "WH-A", destination: str = "STORE-B",
              number: str = "TRF-000001") -> Transfer:
        transfer = Transfer.create(number, origin, destination, actor_id, clock=clock)
        for product_id, qty in lines:
            item = TransferItem.create(product_id, qty)
            item.id = uuid4()
            transfer.add_item(item)
        return transfer

    return _make
