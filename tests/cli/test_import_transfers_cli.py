"""Tests for the import_transfers command-line entry point."""

import pytest

from scripts.import_transfers import main
from stock_kernel.db.engine import reset_engine

HEADER = "Origin Location,Destination Location,Product ID,Requested Qty,Notes\n"


@pytest.fixture
def csv_file(tmp_path, monkeypatch):
    monkeypatch.delenv("STOCK_CONFIG_FILE", raising=False)
    monkeypatch.delenv("IMPORT_ACTOR_ID", raising=False)
    path = tmp_path / "transfers.csv"
    path.write_text(HEADER + "WH-A,STORE-B,SKU-1,5,\n", encoding="utf-8")
    return path


@pytest.fixture
def _engine_cleanup():
    yield
    reset_engine()


class TestImportTransfersCli:

    @pytest.mark.parametrize("option", ["--actor-id", "--store-id"])
    def test_invalid_uuid_reports_error(self, csv_file, capsys, option):
        assert main(["--file", str(csv_file), option, "not-a-uuid"]) == 1
        assert capsys.readouterr().err.startswith("ERROR: Invalid UUID")

    def test_non_utf8_file_reports_error(self, csv_file, capsys):
        csv_file.write_bytes(HEADER.encode() + b"WH-A,STORE-B,SKU-\xff,5,\n")
        assert main(["--file", str(csv_file), "--dry-run"]) == 1
        assert "not valid UTF-8" in capsys.readouterr().err

    def test_unparseable_csv_reports_code(self, csv_file, capsys, _engine_cleanup):
        csv_file.write_text(HEADER + "WH-A,STORE-B,SKU-1,5," + "x" * 200_000 + "\n", encoding="utf-8")
        assert main(["--file", str(csv_file), "--dry-run", "--db-url", "sqlite:///:memory:"]) == 1
        assert "ERROR [MALFORMED_CSV]" in capsys.readouterr().err

    def test_dry_run(self, csv_file, capsys, _engine_cleanup):
        assert main(["--file", str(csv_file), "--dry-run", "--db-url", "sqlite:///:memory:"]) == 0
        out = capsys.readouterr().out
        assert "Rows: 1" in out
        assert "Transfers to create: 1" in out
