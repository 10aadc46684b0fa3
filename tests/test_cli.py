# tests/test_cli.py
import json
import logging

import pytest

from salesbook.cli import build_parser, main
from salesbook.database.repositories import CustomersRepo, PaymentsRepo, ProductsRepo, SalesRepo
from salesbook.database.store import LocalStore


@pytest.fixture(autouse=True)
def _detach_cli_log_handler():
    # main() installs a stream handler bound to the captured stderr of one test
    yield
    logger = logging.getLogger("salesbook")
    for h in list(logger.handlers):
        logger.removeHandler(h)


@pytest.fixture
def db_path(app, tmp_path, monkeypatch):
    monkeypatch.delenv("SALESBOOK_REMOTE", raising=False)
    monkeypatch.setenv("SALESBOOK_LOG_DIR", str(tmp_path / "logs"))
    path = tmp_path / "cli.db"
    s = LocalStore(path)
    try:
        cid = CustomersRepo(s).create("Ali", "012")
        pid = ProductsRepo(s).create("Broiler", 10)
        SalesRepo(s).create_sale(cid, [{"productId": pid, "qty": 3, "price": 10}], date="2025-02-01")
        PaymentsRepo(s).record_payment(cid, 12, date="2025-02-02")
    finally:
        s.close()
    return path


def test_balances(db_path, capsys):
    assert main(["--db", str(db_path), "balances"]) == 0
    out = capsys.readouterr().out
    assert "Ali" in out and "18.00" in out


def test_daily(db_path, capsys):
    assert main(["--db", str(db_path), "daily", "2025-02-01"]) == 0
    out = capsys.readouterr().out
    assert "Net profit:" in out and "30.00" in out


def test_report(db_path, capsys):
    assert main(["--db", str(db_path), "report", "2025-02-01", "2025-02-28"]) == 0
    out = capsys.readouterr().out
    assert "Invoices: 1" in out
    assert "Broiler" in out


def test_export_then_import(db_path, tmp_path, capsys):
    target = tmp_path / "out.json"
    assert main(["--db", str(db_path), "export-backup", str(target)]) == 0
    data = json.loads(target.read_text(encoding="utf-8"))
    assert [c["name"] for c in data["customers"]] == ["Ali"]

    other = tmp_path / "other.db"
    assert main(["--db", str(other), "import-backup", str(target)]) == 0
    assert "customers=1" in capsys.readouterr().out


def test_import_invalid_file_fails(db_path, tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("[]", encoding="utf-8")
    assert main(["--db", str(db_path), "import-backup", str(bad)]) == 1
    assert "Failed to import backup" in capsys.readouterr().err


def test_reset_requires_confirmation(db_path, capsys):
    assert main(["--db", str(db_path), "reset-db"]) == 2
    assert main(["--db", str(db_path), "reset-db", "--yes"]) == 0
    main(["--db", str(db_path), "balances"])
    assert "No customers." in capsys.readouterr().out


def test_connection_needs_a_remote(db_path, capsys):
    assert main(["--db", str(db_path), "test-connection"]) == 1
    assert "No cloud backend configured" in capsys.readouterr().err


def test_bad_day_argument_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["daily", "01/02/2025"])


def test_export_into_missing_folder_fails_cleanly(db_path, tmp_path, capsys):
    target = tmp_path / "no-such-folder" / "out.json"
    assert main(["--db", str(db_path), "export-backup", str(target)]) == 1
    err = capsys.readouterr().err
    assert "Failed to export backup" in err and "Folder does not exist" in err
    assert "Traceback" not in err


def test_bad_remote_setting_fails_cleanly(db_path, monkeypatch, capsys):
    monkeypatch.setenv("SALESBOOK_REMOTE", "dropbox")
    assert main(["--db", str(db_path), "balances"]) == 1
    assert "Configuration error" in capsys.readouterr().err
