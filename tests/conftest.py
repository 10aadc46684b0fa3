# salesbook/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - Every test gets its own SQLite file under tmp_path
# - Stores are unseeded unless a test asks for `seeded_store`
#   (seeding hashes the admin password with bcrypt, which is slow)
# - MemoryRemote stands in for the cloud; no network access
# ---------------------------------------------------------------------

from __future__ import annotations

import os
import re
from types import SimpleNamespace

# Headless runs (CI, containers) have no display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6 import QtCore

from salesbook.database.repositories import (
    CustomersRepo,
    PaymentsRepo,
    ProductsRepo,
    SalesRepo,
    SettingsRepo,
    VendorBillsRepo,
    VendorsRepo,
)
from salesbook.database.store import LocalStore
from salesbook.modules.backup_restore.logging_utils import get_logger as get_backup_logger
from salesbook.modules.sync import MemoryRemote, SyncEngine


# ---------- Qt: let pytest-qt own the app ----------
@pytest.fixture(scope="session")
def app(qapp):
    return qapp


# ---------- Silence benign Qt warnings ----------
_BENIGN_QT_PATTERNS = [
    r"^QObject::connect: .* already connected",
    r"^QObject::disconnect: Unexpected null parameter",
]


@pytest.fixture(autouse=True, scope="session")
def _silence_benign_qt():
    """Filter common harmless Qt messages during tests."""
    rx = [re.compile(p) for p in _BENIGN_QT_PATTERNS]
    previous = None

    def handler(msg_type, context, message):
        text = str(message)
        if any(r.search(text) for r in rx):
            return
        if previous is not None:
            previous(msg_type, context, message)

    previous = QtCore.qInstallMessageHandler(handler)
    try:
        yield
    finally:
        QtCore.qInstallMessageHandler(previous)


# ---------- Backup log goes to a temp folder ----------
@pytest.fixture(scope="session", autouse=True)
def _backup_log(tmp_path_factory):
    get_backup_logger(str(tmp_path_factory.mktemp("logs") / "backup_restore.log"))


# ---------- Stores ----------
@pytest.fixture
def store(app, tmp_path):
    s = LocalStore(tmp_path / "salesbook.db", seed=False)
    yield s
    s.close()


@pytest.fixture
def seeded_store(app, tmp_path):
    s = LocalStore(tmp_path / "seeded.db", seed=True)
    yield s
    s.close()


@pytest.fixture
def make_store(app, tmp_path):
    """Factory for extra stores (e.g. a second device)."""
    opened = []

    def _make(name: str = "device") -> LocalStore:
        s = LocalStore(tmp_path / f"{name}.db", seed=False)
        opened.append(s)
        return s

    yield _make
    for s in opened:
        s.close()


# ---------- Cloud ----------
@pytest.fixture
def remote():
    return MemoryRemote()


@pytest.fixture
def engine(app, store, remote):
    eng = SyncEngine(store, remote)
    yield eng
    eng.stop()
    eng.wait_for_pushes(5000)


# ---------- Repos (bound to `store` and `engine`) ----------
@pytest.fixture
def repos(store, engine):
    return SimpleNamespace(
        customers=CustomersRepo(store, engine),
        products=ProductsRepo(store, engine),
        sales=SalesRepo(store, engine),
        payments=PaymentsRepo(store, engine),
        vendors=VendorsRepo(store, engine),
        vendor_bills=VendorBillsRepo(store, engine),
        settings=SettingsRepo(store, engine),
    )


# ---------- Handy records ----------
@pytest.fixture
def customer_id(store):
    return CustomersRepo(store).create("Ali Poultry", "012-3456789")


@pytest.fixture
def product_id(store):
    return ProductsRepo(store).create("Broiler", 8.5)
