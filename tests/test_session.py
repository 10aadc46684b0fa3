# tests/test_session.py
import pytest

from salesbook.config import REMOTE_MEMORY, REMOTE_NONE, AppConfig
from salesbook.constants import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME, SYNC_COLLECTIONS
from salesbook.modules.login import AppSession, AuthError
from salesbook.modules.sync import MemoryRemote, create_remote


@pytest.fixture
def session(seeded_store):
    remote = MemoryRemote()
    s = AppSession(seeded_store, remote)
    yield s
    s.logout()
    s.sync.wait_for_pushes(5000)


def test_login_starts_listeners_and_logout_stops_them(session):
    assert not session.is_authenticated
    assert session.remote.listener_count() == 0

    user = session.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    assert user["username"] == DEFAULT_ADMIN_USERNAME
    assert "passwordHash" not in user
    assert session.is_authenticated
    assert session.remote.listener_count() == len(SYNC_COLLECTIONS)

    session.logout()
    assert not session.is_authenticated
    assert session.remote.listener_count() == 0


@pytest.mark.parametrize(
    "username, password, code",
    [
        ("", "x", "empty_fields"),
        ("admin", "", "empty_fields"),
        ("admin", "wrong", "invalid_credentials"),
        ("nobody", "admin", "invalid_credentials"),
    ],
)
def test_failed_login(session, username, password, code):
    with pytest.raises(AuthError) as info:
        session.login(username, password)
    assert info.value.code == code
    assert session.remote.listener_count() == 0


def test_change_password(session):
    with pytest.raises(AuthError):
        session.change_password(DEFAULT_ADMIN_PASSWORD, "new-pass")

    session.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    with pytest.raises(AuthError) as info:
        session.change_password("not-it", "new-pass")
    assert info.value.code == "wrong_password"
    with pytest.raises(AuthError):
        session.change_password(DEFAULT_ADMIN_PASSWORD, "")

    session.change_password(DEFAULT_ADMIN_PASSWORD, "new-pass")
    session.logout()
    with pytest.raises(AuthError):
        session.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    session.login(DEFAULT_ADMIN_USERNAME, "new-pass")


def test_cloud_data_arrives_on_login(session):
    session.remote.set_document("customers", "1", {"id": 1, "name": "From cloud", "contact": "1"})
    assert session.customers.count() == 0
    session.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    assert session.customers.get(1)["name"] == "From cloud"


def test_ledger_views_read_through_repositories(session):
    cid = session.customers.create("Ali", "012")
    pid = session.products.create("Broiler", 10)
    session.sales.create_sale(cid, [{"productId": pid, "qty": 10, "price": 10}],
                              date="2025-05-05", prev_balance=20)
    session.sales.create_sale(cid, [{"productId": pid, "qty": 4, "price": 10}],
                              date="2025-05-06", prev_balance=120)
    session.payments.record_payment(cid, 30, date="2025-05-06")
    vid = session.vendors.create("Farm", "03")
    session.vendor_bills.create_bill(vid, "2025-05-06", 15)

    assert session.outstanding_balance(cid) == pytest.approx(100 + 40 + 20 - 30)
    assert [(b.name, b.balance) for b in session.customer_balances()] == [("Ali", pytest.approx(130))]
    assert [h.type for h in session.transaction_history(cid)] == ["PAYMENT", "SALE", "SALE"]
    assert session.daily_net_profit("2025-05-06") == pytest.approx(25)
    assert [d.period for d in session.daily_summary()] == ["2025-05-06", "2025-05-05"]
    assert session.period_report("2025-05-01", "2025-05-31").summary.revenue == pytest.approx(140)
    assert session.dashboard(today="2025-05-06").today_sales == pytest.approx(40)


def test_local_writes_push_while_signed_out(session):
    cid = session.customers.create("Offline clerk entry", "1")
    assert session.sync.wait_for_pushes(5000)
    assert session.remote.get_document("customers", str(cid)) is not None


def test_session_without_remote(seeded_store):
    s = AppSession(seeded_store)
    assert s.sync is None
    s.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    cid = s.customers.create("Ali", "1")
    assert s.customers.get(cid)["name"] == "Ali"
    s.logout()


def test_from_config_and_close(app, tmp_path):
    cfg = AppConfig(db_path=tmp_path / "cfg.db", remote=REMOTE_MEMORY, log_dir=tmp_path / "logs")
    s = AppSession.from_config(cfg)
    assert isinstance(s.remote, MemoryRemote)
    s.backup.export_database(tmp_path / "b.json")
    assert "export" in (tmp_path / "logs" / "backup_restore.log").read_text(encoding="utf-8")
    s.login(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD)
    s.close()
    assert not s.is_authenticated
    assert (tmp_path / "cfg.db").exists()


def test_create_remote_none():
    assert create_remote(AppConfig(remote=REMOTE_NONE)) is None
