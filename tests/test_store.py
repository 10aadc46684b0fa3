# tests/test_store.py
import sqlite3
import threading

import pytest

from salesbook.constants import DEFAULT_ADMIN_USERNAME, DEFAULT_INVOICE_START, SCHEMA_VERSION
from salesbook.database import get_store
from salesbook.database.store import LocalStore, StoreError, normalize_id


def test_schema_version_recorded(store):
    assert store.schema_version == SCHEMA_VERSION


def test_seed_creates_settings_and_admin_once(app, tmp_path):
    path = tmp_path / "seed.db"
    s = get_store(path)
    try:
        settings = s.first("settings")
        assert settings["invoiceStart"] == DEFAULT_INVOICE_START
        users = s.all("users")
        assert [u["username"] for u in users] == [DEFAULT_ADMIN_USERNAME]
        assert users[0]["passwordHash"].startswith("$2")
    finally:
        s.close()

    again = LocalStore(path)
    try:
        assert again.count("settings") == 1
        assert again.count("users") == 1
    finally:
        again.close()


def test_insert_allocates_ids_and_reads_back(store):
    a = store.insert("customers", {"name": "A", "contact": "1"})
    b = store.insert("customers", {"name": "B", "contact": "2"})
    assert (a, b) == (1, 2)
    assert store.get("customers", a) == {"id": 1, "name": "A", "contact": "1"}
    assert store.get("customers", "2")["name"] == "B"
    assert [c["id"] for c in store.all("customers")] == [1, 2]


def test_ids_are_never_reused(store):
    first = store.insert("products", {"name": "x", "price": 1})
    store.delete("products", first)
    second = store.insert("products", {"name": "y", "price": 1})
    assert second == first + 1


def test_insert_with_existing_id_fails(store):
    store.insert("vendors", {"id": 5, "name": "V"})
    with pytest.raises(StoreError):
        store.insert("vendors", {"id": 5, "name": "W"})
    # sequence advanced past the explicit id
    assert store.insert("vendors", {"name": "Z"}) == 6


def test_put_replaces_whole_row(store):
    rid = store.insert("customers", {"name": "A", "contact": "1", "email": "a@x"})
    store.put("customers", {"id": rid, "name": "A2", "contact": "1"})
    assert store.get("customers", rid) == {"id": rid, "name": "A2", "contact": "1"}


def test_string_ids_survive(store):
    store.put("customers", {"id": "abc123", "name": "Cloud made"})
    assert store.get("customers", "abc123")["id"] == "abc123"
    assert store.insert("customers", {"name": "next"}) == 1


def test_where_equals_compares_canonical_ids(store):
    store.insert("payments", {"customerId": 3, "amount": 1})
    store.insert("payments", {"customerId": "3", "amount": 2})
    store.insert("payments", {"customerId": 4, "amount": 3})
    assert sorted(p["amount"] for p in store.where_equals("payments", "customerId", 3.0)) == [1, 2]


def test_delete_reports_whether_a_row_was_removed(store):
    rid = store.insert("products", {"name": "x"})
    assert store.delete("products", rid) is True
    assert store.delete("products", rid) is False


def test_unknown_table_rejected(store):
    with pytest.raises(StoreError):
        store.all("nope; DROP TABLE customers")


def test_unserializable_record_rejected(store):
    with pytest.raises(StoreError):
        store.insert("customers", {"name": float("nan")})


def test_transaction_rolls_back_everything(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert("customers", {"name": "A"})
            store.insert("products", {"name": "P"})
            raise RuntimeError("boom")
    assert store.count("customers") == 0
    assert store.count("products") == 0


def test_nested_transaction_rolls_back_only_inner_block(store):
    with store.transaction():
        store.insert("customers", {"name": "outer"})
        with pytest.raises(StoreError):
            with store.transaction():
                store.insert("customers", {"name": "inner"})
                store.insert("customers", {"id": 1, "name": "dup"})
    assert [c["name"] for c in store.all("customers")] == ["outer"]


def test_subscribe_fires_once_per_commit_per_table(store):
    seen = []
    sub = store.subscribe("customers", seen.append)
    with store.transaction():
        store.insert("customers", {"name": "A"})
        store.insert("customers", {"name": "B"})
        store.insert("products", {"name": "P"})
    assert seen == ["customers"]

    store.insert("products", {"name": "Q"})
    assert seen == ["customers"]

    sub.cancel()
    assert not sub.active
    store.insert("customers", {"name": "C"})
    assert seen == ["customers"]


def test_subscriber_not_notified_on_rollback(store):
    seen = []
    store.subscribe("customers", seen.append)
    with pytest.raises(ValueError):
        with store.transaction():
            store.insert("customers", {"name": "A"})
            raise ValueError
    assert seen == []


def test_failing_subscriber_does_not_break_writes(store, caplog):
    def bad(_table):
        raise RuntimeError("observer bug")

    store.subscribe("customers", bad)
    rid = store.insert("customers", {"name": "A"})
    assert store.get("customers", rid) is not None
    assert "Observer for customers failed" in caplog.text


def test_concurrent_writers_do_not_interleave(store):
    def worker(n):
        for i in range(25):
            with store.transaction():
                store.insert("products", {"name": f"{n}-{i}"})
                store.insert("vendors", {"name": f"{n}-{i}"})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.count("products") == store.count("vendors") == 100
    assert sorted(p["id"] for p in store.all("products")) == list(range(1, 101))


def test_normalize_id():
    assert normalize_id("12") == 12
    assert normalize_id(12.0) == 12
    assert normalize_id("a-b") == "a-b"
    with pytest.raises(StoreError):
        normalize_id("")
    with pytest.raises(StoreError):
        normalize_id(True)


def test_body_must_be_valid_json(store):
    with pytest.raises(sqlite3.IntegrityError):
        store.conn.execute("INSERT INTO customers(id, body) VALUES (99, 'not json')")
