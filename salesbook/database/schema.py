# salesbook/database/schema.py
"""
Local schema.

Every entity table has the same shape:

    id    untyped PRIMARY KEY  -- integer for local rows; cloud keys that
                               -- don't parse as integers are kept as text
    body  TEXT (JSON object)   -- the entity without its id

Ids come from id_sequences so a deleted id is never handed out again.
"""
from __future__ import annotations

import sqlite3

from ..constants import (
    ENTITY_TABLES,
    TABLE_PAYMENTS,
    TABLE_SALES,
    TABLE_SCHEMA_VERSION,
    TABLE_SEQUENCES,
    TABLE_USERS,
    TABLE_VENDOR_BILLS,
)

_INDEXES = (
    (TABLE_SALES, "customerId"),
    (TABLE_SALES, "date"),
    (TABLE_PAYMENTS, "customerId"),
    (TABLE_VENDOR_BILLS, "vendorId"),
    (TABLE_VENDOR_BILLS, "date"),
    (TABLE_USERS, "username"),
)


def _entity_table_sql(table: str) -> str:
    return f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id    PRIMARY KEY NOT NULL,
            body  TEXT NOT NULL CHECK (json_valid(body))
        );
    """


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables and indexes. Idempotent."""
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}(
            id INTEGER PRIMARY KEY CHECK (id=1),
            version TEXT NOT NULL
        );
    """)
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {TABLE_SEQUENCES}(
            name TEXT PRIMARY KEY,
            seq  INTEGER NOT NULL DEFAULT 0
        );
    """)
    for table in ENTITY_TABLES:
        conn.execute(_entity_table_sql(table))
    for table, field in _INDEXES:
        conn.execute(
            f"CREATE INDEX IF NOT EXISTS ix_{table}_{field.lower()} "
            f"ON {table}(json_extract(body, '$.{field}'));"
        )
