"""
salesbook: sales invoices, customer balances and vendor bills kept in a local
SQLite store and mirrored to a cloud document store.
"""

__version__ = "1.0.0"
