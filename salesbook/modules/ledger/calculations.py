"""
ledger/calculations.py

Pure per-record math for sales invoices. Everything downstream (balances,
reports, dashboard) goes through these helpers so a sale is valued the same
way everywhere.

Do not import repos or open DB connections here.
Only compute numbers; formatting belongs in the UI.

Conventions:
- Records are plain mappings as stored locally / in the cloud.
- Missing or malformed numbers count as 0; nothing here raises on bad data.
- grandTotal is recomputed from items + prevBalance; the stored value is a
  cache, consulted only when a sale carries no items at all.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from ...utils.helpers import to_float

__all__ = [
    "line_total",
    "items_total",
    "sale_has_items",
    "sale_subtotal",
    "sale_grand_total",
    "sale_balance_due",
    "total_discount",
    "invoice_number",
]


def line_total(item: Mapping[str, Any]) -> float:
    """qty * price - discount for one invoice line."""
    return to_float(item.get("qty")) * to_float(item.get("price")) - to_float(item.get("discount"))


def items_total(items: Iterable[Mapping[str, Any]] | None) -> float:
    if not isinstance(items, (list, tuple)):
        return 0.0
    return math.fsum(line_total(i) for i in items if isinstance(i, Mapping))


def sale_has_items(sale: Mapping[str, Any]) -> bool:
    items = sale.get("items")
    return isinstance(items, list) and any(isinstance(i, Mapping) for i in items)


def sale_subtotal(sale: Mapping[str, Any]) -> float:
    """
    Invoice subtotal (excludes the carried-forward balance).

    Order of preference:
      1. sum of line totals, when the sale has items
      2. stored `subtotal`
      3. stored `grandTotal - prevBalance`
    """
    if sale_has_items(sale):
        return items_total(sale.get("items"))
    if sale.get("subtotal") is not None:
        return to_float(sale.get("subtotal"))
    return to_float(sale.get("grandTotal")) - to_float(sale.get("prevBalance"))


def sale_grand_total(sale: Mapping[str, Any]) -> float:
    """
    subtotal + prevBalance. Falls back to the stored grandTotal only for
    item-less records that carry neither subtotal nor items.
    """
    if not sale_has_items(sale) and sale.get("subtotal") is None and sale.get("grandTotal") is not None:
        return to_float(sale.get("grandTotal"))
    return sale_subtotal(sale) + to_float(sale.get("prevBalance"))


def sale_balance_due(sale: Mapping[str, Any]) -> float:
    """grandTotal - paidAmount (may be negative when overpaid)."""
    return sale_grand_total(sale) - to_float(sale.get("paidAmount"))


def total_discount(sale: Mapping[str, Any]) -> float:
    items = sale.get("items")
    if not isinstance(items, list):
        return 0.0
    return math.fsum(to_float(i.get("discount")) for i in items if isinstance(i, Mapping))


def invoice_number(sale_id: Any, settings: Mapping[str, Any] | None, default_start: int = 10000):
    """
    Display number for an invoice: invoiceStart + (id - 1).
    Returns None for unsaved sales or non-numeric ids.
    """
    try:
        n = int(sale_id)
    except (TypeError, ValueError):
        return None
    start = (settings or {}).get("invoiceStart")
    try:
        start = int(start)
    except (TypeError, ValueError):
        start = default_start
    if not start:
        start = default_start
    return start + (n - 1)
