"""
ledger/balances.py

Customer-facing ledger views: outstanding balance and transaction history.

Outstanding balance policy
--------------------------
Canonical (used by every customer view):

    initial_balance = prevBalance of the customer's earliest sale
                      (earliest by day, ties broken by id ascending)
    outstanding     = sum(sale subtotals) + initial_balance - sum(payment amounts)

Carried balances on later invoices are already represented by the earlier
invoices, so only the first one is counted. The older
"sum(grandTotal) - sum(payments)" rule is kept as
outstanding_balance_by_grand_total() for comparison only; it double counts
prevBalance whenever later invoices carry one.

Customer ids are compared by canonical string (1 == "1").
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from ...utils.helpers import day_key, id_key, to_float
from .calculations import sale_grand_total, sale_subtotal

__all__ = [
    "SALE",
    "PAYMENT",
    "DateRange",
    "HistoryEntry",
    "CustomerBalance",
    "records_for_customer",
    "earliest_sale",
    "outstanding_balance",
    "outstanding_balance_by_grand_total",
    "customer_balances",
    "transaction_history",
    "in_range",
]

SALE = "SALE"
PAYMENT = "PAYMENT"

DateRange = Tuple[Optional[str], Optional[str]]

# Sorts after every real day so undated sales never become "earliest".
_UNDATED = "9999-12-31~"


@dataclass(frozen=True)
class HistoryEntry:
    type: str
    date: str
    amount: float
    reference: str
    memo: str = ""


@dataclass(frozen=True)
class CustomerBalance:
    customer_id: Any
    name: str
    balance: float


def _records(rows: Iterable[Any] | None) -> list[Mapping[str, Any]]:
    return [r for r in (rows or ()) if isinstance(r, Mapping)]


def _id_sort_key(value: Any) -> tuple:
    key = id_key(value)
    try:
        return (0, int(key), "")
    except ValueError:
        return (1, 0, key)


def in_range(value: Any, date_range: DateRange | None) -> bool:
    """Inclusive day-range check; open bounds are None. Undated rows never match a bounded range."""
    if date_range is None:
        return True
    start, end = date_range
    if start is None and end is None:
        return True
    day = day_key(value)
    if day is None:
        return False
    if start is not None and day < (day_key(start) or start):
        return False
    if end is not None and day > (day_key(end) or end):
        return False
    return True


def records_for_customer(customer_id: Any, rows: Iterable[Any] | None) -> list[Mapping[str, Any]]:
    cid = id_key(customer_id)
    return [r for r in _records(rows) if id_key(r.get("customerId")) == cid]


def earliest_sale(sales: Sequence[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    if not sales:
        return None
    return min(
        sales,
        key=lambda s: (
            day_key(s.get("date")) or _UNDATED,
            _id_sort_key(s.get("id")),
            # separates records that share both date and id
            to_float(s.get("prevBalance")),
        ),
    )


def outstanding_balance(customer_id: Any, sales: Iterable[Any], payments: Iterable[Any]) -> float:
    own_sales = records_for_customer(customer_id, sales)
    own_payments = records_for_customer(customer_id, payments)

    first = earliest_sale(own_sales)
    initial_balance = to_float(first.get("prevBalance")) if first else 0.0

    return (
        math.fsum(sale_subtotal(s) for s in own_sales)
        + initial_balance
        - math.fsum(to_float(p.get("amount")) for p in own_payments)
    )


def outstanding_balance_by_grand_total(
    customer_id: Any, sales: Iterable[Any], payments: Iterable[Any]
) -> float:
    """sum(grandTotal) - sum(payments). Not used by the customer views."""
    own_sales = records_for_customer(customer_id, sales)
    own_payments = records_for_customer(customer_id, payments)
    return math.fsum(sale_grand_total(s) for s in own_sales) - math.fsum(
        to_float(p.get("amount")) for p in own_payments
    )


def customer_balances(
    customers: Iterable[Any], sales: Iterable[Any], payments: Iterable[Any]
) -> list[CustomerBalance]:
    """Outstanding balance for every customer, in the order given."""
    sales = _records(sales)
    payments = _records(payments)
    return [
        CustomerBalance(
            customer_id=c.get("id"),
            name=str(c.get("name") or ""),
            balance=outstanding_balance(c.get("id"), sales, payments),
        )
        for c in _records(customers)
    ]


def transaction_history(
    customer_id: Any,
    sales: Iterable[Any],
    payments: Iterable[Any],
    date_range: DateRange | None = None,
) -> list[HistoryEntry]:
    """
    Sales and payments for one customer, newest first.

    Sales are shown at their grandTotal (the full invoice debit); payments at
    their amount. On the same day, payments list above sales.
    """
    keyed: list[tuple[tuple, HistoryEntry]] = []

    for s in records_for_customer(customer_id, sales):
        if not in_range(s.get("date"), date_range):
            continue
        day = day_key(s.get("date")) or ""
        entry = HistoryEntry(
            type=SALE,
            date=day or str(s.get("date") or ""),
            amount=sale_grand_total(s),
            reference=id_key(s.get("id")),
            memo=str(s.get("memo") or ""),
        )
        keyed.append(((day, 0, _id_sort_key(s.get("id"))), entry))

    for p in records_for_customer(customer_id, payments):
        if not in_range(p.get("date"), date_range):
            continue
        day = day_key(p.get("date")) or ""
        entry = HistoryEntry(
            type=PAYMENT,
            date=day or str(p.get("date") or ""),
            amount=to_float(p.get("amount")),
            reference=id_key(p.get("id")),
            memo=str(p.get("memo") or ""),
        )
        keyed.append(((day, 1, _id_sort_key(p.get("id"))), entry))

    keyed.sort(key=lambda pair: pair[0], reverse=True)
    return [entry for _, entry in keyed]
