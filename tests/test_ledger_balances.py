# tests/test_ledger_balances.py
import random

import pytest

from salesbook.modules.ledger import (
    PAYMENT,
    SALE,
    customer_balances,
    outstanding_balance,
    outstanding_balance_by_grand_total,
    sale_grand_total,
    sale_subtotal,
    transaction_history,
)
from salesbook.modules.ledger.calculations import invoice_number, sale_balance_due, total_discount


def _sale(id, customer_id, date, items=None, prev=0, **extra):
    rec = {"id": id, "customerId": customer_id, "date": date, "prevBalance": prev}
    if items is not None:
        rec["items"] = items
    rec.update(extra)
    return rec


def _item(qty, price, discount=0):
    return {"productId": 1, "qty": qty, "price": price, "discount": discount, "unit": "Kg"}


# ---------------------------------------------------------------------
# Per-sale math
# ---------------------------------------------------------------------

def test_grand_total_and_balance_due_from_stored_numbers():
    sale = {"subtotal": 100, "prevBalance": 20, "paidAmount": 50}
    assert sale_grand_total(sale) == pytest.approx(120)
    assert sale_balance_due(sale) == pytest.approx(70)


def test_subtotal_recomputed_from_items_ignores_stale_cache():
    sale = {
        "items": [_item(10, 5, discount=2), _item(1, 3)],
        "subtotal": 999,
        "grandTotal": 999,
        "prevBalance": 7,
    }
    assert sale_subtotal(sale) == pytest.approx(51)
    assert sale_grand_total(sale) == pytest.approx(58)
    assert total_discount(sale) == pytest.approx(2)


def test_subtotal_derived_from_grand_total_when_nothing_else():
    assert sale_subtotal({"grandTotal": 100, "prevBalance": 25}) == pytest.approx(75)
    assert sale_grand_total({"grandTotal": 100, "prevBalance": 25}) == pytest.approx(100)


def test_malformed_numbers_count_as_zero():
    sale = {"items": [{"qty": "abc", "price": 5}, {"qty": 2, "price": None}, "junk"], "prevBalance": "x"}
    assert sale_subtotal(sale) == 0
    assert sale_grand_total(sale) == 0
    assert sale_subtotal({"items": "not-a-list", "subtotal": "12.5"}) == pytest.approx(12.5)


def test_invoice_number_uses_invoice_start():
    assert invoice_number(1, {"invoiceStart": 10000}) == 10000
    assert invoice_number(7, {"invoiceStart": 500}) == 506
    assert invoice_number("3", None) == 10002
    assert invoice_number(None, {"invoiceStart": 10}) is None
    assert invoice_number(2, {"invoiceStart": "garbage"}) == 10001


# ---------------------------------------------------------------------
# Outstanding balance
# ---------------------------------------------------------------------

def test_no_activity_means_zero_balance():
    assert outstanding_balance(1, [], []) == 0
    assert outstanding_balance(1, [_sale(1, 2, "2025-01-01", [_item(1, 10)])], []) == 0


def test_payment_reduces_balance_of_single_sale():
    sales = [{"id": 1, "customerId": 5, "date": "2025-01-01", "grandTotal": 100}]
    payments = [{"id": 1, "customerId": 5, "date": "2025-01-02", "amount": 30}]
    assert outstanding_balance(5, sales, payments) == pytest.approx(70)


def test_only_earliest_prev_balance_is_counted():
    sales = [
        _sale(1, 1, "2025-01-01", [_item(1, 100)], prev=50),
        # carried balance on the later invoice is already in the first one
        _sale(2, 1, "2025-01-05", [_item(1, 40)], prev=150),
    ]
    assert outstanding_balance(1, sales, []) == pytest.approx(190)
    assert outstanding_balance_by_grand_total(1, sales, []) == pytest.approx(340)


def test_earliest_sale_ties_broken_by_lowest_id():
    sales = [
        _sale(9, 1, "2025-01-01", [_item(1, 10)], prev=7),
        _sale(3, 1, "2025-01-01", [_item(1, 10)], prev=2),
    ]
    assert outstanding_balance(1, sales, []) == pytest.approx(22)


def test_duplicate_sale_ids_give_the_same_balance_in_any_order():
    sales = [
        _sale(4, 1, "2025-01-01", [_item(1, 10)], prev=8),
        _sale(4, 1, "2025-01-01", [_item(1, 10)], prev=3),
    ]
    assert outstanding_balance(1, sales, []) == pytest.approx(23)
    assert outstanding_balance(1, list(reversed(sales)), []) == pytest.approx(23)


def test_undated_sale_never_supplies_initial_balance():
    sales = [
        _sale(1, 1, None, [_item(1, 10)], prev=500),
        _sale(2, 1, "2025-03-01", [_item(1, 10)], prev=5),
    ]
    assert outstanding_balance(1, sales, []) == pytest.approx(25)


def test_customer_ids_compare_by_canonical_string():
    sales = [_sale(1, "4", "2025-01-01", [_item(2, 10)])]
    payments = [{"id": 1, "customerId": 4.0, "amount": 5}, {"id": 2, "customerId": "4", "amount": 1}]
    assert outstanding_balance(4, sales, payments) == pytest.approx(14)


def test_balance_is_independent_of_record_order():
    sales = [_sale(i, 1, f"2025-01-{i:02d}", [_item(i, 1.1)], prev=i * 0.3) for i in range(1, 20)]
    payments = [{"id": i, "customerId": 1, "amount": i * 0.7} for i in range(1, 10)]
    expected = outstanding_balance(1, sales, payments)
    rng = random.Random(1234)
    for _ in range(5):
        s, p = sales[:], payments[:]
        rng.shuffle(s)
        rng.shuffle(p)
        assert outstanding_balance(1, s, p) == expected


def test_customer_balances_lists_every_customer():
    customers = [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]
    sales = [_sale(1, 1, "2025-01-01", [_item(1, 50)])]
    payments = [{"id": 1, "customerId": 2, "amount": 10}]
    rows = customer_balances(customers, sales, payments)
    assert [(r.customer_id, r.name, r.balance) for r in rows] == [(1, "A", 50), (2, "B", -10)]


# ---------------------------------------------------------------------
# Transaction history
# ---------------------------------------------------------------------

def test_history_is_newest_first_with_payments_above_sales_same_day():
    sales = [
        _sale(1, 1, "2025-01-01", [_item(1, 100)], prev=20, memo="first"),
        _sale(2, 1, "2025-01-03", [_item(1, 10)]),
    ]
    payments = [{"id": 8, "customerId": 1, "date": "2025-01-03", "amount": 30, "memo": "cash"}]
    hist = transaction_history(1, sales, payments)
    assert [(h.type, h.date, h.reference) for h in hist] == [
        (PAYMENT, "2025-01-03", "8"),
        (SALE, "2025-01-03", "2"),
        (SALE, "2025-01-01", "1"),
    ]
    # sales are shown at grand total
    assert hist[-1].amount == pytest.approx(120)
    assert hist[-1].memo == "first"


def test_history_range_is_inclusive():
    sales = [_sale(i, 1, f"2025-02-{i:02d}", [_item(1, 1)]) for i in range(1, 6)]
    hist = transaction_history(1, sales, [], ("2025-02-02", "2025-02-04"))
    assert [h.date for h in hist] == ["2025-02-04", "2025-02-03", "2025-02-02"]
