# tests/test_ledger_reports.py
import pytest

from salesbook.modules.ledger import (
    daily_net_profit,
    daily_summary,
    dashboard_stats,
    monthly_summary,
    period_aggregate,
)


def _sale(id, date, subtotal=None, items=None, customer_id=1, prev=0, paid=0):
    rec = {"id": id, "customerId": customer_id, "date": date, "prevBalance": prev, "paidAmount": paid}
    if subtotal is not None:
        rec["subtotal"] = subtotal
    if items is not None:
        rec["items"] = items
    return rec


def test_daily_net_profit_worked_example():
    sales = [_sale(1, "2025-03-10", 40), _sale(2, "2025-03-10", 60), _sale(3, "2025-03-11", 500)]
    bills = [{"id": 1, "vendorId": 1, "date": "2025-03-10", "total": 35}]
    assert daily_net_profit("2025-03-10", sales, bills) == pytest.approx(65)


def test_daily_net_profit_uses_business_timezone():
    # 2025-03-09T17:30Z is 01:30 on 2025-03-10 in Kuala Lumpur (UTC+8)
    sales = [_sale(1, "2025-03-09T17:30:00Z", 40), _sale(2, "2025-03-09T15:00:00Z", 99)]
    assert daily_net_profit("2025-03-10", sales, []) == pytest.approx(40)
    assert daily_net_profit("2025-03-09", sales, []) == pytest.approx(99)


def test_daily_net_profit_bad_day_is_zero():
    assert daily_net_profit("not a day", [_sale(1, "2025-01-01", 10)], []) == 0


def test_daily_summary_newest_first_includes_bill_only_days():
    sales = [_sale(1, "2025-01-01", 10), _sale(2, "2025-01-03", 20), _sale(3, "2025-01-03", 5)]
    bills = [{"id": 1, "date": "2025-01-02", "total": 7}, {"id": 2, "date": "2025-01-03", "total": 4}]
    rows = daily_summary(sales, bills)
    assert [(r.period, r.sales, r.vendor_bills, r.net_profit) for r in rows] == [
        ("2025-01-03", 25, 4, 21),
        ("2025-01-02", 0, 7, -7),
        ("2025-01-01", 10, 0, 10),
    ]


def test_monthly_summary_groups_by_month():
    sales = [_sale(1, "2025-01-31", 10), _sale(2, "2025-02-01", 20), _sale(3, "2025-02-14", 30)]
    rows = monthly_summary(sales, [{"id": 1, "date": "2025-02-20", "total": 15}])
    assert [(r.period, r.sales, r.net_profit) for r in rows] == [("2025-02", 50, 35), ("2025-01", 10, 10)]


def test_period_aggregate_totals_and_rankings():
    products = [{"id": 1, "name": "Broiler"}, {"id": 2, "name": "Kampung"}]
    customers = [{"id": 1, "name": "Ali"}, {"id": 2, "name": "Bala"}]
    sales = [
        _sale(1, "2025-04-01", items=[{"productId": 1, "qty": 10, "price": 8, "unit": "Kg"}],
              customer_id=1, prev=5, paid=50),
        _sale(2, "2025-04-02", items=[{"productId": 2, "qty": 2, "price": 20, "unit": "Kg"},
                                      {"productId": 1, "qty": 1, "price": 8, "discount": 3}],
              customer_id=2, paid=0),
        _sale(3, "2025-05-01", items=[{"productId": 2, "qty": 100, "price": 100}], customer_id=2),
    ]
    agg = period_aggregate(("2025-04-01", "2025-04-30"), sales, products, customers)

    assert agg.summary.count == 2
    assert agg.summary.revenue == pytest.approx(80 + 45)
    assert agg.summary.paid == pytest.approx(50)
    assert agg.summary.balance == pytest.approx((85 - 50) + 45)

    assert [(p.name, p.qty, p.revenue) for p in agg.products] == [("Broiler", 11, 85), ("Kampung", 2, 40)]
    assert [(c.name, c.count, c.total) for c in agg.customers] == [("Ali", 1, 80), ("Bala", 1, 45)]


def test_period_aggregate_ties_keep_first_seen_order():
    sales = [
        _sale(1, "2025-04-01", items=[{"productId": 7, "qty": 1, "price": 10}], customer_id=3),
        _sale(2, "2025-04-01", items=[{"productId": 5, "qty": 1, "price": 10}], customer_id=1),
    ]
    agg = period_aggregate(None, sales)
    assert [p.product_id for p in agg.products] == [7, 5]
    assert [c.customer_id for c in agg.customers] == [3, 1]


def test_dashboard_stats_for_given_day():
    sales = [
        _sale(1, "2025-06-15", 100),
        _sale(2, "2025-06-01", 50),
        _sale(3, "2025-01-10", 25),
        _sale(4, "2024-12-31", 1000),
    ]
    bills = [{"id": 1, "date": "2025-06-15", "total": 30}]
    stats = dashboard_stats(sales, bills, customers=[{"id": 1}], products=[{"id": 1}, {"id": 2}],
                            today="2025-06-15", recent=2)
    assert stats.today == "2025-06-15"
    assert stats.today_sales == pytest.approx(100)
    assert stats.today_bills == pytest.approx(30)
    assert stats.net_profit == pytest.approx(70)
    assert stats.month_sales == pytest.approx(150)
    assert stats.year_revenue == pytest.approx(175)
    assert stats.customer_count == 1
    assert stats.product_count == 2
    assert [s["id"] for s in stats.recent_sales] == [1, 2]
