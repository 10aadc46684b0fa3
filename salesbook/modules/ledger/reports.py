"""
ledger/reports.py

Revenue-side aggregates for the dashboard and the reports screen.

Revenue is always the sale subtotal (carried balances excluded); vendor
bills are expenses. Day and month buckets come from utils.helpers.day_key,
i.e. the business timezone.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from ...utils.helpers import day_key, id_key, month_key, now_local, to_float
from .balances import DateRange, _id_sort_key, _records, in_range
from .calculations import line_total, sale_grand_total, sale_subtotal

__all__ = [
    "DayTotals",
    "PeriodSummary",
    "ProductStat",
    "CustomerStat",
    "PeriodAggregate",
    "DashboardStats",
    "daily_net_profit",
    "daily_summary",
    "monthly_summary",
    "period_aggregate",
    "dashboard_stats",
]

UNKNOWN_NAME = "Unknown"


@dataclass(frozen=True)
class DayTotals:
    """Per-bucket totals; `period` is 'YYYY-MM-DD' (daily) or 'YYYY-MM' (monthly)."""
    period: str
    sales: float
    vendor_bills: float
    net_profit: float


@dataclass(frozen=True)
class PeriodSummary:
    revenue: float
    paid: float
    balance: float
    count: int


@dataclass
class ProductStat:
    product_id: Any
    name: str
    qty: float = 0.0
    revenue: float = 0.0
    unit: str = ""


@dataclass
class CustomerStat:
    customer_id: Any
    name: str
    count: int = 0
    total: float = 0.0


@dataclass(frozen=True)
class PeriodAggregate:
    summary: PeriodSummary
    products: list = field(default_factory=list)
    customers: list = field(default_factory=list)


@dataclass(frozen=True)
class DashboardStats:
    today: str
    today_sales: float
    today_bills: float
    net_profit: float
    year_revenue: float
    month_sales: float
    customer_count: int
    product_count: int
    recent_sales: list = field(default_factory=list)


def _names(rows: Iterable[Any] | None) -> dict[str, str]:
    return {id_key(r.get("id")): str(r.get("name") or UNKNOWN_NAME) for r in _records(rows)}


# ---------------------------------------------------------------------------
# Daily / monthly
# ---------------------------------------------------------------------------

def daily_net_profit(day: Any, sales: Iterable[Any], vendor_bills: Iterable[Any]) -> float:
    """sum(sale subtotals on `day`) - sum(vendor bill totals on `day`)."""
    target = day_key(day)
    if target is None:
        return 0.0
    income = math.fsum(sale_subtotal(s) for s in _records(sales) if day_key(s.get("date")) == target)
    spend = math.fsum(
        to_float(b.get("total")) for b in _records(vendor_bills) if day_key(b.get("date")) == target
    )
    return income - spend


def _bucketed(sales, vendor_bills, bucket, date_range: DateRange | None) -> list[DayTotals]:
    income: dict[str, list[float]] = {}
    spend: dict[str, list[float]] = {}

    for s in _records(sales):
        key = bucket(s.get("date"))
        if key is None or not in_range(s.get("date"), date_range):
            continue
        income.setdefault(key, []).append(sale_subtotal(s))
        spend.setdefault(key, [])

    for b in _records(vendor_bills):
        key = bucket(b.get("date"))
        if key is None or not in_range(b.get("date"), date_range):
            continue
        spend.setdefault(key, []).append(to_float(b.get("total")))
        income.setdefault(key, [])

    out = []
    for key in sorted(income, reverse=True):
        s_total = math.fsum(income[key])
        b_total = math.fsum(spend[key])
        out.append(DayTotals(period=key, sales=s_total, vendor_bills=b_total, net_profit=s_total - b_total))
    return out


def daily_summary(
    sales: Iterable[Any], vendor_bills: Iterable[Any], date_range: DateRange | None = None
) -> list[DayTotals]:
    """One row per day with any activity, newest day first."""
    return _bucketed(sales, vendor_bills, day_key, date_range)


def monthly_summary(
    sales: Iterable[Any], vendor_bills: Iterable[Any], date_range: DateRange | None = None
) -> list[DayTotals]:
    """One row per 'YYYY-MM' with any activity, newest month first."""
    return _bucketed(sales, vendor_bills, month_key, date_range)


# ---------------------------------------------------------------------------
# Period report
# ---------------------------------------------------------------------------

def period_aggregate(
    date_range: DateRange | None,
    sales: Iterable[Any],
    products: Iterable[Any] | None = None,
    customers: Iterable[Any] | None = None,
) -> PeriodAggregate:
    """
    Totals for sales whose day falls in `date_range` (inclusive):

      revenue  = sum(subtotal)
      paid     = sum(paidAmount)
      balance  = sum(grandTotal - paidAmount)

    plus per-product (qty, line revenue) and per-customer (invoice count,
    subtotal) breakdowns, both sorted descending; equal values keep the
    order in which they were first seen.
    """
    product_names = _names(products)
    customer_names = _names(customers)

    revenue, paid, balance = [], [], []
    by_product: dict[str, ProductStat] = {}
    by_customer: dict[str, CustomerStat] = {}

    selected = [s for s in _records(sales) if in_range(s.get("date"), date_range)]
    for sale in selected:
        subtotal = sale_subtotal(sale)
        paid_amount = to_float(sale.get("paidAmount"))
        revenue.append(subtotal)
        paid.append(paid_amount)
        balance.append(sale_grand_total(sale) - paid_amount)

        items = sale.get("items")
        for item in (items if isinstance(items, list) else ()):
            if not isinstance(item, Mapping):
                continue
            pkey = id_key(item.get("productId"))
            stat = by_product.get(pkey)
            if stat is None:
                stat = ProductStat(
                    product_id=item.get("productId"),
                    name=product_names.get(pkey, UNKNOWN_NAME),
                    unit=str(item.get("unit") or ""),
                )
                by_product[pkey] = stat
            stat.qty += to_float(item.get("qty"))
            stat.revenue += line_total(item)

        ckey = id_key(sale.get("customerId"))
        cstat = by_customer.get(ckey)
        if cstat is None:
            cstat = CustomerStat(
                customer_id=sale.get("customerId"),
                name=customer_names.get(ckey, UNKNOWN_NAME),
            )
            by_customer[ckey] = cstat
        cstat.count += 1
        cstat.total += subtotal

    summary = PeriodSummary(
        revenue=math.fsum(revenue),
        paid=math.fsum(paid),
        balance=math.fsum(balance),
        count=len(selected),
    )
    # sorted() with reverse=True is still stable for equal keys
    return PeriodAggregate(
        summary=summary,
        products=sorted(by_product.values(), key=lambda p: p.revenue, reverse=True),
        customers=sorted(by_customer.values(), key=lambda c: c.total, reverse=True),
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def dashboard_stats(
    sales: Iterable[Any],
    vendor_bills: Iterable[Any],
    customers: Iterable[Any] | None = None,
    products: Iterable[Any] | None = None,
    today: Optional[str] = None,
    recent: int = 5,
) -> DashboardStats:
    """Landing-page numbers: today's takings vs bills, year and month revenue, latest invoices."""
    sales = _records(sales)
    vendor_bills = _records(vendor_bills)
    today = (day_key(today) if today else None) or now_local().date().isoformat()
    year, month = today[:4], today[:7]

    today_sales = math.fsum(sale_subtotal(s) for s in sales if day_key(s.get("date")) == today)
    today_bills = math.fsum(
        to_float(b.get("total")) for b in vendor_bills if day_key(b.get("date")) == today
    )
    year_revenue = math.fsum(
        sale_subtotal(s) for s in sales if (day_key(s.get("date")) or "").startswith(year)
    )
    month_sales = math.fsum(sale_subtotal(s) for s in sales if month_key(s.get("date")) == month)

    newest_first = sorted(
        sales,
        key=lambda s: (day_key(s.get("date")) or "", _id_sort_key(s.get("id"))),
        reverse=True,
    )
    return DashboardStats(
        today=today,
        today_sales=today_sales,
        today_bills=today_bills,
        net_profit=today_sales - today_bills,
        year_revenue=year_revenue,
        month_sales=month_sales,
        customer_count=len(_records(customers)),
        product_count=len(_records(products)),
        recent_sales=newest_first[:recent],
    )
