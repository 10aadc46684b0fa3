"""
Ledger engine: pure functions over sales, payments and vendor bill snapshots.

Nothing in this package touches the database; callers pass plain record
mappings (store.all(...)) and get derived views back. Every function is
deterministic and tolerant of malformed numbers (they count as zero).
"""
from .balances import (
    PAYMENT,
    SALE,
    CustomerBalance,
    HistoryEntry,
    customer_balances,
    outstanding_balance,
    outstanding_balance_by_grand_total,
    transaction_history,
)
from .calculations import (
    invoice_number,
    line_total,
    sale_balance_due,
    sale_grand_total,
    sale_subtotal,
)
from .reports import (
    DashboardStats,
    DayTotals,
    PeriodAggregate,
    daily_net_profit,
    daily_summary,
    dashboard_stats,
    monthly_summary,
    period_aggregate,
)

__all__ = [
    "PAYMENT",
    "SALE",
    "CustomerBalance",
    "HistoryEntry",
    "customer_balances",
    "outstanding_balance",
    "outstanding_balance_by_grand_total",
    "transaction_history",
    "invoice_number",
    "line_total",
    "sale_balance_due",
    "sale_grand_total",
    "sale_subtotal",
    "DashboardStats",
    "DayTotals",
    "PeriodAggregate",
    "daily_net_profit",
    "daily_summary",
    "dashboard_stats",
    "monthly_summary",
    "period_aggregate",
]
