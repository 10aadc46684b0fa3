from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ...constants import TABLE_CUSTOMERS, TABLE_PAYMENTS
from ...utils.helpers import today_str
from ...utils.validators import is_iso_day, is_strictly_positive_number
from .base_repo import DomainError, SyncedRepo, newest_first


@dataclass
class Payment:
    customer_id: Any
    amount: float
    date: str
    memo: str = ""

    def to_record(self) -> dict:
        return {
            "customerId": self.customer_id,
            "date": self.date,
            "amount": self.amount,
            "memo": self.memo,
        }


class PaymentsRepo(SyncedRepo):
    """
    Customer payments. `customerId` is stored in the same form as the
    customer's own id so later lookups match without coercion.
    """

    table = TABLE_PAYMENTS

    def _build(self, customer_id: Any, amount: Any, date: Optional[str], memo: str) -> Payment:
        customer = self.store.get(TABLE_CUSTOMERS, customer_id) if customer_id not in (None, "") else None
        if customer is None:
            raise DomainError("Please select a customer.")
        if not is_strictly_positive_number(amount):
            raise DomainError("Please enter a valid amount.")
        day = (date or "").strip() or today_str()
        if not is_iso_day(day):
            raise DomainError(f"Invalid date: {date!r} (expected YYYY-MM-DD).")
        return Payment(customer["id"], float(amount), day, (memo or "").strip())

    def record_payment(self, customer_id: Any, amount: Any, date: Optional[str] = None, memo: str = "") -> Any:
        return self._create(self._build(customer_id, amount, date, memo).to_record())

    def update_payment(
        self, payment_id: Any, customer_id: Any, amount: Any, date: Optional[str] = None, memo: str = ""
    ) -> dict:
        self.require(payment_id, "Payment")
        return self._update(payment_id, self._build(customer_id, amount, date, memo).to_record())

    def list_payments(self) -> list[dict]:
        return newest_first(self.list_all())

    def payments_for_customer(self, customer_id: Any) -> list[dict]:
        return newest_first(self.store.where_equals(self.table, "customerId", customer_id))
