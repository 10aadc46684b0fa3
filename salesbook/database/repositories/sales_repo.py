from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from ...constants import DEFAULT_INVOICE_START, DEFAULT_UNIT, TABLE_CUSTOMERS, TABLE_SALES, TABLE_SETTINGS
from ...modules.ledger.balances import DateRange, in_range
from ...modules.ledger.calculations import invoice_number, items_total
from ...utils.helpers import id_key, to_float, today_str
from ...utils.validators import is_iso_day, try_parse_float
from .base_repo import DomainError, SyncedRepo, newest_first


@dataclass
class SaleItem:
    product_id: Any
    qty: float
    price: float
    unit: str = DEFAULT_UNIT
    discount: float = 0.0
    memo: str = ""

    def to_record(self) -> dict:
        return {
            "productId": self.product_id,
            "qty": self.qty,
            "unit": self.unit,
            "price": self.price,
            "discount": self.discount,
            "memo": self.memo,
        }

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "SaleItem":
        return cls(
            product_id=rec.get("productId"),
            qty=to_float(rec.get("qty")),
            price=to_float(rec.get("price")),
            unit=str(rec.get("unit") or DEFAULT_UNIT),
            discount=to_float(rec.get("discount")),
            memo=str(rec.get("memo") or ""),
        )


@dataclass
class Sale:
    customer_id: Any
    date: str
    items: list[SaleItem] = field(default_factory=list)
    prev_balance: float = 0.0
    memo: str = ""
    paid_amount: float = 0.0

    @property
    def subtotal(self) -> float:
        return items_total([i.to_record() for i in self.items])

    @property
    def grand_total(self) -> float:
        return self.subtotal + self.prev_balance

    def to_record(self) -> dict:
        return {
            "customerId": self.customer_id,
            "date": self.date,
            "items": [i.to_record() for i in self.items],
            "subtotal": self.subtotal,
            "prevBalance": self.prev_balance,
            "memo": self.memo,
            "paidAmount": self.paid_amount,
            "grandTotal": self.grand_total,
        }


class SalesRepo(SyncedRepo):
    """
    Sales invoices.

    Each record stores its lines plus the cached subtotal/grandTotal; the
    ledger recomputes both from the lines whenever it reads a sale, so the
    cached values only matter to readers that do not go through it.
    `prevBalance` is the customer's carried-forward balance as it stood when
    the invoice was written.
    """

    table = TABLE_SALES

    # ---- Validation ------------------------------------------------------

    @staticmethod
    def _number(value: Any, label: str, *, allow_negative: bool = False) -> float:
        if value is None or value == "":
            return 0.0
        ok, val = try_parse_float(value)
        if not ok:
            raise DomainError(f"{label} must be a number.")
        if not allow_negative and val < 0:  # type: ignore[operator]
            raise DomainError(f"{label} cannot be negative.")
        return float(val)  # type: ignore[arg-type]

    def _coerce_item(self, raw: SaleItem | Mapping[str, Any], n: int) -> SaleItem:
        if isinstance(raw, SaleItem):
            raw = raw.to_record()
        if not isinstance(raw, Mapping):
            raise DomainError(f"Line {n}: invalid item.")
        if raw.get("productId") in (None, ""):
            raise DomainError(f"Line {n}: select a product.")
        return SaleItem(
            product_id=raw.get("productId"),
            qty=self._number(raw.get("qty"), f"Line {n} quantity"),
            price=self._number(raw.get("price"), f"Line {n} price"),
            unit=str(raw.get("unit") or DEFAULT_UNIT),
            discount=self._number(raw.get("discount"), f"Line {n} discount"),
            memo=str(raw.get("memo") or ""),
        )

    def _build(
        self,
        customer_id: Any,
        items: Iterable[SaleItem | Mapping[str, Any]],
        date: Optional[str],
        prev_balance: Any,
        memo: str,
        paid_amount: Any,
    ) -> Sale:
        customer = self.store.get(TABLE_CUSTOMERS, customer_id) if id_key(customer_id) else None
        if customer is None:
            raise DomainError("Please select a customer.")
        lines = [self._coerce_item(it, n) for n, it in enumerate(items or [], start=1)]
        if not lines:
            raise DomainError("Add at least one item to the invoice.")
        day = (date or "").strip() or today_str()
        if not is_iso_day(day):
            raise DomainError(f"Invalid date: {date!r} (expected YYYY-MM-DD).")
        return Sale(
            customer_id=customer["id"],
            date=day,
            items=lines,
            prev_balance=self._number(prev_balance, "Previous balance", allow_negative=True),
            memo=(memo or "").strip(),
            paid_amount=self._number(paid_amount, "Paid amount"),
        )

    # ---- Mutations -------------------------------------------------------

    def create_sale(
        self,
        customer_id: Any,
        items: Iterable[SaleItem | Mapping[str, Any]],
        *,
        date: Optional[str] = None,
        prev_balance: Any = 0.0,
        memo: str = "",
        paid_amount: Any = 0.0,
    ) -> Any:
        """Validate and save a new invoice; returns its id."""
        sale = self._build(customer_id, items, date, prev_balance, memo, paid_amount)
        return self._create(sale.to_record())

    def update_sale(
        self,
        sale_id: Any,
        customer_id: Any,
        items: Iterable[SaleItem | Mapping[str, Any]],
        *,
        date: Optional[str] = None,
        prev_balance: Any = 0.0,
        memo: str = "",
        paid_amount: Any = 0.0,
    ) -> dict:
        self.require(sale_id, "Sale")
        sale = self._build(customer_id, items, date, prev_balance, memo, paid_amount)
        return self._update(sale_id, sale.to_record())

    # ---- Reads -----------------------------------------------------------

    def list_sales(self) -> list[dict]:
        return newest_first(self.list_all())

    def sales_for_customer(self, customer_id: Any) -> list[dict]:
        return newest_first(self.store.where_equals(self.table, "customerId", customer_id))

    def sales_between(self, start: Optional[str], end: Optional[str]) -> list[dict]:
        rng: DateRange = (start, end)
        return newest_first([s for s in self.list_all() if in_range(s.get("date"), rng)])

    def recent(self, limit: int = 5) -> list[dict]:
        return self.list_sales()[: max(0, int(limit))]

    def invoice_number(self, sale_id: Any) -> Optional[int]:
        settings = self.store.first(TABLE_SETTINGS)
        return invoice_number(sale_id, settings, DEFAULT_INVOICE_START)
