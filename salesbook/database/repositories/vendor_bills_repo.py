from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ...constants import TABLE_VENDOR_BILLS, TABLE_VENDORS
from ...modules.ledger.balances import DateRange, in_range
from ...utils.validators import is_iso_day, try_parse_float
from .base_repo import DomainError, SyncedRepo, newest_first


@dataclass
class VendorBill:
    vendor_id: Any
    date: str
    total: float
    memo: str = ""

    def to_record(self) -> dict:
        return {"vendorId": self.vendor_id, "date": self.date, "total": self.total, "memo": self.memo}


class VendorBillsRepo(SyncedRepo):
    """Purchases from vendors; their totals are the expense side of net profit."""

    table = TABLE_VENDOR_BILLS

    def _build(self, vendor_id: Any, date: str, total: Any, memo: str) -> VendorBill:
        vendor = self.store.get(TABLE_VENDORS, vendor_id) if vendor_id not in (None, "") else None
        if vendor is None:
            raise DomainError("Please select a valid vendor.")
        ok, amount = try_parse_float(total)
        if not ok:
            raise DomainError("Please enter a valid total amount.")
        day = (date or "").strip()
        if not is_iso_day(day):
            raise DomainError("Please select a valid date.")
        return VendorBill(vendor["id"], day, float(amount), (memo or "").strip())  # type: ignore[arg-type]

    def create_bill(self, vendor_id: Any, date: str, total: Any, memo: str = "") -> Any:
        return self._create(self._build(vendor_id, date, total, memo).to_record())

    def update_bill(self, bill_id: Any, vendor_id: Any, date: str, total: Any, memo: str = "") -> dict:
        self.require(bill_id, "Vendor bill")
        return self._update(bill_id, self._build(vendor_id, date, total, memo).to_record())

    def list_bills(self) -> list[dict]:
        return newest_first(self.list_all())

    def bills_for_vendor(self, vendor_id: Any) -> list[dict]:
        return newest_first(self.store.where_equals(self.table, "vendorId", vendor_id))

    def bills_between(self, start: Optional[str], end: Optional[str]) -> list[dict]:
        rng: DateRange = (start, end)
        return newest_first([b for b in self.list_all() if in_range(b.get("date"), rng)])
