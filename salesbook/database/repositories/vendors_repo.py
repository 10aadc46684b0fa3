from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...constants import TABLE_VENDORS
from .base_repo import DomainError, SyncedRepo


@dataclass
class Vendor:
    name: str
    contact: str
    email: str | None = None
    address: str | None = None

    def to_record(self) -> dict:
        return {
            "name": (self.name or "").strip(),
            "contact": (self.contact or "").strip(),
            "email": (self.email or "").strip(),
            "address": (self.address or "").strip(),
        }


class VendorsRepo(SyncedRepo):
    table = TABLE_VENDORS

    @staticmethod
    def _check(vendor: Vendor) -> dict:
        rec = vendor.to_record()
        if not rec["name"]:
            raise DomainError("Name cannot be empty.")
        if not rec["contact"]:
            raise DomainError("Contact cannot be empty.")
        return rec

    def list_vendors(self) -> list[dict]:
        return sorted(self.list_all(), key=lambda v: str(v.get("name") or "").lower())

    def search(self, term: str) -> list[dict]:
        needle = (term or "").strip().lower()
        if not needle:
            return self.list_vendors()
        return [
            v for v in self.list_vendors()
            if needle in str(v.get("name") or "").lower() or needle in str(v.get("contact") or "").lower()
        ]

    def vendor_name(self, vendor_id: Any) -> str:
        rec = self.get(vendor_id)
        return str(rec.get("name")) if rec else "Unknown Vendor"

    def create(self, name: str, contact: str, email: str | None = None, address: str | None = None) -> Any:
        return self._create(self._check(Vendor(name, contact, email, address)))

    def update(
        self, vendor_id: Any, name: str, contact: str, email: str | None = None, address: str | None = None
    ) -> dict:
        return self._update(vendor_id, self._check(Vendor(name, contact, email, address)))
