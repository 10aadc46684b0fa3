from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...constants import TABLE_CUSTOMERS
from .base_repo import DomainError, SyncedRepo


@dataclass
class Customer:
    name: str
    contact: str
    email: str | None = None
    address: str | None = None

    def to_record(self) -> dict:
        return {
            "name": self.name,
            "contact": self.contact,
            "email": self.email or "",
            "address": self.address or "",
        }


class CustomersRepo(SyncedRepo):
    table = TABLE_CUSTOMERS

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: str | None) -> str | None:
        if s is None:
            return None
        return str(s).strip()

    @staticmethod
    def _ensure_non_empty(value: str | None, field_label: str) -> None:
        if value is None or str(value).strip() == "":
            raise DomainError(f"{field_label} cannot be empty.")

    def _validated(self, customer: Customer) -> dict:
        self._ensure_non_empty(customer.name, "Name")
        self._ensure_non_empty(customer.contact, "Contact")
        return Customer(
            name=self._normalize_text(customer.name),
            contact=self._normalize_text(customer.contact),
            email=self._normalize_text(customer.email),
            address=self._normalize_text(customer.address),
        ).to_record()

    # ---- Queries ----------------------------------------------------------

    def list_customers(self) -> list[dict]:
        """All customers, alphabetical by name."""
        return sorted(self.list_all(), key=lambda c: str(c.get("name") or "").lower())

    def search(self, term: str) -> list[dict]:
        """
        Case-insensitive match on name; substring match on contact.
        """
        needle = (term or "").strip()
        if not needle:
            return self.list_customers()
        lowered = needle.lower()
        return [
            c for c in self.list_customers()
            if lowered in str(c.get("name") or "").lower() or needle in str(c.get("contact") or "")
        ]

    # ---- Mutations --------------------------------------------------------

    def create(self, name: str, contact: str, email: str | None = None, address: str | None = None) -> Any:
        """
        Insert a new customer. Soft validation mirrors form checks.
        """
        return self._create(self._validated(Customer(name, contact, email, address)))

    def update(
        self, customer_id: Any, name: str, contact: str, email: str | None = None, address: str | None = None
    ) -> dict:
        return self._update(customer_id, self._validated(Customer(name, contact, email, address)))
