from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...constants import TABLE_PRODUCTS
from ...utils.validators import is_non_negative_number, non_empty
from .base_repo import DomainError, SyncedRepo


@dataclass
class Product:
    name: str
    price: float

    def to_record(self) -> dict:
        return {"name": self.name.strip(), "price": float(self.price)}


class ProductsRepo(SyncedRepo):
    """Products carry a unit price that pre-fills invoice lines."""

    table = TABLE_PRODUCTS

    @staticmethod
    def _check(name: str, price: Any) -> dict:
        if not non_empty(name):
            raise DomainError("Product name cannot be empty.")
        if not is_non_negative_number(price):
            raise DomainError("Price must be a number of 0 or more.")
        return Product(str(name), float(price)).to_record()

    def list_products(self) -> list[dict]:
        return sorted(self.list_all(), key=lambda p: str(p.get("name") or "").lower())

    def search(self, term: str) -> list[dict]:
        needle = (term or "").strip().lower()
        if not needle:
            return self.list_products()
        return [p for p in self.list_products() if needle in str(p.get("name") or "").lower()]

    def price_of(self, product_id: Any) -> float | None:
        rec = self.get(product_id)
        if rec is None:
            return None
        try:
            return float(rec.get("price") or 0.0)
        except (TypeError, ValueError):
            return 0.0

    def create(self, name: str, price: Any) -> Any:
        return self._create(self._check(name, price))

    def update(self, product_id: Any, name: str, price: Any) -> dict:
        return self._update(product_id, self._check(name, price))
