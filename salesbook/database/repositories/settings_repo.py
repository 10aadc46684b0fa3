from __future__ import annotations

from typing import Any, Mapping

from ...constants import DEFAULT_INVOICE_START, TABLE_SETTINGS
from .base_repo import DomainError, SyncedRepo

# Keys the settings form edits; anything else on the row is preserved as-is.
EDITABLE_KEYS = ("companyName", "regNum", "desc1", "desc2", "contact", "logoLeft", "logoRight", "invoiceStart")


class SettingsRepo(SyncedRepo):
    """
    Company profile shown on invoices. A singleton: the first row is the
    settings, whatever its id (the cloud may have created it).
    """

    table = TABLE_SETTINGS

    def current(self) -> dict:
        return self.store.first(self.table) or {}

    def invoice_start(self) -> int:
        try:
            start = int(self.current().get("invoiceStart") or 0)
        except (TypeError, ValueError):
            start = 0
        return start or DEFAULT_INVOICE_START

    def save(self, changes: Mapping[str, Any]) -> dict:
        """
        Merge `changes` into the settings row (creating it when missing) and
        push the whole row.
        """
        clean = {k: v for k, v in dict(changes).items() if k in EDITABLE_KEYS}
        if "invoiceStart" in clean:
            try:
                start = int(clean["invoiceStart"])
            except (TypeError, ValueError):
                raise DomainError("Invoice start number must be a whole number.") from None
            if start < 1:
                raise DomainError("Invoice start number must be 1 or more.")
            clean["invoiceStart"] = start

        row = self.current()
        if not row:
            rid = self._create(clean)
            return {**clean, "id": rid}
        return self._update(row["id"], clean)
