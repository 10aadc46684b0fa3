# salesbook/modules/login/session.py
from __future__ import annotations

import logging
from typing import Any, Optional

from ...config import AppConfig
from ...constants import BACKUP_LOG_FILE_NAME
from ...database import get_store
from ...database.repositories import (
    CustomersRepo,
    DomainError,
    LoginRepo,
    PaymentsRepo,
    ProductsRepo,
    SalesRepo,
    SettingsRepo,
    VendorBillsRepo,
    VendorsRepo,
)
from ...database.store import LocalStore
from ..backup_restore import BackupService
from ..backup_restore.logging_utils import get_logger as get_backup_logger
from ..ledger import balances, reports
from ..sync import SyncEngine, create_remote
from ..sync.remote import RemoteStore

_log = logging.getLogger(__name__)


class AuthError(Exception):
    """Login failed, or an operation needs a signed-in user."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class AppSession:
    """
    Everything the app holds between login and logout.

    Owns the store, one repository per table, the backup service and (when a
    remote is configured) the sync engine. Cloud listeners run only while a
    user is signed in; local writes still push while signed out.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: Optional[RemoteStore] = None,
        *,
        backup_logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.remote = remote
        self.sync: Optional[SyncEngine] = SyncEngine(store, remote) if remote is not None else None

        self.customers = CustomersRepo(store, self.sync)
        self.products = ProductsRepo(store, self.sync)
        self.sales = SalesRepo(store, self.sync)
        self.payments = PaymentsRepo(store, self.sync)
        self.vendors = VendorsRepo(store, self.sync)
        self.vendor_bills = VendorBillsRepo(store, self.sync)
        self.settings = SettingsRepo(store, self.sync)
        self.users = LoginRepo(store)
        self.backup = BackupService(store, self.sync, backup_logger)

        self.user: Optional[dict] = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "AppSession":
        store = get_store(config.db_path)
        backup_logger = get_backup_logger(str(config.log_dir / BACKUP_LOG_FILE_NAME), config.log_level)
        return cls(store, create_remote(config), backup_logger=backup_logger)

    # ----------------------------- Auth -----------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def login(self, username: str, password: str) -> dict:
        """
        Verify credentials against the local users table and start cloud
        listeners. Raises AuthError on failure.
        """
        if not (username or "").strip() or not password:
            raise AuthError("empty_fields", "Please enter both username and password.")
        user = self.users.verify(username, password)
        if user is None:
            _log.info("Failed login for %r", (username or "").strip())
            raise AuthError("invalid_credentials", "Invalid username or password")

        self.user = {k: v for k, v in user.items() if k != "passwordHash"}
        _log.info("User %s signed in", self.user.get("username"))
        if self.sync is not None:
            self.sync.start()
        return self.user

    def logout(self) -> None:
        if self.sync is not None:
            self.sync.stop()
        if self.user is not None:
            _log.info("User %s signed out", self.user.get("username"))
        self.user = None

    def change_password(self, current_password: str, new_password: str) -> None:
        if self.user is None:
            raise AuthError("not_signed_in", "Sign in to change your password.")
        if self.users.verify(self.user["username"], current_password) is None:
            raise AuthError("wrong_password", "Current password is incorrect.")
        try:
            self.users.update_password(self.user["id"], new_password)
        except DomainError as exc:
            raise AuthError("invalid_password", str(exc)) from exc

    def close(self) -> None:
        self.logout()
        if self.sync is not None:
            self.sync.wait_for_pushes()
        self.store.close()

    # ----------------------------- Ledger views -----------------------------

    def outstanding_balance(self, customer_id: Any) -> float:
        return balances.outstanding_balance(customer_id, self.sales.list_all(), self.payments.list_all())

    def customer_balances(self) -> list[balances.CustomerBalance]:
        return balances.customer_balances(
            self.customers.list_customers(), self.sales.list_all(), self.payments.list_all()
        )

    def transaction_history(self, customer_id: Any, start: Optional[str] = None, end: Optional[str] = None):
        return balances.transaction_history(
            customer_id, self.sales.list_all(), self.payments.list_all(), (start, end)
        )

    def daily_net_profit(self, day: str) -> float:
        return reports.daily_net_profit(day, self.sales.list_all(), self.vendor_bills.list_all())

    def daily_summary(self, start: Optional[str] = None, end: Optional[str] = None) -> list[reports.DayTotals]:
        return reports.daily_summary(self.sales.list_all(), self.vendor_bills.list_all(), (start, end))

    def period_report(self, start: Optional[str], end: Optional[str]) -> reports.PeriodAggregate:
        return reports.period_aggregate(
            (start, end), self.sales.list_all(), self.products.list_all(), self.customers.list_all()
        )

    def dashboard(self, today: Optional[str] = None) -> reports.DashboardStats:
        return reports.dashboard_stats(
            self.sales.list_all(),
            self.vendor_bills.list_all(),
            self.customers.list_all(),
            self.products.list_all(),
            today=today,
        )
