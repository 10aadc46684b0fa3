# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from salesbook.database.repositories import (
        CustomersRepo, Customer,
        ProductsRepo, Product,
        SalesRepo, Sale, SaleItem,
        PaymentsRepo, Payment,
        VendorsRepo, Vendor,
        VendorBillsRepo, VendorBill,
        SettingsRepo, LoginRepo,
        DomainError,
    )
"""

from .base_repo import DomainError, SyncedRepo, newest_first

# ---------------- Customers ----------------
from .customers_repo import Customer, CustomersRepo

# ---------------- Products ----------------
from .products_repo import Product, ProductsRepo

# ---------------- Sales ----------------
from .sales_repo import Sale, SaleItem, SalesRepo

# ---------------- Payments ----------------
from .payments_repo import Payment, PaymentsRepo

# ---------------- Vendors ----------------
from .vendors_repo import Vendor, VendorsRepo
from .vendor_bills_repo import VendorBill, VendorBillsRepo

# ---------------- Settings / users ----------------
from .settings_repo import SettingsRepo
from .login_repo import LoginRepo

__all__ = [
    "DomainError",
    "SyncedRepo",
    "newest_first",
    "Customer",
    "CustomersRepo",
    "Product",
    "ProductsRepo",
    "Sale",
    "SaleItem",
    "SalesRepo",
    "Payment",
    "PaymentsRepo",
    "Vendor",
    "VendorsRepo",
    "VendorBill",
    "VendorBillsRepo",
    "SettingsRepo",
    "LoginRepo",
]
