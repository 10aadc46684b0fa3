APP_NAME = "SP Sales Book"

DATA_DIR = "data"
DB_FILE_NAME = "salesbook.db"
LOG_DIR = "logs"

SCHEMA_VERSION = "1"
TABLE_SCHEMA_VERSION = "schema_version"
TABLE_SEQUENCES = "id_sequences"

# ---- Entity tables ----
TABLE_CUSTOMERS = "customers"
TABLE_PRODUCTS = "products"
TABLE_SALES = "sales"
TABLE_SETTINGS = "settings"
TABLE_USERS = "users"
TABLE_VENDORS = "vendors"
TABLE_VENDOR_BILLS = "vendor_bills"
TABLE_PAYMENTS = "payments"

ENTITY_TABLES = (
    TABLE_CUSTOMERS,
    TABLE_PRODUCTS,
    TABLE_SALES,
    TABLE_SETTINGS,
    TABLE_USERS,
    TABLE_VENDORS,
    TABLE_VENDOR_BILLS,
    TABLE_PAYMENTS,
)

# Users never leave the device.
SYNC_COLLECTIONS = (
    TABLE_CUSTOMERS,
    TABLE_PRODUCTS,
    TABLE_SALES,
    TABLE_SETTINGS,
    TABLE_VENDORS,
    TABLE_VENDOR_BILLS,
    TABLE_PAYMENTS,
)

# All calendar-day comparisons happen in this zone.
BUSINESS_TIMEZONE = "Asia/Kuala_Lumpur"

BACKUP_VERSION = 2
BACKUP_FILE_PREFIX = "sp_sales_backup_"
BACKUP_LOG_FILE_NAME = "backup_restore.log"
BACKUP_V1_TABLES = (TABLE_CUSTOMERS, TABLE_PRODUCTS, TABLE_SALES, TABLE_SETTINGS)
BACKUP_V2_TABLES = BACKUP_V1_TABLES + (TABLE_VENDORS, TABLE_VENDOR_BILLS, TABLE_PAYMENTS)

DEFAULT_INVOICE_START = 10000
DEFAULT_UNIT = "Kg"

DEFAULT_SETTINGS = {
    "companyName": "SP FAMILY VENTURES EST ENTERPRISE",
    "regNum": "(002905563-H)",
    "desc1": "PEMBORONG AYAM HIDUP / AYAM PROSES",
    "desc2": "AYAM DAGING(BROILER), AYAM KAMPUNG & AYAM TUA (TELOR)",
    "contact": "H/P (012)627-3691",
    "logoLeft": None,
    "logoRight": None,
    "invoiceStart": DEFAULT_INVOICE_START,
}

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin"
