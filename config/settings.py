# =============================================================================
# config/settings.py
# =============================================================================
# PURPOSE:
#   Central configuration for the Tour Ops console.
#   All thresholds, vocabularies and defaults live here so the business
#   rules in utils/ and reports/ never hardcode them.
# =============================================================================

import os

# -----------------------------------------------------------------------------
# DATABASE CONFIGURATION
# -----------------------------------------------------------------------------
# SQLite file path. Override with TOUR_OPS_DB_PATH (tests point this at a
# temporary file).
DB_PATH = os.environ.get("TOUR_OPS_DB_PATH", "tour_ops.db")

# -----------------------------------------------------------------------------
# CURRENCY CONFIGURATION
# -----------------------------------------------------------------------------
ALLOWED_CURRENCIES = ["EUR", "USD", "GBP", "EGP"]

DEFAULT_CURRENCY = "EUR"

# Display symbols. Unmapped codes are shown as the raw code.
CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "EGP": "E£",
}

# Tolerance for comparing amounts (0.01 = one cent)
AMOUNT_TOLERANCE = 0.01

# -----------------------------------------------------------------------------
# AGING BUCKETS (Accounts Payable)
# -----------------------------------------------------------------------------
# days_outstanding = reference date - expense date
#   0-14  -> current
#   15-30 -> '30'
#   31-60 -> '60'
#   61+   -> '90plus'
# NOTE: the '90plus' bucket starts at 61 days although it is labelled
# "90+ Days". Kept as observed until finance confirms the policy.
AGING_CURRENT_MAX_DAYS = 14
AGING_30_MAX_DAYS = 30
AGING_60_MAX_DAYS = 60

AGING_BUCKETS = ["current", "30", "60", "90plus"]

AGING_BUCKET_LABELS = {
    "current": "Current",
    "30": "15-30 Days",
    "60": "31-60 Days",
    "90plus": "90+ Days",
}

# Receivables age by days PAST DUE, so "current" means not yet due
RECEIVABLE_AGING_LABELS = {
    "current": "Not yet due",
    "30": "1-30 Days",
    "60": "31-60 Days",
    "90plus": "90+ Days",
}

# Maps a bucket name to its key in an AgingBucket dict
AGING_BUCKET_FIELDS = {
    "current": "current",
    "30": "days30",
    "60": "days60",
    "90plus": "days90Plus",
}

# -----------------------------------------------------------------------------
# BOOKINGS / ITINERARIES
# -----------------------------------------------------------------------------
PAYMENT_STATUSES = [
    "not_paid",
    "deposit_received",
    "partially_paid",
    "paid",
    "completed",
]

PAYMENT_STATUS_LABELS = {
    "not_paid": "Not Paid",
    "deposit_received": "Deposit",
    "partially_paid": "Partial",
    "paid": "Paid",
    "completed": "Completed",
}

ITINERARY_STATUSES = ["draft", "quoted", "confirmed", "completed", "cancelled"]

# Services inside an itinerary day
SERVICE_TYPES = [
    "guide",
    "transport",
    "activity",
    "meal",
    "hotel",
    "sleeping_train",
    "other",
]

# auto   = cost comes from the rate sheet (rate_cost x quantity)
# manual = staff typed the cost in (manual_cost)
COST_MODES = ["auto", "manual"]
DEFAULT_COST_MODE = "auto"

# -----------------------------------------------------------------------------
# EXPENSES (Accounts Payable)
# -----------------------------------------------------------------------------
EXPENSE_STATUSES = ["pending", "approved", "paid", "rejected"]

# Only these count as outstanding payables
OUTSTANDING_EXPENSE_STATUSES = ["pending", "approved"]

# Rows in the "recent payments" list on the payables page
RECENT_PAYMENTS_LIMIT = 50

EXPENSE_CATEGORIES = [
    "accommodation",
    "transportation",
    "guide",
    "activities",
    "meals",
    "entrance_fees",
    "tips",
    "other",
]

SUPPLIER_TYPES = [
    "hotel",
    "transport",
    "guide",
    "restaurant",
    "activity",
    "cruise",
    "other",
]

# -----------------------------------------------------------------------------
# INVOICES
# -----------------------------------------------------------------------------
# Stored statuses. 'overdue' is never stored, it is derived at display time.
INVOICE_STATUSES = ["draft", "sent", "partial", "paid", "cancelled"]
INVOICE_DISPLAY_STATUSES = INVOICE_STATUSES + ["overdue"]

# Statuses that are never reclassified as overdue
INVOICE_CLOSED_STATUSES = ["paid", "cancelled"]

INVOICE_TYPES = ["standard", "deposit", "final"]

DEFAULT_DEPOSIT_PERCENT = 10
DEFAULT_PAYMENT_TERMS = "Payment due within 14 days"
DEFAULT_DUE_DAYS = 14

PAYMENT_METHODS = ["bank_transfer", "cash", "card", "paypal", "other"]

# -----------------------------------------------------------------------------
# COMMISSIONS
# -----------------------------------------------------------------------------
COMMISSION_TYPES = ["receivable", "payable"]

COMMISSION_STATUSES = ["pending", "invoiced", "received", "paid", "cancelled"]

# Receivable commissions still waiting for money
PENDING_RECEIVABLE_STATUSES = ["pending", "invoiced"]

COMMISSION_CATEGORIES = [
    "hotel",
    "cruise",
    "activity",
    "transport",
    "restaurant",
    "shop",
    "partner",
    "other",
]

DEFAULT_COMMISSION_RATE = 10

# -----------------------------------------------------------------------------
# RATE SHEETS
# -----------------------------------------------------------------------------
RATE_TYPES = ["activity", "meal", "sleeping_train"]

RATE_TYPE_LABELS = {
    "activity": "Activities",
    "meal": "Meals",
    "sleeping_train": "Sleeping Trains",
}

# -----------------------------------------------------------------------------
# UI CONFIGURATION
# -----------------------------------------------------------------------------
PAGE_TITLE = "Tour Ops Console"
PAGE_ICON = "🧭"
LAYOUT = "wide"

# -----------------------------------------------------------------------------
# DUPLICATE DETECTION RULES (importers)
# -----------------------------------------------------------------------------
DUPLICATE_DETECTION = {
    "expenses": {
        "key_fields": ["expense_date", "amount", "supplier_name", "description"],
    },
    "rates": {
        "key_fields": ["rate_type", "name", "city"],
    },
}
