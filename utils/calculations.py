# =============================================================================
# utils/calculations.py
# =============================================================================
# PURPOSE:
#   Derived money values and status rules:
#   - How much is the commission on a booking?
#   - How much does a deposit / final invoice bill?
#   - What are the tax, total and balance of an invoice?
#   - Is an invoice overdue right now?
#   - What does a service cost in auto vs manual mode?
#
# MONEY:
#   Every amount goes through decimal.Decimal and is rounded HALF-UP to two
#   places (round2). Floats only come back out when we write to SQLite or
#   hand values to Streamlit.
#
# BUSINESS RULES:
#   These functions encode the rules of the business. Pages, reports and the
#   data layer call them; none of them talks to the database.
# =============================================================================

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

import pandas as pd

from config import (
    AMOUNT_TOLERANCE,
    DEFAULT_COMMISSION_RATE,
    INVOICE_CLOSED_STATUSES,
    INVOICE_TYPES,
)

TWO_PLACES = Decimal("0.01")
TOLERANCE = Decimal(str(AMOUNT_TOLERANCE))


# =============================================================================
# COERCION HELPERS
# =============================================================================

def to_decimal(value, default=Decimal("0")):
    """
    Convert anything amount-like to a Decimal.

    None, NaN, empty strings and text that isn't a number all become
    `default` (0), so a bad row never breaks a total.

    EXAMPLE:
        to_decimal("1,234.50") → Decimal('1234.50')
        to_decimal(None)       → Decimal('0')
        to_decimal("N/A")      → Decimal('0')
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return default
        # str() first so 0.1 stays 0.1 and not 0.1000000000000000055...
        return Decimal(str(value))
    try:
        cleaned = str(value).replace(",", "").strip()
        if cleaned == "" or cleaned.lower() in ("nan", "none", "n/a", "-"):
            return default
        result = Decimal(cleaned)
        return result if result.is_finite() else default
    except (InvalidOperation, ValueError, TypeError):
        return default


def to_date(value):
    """
    Convert a date-ish value (date, datetime, pandas Timestamp, ISO string)
    to a datetime.date.

    RETURNS:
        date, or None if the value is missing or can't be parsed
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()[:10]
        if not text:
            return None
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def round2(value):
    """Round HALF-UP to 2 decimal places (0.005 → 0.01)."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


# =============================================================================
# COMMISSIONS
# =============================================================================

def commission_amount(base_amount, commission_rate):
    """
    Commission = base × rate / 100, rounded half-up to cents.

    EXAMPLE:
        commission_amount(1000, 12.5) → Decimal('125.00')
        commission_amount(0.05, 10)   → Decimal('0.01')   (0.005 rounds up)
    """
    return round2(to_decimal(base_amount) * to_decimal(commission_rate) / Decimal(100))


class CommissionForm:
    """
    State of the commission entry form.

    The amount follows the LAST thing the user typed:
        - typing a base amount or a rate recomputes the commission
        - typing the commission directly sets a manual override
        - the override survives until base or rate is typed again, then it
          is recomputed and the manual value is gone

    USAGE:
        form = CommissionForm(base_amount=1000, commission_rate=10)
        form.commission_amount          → Decimal('100.00')
        form.commission_amount = 150    # manual override
        form.commission_rate = 12       # recomputed → Decimal('120.00')
    """

    def __init__(self, base_amount=0, commission_rate=DEFAULT_COMMISSION_RATE):
        self._base_amount = to_decimal(base_amount)
        self._commission_rate = to_decimal(commission_rate)
        self.is_manual_override = False
        self._commission_amount = Decimal("0")
        self.recompute()

    @property
    def base_amount(self):
        return self._base_amount

    @base_amount.setter
    def base_amount(self, value):
        self._base_amount = to_decimal(value)
        self.recompute()

    @property
    def commission_rate(self):
        return self._commission_rate

    @commission_rate.setter
    def commission_rate(self, value):
        self._commission_rate = to_decimal(value)
        self.recompute()

    @property
    def commission_amount(self):
        return self._commission_amount

    @commission_amount.setter
    def commission_amount(self, value):
        self._commission_amount = round2(value)
        self.is_manual_override = True

    def recompute(self):
        """Derive the amount from base and rate. Clears any override."""
        self._commission_amount = commission_amount(self._base_amount, self._commission_rate)
        self.is_manual_override = False
        return self._commission_amount

    def to_record(self):
        """Column values for the commissions table."""
        return {
            'base_amount': float(self._base_amount),
            'commission_rate': float(self._commission_rate),
            'commission_amount': float(self._commission_amount),
            'is_manual_override': 1 if self.is_manual_override else 0,
        }


# =============================================================================
# INVOICE AMOUNTS
# =============================================================================

def deposit_amount(full_cost, deposit_percent):
    """Deposit = full cost × deposit% / 100, rounded to cents."""
    return round2(to_decimal(full_cost) * to_decimal(deposit_percent) / Decimal(100))


def final_balance_amount(full_cost, deposit_percent):
    """
    Final balance = full cost - deposit.

    Uses the SAME rounded deposit, so deposit + final always equals the
    full cost exactly.
    """
    return round2(full_cost) - deposit_amount(full_cost, deposit_percent)


def invoice_line_amount(full_cost, deposit_percent, invoice_type="standard"):
    """
    What a single invoice bills for an itinerary.

    PARAMETERS:
        full_cost: Itinerary total
        deposit_percent: e.g. 10 for a 10% deposit
        invoice_type: 'standard' | 'deposit' | 'final'

    RETURNS:
        Decimal: full cost (standard), deposit, or remaining balance (final)

    RAISES:
        ValueError: unknown invoice type
    """
    if invoice_type not in INVOICE_TYPES:
        raise ValueError(f"Unknown invoice type: {invoice_type!r}")
    if invoice_type == "deposit":
        return deposit_amount(full_cost, deposit_percent)
    if invoice_type == "final":
        return final_balance_amount(full_cost, deposit_percent)
    return round2(full_cost)


def invoice_totals(subtotal, tax_rate=0, discount_amount=0, amount_paid=0):
    """
    Compute the money columns of an invoice.

    RULES:
        tax_amount  = subtotal × tax_rate / 100
        total       = subtotal + tax_amount - discount
        balance_due = total - amount_paid

    RETURNS:
        dict: subtotal, tax_amount, discount_amount, total_amount,
              amount_paid, balance_due (all Decimal)
    """
    subtotal = round2(subtotal)
    discount = round2(discount_amount)
    paid = round2(amount_paid)
    tax = round2(subtotal * to_decimal(tax_rate) / Decimal(100))
    total = subtotal + tax - discount

    return {
        'subtotal': subtotal,
        'tax_amount': tax,
        'discount_amount': discount,
        'total_amount': total,
        'amount_paid': paid,
        'balance_due': total - paid,
    }


# =============================================================================
# ITINERARY SERVICES
# =============================================================================

def effective_service_cost(service):
    """
    What a service actually costs.

    cost_mode 'auto'   → rate_cost × quantity (from the rate sheet)
    cost_mode 'manual' → manual_cost (typed in by staff)

    A missing cost_mode is treated as 'auto'.
    """
    mode = service.get('cost_mode') or "auto"
    if mode == "manual":
        return round2(service.get('manual_cost'))
    if mode != "auto":
        raise ValueError(f"Unknown cost mode: {mode!r}")
    quantity = service.get('quantity')
    if quantity is None or to_decimal(quantity, default=None) is None:
        quantity = 1
    return round2(to_decimal(service.get('rate_cost')) * to_decimal(quantity))


def itinerary_total(services):
    """Sum of effective costs for a list of service dicts."""
    return sum((effective_service_cost(s) for s in services), Decimal("0.00"))


# =============================================================================
# STATUS RULES
# =============================================================================

def calculate_payment_status(applied_amount, total_amount):
    """
    Payment status of an invoice from what has been applied against it.

    RETURNS:
        str: One of 'UNPAID', 'PART PAID', 'PAID', 'OVERPAID'

    BUSINESS RULES (within a 0.01 tolerance):
        - UNPAID: nothing applied
        - PART PAID: some applied but less than total
        - PAID: applied equals total
        - OVERPAID: applied more than total

    EXAMPLE:
        calculate_payment_status(0, 1000)      → 'UNPAID'
        calculate_payment_status(500, 1000)    → 'PART PAID'
        calculate_payment_status(1000, 1000)   → 'PAID'
        calculate_payment_status(1100, 1000)   → 'OVERPAID'
    """
    applied_amount = to_decimal(applied_amount)
    total_amount = to_decimal(total_amount)

    if abs(applied_amount) < TOLERANCE:
        return "UNPAID"
    elif applied_amount + TOLERANCE < total_amount:
        return "PART PAID"
    elif abs(applied_amount - total_amount) <= TOLERANCE:
        return "PAID"
    else:
        return "OVERPAID"


def status_after_payment(invoice):
    """
    Stored status once a payment has been applied.

    RETURNS:
        'paid' when the balance is settled, 'partial' when something has been
        paid, 'sent' when every payment was reversed, otherwise the current
        status unchanged. A cancelled invoice stays cancelled.
    """
    current = invoice.get('status') or "draft"
    if current == "cancelled":
        return current
    total = to_decimal(invoice.get('total_amount'))
    paid = to_decimal(invoice.get('amount_paid'))
    if paid > 0 and total - paid <= TOLERANCE:
        return "paid"
    if paid > 0:
        return "partial"
    if current in ("partial", "paid"):
        return "sent"
    return current


def display_status(invoice, today=None):
    """
    Status to SHOW for an invoice.

    An open invoice (not paid or cancelled) whose due date has passed and
    which still has a balance is shown as 'overdue'. The stored status is
    never changed.
    """
    status = invoice.get('status') or "draft"
    if status in INVOICE_CLOSED_STATUSES:
        return status

    due = to_date(invoice.get('due_date'))
    today = to_date(today) or date.today()
    if due is not None and due < today and to_decimal(invoice.get('balance_due')) > 0:
        return "overdue"
    return status


def calculate_invoice_status(invoice_df, payments_df, today=None):
    """
    Add payment columns to the invoices table.

    PARAMETERS:
        invoice_df (pd.DataFrame): Invoices
        payments_df (pd.DataFrame): Invoice payments
        today: Reference date for 'overdue' (defaults to today)

    RETURNS:
        pd.DataFrame: Invoices plus:
            - applied_amount: sum of recorded payments
            - payment_state: UNPAID/PART PAID/PAID/OVERPAID
            - display_status: stored status or 'overdue'
    """
    if len(invoice_df) == 0:
        return pd.DataFrame()

    result = invoice_df.copy()
    result['applied_amount'] = 0.0

    if len(payments_df) > 0:
        applied = payments_df.groupby('invoice_id')['amount'].sum()
        result['applied_amount'] = result['invoice_id'].map(applied).fillna(0.0)

    result['payment_state'] = result.apply(
        lambda row: calculate_payment_status(row['applied_amount'], row['total_amount']),
        axis=1
    )
    result['display_status'] = result.apply(
        lambda row: display_status(row, today),
        axis=1
    )

    return result
