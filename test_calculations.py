# =============================================================================
# test_calculations.py - Money and status rules
# =============================================================================
# Checks the business rules in utils/calculations.py without touching the
# database: commissions, deposit/final invoices, invoice totals, service
# costs and the invoice status rules.
#
# Run:  python test_calculations.py     (or: pytest test_calculations.py)
# =============================================================================

import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pandas as pd

from utils.calculations import (
    CommissionForm,
    calculate_invoice_status,
    calculate_payment_status,
    commission_amount,
    deposit_amount,
    display_status,
    effective_service_cost,
    final_balance_amount,
    invoice_line_amount,
    invoice_totals,
    itinerary_total,
    round2,
    status_after_payment,
    to_date,
    to_decimal,
)


# -----------------------------------------------------------------------------
# COERCION
# -----------------------------------------------------------------------------

def test_to_decimal_handles_bad_input():
    assert to_decimal("1,234.50") == Decimal("1234.50")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("N/A") == Decimal("0")
    assert to_decimal(float("nan")) == Decimal("0")
    assert to_decimal(0.1) == Decimal("0.1")


def test_to_date_accepts_common_shapes():
    assert to_date("2025-03-01").isoformat() == "2025-03-01"
    assert to_date("2025-03-01T10:30:00").isoformat() == "2025-03-01"
    assert to_date(pd.Timestamp("2025-03-01")).isoformat() == "2025-03-01"
    assert to_date("not a date") is None
    assert to_date(None) is None


def test_round2_is_half_up():
    assert round2("0.005") == Decimal("0.01")
    assert round2("2.675") == Decimal("2.68")
    assert round2(-1.005) == Decimal("-1.01")


# -----------------------------------------------------------------------------
# COMMISSIONS
# -----------------------------------------------------------------------------

def test_commission_amount():
    assert commission_amount(1000, 12.5) == Decimal("125.00")
    assert commission_amount(0.05, 10) == Decimal("0.01")
    assert commission_amount(None, 10) == Decimal("0.00")


def test_commission_amount_is_repeatable():
    first = commission_amount("1234.56", "7.5")
    second = commission_amount("1234.56", "7.5")
    assert first == second
    assert str(first) == str(second)


def test_commission_form_follows_last_input():
    form = CommissionForm(base_amount=1000, commission_rate=10)
    assert form.commission_amount == Decimal("100.00")
    assert not form.is_manual_override

    # Typed by hand
    form.commission_amount = 150
    assert form.commission_amount == Decimal("150.00")
    assert form.is_manual_override

    # Rate edited afterwards: back to base x rate
    form.commission_rate = 12
    assert form.commission_amount == Decimal("120.00")
    assert not form.is_manual_override

    form.commission_amount = 99.999
    form.base_amount = 2000
    assert form.commission_amount == Decimal("240.00")


def test_commission_form_record():
    form = CommissionForm(base_amount="500", commission_rate=8)
    form.commission_amount = 45
    record = form.to_record()
    assert record == {
        'base_amount': 500.0,
        'commission_rate': 8.0,
        'commission_amount': 45.0,
        'is_manual_override': 1,
    }


# -----------------------------------------------------------------------------
# INVOICE AMOUNTS
# -----------------------------------------------------------------------------

def test_deposit_then_final():
    assert invoice_line_amount(2000, 10, "deposit") == Decimal("200.00")
    assert invoice_line_amount(2000, 10, "final") == Decimal("1800.00")
    assert invoice_line_amount(2000, 10, "standard") == Decimal("2000.00")


def test_deposit_and_final_add_up_to_the_trip():
    for full_cost, pct in [("1000.01", 15), ("999.99", 33), ("0", 10), ("1234.57", 12.5)]:
        deposit = deposit_amount(full_cost, pct)
        final = final_balance_amount(full_cost, pct)
        assert deposit + final == round2(full_cost), (full_cost, pct)


def test_unknown_invoice_type_is_rejected():
    try:
        invoice_line_amount(1000, 10, "proforma")
    except ValueError:
        return
    raise AssertionError("invoice_line_amount accepted an unknown type")


def test_invoice_totals():
    totals = invoice_totals(1000, tax_rate=10, discount_amount=50)
    assert totals['tax_amount'] == Decimal("100.00")
    assert totals['total_amount'] == Decimal("1050.00")
    assert totals['balance_due'] == Decimal("1050.00")

    totals = invoice_totals(1000, tax_rate=10, discount_amount=50, amount_paid=300)
    assert totals['balance_due'] == Decimal("750.00")
    assert totals['total_amount'] == totals['subtotal'] + totals['tax_amount'] - totals['discount_amount']


# -----------------------------------------------------------------------------
# SERVICES
# -----------------------------------------------------------------------------

def test_effective_service_cost():
    assert effective_service_cost({'cost_mode': "auto", 'rate_cost': 35, 'quantity': 4}) == Decimal("140.00")
    assert effective_service_cost({'cost_mode': "manual", 'rate_cost': 35, 'quantity': 4,
                                   'manual_cost': 500}) == Decimal("500.00")
    # No mode → auto, no quantity → 1
    assert effective_service_cost({'rate_cost': 20}) == Decimal("20.00")


def test_unknown_cost_mode_is_rejected():
    try:
        effective_service_cost({'cost_mode': "estimate", 'rate_cost': 10})
    except ValueError:
        return
    raise AssertionError("effective_service_cost accepted an unknown mode")


def test_itinerary_total():
    services = [
        {'cost_mode': "auto", 'rate_cost': 35, 'quantity': 2},
        {'cost_mode': "manual", 'manual_cost': 400},
    ]
    assert itinerary_total(services) == Decimal("470.00")
    assert itinerary_total([]) == Decimal("0.00")


# -----------------------------------------------------------------------------
# STATUS RULES
# -----------------------------------------------------------------------------

def test_calculate_payment_status():
    assert calculate_payment_status(0, 1000) == "UNPAID"
    assert calculate_payment_status(500, 1000) == "PART PAID"
    assert calculate_payment_status(1000, 1000) == "PAID"
    assert calculate_payment_status(999.995, 1000) == "PAID"
    assert calculate_payment_status(1100, 1000) == "OVERPAID"


def test_status_after_payment():
    assert status_after_payment({'total_amount': 1000, 'amount_paid': 1000, 'status': "sent"}) == "paid"
    assert status_after_payment({'total_amount': 1000, 'amount_paid': 400, 'status': "sent"}) == "partial"
    assert status_after_payment({'total_amount': 1000, 'amount_paid': 0, 'status': "sent"}) == "sent"

    # Every payment reversed
    assert status_after_payment({'total_amount': 1000, 'amount_paid': 0, 'status': "paid"}) == "sent"
    assert status_after_payment({'total_amount': 1000, 'amount_paid': 0, 'status': "partial"}) == "sent"
    assert status_after_payment({'total_amount': 1000, 'amount_paid': 1000, 'status': "cancelled"}) == "cancelled"


def test_display_status_overdue():
    invoice = {'status': "sent", 'due_date': "2025-01-01", 'balance_due': 100}
    assert display_status(invoice, today="2025-02-01") == "overdue"
    assert display_status(invoice, today="2025-01-01") == "sent"

    settled = dict(invoice, balance_due=0)
    assert display_status(settled, today="2025-02-01") == "sent"

    paid = dict(invoice, status="paid")
    assert display_status(paid, today="2025-02-01") == "paid"


def test_calculate_invoice_status():
    invoices = pd.DataFrame([
        {'invoice_id': 1, 'total_amount': 1000.0, 'balance_due': 600.0,
         'status': "partial", 'due_date': "2025-01-01"},
        {'invoice_id': 2, 'total_amount': 500.0, 'balance_due': 500.0,
         'status': "sent", 'due_date': "2025-12-31"},
    ])
    payments = pd.DataFrame([
        {'invoice_id': 1, 'amount': 250.0},
        {'invoice_id': 1, 'amount': 150.0},
    ])

    result = calculate_invoice_status(invoices, payments, today="2025-06-01")
    first = result[result['invoice_id'] == 1].iloc[0]
    second = result[result['invoice_id'] == 2].iloc[0]

    assert first['applied_amount'] == 400.0
    assert first['payment_state'] == "PART PAID"
    assert first['display_status'] == "overdue"
    assert second['applied_amount'] == 0.0
    assert second['payment_state'] == "UNPAID"
    assert second['display_status'] == "sent"

    assert len(calculate_invoice_status(pd.DataFrame(), payments)) == 0


def main():
    tests = [(name, fn) for name, fn in globals().items() if name.startswith("test_") and callable(fn)]
    for name, fn in tests:
        fn()
        print(f"OK: {name}")
    print(f"\n{len(tests)} calculation checks passed")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except AssertionError as e:
        print(f"\nFAIL: {e}")
        sys.exit(1)
