# =============================================================================
# test_queries.py - Data-layer updates keep derived amounts in step
# =============================================================================
# Uses a separate test DB (temporary folder). Run from project root:
#   python test_queries.py     (or: pytest test_queries.py)
#
# Checks:
#   1. update_invoice re-derives balance_due and status
#   2. update_commission re-derives commission_amount / override flag
#   3. Final invoice = trip total - deposit actually billed
#   4. Recent payments list size
# =============================================================================

import os
import shutil
import sys
import tempfile
from datetime import date, timedelta

# Run from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
TEST_DIR = tempfile.mkdtemp(prefix="tour_ops_queries_")
TEST_DB = os.path.join(TEST_DIR, "tour_ops_queries_test.db")

from database import (
    init_db,
    create_itinerary,
    create_itinerary_service,
    load_itinerary_by_id,
    create_invoice,
    create_invoice_for_itinerary,
    load_invoice_by_id,
    update_invoice,
    create_commission,
    load_commissions,
    update_commission,
    create_expense,
    load_recent_payments,
)


def fresh_db():
    config.DB_PATH = TEST_DB
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)
    assert init_db(), "init_db failed"


def commission_row(commission_id):
    df = load_commissions()
    return df[df['commission_id'] == commission_id].iloc[0].to_dict()


def new_trip(cost):
    start = date.today() + timedelta(days=30)
    trip_id = create_itinerary({
        'client_name': "Split Client",
        'start_date': start.isoformat(),
        'end_date': (start + timedelta(days=3)).isoformat(),
        'deposit_percent': 10,
    })
    assert trip_id, "create_itinerary failed"
    assert create_itinerary_service({
        'itinerary_id': trip_id,
        'service_type': "hotel",
        'cost_mode': "manual",
        'manual_cost': cost,
    }), "create_itinerary_service failed"
    return trip_id


def test_update_invoice_keeps_balance_and_status():
    fresh_db()
    invoice_id = create_invoice({'client_name': "X", 'subtotal': 1000, 'status': "sent"})
    assert invoice_id, "create_invoice failed"

    assert update_invoice(invoice_id, {'amount_paid': 400})
    invoice = load_invoice_by_id(invoice_id)
    assert invoice['total_amount'] == 1000.0
    assert invoice['balance_due'] == invoice['total_amount'] - invoice['amount_paid'] == 600.0, invoice
    assert invoice['status'] == "partial", invoice['status']

    assert update_invoice(invoice_id, {'amount_paid': 1000})
    assert load_invoice_by_id(invoice_id)['status'] == "paid"

    # Raising the price of a paid invoice reopens it
    assert update_invoice(invoice_id, {'subtotal': 1200})
    invoice = load_invoice_by_id(invoice_id)
    assert invoice['balance_due'] == 200.0, invoice
    assert invoice['status'] == "partial", invoice['status']

    assert update_invoice(invoice_id, {'amount_paid': 0})
    invoice = load_invoice_by_id(invoice_id)
    assert invoice['balance_due'] == 1200.0 and invoice['status'] == "sent", invoice

    # Non-money edits leave the status alone; cancelled stays cancelled
    assert update_invoice(invoice_id, {'status': "cancelled"})
    assert update_invoice(invoice_id, {'discount_amount': 100, 'amount_paid': 50})
    invoice = load_invoice_by_id(invoice_id)
    assert invoice['status'] == "cancelled"
    assert invoice['balance_due'] == 1050.0, invoice


def test_update_commission_rederives_amount():
    fresh_db()
    commission_id = create_commission({
        'commission_type': "receivable",
        'category': "cruise",
        'base_amount': 1000,
        'commission_rate': 10,
    })
    assert commission_id, "create_commission failed"
    assert commission_row(commission_id)['commission_amount'] == 100.0

    assert update_commission(commission_id, {'commission_rate': 20})
    row = commission_row(commission_id)
    assert row['commission_rate'] == 20.0
    assert row['commission_amount'] == 200.0, row['commission_amount']
    assert row['is_manual_override'] == 0

    # An amount typed in by hand is an override
    assert update_commission(commission_id, {'commission_amount': 150})
    row = commission_row(commission_id)
    assert row['commission_amount'] == 150.0 and row['is_manual_override'] == 1

    # A new base drops the override again
    assert update_commission(commission_id, {'base_amount': 2000})
    row = commission_row(commission_id)
    assert row['commission_amount'] == 400.0 and row['is_manual_override'] == 0

    assert not update_commission(999999, {'commission_rate': 5}), "missing commission was updated"


def test_final_invoice_uses_billed_deposit():
    fresh_db()
    trip_id = new_trip(2000.0)

    deposit_id = create_invoice_for_itinerary(trip_id, "deposit")
    assert load_invoice_by_id(deposit_id)['subtotal'] == 200.0

    # Trip grows after the deposit went out
    assert create_itinerary_service({
        'itinerary_id': trip_id,
        'service_type': "activity",
        'cost_mode': "manual",
        'manual_cost': 1000.0,
    })
    total = load_itinerary_by_id(trip_id)['total_cost']
    assert total == 3000.0

    final_id = create_invoice_for_itinerary(trip_id, "final")
    final = load_invoice_by_id(final_id)
    assert final['subtotal'] == 2800.0, final['subtotal']
    assert final['subtotal'] + load_invoice_by_id(deposit_id)['subtotal'] == total

    # A different percent on the form doesn't change what's left to bill
    again = load_invoice_by_id(create_invoice_for_itinerary(trip_id, "final", deposit_percent=30))
    assert again['subtotal'] == 2800.0


def test_final_invoice_without_live_deposit_uses_percent():
    fresh_db()
    trip_id = new_trip(2000.0)

    final = load_invoice_by_id(create_invoice_for_itinerary(trip_id, "final"))
    assert final['subtotal'] == 1800.0

    deposit_id = create_invoice_for_itinerary(trip_id, "deposit", deposit_percent=25)
    assert update_invoice(deposit_id, {'status': "cancelled"})
    final = load_invoice_by_id(create_invoice_for_itinerary(trip_id, "final"))
    assert final['subtotal'] == 1800.0, final['subtotal']


def test_recent_payments_limit():
    fresh_db()
    today = date.today()
    for day in range(3):
        assert create_expense({
            'supplier_name': f"Supplier {day}",
            'category': "other",
            'amount': 10 + day,
            'expense_date': (today - timedelta(days=day)).isoformat(),
            'payment_date': (today - timedelta(days=day)).isoformat(),
            'status': "paid",
        }), "create_expense failed"

    assert config.RECENT_PAYMENTS_LIMIT == 50
    assert len(load_recent_payments()) == 3
    latest_two = load_recent_payments(limit=2)
    assert list(latest_two['supplier_name']) == ["Supplier 0", "Supplier 1"]


def main():
    print("=" * 60)
    print("TOUR OPS - DATA LAYER TEST")
    print("=" * 60)

    checks = [
        test_update_invoice_keeps_balance_and_status,
        test_update_commission_rederives_amount,
        test_final_invoice_uses_billed_deposit,
        test_final_invoice_without_live_deposit_uses_percent,
        test_recent_payments_limit,
    ]
    try:
        for i, check in enumerate(checks, start=1):
            print(f"\n[{i}] {check.__name__}...")
            check()
            print("    OK")
    finally:
        shutil.rmtree(TEST_DIR, ignore_errors=True)

    print("\n" + "=" * 60)
    print("DATA LAYER TEST PASSED")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except AssertionError as e:
        print(f"\nFAIL: {e}")
        sys.exit(1)
