# =============================================================================
# test_e2e_flow.py - End-to-end test: Book -> Price -> Pay suppliers -> Bill
# =============================================================================
# Uses a separate test DB (temporary folder). Run from project root:
#   python test_e2e_flow.py
#
# Flow:
#   1. Fresh DB + a rate sheet entry
#   2. Create a trip and price it with services (auto + manual cost)
#   3. Double-booking on the calendar, then reschedule it away
#   4. Supplier expenses: approve, pay
#   5. Deposit + final invoices, payments (overpayment refused)
#   6. Commission
#   7. Reports over the stored data
# =============================================================================

import os
import shutil
import sys
import tempfile
from datetime import date, timedelta
from decimal import Decimal

# Run from project root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Use a test DB so we don't touch the real one (selected in main())
import config
TEST_DIR = tempfile.mkdtemp(prefix="tour_ops_e2e_")
TEST_DB = os.path.join(TEST_DIR, "tour_ops_e2e_test.db")

from database import (
    init_db,
    create_rate,
    delete_rate,
    load_rates,
    create_itinerary,
    load_itineraries,
    load_itinerary_by_id,
    update_itinerary_dates,
    delete_itinerary,
    create_itinerary_service,
    load_itinerary_services,
    update_service_cost,
    delete_itinerary_service,
    create_expense,
    load_expenses,
    load_recent_payments,
    update_expense_status,
    create_invoice_for_itinerary,
    load_invoice_by_id,
    load_invoices,
    load_invoice_payments,
    record_invoice_payment,
    delete_invoice_payment,
    create_commission,
    load_commissions,
)
from reports import (
    build_accounts_payable,
    build_accounts_receivable,
    build_calendar_view,
    build_commissions,
    build_profit_loss,
)
from utils import CommissionForm, reschedule, unwrap


def step(name):
    print(f"\n--- {name} ---")


def trip_total(itinerary_id):
    return load_itinerary_by_id(itinerary_id)['total_cost']


def main():
    today = date.today()
    start = today + timedelta(days=30)

    config.DB_PATH = TEST_DB
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)

    # -------------------------------------------------------------------------
    # 1. Fresh DB + rate sheet
    # -------------------------------------------------------------------------
    step("1. Init DB + rate")
    assert init_db(), "init_db failed"
    print(f"DB: {config.DB_PATH}")

    rate_id = create_rate({
        'rate_type': "activity",
        'name': "Karnak Temple tour",
        'city': "Luxor",
        'currency': "EUR",
        'price_eur': 35.0,
        'price_non_eur': 45.0,
        'is_active': 1,
    })
    assert rate_id, "create_rate failed"
    assert create_rate({'rate_type': "activity", 'name': "karnak temple tour", 'city': "LUXOR",
                        'price_eur': 1.0, 'price_non_eur': 1.0}) is None, "duplicate rate was accepted"
    assert len(load_rates(rate_type="activity")) == 1
    print(f"OK: rate_id={rate_id}, duplicate refused")

    # -------------------------------------------------------------------------
    # 2. Trip + services
    # -------------------------------------------------------------------------
    step("2. Trip + services")
    assert create_itinerary({
        'client_name': "Backwards",
        'start_date': (start + timedelta(days=3)).isoformat(),
        'end_date': start.isoformat(),
    }) is None, "itinerary with end before start was accepted"

    trip_id = create_itinerary({
        'client_name': "E2E Client",
        'trip_name': "Nile Classic",
        'destinations': "Cairo, Luxor, Aswan",
        'start_date': start.isoformat(),
        'end_date': (start + timedelta(days=4)).isoformat(),
        'num_travelers': 2,
        'status': "confirmed",
        'deposit_percent': 10,
        'assigned_guide_id': "g1",
        'guide_name': "Ahmed",
    })
    assert trip_id, "create_itinerary failed"
    trip = load_itinerary_by_id(trip_id)
    assert trip['itinerary_code'] == f"ITN-{today.year}-001", trip['itinerary_code']
    print(f"OK: trip_id={trip_id} code={trip['itinerary_code']}")

    tour_id = create_itinerary_service({
        'itinerary_id': trip_id,
        'day_number': 2,
        'service_type': "activity",
        'description': "Karnak Temple tour",
        'rate_id': rate_id,
        'rate_cost': 35.0,
        'quantity': 2,
    })
    hotel_id = create_itinerary_service({
        'itinerary_id': trip_id,
        'day_number': 1,
        'service_type': "hotel",
        'description': "Cairo hotel, 2 nights",
        'cost_mode': "manual",
        'manual_cost': 500.0,
    })
    assert tour_id and hotel_id, "create_itinerary_service failed"
    assert trip_total(trip_id) == 570.0, trip_total(trip_id)
    print("OK: total 570 after two services")

    assert update_service_cost(tour_id, {'quantity': 4}), "update_service_cost failed"
    assert trip_total(trip_id) == 640.0, trip_total(trip_id)
    assert update_service_cost(hotel_id, {'manual_cost': 1860.0}), "update_service_cost failed"
    assert trip_total(trip_id) == 2000.0, trip_total(trip_id)
    print("OK: total follows service cost edits (2000)")

    extra_id = create_itinerary_service({
        'itinerary_id': trip_id,
        'service_type': "meal",
        'cost_mode': "manual",
        'manual_cost': 45.0,
    })
    assert trip_total(trip_id) == 2045.0
    assert delete_itinerary_service(extra_id), "delete_itinerary_service failed"
    assert trip_total(trip_id) == 2000.0
    assert len(load_itinerary_services(trip_id)) == 2
    assert not update_service_cost(999999, {'quantity': 1}), "missing service was updated"
    print("OK: deleting a service re-derives the total")

    # -------------------------------------------------------------------------
    # 3. Calendar conflict + reschedule
    # -------------------------------------------------------------------------
    step("3. Calendar conflict + reschedule")
    clash_id = create_itinerary({
        'client_name': "Clash Client",
        'start_date': (start + timedelta(days=4)).isoformat(),
        'end_date': (start + timedelta(days=6)).isoformat(),
        'num_travelers': 3,
        'assigned_guide_id': "g1",
        'guide_name': "Ahmed",
        'total_cost': 900.0,
    })
    assert clash_id, "second itinerary failed"

    view = build_calendar_view(load_itineraries(), today=today)
    assert view['conflicts'] == {trip_id, clash_id}, view['conflicts']
    assert view['guideConflicts'] == {"g1": {trip_id, clash_id}}
    print("OK: touching trips with the same guide flagged")

    clash = load_itinerary_by_id(clash_id)
    moved = reschedule(clash, start + timedelta(days=10), today)
    assert moved is not None
    assert update_itinerary_dates(clash_id, *moved), "update_itinerary_dates failed"
    clash = load_itinerary_by_id(clash_id)
    assert clash['start_date'] == (start + timedelta(days=10)).isoformat()
    assert clash['end_date'] == (start + timedelta(days=12)).isoformat()
    assert not update_itinerary_dates(clash_id, moved[1], moved[0]), "backwards dates were stored"

    view = build_calendar_view(load_itineraries(), today=today)
    assert view['conflicts'] == set(), view['conflicts']
    assert len(unwrap(view)) == 2
    print("OK: rescheduled, no conflicts left")

    # -------------------------------------------------------------------------
    # 4. Supplier expenses
    # -------------------------------------------------------------------------
    step("4. Expenses")
    boat_id = create_expense({
        'itinerary_id': trip_id,
        'supplier_name': "Nile Star Cruises",
        'supplier_type': "cruise",
        'category': "accommodation",
        'description': "Cabin block",
        'amount': 800.0,
        'expense_date': (today - timedelta(days=20)).isoformat(),
        'status': "pending",
    })
    limo_id = create_expense({
        'itinerary_id': trip_id,
        'supplier_name': "Cairo Limo",
        'supplier_type': "transport",
        'category': "transportation",
        'description': "Airport transfer",
        'amount': 85.0,
        'expense_date': today.isoformat(),
        'status': "pending",
    })
    assert boat_id and limo_id, "create_expense failed"
    assert create_expense({'category': "other", 'amount': -5, 'expense_date': today.isoformat()}) is None, \
        "negative expense was accepted"

    payables = build_accounts_payable(load_expenses(), today)
    assert payables['summary']['total_outstanding'] == Decimal("885.0")
    assert payables['summary']['overdue_count'] == 1
    print("OK: 885 outstanding, 1 overdue")

    assert update_expense_status(boat_id, "approved"), "approve failed"
    assert update_expense_status(boat_id, "paid", payment_method="bank_transfer"), "pay failed"
    assert not update_expense_status(limo_id, "lost"), "unknown status accepted"

    payables = build_accounts_payable(load_expenses(), today, recent_payments=load_recent_payments())
    assert payables['summary']['total_outstanding'] == Decimal("85.0")
    recent = payables['recentPayments']
    assert len(recent) == 1 and recent[0]['payment_date'] == today.isoformat()
    print("OK: boat paid, 85 outstanding")

    # -------------------------------------------------------------------------
    # 5. Invoices + payments
    # -------------------------------------------------------------------------
    step("5. Deposit + final invoices")
    deposit_id = create_invoice_for_itinerary(trip_id, "deposit")
    assert deposit_id, "deposit invoice failed"
    deposit = load_invoice_by_id(deposit_id)
    assert deposit['subtotal'] == 200.0 and deposit['total_amount'] == 200.0, deposit
    assert deposit['invoice_number'] == f"INV-{today.year}-001", deposit['invoice_number']

    assert record_invoice_payment(deposit_id, 250) is None, "overpayment was accepted"
    assert record_invoice_payment(deposit_id, 0) is None, "zero payment was accepted"
    assert record_invoice_payment(deposit_id, 200), "deposit payment failed"
    deposit = load_invoice_by_id(deposit_id)
    assert deposit['status'] == "paid" and deposit['balance_due'] == 0.0, deposit
    print("OK: deposit 200 billed and paid")

    final_id = create_invoice_for_itinerary(trip_id, "final", tax_rate=10, discount_amount=80)
    assert final_id, "final invoice failed"
    final = load_invoice_by_id(final_id)
    assert final['subtotal'] == 1800.0
    assert final['tax_amount'] == 180.0
    assert final['total_amount'] == 1900.0
    assert final['balance_due'] == 1900.0

    payment_id = record_invoice_payment(final_id, 1000, payment_method="card")
    assert payment_id, "final payment failed"
    final = load_invoice_by_id(final_id)
    assert final['status'] == "partial" and final['balance_due'] == 900.0, final

    assert delete_invoice_payment(payment_id), "delete_invoice_payment failed"
    final = load_invoice_by_id(final_id)
    assert final['amount_paid'] == 0.0 and final['balance_due'] == 1900.0, final
    assert record_invoice_payment(final_id, 400), "payment after undo failed"
    assert len(load_invoice_payments(final_id)) == 1
    print("OK: final 1900 billed, 400 paid after an undone payment")

    receivables = build_accounts_receivable(load_invoices(), today)
    assert receivables['summary']['total_outstanding'] == Decimal("1500.0")
    assert receivables['summary']['overdue_count'] == 0

    # -------------------------------------------------------------------------
    # 6. Commission
    # -------------------------------------------------------------------------
    step("6. Commission")
    form = CommissionForm(base_amount=800, commission_rate=12.5)
    record = form.to_record()
    record.update({
        'itinerary_id': trip_id,
        'commission_type': "receivable",
        'category': "cruise",
        'source_name': "Nile Star Cruises",
    })
    assert create_commission(record), "create_commission failed"
    commissions = build_commissions(load_commissions())
    assert commissions['summary']['total_receivable'] == Decimal("100.0")
    assert commissions['summary']['pending_receivable'] == Decimal("100.0")
    print("OK: 12.5% of 800 = 100 receivable")

    # -------------------------------------------------------------------------
    # 7. Profit & loss + clean-up deletes
    # -------------------------------------------------------------------------
    step("7. Profit & loss")
    pnl = build_profit_loss(load_itineraries(), load_invoices(), load_expenses())
    trips = {int(t['itinerary_id']): t for t in unwrap(pnl)}
    nile = trips[trip_id]
    assert nile['total_revenue'] == Decimal("2100.0"), nile['total_revenue']
    assert nile['total_expenses'] == Decimal("885.0"), nile['total_expenses']
    assert nile['gross_profit'] == Decimal("1215.0"), nile['gross_profit']
    assert trips[clash_id]['gross_profit'] == Decimal("900.0")
    print(f"Trip profit: {nile['gross_profit']} ({float(nile['profit_margin']):.1f}%)")

    assert delete_rate(rate_id), "delete_rate failed"
    services = load_itinerary_services(trip_id)
    assert services['rate_id'].isna().all(), "service kept a deleted rate"
    assert delete_itinerary(clash_id), "delete_itinerary failed"
    assert len(load_itineraries()) == 1

    print(f"\nItineraries: {len(load_itineraries())}")
    print(f"Expenses: {len(load_expenses())}")
    print(f"Invoices: {len(load_invoices())}")
    print(f"Commissions: {len(load_commissions())}")

    print("\n" + "=" * 60)
    print("E2E PASSED: Book -> Price -> Pay -> Bill -> Report all OK")
    print("=" * 60)
    return 0


def test_e2e_flow():
    try:
        assert main() == 0
    finally:
        shutil.rmtree(TEST_DIR, ignore_errors=True)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except AssertionError as e:
        print(f"\nFAIL: {e}")
        sys.exit(1)
    except Exception:
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        # Clean up test DB
        shutil.rmtree(TEST_DIR, ignore_errors=True)
        print(f"Removed test DB folder: {TEST_DIR}")
