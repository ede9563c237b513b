# =============================================================================
# test_reports.py - Report builders
# =============================================================================
# Feeds hand-made rows (as they come back from the database) into the
# report builders and checks the payloads the pages read.
#
# Run:  python test_reports.py     (or: pytest test_reports.py)
# =============================================================================

import os
import sys
from datetime import date
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pandas as pd

from reports import (
    build_accounts_payable,
    build_accounts_receivable,
    build_calendar_view,
    build_commissions,
    build_profit_loss,
)
from config import RECEIVABLE_AGING_LABELS
from utils.aging import classify_past_due
from utils.envelope import unwrap

TODAY = date(2025, 3, 1)

EXPENSES = [
    # 10 days old, pending
    {'expense_id': 1, 'supplier_name': "Nile Star Cruises", 'supplier_type': "cruise",
     'category': "accommodation", 'amount': 4200.0, 'status': "pending",
     'expense_date': "2025-02-19", 'itinerary_id': 1},
    # 20 days old, approved
    {'expense_id': 2, 'supplier_name': "Nile Star Cruises", 'supplier_type': "cruise",
     'category': "accommodation", 'amount': 800.0, 'status': "approved",
     'expense_date': "2025-02-09", 'itinerary_id': 1},
    # 45 days old, pending
    {'expense_id': 3, 'supplier_name': "Cairo Limo", 'supplier_type': "transport",
     'category': "transportation", 'amount': 85.0, 'status': "pending",
     'expense_date': "2025-01-15", 'itinerary_id': 2},
    # 75 days old, no supplier name
    {'expense_id': 4, 'supplier_name': None, 'supplier_type': None,
     'category': None, 'amount': 40.0, 'status': "approved",
     'expense_date': "2024-12-16", 'itinerary_id': None},
    # Paid and rejected: not outstanding
    {'expense_id': 5, 'supplier_name': "Cairo Limo", 'supplier_type': "transport",
     'category': "transportation", 'amount': 120.0, 'status': "paid",
     'expense_date': "2025-02-01", 'itinerary_id': 2},
    {'expense_id': 6, 'supplier_name': "Luxor Guides", 'supplier_type': "guide",
     'category': "guide", 'amount': 300.0, 'status': "rejected",
     'expense_date': "2025-02-01", 'itinerary_id': 1},
]


# -----------------------------------------------------------------------------
# ACCOUNTS PAYABLE
# -----------------------------------------------------------------------------

def test_payables_groups_outstanding_by_supplier():
    report = build_accounts_payable(EXPENSES, TODAY)
    suppliers = unwrap(report)

    assert [s['supplier_name'] for s in suppliers] == ["Nile Star Cruises", "Cairo Limo", "Unknown Supplier"]
    nile = suppliers[0]
    assert nile['total_outstanding'] == Decimal("5000.0")
    assert nile['expense_count'] == 2
    assert nile['oldest_expense_date'] == "2025-02-09"
    assert nile['aging']['current'] == Decimal("4200.0")
    assert nile['aging']['days30'] == Decimal("800.0")

    summary = report['summary']
    assert summary['total_outstanding'] == Decimal("5125.0")
    assert summary['expense_count'] == 4
    assert summary['supplier_count'] == 3
    assert summary['pending_count'] == 2
    assert summary['pending_amount'] == Decimal("4285.0")
    assert summary['approved_amount'] == Decimal("840.0")
    assert summary['overdue_count'] == 3
    assert summary['overdue_amount'] == Decimal("925.0")
    assert sum(summary['aging'].values()) == summary['total_outstanding']


def test_payables_overdue_flags():
    rows = {e['expense_id']: e for e in build_accounts_payable(EXPENSES, TODAY)['expenses']}
    assert rows[1]['aging_bucket'] == "current" and not rows[1]['is_overdue']
    assert rows[2]['aging_bucket'] == "30" and rows[2]['is_overdue']
    assert rows[3]['aging_bucket'] == "60"
    assert rows[4]['aging_bucket'] == "90plus"


def test_payables_filters():
    only_old = build_accounts_payable(EXPENSES, TODAY, aging="90")
    assert [e['expense_id'] for e in only_old['expenses']] == [4]

    cruise = build_accounts_payable(EXPENSES, TODAY, supplier_type="cruise", status="approved")
    assert [e['expense_id'] for e in cruise['expenses']] == [2]


def test_payables_supplier_name_filter():
    nile = build_accounts_payable(EXPENSES, TODAY, supplier_name="nile")
    assert [e['expense_id'] for e in nile['expenses']] == [2, 1]
    assert [s['supplier_name'] for s in unwrap(nile)] == ["Nile Star Cruises"]

    limo = build_accounts_payable(EXPENSES, TODAY, supplier_name=" LIMO ")
    assert [e['expense_id'] for e in limo['expenses']] == [3]


def test_payables_breakdowns():
    report = build_accounts_payable(pd.DataFrame(EXPENSES), TODAY)
    assert report['categoryBreakdown'] == {
        'accommodation': Decimal("5000.0"),
        'transportation': Decimal("85.0"),
        'other': Decimal("40.0"),
    }
    assert report['supplierTypeBreakdown']['cruise'] == Decimal("5000.0")


def test_payables_empty():
    report = build_accounts_payable([], TODAY)
    assert unwrap(report) == []
    assert report['summary']['total_outstanding'] == 0
    assert report['categoryBreakdown'] == {}


# -----------------------------------------------------------------------------
# ACCOUNTS RECEIVABLE
# -----------------------------------------------------------------------------

INVOICES = [
    {'invoice_id': 1, 'itinerary_id': 1, 'client_name': "Smith", 'status': "partial",
     'total_amount': 1050.0, 'amount_paid': 300.0, 'balance_due': 750.0,
     'issue_date': "2025-01-01", 'due_date': "2025-01-15"},
    {'invoice_id': 2, 'itinerary_id': 1, 'client_name': "Smith", 'status': "sent",
     'total_amount': 200.0, 'amount_paid': 0.0, 'balance_due': 200.0,
     'issue_date': "2025-02-20", 'due_date': "2025-03-06"},
    {'invoice_id': 3, 'itinerary_id': 2, 'client_name': "Jones", 'status': "paid",
     'total_amount': 500.0, 'amount_paid': 500.0, 'balance_due': 0.0,
     'issue_date': "2025-01-05", 'due_date': "2025-01-19"},
    {'invoice_id': 4, 'itinerary_id': 2, 'client_name': "Jones", 'status': "cancelled",
     'total_amount': 900.0, 'amount_paid': 0.0, 'balance_due': 900.0,
     'issue_date': "2025-01-05", 'due_date': "2025-01-19"},
]


def test_receivables_open_invoices_only():
    report = build_accounts_receivable(INVOICES, TODAY)
    clients = unwrap(report)

    assert [c['client_name'] for c in clients] == ["Smith"]
    smith = clients[0]
    assert smith['total_outstanding'] == Decimal("950.0")
    assert smith['invoice_count'] == 2
    assert smith['oldest_invoice_date'] == "2025-01-01"

    # 45 days past due vs not yet due
    assert smith['aging']['days60'] == Decimal("750.0")
    assert smith['aging']['current'] == Decimal("200.0")

    summary = report['summary']
    assert summary['overdue_count'] == 1
    assert summary['overdue_amount'] == Decimal("750.0")


def test_receivables_aging_filter():
    report = build_accounts_receivable(INVOICES, TODAY, aging="current")
    assert [i['invoice_id'] for i in report['invoices']] == [2]


def test_receivables_labels_follow_days_past_due():
    # 9 days past due: overdue for a client, still 'current' for a supplier
    assert classify_past_due(TODAY, "2025-02-20") == "30"
    assert RECEIVABLE_AGING_LABELS["30"] == "1-30 Days"
    assert classify_past_due(TODAY, "2025-03-05") == "current"
    assert RECEIVABLE_AGING_LABELS["current"] == "Not yet due"


# -----------------------------------------------------------------------------
# COMMISSIONS
# -----------------------------------------------------------------------------

COMMISSIONS = [
    {'commission_id': 1, 'commission_type': "receivable", 'category': "hotel",
     'commission_amount': 120.0, 'status': "pending"},
    {'commission_id': 2, 'commission_type': "receivable", 'category': "cruise",
     'commission_amount': 300.0, 'status': "received"},
    {'commission_id': 3, 'commission_type': "receivable", 'category': "hotel",
     'commission_amount': 80.0, 'status': "invoiced"},
    {'commission_id': 4, 'commission_type': "payable", 'category': "partner",
     'commission_amount': 150.0, 'status': "pending"},
    {'commission_id': 5, 'commission_type': "payable", 'category': None,
     'commission_amount': 50.0, 'status': "paid"},
]


def test_commission_summary():
    report = build_commissions(COMMISSIONS)
    summary = report['summary']

    assert len(unwrap(report)) == 5
    assert summary['total_receivable'] == Decimal("500.0")
    assert summary['total_payable'] == Decimal("200.0")
    assert summary['pending_receivable'] == Decimal("200.0")
    assert summary['pending_payable'] == Decimal("150.0")
    assert summary['received'] == Decimal("300.0")
    assert summary['paid'] == Decimal("50.0")
    assert summary['net_commission'] == Decimal("300.0")

    hotel = summary['by_category']['hotel']
    assert hotel == {'receivable': Decimal("200.0"), 'payable': Decimal("0"), 'count': 2}
    assert summary['by_category']['other']['payable'] == Decimal("50.0")


def test_commission_filters():
    report = build_commissions(pd.DataFrame(COMMISSIONS), commission_type="receivable", category="hotel")
    assert [c['commission_id'] for c in unwrap(report)] == [1, 3]
    assert report['summary']['total_payable'] == 0

    assert unwrap(build_commissions(COMMISSIONS, status="cancelled")) == []


# -----------------------------------------------------------------------------
# PROFIT & LOSS
# -----------------------------------------------------------------------------

ITINERARIES = [
    {'itinerary_id': 1, 'itinerary_code': "ITN-2025-001", 'client_name': "Smith",
     'start_date': "2025-03-10", 'end_date': "2025-03-17", 'status': "confirmed",
     'total_cost': 6000.0, 'currency': "EUR"},
    {'itinerary_id': 2, 'itinerary_code': "ITN-2025-002", 'client_name': "Jones",
     'start_date': "2025-01-20", 'end_date': "2025-01-25", 'status': "completed",
     'total_cost': 1500.0, 'currency': "EUR"},
    {'itinerary_id': 3, 'itinerary_code': "ITN-2025-003", 'client_name': "Brown",
     'start_date': "2025-05-01", 'end_date': "2025-05-03", 'status': "quoted",
     'total_cost': 900.0, 'currency': "EUR"},
]


def test_profit_per_trip():
    report = build_profit_loss(ITINERARIES, INVOICES, EXPENSES)
    trips = {t['itinerary_id']: t for t in unwrap(report)}

    smith = trips[1]
    assert smith['total_revenue'] == Decimal("1250.0")
    assert smith['total_expenses'] == Decimal("5000.0")
    assert smith['expenses_pending'] == Decimal("5000.0")
    assert smith['gross_profit'] == Decimal("-3750.0")
    # Rejected bill left out
    assert smith['expense_count'] == 2

    # Cancelled invoice left out
    jones = trips[2]
    assert jones['total_revenue'] == Decimal("500.0")
    assert jones['expenses_paid'] == Decimal("120.0")
    assert jones['gross_profit'] == Decimal("295.0")
    assert jones['profit_margin'] == Decimal("59")

    # Nothing invoiced: falls back to the quote
    brown = trips[3]
    assert brown['total_revenue'] == 0
    assert brown['gross_profit'] == Decimal("900.0")
    assert brown['profit_margin'] == Decimal("100")

    summary = report['summary']
    assert summary['total_trips'] == 3
    assert summary['total_revenue'] == Decimal("2650.0")
    assert summary['profitable_trips'] == 2
    assert summary['loss_trips'] == 1


def test_profit_filters():
    report = build_profit_loss(ITINERARIES, INVOICES, EXPENSES, start_date="2025-02-01", end_date="2025-04-30")
    assert [t['itinerary_id'] for t in unwrap(report)] == [1]

    report = build_profit_loss(ITINERARIES, INVOICES, EXPENSES, status="completed")
    assert [t['itinerary_id'] for t in unwrap(report)] == [2]

    empty = build_profit_loss([], [], [])
    assert unwrap(empty) == []
    assert empty['summary']['average_margin'] == 0


# -----------------------------------------------------------------------------
# CALENDAR
# -----------------------------------------------------------------------------

BOOKINGS = [
    {'itinerary_id': 1, 'itinerary_code': "ITN-1", 'client_name': "Smith",
     'start_date': "2024-06-01", 'end_date': "2024-06-05", 'payment_status': "paid",
     'assigned_guide_id': "g1", 'assigned_vehicle_id': "v1", 'num_travelers': 2, 'total_cost': 2000.0},
    {'itinerary_id': 2, 'itinerary_code': "ITN-2", 'client_name': "Jones",
     'start_date': "2024-06-04", 'end_date': "2024-06-08", 'payment_status': "not_paid",
     'assigned_guide_id': "g1", 'assigned_vehicle_id': "v2", 'num_travelers': 4, 'total_cost': 3000.0},
    {'itinerary_id': 3, 'itinerary_code': "ITN-3", 'client_name': "Brown",
     'start_date': "2024-06-10", 'end_date': "2024-06-12", 'payment_status': "completed",
     'assigned_guide_id': None, 'assigned_vehicle_id': "v2", 'num_travelers': None, 'total_cost': 900.0},
    # Broken dates: dropped before anything else
    {'itinerary_id': 4, 'itinerary_code': "ITN-4", 'client_name': "Broken",
     'start_date': "2024-06-09", 'end_date': "2024-06-01", 'payment_status': "paid"},
]


def test_calendar_conflicts_and_stats():
    report = build_calendar_view(BOOKINGS, today="2024-06-03")
    bookings = unwrap(report)

    assert [b['itinerary_id'] for b in bookings] == [1, 2, 3]
    assert report['conflicts'] == {1, 2}
    assert report['conflictPairs'] == [(1, 2)]
    assert report['guideConflicts'] == {"g1": {1, 2}}
    assert report['vehicleConflicts'] == {}
    assert [b['has_conflict'] for b in bookings] == [True, True, False]

    stats = report['stats']
    assert stats['total_bookings'] == 3
    assert stats['total_revenue'] == Decimal("5900.0")
    assert stats['total_travelers'] == 6
    assert stats['upcoming_bookings'] == 2
    assert stats['conflict_count'] == 2


def test_calendar_filters_keep_hidden_conflicts():
    report = build_calendar_view(BOOKINGS, filters={'search': "jones"}, today="2024-06-01")
    bookings = unwrap(report)
    assert [b['itinerary_id'] for b in bookings] == [2]
    assert bookings[0]['has_conflict']
    assert report['stats']['conflict_count'] == 2


def test_calendar_filter_options():
    view = lambda f: [b['itinerary_id'] for b in unwrap(build_calendar_view(BOOKINGS, filters=f))]
    assert view({'payment_status': ["paid", "completed"]}) == [1, 3]
    assert view({'guide_id': "g1"}) == [1, 2]
    assert view({'vehicle_id': "v2"}) == [2, 3]
    assert view({'date_from': "2024-06-04"}) == [2, 3]
    assert view({'date_to': "2024-06-08"}) == [1, 2]
    assert view({'conflicts_only': True}) == [1, 2]
    assert view({'hide_completed': True}) == [1, 2]


def main():
    tests = [(name, fn) for name, fn in globals().items() if name.startswith("test_") and callable(fn)]
    for name, fn in tests:
        fn()
        print(f"OK: {name}")
    print(f"\n{len(tests)} report checks passed")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except AssertionError as e:
        print(f"\nFAIL: {e}")
        sys.exit(1)
