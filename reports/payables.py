"""
Accounts payable report.

Groups OUTSTANDING supplier expenses (pending or approved) by supplier, ages
them from the expense date and builds the summary cards and breakdown bars
for the Accounts Payable page.
"""

from decimal import Decimal

from config import OUTSTANDING_EXPENSE_STATUSES
from utils.aggregation import aggregate, as_records, group_value, total
from utils.aging import bucket_totals, classify, days_outstanding, is_overdue
from utils.calculations import to_date, to_decimal
from utils.envelope import ok

UNKNOWN_SUPPLIER = "Unknown Supplier"

# '90' is what the page's filter sends; '90plus' is the bucket name
AGING_FILTER_ALIASES = {"90": "90plus"}


def _with_aging(expense, reference_date):
    days = days_outstanding(reference_date, expense.get('expense_date'))
    row = dict(expense)
    row['days_outstanding'] = days
    row['aging_bucket'] = classify(reference_date, expense.get('expense_date'))
    row['is_overdue'] = is_overdue(days)
    return row


def _oldest(dates):
    parsed = [d for d in (to_date(x) for x in dates) if d is not None]
    return min(parsed).isoformat() if parsed else None


def group_by_supplier(expenses, reference_date):
    """
    One SupplierPayable per supplier, largest outstanding first.

    RETURNS:
        list of dict: supplier_name, supplier_type, total_expenses,
        total_paid, total_outstanding, expense_count, oldest_expense_date,
        aging {current, days30, days60, days90Plus}, expenses
    """
    groups = {}
    for expense in expenses:
        name = group_value(expense.get('supplier_name'), UNKNOWN_SUPPLIER)
        groups.setdefault(name, []).append(expense)

    suppliers = []
    for name, rows in groups.items():
        outstanding = total(rows, 'amount')
        suppliers.append({
            'supplier_name': name,
            'supplier_type': group_value(rows[0].get('supplier_type')),
            'total_expenses': outstanding,
            'total_paid': Decimal("0"),
            'total_outstanding': outstanding,
            'expense_count': len(rows),
            'oldest_expense_date': _oldest(r.get('expense_date') for r in rows),
            'aging': bucket_totals(rows, reference_date, 'expense_date', 'amount'),
            'expenses': rows,
        })

    suppliers.sort(key=lambda s: s['total_outstanding'], reverse=True)
    return suppliers


def _status_totals(expenses, predicate):
    matching = [e for e in expenses if predicate(e)]
    return len(matching), total(matching, 'amount')


def build_accounts_payable(expenses, reference_date, aging=None, supplier_type=None,
                           status=None, recent_payments=(), supplier_name=None):
    """
    Build the accounts payable payload.

    PARAMETERS:
        expenses: all expenses (list of dicts or DataFrame). Only pending and
                  approved ones are used.
        reference_date: the date to age from (usually today)
        aging: 'current' | '30' | '60' | '90plus' (or '90')
        supplier_type: only one supplier type
        status: 'pending' or 'approved'
        recent_payments: paid expenses for the history table
        supplier_name: case-insensitive substring of the supplier name

    RETURNS:
        dict: {success, data: SupplierPayable[], expenses, recentPayments,
               summary, categoryBreakdown, supplierTypeBreakdown}
    """
    rows = [
        e for e in as_records(expenses)
        if e.get('status') in OUTSTANDING_EXPENSE_STATUSES
    ]
    if supplier_type:
        rows = [e for e in rows if e.get('supplier_type') == supplier_type]
    if status:
        rows = [e for e in rows if e.get('status') == status]
    if supplier_name:
        needle = supplier_name.strip().lower()
        rows = [e for e in rows if needle in str(e.get('supplier_name') or "").lower()]

    rows = [_with_aging(e, reference_date) for e in rows]
    rows.sort(key=lambda e: (to_date(e.get('expense_date')) is None, str(e.get('expense_date'))))

    if aging:
        bucket = AGING_FILTER_ALIASES.get(aging, aging)
        rows = [e for e in rows if e['aging_bucket'] == bucket]

    suppliers = group_by_supplier(rows, reference_date)

    pending_count, pending_amount = _status_totals(rows, lambda e: e.get('status') == "pending")
    approved_count, approved_amount = _status_totals(rows, lambda e: e.get('status') == "approved")
    overdue_count, overdue_amount = _status_totals(rows, lambda e: e['is_overdue'])

    aging_summary = bucket_totals(rows, reference_date, 'expense_date', 'amount')

    summary = {
        'total_outstanding': sum((s['total_outstanding'] for s in suppliers), to_decimal(0)),
        'supplier_count': len(suppliers),
        'expense_count': len(rows),
        'aging': aging_summary,
        'pending_count': pending_count,
        'pending_amount': pending_amount,
        'approved_count': approved_count,
        'approved_amount': approved_amount,
        'overdue_count': overdue_count,
        'overdue_amount': overdue_amount,
    }

    return ok(
        suppliers,
        expenses=rows,
        recentPayments=as_records(recent_payments),
        summary=summary,
        categoryBreakdown=aggregate(rows, 'category', 'amount'),
        supplierTypeBreakdown=aggregate(rows, 'supplier_type', 'amount'),
    )
