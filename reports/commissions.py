"""
Commissions report.

Receivable = commission a supplier owes us. Payable = commission we owe a
partner. The summary nets one against the other.
"""

from decimal import Decimal

from config import PENDING_RECEIVABLE_STATUSES
from utils.aggregation import as_records, group_value, total
from utils.envelope import ok


def _by_category(rows):
    result = {}
    for row in rows:
        category = group_value(row.get('category'))
        entry = result.setdefault(
            category, {'receivable': Decimal("0"), 'payable': Decimal("0"), 'count': 0}
        )
        entry['count'] += 1
        if row.get('commission_type') == "receivable":
            entry['receivable'] += total([row], 'commission_amount')
        elif row.get('commission_type') == "payable":
            entry['payable'] += total([row], 'commission_amount')
    return result


def summarize_commissions(rows):
    """
    Summary cards for a list of commissions.

    RETURNS:
        dict: total_receivable, total_payable, pending_receivable,
              pending_payable, received, paid, net_commission, by_category
    """
    receivable = [r for r in rows if r.get('commission_type') == "receivable"]
    payable = [r for r in rows if r.get('commission_type') == "payable"]

    total_receivable = total(receivable, 'commission_amount')
    total_payable = total(payable, 'commission_amount')

    return {
        'total_receivable': total_receivable,
        'total_payable': total_payable,
        'pending_receivable': total(
            [r for r in receivable if r.get('status') in PENDING_RECEIVABLE_STATUSES],
            'commission_amount'
        ),
        'pending_payable': total(
            [r for r in payable if r.get('status') == "pending"], 'commission_amount'
        ),
        'received': total(
            [r for r in receivable if r.get('status') == "received"], 'commission_amount'
        ),
        'paid': total(
            [r for r in payable if r.get('status') == "paid"], 'commission_amount'
        ),
        'net_commission': total_receivable - total_payable,
        'by_category': _by_category(rows),
    }


def build_commissions(commissions, commission_type=None, category=None, status=None):
    """
    Build the commissions payload.

    RETURNS:
        dict: {success, data: Commission[], summary}
    """
    rows = as_records(commissions)
    if commission_type:
        rows = [r for r in rows if r.get('commission_type') == commission_type]
    if category:
        rows = [r for r in rows if r.get('category') == category]
    if status:
        rows = [r for r in rows if r.get('status') == status]

    return ok(rows, summary=summarize_commissions(rows))
