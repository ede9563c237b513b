"""
Accounts receivable report.

Open client invoices (balance due > 0, not cancelled) grouped by client and
aged by days PAST the due date.
"""

from utils.aggregation import as_records, group_value, total
from utils.aging import bucket_totals, classify_past_due, days_past_due
from utils.calculations import to_date, to_decimal
from utils.envelope import ok

AGING_FILTER_ALIASES = {"90": "90plus"}


def _is_open(invoice):
    return invoice.get('status') != "cancelled" and to_decimal(invoice.get('balance_due')) > 0


def build_accounts_receivable(invoices, reference_date, aging=None):
    """
    Build the accounts receivable payload.

    RETURNS:
        dict: {success, data: ClientReceivable[], invoices, summary}
    """
    rows = []
    for invoice in as_records(invoices):
        if not _is_open(invoice):
            continue
        row = dict(invoice)
        row['days_past_due'] = days_past_due(reference_date, invoice.get('due_date'))
        row['aging_bucket'] = classify_past_due(reference_date, invoice.get('due_date'))
        row['is_overdue'] = row['days_past_due'] > 0
        rows.append(row)

    if aging:
        bucket = AGING_FILTER_ALIASES.get(aging, aging)
        rows = [r for r in rows if r['aging_bucket'] == bucket]

    groups = {}
    for row in rows:
        client = group_value(row.get('client_name'), "Unknown Client")
        groups.setdefault(client, []).append(row)

    clients = []
    for name, client_rows in groups.items():
        issue_dates = [d for d in (to_date(r.get('issue_date')) for r in client_rows) if d]
        clients.append({
            'client_name': name,
            'client_email': client_rows[0].get('client_email'),
            'total_invoiced': total(client_rows, 'total_amount'),
            'total_paid': total(client_rows, 'amount_paid'),
            'total_outstanding': total(client_rows, 'balance_due'),
            'invoice_count': len(client_rows),
            'oldest_invoice_date': min(issue_dates).isoformat() if issue_dates else None,
            'aging': bucket_totals(client_rows, reference_date, 'due_date', 'balance_due',
                                   classifier=classify_past_due),
            'invoices': client_rows,
        })
    clients.sort(key=lambda c: c['total_outstanding'], reverse=True)

    overdue = [r for r in rows if r['is_overdue']]
    summary = {
        'total_outstanding': total(rows, 'balance_due'),
        'total_invoiced': total(rows, 'total_amount'),
        'total_paid': total(rows, 'amount_paid'),
        'client_count': len(clients),
        'invoice_count': len(rows),
        'aging': bucket_totals(rows, reference_date, 'due_date', 'balance_due',
                               classifier=classify_past_due),
        'overdue_count': len(overdue),
        'overdue_amount': total(overdue, 'balance_due'),
    }

    return ok(clients, invoices=rows, summary=summary)
