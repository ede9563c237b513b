# =============================================================================
# utils/aging.py
# =============================================================================
# PURPOSE:
#   Puts money owed into AGE BUCKETS so finance can see what is getting old.
#
#   Payables (supplier expenses) age from the expense date:
#       0-14 days  → 'current'
#       15-30      → '30'
#       31-60      → '60'
#       61+        → '90plus'   (labelled "90+ Days", see config)
#
#   Receivables (client invoices) age from the DUE date, so only days PAST
#   due count:
#       not yet due → 'current'
#       1-30        → '30'
#       31-60       → '60'
#       61+         → '90plus'
# =============================================================================

from datetime import date

from config import (
    AGING_30_MAX_DAYS,
    AGING_60_MAX_DAYS,
    AGING_BUCKET_FIELDS,
    AGING_CURRENT_MAX_DAYS,
)
from .calculations import to_date, to_decimal


def days_outstanding(reference_date, transaction_date):
    """
    Whole days between the transaction and the reference date.

    Future-dated transactions give 0, not a negative number.
    Unparseable dates also give 0.
    """
    ref = to_date(reference_date) or date.today()
    txn = to_date(transaction_date)
    if txn is None:
        return 0
    return max((ref - txn).days, 0)


def bucket_for_days(days, current_max=AGING_CURRENT_MAX_DAYS):
    """Bucket name for an age in days."""
    if days <= current_max:
        return "current"
    elif days <= AGING_30_MAX_DAYS:
        return "30"
    elif days <= AGING_60_MAX_DAYS:
        return "60"
    else:
        return "90plus"


def classify(reference_date, transaction_date):
    """
    Payables bucket for a transaction.

    EXAMPLE (reference 2025-03-01):
        classify("2025-03-01", "2025-02-15") → 'current'   (14 days)
        classify("2025-03-01", "2025-02-14") → '30'        (15 days)
        classify("2025-03-01", "2024-12-30") → '90plus'    (61 days)
    """
    return bucket_for_days(days_outstanding(reference_date, transaction_date))


def is_overdue(days):
    """A payable is overdue once it is older than 14 days."""
    return days > AGING_CURRENT_MAX_DAYS


def days_past_due(reference_date, due_date):
    """Days since the due date (0 when not yet due or no due date)."""
    return days_outstanding(reference_date, due_date)


def classify_past_due(reference_date, due_date):
    """Receivables bucket: anything not past due is 'current'."""
    return bucket_for_days(days_past_due(reference_date, due_date), current_max=0)


def empty_buckets():
    """A zeroed AgingBucket."""
    return {field: to_decimal(0) for field in AGING_BUCKET_FIELDS.values()}


def bucket_totals(records, reference_date, date_key, amount_key, classifier=classify):
    """
    Partition amounts into an AgingBucket.

    PARAMETERS:
        records: iterable of dicts
        reference_date: "today" for the report
        date_key: which field holds the date to age from
        amount_key: which field holds the amount
        classifier: classify (payables) or classify_past_due (receivables)

    RETURNS:
        dict: {current, days30, days60, days90Plus} as Decimals.
              The four buckets always add up to the total of the amounts.
    """
    buckets = empty_buckets()
    for record in records:
        bucket = classifier(reference_date, record.get(date_key))
        buckets[AGING_BUCKET_FIELDS[bucket]] += to_decimal(record.get(amount_key))
    return buckets
