# =============================================================================
# utils/aggregation.py
# =============================================================================
# PURPOSE:
#   Group-and-sum helpers for the breakdown charts (by category, by supplier
#   type, by commission category...).
#
#   Totals are accumulated as Decimal. Rounding only happens when a value is
#   shown.
# =============================================================================

from decimal import Decimal, ROUND_HALF_UP

from .calculations import to_decimal

OTHER_GROUP = "other"


def as_records(records):
    # Accept a DataFrame as well as a list of dicts
    if hasattr(records, 'to_dict'):
        return records.to_dict('records')
    return list(records)


def group_value(value, default=OTHER_GROUP):
    """The value itself, or `default` for None / NaN / blank text."""
    if value is None:
        return default
    if isinstance(value, float) and value != value:
        return default
    if isinstance(value, str) and value.strip() == "":
        return default
    return value


def aggregate(records, group_key, amount_key):
    """
    Sum `amount_key` per value of `group_key`.

    - Missing/empty group → 'other'
    - Null or non-numeric amount → counts as 0

    EXAMPLE:
        aggregate([
            {"category": "hotel", "amount": 100},
            {"category": "hotel", "amount": 50},
            {"category": None, "amount": 20},
        ], "category", "amount")
        → {"hotel": Decimal('150'), "other": Decimal('20')}
    """
    totals = {}
    for record in as_records(records):
        group = group_value(record.get(group_key))
        totals[group] = totals.get(group, Decimal("0")) + to_decimal(record.get(amount_key))
    return totals


def total(records, amount_key):
    """Sum of one amount field across all records."""
    return sum((to_decimal(r.get(amount_key)) for r in as_records(records)), Decimal("0"))


def count(records):
    return len(as_records(records))


def percentage_of_total(amount, grand_total):
    """
    Share of the grand total as a percentage (Decimal).

    Returns 0 when the grand total is 0, never a division error.
    """
    grand_total = to_decimal(grand_total)
    if grand_total == 0:
        return Decimal("0")
    return to_decimal(amount) * Decimal(100) / grand_total


def percentage_label(amount, grand_total):
    """Percentage rounded to a whole number, e.g. '67%'."""
    pct = percentage_of_total(amount, grand_total).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{pct}%"
