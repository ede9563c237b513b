# =============================================================================
# utils/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the utils folder a Python package and provides easy imports.
#
# WHAT LIVES HERE:
#   - calculations: commissions, deposits, invoice totals, statuses
#   - conflicts: double-booking detection and rescheduling
#   - aging: payables/receivables age buckets
#   - aggregation: group-and-sum for breakdowns
#   - formatting: money display, calendar CSV export
#   - envelope / request_guard: report payload checks, stale result guard
#
#   Page-only helpers (styling, sidebar_nav) import streamlit and are
#   imported directly by the pages, not from here.
# =============================================================================

from .calculations import (
    to_decimal,
    to_date,
    round2,
    commission_amount,
    CommissionForm,
    deposit_amount,
    final_balance_amount,
    invoice_line_amount,
    invoice_totals,
    effective_service_cost,
    itinerary_total,
    calculate_payment_status,
    status_after_payment,
    display_status,
    calculate_invoice_status,
)

from .conflicts import (
    RescheduleError,
    detect_conflicts,
    conflict_pairs,
    resource_conflicts,
    bookings_on_date,
    reschedule,
)

from .aging import (
    days_outstanding,
    classify,
    is_overdue,
    days_past_due,
    classify_past_due,
    bucket_totals,
)

from .aggregation import (
    as_records,
    group_value,
    aggregate,
    total,
    count,
    percentage_of_total,
    percentage_label,
)

from .formatting import currency_symbol, format_money, bookings_to_csv

from .envelope import ResponseShapeError, ok, unwrap

from .request_guard import RequestGuard
