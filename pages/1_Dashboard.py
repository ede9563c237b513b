# =============================================================================
# pages/1_Dashboard.py
# =============================================================================
# PURPOSE:
#   The landing page. Answers "what's happening and what needs me?" at a
#   glance for the operations team.
#
# WHAT IT SHOWS:
#   - Quick stats (trips, upcoming departures, receivables, payables)
#   - Invoice status overview (with overdue derived at display time)
#   - Action required: double bookings, overdue invoices, old payables
#   - Departures in the next 14 days
# =============================================================================

from datetime import date, timedelta

import streamlit as st
from config import PAGE_ICON, AGING_BUCKET_LABELS, AGING_BUCKET_FIELDS
from database import (
    init_db,
    load_itineraries,
    load_invoices,
    load_invoice_payments,
    load_expenses,
    load_commissions,
)
from reports import build_accounts_payable, build_accounts_receivable, build_calendar_view, build_commissions
from utils import calculate_invoice_status, format_money, unwrap, ResponseShapeError
from utils.styling import apply_minimal_style

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Dashboard - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()

# Creates tables if they don't exist; safe on every run.
init_db()

# -----------------------------------------------------------------------------
# PAGE HEADER
# -----------------------------------------------------------------------------
st.title("Dashboard")
st.caption("Bookings, money in and money out at a glance")

# -----------------------------------------------------------------------------
# LOAD ALL DATA
# -----------------------------------------------------------------------------
today = date.today()

itineraries_df = load_itineraries()
invoices_df = load_invoices()
payments_df = load_invoice_payments()
expenses_df = load_expenses()
commissions_df = load_commissions()

calendar = build_calendar_view(itineraries_df, today=today)
payables = build_accounts_payable(expenses_df, today)
receivables = build_accounts_receivable(invoices_df, today)
commissions = build_commissions(commissions_df)

try:
    upcoming = unwrap(calendar)
    unwrap(payables)
    unwrap(receivables)
    unwrap(commissions)
except ResponseShapeError as e:
    st.warning(f"Some dashboard figures could not be loaded: {e}")
    st.stop()

# -----------------------------------------------------------------------------
# QUICK STATS ROW
# -----------------------------------------------------------------------------
st.write("### Quick Stats")

col1, col2, col3, col4, col5 = st.columns(5)

with col1:
    st.metric(
        label="🧳 Trips",
        value=len(itineraries_df),
        help="All itineraries in the system"
    )

with col2:
    st.metric(
        label="🛫 Upcoming",
        value=calendar['stats']['upcoming_bookings'],
        help="Trips starting today or later"
    )

with col3:
    st.metric(
        label="📥 Receivable",
        value=format_money(receivables['summary']['total_outstanding']),
        help="Open balance on client invoices"
    )

with col4:
    st.metric(
        label="📤 Payable",
        value=format_money(payables['summary']['total_outstanding']),
        help="Pending and approved supplier expenses"
    )

with col5:
    st.metric(
        label="💼 Net Commission",
        value=format_money(commissions['summary']['net_commission']),
        help="Receivable minus payable commissions"
    )

# -----------------------------------------------------------------------------
# INVOICE STATUS OVERVIEW
# -----------------------------------------------------------------------------
if len(invoices_df) > 0:
    st.write("---")
    st.write("### Invoice Status")

    status_df = calculate_invoice_status(invoices_df, payments_df, today)
    status_counts = status_df['display_status'].value_counts()

    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric("📝 Draft", status_counts.get('draft', 0))
    with col2:
        st.metric("📨 Sent", status_counts.get('sent', 0))
    with col3:
        st.metric("🟡 Partial", status_counts.get('partial', 0))
    with col4:
        paid = status_counts.get('paid', 0)
        st.metric("✅ Paid", paid, delta=f"+{paid}" if paid > 0 else None)
    with col5:
        overdue = status_counts.get('overdue', 0)
        st.metric(
            "⏰ Overdue",
            overdue,
            delta=f"-{overdue}" if overdue > 0 else None,
            delta_color="inverse"
        )

    billable = len(status_df[status_df['display_status'] != 'cancelled'])
    if billable > 0:
        paid_pct = status_counts.get('paid', 0) / billable
        st.caption(f"Overall: {paid_pct*100:.0f}% of invoices fully paid")
        st.progress(paid_pct)

# -----------------------------------------------------------------------------
# PAYABLES AGING
# -----------------------------------------------------------------------------
if payables['summary']['expense_count'] > 0:
    st.write("---")
    st.write("### Payables Aging")

    aging = payables['summary']['aging']
    cols = st.columns(len(AGING_BUCKET_FIELDS))
    for col, (bucket, field) in zip(cols, AGING_BUCKET_FIELDS.items()):
        with col:
            st.metric(AGING_BUCKET_LABELS[bucket], format_money(aging[field]))

# -----------------------------------------------------------------------------
# ACTION REQUIRED
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Action Required")

actions_needed = []

conflict_count = calendar['stats']['conflict_count']
if conflict_count > 0:
    actions_needed.append(f"{conflict_count} bookings overlap another booking (check the Calendar)")

for resource, clashes in (('guide', calendar['guideConflicts']), ('vehicle', calendar['vehicleConflicts'])):
    if clashes:
        actions_needed.append(f"{len(clashes)} {resource}(s) double-booked")

if receivables['summary']['overdue_count'] > 0:
    actions_needed.append(
        f"{receivables['summary']['overdue_count']} invoices overdue "
        f"({format_money(receivables['summary']['overdue_amount'])} outstanding)"
    )

if payables['summary']['overdue_count'] > 0:
    actions_needed.append(
        f"{payables['summary']['overdue_count']} supplier expenses older than 14 days "
        f"({format_money(payables['summary']['overdue_amount'])})"
    )

if payables['summary']['pending_count'] > 0:
    actions_needed.append(f"{payables['summary']['pending_count']} expenses waiting for approval")

if actions_needed:
    for action in actions_needed:
        st.warning(action)
elif len(itineraries_df) > 0:
    st.success("All caught up! No immediate actions needed.")
else:
    st.info("No trips yet. Add bookings on the Calendar page or import data on the Import page.")

# -----------------------------------------------------------------------------
# NEXT DEPARTURES
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Next 14 Days")

horizon = today + timedelta(days=14)
departing = [
    b for b in upcoming
    if today.isoformat() <= str(b.get('start_date'))[:10] <= horizon.isoformat()
]

if departing:
    for booking in departing:
        with st.container():
            flag = " ⚠️ conflict" if booking.get('has_conflict') else ""
            st.write(
                f"**{booking.get('itinerary_code')}** {booking.get('client_name')} | "
                f"{booking.get('start_date')} → {booking.get('end_date')}{flag}"
            )
            st.caption(
                f"Guide: {booking.get('guide_name') or 'Unassigned'} | "
                f"Vehicle: {booking.get('vehicle_name') or 'Unassigned'}"
            )
else:
    st.info("No departures in the next two weeks.")

# -----------------------------------------------------------------------------
# QUICK NAVIGATION
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Quick Actions")

col1, col2, col3, col4 = st.columns(4)

with col1:
    if st.button("Open Calendar", use_container_width=True):
        st.switch_page("pages/2_Calendar.py")

with col2:
    if st.button("Invoices", use_container_width=True):
        st.switch_page("pages/3_Invoices.py")

with col3:
    if st.button("Pay Suppliers", use_container_width=True):
        st.switch_page("pages/4_Accounts_Payable.py")

with col4:
    if st.button("Import Data", use_container_width=True):
        st.switch_page("pages/8_Import.py")
