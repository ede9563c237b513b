# =============================================================================
# pages/6_Profit_Loss.py
# =============================================================================
# PURPOSE:
#   Did each trip make money? Revenue (invoiced, or the quote when nothing
#   is invoiced yet) minus the supplier expenses booked against the trip.
#
# FEATURES:
#   - Filters: trip status, start date range
#   - Summary: revenue, expenses, profit, average margin, winners/losers
#   - Per-trip table and an expense breakdown for a chosen trip
# =============================================================================

import streamlit as st
import pandas as pd
from config import PAGE_ICON, ITINERARY_STATUSES
from database import init_db, load_itineraries, load_invoices, load_expenses
from reports import build_profit_loss
from utils import ResponseShapeError, format_money, percentage_label, unwrap
from utils.styling import apply_minimal_style

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Profit & Loss - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

st.title("Profit & Loss")
st.caption("Margin per trip")

# -----------------------------------------------------------------------------
# FILTERS
# -----------------------------------------------------------------------------
col1, col2, col3 = st.columns(3)
with col1:
    status_filter = st.selectbox("Trip status", options=[None] + ITINERARY_STATUSES,
                                 format_func=lambda s: "All" if s is None else s.title())
with col2:
    start_date = st.date_input("Trips starting from", value=None)
with col3:
    end_date = st.date_input("Trips starting until", value=None)

report = build_profit_loss(
    load_itineraries(),
    load_invoices(),
    load_expenses(),
    status=status_filter,
    start_date=start_date,
    end_date=end_date,
)

try:
    trips = unwrap(report)
except ResponseShapeError as e:
    st.warning(f"Could not load profit & loss: {e}")
    st.stop()

if not trips:
    st.info("No trips for these filters.")
    st.stop()

# -----------------------------------------------------------------------------
# SUMMARY
# -----------------------------------------------------------------------------
summary = report['summary']

st.write("---")
col1, col2, col3, col4, col5 = st.columns(5)
with col1:
    st.metric("Revenue", format_money(summary['total_revenue']))
with col2:
    st.metric("Expenses", format_money(summary['total_expenses']))
with col3:
    st.metric("Profit", format_money(summary['total_profit']),
              delta=percentage_label(summary['total_profit'], summary['total_revenue']))
with col4:
    st.metric("Average margin", f"{float(summary['average_margin']):.1f}%")
with col5:
    st.metric("Trips", summary['total_trips'],
              help=f"{summary['profitable_trips']} profitable, {summary['loss_trips']} at a loss")

# -----------------------------------------------------------------------------
# PER TRIP
# -----------------------------------------------------------------------------
st.write("### 🧳 Trips")

table = pd.DataFrame([
    {
        'code': t['itinerary_code'],
        'client': t['client_name'],
        'start': t['start_date'],
        'status': t['status'],
        'quoted': float(t['quoted_amount']),
        'invoiced': float(t['total_revenue']),
        'received': float(t['total_paid']),
        'expenses': float(t['total_expenses']),
        'pending expenses': float(t['expenses_pending']),
        'profit': float(t['gross_profit']),
        'margin %': round(float(t['profit_margin']), 1),
    }
    for t in trips
])
st.dataframe(table, use_container_width=True, hide_index=True)

st.bar_chart(table.set_index('code')[['profit']])

# -----------------------------------------------------------------------------
# TRIP DETAIL
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 🔍 Trip detail")

trip_options = {t['itinerary_id']: f"{t['itinerary_code']} | {t['client_name']}" for t in trips}
selected = st.selectbox("Trip", options=list(trip_options.keys()), format_func=lambda x: trip_options[x])
trip = next(t for t in trips if t['itinerary_id'] == selected)

col1, col2 = st.columns(2)
with col1:
    st.write(f"**Revenue:** {format_money(trip['total_revenue'] or trip['quoted_amount'], trip['currency'])}"
             + ("" if trip['invoice_count'] else " (quoted, nothing invoiced yet)"))
    st.write(f"**Expenses:** {format_money(trip['total_expenses'], trip['currency'])} "
             f"(paid {format_money(trip['expenses_paid'], trip['currency'])})")
    st.write(f"**Profit:** {format_money(trip['gross_profit'], trip['currency'])} "
             f"({float(trip['profit_margin']):.1f}%)")
with col2:
    if trip['expense_breakdown']:
        for category, amount in sorted(trip['expense_breakdown'].items(), key=lambda kv: kv[1], reverse=True):
            st.caption(f"{category}: {format_money(amount, trip['currency'])} "
                       f"({percentage_label(amount, trip['total_expenses'])})")
    else:
        st.caption("No expenses booked against this trip.")
