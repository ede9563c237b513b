# =============================================================================
# pages/5_Commissions.py
# =============================================================================
# PURPOSE:
#   Commissions in both directions:
#     receivable = a supplier (hotel, cruise, shop...) owes US commission
#     payable    = WE owe a partner commission for a referral
#
# FEATURES:
#   - Summary cards (receivable, payable, pending, net)
#   - Breakdown by category
#   - New commission: amount follows base x rate unless typed in by hand
#   - Status updates along pending → invoiced → received / paid
# =============================================================================

from datetime import date

import streamlit as st
import pandas as pd
from config import (
    PAGE_ICON,
    COMMISSION_TYPES,
    COMMISSION_CATEGORIES,
    COMMISSION_STATUSES,
    ALLOWED_CURRENCIES,
    DEFAULT_CURRENCY,
    DEFAULT_COMMISSION_RATE,
)
from database import (
    init_db,
    load_itineraries,
    load_commissions,
    create_commission,
    update_commission,
    delete_commission,
)
from reports import build_commissions
from utils import CommissionForm, ResponseShapeError, format_money, unwrap
from utils.styling import apply_minimal_style, status_badge

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Commissions - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

st.title("Commissions")
st.caption("What suppliers owe us and what we owe partners")

# -----------------------------------------------------------------------------
# FILTERS + REPORT
# -----------------------------------------------------------------------------
col1, col2, col3 = st.columns(3)
with col1:
    type_filter = st.selectbox("Type", options=[None] + COMMISSION_TYPES,
                               format_func=lambda t: "All" if t is None else t.title())
with col2:
    category_filter = st.selectbox("Category", options=[None] + COMMISSION_CATEGORIES,
                                   format_func=lambda c: "All" if c is None else c.title())
with col3:
    status_filter = st.selectbox("Status", options=[None] + COMMISSION_STATUSES,
                                 format_func=lambda s: "All" if s is None else s.title())

report = build_commissions(load_commissions(), type_filter, category_filter, status_filter)
try:
    commissions = unwrap(report)
except ResponseShapeError as e:
    st.warning(f"Could not load commissions: {e}")
    commissions = []
    report = None

if report is not None:
    summary = report['summary']
    st.write("---")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Receivable", format_money(summary['total_receivable']),
                  help=f"Received so far: {format_money(summary['received'])}")
    with col2:
        st.metric("Pending receivable", format_money(summary['pending_receivable']),
                  help="Pending or invoiced, not yet received")
    with col3:
        st.metric("Payable", format_money(summary['total_payable']),
                  help=f"Paid so far: {format_money(summary['paid'])}; "
                       f"pending {format_money(summary['pending_payable'])}")
    with col4:
        st.metric("Net commission", format_money(summary['net_commission']))

    if summary['by_category']:
        st.write("### 📊 By category")
        breakdown = pd.DataFrame([
            {
                'category': category,
                'receivable': float(entry['receivable']),
                'payable': float(entry['payable']),
                'count': entry['count'],
            }
            for category, entry in summary['by_category'].items()
        ])
        st.dataframe(breakdown, use_container_width=True, hide_index=True)

# -----------------------------------------------------------------------------
# NEW COMMISSION
# -----------------------------------------------------------------------------
# The form state lives in session_state so the amount can follow whichever
# field was edited last. No st.form here: callbacks need every keystroke.
st.write("---")
st.write("### ➕ New commission")

if 'commission_form' not in st.session_state:
    st.session_state['commission_form'] = CommissionForm()
form = st.session_state['commission_form']
st.session_state.setdefault('comm_base', float(form.base_amount))
st.session_state.setdefault('comm_rate', float(form.commission_rate or DEFAULT_COMMISSION_RATE))
st.session_state.setdefault('comm_amount', float(form.commission_amount))


def _on_base_change():
    current = st.session_state['commission_form']
    current.base_amount = st.session_state['comm_base']
    st.session_state['comm_amount'] = float(current.commission_amount)


def _on_rate_change():
    current = st.session_state['commission_form']
    current.commission_rate = st.session_state['comm_rate']
    st.session_state['comm_amount'] = float(current.commission_amount)


def _on_amount_change():
    st.session_state['commission_form'].commission_amount = st.session_state['comm_amount']


itineraries_df = load_itineraries()
trip_options = {None: "-- Not linked to a trip --"}
for _, row in itineraries_df.iterrows():
    trip_options[int(row['itinerary_id'])] = f"{row['itinerary_code']} | {row['client_name']}"

col1, col2 = st.columns(2)
with col1:
    commission_type = st.selectbox("Type", options=COMMISSION_TYPES, key="comm_type")
    category = st.selectbox("Category", options=COMMISSION_CATEGORIES, key="comm_category")
    source_name = st.text_input("Supplier / partner", key="comm_source")
    description = st.text_input("Description", key="comm_description")
    itinerary_id = st.selectbox("Trip", options=list(trip_options.keys()),
                                format_func=lambda x: trip_options[x], key="comm_trip")
with col2:
    st.number_input("Base amount", min_value=0.0, step=10.0, key="comm_base", on_change=_on_base_change)
    st.number_input("Rate %", min_value=0.0, max_value=100.0, key="comm_rate", on_change=_on_rate_change)
    st.number_input("Commission amount", min_value=0.0, step=1.0, key="comm_amount", on_change=_on_amount_change)
    if form.is_manual_override:
        st.caption("✏️ Entered by hand. Changing base or rate recalculates it.")
    else:
        st.caption("Calculated from base × rate.")
    currency = st.selectbox("Currency", options=ALLOWED_CURRENCIES,
                            index=ALLOWED_CURRENCIES.index(DEFAULT_CURRENCY), key="comm_currency")
    due_date = st.date_input("Due date", value=None, key="comm_due")

if st.button("💾 Save commission"):
    if not source_name.strip():
        st.error("Supplier / partner is required.")
    elif form.base_amount <= 0 and not form.is_manual_override:
        st.error("Enter a base amount or type the commission in directly.")
    else:
        record = form.to_record()
        record.update({
            'itinerary_id': itinerary_id,
            'commission_type': commission_type,
            'category': category,
            'source_name': source_name.strip(),
            'description': description or None,
            'currency': currency,
            'status': "pending",
            'transaction_date': date.today().isoformat(),
            'due_date': due_date.isoformat() if due_date else None,
        })
        if create_commission(record):
            st.session_state['commission_form'] = CommissionForm()
            for key in ('comm_base', 'comm_rate', 'comm_amount'):
                st.session_state.pop(key, None)
            st.success("Commission saved.")
            st.rerun()
        else:
            st.error("Failed to save commission.")

# -----------------------------------------------------------------------------
# COMMISSION LIST
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 📋 Commissions")

# Next status per type once money moves
NEXT_STATUS = {
    ('receivable', 'pending'): "invoiced",
    ('receivable', 'invoiced'): "received",
    ('payable', 'pending'): "paid",
}

if commissions:
    for row in commissions:
        commission_id = int(row['commission_id'])
        col1, col2, col3 = st.columns([4, 2, 2])
        with col1:
            arrow = "⬅️" if row['commission_type'] == "receivable" else "➡️"
            st.write(f"{arrow} **{row['source_name'] or 'Unknown'}** · {row['category']}"
                     + (f" · trip {row['itinerary_code']}" if row.get('itinerary_code') else ""))
            st.caption(f"{row['transaction_date']} | {format_money(row['base_amount'], row['currency'])} "
                       f"× {row['commission_rate']}%"
                       + (" | manual amount" if row.get('is_manual_override') else ""))
        with col2:
            st.markdown(status_badge(row['status']), unsafe_allow_html=True)
            st.write(format_money(row['commission_amount'], row['currency']))
        with col3:
            next_status = NEXT_STATUS.get((row['commission_type'], row['status']))
            if next_status:
                if st.button(f"Mark {next_status}", key=f"next_{commission_id}"):
                    updates = {'status': next_status}
                    if next_status in ("received", "paid"):
                        updates['paid_date'] = date.today().isoformat()
                    if update_commission(commission_id, updates):
                        st.rerun()
                    else:
                        st.error("Failed to update commission.")
            if row['status'] not in ("received", "paid", "cancelled"):
                if st.button("Cancel", key=f"cancel_comm_{commission_id}"):
                    if update_commission(commission_id, {'status': "cancelled"}):
                        st.rerun()
                    else:
                        st.error("Failed to cancel commission.")
            if st.button("🗑️", key=f"del_comm_{commission_id}"):
                if delete_commission(commission_id):
                    st.rerun()
                else:
                    st.error("Failed to delete commission.")
else:
    st.info("No commissions for these filters.")
