# =============================================================================
# pages/3_Invoices.py
# =============================================================================
# PURPOSE:
#   Client invoicing and money IN.
#
# FEATURES:
#   - Accounts receivable: open balance by client, aged past the due date
#   - Invoice list with the display status (overdue is worked out here,
#     never stored)
#   - Bill a trip: full amount, deposit, or the final balance
#   - Record a client payment (can't exceed the balance due)
#   - Payment history, with undo
# =============================================================================

from datetime import date

import streamlit as st
import pandas as pd
from config import (
    PAGE_ICON,
    INVOICE_STATUSES,
    INVOICE_DISPLAY_STATUSES,
    INVOICE_TYPES,
    PAYMENT_METHODS,
    ALLOWED_CURRENCIES,
    DEFAULT_CURRENCY,
    AGING_BUCKETS,
    RECEIVABLE_AGING_LABELS,
    AGING_BUCKET_FIELDS,
)
from database import (
    init_db,
    load_itineraries,
    load_invoices,
    load_invoice_payments,
    create_invoice,
    create_invoice_for_itinerary,
    update_invoice,
    delete_invoice,
    record_invoice_payment,
    delete_invoice_payment,
)
from reports import build_accounts_receivable
from utils import (
    ResponseShapeError,
    calculate_invoice_status,
    format_money,
    invoice_line_amount,
    invoice_totals,
    unwrap,
)
from utils.styling import apply_minimal_style, status_badge

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Invoices - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

st.title("Invoices")
st.caption("Bill trips, record client payments, chase overdue balances")

today = date.today()
itineraries_df = load_itineraries()
invoices_df = load_invoices()
payments_df = load_invoice_payments()

# -----------------------------------------------------------------------------
# SECTION 1: ACCOUNTS RECEIVABLE
# -----------------------------------------------------------------------------
st.write("### 📥 Accounts receivable")

aging_filter = st.selectbox(
    "Aging",
    options=[None] + AGING_BUCKETS,
    format_func=lambda b: "All" if b is None else RECEIVABLE_AGING_LABELS[b],
    key="ar_aging"
)

receivables = build_accounts_receivable(invoices_df, today, aging=aging_filter)
try:
    clients = unwrap(receivables)
except ResponseShapeError as e:
    st.warning(f"Could not load receivables: {e}")
    clients = []

if clients:
    summary = receivables['summary']
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Outstanding", format_money(summary['total_outstanding']))
    with col2:
        st.metric("Clients", summary['client_count'])
    with col3:
        st.metric("Open invoices", summary['invoice_count'])
    with col4:
        st.metric("Overdue", format_money(summary['overdue_amount']),
                  delta=f"{summary['overdue_count']} invoices" if summary['overdue_count'] else None,
                  delta_color="inverse")

    cols = st.columns(len(AGING_BUCKET_FIELDS))
    for col, (bucket, field) in zip(cols, AGING_BUCKET_FIELDS.items()):
        with col:
            st.caption(RECEIVABLE_AGING_LABELS[bucket])
            st.write(format_money(summary['aging'][field]))

    for client in clients:
        with st.expander(f"{client['client_name']} | {format_money(client['total_outstanding'])} "
                         f"({client['invoice_count']} invoices)"):
            st.caption(f"Oldest invoice: {client['oldest_invoice_date'] or '-'}")
            rows = pd.DataFrame(client['invoices'])
            st.dataframe(
                rows[['invoice_number', 'issue_date', 'due_date', 'total_amount',
                      'amount_paid', 'balance_due', 'days_past_due']],
                use_container_width=True, hide_index=True
            )
else:
    st.info("No open client balances.")

# -----------------------------------------------------------------------------
# SECTION 2: INVOICE LIST
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 📄 All invoices")

col1, col2, col3 = st.columns(3)
with col1:
    status_filter = st.selectbox("Status", options=["All"] + INVOICE_DISPLAY_STATUSES)
with col2:
    type_filter = st.selectbox("Type", options=["All"] + INVOICE_TYPES)
with col3:
    search = st.text_input("Search", placeholder="Invoice number or client")

listed_df = calculate_invoice_status(
    load_invoices(
        invoice_type=None if type_filter == "All" else type_filter,
        search=search.strip() or None,
    ),
    payments_df,
    today
)
if len(listed_df) > 0 and status_filter != "All":
    listed_df = listed_df[listed_df['display_status'] == status_filter]

if len(listed_df) > 0:
    for _, inv in listed_df.iterrows():
        invoice_id = int(inv['invoice_id'])
        col1, col2, col3 = st.columns([4, 2, 2])
        with col1:
            st.write(f"**{inv['invoice_number']}** {inv['client_name'] or ''} · {inv['invoice_type']}")
            st.caption(f"Issued {inv['issue_date']} | due {inv['due_date']}"
                       + (f" | trip {inv['itinerary_code']}" if pd.notna(inv.get('itinerary_code')) else ""))
        with col2:
            st.markdown(status_badge(inv['display_status']), unsafe_allow_html=True)
            st.write(f"{format_money(inv['total_amount'], inv['currency'])} · "
                     f"due {format_money(inv['balance_due'], inv['currency'])}")
            st.caption(inv['payment_state'])
        with col3:
            if inv['status'] == "draft":
                if st.button("Mark sent", key=f"send_{invoice_id}"):
                    if update_invoice(invoice_id, {'status': "sent"}):
                        st.rerun()
                    else:
                        st.error("Failed to update invoice.")
            if inv['status'] not in ("paid", "cancelled"):
                if st.button("Cancel", key=f"cancel_{invoice_id}"):
                    if update_invoice(invoice_id, {'status': "cancelled"}):
                        st.rerun()
                    else:
                        st.error("Failed to cancel invoice.")
            if inv['applied_amount'] == 0:
                if st.button("🗑️ Delete", key=f"del_{invoice_id}"):
                    if delete_invoice(invoice_id):
                        st.rerun()
                    else:
                        st.error("Failed to delete invoice.")
        st.write("---")
else:
    st.info("No invoices match these filters.")

# -----------------------------------------------------------------------------
# SECTION 3: BILL A TRIP
# -----------------------------------------------------------------------------
st.write("### ➕ Bill a trip")

col_form, col_manual = st.columns(2)

with col_form:
    if len(itineraries_df) > 0:
        trip_options = {
            int(row['itinerary_id']): f"{row['itinerary_code']} | {row['client_name']} | "
                                      f"{format_money(row['total_cost'], row['currency'])}"
            for _, row in itineraries_df.iterrows()
        }
        trip_id = st.selectbox("Trip", options=list(trip_options.keys()),
                               format_func=lambda x: trip_options[x])
        trip = itineraries_df[itineraries_df['itinerary_id'] == trip_id].iloc[0]

        invoice_type = st.radio("Invoice type", options=INVOICE_TYPES, horizontal=True)
        deposit_percent = st.number_input(
            "Deposit %", min_value=0.0, max_value=100.0,
            value=float(trip['deposit_percent']) if pd.notna(trip['deposit_percent']) else 10.0,
            disabled=invoice_type == "standard"
        )
        tax_rate = st.number_input("Tax %", min_value=0.0, max_value=100.0, value=0.0)
        discount = st.number_input("Discount", min_value=0.0, value=0.0, step=10.0)

        line = invoice_line_amount(trip['total_cost'], deposit_percent, invoice_type)
        preview = invoice_totals(line, tax_rate, discount)
        st.caption(
            f"Subtotal {format_money(preview['subtotal'], trip['currency'])} + tax "
            f"{format_money(preview['tax_amount'], trip['currency'])} - discount "
            f"{format_money(preview['discount_amount'], trip['currency'])} = "
            f"**{format_money(preview['total_amount'], trip['currency'])}**"
        )

        if st.button("Create invoice"):
            if preview['total_amount'] < 0:
                st.error("Discount is larger than the invoice amount.")
            else:
                new_id = create_invoice_for_itinerary(
                    trip_id, invoice_type, deposit_percent=deposit_percent,
                    tax_rate=tax_rate, discount_amount=discount
                )
                if new_id:
                    st.success("Invoice created.")
                    st.rerun()
                else:
                    st.error("Failed to create invoice.")
    else:
        st.info("No trips yet. Create one on the Calendar page.")

with col_manual:
    with st.form("manual_invoice_form"):
        st.write("**Invoice without a trip**")
        client_name = st.text_input("Client name")
        client_email = st.text_input("Client email")
        col_a, col_b = st.columns([2, 1])
        with col_a:
            subtotal = st.number_input("Amount", min_value=0.0, step=10.0)
        with col_b:
            currency = st.selectbox("Currency", options=ALLOWED_CURRENCIES,
                                    index=ALLOWED_CURRENCIES.index(DEFAULT_CURRENCY))
        due_date = st.date_input("Due date", value=None)
        notes = st.text_area("Notes (optional)", height=60)
        submitted = st.form_submit_button("💾 Save invoice")

        if submitted:
            if not client_name.strip():
                st.error("Client name is required.")
            elif subtotal <= 0:
                st.error("Please enter a valid amount.")
            else:
                new_id = create_invoice({
                    'client_name': client_name.strip(),
                    'client_email': client_email or None,
                    'invoice_type': "standard",
                    'subtotal': subtotal,
                    'currency': currency,
                    'due_date': due_date.isoformat() if due_date else None,
                    'notes': notes or None,
                })
                if new_id:
                    st.success("Invoice created.")
                    st.rerun()
                else:
                    st.error("Failed to create invoice.")

# -----------------------------------------------------------------------------
# SECTION 4: RECORD PAYMENT
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 💶 Record client payment")

open_df = invoices_df[
    (invoices_df['status'] != "cancelled") & (invoices_df['balance_due'] > 0)
] if len(invoices_df) > 0 else pd.DataFrame()

if len(open_df) > 0:
    open_options = {
        int(row['invoice_id']): f"{row['invoice_number']} | {row['client_name']} | "
                                f"due {format_money(row['balance_due'], row['currency'])}"
        for _, row in open_df.iterrows()
    }
    with st.form("payment_form"):
        pay_invoice_id = st.selectbox("Invoice", options=list(open_options.keys()),
                                      format_func=lambda x: open_options[x])
        col_a, col_b = st.columns(2)
        with col_a:
            amount = st.number_input("Amount received", min_value=0.0, step=10.0)
            payment_date = st.date_input("Payment date", value=today)
        with col_b:
            method = st.selectbox("Method", options=PAYMENT_METHODS)
            reference = st.text_input("Reference (optional)", placeholder="e.g. bank ref")
        submitted = st.form_submit_button("Record payment")

        if submitted:
            balance = float(open_df[open_df['invoice_id'] == pay_invoice_id].iloc[0]['balance_due'])
            if amount <= 0:
                st.error("Please enter a valid amount.")
            elif amount > balance + 0.01:
                st.error(f"Amount is more than the balance due ({balance:,.2f}).")
            elif record_invoice_payment(pay_invoice_id, amount, method, payment_date,
                                        reference or None):
                st.success("Payment recorded.")
                st.rerun()
            else:
                st.error("Failed to record payment.")
else:
    st.info("No invoices with an open balance.")

# -----------------------------------------------------------------------------
# SECTION 5: PAYMENT HISTORY
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 📋 Payment history")

if len(payments_df) > 0:
    for _, pay in payments_df.head(25).iterrows():
        col1, col2 = st.columns([5, 1])
        with col1:
            st.write(f"{pay['payment_date']} · **{format_money(pay['amount'], pay['currency'])}** "
                     f"→ {pay['invoice_number']} {pay['client_name'] or ''} ({pay['payment_method']})")
            if pay.get('transaction_reference'):
                st.caption(pay['transaction_reference'])
        with col2:
            if st.button("Undo", key=f"undo_pay_{int(pay['payment_id'])}"):
                if delete_invoice_payment(int(pay['payment_id'])):
                    st.rerun()
                else:
                    st.error("Failed to remove payment.")
else:
    st.info("No payments recorded yet.")

st.caption(f"Stored statuses: {', '.join(INVOICE_STATUSES)}. 'overdue' is shown, never saved.")
