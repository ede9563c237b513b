# =============================================================================
# pages/4_Accounts_Payable.py
# =============================================================================
# PURPOSE:
#   Money going OUT to suppliers (hotels, cruises, guides, transport...).
#
# FEATURES:
#   - Outstanding payables (pending + approved) by supplier, largest first
#   - Aging buckets from the expense date (0-14 current, 15-30, 31-60, 61+)
#   - Category and supplier-type breakdown
#   - Approve / mark paid / reject each expense
#   - Record a new supplier expense
#   - Recent payments
# =============================================================================

from datetime import date

import streamlit as st
import pandas as pd
from config import (
    PAGE_ICON,
    AGING_BUCKETS,
    AGING_BUCKET_LABELS,
    AGING_BUCKET_FIELDS,
    OUTSTANDING_EXPENSE_STATUSES,
    SUPPLIER_TYPES,
    EXPENSE_CATEGORIES,
    ALLOWED_CURRENCIES,
    DEFAULT_CURRENCY,
    PAYMENT_METHODS,
)
from database import (
    init_db,
    load_itineraries,
    load_expenses,
    load_recent_payments,
    create_expense,
    update_expense_status,
    delete_expense,
)
from reports import build_accounts_payable
from utils import ResponseShapeError, format_money, percentage_label, unwrap
from utils.styling import apply_minimal_style, status_badge

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Accounts Payable - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

st.title("Accounts Payable")
st.caption("What we owe suppliers, and how long it has been waiting")

today = date.today()

# -----------------------------------------------------------------------------
# FILTERS
# -----------------------------------------------------------------------------
col1, col2, col3, col4 = st.columns(4)
with col1:
    aging_filter = st.selectbox(
        "Aging",
        options=[None] + AGING_BUCKETS,
        format_func=lambda b: "All" if b is None else AGING_BUCKET_LABELS[b],
    )
with col2:
    type_filter = st.selectbox("Supplier type", options=[None] + SUPPLIER_TYPES,
                               format_func=lambda t: "All" if t is None else t.title())
with col3:
    status_filter = st.selectbox("Status", options=[None] + OUTSTANDING_EXPENSE_STATUSES,
                                 format_func=lambda s: "All" if s is None else s.title())
with col4:
    supplier_filter = st.text_input("Supplier", placeholder="Name contains...")

# -----------------------------------------------------------------------------
# BUILD REPORT
# -----------------------------------------------------------------------------
report = build_accounts_payable(
    load_expenses(),
    today,
    aging=aging_filter,
    supplier_type=type_filter,
    status=status_filter,
    supplier_name=supplier_filter.strip() or None,
    recent_payments=load_recent_payments(),
)

try:
    suppliers = unwrap(report)
except ResponseShapeError as e:
    st.warning(f"Could not load payables: {e}")
    suppliers = []
    report = None

# -----------------------------------------------------------------------------
# SUMMARY CARDS
# -----------------------------------------------------------------------------
if report is not None:
    summary = report['summary']

    st.write("---")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total outstanding", format_money(summary['total_outstanding']),
                  help=f"{summary['expense_count']} expenses, {summary['supplier_count']} suppliers")
    with col2:
        st.metric("Pending approval", format_money(summary['pending_amount']),
                  delta=f"{summary['pending_count']} expenses" if summary['pending_count'] else None,
                  delta_color="off")
    with col3:
        st.metric("Approved, to pay", format_money(summary['approved_amount']),
                  delta=f"{summary['approved_count']} expenses" if summary['approved_count'] else None,
                  delta_color="off")
    with col4:
        st.metric("Overdue (15+ days)", format_money(summary['overdue_amount']),
                  delta=f"-{summary['overdue_count']}" if summary['overdue_count'] else None,
                  delta_color="inverse")

    st.write("### ⏳ Aging")
    cols = st.columns(len(AGING_BUCKET_FIELDS))
    for col, (bucket, field) in zip(cols, AGING_BUCKET_FIELDS.items()):
        with col:
            st.metric(AGING_BUCKET_LABELS[bucket], format_money(summary['aging'][field]))

    # -------------------------------------------------------------------------
    # BREAKDOWNS
    # -------------------------------------------------------------------------
    if summary['expense_count'] > 0:
        st.write("### 📊 Breakdown")
        col_cat, col_type = st.columns(2)
        for col, title, breakdown in (
            (col_cat, "By category", report['categoryBreakdown']),
            (col_type, "By supplier type", report['supplierTypeBreakdown']),
        ):
            with col:
                st.write(f"**{title}**")
                chart = pd.DataFrame(
                    {'amount': [float(v) for v in breakdown.values()]},
                    index=list(breakdown.keys())
                )
                st.bar_chart(chart)
                for key, amount in sorted(breakdown.items(), key=lambda kv: kv[1], reverse=True):
                    st.caption(f"{key}: {format_money(amount)} "
                               f"({percentage_label(amount, summary['total_outstanding'])})")

# -----------------------------------------------------------------------------
# SUPPLIERS
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 🏨 Suppliers")

if suppliers:
    pay_method = st.selectbox("Paid by", options=PAYMENT_METHODS,
                              format_func=lambda m: m.replace("_", " ").title())

    for supplier in suppliers:
        header = (f"{supplier['supplier_name']} ({supplier['supplier_type']}) | "
                  f"{format_money(supplier['total_outstanding'])} | "
                  f"{supplier['expense_count']} expenses | oldest {supplier['oldest_expense_date']}")
        with st.expander(header):
            aging = supplier['aging']
            st.caption(" | ".join(
                f"{AGING_BUCKET_LABELS[b]}: {format_money(aging[f])}"
                for b, f in AGING_BUCKET_FIELDS.items()
            ))
            for expense in supplier['expenses']:
                expense_id = int(expense['expense_id'])
                col1, col2, col3 = st.columns([4, 2, 2])
                with col1:
                    st.write(f"**{expense['expense_number']}** {expense.get('description') or ''}")
                    st.caption(f"{expense['expense_date']} · {expense['category']} · "
                               f"{expense['days_outstanding']} days")
                with col2:
                    st.markdown(status_badge(expense['status']), unsafe_allow_html=True)
                    st.write(format_money(expense['amount'], expense['currency']))
                with col3:
                    if expense['status'] == "pending":
                        if st.button("Approve", key=f"approve_{expense_id}"):
                            if update_expense_status(expense_id, "approved"):
                                st.rerun()
                            else:
                                st.error("Failed to approve expense.")
                    if st.button("Mark paid", key=f"pay_{expense_id}"):
                        if update_expense_status(expense_id, "paid", today, pay_method):
                            st.rerun()
                        else:
                            st.error("Failed to mark expense paid.")
                    if st.button("Reject", key=f"reject_{expense_id}"):
                        if update_expense_status(expense_id, "rejected"):
                            st.rerun()
                        else:
                            st.error("Failed to reject expense.")
else:
    st.success("Nothing outstanding for these filters.")

# -----------------------------------------------------------------------------
# NEW EXPENSE
# -----------------------------------------------------------------------------
st.write("---")
st.write("### ➕ Record expense")

itineraries_df = load_itineraries()
trip_options = {None: "-- Not linked to a trip --"}
for _, row in itineraries_df.iterrows():
    trip_options[int(row['itinerary_id'])] = f"{row['itinerary_code']} | {row['client_name']}"

with st.form("new_expense_form"):
    col1, col2 = st.columns(2)
    with col1:
        supplier_name = st.text_input("Supplier", placeholder="e.g. Nile Star Cruises")
        supplier_type = st.selectbox("Supplier type", options=SUPPLIER_TYPES)
        category = st.selectbox("Category", options=EXPENSE_CATEGORIES)
        description = st.text_input("Description")
    with col2:
        col_a, col_b = st.columns([2, 1])
        with col_a:
            amount = st.number_input("Amount", min_value=0.0, step=10.0)
        with col_b:
            currency = st.selectbox("Currency", options=ALLOWED_CURRENCIES,
                                    index=ALLOWED_CURRENCIES.index(DEFAULT_CURRENCY))
        expense_date = st.date_input("Expense date", value=today)
        itinerary_id = st.selectbox("Trip", options=list(trip_options.keys()),
                                    format_func=lambda x: trip_options[x])
        receipt = st.text_input("Receipt / reference (optional)")
    notes = st.text_area("Notes (optional)", height=60)
    submitted = st.form_submit_button("💾 Save expense")

    if submitted:
        if amount <= 0:
            st.error("Please enter a valid amount.")
        elif not supplier_name.strip():
            st.error("Supplier is required.")
        else:
            expense_id = create_expense({
                'itinerary_id': itinerary_id,
                'supplier_name': supplier_name.strip(),
                'supplier_type': supplier_type,
                'category': category,
                'description': description or None,
                'amount': amount,
                'currency': currency,
                'expense_date': expense_date.isoformat(),
                'status': "pending",
                'receipt_reference': receipt or None,
                'notes': notes or None,
            })
            if expense_id:
                st.success("Expense recorded.")
                st.rerun()
            else:
                st.error("Failed to save expense.")

# -----------------------------------------------------------------------------
# RECENT PAYMENTS
# -----------------------------------------------------------------------------
st.write("---")
st.write("### ✅ Recent payments")

recent = report['recentPayments'] if report is not None else []
if recent:
    for payment in recent:
        col1, col2 = st.columns([5, 1])
        with col1:
            st.write(f"{payment['payment_date']} · **{format_money(payment['amount'], payment['currency'])}** "
                     f"→ {payment['supplier_name'] or 'Unknown'}")
            st.caption(f"{payment['expense_number']} {payment.get('description') or ''}")
        with col2:
            if st.button("🗑️", key=f"del_exp_{int(payment['expense_id'])}"):
                if delete_expense(int(payment['expense_id'])):
                    st.rerun()
                else:
                    st.error("Failed to delete expense.")
else:
    st.info("No supplier payments yet.")
