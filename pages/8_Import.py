# =============================================================================
# pages/8_Import.py
# =============================================================================
# PURPOSE:
#   Data import page - upload supplier expenses and rate sheets.
#
# WHAT IT DOES:
#   1. Expense Import (supplier bills for accounts payable)
#   2. Rate Sheet Import (activities, meals, sleeping trains)
#   3. Current data counts and the database schema
#   4. Data management (clear) options
#
# DUPLICATE DETECTION:
#   - Expenses: hash of date + amount + supplier + description
#   - Rates: same type + name + city
# =============================================================================

import streamlit as st
from config import PAGE_ICON, RATE_TYPES, RATE_TYPE_LABELS
from database import (
    init_db,
    get_db_connection,
    get_table_info,
    load_expenses,
    load_rates,
    load_itineraries,
    load_invoices,
)
from importers import ExpenseImporter, RateImporter
from utils.styling import apply_minimal_style

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Import Data - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

st.title("Import Data")
st.caption("Upload supplier expenses and rate sheets")


def _show_result(importer, success, message):
    """Common feedback after an import run."""
    if success:
        st.success(message)
    else:
        st.error(message)

    summary = importer.get_import_summary()
    if summary['duplicate_count'] or summary['skipped_count'] or summary['error_count']:
        with st.expander("Details"):
            for label, key in (("Errors", 'errors'), ("Skipped", 'skipped'), ("Duplicates", 'duplicates')):
                if summary[key]:
                    st.write(f"**{label}**")
                    for line in summary[key]:
                        st.caption(line)


# -----------------------------------------------------------------------------
# SECTION 1: EXPENSE IMPORT
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Expense Import")
st.write("Upload supplier bills (CSV). They land in Accounts Payable as pending.")

with st.expander("Expected Format", expanded=False):
    st.code("""
Date,Supplier,Supplier Type,Category,Description,Amount,Currency,Status
2025-03-02,Nile Star Cruises,cruise,accommodation,Cabin block,4200,EUR,pending
2025-03-04,Cairo Limo,transport,transportation,Airport transfer,85,USD,approved
    """, language="csv")
    st.caption("Date and Amount are required. Negative amounts are skipped.")

expense_file = st.file_uploader("Choose expense CSV file", type=['csv'], key="expense_upload")

if expense_file is not None:
    if st.button("Import Expenses", type="primary", use_container_width=True):
        with st.spinner("Importing expenses..."):
            importer = ExpenseImporter(expense_file)
            success, message, count = importer.import_expenses()
            _show_result(importer, success, message)

# -----------------------------------------------------------------------------
# SECTION 2: RATE SHEET IMPORT
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Rate Sheet Import")

rate_type = st.selectbox("Rate sheet", options=RATE_TYPES, format_func=lambda t: RATE_TYPE_LABELS[t])

with st.expander("Expected Format", expanded=False):
    st.code("""
Name,City,Supplier,Currency,Price EUR,Price Non-EUR,Notes
Karnak Temple tour,Luxor,Luxor Guides Co,EUR,35,45,
Felucca sunset sail,Aswan,,EUR,20,,1 hour
    """, language="csv")
    st.caption("A sheet with a single Price column uses it for both prices.")

rate_file = st.file_uploader("Choose rate sheet CSV file", type=['csv'], key="rate_upload")

if rate_file is not None:
    if st.button("Import Rates", type="primary", use_container_width=True):
        with st.spinner("Importing rates..."):
            importer = RateImporter(rate_file, rate_type)
            success, message, count = importer.import_rates()
            _show_result(importer, success, message)

# -----------------------------------------------------------------------------
# SECTION 3: CURRENT DATA
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Current Data")

MAX_PREVIEW_ROWS = 50

current = {
    "Trips": load_itineraries(),
    "Invoices": load_invoices(),
    "Expenses": load_expenses(),
    "Rates": load_rates(),
}

cols = st.columns(len(current))
for col, (label, df) in zip(cols, current.items()):
    with col:
        st.metric(label, len(df))

for label, df in current.items():
    with st.expander(f"{label} (all columns)", expanded=False):
        if len(df) > 0:
            st.dataframe(df.head(MAX_PREVIEW_ROWS), use_container_width=True, hide_index=True)
        else:
            st.info(f"No {label.lower()} yet.")

with st.expander("Database schema", expanded=False):
    for table, columns in get_table_info().items():
        st.write(f"**{table}**")
        st.caption(", ".join(f"{col[1]} ({col[2]})" for col in columns))

# -----------------------------------------------------------------------------
# SECTION 4: DATA MANAGEMENT
# -----------------------------------------------------------------------------
st.write("---")
st.write("### Data Management")
st.warning("These actions cannot be undone. Use with caution.")


def confirm_and_clear(key, table_names, display_name):
    """
    Two-click confirmation: the first click arms it, the second clears.
    """
    confirm_key = f'confirm_clear_{key}'

    if st.session_state.get(confirm_key, False):
        conn = get_db_connection()
        try:
            with conn:
                for table in table_names:
                    conn.execute(f"DELETE FROM {table}")
        finally:
            conn.close()
        print(f"[OK] Cleared {', '.join(table_names)}")
        st.success(f"{display_name} cleared")
        st.session_state[confirm_key] = False
        st.rerun()
    else:
        st.session_state[confirm_key] = True
        st.warning("Click again to confirm")


col1, col2, col3 = st.columns(3)

with col1:
    if st.button("Clear Expenses", type="secondary", use_container_width=True):
        confirm_and_clear('expenses', ['expenses'], 'Expenses')

with col2:
    if st.button("Clear Rates", type="secondary", use_container_width=True):
        confirm_and_clear('rates', ['rates'], 'Rates')

with col3:
    if st.button("Clear All Data", type="secondary", use_container_width=True):
        confirm_and_clear('all', [
            'invoice_payments', 'invoices', 'commissions', 'expenses',
            'itinerary_services', 'itineraries', 'rates',
        ], 'All data')
