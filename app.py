# =============================================================================
# app.py - MAIN ENTRY POINT
# =============================================================================
# PURPOSE:
#   Entry point for the Tour Ops console. `streamlit run app.py` runs this
#   file first; it configures the browser tab, makes sure the database
#   exists and then sends the user to the Dashboard.
#
# PAGES (pages/ folder, ordered by filename number):
#   1 Dashboard         - today's numbers and things needing attention
#   2 Calendar          - bookings, double-booking conflicts, reschedule
#   3 Invoices          - deposit/final invoices, payments, overdue
#   4 Accounts Payable  - supplier expenses with aging buckets
#   5 Commissions       - receivable/payable commissions
#   6 Profit & Loss     - revenue vs expenses per trip
#   7 Rates             - activity, meal and sleeping train rate sheets
#   8 Import            - expense and rate CSV imports
#
# TO RUN THE APP:
#   streamlit run app.py
#   (set TOUR_OPS_DB_PATH to use a database file other than tour_ops.db)
# =============================================================================

import streamlit as st
from config import PAGE_TITLE, PAGE_ICON, LAYOUT
from database import init_db
from utils.sidebar_nav import inject_sidebar_collapsed

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
# Must be the first Streamlit command in the script.

st.set_page_config(
    page_title=PAGE_TITLE,
    page_icon=PAGE_ICON,
    layout=LAYOUT
)

inject_sidebar_collapsed()
init_db()

# -----------------------------------------------------------------------------
# REDIRECT TO DASHBOARD
# -----------------------------------------------------------------------------
st.switch_page("pages/1_Dashboard.py")
