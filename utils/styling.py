"""
Shared look for every page: the collapsed icon sidebar, page typography and
the coloured status chips used on the calendar and invoice lists.
"""
import streamlit as st
from utils.sidebar_nav import inject_sidebar_collapsed

# Chip colours per status. Anything unmapped renders grey.
STATUS_COLORS = {
    # booking payment status
    "not_paid": "#dc2626",
    "deposit_received": "#d97706",
    "partially_paid": "#2563eb",
    "paid": "#16a34a",
    "completed": "#6b7280",
    # invoice display status
    "draft": "#6b7280",
    "sent": "#2563eb",
    "partial": "#d97706",
    "overdue": "#b91c1c",
    "cancelled": "#9ca3af",
    # expenses / commissions
    "pending": "#d97706",
    "approved": "#2563eb",
    "rejected": "#9ca3af",
    "invoiced": "#7c3aed",
    "received": "#16a34a",
}


def status_badge(status, label=None):
    """HTML chip for a status value (render with unsafe_allow_html=True)."""
    color = STATUS_COLORS.get(status, "#6b7280")
    text = label or str(status).replace("_", " ").title()
    return (
        f'<span style="background:{color};color:white;padding:2px 10px;'
        f'border-radius:10px;font-size:0.8rem;font-weight:600">{text}</span>'
    )


def apply_minimal_style():
    """Sidebar plus page-level CSS. Call right after st.set_page_config."""
    inject_sidebar_collapsed()
    st.markdown("""
    <style>
        .main {
            padding: 3rem 5rem;
            max-width: 1440px;
        }

        h1 {
            font-size: 2.8rem;
            font-weight: 700;
            color: #12303b;
            letter-spacing: -0.02em;
            margin-bottom: 0.25rem;
        }

        h3 {
            font-size: 1.2rem;
            font-weight: 600;
            color: #12303b;
            margin-top: 2.5rem;
            margin-bottom: 1rem;
        }

        .stCaption {
            color: #64748b;
            font-size: 0.88rem;
        }

        .stButton > button {
            background-color: #1F4E5F;
            color: white;
            border: none;
            border-radius: 4px;
            padding: 0.5rem 1.2rem;
            font-weight: 500;
        }

        .stButton > button:hover {
            background-color: #12303b;
        }

        hr {
            border: none;
            border-top: 1px solid #e2e8f0;
            margin: 2.5rem 0;
        }

        [data-testid="stMetricValue"] {
            font-size: 1.6rem;
        }
    </style>
    """, unsafe_allow_html=True)
