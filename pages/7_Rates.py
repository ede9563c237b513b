# =============================================================================
# pages/7_Rates.py
# =============================================================================
# PURPOSE:
#   Rate sheets the trip costing pulls from: activities, meals and sleeping
#   trains. Each rate has an EU-national price and a non-EU price.
#
# FEATURES:
#   - Browse by type, city, search; hide inactive
#   - Add a rate (same type + name + city can't be added twice)
#   - Edit prices, deactivate, delete
# =============================================================================

import streamlit as st
from config import PAGE_ICON, RATE_TYPES, RATE_TYPE_LABELS, ALLOWED_CURRENCIES, DEFAULT_CURRENCY
from database import init_db, load_rates, create_rate, update_rate, delete_rate
from utils import format_money
from utils.styling import apply_minimal_style

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Rates - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

st.title("Rates")
st.caption("Activity, meal and sleeping train rate sheets")

# -----------------------------------------------------------------------------
# FILTERS
# -----------------------------------------------------------------------------
rate_type = st.radio("Rate sheet", options=RATE_TYPES, format_func=lambda t: RATE_TYPE_LABELS[t],
                     horizontal=True)

all_rates_df = load_rates(rate_type=rate_type)
cities = sorted(c for c in all_rates_df['city'].dropna().unique()) if len(all_rates_df) > 0 else []

col1, col2, col3 = st.columns([2, 2, 1])
with col1:
    city = st.selectbox("City", options=[None] + cities, format_func=lambda c: "All" if c is None else c)
with col2:
    search = st.text_input("Search", placeholder="Name, supplier or city")
with col3:
    active_only = st.checkbox("Active only", value=True)

rates_df = load_rates(rate_type=rate_type, city=city, active_only=active_only,
                      search=search.strip() or None)

# -----------------------------------------------------------------------------
# RATE LIST
# -----------------------------------------------------------------------------
st.write("---")
st.write(f"### {RATE_TYPE_LABELS[rate_type]} ({len(rates_df)})")

if len(rates_df) > 0:
    for _, rate in rates_df.iterrows():
        rate_id = int(rate['rate_id'])
        col1, col2, col3 = st.columns([4, 3, 2])
        with col1:
            inactive = "" if rate['is_active'] else " · inactive"
            st.write(f"**{rate['name']}** · {rate['city'] or '-'}{inactive}")
            st.caption(rate['supplier_name'] or "No supplier")
        with col2:
            st.write(f"EU {format_money(rate['price_eur'], rate['currency'])} | "
                     f"non-EU {format_money(rate['price_non_eur'], rate['currency'])}")
        with col3:
            with st.popover("Edit"):
                with st.form(f"edit_rate_{rate_id}"):
                    price_eur = st.number_input("Price EU", min_value=0.0, value=float(rate['price_eur'] or 0))
                    price_non_eur = st.number_input("Price non-EU", min_value=0.0,
                                                    value=float(rate['price_non_eur'] or 0))
                    is_active = st.checkbox("Active", value=bool(rate['is_active']))
                    if st.form_submit_button("Save"):
                        if update_rate(rate_id, {
                            'price_eur': price_eur,
                            'price_non_eur': price_non_eur,
                            'is_active': 1 if is_active else 0,
                        }):
                            st.rerun()
                        else:
                            st.error("Failed to update rate.")
            if st.button("🗑️", key=f"del_rate_{rate_id}"):
                if delete_rate(rate_id):
                    st.rerun()
                else:
                    st.error("Failed to delete rate.")
else:
    st.info("No rates yet. Add one below or import a rate sheet on the Import page.")

# -----------------------------------------------------------------------------
# NEW RATE
# -----------------------------------------------------------------------------
st.write("---")
st.write("### ➕ Add rate")

with st.form("new_rate_form"):
    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Name", placeholder="e.g. Felucca sunset sail")
        new_city = st.text_input("City", placeholder="e.g. Aswan")
        supplier = st.text_input("Supplier (optional)")
    with col2:
        new_price_eur = st.number_input("Price EU", min_value=0.0, step=1.0)
        new_price_non_eur = st.number_input("Price non-EU (0 = same as EU)", min_value=0.0, step=1.0)
        currency = st.selectbox("Currency", options=ALLOWED_CURRENCIES,
                                index=ALLOWED_CURRENCIES.index(DEFAULT_CURRENCY))
    notes = st.text_area("Notes (optional)", height=60)
    submitted = st.form_submit_button("💾 Save rate")

    if submitted:
        if not name.strip():
            st.error("Name is required.")
        elif new_price_eur <= 0 and new_price_non_eur <= 0:
            st.error("Please enter a price.")
        else:
            rate_id = create_rate({
                'rate_type': rate_type,
                'name': name.strip(),
                'city': new_city.strip() or None,
                'supplier_name': supplier or None,
                'currency': currency,
                'price_eur': new_price_eur or new_price_non_eur,
                'price_non_eur': new_price_non_eur or new_price_eur,
                'is_active': 1,
                'notes': notes or None,
            })
            if rate_id:
                st.success("Rate added.")
                st.rerun()
            else:
                st.error("Could not add rate (it may already exist for this city).")
