# =============================================================================
# pages/2_Calendar.py
# =============================================================================
# PURPOSE:
#   The booking calendar. Shows every trip with its dates, flags double
#   bookings, and lets the team move a trip to new dates.
#
# FEATURES:
#   - Filters: payment status, guide, vehicle, search, date range,
#     conflicts only, hide completed
#   - Stat cards and conflict list (whole calendar, not just the filter)
#   - Day view: who is out on a given date
#   - Reschedule a booking (keeps the trip length)
#   - CSV export of the filtered list
#   - New booking, and the service lines that make up its cost
# =============================================================================

from datetime import date

import streamlit as st
import pandas as pd
from config import (
    PAGE_ICON,
    PAYMENT_STATUSES,
    PAYMENT_STATUS_LABELS,
    ITINERARY_STATUSES,
    ALLOWED_CURRENCIES,
    DEFAULT_CURRENCY,
    DEFAULT_DEPOSIT_PERCENT,
    SERVICE_TYPES,
    COST_MODES,
)
from database import (
    init_db,
    load_itineraries,
    create_itinerary,
    update_itinerary_dates,
    delete_itinerary,
    load_itinerary_services,
    create_itinerary_service,
    update_service_cost,
    delete_itinerary_service,
    load_rates,
)
from reports import build_calendar_view
from utils import (
    RescheduleError,
    ResponseShapeError,
    bookings_on_date,
    bookings_to_csv,
    format_money,
    reschedule,
    unwrap,
)
from utils.styling import apply_minimal_style, status_badge

# -----------------------------------------------------------------------------
# PAGE CONFIGURATION
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Calendar - Tour Ops",
    page_icon=PAGE_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

apply_minimal_style()
init_db()

# -----------------------------------------------------------------------------
# PAGE HEADER
# -----------------------------------------------------------------------------
st.title("Calendar")
st.caption("All bookings, double-booking checks and rescheduling")

today = date.today()
itineraries_df = load_itineraries()

# -----------------------------------------------------------------------------
# FILTERS
# -----------------------------------------------------------------------------
st.write("### Filters")


def _resource_options(id_col, name_col):
    """{id: name} for the guides / vehicles that appear on bookings."""
    options = {"": "All"}
    if len(itineraries_df) > 0:
        assigned = itineraries_df[itineraries_df[id_col].notna()]
        for _, row in assigned.iterrows():
            options[row[id_col]] = row[name_col] or row[id_col]
    return options


guide_options = _resource_options('assigned_guide_id', 'guide_name')
vehicle_options = _resource_options('assigned_vehicle_id', 'vehicle_name')

col1, col2, col3 = st.columns(3)
with col1:
    status_filter = st.multiselect(
        "Payment status",
        options=PAYMENT_STATUSES,
        format_func=lambda s: PAYMENT_STATUS_LABELS[s],
    )
    search = st.text_input("Search", placeholder="Client, code, destination, guide...")
with col2:
    guide_filter = st.selectbox("Guide", options=list(guide_options.keys()), format_func=lambda x: guide_options[x])
    vehicle_filter = st.selectbox("Vehicle", options=list(vehicle_options.keys()), format_func=lambda x: vehicle_options[x])
with col3:
    date_from = st.date_input("Starting on or after", value=None)
    date_to = st.date_input("Ending on or before", value=None)

col_a, col_b = st.columns(2)
with col_a:
    conflicts_only = st.checkbox("Only show conflicts")
with col_b:
    hide_completed = st.checkbox("Hide completed trips")

filters = {
    'payment_status': status_filter,
    'guide_id': guide_filter,
    'vehicle_id': vehicle_filter,
    'search': search.strip(),
    'date_from': date_from,
    'date_to': date_to,
    'conflicts_only': conflicts_only,
    'hide_completed': hide_completed,
}

# -----------------------------------------------------------------------------
# BUILD VIEW
# -----------------------------------------------------------------------------
view = build_calendar_view(itineraries_df, filters, today)

try:
    bookings = unwrap(view)
except ResponseShapeError as e:
    st.warning(f"Could not load the calendar: {e}")
    bookings = []
    view = {'stats': None, 'conflictPairs': [], 'guideConflicts': {}, 'vehicleConflicts': {}}

# -----------------------------------------------------------------------------
# STATS
# -----------------------------------------------------------------------------
stats = view['stats']
if stats:
    st.write("---")
    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric("Bookings", stats['total_bookings'])
    with col2:
        st.metric("Revenue", format_money(stats['total_revenue']))
    with col3:
        st.metric("Travelers", stats['total_travelers'])
    with col4:
        st.metric("Upcoming", stats['upcoming_bookings'])
    with col5:
        st.metric(
            "Conflicts",
            stats['conflict_count'],
            delta=f"-{stats['conflict_count']}" if stats['conflict_count'] else None,
            delta_color="inverse"
        )

    if stats['status_breakdown']:
        st.markdown(
            " ".join(
                status_badge(s, f"{PAYMENT_STATUS_LABELS.get(s, s)}: {n}")
                for s, n in stats['status_breakdown'].items()
            ),
            unsafe_allow_html=True
        )

# -----------------------------------------------------------------------------
# CONFLICTS
# -----------------------------------------------------------------------------
codes = {}
if len(itineraries_df) > 0:
    codes = dict(zip(itineraries_df['itinerary_id'], itineraries_df['itinerary_code']))

if view['conflictPairs']:
    st.write("---")
    st.write("### ⚠️ Overlapping bookings")
    for a, b in view['conflictPairs']:
        st.write(f"- {codes.get(a, a)} overlaps {codes.get(b, b)}")

    for label, clashes in (("Guide", view['guideConflicts']), ("Vehicle", view['vehicleConflicts'])):
        for resource, ids in clashes.items():
            st.error(f"{label} {resource} is double-booked: " + ", ".join(str(codes.get(i, i)) for i in sorted(ids)))

# -----------------------------------------------------------------------------
# BOOKINGS TABLE + EXPORT
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 📋 Bookings")

if bookings:
    table = pd.DataFrame(bookings)
    display_cols = [c for c in [
        'itinerary_code', 'client_name', 'start_date', 'end_date', 'num_travelers',
        'payment_status', 'total_cost', 'currency', 'guide_name', 'vehicle_name', 'has_conflict'
    ] if c in table.columns]
    st.dataframe(table[display_cols], use_container_width=True, hide_index=True)

    st.download_button(
        "⬇️ Export CSV",
        data=bookings_to_csv(bookings),
        file_name=f"bookings_{today.isoformat()}.csv",
        mime="text/csv",
    )
else:
    st.info("No bookings match these filters.")

# -----------------------------------------------------------------------------
# DAY VIEW
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 📅 Day view")

day = st.date_input("Who is travelling on", value=today, key="day_view")
on_day = bookings_on_date(bookings, day)
if on_day:
    for booking in on_day:
        st.write(
            f"**{booking['itinerary_code']}** {booking['client_name']} "
            f"({booking['start_date']} → {booking['end_date']})"
        )
        st.caption(
            f"Guide: {booking.get('guide_name') or 'Unassigned'} | "
            f"Vehicle: {booking.get('vehicle_name') or 'Unassigned'}"
        )
else:
    st.caption("Nobody out on this date.")

# -----------------------------------------------------------------------------
# RESCHEDULE
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 🔁 Reschedule")

if bookings:
    booking_options = {
        b['itinerary_id']: f"{b['itinerary_code']} | {b['client_name']} | {b['start_date']} → {b['end_date']}"
        for b in bookings
    }
    with st.form("reschedule_form"):
        selected_id = st.selectbox(
            "Booking",
            options=list(booking_options.keys()),
            format_func=lambda x: booking_options[x]
        )
        new_start = st.date_input("New start date", value=today, min_value=today)
        submitted = st.form_submit_button("Move booking")

        if submitted:
            booking = next(b for b in bookings if b['itinerary_id'] == selected_id)
            try:
                moved = reschedule(booking, new_start, today)
            except RescheduleError as e:
                st.error(str(e))
            else:
                if moved is None:
                    st.info("Booking already starts on that date.")
                elif update_itinerary_dates(selected_id, *moved):
                    st.success(f"Moved to {moved[0]} → {moved[1]}")
                    st.rerun()
                else:
                    st.error("Failed to save the new dates.")
else:
    st.caption("Nothing to reschedule.")

# -----------------------------------------------------------------------------
# NEW BOOKING
# -----------------------------------------------------------------------------
st.write("---")
st.write("### ➕ New booking")

with st.form("new_itinerary_form"):
    col1, col2 = st.columns(2)
    with col1:
        client_name = st.text_input("Client name")
        client_email = st.text_input("Client email")
        trip_name = st.text_input("Trip name", placeholder="e.g. Classic Egypt 8 days")
        destinations = st.text_input("Destinations", placeholder="Cairo, Luxor, Aswan")
        num_travelers = st.number_input("Travelers", min_value=1, value=2, step=1)
    with col2:
        start_date = st.date_input("Start date", value=today, key="new_start")
        end_date = st.date_input("End date", value=today, key="new_end")
        status = st.selectbox("Status", options=ITINERARY_STATUSES)
        currency = st.selectbox("Currency", options=ALLOWED_CURRENCIES,
                                index=ALLOWED_CURRENCIES.index(DEFAULT_CURRENCY))
        deposit_percent = st.number_input("Deposit %", min_value=0.0, max_value=100.0,
                                          value=float(DEFAULT_DEPOSIT_PERCENT))
    col3, col4 = st.columns(2)
    with col3:
        guide_id = st.text_input("Guide ID")
        guide_name = st.text_input("Guide name")
    with col4:
        vehicle_id = st.text_input("Vehicle ID")
        vehicle_name = st.text_input("Vehicle")
    notes = st.text_area("Notes (optional)", height=60)
    submitted = st.form_submit_button("💾 Create booking")

    if submitted:
        if not client_name.strip():
            st.error("Client name is required.")
        elif start_date > end_date:
            st.error("Start date must be on or before the end date.")
        else:
            itinerary_id = create_itinerary({
                'client_name': client_name.strip(),
                'client_email': client_email or None,
                'trip_name': trip_name or None,
                'destinations': destinations or None,
                'num_travelers': int(num_travelers),
                'start_date': start_date.isoformat(),
                'end_date': end_date.isoformat(),
                'status': status,
                'payment_status': "not_paid",
                'currency': currency,
                'deposit_percent': deposit_percent,
                'total_cost': 0,
                'assigned_guide_id': guide_id or None,
                'guide_name': guide_name or None,
                'assigned_vehicle_id': vehicle_id or None,
                'vehicle_name': vehicle_name or None,
                'notes': notes or None,
            })
            if itinerary_id:
                st.success("Booking created.")
                st.rerun()
            else:
                st.error("Failed to create booking.")

# -----------------------------------------------------------------------------
# SERVICES (cost build-up for one booking)
# -----------------------------------------------------------------------------
st.write("---")
st.write("### 🧾 Services")
st.caption("The trip's total cost is the sum of its services: rate × quantity, or a manual cost.")

if len(itineraries_df) == 0:
    st.info("Create a booking first.")
    st.stop()

trip_options = {
    int(row['itinerary_id']): f"{row['itinerary_code']} | {row['client_name']}"
    for _, row in itineraries_df.iterrows()
}
trip_id = st.selectbox("Booking", options=list(trip_options.keys()),
                       format_func=lambda x: trip_options[x], key="services_trip")
trip = itineraries_df[itineraries_df['itinerary_id'] == trip_id].iloc[0]
st.metric("Total cost", format_money(trip['total_cost'], trip['currency']))

services_df = load_itinerary_services(trip_id)
if len(services_df) > 0:
    for _, service in services_df.iterrows():
        service_id = int(service['service_id'])
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.write(f"Day {service['day_number']} · **{service['service_type']}** {service['description'] or ''}")
            st.caption(f"{service['cost_mode']} | {format_money(service['total_cost'], service['currency'])}")
        with col2:
            if service['cost_mode'] == "auto":
                if st.button("Switch to manual", key=f"manual_{service_id}"):
                    if not update_service_cost(service_id, {
                        'cost_mode': "manual",
                        'manual_cost': float(service['total_cost']),
                    }):
                        st.error("Failed to update service.")
                    st.rerun()
            elif pd.notna(service['rate_cost']):
                if st.button("Use rate", key=f"auto_{service_id}"):
                    if not update_service_cost(service_id, {'cost_mode': "auto"}):
                        st.error("Failed to update service.")
                    st.rerun()
        with col3:
            if st.button("🗑️", key=f"del_service_{service_id}"):
                if delete_itinerary_service(service_id):
                    st.rerun()
                else:
                    st.error("Failed to delete service.")
else:
    st.caption("No services yet.")

rates_df = load_rates(active_only=True)
rate_options = {None: "-- No rate (manual cost) --"}
for _, rate in rates_df.iterrows():
    rate_options[int(rate['rate_id'])] = f"{rate['name']} ({rate['city'] or '-'}) {format_money(rate['price_eur'], rate['currency'])}"

with st.form("new_service_form"):
    col1, col2, col3 = st.columns(3)
    with col1:
        day_number = st.number_input("Day", min_value=1, value=1, step=1)
        service_type = st.selectbox("Type", options=SERVICE_TYPES)
    with col2:
        rate_id = st.selectbox("Rate", options=list(rate_options.keys()), format_func=lambda x: rate_options[x])
        quantity = st.number_input("Quantity", min_value=1, value=int(trip['num_travelers']) if pd.notna(trip['num_travelers']) else 1, step=1)
    with col3:
        cost_mode = st.selectbox("Cost mode", options=COST_MODES)
        manual_cost = st.number_input("Manual cost", min_value=0.0, step=1.0)
    description = st.text_input("Description")
    submitted = st.form_submit_button("Add service")

    if submitted:
        if cost_mode == "auto" and rate_id is None:
            st.error("Pick a rate, or use manual cost mode.")
        else:
            rate_cost = None
            if rate_id is not None:
                rate_cost = float(rates_df[rates_df['rate_id'] == rate_id].iloc[0]['price_eur'])
            service_id = create_itinerary_service({
                'itinerary_id': trip_id,
                'day_number': int(day_number),
                'service_type': service_type,
                'description': description or None,
                'rate_id': rate_id,
                'quantity': int(quantity),
                'rate_cost': rate_cost,
                'manual_cost': manual_cost if cost_mode == "manual" else None,
                'cost_mode': cost_mode,
                'currency': trip['currency'],
            })
            if service_id:
                st.success("Service added.")
                st.rerun()
            else:
                st.error("Failed to add service.")

with st.expander("Danger zone"):
    if st.button(f"Delete booking {trip['itinerary_code']}"):
        if delete_itinerary(trip_id):
            st.success("Booking deleted.")
            st.rerun()
        else:
            st.error("Failed to delete booking.")
