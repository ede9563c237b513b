"""
Booking calendar view.

Runs double-booking detection over every bookable itinerary, then applies the
calendar filters and works out the stat cards.
"""

from datetime import date

from utils.aggregation import as_records, total
from utils.calculations import to_date
from utils.conflicts import conflict_pairs, detect_conflicts, resource_conflicts
from utils.envelope import ok

DEFAULT_FILTERS = {
    'payment_status': [],
    'guide_id': "",
    'vehicle_id': "",
    'search': "",
    'date_from': None,
    'date_to': None,
    'conflicts_only': False,
    'hide_completed': False,
}

SEARCH_FIELDS = ['client_name', 'itinerary_code', 'destinations', 'guide_name', 'vehicle_name']


def valid_bookings(bookings):
    """Bookings with parseable dates and start <= end."""
    result = []
    for booking in as_records(bookings):
        start = to_date(booking.get('start_date'))
        end = to_date(booking.get('end_date'))
        if start is not None and end is not None and start <= end:
            result.append(dict(booking))
    return result


def _matches_search(booking, query):
    query = query.lower()
    for field in SEARCH_FIELDS:
        value = booking.get(field)
        if isinstance(value, str) and query in value.lower():
            return True
    return False


def apply_filters(bookings, filters, conflicts):
    """
    Apply the calendar filters in order.

    date_from keeps bookings STARTING on/after it, date_to keeps bookings
    ENDING on/before it.
    """
    rows = list(bookings)

    if filters.get('payment_status'):
        rows = [b for b in rows if b.get('payment_status') in filters['payment_status']]
    if filters.get('guide_id'):
        rows = [b for b in rows if b.get('assigned_guide_id') == filters['guide_id']]
    if filters.get('vehicle_id'):
        rows = [b for b in rows if b.get('assigned_vehicle_id') == filters['vehicle_id']]
    if filters.get('search'):
        rows = [b for b in rows if _matches_search(b, filters['search'])]
    if filters.get('date_from'):
        date_from = to_date(filters['date_from'])
        rows = [b for b in rows if to_date(b.get('start_date')) >= date_from]
    if filters.get('date_to'):
        date_to = to_date(filters['date_to'])
        rows = [b for b in rows if to_date(b.get('end_date')) <= date_to]
    if filters.get('conflicts_only'):
        rows = [b for b in rows if b.get('itinerary_id') in conflicts]
    if filters.get('hide_completed'):
        rows = [b for b in rows if b.get('payment_status') != "completed"]

    return rows


def calendar_stats(bookings, conflicts, today):
    breakdown = {}
    for booking in bookings:
        status = booking.get('payment_status')
        breakdown[status] = breakdown.get(status, 0) + 1

    travelers = 0
    for booking in bookings:
        value = booking.get('num_travelers')
        if value is not None and value == value:
            travelers += int(value)

    return {
        'total_bookings': len(bookings),
        'total_revenue': total(bookings, 'total_cost'),
        'total_travelers': travelers,
        'status_breakdown': breakdown,
        'upcoming_bookings': len([b for b in bookings if to_date(b.get('start_date')) >= today]),
        'conflict_count': len(conflicts),
    }


def build_calendar_view(bookings, filters=None, today=None):
    """
    Build the calendar payload.

    Conflicts are detected across ALL valid bookings before filtering, so a
    filtered view still flags a clash with a booking that is hidden.

    RETURNS:
        dict: {success, data: filtered bookings, conflicts, conflictPairs,
               guideConflicts, vehicleConflicts, stats}
    """
    today = to_date(today) or date.today()
    active = dict(DEFAULT_FILTERS)
    active.update(filters or {})

    bookings = valid_bookings(bookings)
    conflicts = detect_conflicts(bookings, id_key='itinerary_id')

    filtered = apply_filters(bookings, active, conflicts)
    for booking in filtered:
        booking['has_conflict'] = booking.get('itinerary_id') in conflicts

    return ok(
        filtered,
        conflicts=conflicts,
        conflictPairs=conflict_pairs(bookings, id_key='itinerary_id'),
        guideConflicts=resource_conflicts(bookings, 'assigned_guide_id', id_key='itinerary_id'),
        vehicleConflicts=resource_conflicts(bookings, 'assigned_vehicle_id', id_key='itinerary_id'),
        stats=calendar_stats(filtered, conflicts, today),
    )
