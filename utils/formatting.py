# =============================================================================
# utils/formatting.py
# =============================================================================
# PURPOSE:
#   Display helpers: money with currency symbols, and the CSV export of the
#   booking calendar.
# =============================================================================

import csv
import io

from config import CURRENCY_SYMBOLS, DEFAULT_CURRENCY
from .calculations import round2

CALENDAR_EXPORT_HEADERS = [
    "Code", "Client", "Start Date", "End Date", "Travelers",
    "Payment Status", "Total Cost", "Destinations", "Guide", "Vehicle",
]


def currency_symbol(currency):
    """'EUR' → '€'. Unknown codes come back unchanged."""
    currency = currency or DEFAULT_CURRENCY
    return CURRENCY_SYMBOLS.get(currency, currency)


def format_money(amount, currency=DEFAULT_CURRENCY):
    """
    Format an amount for display.

    EXAMPLE:
        format_money(1234.5, "EUR") → '€1,234.50'
        format_money(-20, "USD")    → '-$20.00'
        format_money(10, "CHF")     → 'CHF10.00'
    """
    value = round2(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(value):,.2f}"


def _cell(value, default=""):
    if value is None or (isinstance(value, float) and value != value):
        return default
    if isinstance(value, str) and value == "" and default:
        return default
    return value


def bookings_to_csv(bookings):
    """
    CSV export of the calendar, every cell quoted.

    A booking without a guide or vehicle shows 'Unassigned'.

    RETURNS:
        str: CSV text with a header row
    """
    if hasattr(bookings, 'to_dict'):
        bookings = bookings.to_dict('records')

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CALENDAR_EXPORT_HEADERS)
    for b in bookings:
        writer.writerow([
            _cell(b.get('itinerary_code')),
            _cell(b.get('client_name')),
            _cell(b.get('start_date')),
            _cell(b.get('end_date')),
            _cell(b.get('num_travelers')),
            _cell(b.get('payment_status')),
            _cell(b.get('total_cost')),
            _cell(b.get('destinations')),
            _cell(b.get('guide_name'), "Unassigned"),
            _cell(b.get('vehicle_name'), "Unassigned"),
        ])
    return buffer.getvalue()
