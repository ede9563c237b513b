"""
Profit & loss per trip.

Revenue is what we invoiced for the trip. A trip with no invoiced revenue
yet falls back to its quoted total_cost, so new trips still show an
expected margin.
"""

from decimal import Decimal

from utils.aggregation import aggregate, as_records, total
from utils.calculations import to_date, to_decimal
from utils.envelope import ok


def _in_period(itinerary, start_date, end_date):
    start = to_date(itinerary.get('start_date'))
    if start_date and (start is None or start < to_date(start_date)):
        return False
    if end_date and (start is None or start > to_date(end_date)):
        return False
    return True


def _group_by_itinerary(rows):
    grouped = {}
    for row in rows:
        grouped.setdefault(row.get('itinerary_id'), []).append(row)
    return grouped


def trip_pnl(itinerary, invoices, expenses):
    """
    P&L line for one trip.

    PARAMETERS:
        itinerary (dict): the trip
        invoices (list): invoices for this trip
        expenses (list): expenses for this trip

    RETURNS:
        dict: TripPnL
    """
    quoted = to_decimal(itinerary.get('total_cost'))
    total_revenue = total(invoices, 'total_amount')
    total_paid = total(invoices, 'amount_paid')

    # Rejected bills were never owed
    expenses = [e for e in expenses if e.get('status') != "rejected"]

    total_expenses = total(expenses, 'amount')
    expenses_paid = total([e for e in expenses if e.get('status') == "paid"], 'amount')
    expenses_pending = total([e for e in expenses if e.get('status') != "paid"], 'amount')

    revenue = total_revenue if total_revenue > 0 else quoted
    gross_profit = revenue - total_expenses
    margin = gross_profit / revenue * Decimal(100) if revenue > 0 else Decimal("0")

    return {
        'itinerary_id': itinerary.get('itinerary_id'),
        'itinerary_code': itinerary.get('itinerary_code'),
        'trip_name': itinerary.get('trip_name'),
        'client_name': itinerary.get('client_name'),
        'start_date': itinerary.get('start_date'),
        'end_date': itinerary.get('end_date'),
        'status': itinerary.get('status'),
        'currency': itinerary.get('currency') or "EUR",
        'quoted_amount': quoted,
        'total_revenue': total_revenue,
        'total_paid': total_paid,
        'total_expenses': total_expenses,
        'expenses_paid': expenses_paid,
        'expenses_pending': expenses_pending,
        'gross_profit': gross_profit,
        'profit_margin': margin,
        'expense_breakdown': aggregate(expenses, 'category', 'amount'),
        'invoice_count': len(invoices),
        'expense_count': len(expenses),
    }


def build_profit_loss(itineraries, invoices, expenses, status=None, start_date=None, end_date=None):
    """
    Build the profit & loss payload.

    PARAMETERS:
        status: only trips with this itinerary status
        start_date / end_date: only trips STARTING in this range (inclusive)

    RETURNS:
        dict: {success, data: TripPnL[], summary}
    """
    trips = [
        i for i in as_records(itineraries)
        if (not status or i.get('status') == status) and _in_period(i, start_date, end_date)
    ]
    trips.sort(key=lambda i: str(i.get('start_date') or ""), reverse=True)

    invoices_by_trip = _group_by_itinerary(
        i for i in as_records(invoices) if i.get('status') != "cancelled"
    )
    expenses_by_trip = _group_by_itinerary(as_records(expenses))

    data = [
        trip_pnl(
            trip,
            invoices_by_trip.get(trip.get('itinerary_id'), []),
            expenses_by_trip.get(trip.get('itinerary_id'), []),
        )
        for trip in trips
    ]

    zero = Decimal("0")
    summary = {
        'total_trips': len(data),
        'total_revenue': sum(
            (p['total_revenue'] if p['total_revenue'] > 0 else p['quoted_amount'] for p in data), zero
        ),
        'total_expenses': sum((p['total_expenses'] for p in data), zero),
        'total_profit': sum((p['gross_profit'] for p in data), zero),
        'average_margin': (
            sum((p['profit_margin'] for p in data), zero) / len(data) if data else zero
        ),
        'profitable_trips': len([p for p in data if p['gross_profit'] > 0]),
        'loss_trips': len([p for p in data if p['gross_profit'] < 0]),
    }

    return ok(data, summary=summary)
