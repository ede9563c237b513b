# =============================================================================
# database/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the database folder a Python package and provides easy imports.
#
# USAGE:
#   Instead of writing:
#       from database.connection import get_db_connection
#       from database.schema import init_db
#       from database.queries import load_itineraries
#
#   You can write:
#       from database import get_db_connection, init_db, load_itineraries
# =============================================================================

from .connection import get_db_connection

from .schema import init_db, get_table_info

from .queries import (
    # Itineraries
    load_itineraries,
    load_itinerary_by_id,
    check_itinerary_code_exists,
    create_itinerary,
    update_itinerary,
    update_itinerary_dates,
    delete_itinerary,

    # Itinerary services
    load_itinerary_services,
    create_itinerary_service,
    update_service_cost,
    delete_itinerary_service,

    # Expenses (accounts payable)
    load_expenses,
    load_recent_payments,
    expense_hash,
    check_expense_exists,
    create_expense,
    update_expense,
    update_expense_status,
    delete_expense,

    # Commissions
    load_commissions,
    create_commission,
    update_commission,
    delete_commission,

    # Invoices
    load_invoices,
    load_invoice_by_id,
    check_invoice_exists,
    create_invoice,
    create_invoice_for_itinerary,
    update_invoice,
    delete_invoice,

    # Invoice payments
    load_invoice_payments,
    record_invoice_payment,
    delete_invoice_payment,

    # Rates
    load_rates,
    check_rate_exists,
    create_rate,
    update_rate,
    delete_rate,
)
