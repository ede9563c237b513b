# =============================================================================
# database/queries.py
# =============================================================================
# PURPOSE:
#   Contains all database queries - loading and saving data.
#   This is the "data access layer" - the only code that talks to the database.
#
# ORGANIZATION:
#   Functions are grouped by table:
#   - Itineraries (load_itineraries, create_itinerary, update_itinerary_dates...)
#   - Itinerary services (cost lines, auto/manual cost mode)
#   - Expenses (accounts payable)
#   - Commissions
#   - Invoices + invoice payments
#   - Rates (rate sheets)
#
# NAMING CONVENTION:
#   - load_X() → Read data (SELECT)
#   - create_X() → Insert new data (INSERT)
#   - update_X() → Modify existing data (UPDATE)
#   - delete_X() → Remove data (DELETE)
#   - check_X_exists() → Check for duplicates
#
# ERRORS:
#   Reads return an empty DataFrame / None on failure.
#   Writes return None / False on failure. Pages show st.error for those.
#   Everything is logged with a [TAG] prefix.
#
# TRANSACTIONS:
#   Writes that touch more than one row (service cost + itinerary total,
#   payment + invoice balance) run inside `with conn:` so they either all
#   happen or none do.
# =============================================================================

import pandas as pd
from datetime import date, datetime, timedelta
import hashlib

from config import (
    AMOUNT_TOLERANCE,
    DEFAULT_DEPOSIT_PERCENT,
    DEFAULT_DUE_DAYS,
    DEFAULT_PAYMENT_TERMS,
    EXPENSE_STATUSES,
    RECENT_PAYMENTS_LIMIT,
)
from utils.calculations import (
    commission_amount,
    effective_service_cost,
    invoice_line_amount,
    invoice_totals,
    round2,
    status_after_payment,
    to_date,
    to_decimal,
)
from .connection import get_db_connection


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _generate_hash(*args):
    """
    Generate a hash from multiple values.
    Used for duplicate detection on imports.

    EXAMPLE:
        _generate_hash("2025-01-15", 1000.00, "Nile Cruises", "Cabin deposit")
        → "a1b2c3d4e5f6..."
    """
    combined = "|".join(str(arg) for arg in args)
    return hashlib.md5(combined.encode()).hexdigest()


def _safe_float(value, default=0.0):
    """
    Safely convert a value to float.
    Returns default if conversion fails ("", "N/A", None, "1,000.00" all ok).
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        cleaned = str(value).replace(",", "").strip()
        if cleaned == "" or cleaned.lower() in ("nan", "none", "n/a", "-"):
            return default
        return float(cleaned)
    except (ValueError, TypeError):
        return default


def _now():
    return datetime.now().isoformat()


def _insert_row(cursor, table, data):
    """INSERT a dict into `table` and return the new row id."""
    columns = ", ".join(data.keys())
    placeholders = ", ".join(["?"] * len(data))
    cursor.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        list(data.values())
    )
    return cursor.lastrowid


def _update_row(cursor, table, id_column, row_id, updates):
    """UPDATE one row by id. Returns the number of rows changed."""
    set_clause = ", ".join([f"{k} = ?" for k in updates.keys()])
    values = list(updates.values()) + [row_id]
    cursor.execute(f"UPDATE {table} SET {set_clause} WHERE {id_column} = ?", values)
    return cursor.rowcount


def _fetch_one(cursor, query, params):
    """Run a query and return the first row as a dict (or None)."""
    cursor.execute(query, params)
    row = cursor.fetchone()
    if not row:
        return None
    columns = [desc[0] for desc in cursor.description]
    return dict(zip(columns, row))


def _next_number(cursor, table, column, prefix, year=None):
    """
    Next sequential document number for a year.

    FORMAT:
        PREFIX-YYYY-NNN, e.g. INV-2025-001, INV-2025-002, ...
    """
    year = year or date.today().year
    stem = f"{prefix}-{year}-"
    cursor.execute(f"SELECT {column} FROM {table} WHERE {column} LIKE ?", (stem + "%",))

    highest = 0
    for (number,) in cursor.fetchall():
        suffix = str(number)[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{stem}{highest + 1:03d}"


def _dates_in_order(start_date, end_date):
    """True if both dates are missing/valid and start <= end."""
    start = to_date(start_date)
    end = to_date(end_date)
    if start_date and start is None:
        return False
    if end_date and end is None:
        return False
    if start and end and start > end:
        return False
    return True


# =============================================================================
# ITINERARIES QUERIES
# =============================================================================

def load_itineraries(search=None, filters=None):
    """
    Load itineraries (bookings) with optional search and filters.

    PARAMETERS:
        search (str): Matches code, client, trip name, destinations, guide, vehicle
        filters (dict): Field-specific filters, e.g. {"status": "confirmed"}

    RETURNS:
        pd.DataFrame: All matching itineraries, soonest first
    """
    try:
        conn = get_db_connection()

        query = "SELECT * FROM itineraries WHERE 1=1"
        params = []

        if search:
            query += """ AND (
                itinerary_code LIKE ? OR
                client_name LIKE ? OR
                trip_name LIKE ? OR
                destinations LIKE ? OR
                guide_name LIKE ? OR
                vehicle_name LIKE ?
            )"""
            search_term = f"%{search}%"
            params.extend([search_term] * 6)

        if filters:
            for field, value in filters.items():
                if value:
                    query += f" AND {field} = ?"
                    params.append(value)

        query += " ORDER BY start_date ASC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading itineraries: {e}")
        return pd.DataFrame()


def load_itinerary_by_id(itinerary_id):
    """
    Load a single itinerary by its ID.

    RETURNS:
        dict: Itinerary data, or None if not found
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        itinerary = _fetch_one(
            cursor, "SELECT * FROM itineraries WHERE itinerary_id = ?", (itinerary_id,)
        )
        conn.close()
        return itinerary

    except Exception as e:
        print(f"[ERROR] Error loading itinerary {itinerary_id}: {e}")
        return None


def check_itinerary_code_exists(itinerary_code):
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute(
            "SELECT COUNT(*) FROM itineraries WHERE itinerary_code = ?",
            (itinerary_code,)
        )
        count = cursor.fetchone()[0]
        conn.close()
        return count > 0

    except Exception as e:
        print(f"[ERROR] Error checking itinerary code: {e}")
        return False


def create_itinerary(itinerary_data):
    """
    Create a new itinerary.

    PARAMETERS:
        itinerary_data (dict): Column values. If itinerary_code is missing,
                               one is generated (ITN-YYYY-NNN).

    RETURNS:
        int: The new itinerary_id, or None if failed
    """
    try:
        if not _dates_in_order(itinerary_data.get('start_date'), itinerary_data.get('end_date')):
            print(f"[WARN] Itinerary dates invalid: {itinerary_data.get('start_date')} → {itinerary_data.get('end_date')}")
            return None

        code = itinerary_data.get('itinerary_code')
        if code and check_itinerary_code_exists(code):
            print(f"[WARN] Itinerary {code} already exists!")
            return None

        conn = get_db_connection()
        cursor = conn.cursor()

        if not code:
            itinerary_data['itinerary_code'] = _next_number(
                cursor, "itineraries", "itinerary_code", "ITN"
            )

        now = _now()
        itinerary_data['created_at'] = now
        itinerary_data['updated_at'] = now

        itinerary_id = _insert_row(cursor, "itineraries", itinerary_data)
        conn.commit()
        conn.close()

        print(f"[OK] Created itinerary #{itinerary_id}: {itinerary_data['itinerary_code']}")
        return itinerary_id

    except Exception as e:
        print(f"[ERROR] Error creating itinerary: {e}")
        return None


def update_itinerary(itinerary_id, updates):
    """
    Update an existing itinerary.

    RETURNS:
        bool: True if successful
    """
    try:
        if 'start_date' in updates or 'end_date' in updates:
            current = load_itinerary_by_id(itinerary_id) or {}
            start = updates.get('start_date', current.get('start_date'))
            end = updates.get('end_date', current.get('end_date'))
            if not _dates_in_order(start, end):
                print(f"[WARN] Itinerary #{itinerary_id}: start date after end date")
                return False

        conn = get_db_connection()
        cursor = conn.cursor()

        updates['updated_at'] = _now()
        changed = _update_row(cursor, "itineraries", "itinerary_id", itinerary_id, updates)

        conn.commit()
        conn.close()
        return changed > 0

    except Exception as e:
        print(f"[ERROR] Error updating itinerary {itinerary_id}: {e}")
        return False


def update_itinerary_dates(itinerary_id, start_date, end_date):
    """
    Persist a rescheduled booking (calendar drag/move).

    PARAMETERS:
        start_date, end_date: date objects or 'YYYY-MM-DD' strings

    RETURNS:
        bool: True if successful
    """
    start = to_date(start_date)
    end = to_date(end_date)
    if start is None or end is None or start > end:
        print(f"[WARN] Refusing to reschedule itinerary #{itinerary_id}: {start_date} → {end_date}")
        return False

    ok = update_itinerary(itinerary_id, {
        'start_date': start.isoformat(),
        'end_date': end.isoformat(),
    })
    if ok:
        print(f"[OK] Rescheduled itinerary #{itinerary_id}: {start} → {end}")
    return ok


def delete_itinerary(itinerary_id):
    """
    Delete an itinerary. Its services go with it (ON DELETE CASCADE).

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM itineraries WHERE itinerary_id = ?", (itinerary_id,))
        deleted = cursor.rowcount
        conn.commit()
        conn.close()

        if deleted:
            print(f"[OK] Deleted itinerary #{itinerary_id}")
        return deleted > 0

    except Exception as e:
        print(f"[ERROR] Error deleting itinerary {itinerary_id}: {e}")
        return False


# =============================================================================
# ITINERARY SERVICES QUERIES
# =============================================================================

def load_itinerary_services(itinerary_id=None):
    """
    Load service lines, optionally for one itinerary.

    RETURNS:
        pd.DataFrame: Services ordered by itinerary and day
    """
    try:
        conn = get_db_connection()

        query = "SELECT * FROM itinerary_services WHERE 1=1"
        params = []

        if itinerary_id:
            query += " AND itinerary_id = ?"
            params.append(itinerary_id)

        query += " ORDER BY itinerary_id, day_number, service_id"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading itinerary services: {e}")
        return pd.DataFrame()


def _rederive_itinerary_total(cursor, itinerary_id):
    """
    Recompute itineraries.total_cost from its service rows.

    Runs on the caller's cursor so it shares the caller's transaction.
    """
    cursor.execute("""
        SELECT cost_mode, rate_cost, quantity, manual_cost
        FROM itinerary_services WHERE itinerary_id = ?
    """, (itinerary_id,))
    columns = [desc[0] for desc in cursor.description]
    services = [dict(zip(columns, row)) for row in cursor.fetchall()]

    total = sum((effective_service_cost(s) for s in services), to_decimal(0))
    cursor.execute("""
        UPDATE itineraries SET total_cost = ?, updated_at = ?
        WHERE itinerary_id = ?
    """, (float(round2(total)), _now(), itinerary_id))
    return total


def create_itinerary_service(service_data):
    """
    Add a service line and update the itinerary total in one transaction.

    RETURNS:
        int: The new service_id, or None if failed
    """
    try:
        service_data.setdefault('cost_mode', "auto")
        service_data['total_cost'] = float(effective_service_cost(service_data))

        now = _now()
        service_data['created_at'] = now
        service_data['updated_at'] = now

        conn = get_db_connection()
        try:
            with conn:
                cursor = conn.cursor()
                service_id = _insert_row(cursor, "itinerary_services", service_data)
                _rederive_itinerary_total(cursor, service_data['itinerary_id'])
        finally:
            conn.close()

        print(f"[OK] Added service #{service_id} to itinerary #{service_data['itinerary_id']}")
        return service_id

    except Exception as e:
        print(f"[ERROR] Error creating service: {e}")
        return None


def update_service_cost(service_id, updates):
    """
    Change a service's cost fields and re-derive the itinerary total.

    Both writes share ONE transaction: if either fails, neither is kept.

    PARAMETERS:
        service_id (int): Service to change
        updates (dict): Any of cost_mode, rate_cost, quantity, manual_cost,
                        rate_id, description...

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        try:
            with conn:
                cursor = conn.cursor()
                service = _fetch_one(
                    cursor, "SELECT * FROM itinerary_services WHERE service_id = ?", (service_id,)
                )
                if service is None:
                    print(f"[WARN] Service {service_id} not found")
                    return False

                service.update(updates)
                updates['total_cost'] = float(effective_service_cost(service))
                updates['updated_at'] = _now()

                _update_row(cursor, "itinerary_services", "service_id", service_id, updates)
                total = _rederive_itinerary_total(cursor, service['itinerary_id'])
        finally:
            conn.close()

        print(f"[OK] Service #{service_id} cost {updates['total_cost']:.2f}; "
              f"itinerary #{service['itinerary_id']} total {float(total):.2f}")
        return True

    except Exception as e:
        print(f"[ERROR] Error updating service {service_id}: {e}")
        return False


def delete_itinerary_service(service_id):
    """
    Remove a service line and re-derive the itinerary total.

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        try:
            with conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT itinerary_id FROM itinerary_services WHERE service_id = ?",
                    (service_id,)
                )
                row = cursor.fetchone()
                if not row:
                    print(f"[WARN] Service {service_id} not found")
                    return False

                cursor.execute("DELETE FROM itinerary_services WHERE service_id = ?", (service_id,))
                _rederive_itinerary_total(cursor, row[0])
        finally:
            conn.close()

        print(f"[OK] Deleted service #{service_id}")
        return True

    except Exception as e:
        print(f"[ERROR] Error deleting service {service_id}: {e}")
        return False


# =============================================================================
# EXPENSES QUERIES (Accounts Payable)
# =============================================================================

def load_expenses(status=None, supplier_type=None, itinerary_id=None,
                  start_date=None, end_date=None, search=None):
    """
    Load expenses.

    PARAMETERS:
        status (str): pending / approved / paid / rejected
        supplier_type (str): hotel, transport, ...
        itinerary_id (int): Only expenses for one trip
        start_date, end_date (str): expense_date range (inclusive)
        search (str): Matches supplier, description, expense number

    RETURNS:
        pd.DataFrame: Expenses, newest first
    """
    try:
        conn = get_db_connection()

        query = "SELECT * FROM expenses WHERE 1=1"
        params = []

        if status:
            query += " AND status = ?"
            params.append(status)

        if supplier_type:
            query += " AND supplier_type = ?"
            params.append(supplier_type)

        if itinerary_id:
            query += " AND itinerary_id = ?"
            params.append(itinerary_id)

        if start_date:
            query += " AND expense_date >= ?"
            params.append(str(start_date))

        if end_date:
            query += " AND expense_date <= ?"
            params.append(str(end_date))

        if search:
            query += " AND (supplier_name LIKE ? OR description LIKE ? OR expense_number LIKE ?)"
            params.extend([f"%{search}%"] * 3)

        query += " ORDER BY expense_date DESC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading expenses: {e}")
        return pd.DataFrame()


def load_recent_payments(limit=RECENT_PAYMENTS_LIMIT):
    """
    Most recently PAID expenses (the "recent payments" list on the
    payables page).

    RETURNS:
        pd.DataFrame
    """
    try:
        conn = get_db_connection()
        df = pd.read_sql_query("""
            SELECT * FROM expenses
            WHERE status = 'paid'
            ORDER BY payment_date DESC, expense_id DESC
            LIMIT ?
        """, conn, params=(limit,))
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading recent payments: {e}")
        return pd.DataFrame()


def expense_hash(expense_date, amount, supplier_name, description):
    """Duplicate-detection key of an expense."""
    return _generate_hash(expense_date, _safe_float(amount), supplier_name or "", description or "")


def check_expense_exists(expense_date, amount, supplier_name, description):
    """
    Check if an expense already exists (duplicate detection).
    Uses a hash of date + amount + supplier + description.

    RETURNS:
        bool: True if expense exists
    """
    try:
        tx_hash = expense_hash(expense_date, amount, supplier_name, description)

        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute(
            "SELECT COUNT(*) FROM expenses WHERE transaction_hash = ?",
            (tx_hash,)
        )
        count = cursor.fetchone()[0]
        conn.close()
        return count > 0

    except Exception as e:
        print(f"[ERROR] Error checking expense: {e}")
        return False


def create_expense(expense_data, skip_duplicates=False):
    """
    Create a new expense.

    PARAMETERS:
        expense_data (dict): At least category, amount, expense_date
        skip_duplicates (bool): If True, refuse an expense whose hash is
                                already stored (used by the CSV importer)

    RETURNS:
        int: The new expense_id, or None if failed/duplicate
    """
    try:
        amount = _safe_float(expense_data.get('amount'), default=None)
        if amount is None or amount < 0:
            print(f"[WARN] Expense amount must be >= 0, got {expense_data.get('amount')!r}")
            return None
        expense_data['amount'] = amount

        tx_hash = expense_hash(
            expense_data.get('expense_date'),
            amount,
            expense_data.get('supplier_name'),
            expense_data.get('description'),
        )
        if skip_duplicates and check_expense_exists(
            expense_data.get('expense_date'),
            amount,
            expense_data.get('supplier_name'),
            expense_data.get('description'),
        ):
            print(f"[WARN] Duplicate expense: {str(expense_data.get('description'))[:30]}...")
            return None

        conn = get_db_connection()
        cursor = conn.cursor()

        if not expense_data.get('expense_number'):
            expense_data['expense_number'] = _next_number(cursor, "expenses", "expense_number", "EXP")
        expense_data['transaction_hash'] = tx_hash
        now = _now()
        expense_data['created_at'] = now
        expense_data['updated_at'] = now

        expense_id = _insert_row(cursor, "expenses", expense_data)
        conn.commit()
        conn.close()

        print(f"[OK] Created expense #{expense_id}: {expense_data['expense_number']} {amount:.2f}")
        return expense_id

    except Exception as e:
        print(f"[ERROR] Error creating expense: {e}")
        return None


def update_expense(expense_id, updates):
    """
    Update an expense.

    RETURNS:
        bool: True if successful
    """
    try:
        if 'amount' in updates and _safe_float(updates['amount'], default=-1) < 0:
            print("[WARN] Expense amount must be >= 0")
            return False

        conn = get_db_connection()
        cursor = conn.cursor()
        updates['updated_at'] = _now()
        changed = _update_row(cursor, "expenses", "expense_id", expense_id, updates)
        conn.commit()
        conn.close()
        return changed > 0

    except Exception as e:
        print(f"[ERROR] Error updating expense {expense_id}: {e}")
        return False


def update_expense_status(expense_id, status, payment_date=None, payment_method=None):
    """
    Approve / pay / reject an expense.

    Marking an expense 'paid' without a payment date uses today.

    RETURNS:
        bool: True if successful
    """
    if status not in EXPENSE_STATUSES:
        print(f"[WARN] Unknown expense status: {status}")
        return False

    updates = {'status': status}
    if status == "paid":
        paid_on = to_date(payment_date) or date.today()
        updates['payment_date'] = paid_on.isoformat()
        if payment_method:
            updates['payment_method'] = payment_method
    elif payment_date:
        updates['payment_date'] = str(payment_date)

    ok = update_expense(expense_id, updates)
    if ok:
        print(f"[OK] Expense #{expense_id} → {status}")
    return ok


def delete_expense(expense_id):
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM expenses WHERE expense_id = ?", (expense_id,))
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted > 0

    except Exception as e:
        print(f"[ERROR] Error deleting expense {expense_id}: {e}")
        return False


# =============================================================================
# COMMISSIONS QUERIES
# =============================================================================

def load_commissions(commission_type=None, category=None, status=None):
    """
    Load commissions.

    PARAMETERS:
        commission_type (str): 'receivable' or 'payable'
        category (str): hotel, cruise, ...
        status (str): pending, invoiced, received, paid, cancelled

    RETURNS:
        pd.DataFrame: Commissions, newest first
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT c.*, i.itinerary_code, i.client_name
            FROM commissions c
            LEFT JOIN itineraries i ON c.itinerary_id = i.itinerary_id
            WHERE 1=1
        """
        params = []

        if commission_type:
            query += " AND c.commission_type = ?"
            params.append(commission_type)

        if category:
            query += " AND c.category = ?"
            params.append(category)

        if status:
            query += " AND c.status = ?"
            params.append(status)

        query += " ORDER BY c.transaction_date DESC, c.commission_id DESC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading commissions: {e}")
        return pd.DataFrame()


def create_commission(commission_data):
    """
    Create a commission.

    Unless is_manual_override is set, commission_amount is derived from
    base_amount × commission_rate / 100.

    RETURNS:
        int: The new commission_id, or None if failed
    """
    try:
        if not commission_data.get('is_manual_override'):
            commission_data['commission_amount'] = float(commission_amount(
                commission_data.get('base_amount'),
                commission_data.get('commission_rate'),
            ))
            commission_data['is_manual_override'] = 0

        conn = get_db_connection()
        cursor = conn.cursor()

        now = _now()
        commission_data['created_at'] = now
        commission_data['updated_at'] = now
        commission_data.setdefault('transaction_date', date.today().isoformat())

        commission_id = _insert_row(cursor, "commissions", commission_data)
        conn.commit()
        conn.close()

        print(f"[OK] Created {commission_data.get('commission_type')} commission #{commission_id}: "
              f"{commission_data['commission_amount']:.2f}")
        return commission_id

    except Exception as e:
        print(f"[ERROR] Error creating commission: {e}")
        return None


def update_commission(commission_id, updates):
    """
    Update a commission.

    A new base_amount or commission_rate recomputes commission_amount and
    clears the manual override. A commission_amount given on its own is a
    manual override.

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()

        if 'base_amount' in updates or 'commission_rate' in updates:
            current = _fetch_one(
                cursor, "SELECT * FROM commissions WHERE commission_id = ?", (commission_id,)
            )
            if current is None:
                conn.close()
                print(f"[WARN] Commission {commission_id} not found")
                return False
            merged = dict(current)
            merged.update(updates)
            updates['commission_amount'] = float(commission_amount(
                merged.get('base_amount'), merged.get('commission_rate')
            ))
            updates['is_manual_override'] = 0
        elif 'commission_amount' in updates:
            updates['is_manual_override'] = 1

        updates['updated_at'] = _now()
        changed = _update_row(cursor, "commissions", "commission_id", commission_id, updates)
        conn.commit()
        conn.close()
        return changed > 0

    except Exception as e:
        print(f"[ERROR] Error updating commission {commission_id}: {e}")
        return False


def delete_commission(commission_id):
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM commissions WHERE commission_id = ?", (commission_id,))
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted > 0

    except Exception as e:
        print(f"[ERROR] Error deleting commission {commission_id}: {e}")
        return False


# =============================================================================
# INVOICES QUERIES
# =============================================================================

def load_invoices(status=None, invoice_type=None, itinerary_id=None, search=None):
    """
    Load invoices with their itinerary code.

    RETURNS:
        pd.DataFrame: Invoices, newest first
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT inv.*, i.itinerary_code, i.trip_name
            FROM invoices inv
            LEFT JOIN itineraries i ON inv.itinerary_id = i.itinerary_id
            WHERE 1=1
        """
        params = []

        if status:
            query += " AND inv.status = ?"
            params.append(status)

        if invoice_type:
            query += " AND inv.invoice_type = ?"
            params.append(invoice_type)

        if itinerary_id:
            query += " AND inv.itinerary_id = ?"
            params.append(itinerary_id)

        if search:
            query += " AND (inv.invoice_number LIKE ? OR inv.client_name LIKE ?)"
            params.extend([f"%{search}%"] * 2)

        query += " ORDER BY inv.issue_date DESC, inv.invoice_id DESC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading invoices: {e}")
        return pd.DataFrame()


def load_invoice_by_id(invoice_id):
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        invoice = _fetch_one(cursor, "SELECT * FROM invoices WHERE invoice_id = ?", (invoice_id,))
        conn.close()
        return invoice

    except Exception as e:
        print(f"[ERROR] Error loading invoice {invoice_id}: {e}")
        return None


def check_invoice_exists(invoice_number):
    """
    Check if an invoice number is already used.

    RETURNS:
        bool: True if invoice exists
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute(
            "SELECT COUNT(*) FROM invoices WHERE invoice_number = ?",
            (invoice_number,)
        )
        count = cursor.fetchone()[0]
        conn.close()
        return count > 0

    except Exception as e:
        print(f"[ERROR] Error checking invoice: {e}")
        return False


def create_invoice(invoice_data):
    """
    Create a new invoice.

    The money columns (tax_amount, total_amount, balance_due) are always
    computed here from subtotal, tax_rate, discount_amount and amount_paid.
    Missing invoice_number → next INV-YYYY-NNN.

    RETURNS:
        int: The new invoice_id, or None if failed
    """
    try:
        number = invoice_data.get('invoice_number')
        if number and check_invoice_exists(number):
            print(f"[WARN] Invoice {number} already exists!")
            return None

        totals = invoice_totals(
            invoice_data.get('subtotal'),
            invoice_data.get('tax_rate'),
            invoice_data.get('discount_amount'),
            invoice_data.get('amount_paid'),
        )
        for field, value in totals.items():
            invoice_data[field] = float(value)

        issue = to_date(invoice_data.get('issue_date')) or date.today()
        invoice_data['issue_date'] = issue.isoformat()
        if not invoice_data.get('due_date'):
            invoice_data['due_date'] = (issue + timedelta(days=DEFAULT_DUE_DAYS)).isoformat()
        invoice_data.setdefault('payment_terms', DEFAULT_PAYMENT_TERMS)
        invoice_data.setdefault('status', "draft")

        conn = get_db_connection()
        cursor = conn.cursor()

        if not number:
            invoice_data['invoice_number'] = _next_number(
                cursor, "invoices", "invoice_number", "INV", issue.year
            )

        now = _now()
        invoice_data['created_at'] = now
        invoice_data['updated_at'] = now

        invoice_id = _insert_row(cursor, "invoices", invoice_data)
        conn.commit()
        conn.close()

        print(f"[OK] Created invoice #{invoice_id}: {invoice_data['invoice_number']} "
              f"({invoice_data['total_amount']:.2f})")
        return invoice_id

    except Exception as e:
        print(f"[ERROR] Error creating invoice: {e}")
        return None


def _deposits_billed(itinerary_id):
    """Sum of live deposit subtotals for a trip, or None when there are none."""
    deposits = load_invoices(invoice_type="deposit", itinerary_id=itinerary_id)
    if deposits.empty:
        return None
    deposits = deposits[deposits['status'] != "cancelled"]
    if deposits.empty:
        return None
    return round2(sum(to_decimal(v) for v in deposits['subtotal']))


def create_invoice_for_itinerary(itinerary_id, invoice_type="standard", deposit_percent=None,
                                 tax_rate=0, discount_amount=0, **extra):
    """
    Bill an itinerary: the whole trip, a deposit, or the final balance.

    EXAMPLE:
        trip total 2000, deposit 10%
        create_invoice_for_itinerary(7, "deposit") → invoice for 200.00
        create_invoice_for_itinerary(7, "final")   → invoice for 1800.00

    A final invoice bills the trip total minus the deposit invoices already
    raised for the trip (cancelled ones excluded), so the pair still adds up
    when services changed in between. The deposit percent is only used when
    no deposit invoice exists.

    RETURNS:
        int: The new invoice_id, or None if failed
    """
    itinerary = load_itinerary_by_id(itinerary_id)
    if itinerary is None:
        print(f"[WARN] Itinerary {itinerary_id} not found")
        return None

    if deposit_percent is None:
        deposit_percent = itinerary.get('deposit_percent')
        if deposit_percent is None:
            deposit_percent = DEFAULT_DEPOSIT_PERCENT

    try:
        subtotal = invoice_line_amount(itinerary.get('total_cost'), deposit_percent, invoice_type)
    except ValueError as e:
        print(f"[WARN] {e}")
        return None

    if invoice_type == "final":
        billed = _deposits_billed(itinerary_id)
        if billed is not None:
            subtotal = max(round2(itinerary.get('total_cost')) - billed, to_decimal(0))

    invoice_data = {
        'itinerary_id': itinerary_id,
        'client_name': itinerary.get('client_name'),
        'client_email': itinerary.get('client_email'),
        'invoice_type': invoice_type,
        'deposit_percent': float(deposit_percent) if invoice_type != "standard" else None,
        'subtotal': float(subtotal),
        'tax_rate': tax_rate,
        'discount_amount': discount_amount,
        'currency': itinerary.get('currency') or "EUR",
    }
    invoice_data.update(extra)
    return create_invoice(invoice_data)


def update_invoice(invoice_id, updates):
    """
    Update an invoice.

    If any money input changes (subtotal, tax_rate, discount_amount,
    amount_paid), the derived columns are recomputed so that
    balance_due = total_amount - amount_paid still holds, and the stored
    status follows the new balance.

    RETURNS:
        bool: True if successful
    """
    try:
        money_inputs = ('subtotal', 'tax_rate', 'discount_amount', 'amount_paid')
        if any(field in updates for field in money_inputs):
            current = load_invoice_by_id(invoice_id)
            if current is None:
                print(f"[WARN] Invoice {invoice_id} not found")
                return False
            merged = dict(current)
            merged.update(updates)
            totals = invoice_totals(
                merged.get('subtotal'),
                merged.get('tax_rate'),
                merged.get('discount_amount'),
                merged.get('amount_paid'),
            )
            for field, value in totals.items():
                updates[field] = float(value)
            merged.update(totals)
            updates['status'] = status_after_payment(merged)

        conn = get_db_connection()
        cursor = conn.cursor()
        updates['updated_at'] = _now()
        changed = _update_row(cursor, "invoices", "invoice_id", invoice_id, updates)
        conn.commit()
        conn.close()
        return changed > 0

    except Exception as e:
        print(f"[ERROR] Error updating invoice {invoice_id}: {e}")
        return False


def delete_invoice(invoice_id):
    """Delete an invoice and its payments (ON DELETE CASCADE)."""
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM invoices WHERE invoice_id = ?", (invoice_id,))
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted > 0

    except Exception as e:
        print(f"[ERROR] Error deleting invoice {invoice_id}: {e}")
        return False


# =============================================================================
# INVOICE PAYMENTS QUERIES
# =============================================================================

def load_invoice_payments(invoice_id=None):
    """
    Load payments received against invoices.

    RETURNS:
        pd.DataFrame: Payments with invoice number and client
    """
    try:
        conn = get_db_connection()

        query = """
            SELECT p.*, inv.invoice_number, inv.client_name
            FROM invoice_payments p
            JOIN invoices inv ON p.invoice_id = inv.invoice_id
            WHERE 1=1
        """
        params = []

        if invoice_id:
            query += " AND p.invoice_id = ?"
            params.append(invoice_id)

        query += " ORDER BY p.payment_date DESC, p.payment_id DESC"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading invoice payments: {e}")
        return pd.DataFrame()


def record_invoice_payment(invoice_id, amount, payment_method="bank_transfer",
                           payment_date=None, transaction_reference=None, notes=None):
    """
    Record money received against an invoice.

    In ONE transaction:
        1. Insert the payment row
        2. Update amount_paid and balance_due on the invoice
        3. Move the stored status to 'partial' or 'paid'

    RULES:
        - amount must be > 0
        - amount may not exceed the balance due (+0.01 tolerance)

    RETURNS:
        int: The new payment_id, or None if rejected/failed
    """
    try:
        amount = round2(amount)
        if amount <= 0:
            print("[WARN] Payment amount must be positive")
            return None

        conn = get_db_connection()
        try:
            with conn:
                cursor = conn.cursor()
                invoice = _fetch_one(cursor, "SELECT * FROM invoices WHERE invoice_id = ?", (invoice_id,))
                if invoice is None:
                    print(f"[WARN] Invoice {invoice_id} not found")
                    return None
                if invoice.get('status') == "cancelled":
                    print(f"[WARN] Invoice {invoice['invoice_number']} is cancelled")
                    return None

                balance_due = to_decimal(invoice.get('balance_due'))
                if amount > balance_due + to_decimal(AMOUNT_TOLERANCE):
                    print(f"[WARN] Payment {amount} exceeds balance due {balance_due} "
                          f"on {invoice['invoice_number']}")
                    return None

                payment_id = _insert_row(cursor, "invoice_payments", {
                    'invoice_id': invoice_id,
                    'amount': float(amount),
                    'currency': invoice.get('currency') or "EUR",
                    'payment_method': payment_method,
                    'payment_date': (to_date(payment_date) or date.today()).isoformat(),
                    'transaction_reference': transaction_reference,
                    'notes': notes,
                    'created_at': _now(),
                })

                new_paid = round2(to_decimal(invoice.get('amount_paid')) + amount)
                totals = invoice_totals(
                    invoice.get('subtotal'),
                    invoice.get('tax_rate'),
                    invoice.get('discount_amount'),
                    new_paid,
                )
                invoice['amount_paid'] = new_paid
                invoice['total_amount'] = totals['total_amount']

                _update_row(cursor, "invoices", "invoice_id", invoice_id, {
                    'amount_paid': float(new_paid),
                    'balance_due': float(totals['balance_due']),
                    'status': status_after_payment(invoice),
                    'updated_at': _now(),
                })
        finally:
            conn.close()

        print(f"[OK] Recorded payment #{payment_id}: {amount} → {invoice['invoice_number']}")
        return payment_id

    except Exception as e:
        print(f"[ERROR] Error recording payment: {e}")
        return None


def delete_invoice_payment(payment_id):
    """
    Delete a payment and reverse its effect on the invoice.

    RETURNS:
        bool: True if successful
    """
    try:
        conn = get_db_connection()
        try:
            with conn:
                cursor = conn.cursor()
                payment = _fetch_one(
                    cursor, "SELECT * FROM invoice_payments WHERE payment_id = ?", (payment_id,)
                )
                if payment is None:
                    print(f"[WARN] Payment {payment_id} not found")
                    return False

                invoice = _fetch_one(
                    cursor, "SELECT * FROM invoices WHERE invoice_id = ?", (payment['invoice_id'],)
                )
                cursor.execute("DELETE FROM invoice_payments WHERE payment_id = ?", (payment_id,))

                new_paid = max(round2(to_decimal(invoice.get('amount_paid')) - to_decimal(payment['amount'])),
                               to_decimal(0))
                totals = invoice_totals(
                    invoice.get('subtotal'),
                    invoice.get('tax_rate'),
                    invoice.get('discount_amount'),
                    new_paid,
                )
                invoice['amount_paid'] = new_paid
                invoice['total_amount'] = totals['total_amount']
                status = status_after_payment(invoice)

                _update_row(cursor, "invoices", "invoice_id", payment['invoice_id'], {
                    'amount_paid': float(new_paid),
                    'balance_due': float(totals['balance_due']),
                    'status': status,
                    'updated_at': _now(),
                })
        finally:
            conn.close()

        print(f"[OK] Deleted payment #{payment_id}")
        return True

    except Exception as e:
        print(f"[ERROR] Error deleting payment: {e}")
        return False


# =============================================================================
# RATES QUERIES (rate sheets)
# =============================================================================

def load_rates(rate_type=None, city=None, active_only=False, search=None):
    """
    Load rate sheet entries.

    PARAMETERS:
        rate_type (str): activity / meal / sleeping_train
        city (str): Only one city
        active_only (bool): Hide inactive rates
        search (str): Matches name, supplier, city

    RETURNS:
        pd.DataFrame
    """
    try:
        conn = get_db_connection()

        query = "SELECT * FROM rates WHERE 1=1"
        params = []

        if rate_type:
            query += " AND rate_type = ?"
            params.append(rate_type)

        if city:
            query += " AND city = ?"
            params.append(city)

        if active_only:
            query += " AND is_active = 1"

        if search:
            query += " AND (name LIKE ? OR supplier_name LIKE ? OR city LIKE ?)"
            params.extend([f"%{search}%"] * 3)

        query += " ORDER BY rate_type, city, name"

        df = pd.read_sql_query(query, conn, params=params if params else None)
        conn.close()
        return df

    except Exception as e:
        print(f"[ERROR] Error loading rates: {e}")
        return pd.DataFrame()


def check_rate_exists(rate_type, name, city):
    """
    Duplicate check for rate sheets: same type + name + city.

    RETURNS:
        bool: True if a matching rate exists
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("""
            SELECT COUNT(*) FROM rates
            WHERE rate_type = ? AND LOWER(name) = LOWER(?) AND IFNULL(LOWER(city), '') = IFNULL(LOWER(?), '')
        """, (rate_type, name, city))
        count = cursor.fetchone()[0]
        conn.close()
        return count > 0

    except Exception as e:
        print(f"[ERROR] Error checking rate: {e}")
        return False


def create_rate(rate_data):
    """
    Create a rate sheet entry.

    RETURNS:
        int: The new rate_id, or None if failed/duplicate
    """
    try:
        if check_rate_exists(rate_data.get('rate_type'), rate_data.get('name'), rate_data.get('city')):
            print(f"[WARN] Rate already exists: {rate_data.get('name')} ({rate_data.get('city')})")
            return None

        conn = get_db_connection()
        cursor = conn.cursor()

        now = _now()
        rate_data['created_at'] = now
        rate_data['updated_at'] = now

        rate_id = _insert_row(cursor, "rates", rate_data)
        conn.commit()
        conn.close()

        print(f"[OK] Created rate #{rate_id}: {rate_data.get('name')}")
        return rate_id

    except Exception as e:
        print(f"[ERROR] Error creating rate: {e}")
        return None


def update_rate(rate_id, updates):
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        updates['updated_at'] = _now()
        changed = _update_row(cursor, "rates", "rate_id", rate_id, updates)
        conn.commit()
        conn.close()
        return changed > 0

    except Exception as e:
        print(f"[ERROR] Error updating rate {rate_id}: {e}")
        return False


def delete_rate(rate_id):
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM rates WHERE rate_id = ?", (rate_id,))
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted > 0

    except Exception as e:
        print(f"[ERROR] Error deleting rate {rate_id}: {e}")
        return False
