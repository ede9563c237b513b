# =============================================================================
# database/schema.py
# =============================================================================
# PURPOSE:
#   Defines the DATABASE SCHEMA - every table the console reads and writes.
#
# DATA MODEL:
#   The central record is an ITINERARY (a booked trip). Most money tables
#   point back at it:
#
#   [ITINERARIES] <-- One row per trip/booking (calendar entries)
#      |
#      +-- [ITINERARY_SERVICES] <-- Priced services per day (auto/manual cost)
#      +-- [INVOICES]           <-- Bills to the client (standard/deposit/final)
#      |      +-- [INVOICE_PAYMENTS] <-- Money received against an invoice
#      +-- [EXPENSES]           <-- Supplier costs (accounts payable)
#      +-- [COMMISSIONS]        <-- Commissions we earn or owe
#
#   [RATES] <-- Rate sheets (activities, meals, sleeping trains)
#
# DATES:
#   All dates are stored as ISO strings (YYYY-MM-DD). SQLite compares those
#   correctly as text, which the date filters rely on.
# =============================================================================

from .connection import get_db_connection


def init_db():
    """
    Create all tables and indexes if they don't exist yet.

    Safe to call on every page load ("CREATE TABLE IF NOT EXISTS").

    RETURNS:
        bool: True if successful, False if error
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()

        # =====================================================================
        # TABLE 1: ITINERARIES (Bookings)
        # =====================================================================
        # Invariant: start_date <= end_date (checked by the data layer before
        # writing; the calendar also drops rows that break it).
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS itineraries (
                itinerary_id INTEGER PRIMARY KEY AUTOINCREMENT,
                itinerary_code TEXT NOT NULL UNIQUE,

                trip_name TEXT,
                client_name TEXT NOT NULL,
                client_email TEXT,
                destinations TEXT,

                start_date TEXT,
                end_date TEXT,
                num_travelers INTEGER DEFAULT 1,

                -- draft, quoted, confirmed, completed, cancelled
                status TEXT DEFAULT 'draft',
                -- not_paid, deposit_received, partially_paid, paid, completed
                payment_status TEXT DEFAULT 'not_paid',

                currency TEXT DEFAULT 'EUR',
                -- Quoted total. Re-derived from itinerary_services when a
                -- service cost changes.
                total_cost REAL DEFAULT 0,
                deposit_percent REAL DEFAULT 10,

                -- Resource assignment (used for resource conflicts)
                assigned_guide_id TEXT,
                guide_name TEXT,
                assigned_vehicle_id TEXT,
                vehicle_name TEXT,

                notes TEXT,
                created_at TEXT,
                updated_at TEXT
            )
        """)

        # =====================================================================
        # TABLE 2: ITINERARY_SERVICES (Priced line items of a trip)
        # =====================================================================
        # cost_mode = 'auto'   -> total_cost = rate_cost * quantity
        # cost_mode = 'manual' -> total_cost = manual_cost
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS itinerary_services (
                service_id INTEGER PRIMARY KEY AUTOINCREMENT,
                itinerary_id INTEGER NOT NULL,
                day_number INTEGER DEFAULT 1,

                service_type TEXT NOT NULL,
                description TEXT,
                rate_id INTEGER,

                quantity REAL DEFAULT 1,
                rate_cost REAL DEFAULT 0,
                manual_cost REAL,
                cost_mode TEXT DEFAULT 'auto',
                total_cost REAL DEFAULT 0,
                currency TEXT DEFAULT 'EUR',

                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(itinerary_id) REFERENCES itineraries(itinerary_id) ON DELETE CASCADE,
                FOREIGN KEY(rate_id) REFERENCES rates(rate_id) ON DELETE SET NULL
            )
        """)

        # =====================================================================
        # TABLE 3: EXPENSES (Accounts Payable)
        # =====================================================================
        # Invariant: amount >= 0 (enforced with a CHECK).
        # Outstanding = status in (pending, approved).
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS expenses (
                expense_id INTEGER PRIMARY KEY AUTOINCREMENT,
                expense_number TEXT UNIQUE,
                itinerary_id INTEGER,

                category TEXT NOT NULL,
                description TEXT,
                amount REAL NOT NULL CHECK (amount >= 0),
                currency TEXT DEFAULT 'EUR',
                expense_date TEXT NOT NULL,

                -- pending, approved, paid, rejected
                status TEXT DEFAULT 'pending',

                supplier_name TEXT,
                supplier_type TEXT,

                payment_date TEXT,
                payment_method TEXT,
                receipt_reference TEXT,

                -- Duplicate detection for CSV imports
                transaction_hash TEXT,
                import_batch TEXT,

                notes TEXT,
                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(itinerary_id) REFERENCES itineraries(itinerary_id) ON DELETE SET NULL
            )
        """)

        # =====================================================================
        # TABLE 4: COMMISSIONS
        # =====================================================================
        # receivable = commission a supplier owes us
        # payable    = commission we owe a partner
        # commission_amount is base_amount * commission_rate / 100 unless
        # is_manual_override = 1.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS commissions (
                commission_id INTEGER PRIMARY KEY AUTOINCREMENT,
                itinerary_id INTEGER,

                commission_type TEXT NOT NULL,
                category TEXT NOT NULL,
                source_name TEXT,
                description TEXT,

                base_amount REAL DEFAULT 0,
                commission_rate REAL,
                commission_amount REAL NOT NULL,
                is_manual_override INTEGER DEFAULT 0,
                currency TEXT DEFAULT 'EUR',

                status TEXT DEFAULT 'pending',
                transaction_date TEXT,
                due_date TEXT,
                paid_date TEXT,
                payment_method TEXT,
                payment_reference TEXT,

                notes TEXT,
                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(itinerary_id) REFERENCES itineraries(itinerary_id) ON DELETE SET NULL
            )
        """)

        # =====================================================================
        # TABLE 5: INVOICES
        # =====================================================================
        # total_amount = subtotal + tax_amount - discount_amount
        # balance_due  = total_amount - amount_paid
        # 'overdue' is NOT a stored status (derived when displaying).
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS invoices (
                invoice_id INTEGER PRIMARY KEY AUTOINCREMENT,
                invoice_number TEXT NOT NULL UNIQUE,
                itinerary_id INTEGER,

                client_name TEXT NOT NULL,
                client_email TEXT,

                -- standard, deposit, final
                invoice_type TEXT DEFAULT 'standard',
                deposit_percent REAL,

                subtotal REAL DEFAULT 0,
                tax_rate REAL DEFAULT 0,
                tax_amount REAL DEFAULT 0,
                discount_amount REAL DEFAULT 0,
                total_amount REAL DEFAULT 0,
                amount_paid REAL DEFAULT 0,
                balance_due REAL DEFAULT 0,
                currency TEXT DEFAULT 'EUR',

                -- draft, sent, partial, paid, cancelled
                status TEXT DEFAULT 'draft',
                issue_date TEXT,
                due_date TEXT,
                payment_terms TEXT,

                notes TEXT,
                created_at TEXT,
                updated_at TEXT,

                FOREIGN KEY(itinerary_id) REFERENCES itineraries(itinerary_id) ON DELETE SET NULL
            )
        """)

        # =====================================================================
        # TABLE 6: INVOICE_PAYMENTS
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS invoice_payments (
                payment_id INTEGER PRIMARY KEY AUTOINCREMENT,
                invoice_id INTEGER NOT NULL,

                amount REAL NOT NULL,
                currency TEXT DEFAULT 'EUR',
                payment_method TEXT DEFAULT 'bank_transfer',
                payment_date TEXT,
                transaction_reference TEXT,

                notes TEXT,
                created_at TEXT,

                FOREIGN KEY(invoice_id) REFERENCES invoices(invoice_id) ON DELETE CASCADE
            )
        """)

        # =====================================================================
        # TABLE 7: RATES (Rate sheets)
        # =====================================================================
        # rate_type: activity, meal, sleeping_train
        # Two prices because entrance/activity rates differ for EU and
        # non-EU nationals.
        # =====================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS rates (
                rate_id INTEGER PRIMARY KEY AUTOINCREMENT,

                rate_type TEXT NOT NULL,
                name TEXT NOT NULL,
                city TEXT,
                supplier_name TEXT,

                currency TEXT DEFAULT 'EUR',
                price_eur REAL DEFAULT 0,
                price_non_eur REAL DEFAULT 0,

                is_active INTEGER DEFAULT 1,
                notes TEXT,

                import_batch TEXT,
                created_at TEXT,
                updated_at TEXT
            )
        """)

        # =====================================================================
        # CREATE INDEXES
        # =====================================================================
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_itin_code ON itineraries(itinerary_code)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_itin_dates ON itineraries(start_date, end_date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_itin_status ON itineraries(status)")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_services_itin ON itinerary_services(itinerary_id)")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(expense_date)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_status ON expenses(status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_itin ON expenses(itinerary_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_expenses_hash ON expenses(transaction_hash)")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_commissions_type ON commissions(commission_type)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_commissions_date ON commissions(transaction_date)")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_invoices_number ON invoices(invoice_number)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_invoices_itin ON invoices(itinerary_id)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_invoices_status ON invoices(status)")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_payments_invoice ON invoice_payments(invoice_id)")

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_rates_type ON rates(rate_type)")

        conn.commit()
        conn.close()

        print("[OK] Database initialized")
        return True

    except Exception as e:
        print(f"[ERROR] Database initialization error: {e}")
        return False


def get_table_info():
    """
    Get column information for every table (used by the debug expander on
    the Import page).

    RETURNS:
        dict: table name -> list of (cid, name, type, notnull, default, pk)
    """
    try:
        conn = get_db_connection()
        cursor = conn.cursor()

        cursor.execute("""
            SELECT name FROM sqlite_master
            WHERE type='table' AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """)
        tables = [row[0] for row in cursor.fetchall()]

        table_info = {}
        for table in tables:
            cursor.execute(f"PRAGMA table_info({table})")
            table_info[table] = cursor.fetchall()

        conn.close()
        return table_info

    except Exception as e:
        print(f"[ERROR] Error getting table info: {e}")
        return {}
