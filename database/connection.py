# =============================================================================
# database/connection.py
# =============================================================================
# PURPOSE:
#   The ONLY file that knows how to open the database. Everything else calls
#   get_db_connection().
#
# NOTES:
#   - The path is read from config at call time, not at import time, so a
#     test can point config.DB_PATH at a temporary file before the first
#     query runs.
#   - Foreign keys are OFF by default in SQLite; we turn them on for every
#     connection.
# =============================================================================

import sqlite3

import config


def get_db_connection():
    """
    Create and return a connection to the SQLite database.

    USAGE:
        conn = get_db_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM itineraries")
            rows = cursor.fetchall()
        finally:
            conn.close()

    For writes that must succeed or fail together, use the connection as a
    context manager - sqlite3 commits on success and rolls back on error:

        conn = get_db_connection()
        with conn:
            conn.execute("UPDATE ...")
            conn.execute("UPDATE ...")
        conn.close()

    RETURNS:
        sqlite3.Connection
    """
    conn = sqlite3.connect(config.DB_PATH)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
