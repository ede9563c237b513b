# =============================================================================
# test_import.py - Import expense and rate CSVs into a test DB
# =============================================================================
# Writes small CSV files to a temporary folder and runs them through the
# importers without the UI: flexible column names, skipped rows, and
# duplicates on a second import of the same file.
#
# Run:  python test_import.py     (or: pytest test_import.py)
# =============================================================================

import os
import shutil
import sys
import tempfile

# Add the project directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
TEST_DIR = tempfile.mkdtemp(prefix="tour_ops_import_")
TEST_DB = os.path.join(TEST_DIR, "tour_ops_import_test.db")

from database import init_db, load_expenses, load_rates
from importers import ExpenseImporter, RateImporter

EXPENSE_CSV = """Date,Vendor,Supplier Type,Category,Description,Amount,Currency,Status
2025-03-02,Nile Star Cruises,cruise,accommodation,Cabin block,"4,200.00",EUR,pending
2025-03-04,Cairo Limo,transport,transportation,Airport transfer,85,usd,approved
2025-03-04,Cairo Limo,transport,transportation,Airport transfer,85,USD,approved
2025-03-05,Felucca Co,boat,sightseeing,Sunset sail,-40,EUR,pending
,Missing Date,other,other,No date,10,EUR,pending
2025-03-06,Temple Tickets,activity,entrance_fees,Karnak,,EUR,pending
2025-03-07,Mystery Supplier,other,other,Odd currency,12.5,CHF,lost
"""

RATE_CSV = """Activity,Location,Provider,Price EUR,Price Non-EUR,Remarks
Karnak Temple tour,Luxor,Luxor Guides Co,35,45,
Felucca sunset sail,Aswan,,20,,1 hour
Felucca sunset sail,Aswan,,25,,again
,Luxor,,10,10,no name
Hot air balloon,Luxor,Sky Tours,,,no price
"""


def write_csv(name, text):
    path = os.path.join(TEST_DIR, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def fresh_db():
    config.DB_PATH = TEST_DB
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)
    assert init_db(), "init_db failed"


def test_expense_import():
    fresh_db()
    path = write_csv("expenses.csv", EXPENSE_CSV)

    importer = ExpenseImporter(path)
    success, message, count = importer.import_expenses()
    print(f"    Result: {message}")
    assert success, message
    assert count == 3, count

    summary = importer.get_import_summary()
    assert summary['duplicate_count'] == 1, summary['duplicates']
    assert summary['skipped_count'] == 3, summary['skipped']
    assert any("Negative amount" in line for line in summary['skipped'])

    expenses = load_expenses()
    assert len(expenses) == 3
    by_supplier = {row['supplier_name']: row for row in expenses.to_dict('records')}
    assert by_supplier['Nile Star Cruises']['amount'] == 4200.0
    assert by_supplier['Cairo Limo']['currency'] == "USD"
    assert by_supplier['Cairo Limo']['status'] == "approved"
    # Unknown currency/status fall back to defaults
    assert by_supplier['Mystery Supplier']['currency'] == config.DEFAULT_CURRENCY
    assert by_supplier['Mystery Supplier']['status'] == "pending"
    assert all(str(n).startswith("EXP-") for n in expenses['expense_number'])

    # Same file again adds nothing
    again = ExpenseImporter(path)
    success, message, count = again.import_expenses()
    print(f"    Re-import: {message}")
    assert not success and count == 0
    assert again.get_import_summary()['duplicate_count'] == 4
    assert len(load_expenses()) == 3


def test_expense_import_missing_columns():
    fresh_db()
    path = write_csv("no_amount.csv", "Date,Supplier\n2025-03-02,Nile Star Cruises\n")

    importer = ExpenseImporter(path)
    success, message, count = importer.import_expenses()
    assert not success and count == 0
    assert importer.errors == ["Missing required column: Amount"]


def test_rate_import():
    fresh_db()
    path = write_csv("activities.csv", RATE_CSV)

    importer = RateImporter(path, "activity")
    success, message, count = importer.import_rates()
    print(f"    Result: {message}")
    assert success, message
    assert count == 2, count

    summary = importer.get_import_summary()
    assert summary['duplicate_count'] == 1
    assert summary['skipped_count'] == 2

    rates = {row['name']: row for row in load_rates(rate_type="activity").to_dict('records')}
    assert rates['Karnak Temple tour']['price_eur'] == 35.0
    assert rates['Karnak Temple tour']['price_non_eur'] == 45.0
    assert rates['Karnak Temple tour']['supplier_name'] == "Luxor Guides Co"
    # One price column filled: used for both
    assert rates['Felucca sunset sail']['price_non_eur'] == 20.0

    # A different sheet type doesn't see these as duplicates
    meals = RateImporter(path, "meal")
    success, message, count = meals.import_rates()
    assert success and count == 2
    assert len(load_rates()) == 4

    success, message, count = RateImporter(path, "activity").import_rates()
    assert not success and count == 0


def test_rate_import_rejects_unknown_type():
    try:
        RateImporter("unused.csv", "hotel")
    except ValueError:
        return
    raise AssertionError("RateImporter accepted an unknown rate type")


def main():
    print("=" * 60)
    print("TOUR OPS - IMPORT TEST")
    print("=" * 60)

    checks = [
        test_expense_import,
        test_expense_import_missing_columns,
        test_rate_import,
        test_rate_import_rejects_unknown_type,
    ]
    try:
        for i, check in enumerate(checks, start=1):
            print(f"\n[{i}] {check.__name__}...")
            check()
            print("    OK")
    finally:
        shutil.rmtree(TEST_DIR, ignore_errors=True)

    print("\n" + "=" * 60)
    print("IMPORT TEST PASSED")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except AssertionError as e:
        print(f"\nFAIL: {e}")
        sys.exit(1)
