# =============================================================================
# importers/__init__.py
# =============================================================================
# PURPOSE:
#   Makes the importers folder a Python package and provides easy imports.
#
# WHAT ARE IMPORTERS?
#   Importers are classes that:
#   1. Read data from CSV files
#   2. Parse and validate the data
#   3. Skip duplicates
#   4. Save it to the database
#
# AVAILABLE IMPORTERS:
#   - ExpenseImporter: Supplier expense CSVs (accounts payable)
#   - RateImporter: Rate sheets (activities, meals, sleeping trains)
# =============================================================================

from .expense_importer import ExpenseImporter
from .rate_importer import RateImporter
