# =============================================================================
# importers/base.py
# =============================================================================
# PURPOSE:
#   Shared plumbing for the CSV importers:
#   - reading the file (path or Streamlit UploadedFile)
#   - flexible column detection ("Supplier" / "Vendor" / "Supplier Name")
#   - safe cell and amount parsing
#   - the (success, message, count) result every importer returns
#
#   Subclasses implement _parse_rows() and _insert_row().
# =============================================================================

import pandas as pd
from datetime import datetime


class CsvImporter:
    """
    Base class for CSV importers.

    ATTRIBUTES:
        source: The file path or file object to import
        batch_id: Unique identifier for this import batch
        errors: Serious problems (couldn't parse row, missing columns)
        skipped: Rows we intentionally skipped (empty, invalid amount)
        duplicates: Rows that already exist in the database
    """

    # What we call the things being imported, for messages
    noun = "rows"

    def __init__(self, source):
        self.source = source
        self.batch_id = datetime.now().strftime("batch_%Y%m%d_%H%M%S")
        self.errors = []
        self.skipped = []
        self.duplicates = []

    def run(self):
        """
        Parse the CSV and import it.

        RETURNS:
            tuple: (success: bool, message: str, count: int)
        """
        try:
            df = pd.read_csv(self.source)

            print(f"[INFO] Read CSV with {len(df)} rows")
            print(f"   Columns found: {list(df.columns)}")

            rows_to_insert = self._parse_rows(df)

            message_parts = []
            if self.errors:
                message_parts.append(f"{len(self.errors)} errors")
            if self.skipped:
                message_parts.append(f"{len(self.skipped)} skipped")
            if self.duplicates:
                message_parts.append(f"{len(self.duplicates)} duplicates")

            if not rows_to_insert:
                if message_parts:
                    return False, f"No new {self.noun}. " + ", ".join(message_parts), 0
                return False, f"No valid {self.noun} found in CSV", 0

            count = sum(1 for row in rows_to_insert if self._insert_row(row))

            success_msg = f"Imported {count} {self.noun}"
            if message_parts:
                success_msg += " (" + ", ".join(message_parts) + ")"
            return True, success_msg, count

        except Exception as e:
            print(f"[ERROR] Import failed: {e}")
            return False, f"Import error: {str(e)}", 0

    def _parse_rows(self, df):
        raise NotImplementedError

    def _insert_row(self, row):
        raise NotImplementedError

    def _find_column(self, df, possible_names):
        """
        Find a column by matching against possible names.

        Exact (case-insensitive) matches win over partial ones; partial
        matches need a name longer than 2 characters so "in" doesn't match
        "Description".

        RETURNS:
            str or None: The actual column name if found
        """
        for col in df.columns:
            col_lower = str(col).lower().strip()
            for name in possible_names:
                if col_lower == name.lower():
                    return col

        for col in df.columns:
            col_lower = str(col).lower().strip()
            for name in possible_names:
                if name.lower() in col_lower and len(name) > 2:
                    return col

        return None

    def _get_cell_value(self, row, col_name):
        """Cell as a stripped string, or None for empty / NaN."""
        if not col_name or col_name not in row:
            return None

        value = row[col_name]
        if pd.isna(value):
            return None

        str_value = str(value).strip()
        if not str_value or str_value.lower() == 'nan':
            return None
        return str_value

    def _parse_amount(self, row, col_name):
        """
        Parse a monetary amount from a cell.

        RETURNS:
            float, or None if the cell is empty or not a number
        """
        value = self._get_cell_value(row, col_name)
        if not value:
            return None

        try:
            cleaned = value.replace(',', '')
            for symbol in ('E£', '€', '$', '£'):
                cleaned = cleaned.replace(symbol, '')
            return float(cleaned.strip())
        except (ValueError, TypeError):
            return None

    def _parse_date(self, row, col_name):
        """Cell as an ISO date string (YYYY-MM-DD), or None."""
        value = self._get_cell_value(row, col_name)
        if not value:
            return None
        parsed = pd.to_datetime(value, errors='coerce', dayfirst=False)
        if pd.isna(parsed):
            return None
        return parsed.date().isoformat()

    def get_import_summary(self):
        """
        Get a detailed summary of the import.

        RETURNS:
            dict: Summary with errors, skipped, and duplicates lists
        """
        return {
            'batch_id': self.batch_id,
            'errors': self.errors,
            'skipped': self.skipped,
            'duplicates': self.duplicates,
            'error_count': len(self.errors),
            'skipped_count': len(self.skipped),
            'duplicate_count': len(self.duplicates)
        }
