# =============================================================================
# importers/rate_importer.py
# =============================================================================
# PURPOSE:
#   Imports rate sheets (activities, meals, sleeping trains) from CSV.
#
# EXPECTED FORMAT (column names are matched flexibly):
#   Name | City | Supplier | Currency | Price EUR | Price Non-EUR | Notes
#
#   "Price EUR" is the rate for EU nationals, "Price Non-EUR" for everyone
#   else. A sheet with a single "Price" column uses it for both.
#
# DUPLICATE DETECTION:
#   Same rate_type + name + city (case-insensitive) is a duplicate.
# =============================================================================

from config import ALLOWED_CURRENCIES, DEFAULT_CURRENCY, RATE_TYPES
from database import check_rate_exists, create_rate
from .base import CsvImporter


class RateImporter(CsvImporter):
    """
    Imports one rate sheet for one rate type.

    USAGE:
        importer = RateImporter(uploaded_file, "activity")
        success, message, count = importer.import_rates()
    """

    noun = "rates"

    COLUMN_MAPPINGS = {
        'name': ['name', 'activity', 'meal', 'train', 'route', 'service', 'description'],
        'city': ['city', 'location', 'destination', 'from'],
        'supplier_name': ['supplier', 'supplier name', 'vendor', 'provider', 'operator'],
        'currency': ['currency', 'ccy', 'curr'],
        'price_eur': ['price eur', 'eur price', 'eu price', 'price eu', 'price', 'rate', 'cost'],
        'price_non_eur': ['price non-eur', 'price non eur', 'non-eur price', 'non eu price', 'foreigner price'],
        'notes': ['notes', 'remarks', 'comments'],
    }

    def __init__(self, source, rate_type):
        super().__init__(source)
        if rate_type not in RATE_TYPES:
            raise ValueError(f"Unknown rate type: {rate_type!r}")
        self.rate_type = rate_type

    def import_rates(self):
        return self.run()

    def _detect_columns(self, df):
        """
        Detect which columns contain which data.

        Exact names first, then partial matches; a column is only ever
        used for one field.

        RETURNS:
            dict: Mapping of our field names to actual column names
        """
        col_map = {}

        for field, possible_names in self.COLUMN_MAPPINGS.items():
            for col in df.columns:
                if str(col).lower().strip() in possible_names and col not in col_map.values():
                    col_map[field] = col
                    break

        for field, possible_names in self.COLUMN_MAPPINGS.items():
            if field in col_map:
                continue
            for col in df.columns:
                col_lower = str(col).lower().strip()
                if col in col_map.values():
                    continue
                if any(name in col_lower and len(name) > 2 for name in possible_names):
                    col_map[field] = col
                    break

        print("[INFO] Column mapping detected:")
        for field, col in col_map.items():
            print(f"   {field} -> {col}")

        return col_map

    def _parse_rows(self, df):
        rows_to_insert = []
        seen_in_file = set()

        col_map = self._detect_columns(df)
        if not col_map.get('name'):
            self.errors.append("Missing required column: Name")
            return []

        for idx, row in df.iterrows():
            row_num = idx + 2

            name = self._get_cell_value(row, col_map.get('name'))
            if not name:
                self.skipped.append(f"Row {row_num}: No name")
                continue

            city = self._get_cell_value(row, col_map.get('city'))

            price_eur = self._parse_amount(row, col_map.get('price_eur'))
            price_non_eur = self._parse_amount(row, col_map.get('price_non_eur'))
            if price_eur is None and price_non_eur is None:
                self.skipped.append(f"Row {row_num}: No price")
                continue
            if price_eur is None:
                price_eur = price_non_eur
            if price_non_eur is None:
                price_non_eur = price_eur
            if price_eur < 0 or price_non_eur < 0:
                self.skipped.append(f"Row {row_num}: Negative price")
                continue

            currency = DEFAULT_CURRENCY
            curr_val = self._get_cell_value(row, col_map.get('currency'))
            if curr_val and curr_val.upper() in ALLOWED_CURRENCIES:
                currency = curr_val.upper()

            key = (name.lower(), (city or "").lower())
            if key in seen_in_file or check_rate_exists(self.rate_type, name, city):
                self.duplicates.append(f"Row {row_num}: {name} ({city or '-'})")
                continue
            seen_in_file.add(key)

            rows_to_insert.append({
                'rate_type': self.rate_type,
                'name': name,
                'city': city,
                'supplier_name': self._get_cell_value(row, col_map.get('supplier_name')),
                'currency': currency,
                'price_eur': price_eur,
                'price_non_eur': price_non_eur,
                'notes': self._get_cell_value(row, col_map.get('notes')),
                'is_active': 1,
                'import_batch': self.batch_id,
            })

        print(f"[INFO] Parsed {len(rows_to_insert)} {self.rate_type} rates "
              f"({len(self.duplicates)} duplicates, {len(self.skipped)} skipped)")

        return rows_to_insert

    def _insert_row(self, row):
        return create_rate(row)
