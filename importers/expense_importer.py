# =============================================================================
# importers/expense_importer.py
# =============================================================================
# PURPOSE:
#   Imports supplier expense CSV files (accounts payable) into the database.
#
# EXPECTED FORMAT (column names are matched flexibly):
#   Date,Supplier,Supplier Type,Category,Description,Amount,Currency,Status
#   2025-03-02,Nile Star Cruises,cruise,accommodation,Cabin block,4200,EUR,pending
#   2025-03-04,Cairo Limo,transport,transportation,Airport transfer,85,USD,approved
#
# RULES:
#   - Date and Amount are required
#   - Negative amounts are skipped (expenses are never negative)
#   - Currency must be one of ALLOWED_CURRENCIES, otherwise DEFAULT_CURRENCY
#   - Status/category/supplier type outside our lists fall back to defaults
#
# DUPLICATE DETECTION:
#   Hash of date + amount + supplier + description. Importing the same file
#   twice adds nothing the second time.
# =============================================================================

from config import (
    ALLOWED_CURRENCIES,
    DEFAULT_CURRENCY,
    EXPENSE_CATEGORIES,
    EXPENSE_STATUSES,
    SUPPLIER_TYPES,
)
from database import check_expense_exists, create_expense
from .base import CsvImporter


class ExpenseImporter(CsvImporter):
    """
    Imports supplier expense CSVs.

    USAGE:
        importer = ExpenseImporter("expenses.csv")     # or an UploadedFile
        success, message, count = importer.import_expenses()
    """

    noun = "expenses"

    def import_expenses(self):
        return self.run()

    def _parse_rows(self, df):
        rows_to_insert = []
        seen_in_file = set()

        date_col = self._find_column(df, ['date', 'expense date', 'invoice date'])
        amount_col = self._find_column(df, ['amount', 'total', 'cost'])
        supplier_col = self._find_column(df, ['supplier', 'supplier name', 'vendor', 'payee'])
        type_col = self._find_column(df, ['supplier type', 'vendor type'])
        category_col = self._find_column(df, ['category', 'expense category'])
        desc_col = self._find_column(df, ['description', 'details', 'memo'])
        currency_col = self._find_column(df, ['currency', 'ccy', 'curr'])
        status_col = self._find_column(df, ['status'])
        reference_col = self._find_column(df, ['receipt', 'reference', 'invoice number'])

        if not date_col:
            self.errors.append("Missing required column: Date")
            return []
        if not amount_col:
            self.errors.append("Missing required column: Amount")
            return []

        print("[INFO] Column mapping:")
        print(f"   Date: {date_col}")
        print(f"   Amount: {amount_col}")
        print(f"   Supplier: {supplier_col}")
        print(f"   Supplier type: {type_col}")
        print(f"   Category: {category_col}")
        print(f"   Currency: {currency_col}")

        for idx, row in df.iterrows():
            row_num = idx + 2

            expense_date = self._parse_date(row, date_col)
            if not expense_date:
                self.skipped.append(f"Row {row_num}: Empty or invalid date")
                continue

            amount = self._parse_amount(row, amount_col)
            if amount is None:
                self.skipped.append(f"Row {row_num}: Missing amount")
                continue
            if amount < 0:
                self.skipped.append(f"Row {row_num}: Negative amount {amount}")
                continue

            supplier = self._get_cell_value(row, supplier_col)
            description = self._get_cell_value(row, desc_col)

            currency = DEFAULT_CURRENCY
            curr_val = self._get_cell_value(row, currency_col)
            if curr_val and curr_val.upper() in ALLOWED_CURRENCIES:
                currency = curr_val.upper()
            elif curr_val:
                print(f"[WARN] Row {row_num}: Unknown currency {curr_val}, using {DEFAULT_CURRENCY}")

            supplier_type = (self._get_cell_value(row, type_col) or "other").lower()
            if supplier_type not in SUPPLIER_TYPES:
                supplier_type = "other"

            category = (self._get_cell_value(row, category_col) or "other").lower()
            if category not in EXPENSE_CATEGORIES:
                category = "other"

            status = (self._get_cell_value(row, status_col) or "pending").lower()
            if status not in EXPENSE_STATUSES:
                status = "pending"

            key = (expense_date, amount, supplier, description)
            if key in seen_in_file or check_expense_exists(expense_date, amount, supplier, description):
                self.duplicates.append(f"Row {row_num}: {supplier or ''} {amount:.2f}")
                continue
            seen_in_file.add(key)

            rows_to_insert.append({
                'expense_date': expense_date,
                'amount': amount,
                'currency': currency,
                'supplier_name': supplier,
                'supplier_type': supplier_type,
                'category': category,
                'description': description,
                'status': status,
                'receipt_reference': self._get_cell_value(row, reference_col),
                'import_batch': self.batch_id,
            })

        print("\n[INFO] Parse Summary:")
        print(f"   Total rows: {len(df)}")
        print(f"   Valid: {len(rows_to_insert)}")
        print(f"   Duplicates: {len(self.duplicates)}")
        print(f"   Skipped: {len(self.skipped)}")

        return rows_to_insert

    def _insert_row(self, row):
        return create_expense(row, skip_duplicates=True)
