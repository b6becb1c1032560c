"""Turn raw CSV rows into transaction candidates."""

import hashlib
import json
from typing import Optional, Sequence, Union

from fintrack.domain.csv_schema import ResolvedSchema
from fintrack.domain.entities import RowError, TransactionCandidate
from fintrack.domain.errors import UnparseableDateError
from fintrack.utils.amount_parser import to_minor_units
from fintrack.utils.date_parser import DateParser
from fintrack.utils.encoding import BOM

ExtractionResult = Union[TransactionCandidate, RowError]


def generate_unique_hash(
    user_id: int,
    date: str,
    balance: Optional[int],
    paid_in: Optional[int] = None,
    paid_out: Optional[int] = None,
) -> str:
    """Fingerprint a transaction for duplicate detection.

    Description and reference are left out so re-exports of the same period
    with different description spacing or casing still collide.
    """
    data = {
        "user_id": user_id,
        "date": date,
        "balance": balance if balance is not None else 0,
        "paid_in": paid_in if paid_in is not None else 0,
        "paid_out": paid_out if paid_out is not None else 0,
    }
    return hashlib.sha256(json.dumps(data, separators=(",", ":")).encode("utf-8")).hexdigest()


def clean_cell(cell: Optional[str]) -> str:
    """Strip a stray BOM, invalid code points, NUL bytes and surrounding whitespace."""
    if cell is None:
        return ""
    if cell.startswith(BOM):
        cell = cell[1:]
    cell = cell.encode("utf-8", errors="replace").decode("utf-8")
    cell = cell.replace("\0", "")
    return cell.strip()


class RowExtractor:
    """Apply a resolved schema to single CSV rows.

    Args:
        date_parser: Parser used for the date column
    """

    def __init__(self, date_parser: Optional[DateParser] = None):
        self.date_parser = date_parser or DateParser()

    def extract(
        self,
        raw_row: Sequence[str],
        row_number: int,
        schema: ResolvedSchema,
        user_id: int,
    ) -> Optional[ExtractionResult]:
        """Extract one row.

        Args:
            raw_row: Cells as read from the CSV file
            row_number: 1-indexed row position in the file
            schema: Resolved schema
            user_id: Owner used in the duplicate fingerprint

        Returns:
            None for rows before the data start or blank rows, a RowError for
            rows that cannot be parsed, otherwise a candidate
        """
        if row_number < schema.transaction_data_start:
            return None

        row = [clean_cell(cell) for cell in raw_row]
        if not any(row):
            return None

        def cell(index: Optional[int]) -> str:
            if index is None or index >= len(row):
                return ""
            return row[index]

        def error(message: str) -> RowError:
            return RowError(row_number=row_number, message=message, raw_row=tuple(row))

        date_str = cell(schema.date_index)
        if not date_str:
            return error("Missing date")
        try:
            txn_date = self.date_parser.parse_iso(date_str, schema.date_format)
        except UnparseableDateError:
            return error(f"Invalid date format: {date_str}")

        balance_str = cell(schema.balance_index)
        balance = to_minor_units(balance_str)
        if balance is None and balance_str:
            return error(f"Invalid balance: {balance_str}")

        paid_in = None
        paid_out = None
        if schema.uses_single_amount_column:
            amount_str = cell(schema.amount_index)
            amount = to_minor_units(amount_str)
            if amount is None and amount_str:
                return error(f"Invalid amount: {amount_str}")
            if amount is not None:
                if amount >= 0:
                    paid_in = amount
                else:
                    paid_out = abs(amount)
        else:
            paid_in_str = cell(schema.paid_in_index)
            paid_in = to_minor_units(paid_in_str)
            if paid_in is None and paid_in_str:
                return error(f"Invalid paid in amount: {paid_in_str}")

            paid_out_str = cell(schema.paid_out_index)
            paid_out = to_minor_units(paid_out_str)
            if paid_out is None and paid_out_str:
                return error(f"Invalid paid out amount: {paid_out_str}")

        description = cell(schema.description_index)

        return TransactionCandidate(
            row_number=row_number,
            date=txn_date,
            balance=balance,
            paid_in=paid_in,
            paid_out=paid_out,
            description=description,
            unique_hash=generate_unique_hash(user_id, txn_date, balance, paid_in, paid_out),
        )
