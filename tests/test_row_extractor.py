"""Tests for turning CSV rows into transaction candidates."""

import pytest

from fintrack.domain.csv_schema import SchemaResolver
from fintrack.domain.entities import CandidateStatus, CsvSchema, RowError, TransactionCandidate
from fintrack.domain.row_extractor import RowExtractor, clean_cell, generate_unique_hash


def resolve(**overrides):
    values = {
        "id": 1,
        "user_id": 7,
        "name": "Bank",
        "transaction_data_start": 1,
        "date_column": "1",
        "balance_column": "2",
        "amount_column": "3",
    }
    values.update(overrides)
    return SchemaResolver().resolve(CsvSchema(**values))


@pytest.fixture
def extractor():
    return RowExtractor()


def test_single_amount_debit(extractor):
    """A negative amount becomes paid_out in pennies."""
    result = extractor.extract(["2024-01-15", "100.00", "-25.50"], 1, resolve(), user_id=7)

    assert isinstance(result, TransactionCandidate)
    assert result.date == "2024-01-15"
    assert result.balance == 10000
    assert result.paid_out == 2550
    assert result.paid_in is None
    assert result.status == CandidateStatus.PENDING
    assert result.unique_hash == generate_unique_hash(7, "2024-01-15", 10000, None, 2550)


def test_single_amount_credit(extractor):
    """A positive amount becomes paid_in."""
    result = extractor.extract(["2024-01-16", "£1,100.00", "£1,000.00"], 1, resolve(), user_id=7)

    assert result.paid_in == 100000
    assert result.paid_out is None
    assert result.balance == 110000


def test_paid_in_out_columns(extractor):
    """Separate columns are read as given, with letters and a date hint."""
    schema = resolve(
        date_column="A", description_column="B", amount_column=None,
        paid_in_column="C", paid_out_column="D", balance_column="E",
        date_format="DD/MM/YYYY",
    )

    result = extractor.extract(["05/01/2024", "GYM", "", "25.00", "575.00"], 2, schema, user_id=7)

    assert result.date == "2024-01-05"
    assert result.description == "GYM"
    assert result.paid_in is None
    assert result.paid_out == 2500
    assert result.balance == 57500
    assert result.row_number == 2


def test_rows_before_data_start_skipped(extractor):
    """Rows before the data start are skipped even when they look valid."""
    schema = resolve(transaction_data_start=3)
    rows = [
        ["2024-01-01", "1.00", "1.00"],
        ["2024-01-02", "2.00", "1.00"],
        ["2024-01-03", "3.00", "1.00"],
        ["2024-01-04", "4.00", "1.00"],
        ["2024-01-05", "5.00", "1.00"],
    ]

    results = [extractor.extract(row, number, schema, 7) for number, row in enumerate(rows, start=1)]

    assert results[0] is None
    assert results[1] is None
    assert [r.date for r in results[2:]] == ["2024-01-03", "2024-01-04", "2024-01-05"]


def test_blank_row_skipped(extractor):
    """Rows that are entirely blank produce nothing."""
    assert extractor.extract(["", "  ", ""], 4, resolve(), 7) is None
    assert extractor.extract([], 4, resolve(), 7) is None


def test_missing_date(extractor):
    """A row without a date is an error."""
    result = extractor.extract(["", "10.00", "1.00"], 3, resolve(), 7)

    assert isinstance(result, RowError)
    assert result.message == "Missing date"
    assert result.row_number == 3


def test_invalid_date(extractor):
    """An unparseable date is reported with the raw value."""
    result = extractor.extract(["Total", "10.00", "1.00"], 9, resolve(), 7)

    assert result.message == "Invalid date format: Total"
    assert result.to_dict() == {
        "row_number": 9,
        "error": "Invalid date format: Total",
        "row_data": ["Total", "10.00", "1.00"],
    }


def test_invalid_amounts(extractor):
    """Malformed money cells are row errors."""
    assert extractor.extract(["2024-01-15", "abc", "1.00"], 1, resolve(), 7).message == "Invalid balance: abc"
    assert extractor.extract(["2024-01-15", "1.00", "x"], 1, resolve(), 7).message == "Invalid amount: x"

    schema = resolve(amount_column=None, paid_in_column="3", paid_out_column="4")
    result = extractor.extract(["2024-01-15", "1.00", "", "??"], 1, schema, 7)
    assert result.message == "Invalid paid out amount: ??"


def test_blank_money_cells_are_null(extractor):
    """Empty balance and amount cells become None; short rows count as blank."""
    result = extractor.extract(["2024-01-15", "", ""], 1, resolve(), 7)

    assert result.balance is None
    assert result.paid_in is None
    assert result.paid_out is None

    short = extractor.extract(["2024-01-15"], 1, resolve(description_column="5"), 7)
    assert short.description == ""
    assert short.balance is None


def test_cells_are_cleaned(extractor):
    """BOM, NUL bytes and padding are removed from cells."""
    schema = resolve(description_column="4")

    result = extractor.extract(["\ufeff2024-01-15", " 10.00 ", "1.00", " SHOP\0 "], 1, schema, 7)

    assert result.date == "2024-01-15"
    assert result.description == "SHOP"
    assert clean_cell(None) == ""


def test_hash_ignores_description(extractor):
    """The fingerprint depends on user, date and money only."""
    first = extractor.extract(["2024-01-15", "10.00", "-1.00", "Shop A"], 1, resolve(description_column="4"), 7)
    second = extractor.extract(["2024-01-15", "10.00", "-1.00", "shop  a"], 5, resolve(description_column="4"), 7)
    other_user = extractor.extract(["2024-01-15", "10.00", "-1.00", "Shop A"], 1, resolve(description_column="4"), 8)

    assert first.unique_hash == second.unique_hash
    assert first.unique_hash != other_user.unique_hash


def test_hash_is_stable():
    """Null money values hash like zero, and the digest is a sha256 hex string."""
    digest = generate_unique_hash(1, "2024-01-15", None, 0, None)

    assert digest == generate_unique_hash(1, "2024-01-15", 0, None, 0)
    assert len(digest) == 64
    assert digest != generate_unique_hash(1, "2024-01-16", 0, 0, 0)
