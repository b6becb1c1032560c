"""Shared pytest fixtures for fintrack tests."""

import tempfile
import os
from pathlib import Path
import pytest

from fintrack.database.factories import create_sqlite_database
from fintrack.domain.account import AccountService, UserService
from fintrack.domain.csv_import import CSVImportService
from fintrack.domain.csv_schema import CSVSchemaService
from fintrack.domain.imports import ImportService
from fintrack.domain.tagging import TagService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user(temp_db):
    """Create the acting user."""
    return UserService(temp_db).get_or_create_user("alice")


@pytest.fixture
def other_user(temp_db):
    """Create a second user for ownership checks."""
    return UserService(temp_db).get_or_create_user("bob")


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def schema_service(temp_db):
    """Create a CSVSchemaService with a temporary database."""
    return CSVSchemaService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create an ImportService with a temporary database."""
    return ImportService(temp_db)


@pytest.fixture
def csv_import_service(temp_db):
    """Create a CSVImportService with a temporary database."""
    return CSVImportService(temp_db)


@pytest.fixture
def tag_service(temp_db):
    """Create a TagService with a temporary database."""
    return TagService(temp_db)


@pytest.fixture
def sample_account(account_service, user):
    """Create a sample account for testing."""
    account_id = account_service.create_account(user_id=user.id, name="Current Account")
    return account_service.get_account(account_id)


@pytest.fixture
def sample_schema(schema_service, user):
    """Schema for the single-amount fixture file: Date,Description,Amount,Balance."""
    schema_id = schema_service.create_schema(
        user_id=user.id,
        name="Test Bank",
        transaction_data_start=2,
        date_column="1",
        description_column="2",
        amount_column="3",
        balance_column="4",
    )
    return schema_service.get_schema(schema_id)


@pytest.fixture
def paid_in_out_schema(schema_service, user):
    """Schema using letters and separate columns: Date,Description,Paid In,Paid Out,Balance."""
    schema_id = schema_service.create_schema(
        user_id=user.id,
        name="Savings Bank",
        transaction_data_start=2,
        date_column="A",
        description_column="B",
        paid_in_column="C",
        paid_out_column="D",
        balance_column="E",
        date_format="DD/MM/YYYY",
    )
    return schema_service.get_schema(schema_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
