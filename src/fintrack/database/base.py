"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any, Iterable
from datetime import date

# Import entities directly to avoid pulling in domain services
from fintrack.domain.entities import (
    User,
    Account,
    CsvSchema,
    Import,
    InsertOutcome,
    Tag,
    TagCriteria,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for fintrack."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group writes into one atomic transaction.

        Writes made inside the block are committed together when it exits
        normally and rolled back together when it raises.
        """
        pass

    # User operations
    @abstractmethod
    def get_or_create_user(self, name: str) -> User:
        """Get a user by name, creating it on first use."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, user_id: int, name: str) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, user_id: int) -> list[Account]:
        """List a user's accounts."""
        pass

    # CSV schema operations
    @abstractmethod
    def create_csv_schema(
        self,
        user_id: int,
        name: str,
        transaction_data_start: int,
        date_column: str,
        balance_column: str,
        amount_column: Optional[str] = None,
        paid_in_column: Optional[str] = None,
        paid_out_column: Optional[str] = None,
        description_column: Optional[str] = None,
        date_format: Optional[str] = None,
    ) -> int:
        """Create a CSV schema. Returns schema ID."""
        pass

    @abstractmethod
    def get_csv_schema(self, schema_id: int) -> Optional[CsvSchema]:
        """Get CSV schema by ID."""
        pass

    @abstractmethod
    def get_csv_schema_by_name(self, user_id: int, name: str) -> Optional[CsvSchema]:
        """Get a user's CSV schema by name."""
        pass

    @abstractmethod
    def list_csv_schemas(self, user_id: int) -> list[CsvSchema]:
        """List a user's CSV schemas."""
        pass

    @abstractmethod
    def update_csv_schema(self, schema_id: int, values: dict[str, Any]) -> None:
        """Update CSV schema fields. Keys are entity field names."""
        pass

    @abstractmethod
    def delete_csv_schema(self, schema_id: int) -> None:
        """Delete a CSV schema."""
        pass

    @abstractmethod
    def count_imports_for_schema(self, schema_id: int) -> int:
        """Count imports that used a schema."""
        pass

    # Import operations
    @abstractmethod
    def create_import(self, user_id: int, account_id: int, csv_schema_id: int, filename: str) -> int:
        """Create a pending import. Returns import ID."""
        pass

    @abstractmethod
    def get_import(self, import_id: int) -> Optional[Import]:
        """Get import by ID."""
        pass

    @abstractmethod
    def list_imports(self, user_id: int) -> list[Import]:
        """List a user's imports, newest first."""
        pass

    @abstractmethod
    def update_import(self, import_id: int, values: dict[str, Any]) -> None:
        """Update import fields. Keys are entity field names."""
        pass

    @abstractmethod
    def delete_import(self, import_id: int) -> int:
        """Delete an import and its transactions. Returns transactions removed."""
        pass

    # Tag operations
    @abstractmethod
    def create_tag(self, user_id: int, name: str) -> int:
        """Create a tag. Returns tag ID."""
        pass

    @abstractmethod
    def get_tag(self, tag_id: int) -> Optional[Tag]:
        """Get tag by ID."""
        pass

    @abstractmethod
    def list_tags(self, user_id: int) -> list[Tag]:
        """List a user's tags."""
        pass

    @abstractmethod
    def add_tag_criteria(
        self,
        tag_id: int,
        description_match: Optional[str] = None,
        match_type: str = "contains",
        balance_match: Optional[int] = None,
        date_match: Optional[date] = None,
    ) -> int:
        """Add a matching rule to a tag. Returns criteria ID."""
        pass

    @abstractmethod
    def list_tag_criteria(self, user_id: int) -> list[TagCriteria]:
        """List criteria of all of a user's tags."""
        pass

    # Transaction operations
    @abstractmethod
    def transaction_exists(self, user_id: int, unique_hash: str) -> bool:
        """Check if a transaction with given hash exists for the user."""
        pass

    @abstractmethod
    def insert_transaction_if_absent(
        self,
        user_id: int,
        account_id: int,
        import_id: int,
        date: date,
        unique_hash: str,
        balance: Optional[int] = None,
        paid_in: Optional[int] = None,
        paid_out: Optional[int] = None,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        tag_ids: Iterable[int] = (),
    ) -> InsertOutcome:
        """Insert a transaction unless its hash is already stored.

        Returns CONFLICT when the unique hash constraint rejects the row;
        every other storage error propagates.
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: Optional[int] = None,
        import_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions, newest first, with optional filters."""
        pass
