"""CSV schema validation, column resolution and management."""

import re
import string
from dataclasses import dataclass, replace
from typing import Optional, Union

from fintrack.database.base import Database
from fintrack.domain.entities import CsvSchema
from fintrack.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    SchemaValidationError,
    duplicate_schema_name,
    schema_delete_blocked,
    schema_not_found,
)

COLUMN_FIELDS = (
    "date_column",
    "balance_column",
    "amount_column",
    "paid_in_column",
    "paid_out_column",
    "description_column",
)

_LETTER_RE = re.compile(r"^[A-Za-z]$")


@dataclass(frozen=True)
class IndexRef:
    """Column given as a 1-indexed position."""

    position: int

    @property
    def index(self) -> int:
        return self.position - 1


@dataclass(frozen=True)
class LetterRef:
    """Column given as a spreadsheet letter, A to Z only."""

    letter: str

    @property
    def index(self) -> int:
        return string.ascii_uppercase.index(self.letter.upper())


ColumnRef = Union[IndexRef, LetterRef]


@dataclass(frozen=True)
class SchemaFieldError:
    """Validation failure for one schema field."""

    field: str
    message: str


@dataclass(frozen=True)
class ResolvedSchema:
    """A validated schema with every column reference as a zero-based index."""

    schema: CsvSchema
    transaction_data_start: int
    date_index: int
    balance_index: int
    amount_index: Optional[int]
    paid_in_index: Optional[int]
    paid_out_index: Optional[int]
    description_index: Optional[int]
    date_format: Optional[str]

    @property
    def uses_single_amount_column(self) -> bool:
        return self.amount_index is not None


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_column_ref(value: Union[str, int]) -> ColumnRef:
    """Parse a column reference into a tagged reference.

    Raises:
        ValueError: If the value is neither a positive integer nor a single letter
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid column reference: {value!r}")
    if isinstance(value, int):
        if value < 1:
            raise ValueError("Column number must be 1 or greater.")
        return IndexRef(value)

    text = str(value).strip()
    if re.fullmatch(r"-?\d+", text):
        position = int(text)
        if position < 1:
            raise ValueError("Column number must be 1 or greater.")
        return IndexRef(position)
    if _LETTER_RE.match(text):
        return LetterRef(text.upper())
    raise ValueError("Column must be a valid letter (A-Z) or number (1 or greater).")


class SchemaResolver:
    """Validate CSV schemas and turn column references into indexes."""

    def validate(self, schema: CsvSchema) -> list[SchemaFieldError]:
        """Check a schema for self-consistency.

        A schema may set both ``amount_column`` and paid-in/out columns;
        extraction then uses the single amount column.

        Returns:
            List of field errors, empty when the schema is valid
        """
        errors: list[SchemaFieldError] = []

        if _is_blank(schema.date_column):
            errors.append(SchemaFieldError("date_column", "Date column is required."))
        if _is_blank(schema.balance_column):
            errors.append(SchemaFieldError("balance_column", "Balance column is required."))

        has_amount = not _is_blank(schema.amount_column)
        has_paid_in_out = not _is_blank(schema.paid_in_column) or not _is_blank(schema.paid_out_column)
        if not has_amount and not has_paid_in_out:
            errors.append(
                SchemaFieldError(
                    "amount_configuration",
                    "Either amount column or paid_in/paid_out columns must be defined.",
                )
            )

        if schema.transaction_data_start is None or schema.transaction_data_start < 1:
            errors.append(
                SchemaFieldError(
                    "transaction_data_start",
                    "Transaction data start row must be 1 or greater.",
                )
            )

        for field in COLUMN_FIELDS:
            value = getattr(schema, field)
            if _is_blank(value):
                continue
            try:
                parse_column_ref(value)
            except ValueError as e:
                errors.append(SchemaFieldError(field, str(e)))

        return errors

    def resolve_index(self, column_ref: Union[str, int]) -> int:
        """Convert a column reference to a zero-based index ("1" -> 0, "C" -> 2)."""
        return parse_column_ref(column_ref).index

    def resolve(self, schema: CsvSchema) -> ResolvedSchema:
        """Validate a schema and resolve all its column references once.

        Raises:
            SchemaValidationError: If the schema is invalid
        """
        errors = self.validate(schema)
        if errors:
            raise SchemaValidationError({e.field: e.message for e in errors})

        def index_of(value) -> Optional[int]:
            return None if _is_blank(value) else self.resolve_index(value)

        return ResolvedSchema(
            schema=schema,
            transaction_data_start=schema.transaction_data_start,
            date_index=self.resolve_index(schema.date_column),
            balance_index=self.resolve_index(schema.balance_column),
            amount_index=index_of(schema.amount_column),
            paid_in_index=index_of(schema.paid_in_column),
            paid_out_index=index_of(schema.paid_out_column),
            description_index=index_of(schema.description_column),
            date_format=schema.date_format or None,
        )


class CSVSchemaService:
    """Service for managing a user's CSV schemas."""

    def __init__(self, db: Database):
        """Initialize CSV schema service.

        Args:
            db: Database instance
        """
        self.db = db
        self.resolver = SchemaResolver()

    def _validate(self, user_id: int, name: str, values: dict) -> None:
        candidate = CsvSchema(id=0, user_id=user_id, name=name, **values)
        errors = self.resolver.validate(candidate)
        if errors:
            raise SchemaValidationError({e.field: e.message for e in errors})

    @staticmethod
    def _clean(values: dict) -> dict:
        cleaned = {}
        for key, value in values.items():
            if key in COLUMN_FIELDS or key == "date_format":
                value = None if _is_blank(value) else str(value).strip()
            cleaned[key] = value
        return cleaned

    def create_schema(
        self,
        user_id: int,
        name: str,
        transaction_data_start: int,
        date_column: Optional[str],
        balance_column: Optional[str],
        amount_column: Optional[str] = None,
        paid_in_column: Optional[str] = None,
        paid_out_column: Optional[str] = None,
        description_column: Optional[str] = None,
        date_format: Optional[str] = None,
    ) -> int:
        """Create a new CSV schema.

        Returns:
            Schema ID

        Raises:
            SchemaValidationError: If the column configuration is invalid
            ConflictError: If the user already has a schema with this name
        """
        values = self._clean(
            {
                "transaction_data_start": transaction_data_start,
                "date_column": date_column,
                "balance_column": balance_column,
                "amount_column": amount_column,
                "paid_in_column": paid_in_column,
                "paid_out_column": paid_out_column,
                "description_column": description_column,
                "date_format": date_format,
            }
        )
        self._validate(user_id, name, values)

        if self.db.get_csv_schema_by_name(user_id, name) is not None:
            raise ConflictError(duplicate_schema_name(name))

        return self.db.create_csv_schema(user_id=user_id, name=name, **values)

    def get_schema(self, schema_id: int) -> Optional[CsvSchema]:
        return self.db.get_csv_schema(schema_id)

    def get_schema_by_name(self, user_id: int, name: str) -> Optional[CsvSchema]:
        return self.db.get_csv_schema_by_name(user_id, name)

    def require_schema(self, user_id: int, schema: str | int) -> CsvSchema:
        """Resolve a schema name or ID owned by the user.

        Raises:
            NotFoundError: If no such schema belongs to the user
        """
        if isinstance(schema, int) or str(schema).isdigit():
            found = self.db.get_csv_schema(int(schema))
            if found is not None and found.user_id == user_id:
                return found

        found = self.db.get_csv_schema_by_name(user_id, str(schema))
        if found is None:
            raise NotFoundError(schema_not_found(schema))
        return found

    def list_schemas(self, user_id: int) -> list[CsvSchema]:
        return self.db.list_csv_schemas(user_id)

    def update_schema(self, schema_id: int, **changes) -> None:
        """Update schema fields; a blank column value clears it.

        Raises:
            NotFoundError: If the schema does not exist
            SchemaValidationError: If the result is invalid
            ConflictError: If renaming onto another schema's name
        """
        schema = self.db.get_csv_schema(schema_id)
        if schema is None:
            raise NotFoundError(schema_not_found(schema_id))

        changes = self._clean(changes)
        updated = replace(schema, **changes)
        errors = self.resolver.validate(updated)
        if errors:
            raise SchemaValidationError({e.field: e.message for e in errors})

        if "name" in changes and changes["name"] != schema.name:
            existing = self.db.get_csv_schema_by_name(schema.user_id, changes["name"])
            if existing is not None and existing.id != schema_id:
                raise ConflictError(duplicate_schema_name(changes["name"]))

        self.db.update_csv_schema(schema_id, changes)

    def clone_schema(self, schema_id: int, new_name: str) -> int:
        """Copy a schema under a new name.

        Returns:
            ID of the new schema
        """
        schema = self.db.get_csv_schema(schema_id)
        if schema is None:
            raise NotFoundError(schema_not_found(schema_id))

        return self.create_schema(
            user_id=schema.user_id,
            name=new_name,
            transaction_data_start=schema.transaction_data_start,
            date_column=schema.date_column,
            balance_column=schema.balance_column,
            amount_column=schema.amount_column,
            paid_in_column=schema.paid_in_column,
            paid_out_column=schema.paid_out_column,
            description_column=schema.description_column,
            date_format=schema.date_format,
        )

    def delete_schema(self, schema_id: int) -> None:
        """Delete a schema that no import references.

        Raises:
            NotFoundError: If the schema does not exist
            DependencyError: If imports still reference the schema
        """
        if self.db.get_csv_schema(schema_id) is None:
            raise NotFoundError(schema_not_found(schema_id))

        import_count = self.db.count_imports_for_schema(schema_id)
        if import_count > 0:
            raise DependencyError(schema_delete_blocked(schema_id, import_count))

        self.db.delete_csv_schema(schema_id)
