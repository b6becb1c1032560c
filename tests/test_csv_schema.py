"""Tests for CSV schema validation, resolution and management."""

import pytest

from fintrack.domain.csv_schema import (
    IndexRef,
    LetterRef,
    SchemaResolver,
    parse_column_ref,
)
from fintrack.domain.entities import CsvSchema
from fintrack.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    SchemaValidationError,
)


def make_schema(**overrides) -> CsvSchema:
    values = {
        "id": 1,
        "user_id": 1,
        "name": "Bank",
        "transaction_data_start": 1,
        "date_column": "1",
        "balance_column": "2",
        "amount_column": "3",
    }
    values.update(overrides)
    return CsvSchema(**values)


class TestColumnRefs:
    """Tests for column reference parsing."""

    @pytest.mark.parametrize(
        "ref, index",
        [("1", 0), ("3", 2), (12, 11), ("A", 0), ("c", 2), ("Z", 25), (" B ", 1)],
    )
    def test_resolve_index(self, ref, index):
        """Numbers are 1-indexed and letters map A to 0."""
        assert SchemaResolver().resolve_index(ref) == index

    def test_tagged_refs(self):
        """Parsed references keep their kind."""
        assert parse_column_ref("4") == IndexRef(4)
        assert parse_column_ref("d") == LetterRef("D")

    @pytest.mark.parametrize("ref", ["0", "-1", 0, "AA", "1A", "", "?", True])
    def test_invalid_refs(self, ref):
        """Zero, negatives, multi-letter and other text are rejected."""
        with pytest.raises(ValueError):
            parse_column_ref(ref)


class TestSchemaResolver:
    """Tests for schema validation and resolution."""

    def test_valid_single_amount_schema(self):
        """A schema with date, balance and amount is valid."""
        assert SchemaResolver().validate(make_schema()) == []

    def test_valid_paid_in_out_schema(self):
        """Separate paid in/out columns satisfy the amount requirement."""
        schema = make_schema(amount_column=None, paid_in_column="C", paid_out_column="D")
        assert SchemaResolver().validate(schema) == []

    def test_one_sided_paid_columns_are_enough(self):
        """Only a paid out column still counts as an amount configuration."""
        schema = make_schema(amount_column=None, paid_out_column="4")
        assert SchemaResolver().validate(schema) == []

    def test_missing_amount_configuration(self):
        """Without any amount column the schema is invalid."""
        errors = SchemaResolver().validate(make_schema(amount_column=None))

        assert [e.field for e in errors] == ["amount_configuration"]

    def test_missing_required_columns(self):
        """Date and balance columns are required."""
        errors = SchemaResolver().validate(make_schema(date_column="", balance_column=None))

        assert {e.field for e in errors} == {"date_column", "balance_column"}

    def test_bad_data_start_and_column(self):
        """Every failing field is reported, not just the first."""
        errors = SchemaResolver().validate(
            make_schema(transaction_data_start=0, description_column="AB")
        )

        assert {e.field for e in errors} == {"transaction_data_start", "description_column"}

    def test_resolve_returns_indexes(self):
        """Resolution converts every reference to a zero-based index."""
        schema = make_schema(
            date_column="A", balance_column="E", amount_column=None,
            paid_in_column="3", paid_out_column="D", description_column="B",
            date_format="DD/MM/YYYY",
        )

        resolved = SchemaResolver().resolve(schema)

        assert resolved.date_index == 0
        assert resolved.balance_index == 4
        assert resolved.amount_index is None
        assert resolved.paid_in_index == 2
        assert resolved.paid_out_index == 3
        assert resolved.description_index == 1
        assert resolved.date_format == "DD/MM/YYYY"
        assert not resolved.uses_single_amount_column

    def test_single_amount_wins_when_both_configured(self):
        """With both modes set, the single amount column is used."""
        schema = make_schema(paid_in_column="4", paid_out_column="5")

        resolved = SchemaResolver().resolve(schema)

        assert resolved.uses_single_amount_column
        assert schema.column_mapping() == {"date": "1", "balance": "2", "amount": "3"}

    def test_resolve_invalid_raises(self):
        """Resolving an invalid schema raises with per-field messages."""
        with pytest.raises(SchemaValidationError) as excinfo:
            SchemaResolver().resolve(make_schema(date_column="0"))

        assert "date_column" in excinfo.value.field_errors


class TestCSVSchemaService:
    """Tests for schema persistence rules."""

    def test_create_and_get(self, schema_service, user):
        """Created schemas round-trip through storage."""
        schema_id = schema_service.create_schema(
            user_id=user.id,
            name="Bank",
            transaction_data_start=2,
            date_column=" A ",
            balance_column="D",
            amount_column="C",
            description_column="",
        )

        schema = schema_service.get_schema(schema_id)

        assert schema.name == "Bank"
        assert schema.user_id == user.id
        assert schema.date_column == "A"
        assert schema.description_column is None
        assert schema.created_at is not None

    def test_create_invalid_schema(self, schema_service, user):
        """Invalid configurations are not stored."""
        with pytest.raises(SchemaValidationError):
            schema_service.create_schema(
                user_id=user.id,
                name="Broken",
                transaction_data_start=1,
                date_column="1",
                balance_column="2",
            )

        assert schema_service.list_schemas(user.id) == []

    def test_duplicate_name_per_user(self, schema_service, sample_schema, user, other_user):
        """Names are unique per user, not globally."""
        with pytest.raises(ConflictError):
            schema_service.create_schema(
                user_id=user.id, name=sample_schema.name, transaction_data_start=1,
                date_column="1", balance_column="2", amount_column="3",
            )

        other_id = schema_service.create_schema(
            user_id=other_user.id, name=sample_schema.name, transaction_data_start=1,
            date_column="1", balance_column="2", amount_column="3",
        )
        assert other_id != sample_schema.id

    def test_require_schema_by_name_or_id(self, schema_service, sample_schema, user, other_user):
        """Schemas resolve by name or ID, only for their owner."""
        assert schema_service.require_schema(user.id, "Test Bank").id == sample_schema.id
        assert schema_service.require_schema(user.id, str(sample_schema.id)).id == sample_schema.id

        with pytest.raises(NotFoundError):
            schema_service.require_schema(other_user.id, sample_schema.id)
        with pytest.raises(NotFoundError):
            schema_service.require_schema(user.id, "Nope")

    def test_numeric_name_not_shadowed_by_foreign_id(self, schema_service, sample_schema, user, other_user):
        """A numeric name is found even when that ID belongs to someone else."""
        numeric_name = str(sample_schema.id)
        own_id = schema_service.create_schema(
            user_id=other_user.id, name=numeric_name, transaction_data_start=1,
            date_column="1", balance_column="2", amount_column="3",
        )

        assert schema_service.require_schema(other_user.id, numeric_name).id == own_id
        assert schema_service.require_schema(user.id, numeric_name).id == sample_schema.id

    def test_update_schema(self, schema_service, sample_schema):
        """Updates are validated and blank values clear optional columns."""
        schema_service.update_schema(sample_schema.id, description_column="", date_format="YYYY-MM-DD")

        updated = schema_service.get_schema(sample_schema.id)
        assert updated.description_column is None
        assert updated.date_format == "YYYY-MM-DD"

    def test_update_to_invalid_schema(self, schema_service, sample_schema):
        """Removing the only amount column is rejected."""
        with pytest.raises(SchemaValidationError):
            schema_service.update_schema(sample_schema.id, amount_column="")

        assert schema_service.get_schema(sample_schema.id).amount_column == "3"

    def test_rename_onto_existing_name(self, schema_service, sample_schema, paid_in_out_schema):
        """Renaming cannot collide with another schema."""
        with pytest.raises(ConflictError):
            schema_service.update_schema(paid_in_out_schema.id, name=sample_schema.name)

    def test_clone_schema(self, schema_service, paid_in_out_schema):
        """Cloning copies every column under a new name."""
        clone_id = schema_service.clone_schema(paid_in_out_schema.id, "Savings Copy")

        clone = schema_service.get_schema(clone_id)
        assert clone.name == "Savings Copy"
        assert clone.column_mapping() == paid_in_out_schema.column_mapping()
        assert clone.date_format == paid_in_out_schema.date_format

    def test_delete_unused_schema(self, schema_service, sample_schema):
        """A schema no import references can be deleted."""
        schema_service.delete_schema(sample_schema.id)

        assert schema_service.get_schema(sample_schema.id) is None

    def test_delete_schema_in_use(self, schema_service, import_service, sample_schema, sample_account, user):
        """A schema referenced by an import cannot be deleted."""
        import_service.create_import(user.id, sample_account.id, sample_schema.id, "jan.csv")

        with pytest.raises(DependencyError) as excinfo:
            schema_service.delete_schema(sample_schema.id)

        assert "1 import" in str(excinfo.value)
        assert schema_service.get_schema(sample_schema.id) is not None


def test_amount_mode_helpers():
    """The entity reports which amount columns it defines."""
    single = make_schema()
    split = make_schema(amount_column=None, paid_in_column="3", paid_out_column="4")

    assert single.uses_single_amount_column()
    assert not single.uses_separate_amount_columns()
    assert split.uses_separate_amount_columns()
    assert not split.uses_single_amount_column()
    assert split.column_mapping() == {"date": "1", "balance": "2", "paid_in": "3", "paid_out": "4"}


def test_get_schema_by_name(schema_service, sample_schema, user, other_user):
    """Name lookups are scoped to the owner."""
    assert schema_service.get_schema_by_name(user.id, "Test Bank").id == sample_schema.id
    assert schema_service.get_schema_by_name(other_user.id, "Test Bank") is None
