"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime

from fintrack.database.factories import create_sqlite_database
from fintrack.domain import entities
from fintrack.domain.entities import InsertOutcome


@pytest.fixture
def import_record(temp_db, user, sample_account, sample_schema):
    import_id = temp_db.create_import(user.id, sample_account.id, sample_schema.id, "jan.csv")
    return temp_db.get_import(import_id)


def insert(db, user, account, record, unique_hash, **values):
    return db.insert_transaction_if_absent(
        user_id=user.id,
        account_id=account.id,
        import_id=record.id,
        date=values.pop("date", date(2024, 1, 15)),
        unique_hash=unique_hash,
        **values,
    )


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db, user):
        """Test that get_account returns a domain Account entity."""
        account_id = temp_db.create_account(user_id=user.id, name="Test Account")

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.id == account_id
        assert account.name == "Test Account"
        assert isinstance(account.created_at, datetime)

    def test_get_missing_returns_none(self, temp_db):
        """Lookups of unknown IDs return None."""
        assert temp_db.get_account(999) is None
        assert temp_db.get_csv_schema(999) is None
        assert temp_db.get_import(999) is None
        assert temp_db.get_tag(999) is None
        assert temp_db.get_user(999) is None

    def test_get_import_returns_domain_model(self, import_record):
        """Imports come back with an ImportStatus, not a raw string."""
        assert isinstance(import_record, entities.Import)
        assert import_record.status is entities.ImportStatus.PENDING
        assert import_record.filename == "jan.csv"

    def test_update_import_accepts_enum(self, temp_db, import_record):
        """Enum values are stored by their value."""
        temp_db.update_import(import_record.id, {"status": entities.ImportStatus.PROCESSING})

        assert temp_db.get_import(import_record.id).status is entities.ImportStatus.PROCESSING

    def test_csv_schema_by_name(self, temp_db, sample_schema, user):
        """Schemas are looked up by owner and name."""
        found = temp_db.get_csv_schema_by_name(user.id, "Test Bank")

        assert isinstance(found, entities.CsvSchema)
        assert found.id == sample_schema.id
        assert temp_db.get_csv_schema_by_name(user.id + 1, "Test Bank") is None


class TestTransactionInsert:
    """Tests for conflict-aware transaction inserts."""

    def test_insert_and_conflict(self, temp_db, user, sample_account, import_record):
        """A second insert with the same hash reports a conflict."""
        assert insert(temp_db, user, sample_account, import_record, "h1", paid_out=100) is InsertOutcome.INSERTED
        assert insert(temp_db, user, sample_account, import_record, "h1", paid_out=100) is InsertOutcome.CONFLICT

        assert temp_db.transaction_exists(user.id, "h1")
        assert len(temp_db.list_transactions(user_id=user.id)) == 1

    def test_same_hash_for_other_user(self, temp_db, user, other_user, sample_account, import_record):
        """Hash uniqueness is scoped to the user."""
        insert(temp_db, user, sample_account, import_record, "h1")

        outcome = insert(temp_db, other_user, sample_account, import_record, "h1")

        assert outcome is InsertOutcome.INSERTED
        assert not temp_db.transaction_exists(other_user.id + 1, "h1")

    def test_conflict_keeps_unit_of_work_usable(self, temp_db, user, sample_account, import_record):
        """A conflict inside a unit of work only discards that one row."""
        with temp_db.unit_of_work():
            assert insert(temp_db, user, sample_account, import_record, "a") is InsertOutcome.INSERTED
            assert insert(temp_db, user, sample_account, import_record, "a") is InsertOutcome.CONFLICT
            assert insert(temp_db, user, sample_account, import_record, "b") is InsertOutcome.INSERTED

        hashes = {t.unique_hash for t in temp_db.list_transactions(user_id=user.id)}
        assert hashes == {"a", "b"}

    def test_unit_of_work_rolls_back(self, temp_db, user, sample_account, import_record):
        """An exception in a unit of work discards every write in it."""
        with pytest.raises(RuntimeError):
            with temp_db.unit_of_work():
                insert(temp_db, user, sample_account, import_record, "a")
                temp_db.update_import(import_record.id, {"imported_rows": 1})
                raise RuntimeError("stop")

        assert temp_db.list_transactions(user_id=user.id) == []
        assert temp_db.get_import(import_record.id).imported_rows == 0

    def test_rollback_survives_reconnect(self, temp_db, user, sample_account, import_record):
        """Rolled back rows are not on disk either."""
        with pytest.raises(RuntimeError):
            with temp_db.unit_of_work():
                insert(temp_db, user, sample_account, import_record, "a")
                raise RuntimeError("stop")
        insert(temp_db, user, sample_account, import_record, "b")
        temp_db.disconnect()

        fresh = create_sqlite_database(database_path=temp_db.database_path)
        try:
            assert {t.unique_hash for t in fresh.list_transactions(user_id=user.id)} == {"b"}
        finally:
            fresh.disconnect()

    def test_transaction_tags(self, temp_db, user, sample_account, import_record):
        """Tags are linked on insert and reported as sorted ids."""
        second = temp_db.create_tag(user.id, "B")
        first = temp_db.create_tag(user.id, "A")

        insert(temp_db, user, sample_account, import_record, "h1", tag_ids=[first, second])

        (txn,) = temp_db.list_transactions(import_id=import_record.id)
        assert isinstance(txn, entities.Transaction)
        assert txn.tag_ids == tuple(sorted([first, second]))

    def test_list_transactions_filters(self, temp_db, user, sample_account, sample_schema, import_record):
        """Transactions filter by import and are ordered newest first."""
        other_id = temp_db.create_import(user.id, sample_account.id, sample_schema.id, "feb.csv")
        insert(temp_db, user, sample_account, import_record, "a", date=date(2024, 1, 1))
        insert(temp_db, user, sample_account, import_record, "b", date=date(2024, 1, 3))
        insert(temp_db, user, sample_account, temp_db.get_import(other_id), "c", date=date(2024, 2, 1))

        assert [t.unique_hash for t in temp_db.list_transactions(import_id=import_record.id)] == ["b", "a"]
        assert [t.unique_hash for t in temp_db.list_transactions(user_id=user.id, limit=1)] == ["c"]
