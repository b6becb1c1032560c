"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the ORM schema can change
without touching the import pipeline.
"""

from fintrack.domain import entities as domain
from fintrack.database.models import (
    User as ORMUser,
    Account as ORMAccount,
    CsvSchema as ORMCsvSchema,
    Import as ORMImport,
    Tag as ORMTag,
    TagCriteria as ORMTagCriteria,
    Transaction as ORMTransaction,
)


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(id=orm_user.id, name=orm_user.name, created_at=orm_user.created_at)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        user_id=orm_account.user_id,
        name=orm_account.name,
        created_at=orm_account.created_at,
    )


def csv_schema_to_domain(orm_schema: ORMCsvSchema) -> domain.CsvSchema:
    """Convert SQLAlchemy CsvSchema model to domain CsvSchema entity."""
    return domain.CsvSchema(
        id=orm_schema.id,
        user_id=orm_schema.user_id,
        name=orm_schema.name,
        transaction_data_start=orm_schema.transaction_data_start,
        date_column=orm_schema.date_column,
        balance_column=orm_schema.balance_column,
        amount_column=orm_schema.amount_column,
        paid_in_column=orm_schema.paid_in_column,
        paid_out_column=orm_schema.paid_out_column,
        description_column=orm_schema.description_column,
        date_format=orm_schema.date_format,
        created_at=orm_schema.created_at,
    )


def import_to_domain(orm_import: ORMImport) -> domain.Import:
    """Convert SQLAlchemy Import model to domain Import entity."""
    return domain.Import(
        id=orm_import.id,
        user_id=orm_import.user_id,
        account_id=orm_import.account_id,
        csv_schema_id=orm_import.csv_schema_id,
        filename=orm_import.filename,
        status=domain.ImportStatus(orm_import.status),
        total_rows=orm_import.total_rows,
        processed_rows=orm_import.processed_rows,
        imported_rows=orm_import.imported_rows,
        duplicate_rows=orm_import.duplicate_rows,
        error_message=orm_import.error_message,
        started_at=orm_import.started_at,
        completed_at=orm_import.completed_at,
        created_at=orm_import.created_at,
    )


def tag_to_domain(orm_tag: ORMTag) -> domain.Tag:
    """Convert SQLAlchemy Tag model to domain Tag entity."""
    return domain.Tag(
        id=orm_tag.id,
        user_id=orm_tag.user_id,
        name=orm_tag.name,
        created_at=orm_tag.created_at,
    )


def tag_criteria_to_domain(orm_criteria: ORMTagCriteria) -> domain.TagCriteria:
    """Convert SQLAlchemy TagCriteria model to domain TagCriteria entity."""
    return domain.TagCriteria(
        id=orm_criteria.id,
        tag_id=orm_criteria.tag_id,
        description_match=orm_criteria.description_match,
        match_type=orm_criteria.match_type,
        balance_match=orm_criteria.balance_match,
        date_match=orm_criteria.date_match,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        account_id=orm_transaction.account_id,
        import_id=orm_transaction.import_id,
        date=orm_transaction.date,
        balance=orm_transaction.balance,
        paid_in=orm_transaction.paid_in,
        paid_out=orm_transaction.paid_out,
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        unique_hash=orm_transaction.unique_hash,
        tag_ids=tuple(sorted(tag.id for tag in orm_transaction.tags)),
        created_at=orm_transaction.created_at,
    )
