"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class EmptyFileError(ValidationError):
    """Uploaded file has no content."""


class UnsupportedFileTypeError(ValidationError):
    """Uploaded file does not have an accepted extension."""


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the size limit."""


class MalformedCsvError(ValidationError):
    """Uploaded file could not be read as CSV."""


class UnparseableDateError(ValidationError):
    """Date string matched no known format."""

    def __init__(self, raw: str):
        super().__init__(f"Unable to parse date: '{raw}'")
        self.raw = raw


class SchemaValidationError(ValidationError):
    """CSV schema failed validation.

    Attributes:
        field_errors: Mapping of schema field name to message
    """

    def __init__(self, field_errors: dict[str, str]):
        details = "; ".join(f"{field}: {message}" for field, message in field_errors.items())
        super().__init__(f"Invalid CSV schema: {details}")
        self.field_errors = field_errors


class InvalidTransitionError(ConflictError):
    """Import status change not allowed from its current state."""


class ImportFailedError(DomainError):
    """Finalizing an import failed and was rolled back."""

    def __init__(self, message: str, import_id: Optional[int] = None):
        super().__init__(message)
        self.import_id = import_id


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def schema_not_found(schema: int | str) -> str:
    """Return message for missing CSV schema by ID or name."""
    if isinstance(schema, int):
        return f"CSV schema {schema} not found"
    return f"CSV schema '{schema}' not found"


def import_not_found(import_id: int) -> str:
    """Return message for missing import."""
    return f"Import {import_id} not found"


def duplicate_schema_name(name: str) -> str:
    """Return message for a schema name already used by the user."""
    return f"You already have a CSV schema named '{name}'"


def unknown_tags(tag_ids: list[int]) -> str:
    """Return message for tags that do not belong to the user."""
    ids = ", ".join(str(tag_id) for tag_id in sorted(tag_ids))
    return f"Invalid tag selected: {ids}"


def schema_delete_blocked(schema_id: int, import_count: int) -> str:
    """Return message when a schema is still referenced by imports."""
    return (
        f"Cannot delete CSV schema {schema_id}: it is used by "
        f"{import_count} import{'s' if import_count != 1 else ''}. "
        "Delete those imports first."
    )
