"""Domain model entities for fintrack.

These are pure data classes representing business concepts, independent of
database schema. Persisted records are frozen; the preview-only candidate is
mutable because the review step edits its status and tags.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from typing import Any, Optional

from fintrack.domain.errors import ValidationError


class ImportStatus(str, Enum):
    """Lifecycle states of an import run."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportStatus.COMPLETED, ImportStatus.FAILED)


# Allowed status changes; terminal states have no outgoing edges
IMPORT_TRANSITIONS: dict[ImportStatus, frozenset[ImportStatus]] = {
    ImportStatus.PENDING: frozenset({ImportStatus.PROCESSING}),
    ImportStatus.PROCESSING: frozenset({ImportStatus.COMPLETED, ImportStatus.FAILED}),
    ImportStatus.COMPLETED: frozenset(),
    ImportStatus.FAILED: frozenset(),
}


class CandidateStatus(str, Enum):
    """Review decision for a previewed transaction."""

    PENDING = "pending"
    APPROVED = "approved"
    DISCARDED = "discarded"
    DUPLICATE = "duplicate"


class InsertOutcome(str, Enum):
    """Result of an optimistic insert against the unique hash constraint."""

    INSERTED = "inserted"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class User:
    """Owner of accounts, schemas, tags and imports."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    user_id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Tag:
    """User-defined label attachable to transactions."""

    id: int
    user_id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class TagCriteria:
    """Rule deciding whether a tag applies to a transaction.

    Every populated field must match for the criteria to match.
    """

    id: int
    tag_id: int
    description_match: Optional[str] = None
    match_type: str = "contains"
    balance_match: Optional[int] = None
    date_match: Optional[date] = None


@dataclass(frozen=True)
class CsvSchema:
    """Column mapping configuration for a bank's CSV export.

    Column references are kept as entered: a 1-indexed number ("3") or a
    single letter ("C").
    """

    id: int
    user_id: int
    name: str
    transaction_data_start: int
    date_column: Optional[str]
    balance_column: Optional[str]
    amount_column: Optional[str] = None
    paid_in_column: Optional[str] = None
    paid_out_column: Optional[str] = None
    description_column: Optional[str] = None
    date_format: Optional[str] = None
    created_at: Optional[datetime] = None

    def uses_single_amount_column(self) -> bool:
        return bool(self.amount_column)

    def uses_separate_amount_columns(self) -> bool:
        return bool(self.paid_in_column) or bool(self.paid_out_column)

    def column_mapping(self) -> dict[str, str]:
        """Return the effective field to column reference mapping."""
        mapping = {"date": self.date_column, "balance": self.balance_column}
        if self.uses_single_amount_column():
            mapping["amount"] = self.amount_column
        else:
            if self.paid_in_column:
                mapping["paid_in"] = self.paid_in_column
            if self.paid_out_column:
                mapping["paid_out"] = self.paid_out_column
        if self.description_column:
            mapping["description"] = self.description_column
        return mapping


@dataclass(frozen=True)
class Import:
    """One ingestion run of a CSV file into an account."""

    id: int
    user_id: int
    account_id: int
    csv_schema_id: int
    filename: str
    status: ImportStatus
    total_rows: Optional[int]
    processed_rows: int
    imported_rows: int
    duplicate_rows: int
    error_message: Optional[str]
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Committed transaction domain entity. Amounts are in minor units."""

    id: int
    user_id: int
    account_id: int
    import_id: int
    date: date
    balance: Optional[int]
    paid_in: Optional[int]
    paid_out: Optional[int]
    description: Optional[str]
    reference: Optional[str]
    unique_hash: str
    tag_ids: tuple[int, ...] = ()
    created_at: Optional[datetime] = None


@dataclass
class TransactionCandidate:
    """A row extracted during preview, awaiting review."""

    row_number: int
    date: str
    balance: Optional[int]
    paid_in: Optional[int]
    paid_out: Optional[int]
    description: str
    unique_hash: str
    reference: str = ""
    is_duplicate: bool = False
    status: CandidateStatus = CandidateStatus.PENDING
    tags: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "date": self.date,
            "balance": self.balance,
            "paid_in": self.paid_in,
            "paid_out": self.paid_out,
            "description": self.description,
            "reference": self.reference,
            "unique_hash": self.unique_hash,
            "is_duplicate": self.is_duplicate,
            "status": self.status.value,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransactionCandidate":
        """Rebuild a candidate from its serialized review form.

        Tags may be plain ids or objects with an ``id`` key.

        Raises:
            ValidationError: If the status or tags are malformed
        """
        try:
            status = CandidateStatus(data.get("status", CandidateStatus.PENDING.value))
        except ValueError:
            raise ValidationError(
                f"Invalid status for row {data.get('row_number')}: {data.get('status')!r}"
            )

        tags = []
        for tag in data.get("tags") or []:
            tag_id = tag.get("id") if isinstance(tag, dict) else tag
            if isinstance(tag_id, bool) or not str(tag_id).isdigit():
                raise ValidationError(f"Invalid tag for row {data.get('row_number')}: {tag!r}")
            tags.append(int(tag_id))

        return cls(
            row_number=int(data.get("row_number") or 0),
            date=data.get("date") or "",
            balance=data.get("balance"),
            paid_in=data.get("paid_in"),
            paid_out=data.get("paid_out"),
            description=data.get("description") or "",
            reference=data.get("reference") or "",
            unique_hash=data.get("unique_hash") or "",
            is_duplicate=bool(data.get("is_duplicate", False)),
            status=status,
            tags=tags,
        )


@dataclass(frozen=True)
class RowError:
    """A data row that could not be extracted."""

    row_number: int
    message: str
    raw_row: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "error": self.message,
            "row_data": list(self.raw_row),
        }


@dataclass
class PreviewResult:
    """Outcome of a dry-run extraction over a whole file."""

    candidates: list[TransactionCandidate]
    errors: list[RowError]

    @property
    def duplicate_count(self) -> int:
        return sum(1 for c in self.candidates if c.is_duplicate)

    @property
    def valid_count(self) -> int:
        return len(self.candidates) - self.duplicate_count

    @property
    def total_rows(self) -> int:
        return len(self.candidates) + len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactions": [c.to_dict() for c in self.candidates],
            "errors": [e.to_dict() for e in self.errors],
            "total_rows": self.total_rows,
            "duplicate_count": self.duplicate_count,
            "valid_count": self.valid_count,
        }


@dataclass(frozen=True)
class FilePreview:
    """First rows of a raw file, shown while mapping a schema's columns.

    ``date_formats`` maps 1-indexed column numbers to the date format
    detected in that column's sample rows.
    """

    headers: list[str]
    rows: list[list[str]]
    total_rows: int
    date_formats: dict[int, str] = field(default_factory=dict)
