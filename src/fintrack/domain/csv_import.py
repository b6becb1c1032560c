"""CSV import domain service.

Importing is two-phase. ``preview_transactions`` reads a file without
touching storage and returns candidates for review. The reviewed candidates
come back to ``import_reviewed_transactions``, which commits the approved
ones in a single unit of work.
"""

import csv
import io
import logging
from datetime import date
from pathlib import PurePath
from typing import Iterator, Optional, Sequence

from fintrack.database.base import Database
from fintrack.domain.csv_schema import ResolvedSchema, SchemaResolver
from fintrack.domain.duplicates import DuplicateDetector
from fintrack.domain.entities import (
    CandidateStatus,
    CsvSchema,
    FilePreview,
    Import,
    InsertOutcome,
    PreviewResult,
    RowError,
    TransactionCandidate,
)
from fintrack.domain.errors import (
    EmptyFileError,
    FileTooLargeError,
    ImportFailedError,
    MalformedCsvError,
    NotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
    account_not_found,
)
from fintrack.domain.imports import ImportService
from fintrack.domain.row_extractor import RowExtractor, clean_cell, generate_unique_hash
from fintrack.domain.tagging import TagService, TagSuggester
from fintrack.utils.date_parser import DateParser
from fintrack.utils.encoding import decode_bytes

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
ALLOWED_EXTENSIONS = frozenset({".csv", ".txt"})


def read_rows(text: str) -> Iterator[tuple[int, list[str]]]:
    """Yield ``(row_number, cells)`` for each logical CSV row, 1-indexed.

    Raises:
        MalformedCsvError: If the text cannot be parsed as CSV
    """
    # A single cell may be as large as the whole upload
    if csv.field_size_limit() < MAX_FILE_SIZE:
        csv.field_size_limit(MAX_FILE_SIZE)

    row_number = 0
    try:
        for row_number, row in enumerate(csv.reader(io.StringIO(text, newline="")), start=1):
            yield row_number, row
    except csv.Error as e:
        raise MalformedCsvError(f"Could not read CSV after row {row_number}: {e}") from e


def check_upload(content: bytes, filename: str) -> str:
    """Validate an uploaded file and decode it.

    Returns:
        Decoded text

    Raises:
        UnsupportedFileTypeError: If the extension is not .csv or .txt
        FileTooLargeError: If the file is larger than MAX_FILE_SIZE
        EmptyFileError: If the file has no content
    """
    extension = PurePath(filename).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported file type '{extension or filename}'. Upload a .csv or .txt file."
        )
    if len(content) > MAX_FILE_SIZE:
        raise FileTooLargeError(
            f"File is {len(content)} bytes; the limit is {MAX_FILE_SIZE} bytes"
        )

    text = decode_bytes(content)
    if not text.strip():
        raise EmptyFileError("The CSV file appears to be empty or invalid.")
    return text


class CSVImportService:
    """Service for previewing and importing CSV statements."""

    def __init__(
        self,
        db: Database,
        date_parser: Optional[DateParser] = None,
        tag_suggester: Optional[TagSuggester] = None,
    ):
        """Initialize CSV import service.

        Args:
            db: Database instance
            date_parser: Parser for date cells; defaults to the full format table
            tag_suggester: Optional source of tags to pre-select during preview
        """
        self.db = db
        self.date_parser = date_parser or DateParser()
        self.tag_suggester = tag_suggester
        self.resolver = SchemaResolver()
        self.extractor = RowExtractor(self.date_parser)
        self.duplicates = DuplicateDetector(db)
        self.import_service = ImportService(db)
        self.tag_service = TagService(db)

    def preview_transactions(
        self, content: bytes, filename: str, schema: CsvSchema, user_id: int
    ) -> PreviewResult:
        """Extract every data row without writing anything.

        Args:
            content: Raw file bytes
            filename: Original file name, used for the extension check
            schema: CSV schema to apply
            user_id: User the rows would be imported for

        Returns:
            Preview with candidates, row errors and counts

        Raises:
            ValidationError: For file-level or schema-level problems
        """
        text = check_upload(content, filename)
        resolved = self.resolver.resolve(schema)
        return self.preview_text(text, resolved, user_id)

    def preview_text(self, text: str, schema: ResolvedSchema, user_id: int) -> PreviewResult:
        """Run already-decoded text through the extractor."""
        candidates: list[TransactionCandidate] = []
        errors: list[RowError] = []

        for row_number, row in read_rows(text):
            result = self.extractor.extract(row, row_number, schema, user_id)
            if result is None:
                continue
            if isinstance(result, RowError):
                errors.append(result)
                continue

            result.is_duplicate = self.duplicates.exists(user_id, result.unique_hash)
            result.status = CandidateStatus.DUPLICATE if result.is_duplicate else CandidateStatus.PENDING
            if self.tag_suggester is not None and not result.is_duplicate:
                result.tags = self.tag_suggester.suggest(user_id, result)
            candidates.append(result)

        logger.info(
            "Previewed %d rows: %d candidates, %d errors",
            len(candidates) + len(errors),
            len(candidates),
            len(errors),
        )
        return PreviewResult(candidates=candidates, errors=errors)

    def detect_date_format(
        self, content: bytes, filename: str, column: str, data_start: int = 1, sample_size: int = 20
    ) -> Optional[str]:
        """Guess the date format used by one column of a file.

        Args:
            content: Raw file bytes
            filename: Original file name
            column: Column reference of the date column
            data_start: First data row, 1-indexed
            sample_size: Maximum number of rows to sample
        """
        text = check_upload(content, filename)
        index = self.resolver.resolve_index(column)
        samples = []
        for row_number, row in read_rows(text):
            if row_number < data_start or index >= len(row):
                continue
            samples.append(row[index])
            if len(samples) >= sample_size:
                break
        return self.date_parser.detect_format(samples)

    def preview_file(self, content: bytes, filename: str, rows: int = 20) -> FilePreview:
        """Show the header and first data rows of a file before a schema exists.

        The first row is taken as the header. Blank rows are skipped and not
        counted.

        Args:
            content: Raw file bytes
            filename: Original file name
            rows: Maximum number of data rows to return

        Returns:
            Cleaned header and rows, the data row count and per-column date formats
        """
        text = check_upload(content, filename)

        headers: Optional[list[str]] = None
        sample: list[list[str]] = []
        total_rows = 0
        for _, row in read_rows(text):
            cells = [clean_cell(cell) for cell in row]
            if not any(cells):
                continue
            if headers is None:
                headers = cells
                continue
            total_rows += 1
            if len(sample) < rows:
                sample.append(cells)

        width = max([len(headers or [])] + [len(row) for row in sample])
        date_formats = {}
        for index in range(width):
            detected = self.date_parser.detect_format(
                row[index] for row in sample if index < len(row)
            )
            if detected is not None:
                date_formats[index + 1] = detected

        logger.debug("Previewed %s: %d data rows, date columns %s", filename, total_rows, date_formats)
        return FilePreview(
            headers=headers or [],
            rows=sample,
            total_rows=total_rows,
            date_formats=date_formats,
        )

    def _validate_candidate(self, candidate: TransactionCandidate, user_id: int) -> str:
        """Check an approved candidate is still well-formed and return its hash.

        The hash is recomputed rather than trusted from the client.

        Raises:
            ValidationError: If the candidate's values are malformed
        """
        try:
            parsed = date.fromisoformat(candidate.date)
        except (TypeError, ValueError):
            parsed = None
        # The hash covers the text, so only canonical YYYY-MM-DD is accepted
        if parsed is None or parsed.isoformat() != candidate.date:
            raise ValidationError(f"Row {candidate.row_number}: invalid date '{candidate.date}'")

        for field in ("balance", "paid_in", "paid_out"):
            value = getattr(candidate, field)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ValidationError(f"Row {candidate.row_number}: invalid {field} '{value}'")

        unique_hash = generate_unique_hash(
            user_id, candidate.date, candidate.balance, candidate.paid_in, candidate.paid_out
        )
        if candidate.unique_hash and candidate.unique_hash != unique_hash:
            logger.warning(
                "Row %d: submitted hash does not match its values, using recomputed hash",
                candidate.row_number,
            )
        return unique_hash

    def import_reviewed_transactions(
        self,
        candidates: Sequence[TransactionCandidate],
        schema: CsvSchema,
        user_id: int,
        account_id: int,
        filename: str,
        total_rows: Optional[int] = None,
    ) -> Import:
        """Commit the approved candidates of a reviewed preview.

        Only ``approved`` candidates are considered. A storage conflict on the
        unique hash counts the row as a duplicate; any other failure rolls
        back every insert and marks the import failed.

        Args:
            candidates: Reviewed candidates
            schema: Schema the preview was produced with
            user_id: Owner of the import
            account_id: Target account, must belong to the user
            filename: Original file name
            total_rows: Rows seen at preview; defaults to len(candidates)

        Returns:
            The completed import

        Raises:
            NotFoundError: If the account does not belong to the user
            ValidationError: If a selected tag does not belong to the user
            ImportFailedError: If committing failed; nothing was imported
        """
        account = self.db.get_account(account_id)
        if account is None or account.user_id != user_id:
            raise NotFoundError(account_not_found(account_id))

        self.tag_service.verify_ownership(user_id, {tag for c in candidates for tag in c.tags})

        record = self.import_service.create_import(
            user_id=user_id,
            account_id=account_id,
            csv_schema_id=schema.id,
            filename=filename,
        )
        self.import_service.mark_started(record.id)

        approved = [c for c in candidates if c.status == CandidateStatus.APPROVED]
        imported_rows = 0
        duplicate_rows = 0

        try:
            with self.db.unit_of_work():
                for candidate in approved:
                    unique_hash = self._validate_candidate(candidate, user_id)

                    if candidate.is_duplicate or self.duplicates.exists(user_id, unique_hash):
                        duplicate_rows += 1
                        continue

                    outcome = self.db.insert_transaction_if_absent(
                        user_id=user_id,
                        account_id=account_id,
                        import_id=record.id,
                        date=date.fromisoformat(candidate.date),
                        balance=candidate.balance,
                        paid_in=candidate.paid_in,
                        paid_out=candidate.paid_out,
                        description=candidate.description or None,
                        reference=candidate.reference or None,
                        unique_hash=unique_hash,
                        tag_ids=candidate.tags,
                    )
                    if outcome is InsertOutcome.CONFLICT:
                        logger.warning(
                            "Duplicate transaction detected during import %d (row %d)",
                            record.id,
                            candidate.row_number,
                        )
                        duplicate_rows += 1
                        continue

                    imported_rows += 1

                self.import_service.update_progress(
                    record.id,
                    processed_rows=len(approved),
                    imported_rows=imported_rows,
                    duplicate_rows=duplicate_rows,
                    total_rows=total_rows if total_rows is not None else len(candidates),
                )
                completed = self.import_service.mark_completed(record.id)
        except Exception as e:
            logger.error(
                "CSV import finalization failed (import_id=%s user_id=%s schema_id=%s "
                "account_id=%s filename=%s): %s",
                record.id,
                user_id,
                schema.id,
                account_id,
                filename,
                e,
                exc_info=True,
            )
            self.import_service.mark_failed(record.id, str(e) or e.__class__.__name__)
            raise ImportFailedError(f"Import failed: {e}", import_id=record.id) from e

        logger.info(
            "Import %d completed: %d imported, %d duplicates",
            completed.id,
            imported_rows,
            duplicate_rows,
        )
        return completed
