"""Import record lifecycle and history."""

from datetime import datetime, UTC
from typing import Any, Optional

from fintrack.database.base import Database
from fintrack.domain.entities import IMPORT_TRANSITIONS, Import, ImportStatus, Transaction
from fintrack.domain.errors import InvalidTransitionError, NotFoundError, import_not_found


class ImportService:
    """Service for the status machine and history of import runs.

    pending -> processing -> completed | failed. Completed and failed
    imports are history and never change again.
    """

    def __init__(self, db: Database):
        """Initialize import service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_import(self, user_id: int, account_id: int, csv_schema_id: int, filename: str) -> Import:
        import_id = self.db.create_import(
            user_id=user_id,
            account_id=account_id,
            csv_schema_id=csv_schema_id,
            filename=filename,
        )
        return self.require_import(import_id)

    def get_import(self, import_id: int) -> Optional[Import]:
        return self.db.get_import(import_id)

    def require_import(self, import_id: int, user_id: Optional[int] = None) -> Import:
        """Get an import, optionally checking its owner.

        Raises:
            NotFoundError: If missing or owned by another user
        """
        record = self.db.get_import(import_id)
        if record is None or (user_id is not None and record.user_id != user_id):
            raise NotFoundError(import_not_found(import_id))
        return record

    def list_imports(self, user_id: int) -> list[Import]:
        """List a user's imports, newest first."""
        return self.db.list_imports(user_id)

    def _transition(self, import_id: int, target: ImportStatus, **values: Any) -> Import:
        record = self.require_import(import_id)
        if target not in IMPORT_TRANSITIONS[record.status]:
            raise InvalidTransitionError(
                f"Import {import_id} cannot move from {record.status.value} to {target.value}"
            )
        self.db.update_import(import_id, {"status": target, **values})
        return self.require_import(import_id)

    def mark_started(self, import_id: int) -> Import:
        return self._transition(import_id, ImportStatus.PROCESSING, started_at=datetime.now(UTC))

    def mark_completed(self, import_id: int) -> Import:
        return self._transition(import_id, ImportStatus.COMPLETED, completed_at=datetime.now(UTC))

    def mark_failed(self, import_id: int, error_message: str) -> Import:
        return self._transition(
            import_id,
            ImportStatus.FAILED,
            error_message=error_message,
            completed_at=datetime.now(UTC),
        )

    def update_progress(
        self,
        import_id: int,
        processed_rows: int,
        imported_rows: int,
        duplicate_rows: int,
        total_rows: Optional[int] = None,
    ) -> None:
        """Store counters on an import that is still processing.

        Raises:
            InvalidTransitionError: If the import already finished
        """
        record = self.require_import(import_id)
        if record.status.is_terminal:
            raise InvalidTransitionError(f"Import {import_id} is {record.status.value} and cannot change")

        values: dict[str, Any] = {
            "processed_rows": processed_rows,
            "imported_rows": imported_rows,
            "duplicate_rows": duplicate_rows,
        }
        if total_rows is not None:
            values["total_rows"] = total_rows
        self.db.update_import(import_id, values)

    def get_import_stats(self, record: Import) -> dict[str, Any]:
        """Derive display statistics for an import.

        Returns:
            Dict with total_rows, processed_rows, imported_rows, duplicate_rows,
            error_rows and success_rate (percent, one decimal)
        """
        total_rows = record.total_rows if record.total_rows is not None else record.processed_rows
        processed_rows = record.processed_rows
        success_rate = (record.imported_rows / processed_rows) * 100 if processed_rows > 0 else 0

        return {
            "total_rows": total_rows,
            "processed_rows": processed_rows,
            "imported_rows": record.imported_rows,
            "duplicate_rows": record.duplicate_rows,
            "error_rows": total_rows - processed_rows,
            "success_rate": round(success_rate, 1),
        }

    def recent_transactions(self, import_id: int, limit: int = 10) -> list[Transaction]:
        return self.db.list_transactions(import_id=import_id, limit=limit)

    def delete_import(self, import_id: int, user_id: Optional[int] = None) -> int:
        """Delete an import together with every transaction it created.

        Returns:
            Number of transactions removed
        """
        self.require_import(import_id, user_id)
        return self.db.delete_import(import_id)
