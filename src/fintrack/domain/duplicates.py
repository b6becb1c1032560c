"""Duplicate detection against committed transactions."""

from fintrack.database.base import Database


class DuplicateDetector:
    """Look up transaction fingerprints already stored for a user.

    Only stored rows are consulted, which includes rows already written by
    the current unit of work. The storage uniqueness constraint remains the
    final authority at insert time.
    """

    def __init__(self, db: Database):
        self.db = db

    def exists(self, user_id: int, unique_hash: str) -> bool:
        return self.db.transaction_exists(user_id, unique_hash)
