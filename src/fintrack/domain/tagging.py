"""Tags, tag criteria and rule-based tag suggestions."""

from datetime import date
from typing import Iterable, Optional, Protocol

from fintrack.database.base import Database
from fintrack.domain.entities import Tag, TagCriteria, TransactionCandidate
from fintrack.domain.errors import ConflictError, NotFoundError, ValidationError, unknown_tags

MATCH_TYPES = ("exact", "contains", "starts_with", "ends_with")


def description_matches(description: str, pattern: str, match_type: str) -> bool:
    """Match a description; everything but ``exact`` ignores case."""
    if match_type == "exact":
        return description == pattern
    description = description.lower()
    pattern = pattern.lower()
    if match_type == "contains":
        return pattern in description
    if match_type == "starts_with":
        return description.startswith(pattern)
    if match_type == "ends_with":
        return description.endswith(pattern)
    return False


def criteria_matches(
    criteria: TagCriteria,
    description: Optional[str],
    balance: Optional[int],
    txn_date: Optional[str],
) -> bool:
    """Check plain transaction values against one criteria.

    All populated criteria fields must match, and at least one must be set.
    """
    checks = []
    if criteria.description_match:
        checks.append(
            description is not None
            and description_matches(description, criteria.description_match, criteria.match_type)
        )
    if criteria.balance_match is not None:
        checks.append(balance is not None and balance == criteria.balance_match)
    if criteria.date_match is not None:
        checks.append(txn_date is not None and criteria.date_match.isoformat() == txn_date)
    return bool(checks) and all(checks)


class TagSuggester(Protocol):
    """Anything that can propose tag ids for a previewed transaction."""

    def suggest(self, user_id: int, candidate: TransactionCandidate) -> list[int]:
        ...


class CriteriaTagSuggester:
    """Suggest tags whose stored criteria match a candidate."""

    def __init__(self, db: Database):
        self.db = db
        self._cache: dict[int, list[TagCriteria]] = {}

    def _criteria_for(self, user_id: int) -> list[TagCriteria]:
        if user_id not in self._cache:
            self._cache[user_id] = self.db.list_tag_criteria(user_id)
        return self._cache[user_id]

    def suggest(self, user_id: int, candidate: TransactionCandidate) -> list[int]:
        tag_ids: list[int] = []
        for criteria in self._criteria_for(user_id):
            if criteria.tag_id in tag_ids:
                continue
            if criteria_matches(criteria, candidate.description, candidate.balance, candidate.date):
                tag_ids.append(criteria.tag_id)
        return tag_ids


class TagService:
    """Service for managing tags and their criteria."""

    def __init__(self, db: Database):
        """Initialize tag service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_tag(self, user_id: int, name: str) -> int:
        """Create a tag.

        Raises:
            ConflictError: If the user already has a tag with this name
        """
        if any(tag.name == name for tag in self.db.list_tags(user_id)):
            raise ConflictError(f"You already have a tag named '{name}'")
        return self.db.create_tag(user_id=user_id, name=name)

    def list_tags(self, user_id: int) -> list[Tag]:
        return self.db.list_tags(user_id)

    def add_criteria(
        self,
        tag_id: int,
        description_match: Optional[str] = None,
        match_type: str = "contains",
        balance_match: Optional[int] = None,
        date_match: Optional[date] = None,
    ) -> int:
        """Attach a matching rule to a tag.

        Raises:
            NotFoundError: If the tag does not exist
            ValidationError: If the rule is empty or the match type unknown
        """
        if self.db.get_tag(tag_id) is None:
            raise NotFoundError(f"Tag {tag_id} not found")
        if match_type not in MATCH_TYPES:
            raise ValidationError(
                f"Invalid match type '{match_type}'. Must be one of: {', '.join(MATCH_TYPES)}"
            )
        if not description_match and balance_match is None and date_match is None:
            raise ValidationError("Tag criteria needs a description, balance or date to match")

        return self.db.add_tag_criteria(
            tag_id=tag_id,
            description_match=description_match,
            match_type=match_type,
            balance_match=balance_match,
            date_match=date_match,
        )

    def list_criteria(self, user_id: int) -> list[TagCriteria]:
        return self.db.list_tag_criteria(user_id)

    def verify_ownership(self, user_id: int, tag_ids: Iterable[int]) -> None:
        """Ensure every tag id belongs to the user.

        Raises:
            ValidationError: If any tag is unknown or owned by someone else
        """
        owned = {tag.id for tag in self.db.list_tags(user_id)}
        foreign = set(tag_ids) - owned
        if foreign:
            raise ValidationError(unknown_tags(list(foreign)))
