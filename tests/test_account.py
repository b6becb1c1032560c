"""Tests for users and accounts."""

import pytest

from fintrack.domain.account import UserService
from fintrack.domain.errors import ConflictError, NotFoundError, ValidationError


def test_get_or_create_user(temp_db):
    """Users are created once and found again by name."""
    service = UserService(temp_db)

    first = service.get_or_create_user("alice")
    again = service.get_or_create_user(" alice ")

    assert first.id == again.id
    assert first.name == "alice"


def test_blank_user_name(temp_db):
    """A user needs a name."""
    with pytest.raises(ValidationError):
        UserService(temp_db).get_or_create_user("  ")


def test_create_account(account_service, user):
    """Accounts belong to a user."""
    account_id = account_service.create_account(user_id=user.id, name="Savings")

    account = account_service.get_account(account_id)
    assert account.name == "Savings"
    assert account.user_id == user.id


def test_account_names_unique_per_user(account_service, user, other_user):
    """The same name may be used by different users only."""
    account_service.create_account(user_id=user.id, name="Savings")
    account_service.create_account(user_id=other_user.id, name="Savings")

    with pytest.raises(ConflictError):
        account_service.create_account(user_id=user.id, name="Savings")

    assert [a.name for a in account_service.list_accounts(user.id)] == ["Savings"]


def test_resolve_account(account_service, sample_account, user, other_user):
    """Accounts resolve by ID or name for their owner only."""
    assert account_service.resolve_account(user.id, sample_account.id).id == sample_account.id
    assert account_service.resolve_account(user.id, str(sample_account.id)).id == sample_account.id
    assert account_service.resolve_account(user.id, "Current Account").id == sample_account.id

    with pytest.raises(NotFoundError):
        account_service.resolve_account(other_user.id, sample_account.id)
    with pytest.raises(NotFoundError):
        account_service.resolve_account(user.id, "Missing")


def test_numeric_account_name(account_service, user):
    """A numeric name is found when no account has that ID."""
    account_id = account_service.create_account(user_id=user.id, name="2024")

    assert account_service.resolve_account(user.id, "2024").id == account_id
