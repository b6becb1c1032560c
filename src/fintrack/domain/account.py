"""Account and user domain services."""

from typing import Optional
from fintrack.database.base import Database
from fintrack.domain.entities import Account as AccountEntity, User as UserEntity
from fintrack.domain.errors import ConflictError, NotFoundError, ValidationError, account_not_found


class UserService:
    """Service for resolving the acting user."""

    def __init__(self, db: Database):
        self.db = db

    def get_or_create_user(self, name: str) -> UserEntity:
        """Return the user with this name, creating it on first use.

        Raises:
            ValidationError: If the name is blank
        """
        if not name or not name.strip():
            raise ValidationError("User name must not be empty")
        return self.db.get_or_create_user(name.strip())


class AccountService:
    """Service for managing a user's accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, user_id: int, name: str) -> int:
        """Create a new account.

        Args:
            user_id: Owner of the account
            name: Account name

        Returns:
            Account ID

        Raises:
            ConflictError: If the user already has an account with this name
        """
        for acc in self.db.list_accounts(user_id):
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        return self.db.create_account(user_id=user_id, name=name)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        return self.db.get_account(account_id)

    def list_accounts(self, user_id: int) -> list[AccountEntity]:
        return self.db.list_accounts(user_id)

    def resolve_account(self, user_id: int, account: str | int) -> AccountEntity:
        """Resolve an account name or ID owned by the user.

        Numeric strings are tried as IDs first, then as names.

        Raises:
            NotFoundError: If no matching account belongs to the user
        """
        if isinstance(account, int) or str(account).isdigit():
            found = self.db.get_account(int(account))
            if found is not None and found.user_id == user_id:
                return found

        for acc in self.db.list_accounts(user_id):
            if acc.name == str(account):
                return acc

        if isinstance(account, int):
            raise NotFoundError(account_not_found(account))
        raise NotFoundError(f"Account '{account}' not found")
