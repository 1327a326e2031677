"""
Authentication and page access.

WARNING: Passwords are compared in plaintext, as stored. This is a demo
login for a single-office tool and is NOT secure.
"""

from typing import Optional

import structlog

from rateease.models.users import User
from rateease.repositories.users import PermissionsRepository, UserRepository
from rateease.services.storage import StorageInterface, StoreKey

logger = structlog.get_logger(__name__)


class AuthenticationError(Exception):
    """Wrong email or password."""
    pass


class PermissionDeniedError(Exception):
    """The current user's role may not open the page."""

    def __init__(self, page_path: str, role: Optional[str] = None):
        self.page_path = page_path
        self.role = role
        super().__init__(f"You do not have permission to view {page_path}.")


class AuthService:
    """
    Login session backed by the ``logged_in_user`` document.

    The session holds a copy of the user; profile edits must call
    ``update_session_user`` to refresh it.

    WARNING: Passwords are stored and compared in plaintext. This is a
    single-office tool, not a security boundary.
    """

    def __init__(
        self,
        storage: StorageInterface,
        users: UserRepository,
        permissions: PermissionsRepository,
    ):
        self._storage = storage
        self._users = users
        self._permissions = permissions

    def login(self, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: On unknown email or wrong password
        """
        user = self._users.get_by_email(email)
        if user is None or user.password != password:
            logger.warning("login_failed", email=email)
            raise AuthenticationError("Invalid email or password.")
        self._storage.save(StoreKey.LOGGED_IN_USER, user.model_dump(mode="json"))
        logger.info("login", user_id=user.id)
        return user

    def logout(self) -> None:
        self._storage.delete(StoreKey.LOGGED_IN_USER)
        logger.info("logout")

    def current_user(self) -> Optional[User]:
        raw = self._storage.load(StoreKey.LOGGED_IN_USER)
        return User.model_validate(raw) if raw else None

    def update_session_user(self, user: User) -> None:
        """Refresh the session copy if ``user`` is the one logged in."""
        current = self.current_user()
        if current and current.id == user.id:
            self._storage.save(StoreKey.LOGGED_IN_USER, user.model_dump(mode="json"))

    def can_access(self, page_path: str, user: Optional[User] = None) -> bool:
        user = user or self.current_user()
        if user is None:
            return False
        return self._permissions.has_permission(user.role, page_path)

    def require_access(self, page_path: str) -> User:
        """
        Raises:
            AuthenticationError: If nobody is logged in
            PermissionDeniedError: If the role may not open the page
        """
        user = self.current_user()
        if user is None:
            raise AuthenticationError("Please log in.")
        if not self._permissions.has_permission(user.role, page_path):
            raise PermissionDeniedError(page_path, user.role.value)
        return user
