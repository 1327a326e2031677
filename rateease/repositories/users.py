"""
User and role-permission repositories.
"""

from typing import Optional

import structlog

from rateease.models.users import (
    DEFAULT_ADMIN,
    DEFAULT_PERMISSIONS,
    PermissionPage,
    RolePermissions,
    User,
    UserRole,
)
from rateease.services.storage import (
    DuplicateError,
    NotFoundError,
    StorageInterface,
    StoreKey,
)

logger = structlog.get_logger(__name__)


class ProtectedUserError(Exception):
    """The default admin cannot be deleted."""
    pass


class UserRepository:
    """
    Application users.

    The default admin is seeded on first use and can be edited but never
    deleted, so there is always a way back in.
    """

    def __init__(self, storage: StorageInterface):
        self._storage = storage

    def list_users(self) -> list[User]:
        raw = self._storage.load(StoreKey.USERS)
        if raw is None:
            return [DEFAULT_ADMIN.model_copy()]
        return [User.model_validate(item) for item in raw]

    def _save(self, users: list[User]) -> None:
        self._storage.save(StoreKey.USERS, [u.model_dump(mode="json") for u in users])

    def get(self, user_id: str) -> Optional[User]:
        for user in self.list_users():
            if user.id == user_id:
                return user
        return None

    def get_by_email(self, email: str) -> Optional[User]:
        wanted = (email or "").strip().lower()
        for user in self.list_users():
            if user.email.lower() == wanted:
                return user
        return None

    def add(self, user: User) -> User:
        """
        Raises:
            DuplicateError: If another user already has this email
        """
        if self.get_by_email(user.email):
            raise DuplicateError(f"A user with email {user.email} already exists.")
        users = self.list_users()
        users.append(user)
        self._save(users)
        logger.info("user_added", user_id=user.id, role=user.role.value)
        return user

    def update(self, user: User) -> User:
        """
        Raises:
            NotFoundError: If the user doesn't exist
            DuplicateError: If the new email belongs to someone else
        """
        other = self.get_by_email(user.email)
        if other and other.id != user.id:
            raise DuplicateError(f"A user with email {user.email} already exists.")
        users = self.list_users()
        for index, existing in enumerate(users):
            if existing.id == user.id:
                users[index] = user
                self._save(users)
                return user
        raise NotFoundError(f"User not found: {user.id}")

    def delete(self, user_id: str) -> bool:
        """
        Raises:
            ProtectedUserError: If asked to delete the default admin
        """
        users = self.list_users()
        target = next((u for u in users if u.id == user_id), None)
        if target is None:
            return False
        if target.email.lower() == DEFAULT_ADMIN.email:
            raise ProtectedUserError("The default admin user cannot be deleted.")
        self._save([u for u in users if u.id != user_id])
        logger.info("user_deleted", user_id=user_id)
        return True


class PermissionsRepository:
    """Which role may open which page."""

    def __init__(self, storage: StorageInterface):
        self._storage = storage

    def get(self) -> RolePermissions:
        permissions = {role: dict(pages) for role, pages in DEFAULT_PERMISSIONS.items()}
        stored = self._storage.load(StoreKey.PERMISSIONS) or {}
        for role_name, pages in stored.items():
            try:
                role = UserRole(role_name)
            except ValueError:
                continue
            for page_name, allowed in pages.items():
                try:
                    permissions[role][PermissionPage(page_name)] = bool(allowed)
                except ValueError:
                    continue
        return permissions

    def update(self, permissions: RolePermissions) -> None:
        self._storage.save(
            StoreKey.PERMISSIONS,
            {
                UserRole(role).value: {PermissionPage(p).value: bool(v) for p, v in pages.items()}
                for role, pages in permissions.items()
            },
        )
        logger.info("permissions_updated")

    def has_permission(self, role: UserRole, page_path: str) -> bool:
        """
        Whether ``role`` may open ``page_path`` (e.g. "/bop-billing/print").

        Admins may open everything. Pages outside the permission table are
        open to everyone. Anything else defaults to denied.
        """
        if UserRole(role) == UserRole.ADMIN:
            return True

        segments = page_path.split("/")
        segment = segments[1] if len(segments) > 1 else ""
        try:
            page = PermissionPage(segment)
        except ValueError:
            return True

        return self.get().get(UserRole(role), {}).get(page, False)
