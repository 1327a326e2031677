"""
Tests for login sessions, page access and the activity logger.
"""

import pytest

from rateease.activity import ActivityLogger
from rateease.auth import AuthenticationError, AuthService, PermissionDeniedError
from rateease.models import UserRole
from rateease.models.activity import ActivityLogBuilder
from rateease.repositories import ActivityLogRepository, PermissionsRepository, UserRepository
from rateease.services.storage import StorageError, StoreKey


@pytest.fixture
def auth(storage, clerk):
    users = UserRepository(storage)
    users.add(clerk)
    return AuthService(storage, users, PermissionsRepository(storage))


class TestLogin:
    """Tests for login and logout."""

    def test_login_default_admin(self, auth, storage):
        user = auth.login("admin@rateease.gov", "password")
        assert user.role == UserRole.ADMIN
        assert storage.load(StoreKey.LOGGED_IN_USER)["id"] == "user-0"
        assert auth.current_user().id == "user-0"

    def test_email_case_ignored(self, auth):
        assert auth.login("Clerk@RateEase.gov", "secret1").id == "user-clerk"

    def test_wrong_password(self, auth):
        with pytest.raises(AuthenticationError):
            auth.login("admin@rateease.gov", "wrong")
        assert auth.current_user() is None

    def test_unknown_email(self, auth):
        with pytest.raises(AuthenticationError):
            auth.login("nobody@rateease.gov", "password")

    def test_logout(self, auth):
        auth.login("admin@rateease.gov", "password")
        auth.logout()
        assert auth.current_user() is None

    def test_update_session_user(self, auth):
        user = auth.login("clerk@rateease.gov", "secret1")
        auth.update_session_user(user.model_copy(update={"name": "Renamed"}))
        assert auth.current_user().name == "Renamed"

    def test_update_session_ignores_other_users(self, auth, admin):
        auth.login("clerk@rateease.gov", "secret1")
        auth.update_session_user(admin.model_copy(update={"name": "Renamed"}))
        assert auth.current_user().name == "Data Clerk"


class TestPageAccess:
    """Tests for role checks."""

    def test_nobody_logged_in(self, auth):
        assert auth.can_access("/dashboard") is False
        with pytest.raises(AuthenticationError):
            auth.require_access("/dashboard")

    def test_data_entry_blocked_from_users(self, auth):
        auth.login("clerk@rateease.gov", "secret1")
        assert auth.can_access("/properties") is True
        with pytest.raises(PermissionDeniedError) as exc_info:
            auth.require_access("/users")
        assert exc_info.value.page_path == "/users"

    def test_admin_allowed(self, auth):
        auth.login("admin@rateease.gov", "password")
        assert auth.require_access("/settings").id == "user-0"


class _BrokenRepository(ActivityLogRepository):
    def append(self, entry):
        raise StorageError("disk full")


class TestActivityLogger:
    """Tests for the activity logger."""

    def test_log_action_persists(self, storage, admin):
        repo = ActivityLogRepository(storage)
        entry = ActivityLogger(repo).log_action(admin, "Bills Printed", "3 property bills")
        assert entry.user_id == "user-0"
        assert repo.list_logs()[0].details == "3 property bills"

    def test_refuses_without_user(self, storage):
        repo = ActivityLogRepository(storage)
        assert ActivityLogger(repo).log_action(None, "Anything") is None
        assert repo.list_logs() == []

    def test_log_entry_without_user(self, storage, admin):
        repo = ActivityLogRepository(storage)
        entry = ActivityLogBuilder.entry(admin, "X")
        assert ActivityLogger(repo).log_entry(None, entry) is None
        assert repo.list_logs() == []

    def test_storage_failure_does_not_raise(self, storage, admin):
        logger = ActivityLogger(_BrokenRepository(storage))
        assert logger.log(ActivityLogBuilder.entry(admin, "X")) is False

    def test_local_only(self, admin):
        assert ActivityLogger().log(ActivityLogBuilder.entry(admin, "X")) is True
