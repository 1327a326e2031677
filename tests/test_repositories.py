"""
Tests for the repositories over in-memory storage.
"""

import pytest

from rateease.models import Bill, Bop, PermissionPage, Property, User, UserRole
from rateease.models.activity import ActivityLogBuilder
from rateease.models.preferences import GeneralSettings, SmsSettings
from rateease.repositories import (
    ActivityLogRepository,
    BillRepository,
    BopRepository,
    PermissionsRepository,
    PropertyRepository,
    ProtectedUserError,
    SettingsRepository,
    UserRepository,
)
from rateease.services.storage import DuplicateError, NotFoundError, StoreKey


class TestPropertyRepository:
    """Tests for the property register."""

    def test_default_headers(self, storage):
        repo = PropertyRepository(storage)
        assert repo.headers == ["Owner Name", "Property No", "Town", "Rateable Value", "Total Payment"]

    def test_bop_default_headers(self, storage):
        repo = BopRepository(storage)
        assert repo.headers == ["Business Name", "Owner Name", "Phone Number", "Town", "Permit Fee", "Payment"]

    def test_add_assigns_id(self, storage):
        repo = PropertyRepository(storage)
        record = repo.add({"Owner Name": "Ama", "Town": "Ho"})
        assert record.id.startswith("prop-")
        assert record.created_at is not None
        assert repo.get(record.id).as_row()["Owner Name"] == "Ama"

    def test_add_ignores_supplied_id(self, storage):
        repo = PropertyRepository(storage)
        record = repo.add({"id": "mine", "Town": "Ho"})
        assert record.id != "mine"

    def test_ids_stay_unique_within_same_millisecond(self, storage):
        repo = PropertyRepository(storage)
        ids = {repo.add({"Town": str(i)}).id for i in range(5)}
        assert len(ids) == 5

    def test_set_records_replaces_everything(self, storage, overdue_property):
        repo = PropertyRepository(storage)
        repo.add({"Town": "Old"})
        repo.set_records([overdue_property], ["Owner Name", "Town"])
        assert [r.id for r in repo.list_records()] == ["prop-1"]
        assert repo.headers == ["Owner Name", "Town"]

    def test_update(self, storage, overdue_property):
        repo = PropertyRepository(storage)
        repo.set_records([overdue_property], [])
        repo.update(overdue_property.with_values({"Town": "Keta"}))
        assert repo.get("prop-1").as_row()["Town"] == "Keta"

    def test_update_missing_raises(self, storage, overdue_property):
        with pytest.raises(NotFoundError):
            PropertyRepository(storage).update(overdue_property)

    def test_delete(self, storage, overdue_property):
        repo = PropertyRepository(storage)
        repo.set_records([overdue_property], [])
        assert repo.delete("prop-1") is True
        assert repo.delete("prop-1") is False
        assert len(repo) == 0

    def test_delete_many(self, storage):
        repo = PropertyRepository(storage)
        a, b, c = (repo.add({"Town": t}) for t in ("A", "B", "C"))
        assert repo.delete_many([a.id, c.id, "missing"]) == 2
        assert [r.id for r in repo.list_records()] == [b.id]

    def test_delete_all_clears_headers(self, storage, overdue_property):
        repo = PropertyRepository(storage)
        repo.set_records([overdue_property], ["Owner Name"])
        repo.delete_all()
        assert repo.list_records() == []
        assert repo.headers == []

    def test_records_are_typed(self, storage, paid_bop):
        repo = BopRepository(storage)
        repo.set_records([paid_bop], [])
        assert isinstance(repo.list_records()[0], Bop)


class TestBillRepository:
    """Tests for the bill history."""

    def test_add_bills_appends(self, storage, overdue_property):
        repo = BillRepository(storage)
        repo.add_bills([Bill.from_record(overdue_property, 50)])
        repo.add_bills([Bill.from_record(overdue_property, 30)])
        bills = repo.list_bills()
        assert [b.total_amount_due for b in bills] == [50, 30]
        assert all(b.id.startswith("bill-") for b in bills)

    def test_snapshot_survives_record_changes(self, storage, overdue_property):
        properties = PropertyRepository(storage)
        properties.set_records([overdue_property], [])
        bills = BillRepository(storage)
        bills.add_bills([Bill.from_record(overdue_property, 50)])

        properties.update(overdue_property.with_values({"Owner Name": "Someone Else"}))

        assert bills.list_bills()[0].property_snapshot["Owner Name"] == "Kwame Mensah"

    def test_for_record(self, storage, overdue_property, paid_bop):
        repo = BillRepository(storage)
        repo.add_bills([Bill.from_record(overdue_property, 50), Bill.from_record(paid_bop, 0)])
        assert len(repo.for_record("bop-1")) == 1

    def test_empty_add_is_noop(self, storage):
        assert BillRepository(storage).add_bills([]) == []
        assert not storage.exists(StoreKey.BILLS)


class TestUserRepository:
    """Tests for users."""

    def test_default_admin_seeded(self, storage):
        users = UserRepository(storage).list_users()
        assert [u.id for u in users] == ["user-0"]

    def test_get_by_email_ignores_case(self, storage):
        assert UserRepository(storage).get_by_email("ADMIN@RateEase.gov").id == "user-0"

    def test_add_and_duplicate(self, storage, clerk):
        repo = UserRepository(storage)
        repo.add(clerk)
        assert repo.get("user-clerk").name == "Data Clerk"
        with pytest.raises(DuplicateError):
            repo.add(User(name="Copy", email="CLERK@rateease.gov"))

    def test_default_admin_cannot_be_deleted(self, storage):
        with pytest.raises(ProtectedUserError):
            UserRepository(storage).delete("user-0")

    def test_delete_user(self, storage, clerk):
        repo = UserRepository(storage)
        repo.add(clerk)
        assert repo.delete("user-clerk") is True
        assert repo.delete("user-clerk") is False

    def test_update_missing_raises(self, storage, clerk):
        with pytest.raises(NotFoundError):
            UserRepository(storage).update(clerk)

    def test_update_to_taken_email_raises(self, storage, clerk):
        repo = UserRepository(storage)
        repo.add(clerk)
        with pytest.raises(DuplicateError):
            repo.update(clerk.model_copy(update={"email": "admin@rateease.gov"}))


class TestPermissionsRepository:
    """Tests for role permissions."""

    def test_admin_always_allowed(self, storage):
        repo = PermissionsRepository(storage)
        repo.update({UserRole.ADMIN: {PermissionPage.USERS: False}})
        assert repo.has_permission(UserRole.ADMIN, "/users") is True

    def test_uses_first_path_segment(self, storage):
        repo = PermissionsRepository(storage)
        assert repo.has_permission(UserRole.DATA_ENTRY, "/bop-billing/print") is True
        assert repo.has_permission(UserRole.DATA_ENTRY, "/settings/sms") is False

    def test_unknown_pages_allowed(self, storage):
        repo = PermissionsRepository(storage)
        assert repo.has_permission(UserRole.VIEWER, "/activity-logs") is True
        assert repo.has_permission(UserRole.VIEWER, "/profile") is True

    def test_viewer_defaults(self, storage):
        repo = PermissionsRepository(storage)
        assert repo.has_permission(UserRole.VIEWER, "/dashboard") is True
        assert repo.has_permission(UserRole.VIEWER, "/properties") is False

    def test_update_is_merged_with_defaults(self, storage):
        repo = PermissionsRepository(storage)
        repo.update({UserRole.VIEWER: {PermissionPage.REPORTS: True}})
        table = repo.get()
        assert table[UserRole.VIEWER][PermissionPage.REPORTS] is True
        assert table[UserRole.VIEWER][PermissionPage.DASHBOARD] is True
        assert table[UserRole.DATA_ENTRY][PermissionPage.BILLING] is True

    def test_unknown_stored_entries_ignored(self, storage):
        storage.save(StoreKey.PERMISSIONS, {"Ghost": {"dashboard": True}, "Viewer": {"nowhere": True}})
        table = PermissionsRepository(storage).get()
        assert set(table) == set(UserRole)


class TestSettingsRepository:
    """Tests for saved preferences."""

    def test_defaults_when_empty(self, storage):
        assert SettingsRepository(storage).get().general.system_name == ""

    def test_save_section_keeps_others(self, storage):
        repo = SettingsRepository(storage)
        repo.save_section(SmsSettings(sms_api_url="https://sms.test", sms_sender_id="RateEase"))
        repo.save_section(GeneralSettings(assembly_name="Ho Municipal"))
        preferences = repo.get()
        assert preferences.general.assembly_name == "Ho Municipal"
        assert preferences.sms.sms_api_url == "https://sms.test"
        assert repo.sms().sms_sender_id == "RateEase"


class TestActivityLogRepository:
    """Tests for the activity log."""

    def test_newest_first(self, storage, admin):
        repo = ActivityLogRepository(storage)
        repo.append(ActivityLogBuilder.entry(admin, "First"))
        repo.append(ActivityLogBuilder.entry(admin, "Second"))
        assert [log.action for log in repo.list_logs()] == ["Second", "First"]
        assert [log.action for log in repo.list_logs(limit=1)] == ["Second"]

    def test_for_user(self, storage, admin, clerk):
        repo = ActivityLogRepository(storage)
        repo.append(ActivityLogBuilder.entry(admin, "A"))
        repo.append(ActivityLogBuilder.entry(clerk, "B"))
        assert [log.action for log in repo.for_user("user-clerk")] == ["B"]
