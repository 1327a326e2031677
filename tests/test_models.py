"""
Tests for RateEase

Test strategy:
1. Unit tests for individual components (models, resolver, forms)
2. Integration tests for flows (with in-memory storage)
3. No real network calls in tests (httpx MockTransport, fake sheets)
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from rateease.models import (
    DEFAULT_ADMIN,
    DEFAULT_PERMISSIONS,
    ActivityLog,
    ActivityLogBuilder,
    Bill,
    BillType,
    Bop,
    IntegrationSettings,
    Payment,
    PaymentMethod,
    PermissionPage,
    Preferences,
    Property,
    SmsSettings,
    UserRole,
)
from rateease.models.preferences import AppearanceSettings, extract_sheet_id


class TestRecordModels:
    """Tests for property and BOP records."""

    def test_columns_kept_as_typed(self):
        record = Property.model_validate({"id": "p1", "Name of Owner": "Ama", "Town": "Ho"})
        assert record.columns == ["Name of Owner", "Town"]
        assert record.as_row() == {"id": "p1", "Name of Owner": "Ama", "Town": "Ho"}

    def test_row_excludes_payments(self):
        record = Property.model_validate({
            "id": "p1",
            "payments": [{"id": "r1", "amount": 10}],
            "Town": "Ho",
        })
        assert "payments" not in record.as_row()
        assert record.total_paid() == 10

    def test_with_values_returns_copy(self, overdue_property):
        updated = overdue_property.with_values({"Town": "Hohoe"})
        assert updated.as_row()["Town"] == "Hohoe"
        assert overdue_property.as_row()["Town"] == "Ho"
        assert isinstance(updated, Property)

    def test_new_ids(self):
        assert Property.new_id().startswith("prop-")
        assert Bop.new_id().startswith("bop-")

    def test_payment_rejects_non_positive_amount(self):
        with pytest.raises(ValidationError):
            Payment(id="r1", amount=0)

    def test_payment_defaults(self):
        payment = Payment(id="r1", amount=5)
        assert payment.method == PaymentMethod.CASH
        assert isinstance(payment.date, datetime)


class TestBillModel:
    """Tests for the bill snapshot."""

    def test_snapshot_is_deep_copy(self):
        source = {"id": "p1", "Owner Name": "Ama", "nested": {"a": 1}}
        bill = Bill(property_id="p1", property_snapshot=source, total_amount_due=10)
        source["Owner Name"] = "Changed"
        source["nested"]["a"] = 2
        assert bill.property_snapshot["Owner Name"] == "Ama"
        assert bill.property_snapshot["nested"]["a"] == 1

    def test_snapshot_is_read_only(self, overdue_property):
        bill = Bill.from_record(overdue_property.with_values({"Tags": ["a"]}), 50)
        with pytest.raises(TypeError):
            bill.property_snapshot["Owner Name"] = "Changed"
        with pytest.raises(AttributeError):
            bill.property_snapshot["Tags"].append("b")
        assert bill.property_snapshot["Owner Name"] == "Kwame Mensah"

    def test_snapshot_dumps_as_plain_dict(self, overdue_property):
        bill = Bill.from_record(overdue_property.with_values({"Tags": ["a"]}), 50)
        dumped = bill.model_dump(mode="json")
        assert type(dumped["property_snapshot"]) is dict
        assert dumped["property_snapshot"]["Tags"] == ["a"]
        restored = Bill.model_validate(dumped)
        assert restored.property_snapshot == bill.property_snapshot
        assert restored.snapshot_record().as_row()["Owner Name"] == "Kwame Mensah"

    def test_from_record_snapshots_record(self, overdue_property):
        bill = Bill.from_record(overdue_property, 50, generated_at=datetime(2024, 3, 1))
        assert bill.property_id == "prop-1"
        assert bill.year == 2024
        assert bill.bill_type == BillType.PROPERTY
        assert bill.property_snapshot["Owner Name"] == "Kwame Mensah"

    def test_from_record_detects_bop(self, paid_bop):
        bill = Bill.from_record(paid_bop, 0)
        assert bill.bill_type == BillType.BOP
        assert isinstance(bill.snapshot_record(), Bop)

    def test_bill_is_frozen(self, overdue_property):
        bill = Bill.from_record(overdue_property, 50)
        with pytest.raises(ValidationError):
            bill.total_amount_due = 0

    def test_ids_are_unique(self, overdue_property):
        ids = {Bill.from_record(overdue_property, 50).id for _ in range(20)}
        assert len(ids) == 20


class TestUserModels:
    """Tests for users and default permissions."""

    def test_default_admin(self):
        assert DEFAULT_ADMIN.id == "user-0"
        assert DEFAULT_ADMIN.email == "admin@rateease.gov"
        assert DEFAULT_ADMIN.role == UserRole.ADMIN

    def test_admin_allowed_everywhere(self):
        assert all(DEFAULT_PERMISSIONS[UserRole.ADMIN].values())

    def test_data_entry_defaults(self):
        table = DEFAULT_PERMISSIONS[UserRole.DATA_ENTRY]
        assert table[PermissionPage.PROPERTIES] is True
        assert table[PermissionPage.USERS] is False
        assert table[PermissionPage.SETTINGS] is False

    def test_viewer_defaults(self):
        allowed = {p for p, ok in DEFAULT_PERMISSIONS[UserRole.VIEWER].items() if ok}
        assert allowed == {PermissionPage.DASHBOARD, PermissionPage.PAYMENT}


class TestActivityModels:
    """Tests for activity log entries."""

    def test_builder_payment_received(self, admin):
        entry = ActivityLogBuilder.payment_received(admin, 50, "Kwame Mensah")
        assert entry.action == "Payment Received"
        assert entry.details == "GHS 50.00 for Kwame Mensah"
        assert entry.user_email == admin.email

    def test_to_log_dict(self, admin):
        entry = ActivityLogBuilder.entry(admin, "Test")
        log_dict = entry.to_log_dict()
        assert log_dict["action"] == "Test"
        assert log_dict["user_id"] == "user-0"
        assert "timestamp" in log_dict

    def test_action_required(self):
        with pytest.raises(ValidationError):
            ActivityLog(user_id="u", user_name="n", user_email="e", action="")


class TestPreferences:
    """Tests for saved settings."""

    def test_defaults(self):
        preferences = Preferences()
        assert preferences.sms.is_configured is False
        assert preferences.appearance.font_size == 12

    def test_sms_configured(self):
        sms = SmsSettings(sms_api_url="https://x", sms_api_key="k", sms_sender_id="RateEase")
        assert sms.is_configured is True

    def test_sender_id_max_length(self):
        with pytest.raises(ValidationError):
            SmsSettings(sms_sender_id="ABCDEFGHIJKL")

    def test_accent_color_must_be_hex(self):
        with pytest.raises(ValidationError):
            AppearanceSettings(accent_color="red")

    def test_sheet_url_must_be_http(self):
        with pytest.raises(ValidationError):
            IntegrationSettings(google_sheet_url="docs.google.com/x")

    def test_extract_sheet_id(self):
        url = "https://docs.google.com/spreadsheets/d/1AbC-d_9/edit#gid=0"
        assert extract_sheet_id(url) == "1AbC-d_9"
        assert extract_sheet_id("https://example.com") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
