"""
End-to-end tests for the application flows.

Every flow runs against MemoryStorage with the payment delay switched off
and Google Sheets replaced by an in-memory fake.
"""

import asyncio
from io import BytesIO

import pytest
from openpyxl import Workbook

from rateease.models import BillType, UserRole
from rateease.orchestrator import create_app_components
from rateease.services.payments import (
    MockPaymentGateway,
    PaymentBillNotFoundError,
    PaymentCallback,
    PaymentFailedError,
)
from rateease.services.spreadsheet import ImportedSheet, InvalidFileTypeError
from rateease.services.storage import DuplicateError, NotFoundError
from rateease.repositories import ProtectedUserError
from rateease.validation import FormError


class FakeSheetsSync:
    """Keeps pushed rows in memory and serves them back on pull."""

    def __init__(self):
        self.pushed = {}
        self.rows = {}

    async def push_records(self, sheet_url, worksheet_title, headers, records):
        self.pushed[(sheet_url, worksheet_title)] = [r.as_row() for r in records]
        return len(records)

    async def pull_records(self, sheet_url, worksheet_title):
        return ImportedSheet(
            filename=worksheet_title,
            headers=["Owner Name", "Town"],
            rows=self.rows.get((sheet_url, worksheet_title), []),
        )


def _workbook(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def sheets_sync():
    return FakeSheetsSync()


@pytest.fixture
def app(storage, sheets_sync):
    return create_app_components(
        storage=storage,
        gateway=MockPaymentGateway(delay_seconds=0),
        sheets_sync=sheets_sync,
    )


@pytest.fixture
def stored_property(app, overdue_property):
    app.properties.repository.set_records([overdue_property], ["Owner Name", "Property No"])
    return overdue_property


@pytest.fixture
def stored_bop(app, paid_bop):
    app.bops.repository.set_records([paid_bop], ["Business Name", "Permit Fee", "Payment"])
    return paid_bop


# =============================================================================
# RECORD FLOW TESTS
# =============================================================================

class TestRecordFlow:
    """Tests for importing, adding and deleting records."""

    def test_import_replaces_records(self, app, admin, stored_property):
        data = _workbook([
            ["Name of Owner", "Town", "Rateable Value"],
            ["Ama Owusu", "Hohoe", 300],
            ["Yaw Boateng", "Kpando", 150],
        ])
        sheet = app.properties.import_workbook(data, "rates_2025.xlsx", admin)

        records = app.properties.repository.list_records()
        assert sheet.row_count == 2
        assert [r.as_row()["Name of Owner"] for r in records] == ["Ama Owusu", "Yaw Boateng"]
        assert app.properties.repository.headers == ["Name of Owner", "Town", "Rateable Value"]

        log = app.activity_logs.list_logs()[0]
        assert log.action == "Properties Imported"
        assert log.details == "2 records from rates_2025.xlsx"

    def test_bad_import_changes_nothing(self, app, admin, stored_property):
        with pytest.raises(InvalidFileTypeError):
            app.properties.import_workbook(b"not a workbook", "rates.xls", admin)
        assert [r.id for r in app.properties.repository.list_records()] == ["prop-1"]
        assert app.activity_logs.list_logs() == []

    @pytest.mark.parametrize("header, value", [("id", 1), ("payments", "none"), ("created_at", "last year")])
    def test_import_with_app_owned_headers(self, app, admin, header, value):
        data = _workbook([[header, "Owner Name"], [value, "Ama"]])
        app.properties.import_workbook(data, "rates.xlsx", admin)
        (record,) = app.properties.repository.list_records()
        assert record.as_row()["Owner Name"] == "Ama"
        assert record.payments == []

    def test_bop_import_logged_as_bops(self, app, admin):
        data = _workbook([["Business Name", "Permit Fee"], ["Kente Shop", 120]])
        app.bops.import_workbook(data, "bops.xlsx", admin)
        assert app.activity_logs.list_logs()[0].action == "BOPs Imported"

    def test_add_from_form(self, app, admin):
        record = asyncio.run(app.properties.add_from_form(
            {
                "Owner Name": "Efua Asante",
                "Property No": "HO-77",
                "Town": "Ho",
                "Property Type": "Residential",
                "Rateable Value": "250",
                "Rate Impost": "0.2",
            },
            admin,
        ))
        assert record.id.startswith("prop-")
        assert app.properties.repository.get(record.id).as_row()["Owner Name"] == "Efua Asante"

        log = app.activity_logs.list_logs()[0]
        assert (log.action, log.details) == ("Property Added", "Efua Asante")

    def test_add_invalid_form_stores_nothing(self, app, admin):
        with pytest.raises(FormError):
            asyncio.run(app.properties.add_from_form({"Town": "Ho"}, admin))
        assert len(app.properties.repository) == 0

    def test_update_missing_record(self, app, admin, overdue_property):
        with pytest.raises(NotFoundError):
            asyncio.run(app.properties.update_from_form(
                overdue_property,
                {
                    "Owner Name": "Kwame Mensah",
                    "Property No": "HO-001",
                    "Town": "Ho",
                    "Property Type": "Residential",
                    "Rateable Value": 100,
                    "Rate Impost": 0.5,
                },
                admin,
            ))

    def test_update_writes_into_existing_columns(self, app, admin):
        record = app.properties.repository.add({
            "Name of Owner": "Kwame Mensah",
            "Property No": "HO-001",
            "Town": "Ho",
            "Property Type": "Residential",
            "Rateable Value": 100,
            "Rate Impost": 0.5,
        })
        updated = asyncio.run(app.properties.update_from_form(
            record,
            {
                "Owner Name": "Kwame A. Mensah",
                "Property No": "HO-001",
                "Town": "Ho",
                "Property Type": "Commercial",
                "Rateable Value": 150,
                "Rate Impost": 0.5,
            },
            admin,
        ))
        row = app.properties.repository.get(record.id).as_row()
        assert row["Name of Owner"] == "Kwame A. Mensah"
        assert "Owner Name" not in row
        assert row["Rateable Value"] == 150
        assert updated.id == record.id

        log = app.activity_logs.list_logs()[0]
        assert (log.action, log.details) == ("Property Updated", "Kwame A. Mensah")

    def test_delete(self, app, admin, stored_property):
        assert app.properties.delete(["prop-1", "missing"], admin) == 1
        assert len(app.properties.repository) == 0
        assert app.activity_logs.list_logs()[0].action == "Properties Deleted"

    def test_export_is_xlsx(self, app, stored_property):
        data = app.properties.export_workbook()
        assert data[:2] == b"PK"


# =============================================================================
# BILLING FLOW TESTS
# =============================================================================

class TestBillingFlow:
    """Tests for printing bills."""

    def test_print_snapshots_and_logs(self, app, admin, stored_property):
        bills = asyncio.run(app.billing.print_property_bills(["prop-1"], admin))

        assert len(bills) == 1
        assert bills[0].total_amount_due == 50
        assert bills[0].property_snapshot["Owner Name"] == "Kwame Mensah"
        assert [b.id for b in app.bills.list_bills()] == [bills[0].id]

        log = app.activity_logs.list_logs()[0]
        assert (log.action, log.details) == ("Bills Printed", "1 property bills recorded")

    def test_snapshot_unaffected_by_later_edits(self, app, admin, stored_property):
        asyncio.run(app.billing.print_property_bills(["prop-1"], admin))
        app.properties.repository.update(stored_property.with_values({"Owner Name": "Someone Else"}))
        assert app.bills.list_bills()[0].property_snapshot["Owner Name"] == "Kwame Mensah"

    def test_bop_bill(self, app, admin, stored_bop):
        bills = asyncio.run(app.billing.print_bop_bills(["bop-1"], admin))
        assert bills[0].bill_type == BillType.BOP
        assert bills[0].total_amount_due == 0

    def test_nothing_selected(self, app, admin, stored_property):
        assert asyncio.run(app.billing.print_property_bills([], admin)) == []
        assert app.bills.list_bills() == []
        assert app.activity_logs.list_logs() == []


# =============================================================================
# PAYMENT FLOW TESTS
# =============================================================================

class TestPaymentFlow:
    """Tests for the initiate → callback → apply sequence."""

    def test_full_payment(self, app, admin, stored_property):
        initiation = asyncio.run(app.payments.initiate(50, "payer@x.gh", "prop-1"))
        callback = PaymentCallback.from_url(initiation.authorization_url)

        receipt = app.payments.process_callback(callback, admin)

        updated = app.properties.repository.get("prop-1")
        assert updated.as_row()["Total Payment"] == 50
        assert [p.amount for p in updated.payments] == [50]
        assert updated.payments[0].id == initiation.reference
        assert receipt.total_amount_due == 50
        assert receipt.property_id == "prop-1"
        assert app.bills.list_bills()[0].id == receipt.id

        log = app.activity_logs.list_logs()[0]
        assert log.action == "Payment Received"
        assert log.details == "GHS 50.00 for Property No: HO-001"

    def test_payments_accumulate(self, app, admin, stored_property):
        for reference, amount in (("r1", "20"), ("r2", "30")):
            app.payments.process_callback(
                PaymentCallback.from_params(
                    {"status": "success", "reference": reference, "billId": "prop-1", "amount": amount}
                ),
                admin,
            )
        assert app.properties.repository.get("prop-1").as_row()["Total Payment"] == 50

    def test_bop_payment_updates_payment_column(self, app, admin, stored_bop):
        app.payments.process_callback(
            PaymentCallback.from_params(
                {"status": "success", "reference": "r1", "billId": "bop-1", "amount": "75"}
            ),
            admin,
        )
        updated = app.bops.repository.get("bop-1")
        assert updated.as_row()["Payment"] == 75
        assert app.activity_logs.list_logs()[0].details == "GHS 75.00 for Business: Mensah Ventures"

    def test_failed_callback(self, app, admin, stored_property):
        callback = PaymentCallback.from_params({"status": "failed", "billId": "prop-1"})
        with pytest.raises(PaymentFailedError):
            app.payments.process_callback(callback, admin)
        assert app.properties.repository.get("prop-1").payments == []
        assert app.bills.list_bills() == []

    def test_unknown_bill(self, app, admin, stored_property):
        callback = PaymentCallback.from_params(
            {"status": "success", "reference": "r1", "billId": "prop-404", "amount": "10"}
        )
        with pytest.raises(PaymentBillNotFoundError):
            app.payments.process_callback(callback, admin)

    def test_initiate_unknown_record(self, app):
        with pytest.raises(PaymentBillNotFoundError):
            asyncio.run(app.payments.initiate(10, "payer@x.gh", "prop-404"))


# =============================================================================
# GOOGLE SHEETS SYNC TESTS
# =============================================================================

class TestSheetsSyncFlow:
    """Tests for pushing to and pulling from connected sheets."""

    @pytest.fixture(autouse=True)
    def credentials(self, tmp_path, monkeypatch):
        path = tmp_path / "service-account.json"
        path.write_text("{}")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(path))

    @pytest.fixture
    def connected(self, app):
        prefs = app.settings.get()
        app.settings.save_section(prefs.integrations.model_copy(update={
            "google_sheet_url": "https://docs.google.com/spreadsheets/d/abc123/edit",
        }))

    def test_not_connected(self, app, admin):
        with pytest.raises(ValueError):
            asyncio.run(app.sheets.push(BillType.PROPERTY, admin))

    def test_push(self, app, admin, connected, stored_property, sheets_sync):
        assert asyncio.run(app.sheets.push(BillType.PROPERTY, admin)) == 1
        (key, rows), = sheets_sync.pushed.items()
        assert key[1] == "Properties"
        assert rows[0]["Owner Name"] == "Kwame Mensah"
        assert app.activity_logs.list_logs()[0].action == "Google Sheet Updated"

    def test_pull_replaces_records(self, app, admin, connected, stored_property, sheets_sync):
        url = "https://docs.google.com/spreadsheets/d/abc123/edit"
        sheets_sync.rows[(url, "Properties")] = [
            {"id": "imported-1", "Owner Name": "Ama Owusu", "Town": "Hohoe"},
        ]
        assert asyncio.run(app.sheets.pull(BillType.PROPERTY, admin)) == 1
        assert [r.id for r in app.properties.repository.list_records()] == ["imported-1"]
        assert app.properties.repository.headers == ["Owner Name", "Town"]

    def test_bop_sheet_needs_its_own_url(self, app, admin, connected):
        with pytest.raises(ValueError):
            asyncio.run(app.sheets.pull(BillType.BOP, admin))


# =============================================================================
# USER ADMINISTRATION TESTS
# =============================================================================

class TestUserAdminFlow:
    """Tests for the Users page actions."""

    def _form(self, **overrides):
        data = {
            "name": "Esi Clerk",
            "email": "esi@assembly.gov.gh",
            "role": UserRole.DATA_ENTRY.value,
            "password": "secret1",
            "confirm_password": "secret1",
        }
        data.update(overrides)
        return data

    def test_add_user(self, app, admin):
        user = app.user_admin.add_user(self._form(), admin)
        assert app.users.get_by_email("esi@assembly.gov.gh").id == user.id
        log = app.activity_logs.list_logs()[0]
        assert log.action == "User Added"

    def test_new_user_needs_password(self, app, admin):
        with pytest.raises(FormError) as excinfo:
            app.user_admin.add_user(self._form(password="", confirm_password=""), admin)
        assert "password" in excinfo.value.errors

    def test_duplicate_email(self, app, admin):
        app.user_admin.add_user(self._form(), admin)
        with pytest.raises(DuplicateError):
            app.user_admin.add_user(self._form(name="Another"), admin)

    def test_blank_password_keeps_current(self, app, admin):
        user = app.user_admin.add_user(self._form(), admin)
        updated = app.user_admin.update_user(
            user.id, self._form(name="Esi A.", password="", confirm_password=""), admin
        )
        assert updated.name == "Esi A."
        assert app.users.get(user.id).password == "secret1"

    def test_update_refreshes_session(self, app, admin):
        user = app.user_admin.add_user(self._form(), admin)
        app.auth.login("esi@assembly.gov.gh", "secret1")
        app.user_admin.update_user(user.id, self._form(name="Esi Renamed"), admin)
        assert app.auth.current_user().name == "Esi Renamed"

    def test_profile_photo_saved(self, app, admin):
        user = app.user_admin.add_user(self._form(), admin)
        app.auth.login("esi@assembly.gov.gh", "secret1")
        photo = "data:image/png;base64,iVBORw0KGgo="
        app.user_admin.update_user(
            user.id,
            self._form(password="", confirm_password="", photo_url=photo),
            app.auth.current_user(),
        )
        assert app.users.get(user.id).photo_url == photo
        assert app.auth.current_user().photo_url == photo
        assert app.activity_logs.list_logs()[0].user_id == user.id

    def test_blank_photo_keeps_current(self, app, admin):
        user = app.user_admin.add_user(self._form(), admin)
        app.user_admin.update_user(user.id, self._form(photo_url="https://example.com/esi.png"), admin)
        app.user_admin.update_user(user.id, self._form(name="Esi A.", photo_url=""), admin)
        stored = app.users.get(user.id)
        assert stored.name == "Esi A."
        assert stored.photo_url == "https://example.com/esi.png"

    def test_update_missing_user(self, app, admin):
        with pytest.raises(NotFoundError):
            app.user_admin.update_user("user-404", self._form(), admin)

    def test_default_admin_protected(self, app, admin):
        with pytest.raises(ProtectedUserError):
            app.user_admin.delete_user(admin.id, admin)
