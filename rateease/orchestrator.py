"""
Main Orchestrator for RateEase

This module ties together all the components and defines the
end-to-end flows for:
1. Records (import workbook → replace records, add via form → notify)
2. Billing (select records → snapshot bills → record → notify)
3. Payments (initiate → gateway callback → apply payment → receipt)
4. Bulk SMS
5. Google Sheets sync

DESIGN DECISION: The orchestrator enforces the boundaries:
- Printed bills are deep snapshots; nothing later edits them
- A payment is only applied from a successful, complete callback
- Every user action is recorded in the activity log

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from datetime import datetime
from typing import Generic, NamedTuple, Optional, Sequence, TypeVar

import structlog

from rateease.activity import ActivityLogger
from rateease.auth import AuthService
from rateease.config import get_settings
from rateease.core.billing import BopCharges, PropertyCharges
from rateease.core.resolver import find_column, get_record_value
from rateease.models.activity import ActivityLogBuilder
from rateease.models.billing import Bill, BillType
from rateease.models.records import Bop, Payment, PaymentMethod, Property, RateRecord
from rateease.models.users import User
from rateease.repositories import (
    ActivityLogRepository,
    BillRepository,
    BopRepository,
    PermissionsRepository,
    PropertyRepository,
    RecordRepository,
    SettingsRepository,
    UserRepository,
)
from rateease.services.payments import (
    MockPaymentGateway,
    PaymentBillNotFoundError,
    PaymentCallback,
    PaymentFailedError,
    PaymentInitiation,
)
from rateease.services.sms import SmsResult, SmsService
from rateease.services.spreadsheet import ImportedSheet, export_workbook, import_workbook
from rateease.services.storage import (
    GoogleSheetsSync,
    JsonFileStorage,
    NotFoundError,
    StorageInterface,
)
from rateease.validation import BopForm, FormError, PropertyForm, UserForm, validate_form

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", Property, Bop)


class RecordFlow(Generic[RecordT]):
    """
    Orchestrates the property (or BOP) register.

    Flow:
    1. Import → Read workbook, replace records and header row
    2. Add → Validate form, store record, optional welcome SMS
    3. Edit → Validate form, write into the record's existing columns
    4. Export → Write current records to a workbook
    """

    def __init__(
        self,
        repository: RecordRepository[RecordT],
        activity_logger: ActivityLogger,
        sms_service: Optional[SmsService] = None,
    ):
        self._repository = repository
        self._activity = activity_logger
        self._sms = sms_service

    @property
    def repository(self) -> RecordRepository[RecordT]:
        return self._repository

    @property
    def _is_bop(self) -> bool:
        return self._repository.model is Bop

    def import_workbook(
        self,
        data: bytes,
        filename: str,
        user: Optional[User],
    ) -> ImportedSheet:
        """
        Replace all records with the rows of an uploaded workbook.

        Raises:
            SpreadsheetError: If the file cannot be used (nothing is changed)
        """
        max_size = get_settings().app.max_upload_size_bytes
        sheet = import_workbook(data, filename, max_size_bytes=max_size)
        self.apply_import(sheet, user)
        return sheet

    def apply_import(self, sheet: ImportedSheet, user: Optional[User]) -> list[RecordT]:
        records = sheet.to_records(self._repository.model)
        self._repository.set_records(records, sheet.headers)

        builder = (
            ActivityLogBuilder.bops_imported if self._is_bop
            else ActivityLogBuilder.properties_imported
        )
        entry = builder(user, len(records), sheet.filename) if user else None
        self._activity.log_entry(user, entry)
        return records

    def export_workbook(self) -> bytes:
        title = "BOPs" if self._is_bop else "Properties"
        return export_workbook(
            self._repository.list_records(),
            headers=self._repository.headers,
            sheet_title=title,
        )

    async def add_from_form(self, data: dict, user: Optional[User]) -> RecordT:
        """
        Validate and store a record entered by hand.

        Raises:
            FormError: If the input is invalid (nothing is stored)
        """
        form_cls = BopForm if self._is_bop else PropertyForm
        form = validate_form(form_cls, data)
        record = self._repository.add(form.to_columns())

        label = "BOP Added" if self._is_bop else "Property Added"
        self._activity.log_action(user, label, self._describe(record))

        if self._sms is not None and not self._is_bop:
            await self._sms.send_new_property(record)

        return record

    async def update_from_form(self, record: RecordT, data: dict, user: Optional[User]) -> RecordT:
        """
        Save an edited record. Each value is written to the column the
        record already uses for it ("Name of Owner" stays "Name of Owner").

        Raises:
            FormError: If the input is invalid
            NotFoundError: If the record no longer exists
        """
        form_cls = BopForm if self._is_bop else PropertyForm
        form = validate_form(form_cls, data)
        values = {
            find_column(record, key) or key: value
            for key, value in form.to_columns().items()
        }
        updated = record.with_values(values)
        self._repository.update(updated)
        label = "BOP Updated" if self._is_bop else "Property Updated"
        self._activity.log_action(user, label, self._describe(updated))
        return updated

    def delete(self, record_ids: Sequence[str], user: Optional[User]) -> int:
        removed = self._repository.delete_many(record_ids)
        if removed:
            label = "BOPs Deleted" if self._is_bop else "Properties Deleted"
            self._activity.log_action(user, label, f"{removed} records")
        return removed

    def _describe(self, record: RecordT) -> str:
        name = get_record_value(record, "Business Name" if self._is_bop else "Owner Name")
        return str(name or record.id)


class BillingFlow:
    """
    Orchestrates bill printing.

    Printing takes a deep snapshot of each selected record together with
    its balance, appends the bills to the history, and optionally notifies
    owners by SMS. The rendering itself is the UI's concern.
    """

    def __init__(
        self,
        properties: PropertyRepository,
        bops: BopRepository,
        bills: BillRepository,
        activity_logger: ActivityLogger,
        sms_service: Optional[SmsService] = None,
    ):
        self._properties = properties
        self._bops = bops
        self._bills = bills
        self._activity = activity_logger
        self._sms = sms_service

    @staticmethod
    def build_bill(record: RateRecord, generated_at: Optional[datetime] = None) -> Bill:
        if isinstance(record, Bop):
            due = BopCharges.from_record(record).total_amount_due
        else:
            due = PropertyCharges.from_record(record).total_amount_due
        return Bill.from_record(record, due, generated_at=generated_at)

    async def print_property_bills(self, property_ids: Sequence[str], user: Optional[User]) -> list[Bill]:
        wanted = set(property_ids)
        records = [p for p in self._properties.list_records() if p.id in wanted]
        return await self._record_bills(records, BillType.PROPERTY, user)

    async def print_bop_bills(self, bop_ids: Sequence[str], user: Optional[User]) -> list[Bill]:
        wanted = set(bop_ids)
        records = [b for b in self._bops.list_records() if b.id in wanted]
        return await self._record_bills(records, BillType.BOP, user)

    async def _record_bills(
        self,
        records: Sequence[RateRecord],
        bill_type: BillType,
        user: Optional[User],
    ) -> list[Bill]:
        if not records:
            return []

        generated_at = datetime.utcnow()
        bills = self._bills.add_bills(
            self.build_bill(record, generated_at) for record in records
        )

        entry = ActivityLogBuilder.bills_printed(user, len(bills), bill_type.value) if user else None
        self._activity.log_entry(user, entry)

        if self._sms is not None:
            sent = await self._sms.send_bills_generated(bills)
            logger.info("bill_notifications_sent", sent=sent, bills=len(bills))

        return bills


class PaymentFlow:
    """
    Orchestrates online payment of a bill.

    Flow:
    1. Initiate → Gateway returns the callback URL
    2. Callback → Validate, find the property or BOP by id
    3. Apply → Append payment, update the paid column, record receipt
    """

    def __init__(
        self,
        properties: PropertyRepository,
        bops: BopRepository,
        bills: BillRepository,
        activity_logger: ActivityLogger,
        gateway: Optional[MockPaymentGateway] = None,
    ):
        self._properties = properties
        self._bops = bops
        self._bills = bills
        self._activity = activity_logger
        self._gateway = gateway or MockPaymentGateway()

    def find_record(self, record_id: str) -> Optional[RateRecord]:
        return self._properties.get(record_id) or self._bops.get(record_id)

    async def initiate(self, amount: float, email: str, record_id: str) -> PaymentInitiation:
        """
        Raises:
            PaymentBillNotFoundError: If no property or BOP has this id
            PaymentFailedError: If the amount is not positive
        """
        if self.find_record(record_id) is None:
            raise PaymentBillNotFoundError(f"No property or BOP with id {record_id}.")
        return await self._gateway.initiate(amount, email, record_id)

    def process_callback(self, callback: PaymentCallback, user: Optional[User]) -> Bill:
        """
        Apply a payment reported by the gateway.

        Returns the receipt bill.

        Raises:
            PaymentFailedError: Unsuccessful or incomplete callback
            PaymentBillNotFoundError: No property or BOP matches the bill id
        """
        if not callback.is_success:
            logger.warning(
                "payment_callback_rejected",
                status=callback.status,
                bill_id=callback.bill_id,
            )
            raise PaymentFailedError("Payment was not successful.")

        record = self.find_record(callback.bill_id)
        if record is None:
            raise PaymentBillNotFoundError(f"No property or BOP with id {callback.bill_id}.")

        payment = Payment(
            id=callback.reference,
            amount=callback.amount,
            method=PaymentMethod.PAYSTACK,
        )
        payments = [*record.payments, payment]
        paid = sum(p.amount for p in payments)

        if isinstance(record, Bop):
            updated = record.with_values({"payments": payments, "Payment": paid})
            self._bops.update(updated)
            label = f"Business: {get_record_value(updated, 'Business Name') or updated.id}"
        else:
            updated = record.with_values({"payments": payments, "Total Payment": paid})
            self._properties.update(updated)
            label = f"Property No: {get_record_value(updated, 'Property No') or updated.id}"

        receipt = Bill.from_record(updated, callback.amount)
        self._bills.add_bills([receipt])

        logger.info(
            "payment_applied",
            record_id=updated.id,
            amount=callback.amount,
            reference=callback.reference,
        )
        currency = get_settings().app.currency
        entry = (
            ActivityLogBuilder.payment_received(user, callback.amount, label, currency)
            if user else None
        )
        self._activity.log_entry(user, entry)
        return receipt


class NotificationFlow:
    """Bulk SMS to selected properties or BOPs."""

    def __init__(
        self,
        sms_service: SmsService,
        activity_logger: ActivityLogger,
    ):
        self._sms = sms_service
        self._activity = activity_logger

    async def send_bulk(
        self,
        records: Sequence[RateRecord],
        message_template: str,
        user: Optional[User],
    ) -> list[SmsResult]:
        """
        Raises:
            SmsNotConfiguredError: No gateway URL is configured
        """
        results = await self._sms.send_bulk(records, message_template)
        sent = sum(1 for r in results if r.success)
        entry = ActivityLogBuilder.sms_sent(user, sent, len(results)) if user else None
        self._activity.log_entry(user, entry)
        return results


class SheetsSyncFlow:
    """Push the registers to, and pull them from, connected Google Sheets."""

    def __init__(
        self,
        properties: PropertyRepository,
        bops: BopRepository,
        settings: SettingsRepository,
        activity_logger: ActivityLogger,
        sync: Optional[GoogleSheetsSync] = None,
    ):
        self._properties = properties
        self._bops = bops
        self._settings = settings
        self._activity = activity_logger
        self._sync = sync

    def _target(self, kind: BillType) -> tuple[RecordRepository, str, str]:
        """
        Repository, sheet URL and worksheet title for ``kind``.

        Raises:
            ValueError: If no sheet is connected for ``kind``
        """
        integrations = self._settings.get().integrations
        if kind == BillType.BOP:
            repository, url = self._bops, integrations.bop_google_sheet_url
        else:
            repository, url = self._properties, integrations.google_sheet_url
        if not url:
            raise ValueError("Connect a Google Sheet on the Integrations page first.")

        if self._sync is None:
            self._sync = GoogleSheetsSync()
        sheets = get_settings().google_sheets
        title = sheets.bops_sheet_name if kind == BillType.BOP else sheets.properties_sheet_name
        return repository, url, title

    async def push(self, kind: BillType, user: Optional[User]) -> int:
        """
        Raises:
            ValueError: If no sheet is connected for ``kind``
            StorageError / ConnectionError: If Google Sheets fails
        """
        repository, url, title = self._target(kind)
        count = await self._sync.push_records(
            url, title, repository.headers, repository.list_records()
        )
        self._activity.log_action(user, "Google Sheet Updated", f"{count} {kind.value} records")
        return count

    async def pull(self, kind: BillType, user: Optional[User]) -> int:
        """Replace the local register with the sheet's rows."""
        repository, url, title = self._target(kind)
        sheet = await self._sync.pull_records(url, title)
        records = sheet.to_records(repository.model)
        repository.set_records(records, sheet.headers)
        self._activity.log_action(user, "Google Sheet Imported", f"{len(records)} {kind.value} records")
        return len(records)


class UserAdminFlow:
    """Users page: add, edit and remove users."""

    def __init__(
        self,
        users: UserRepository,
        auth: AuthService,
        activity_logger: ActivityLogger,
    ):
        self._users = users
        self._auth = auth
        self._activity = activity_logger

    def add_user(self, data: dict, actor: Optional[User]) -> User:
        """
        Raises:
            FormError: If the input is invalid
            DuplicateError: If the email is taken
        """
        form = validate_form(UserForm, data)
        if form.password is None:
            raise FormError({"password": "A password is required for new users."})
        user = self._users.add(User(
            name=form.name,
            email=form.email,
            role=form.role,
            password=form.password,
            created_at=datetime.utcnow(),
        ))
        entry = ActivityLogBuilder.user_added(actor, user) if actor else None
        self._activity.log_entry(actor, entry)
        return user

    def update_user(self, user_id: str, data: dict, actor: Optional[User]) -> User:
        """
        Save edits. A blank password or photo keeps the current one.

        Raises:
            FormError: If the input is invalid
            NotFoundError: If the user no longer exists
            DuplicateError: If the new email belongs to someone else
        """
        existing = self._users.get(user_id)
        if existing is None:
            raise NotFoundError(f"User not found: {user_id}")
        form = validate_form(UserForm, data)
        updated = existing.model_copy(update={
            "name": form.name,
            "email": form.email,
            "role": form.role,
            "password": form.password or existing.password,
            "photo_url": form.photo_url or existing.photo_url,
        })
        self._users.update(updated)
        self._auth.update_session_user(updated)
        self._activity.log_action(actor, "User Updated", updated.email)
        return updated

    def delete_user(self, user_id: str, actor: Optional[User]) -> bool:
        """
        Raises:
            ProtectedUserError: If asked to delete the default admin
        """
        removed = self._users.delete(user_id)
        if removed:
            self._activity.log_action(actor, "User Deleted", user_id)
        return removed


class AppComponents(NamedTuple):
    storage: StorageInterface
    auth: AuthService
    properties: RecordFlow[Property]
    bops: RecordFlow[Bop]
    billing: BillingFlow
    payments: PaymentFlow
    notifications: NotificationFlow
    sheets: SheetsSyncFlow
    user_admin: UserAdminFlow
    bills: BillRepository
    users: UserRepository
    permissions: PermissionsRepository
    settings: SettingsRepository
    activity_logs: ActivityLogRepository
    activity_logger: ActivityLogger


def create_app_components(
    storage: Optional[StorageInterface] = None,
    sms_service: Optional[SmsService] = None,
    gateway: Optional[MockPaymentGateway] = None,
    sheets_sync: Optional[GoogleSheetsSync] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Document store. Defaults to JSON files in the configured
                 data directory; pass MemoryStorage for tests.
    """
    storage = storage or JsonFileStorage()

    property_repo = PropertyRepository(storage)
    bop_repo = BopRepository(storage)
    bill_repo = BillRepository(storage)
    user_repo = UserRepository(storage)
    permissions_repo = PermissionsRepository(storage)
    settings_repo = SettingsRepository(storage)
    activity_repo = ActivityLogRepository(storage)

    activity_logger = ActivityLogger(activity_repo)
    auth = AuthService(storage, user_repo, permissions_repo)
    sms_service = sms_service or SmsService(settings_repo.sms)

    return AppComponents(
        storage=storage,
        auth=auth,
        properties=RecordFlow(property_repo, activity_logger, sms_service),
        bops=RecordFlow(bop_repo, activity_logger, sms_service),
        billing=BillingFlow(property_repo, bop_repo, bill_repo, activity_logger, sms_service),
        payments=PaymentFlow(property_repo, bop_repo, bill_repo, activity_logger, gateway),
        notifications=NotificationFlow(sms_service, activity_logger),
        sheets=SheetsSyncFlow(property_repo, bop_repo, settings_repo, activity_logger, sheets_sync),
        user_admin=UserAdminFlow(user_repo, auth, activity_logger),
        bills=bill_repo,
        users=user_repo,
        permissions=permissions_repo,
        settings=settings_repo,
        activity_logs=activity_repo,
        activity_logger=activity_logger,
    )
