"""Services package."""

from rateease.services.spreadsheet import (
    EmptySpreadsheetError,
    ImportedSheet,
    InvalidFileTypeError,
    SpreadsheetError,
    export_workbook,
    import_workbook,
)
from rateease.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsSync,
    JsonFileStorage,
    MemoryStorage,
    NotFoundError,
    StorageError,
    StorageInterface,
    StoreKey,
)
from rateease.services.sms import (
    SmsError,
    SmsNotConfiguredError,
    SmsResult,
    SmsService,
    compile_template,
)
from rateease.services.payments import (
    MockPaymentGateway,
    PaymentBillNotFoundError,
    PaymentCallback,
    PaymentError,
    PaymentFailedError,
    PaymentInitiation,
)

__all__ = [
    # Spreadsheets
    "EmptySpreadsheetError",
    "ImportedSheet",
    "InvalidFileTypeError",
    "SpreadsheetError",
    "export_workbook",
    "import_workbook",
    # Storage
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsSync",
    "JsonFileStorage",
    "MemoryStorage",
    "NotFoundError",
    "StorageError",
    "StorageInterface",
    "StoreKey",
    # SMS
    "SmsError",
    "SmsNotConfiguredError",
    "SmsResult",
    "SmsService",
    "compile_template",
    # Payments
    "MockPaymentGateway",
    "PaymentBillNotFoundError",
    "PaymentCallback",
    "PaymentError",
    "PaymentFailedError",
    "PaymentInitiation",
]
