"""
Data Models Package

This package contains all Pydantic models used in RateEase.
"""

from rateease.models.records import (
    Bop,
    Payment,
    PaymentMethod,
    Property,
    RateRecord,
)
from rateease.models.billing import (
    Bill,
    BillStatus,
    BillType,
)
from rateease.models.users import (
    DEFAULT_ADMIN,
    DEFAULT_PERMISSIONS,
    PermissionPage,
    RolePermissions,
    User,
    UserRole,
)
from rateease.models.activity import (
    ActivityLog,
    ActivityLogBuilder,
)
from rateease.models.preferences import (
    AppearanceSettings,
    GeneralSettings,
    IntegrationSettings,
    Preferences,
    SmsSettings,
    extract_sheet_id,
)

__all__ = [
    # Records
    "Bop",
    "Payment",
    "PaymentMethod",
    "Property",
    "RateRecord",
    # Billing
    "Bill",
    "BillStatus",
    "BillType",
    # Users
    "DEFAULT_ADMIN",
    "DEFAULT_PERMISSIONS",
    "PermissionPage",
    "RolePermissions",
    "User",
    "UserRole",
    # Activity
    "ActivityLog",
    "ActivityLogBuilder",
    # Preferences
    "AppearanceSettings",
    "GeneralSettings",
    "IntegrationSettings",
    "Preferences",
    "SmsSettings",
    "extract_sheet_id",
]
