"""
Repositories Package

One repository per kind of persisted document. Repositories validate what
they read with pydantic and write plain JSON through a StorageInterface.
"""

from rateease.repositories.records import (
    BopRepository,
    PropertyRepository,
    RecordRepository,
)
from rateease.repositories.bills import BillRepository
from rateease.repositories.users import (
    PermissionsRepository,
    ProtectedUserError,
    UserRepository,
)
from rateease.repositories.settings import SettingsRepository
from rateease.repositories.activity import ActivityLogRepository

__all__ = [
    "ActivityLogRepository",
    "BillRepository",
    "BopRepository",
    "PermissionsRepository",
    "PropertyRepository",
    "ProtectedUserError",
    "RecordRepository",
    "SettingsRepository",
    "UserRepository",
]
