"""
User and Permission Models

WARNING: Passwords are stored and compared in plaintext. This mirrors the
demo deployment the tool was built for and is NOT secure.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    """Roles a user can hold."""
    ADMIN = "Admin"
    DATA_ENTRY = "Data Entry"
    VIEWER = "Viewer"


class PermissionPage(str, Enum):
    """Pages whose access is controlled per role."""
    DASHBOARD = "dashboard"
    PROPERTIES = "properties"
    BILLING = "billing"
    BOP = "bop"
    BOP_BILLING = "bop-billing"
    BILLS = "bills"
    DEFAULTERS = "defaulters"
    REPORTS = "reports"
    USERS = "users"
    SETTINGS = "settings"
    INTEGRATIONS = "integrations"
    PAYMENT = "payment"


# role -> page -> allowed
RolePermissions = dict[UserRole, dict[PermissionPage, bool]]


def _allow(*pages: PermissionPage) -> dict[PermissionPage, bool]:
    return {page: page in pages for page in PermissionPage}


DEFAULT_PERMISSIONS: RolePermissions = {
    UserRole.ADMIN: _allow(*PermissionPage),
    UserRole.DATA_ENTRY: _allow(
        *(p for p in PermissionPage if p not in (PermissionPage.USERS, PermissionPage.SETTINGS))
    ),
    UserRole.VIEWER: _allow(PermissionPage.DASHBOARD, PermissionPage.PAYMENT),
}


class User(BaseModel):
    """An application user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=lambda: f"user-{int(time.time() * 1000)}")
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254)
    role: UserRole = UserRole.VIEWER
    password: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None


DEFAULT_ADMIN = User(
    id="user-0",
    name="Admin",
    email="admin@rateease.gov",
    role=UserRole.ADMIN,
    password="password",
    photo_url="",
)
