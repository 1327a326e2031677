"""
Activity Log Models

Every significant user action is recorded: who did it, when, and what.

DESIGN DECISION: Activity logs are append-only. We never delete or modify them.
"""

import random
import time
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from rateease.models.users import User


def _new_log_id() -> str:
    return f"log-{int(time.time() * 1000)}-{random.random()}"


class ActivityLog(BaseModel):
    """A single activity log entry."""

    id: str = Field(default_factory=_new_log_id)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the action happened (UTC)"
    )

    # Who
    user_id: str
    user_name: str
    user_email: str

    # What
    action: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short name of the action, e.g. 'Payment Received'"
    )
    details: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free-text description"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "log_id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "user_email": self.user_email,
            "action": self.action,
            "details": self.details,
        }


class ActivityLogBuilder:
    """
    Helper class to build log entries for common actions.

    Usage:
        entry = ActivityLogBuilder.properties_imported(user, 120, "rates_2025.xlsx")
    """

    @staticmethod
    def entry(user: User, action: str, details: Optional[str] = None) -> ActivityLog:
        return ActivityLog(
            user_id=user.id,
            user_name=user.name,
            user_email=user.email,
            action=action,
            details=details,
        )

    @staticmethod
    def properties_imported(user: User, count: int, filename: str) -> ActivityLog:
        return ActivityLogBuilder.entry(
            user, "Properties Imported", f"{count} records from {filename}"
        )

    @staticmethod
    def bops_imported(user: User, count: int, filename: str) -> ActivityLog:
        return ActivityLogBuilder.entry(
            user, "BOPs Imported", f"{count} records from {filename}"
        )

    @staticmethod
    def bills_printed(user: User, count: int, bill_type: str) -> ActivityLog:
        return ActivityLogBuilder.entry(
            user, "Bills Printed", f"{count} {bill_type} bills recorded"
        )

    @staticmethod
    def payment_received(
        user: User,
        amount: float,
        label: str,
        currency: str = "GHS",
    ) -> ActivityLog:
        return ActivityLogBuilder.entry(
            user, "Payment Received", f"{currency} {amount:.2f} for {label}"
        )

    @staticmethod
    def user_added(user: User, new_user: User) -> ActivityLog:
        return ActivityLogBuilder.entry(
            user, "User Added", f"{new_user.name} ({new_user.role.value})"
        )

    @staticmethod
    def sms_sent(user: User, sent: int, attempted: int) -> ActivityLog:
        return ActivityLogBuilder.entry(
            user, "SMS Sent", f"{sent} of {attempted} messages delivered"
        )
