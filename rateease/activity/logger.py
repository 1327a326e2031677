"""
Activity Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of who imported, billed, or received money
2. An Activity Logs page administrators can read
3. A structured local log for debugging

The activity logger:
- Refuses to record anything when nobody is logged in
- Gracefully handles storage failures (doesn't crash the app if logging fails)
"""

from typing import Optional

import structlog

from rateease.models.activity import ActivityLog, ActivityLogBuilder
from rateease.models.users import User
from rateease.repositories.activity import ActivityLogRepository
from rateease.services.storage import StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityLogger:
    """
    Central activity logging service.

    Logs entries both to:
    1. Structured local log (for debugging)
    2. The activity log repository (for the Activity Logs page)
    """

    def __init__(self, repository: Optional[ActivityLogRepository] = None):
        """
        Args:
            repository: Where entries are persisted.
                        If None, only logs locally.
        """
        self._repository = repository
        self._logger = structlog.get_logger()

    def log(self, entry: ActivityLog) -> bool:
        """
        Record an entry.

        Returns True if the write succeeded (or no repository configured).
        """
        self._logger.info("activity", **entry.to_log_dict())

        if self._repository:
            try:
                self._repository.append(entry)
            except StorageError as e:
                self._logger.error(
                    "activity_storage_failed",
                    error=str(e),
                    log_id=entry.id,
                )
                return False

        return True

    def log_action(
        self,
        user: Optional[User],
        action: str,
        details: Optional[str] = None,
    ) -> Optional[ActivityLog]:
        """
        Record ``action`` on behalf of ``user``.

        Returns the entry, or None when there is no logged-in user.
        """
        if user is None:
            self._logger.warning("activity_without_user", action=action)
            return None
        entry = ActivityLogBuilder.entry(user, action, details)
        self.log(entry)
        return entry

    def log_entry(self, user: Optional[User], entry: Optional[ActivityLog]) -> Optional[ActivityLog]:
        """Record a prebuilt entry, applying the same logged-in check."""
        if user is None or entry is None:
            self._logger.warning(
                "activity_without_user",
                action=entry.action if entry else None,
            )
            return None
        self.log(entry)
        return entry
