"""
Activity log repository (append-only, newest first).
"""

from typing import Optional

from rateease.models.activity import ActivityLog
from rateease.services.storage import StorageInterface, StoreKey


class ActivityLogRepository:
    def __init__(self, storage: StorageInterface):
        self._storage = storage

    def list_logs(self, limit: Optional[int] = None) -> list[ActivityLog]:
        raw = self._storage.load(StoreKey.ACTIVITY_LOGS, default=[])
        logs = [ActivityLog.model_validate(item) for item in raw]
        return logs if limit is None else logs[:limit]

    def append(self, entry: ActivityLog) -> None:
        raw = self._storage.load(StoreKey.ACTIVITY_LOGS, default=[])
        raw.insert(0, entry.model_dump(mode="json"))
        self._storage.save(StoreKey.ACTIVITY_LOGS, raw)

    def for_user(self, user_id: str) -> list[ActivityLog]:
        return [log for log in self.list_logs() if log.user_id == user_id]
