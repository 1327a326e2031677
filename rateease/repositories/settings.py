"""
Persisted preferences (Settings page).
"""

from typing import Union

import structlog

from rateease.models.preferences import (
    AppearanceSettings,
    GeneralSettings,
    IntegrationSettings,
    Preferences,
    SmsSettings,
)
from rateease.services.storage import StorageInterface, StoreKey

logger = structlog.get_logger(__name__)

Section = Union[GeneralSettings, AppearanceSettings, SmsSettings, IntegrationSettings]

_SECTION_NAMES = {
    GeneralSettings: "general",
    AppearanceSettings: "appearance",
    SmsSettings: "sms",
    IntegrationSettings: "integrations",
}


class SettingsRepository:
    def __init__(self, storage: StorageInterface):
        self._storage = storage

    def get(self) -> Preferences:
        return Preferences.model_validate(self._storage.load(StoreKey.SETTINGS, default={}))

    def save(self, preferences: Preferences) -> None:
        self._storage.save(StoreKey.SETTINGS, preferences.model_dump(mode="json"))

    def save_section(self, section: Section) -> Preferences:
        """Replace one section, keeping the others."""
        name = _SECTION_NAMES[type(section)]
        preferences = self.get().model_copy(update={name: section})
        self.save(preferences)
        logger.info("settings_saved", section=name)
        return preferences

    def sms(self) -> SmsSettings:
        return self.get().sms
