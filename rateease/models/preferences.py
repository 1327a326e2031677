"""
User-editable preferences.

These are saved from the Settings page and persisted with the rest of the
data, unlike rateease.config which is read from the environment.
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

GOOGLE_SHEET_ID_PATTERN = re.compile(r"spreadsheets/d/([a-zA-Z0-9-_]+)")


class GeneralSettings(BaseModel):
    """Assembly details printed on every bill."""
    model_config = ConfigDict(str_strip_whitespace=True)

    system_name: str = ""
    assembly_name: str = ""
    postal_address: str = ""
    contact_phone: str = ""
    contact_email: str = ""


class AppearanceSettings(BaseModel):
    """Bill print layout options."""

    bill_warning_text: str = ""
    font_family: Literal["sans", "serif", "mono"] = "sans"
    font_size: int = Field(default=12, ge=6, le=32)
    accent_color: str = Field(default="#000000", pattern=r"^#[0-9a-fA-F]{6}$")
    assembly_logo: Optional[str] = None
    ghana_logo: Optional[str] = None
    signature: Optional[str] = None


class SmsSettings(BaseModel):
    """
    SMS gateway configuration.

    ``sms_api_url`` is a GET URL template; the placeholders {api_key},
    {sender_id}, {phone} and {message} are filled in per message.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    sms_api_url: str = ""
    sms_api_key: str = ""
    sms_sender_id: str = Field(default="", max_length=11)

    enable_sms_on_new_property: bool = False
    new_property_message_template: str = ""
    enable_sms_on_bill_generated: bool = False
    bill_generated_message_template: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.sms_api_url and self.sms_api_key and self.sms_sender_id)


class IntegrationSettings(BaseModel):
    """Connected Google Sheets."""
    model_config = ConfigDict(str_strip_whitespace=True)

    google_sheet_url: str = ""
    bop_google_sheet_url: str = ""

    @field_validator('google_sheet_url', 'bop_google_sheet_url')
    @classmethod
    def validate_sheet_url(cls, v: str) -> str:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Please enter a valid Google Sheet URL.")
        return v


class Preferences(BaseModel):
    """Everything saved from the Settings page."""

    general: GeneralSettings = Field(default_factory=GeneralSettings)
    appearance: AppearanceSettings = Field(default_factory=AppearanceSettings)
    sms: SmsSettings = Field(default_factory=SmsSettings)
    integrations: IntegrationSettings = Field(default_factory=IntegrationSettings)


def extract_sheet_id(url: str) -> Optional[str]:
    """Pull the spreadsheet id out of a Google Sheets URL."""
    match = GOOGLE_SHEET_ID_PATTERN.search(url or "")
    return match.group(1) if match else None
