"""
SMS Notification Service

Sending a message is a single GET request to the gateway URL template
configured on the Settings page, e.g.

    https://sms.example.com/send?key={api_key}&from={sender_id}&to={phone}&msg={message}

Only the HTTP status is inspected (2xx = sent). Nothing is retried
automatically; the user re-sends from the Billing page.

Message templates use ``{{ Column Name }}`` placeholders resolved with the
header-alias resolver. Placeholders that cannot be resolved are left in
the message untouched so the mistake is visible.
"""

import re
from typing import Callable, Optional, Sequence, Union
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel

from rateease.core.resolver import get_record_value
from rateease.models.billing import Bill
from rateease.models.preferences import SmsSettings
from rateease.models.records import RateRecord

logger = structlog.get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^}]+?)\s*\}\}")


class SmsError(Exception):
    """Base exception for SMS sending."""
    pass


class SmsNotConfiguredError(SmsError):
    """No gateway URL/key/sender configured."""
    pass


class SmsResult(BaseModel):
    """Outcome of one message."""
    record_id: str
    phone_number: Optional[str] = None
    success: bool


def compile_template(template: str, data: Union[RateRecord, Bill]) -> str:
    """
    Fill ``{{ key }}`` placeholders from a record or bill.

    For bills, top-level bill attributes (total_amount_due, year, ...) win
    over columns of the property snapshot.
    """
    def replace(match: re.Match) -> str:
        key = match.group(1)
        if isinstance(data, Bill):
            if key in Bill.model_fields and key != "property_snapshot":
                return str(getattr(data, key))
            value = get_record_value(data.property_snapshot, key)
        else:
            value = get_record_value(data, key)
        return match.group(0) if not value else str(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


class SmsService:
    """
    Sends messages through a GET-based SMS gateway.

    The settings object is read on every call so that changes saved on the
    Settings page apply without restarting.
    """

    def __init__(
        self,
        settings_provider: Callable[[], SmsSettings],
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            settings_provider: Zero-argument callable returning SmsSettings
            client: HTTP client to use (a new one per call if None)
        """
        self._settings_provider = settings_provider
        self._client = client
        self._timeout = timeout

    @property
    def settings(self) -> SmsSettings:
        return self._settings_provider()

    def build_url(self, phone_number: str, message: str) -> str:
        config = self.settings
        return config.sms_api_url.format(
            api_key=quote(config.sms_api_key, safe=""),
            sender_id=quote(config.sms_sender_id, safe=""),
            phone=quote(str(phone_number), safe="+"),
            message=quote(message, safe=""),
        )

    async def send_single(self, phone_number: str, message: str) -> bool:
        """
        Send one message.

        Returns False (never raises) when the gateway is not configured,
        rejects the request, or cannot be reached.
        """
        config = self.settings
        if not config.is_configured:
            logger.error("sms_not_configured")
            return False

        try:
            url = self.build_url(phone_number, message)
        except (KeyError, IndexError, ValueError) as e:
            logger.error("sms_url_template_invalid", error=str(e))
            return False

        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning("sms_send_failed", phone=str(phone_number), error=str(e))
            return False

        success = response.is_success
        logger.info(
            "sms_sent" if success else "sms_rejected",
            phone=str(phone_number),
            sender_id=config.sms_sender_id,
            status_code=response.status_code,
        )
        return success

    async def send_bulk(
        self,
        records: Sequence[RateRecord],
        message_template: str,
    ) -> list[SmsResult]:
        """
        Send a templated message to every record with a phone number.

        Raises:
            SmsNotConfiguredError: No gateway URL is configured
        """
        if not self.settings.sms_api_url:
            raise SmsNotConfiguredError(
                "Please configure SMS settings on the Settings page first."
            )

        results = []
        for record in records:
            phone_number = get_record_value(record, "Phone Number")
            if phone_number:
                message = compile_template(message_template, record)
                success = await self.send_single(str(phone_number), message)
                results.append(SmsResult(
                    record_id=record.id,
                    phone_number=str(phone_number),
                    success=success,
                ))
            else:
                results.append(SmsResult(record_id=record.id, success=False))
        return results

    async def send_new_property(self, record: RateRecord) -> Optional[bool]:
        """
        Welcome message for a newly added property.

        Returns None when the notification is switched off or the record
        has no phone number, otherwise whether the message was sent.
        """
        config = self.settings
        if not config.enable_sms_on_new_property or not config.new_property_message_template:
            return None

        phone_number = get_record_value(record, "Phone Number")
        if not phone_number:
            logger.info("sms_skipped_no_phone", record_id=record.id)
            return None

        message = compile_template(config.new_property_message_template, record)
        return await self.send_single(str(phone_number), message)

    async def send_bills_generated(self, bills: Sequence[Bill]) -> int:
        """Notify owners of freshly printed bills. Returns the number sent."""
        config = self.settings
        if not config.enable_sms_on_bill_generated or not config.bill_generated_message_template:
            return 0

        sent = 0
        for bill in bills:
            phone_number = get_record_value(bill.property_snapshot, "Phone Number")
            if not phone_number:
                continue
            message = compile_template(config.bill_generated_message_template, bill)
            if await self.send_single(str(phone_number), message):
                sent += 1
        return sent
