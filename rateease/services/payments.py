"""
Mocked Payment Gateway

There is no real payment processor. ``initiate`` waits a moment to
simulate the network round trip and returns the URL the gateway would
redirect the payer to once the payment went through. The callback
parameters are then parsed back into a PaymentCallback for the
payment flow to apply.
"""

import asyncio
import time
from typing import Mapping, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

import structlog
from pydantic import BaseModel, Field

from rateease.config import get_settings

logger = structlog.get_logger(__name__)

CALLBACK_PATH = "/payment/callback"


class PaymentError(Exception):
    """Base exception for payments."""
    pass


class PaymentFailedError(PaymentError):
    """The gateway reported failure, or the callback is incomplete."""
    pass


class PaymentBillNotFoundError(PaymentError):
    """No property or BOP matches the paid bill id."""
    pass


class PaymentInitiation(BaseModel):
    authorization_url: str
    reference: str


class PaymentCallback(BaseModel):
    """Parameters the gateway redirects back with."""

    status: str
    reference: Optional[str] = None
    bill_id: Optional[str] = None
    amount: float = 0.0

    @property
    def is_success(self) -> bool:
        return (
            self.status == "success"
            and bool(self.reference)
            and bool(self.bill_id)
            and self.amount > 0
        )

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> "PaymentCallback":
        try:
            amount = float(params.get("amount") or 0)
        except ValueError:
            amount = 0.0
        return cls(
            status=params.get("status") or "",
            reference=params.get("reference") or None,
            bill_id=params.get("billId") or None,
            amount=amount,
        )

    @classmethod
    def from_url(cls, url: str) -> "PaymentCallback":
        query = parse_qs(urlsplit(url).query)
        return cls.from_params({key: values[0] for key, values in query.items()})


class MockPaymentGateway:
    """Stands in for the payment processor's initiate endpoint."""

    def __init__(self, delay_seconds: Optional[float] = None):
        if delay_seconds is None:
            delay_seconds = get_settings().app.payment_delay_seconds
        self._delay = delay_seconds

    async def initiate(
        self,
        amount: float,
        email: str,
        bill_id: str,
    ) -> PaymentInitiation:
        if amount <= 0:
            raise PaymentFailedError("Payment amount must be greater than zero.")

        await asyncio.sleep(self._delay)

        reference = str(int(time.time() * 1000))
        query = urlencode({
            "status": "success",
            "reference": reference,
            "billId": bill_id,
            "amount": f"{amount:.2f}",
        })
        logger.info(
            "payment_initiated",
            bill_id=bill_id,
            amount=amount,
            email=email,
            reference=reference,
        )
        return PaymentInitiation(
            authorization_url=f"{CALLBACK_PATH}?{query}",
            reference=reference,
        )
