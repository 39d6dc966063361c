"""
Payment Gateway Integration

HTTP client for the card/wallet gateway. Without a configured URL and API
key the client emulates the gateway locally, but only where
PAYMENT_GATEWAY_SANDBOX allows it (development and the test suite).
Elsewhere an unconfigured gateway is an error.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import requests
from django.conf import settings

from shared.domain.value_objects import Money

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """The gateway could not be reached or rejected the request."""


@dataclass(frozen=True)
class ChargeResult:
    external_id: str
    status: str
    checkout_url: str = ""
    raw: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class RefundResult:
    status: str
    raw: dict = field(default_factory=dict, compare=False)


class PaymentGateway(ABC):
    @abstractmethod
    def charge(self, amount: Money, metadata: dict) -> ChargeResult:
        ...

    @abstractmethod
    def refund(self, external_id: str, amount: Money) -> RefundResult:
        ...


class HttpPaymentGateway(PaymentGateway):
    """
    JSON-over-HTTP gateway client

    POST {base}/charges            -> {"id", "status", "checkout_url"}
    POST {base}/charges/{id}/refunds -> {"status"}
    """

    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: float | None = None):
        self.base_url = (settings.PAYMENT_GATEWAY_URL if base_url is None else base_url).rstrip("/")
        self.api_key = settings.PAYMENT_GATEWAY_API_KEY if api_key is None else api_key
        self.timeout = settings.PAYMENT_GATEWAY_TIMEOUT if timeout is None else timeout

    @property
    def sandbox(self) -> bool:
        return not (self.base_url and self.api_key)

    def _ensure_sandbox_allowed(self, operation: str) -> None:
        if not settings.PAYMENT_GATEWAY_SANDBOX:
            logger.error(f"Payment gateway is not configured and sandbox mode is off, cannot {operation}")
            raise PaymentGatewayError("Payment gateway is not configured")

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _post(self, path: str, payload: dict) -> dict:
        try:
            response = requests.post(
                f"{self.base_url}{path}",
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Payment gateway request to {path} failed: {e}")
            raise PaymentGatewayError(f"Payment gateway unavailable: {e}") from e
        except ValueError as e:
            logger.error(f"Payment gateway returned invalid JSON for {path}")
            raise PaymentGatewayError("Payment gateway returned an invalid response") from e

    def charge(self, amount: Money, metadata: dict) -> ChargeResult:
        logger.info(f"Starting charge of {amount} for booking {metadata.get('booking_id')}")

        if self.sandbox:
            self._ensure_sandbox_allowed("charge")
            logger.warning("Payment gateway is not configured, using sandbox emulation")
            external_id = f"sandbox_{uuid.uuid4().hex[:16]}"
            return ChargeResult(
                external_id=external_id,
                status="pending",
                checkout_url=f"https://sandbox.payments.local/checkout/{external_id}",
                raw={"amount": str(amount.amount), "currency": amount.currency, "metadata": metadata},
            )

        result = self._post(
            "/charges",
            {
                "amount": str(amount.amount),
                "currency": amount.currency,
                "metadata": metadata,
                "idempotency_key": f"booking-{metadata.get('booking_id')}-{uuid.uuid4().hex[:8]}",
            },
        )
        external_id = result.get("id")
        if not external_id:
            error_msg = (result.get("error") or {}).get("message", "missing charge id")
            logger.error(f"Payment gateway returned an error: {error_msg}")
            raise PaymentGatewayError(f"Payment gateway error: {error_msg}")

        logger.info(f"Charge {external_id} created with status {result.get('status')}")
        return ChargeResult(
            external_id=external_id,
            status=str(result.get("status", "pending")),
            checkout_url=result.get("checkout_url", ""),
            raw=result,
        )

    def refund(self, external_id: str, amount: Money) -> RefundResult:
        logger.info(f"Refunding {amount} on charge {external_id}")

        if self.sandbox:
            self._ensure_sandbox_allowed("refund")
            logger.warning("Payment gateway is not configured, emulating refund")
            return RefundResult(status="refunded", raw={"id": external_id})

        result = self._post(
            f"/charges/{external_id}/refunds",
            {"amount": str(amount.amount), "currency": amount.currency},
        )
        return RefundResult(status=str(result.get("status", "pending")), raw=result)


def get_gateway() -> PaymentGateway:
    return HttpPaymentGateway()
