# shopcart/services/payment_gateway.py
"""Payment gateway port plus the HTTP adapter and an in-process fake.

The checkout flow only needs one hook from the provider: charge an amount and
say whether it went through. Adapters are constructed once per process and
injected; nothing here is a module-level client.
"""
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

import requests
from requests import RequestException

from shopcart.domain.errors import PaymentGatewayError
from shopcart.utils.logging import get_logger
from shopcart.utils.retry import http_retry
from shopcart.utils.settings import (
    PAYMENT_GATEWAY,
    PAYMENT_GATEWAY_API_KEY,
    PAYMENT_GATEWAY_TIMEOUT,
    PAYMENT_GATEWAY_URL,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    transaction_id: str | None = None
    status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    @abstractmethod
    def create_charge(
        self,
        amount: Decimal,
        currency: str,
        payment_token: str,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge the payment method; a decline is a result, not an exception."""
        ...


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).to_integral_value())


class HttpPaymentGateway(PaymentGateway):
    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: int | None = None):
        self.base_url = (base_url or PAYMENT_GATEWAY_URL).rstrip("/")
        self.timeout = timeout or PAYMENT_GATEWAY_TIMEOUT
        self.session = requests.Session()
        self.session.headers["Authorization"] = f"Bearer {api_key or PAYMENT_GATEWAY_API_KEY}"

    @http_retry()
    def _post_charge(self, payload: dict, idempotency_key: str) -> requests.Response:
        url = f"{self.base_url}/charges"
        logger.info(f"PaymentGateway POST {url} key={idempotency_key}")
        return self.session.post(
            url,
            json=payload,
            headers={"Idempotency-Key": idempotency_key},
            timeout=self.timeout,
        )

    def create_charge(self, amount, currency, payment_token, idempotency_key) -> ChargeResult:
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "source": payment_token,
        }
        try:
            resp = self._post_charge(payload, idempotency_key)
        except RequestException as e:
            logger.error(f"Payment gateway unreachable: {e}")
            raise PaymentGatewayError() from e

        if resp.status_code == 402:
            body = self._body(resp)
            return ChargeResult(
                success=False,
                transaction_id=body.get("id"),
                status=body.get("status", "declined"),
                failure_reason=body.get("failure_reason") or body.get("message"),
            )

        try:
            resp.raise_for_status()
        except RequestException as e:
            logger.error(f"Payment gateway error {resp.status_code}: {e}")
            raise PaymentGatewayError() from e

        body = self._body(resp)
        status = body.get("status")
        return ChargeResult(
            success=status == "succeeded",
            transaction_id=body.get("id"),
            status=status,
            failure_reason=body.get("failure_reason"),
        )

    @staticmethod
    def _body(resp: requests.Response) -> dict:
        try:
            body = resp.json()
        except ValueError as e:
            logger.error(f"Payment gateway returned non-JSON body ({resp.status_code}): {resp.text[:200]}")
            raise PaymentGatewayError() from e
        if not isinstance(body, dict):
            logger.error(f"Payment gateway returned unexpected body ({resp.status_code}): {body!r}")
            raise PaymentGatewayError()
        return body


class FakePaymentGateway(PaymentGateway):
    """Always-available gateway for local runs and tests."""

    def __init__(self, decline_reason: str | None = None, unavailable: bool = False):
        self.decline_reason = decline_reason
        self.unavailable = unavailable
        self.charges = []

    def create_charge(self, amount, currency, payment_token, idempotency_key) -> ChargeResult:
        self.charges.append(
            {
                "amount": Decimal(amount),
                "currency": currency,
                "payment_token": payment_token,
                "idempotency_key": idempotency_key,
            }
        )
        if self.unavailable:
            raise PaymentGatewayError()
        if self.decline_reason:
            return ChargeResult(success=False, status="declined", failure_reason=self.decline_reason)
        return ChargeResult(success=True, transaction_id=f"fake_{uuid.uuid4().hex[:16]}", status="succeeded")


def build_gateway() -> PaymentGateway:
    if PAYMENT_GATEWAY == "fake":
        logger.warning("PAYMENT_GATEWAY=fake, charges are approved without a payment provider")
        return FakePaymentGateway()

    if PAYMENT_GATEWAY != "http":
        raise RuntimeError(f"Unknown PAYMENT_GATEWAY \"{PAYMENT_GATEWAY}\", expected \"http\" or \"fake\"")

    if not PAYMENT_GATEWAY_URL:
        raise RuntimeError("PAYMENT_GATEWAY_URL is not set")

    return HttpPaymentGateway()
