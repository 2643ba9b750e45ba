"""
Payment gateway boundary.

The core needs two things from the gateway: a payment intent ("gateway order")
created for an amount and receipt, and the shared secret used to sign the
gateway's payment confirmation. ``RazorpayGateway`` talks to the real API,
``FakeGateway`` is used in development and tests.
"""
import hashlib
import hmac
import logging
import uuid
from typing import Callable, Dict, Optional

import requests
from flask import current_app
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    pass


def compute_signature(secret: str, gateway_order_id: str, payment_id: str) -> str:
    message = f"{gateway_order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, supplied) -> bool:
    if not isinstance(supplied, str):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )


class PaymentGateway:
    name = "base"

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("payment gateway secret is required")
        self._secret = secret

    def create_order(self, amount: int, currency: str, receipt: str) -> Dict:
        raise NotImplementedError

    def expected_signature(self, gateway_order_id: str, payment_id: str) -> str:
        return compute_signature(self._secret, gateway_order_id, payment_id)


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(self, key_id: str, key_secret: str, api_url: str, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        super().__init__(key_secret)
        self.key_id = key_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @http_retry()
    def _post_order(self, payload: Dict) -> requests.Response:
        url = f"{self.api_url}/orders"
        logger.info("Razorpay POST %s receipt=%s", url, payload.get("receipt"))
        return self.session.post(
            url, json=payload, auth=(self.key_id, self._secret), timeout=self.timeout
        )

    def create_order(self, amount: int, currency: str, receipt: str) -> Dict:
        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        try:
            resp = self._post_order(payload)
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            logger.error("Razorpay order creation failed: %s", e)
            raise GatewayError(str(e)) from e
        except ValueError as e:
            raise GatewayError("gateway returned a malformed response") from e
        if not body.get("id"):
            raise GatewayError("gateway response missing order id")
        return {
            "id": body["id"],
            "amount": body.get("amount", amount),
            "currency": body.get("currency", currency),
            "receipt": body.get("receipt", receipt),
        }


class FakeGateway(PaymentGateway):
    """In-process gateway: issues ids locally, can be told to fail."""

    name = "fake"

    def __init__(self, secret: str, order_id_factory: Optional[Callable[[], str]] = None):
        super().__init__(secret)
        self.order_id_factory = order_id_factory or (lambda: f"order_{uuid.uuid4().hex[:14]}")
        self.fail = False
        self.requests = []

    def create_order(self, amount: int, currency: str, receipt: str) -> Dict:
        self.requests.append({"amount": amount, "currency": currency, "receipt": receipt})
        if self.fail:
            raise GatewayError("fake gateway unavailable")
        return {"id": self.order_id_factory(), "amount": amount, "currency": currency, "receipt": receipt}


def build_gateway(config) -> PaymentGateway:
    kind = (config.get("PAYMENT_GATEWAY") or "razorpay").lower()
    if kind == "fake":
        return FakeGateway(config.get("RAZORPAY_KEY_SECRET"))
    if kind == "razorpay":
        return RazorpayGateway(
            key_id=config.get("RAZORPAY_KEY_ID"),
            key_secret=config.get("RAZORPAY_KEY_SECRET"),
            api_url=config.get("RAZORPAY_API_URL", "https://api.razorpay.com/v1"),
            timeout=config.get("GATEWAY_TIMEOUT_SECONDS", 10),
        )
    raise ValueError(f"unknown payment gateway: {kind}")


def init_gateway(app) -> PaymentGateway:
    gateway = build_gateway(app.config)
    app.extensions["payment_gateway"] = gateway
    app.logger.info("Payment gateway configured: %s", gateway.name)
    return gateway


def get_gateway() -> PaymentGateway:
    return current_app.extensions["payment_gateway"]
