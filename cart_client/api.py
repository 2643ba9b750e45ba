"""
HTTP client for the cart and order endpoints.

Failures are split in two: ``ServerUnavailable`` when the server cannot be
reached or answers 5xx (the caller may fall back to its local mirror), and
``ApiError`` when the server rejected the request (4xx, not retryable).
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .mirror import MirrorItem

logger = logging.getLogger(__name__)


class ServerUnavailable(Exception):
    pass


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.code = code


def _locate_cart(payload: Any) -> Tuple[Optional[list], Optional[dict]]:
    if isinstance(payload, list):
        return payload, None
    if not isinstance(payload, dict):
        return None, None
    if isinstance(payload.get("items"), list):
        return payload["items"], payload
    cart = payload.get("cart")
    if isinstance(cart, dict) and isinstance(cart.get("items"), list):
        return cart["items"], cart
    if "data" in payload:
        return _locate_cart(payload["data"])
    return None, None


def _to_item(raw: Any) -> Optional[MirrorItem]:
    if not isinstance(raw, dict):
        return None
    product = raw.get("product")
    if not isinstance(product, dict):
        return None
    product = dict(product)
    if "id" not in product and "_id" in product:
        product["id"] = product.pop("_id")
    if product.get("id") is None:
        return None
    quantity = raw.get("quantity")
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        return None
    try:
        return MirrorItem(product=product, quantity=quantity)
    except ValidationError:
        return None


def extract_cart(payload: Any) -> Tuple[List[MirrorItem], Optional[int]]:
    """Pull cart items (and the cart version, when present) out of any known response shape.

    Accepted: ``{"items": [...]}``, a bare list, ``{"cart": {"items": [...]}}``
    and the enveloped ``{"data": {"cart": {"items": [...]}}}``. Items without a
    product object or with a non-integer quantity are dropped.
    """
    raw_items, cart = _locate_cart(payload)
    if raw_items is None:
        return [], None
    items = [item for item in (_to_item(raw) for raw in raw_items) if item is not None]
    if len(items) != len(raw_items):
        logger.warning("Dropped %d malformed cart item(s) from server response", len(raw_items) - len(items))
    version = cart.get("version") if cart else None
    if not isinstance(version, int) or isinstance(version, bool):
        version = None
    return items, version


def extract_items(payload: Any) -> List[MirrorItem]:
    return extract_cart(payload)[0]


class CartApiClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        retries: int = 3,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retries = max(1, retries)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        )

    def request(self, method: str, path: str, json: Optional[Dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._retrying()(
                self.session.request,
                method,
                url,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ServerUnavailable(str(e)) from e

        if resp.status_code >= 500:
            raise ServerUnavailable(f"{method} {path} returned {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as e:
            if resp.status_code >= 400:
                raise ApiError(resp.status_code, resp.text or "request failed") from e
            raise ServerUnavailable(f"{method} {path} returned a non-JSON body") from e
        if resp.status_code >= 400:
            body = body if isinstance(body, dict) else {}
            raise ApiError(resp.status_code, body.get("message", "request failed"), body.get("error"))
        return body

    # cart

    def get_cart(self):
        return self.request("GET", "/cart")

    def add_item(self, product_id, quantity: int = 1):
        return self.request("POST", "/cart/add", {"product_id": product_id, "quantity": quantity})

    def set_quantity(self, product_id, quantity: int):
        return self.request("PUT", f"/cart/update/{product_id}", {"quantity": quantity})

    def remove_item(self, product_id):
        return self.request("DELETE", f"/cart/remove/{product_id}")

    def clear_cart(self):
        return self.request("DELETE", "/cart/clear")

    # orders

    def create_order(self, payment_method: str, shipping_address: Optional[Dict] = None):
        payload = {"payment_method": payment_method}
        if shipping_address is not None:
            payload["shipping_address"] = shipping_address
        return self.request("POST", "/orders", payload)

    def verify_payment(self, order_id, payment_id: str, signature: str):
        return self.request(
            "POST",
            f"/orders/{order_id}/verify-payment",
            {"razorpay_payment_id": payment_id, "razorpay_signature": signature},
        )

    def list_orders(self):
        return self.request("GET", "/orders")
