"""
Local cart mirror: a denormalized copy of the cart kept in device storage.

Items embed a product snapshot (name, price) so the cart can be shown and
edited without the server. The snapshot is always written whole.
"""
import logging
import os
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ProductId = Union[int, str]


class ProductSnapshot(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: ProductId
    name: str = ""
    price: float = 0.0
    image_url: Optional[str] = None


class MirrorItem(BaseModel):
    product: ProductSnapshot
    quantity: int = Field(ge=1)


class PendingMutation(BaseModel):
    op: Literal["add", "set_quantity", "remove", "clear"]
    product_id: Optional[ProductId] = None
    quantity: Optional[int] = None
    product: Optional[ProductSnapshot] = None
    queued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def same_product(a: ProductId, b: ProductId) -> bool:
    return str(a) == str(b)


class MirrorCart(BaseModel):
    items: List[MirrorItem] = []
    degraded: bool = False
    server_version: Optional[int] = None
    pending: List[PendingMutation] = []
    saved_at: Optional[datetime] = None

    def find(self, product_id: ProductId) -> Optional[MirrorItem]:
        for item in self.items:
            if same_product(item.product.id, product_id):
                return item
        return None

    @property
    def subtotal(self) -> Decimal:
        total = sum(
            (Decimal(str(item.product.price)) * item.quantity for item in self.items),
            Decimal("0"),
        )
        return total.quantize(Decimal("0.01"))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def apply(self, mutation: PendingMutation) -> None:
        """Apply a mutation with the server's rules: add sums, zero removes."""
        if mutation.op == "clear":
            self.items = []
            return
        existing = self.find(mutation.product_id)
        if mutation.op == "add":
            if existing is not None:
                existing.quantity += mutation.quantity
            else:
                self.items.append(MirrorItem(product=mutation.product, quantity=mutation.quantity))
        elif mutation.op == "set_quantity":
            if existing is None:
                return
            if mutation.quantity <= 0:
                self.items.remove(existing)
            else:
                existing.quantity = mutation.quantity
        elif mutation.op == "remove" and existing is not None:
            self.items.remove(existing)


class LocalCartMirror:
    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> MirrorCart:
        """Read the stored snapshot; anything missing or unreadable yields an empty cart."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return MirrorCart()
        except OSError as e:
            logger.warning("Could not read local cart mirror %s: %s", self.path, e)
            return MirrorCart()
        try:
            return MirrorCart.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Local cart mirror %s is corrupt, starting empty: %s", self.path, e.error_count())
            return MirrorCart()

    def save(self, cart: MirrorCart) -> None:
        cart.saved_at = datetime.now(timezone.utc)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(cart.model_dump_json(), encoding="utf-8")
        os.replace(tmp, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
