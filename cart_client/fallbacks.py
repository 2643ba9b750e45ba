"""What to show when neither the server nor the mirror has a cart."""
from typing import Dict, List, Optional

from .mirror import MirrorItem


class EmptyCartFallback:
    def items(self) -> List[MirrorItem]:
        return []


class SampleCartFallback:
    """Demo products, for showcase builds only."""

    DEFAULT_ITEMS = [
        {"product": {"id": "sample-1", "name": "Wireless Headphones", "price": 99.99}, "quantity": 1},
        {"product": {"id": "sample-2", "name": "Smart Watch", "price": 199.99}, "quantity": 1},
    ]

    def __init__(self, items: Optional[List[Dict]] = None):
        self._items = items if items is not None else self.DEFAULT_ITEMS

    def items(self) -> List[MirrorItem]:
        return [MirrorItem.model_validate(item) for item in self._items]
