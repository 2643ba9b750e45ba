"""Device-side cart: REST client, local mirror and the degraded-mode synchronizer."""
from .api import ApiError, CartApiClient, ServerUnavailable, extract_cart, extract_items
from .fallbacks import EmptyCartFallback, SampleCartFallback
from .mirror import LocalCartMirror, MirrorCart, MirrorItem, PendingMutation, ProductSnapshot
from .sync import SyncedCart

__all__ = [
    "ApiError",
    "CartApiClient",
    "ServerUnavailable",
    "extract_cart",
    "extract_items",
    "EmptyCartFallback",
    "SampleCartFallback",
    "LocalCartMirror",
    "MirrorCart",
    "MirrorItem",
    "PendingMutation",
    "ProductSnapshot",
    "SyncedCart",
]
