"""
Server-authoritative cart with a local mirror for when the server is gone.

Every mutation is applied to the in-memory cart first. When the server
confirms, its snapshot replaces the mirror and degraded mode ends. When the
server is unreachable the change is kept in the mirror, queued in ``pending``
and the cart turns ``degraded``; further mutations stay local until the next
successful ``fetch``.

A successful ``fetch`` is lossy: the server snapshot wins and any queued
changes are dropped (reported in ``last_dropped``). ``replay_pending`` is the
opt-in way to push them instead.
"""
import logging
from typing import Callable, Dict, List, Optional, Union

from .api import ApiError, CartApiClient, ServerUnavailable, extract_cart
from .fallbacks import EmptyCartFallback
from .mirror import LocalCartMirror, MirrorCart, MirrorItem, PendingMutation, ProductSnapshot

logger = logging.getLogger(__name__)


def _require_positive(quantity):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise ValueError("quantity must be a positive integer")


class SyncedCart:
    def __init__(self, api: CartApiClient, mirror: LocalCartMirror, fallback=None):
        self.api = api
        self.mirror = mirror
        self.fallback = fallback or EmptyCartFallback()
        self.state: MirrorCart = mirror.load()
        self.last_dropped: List[PendingMutation] = []
        self.showing_fallback = False

    @property
    def degraded(self) -> bool:
        return self.state.degraded

    @property
    def items(self) -> List[MirrorItem]:
        return self.state.items

    @property
    def pending(self) -> List[PendingMutation]:
        return self.state.pending

    def _adopt_server(self, payload) -> MirrorCart:
        items, version = extract_cart(payload)
        if self.state.pending:
            self.last_dropped = list(self.state.pending)
            logger.warning("Server cart replaced %d unsynced local change(s)", len(self.last_dropped))
        self.state = MirrorCart(items=items, server_version=version)
        self.showing_fallback = False
        self.mirror.save(self.state)
        return self.state

    def _keep_local(self, mutation: PendingMutation, reason: str) -> MirrorCart:
        if not self.state.degraded:
            logger.warning("Cart server unavailable (%s), continuing on local mirror", reason)
        self.state.pending.append(mutation)
        self.state.degraded = True
        self.mirror.save(self.state)
        return self.state

    def _mutate(self, mutation: PendingMutation, call: Callable[[], object]) -> MirrorCart:
        before = self.state.model_copy(deep=True)
        was_fallback = self.showing_fallback
        if self.showing_fallback:
            # placeholder lines are display only, the user's cart starts empty
            self.state.items = []
            self.showing_fallback = False
        self.state.apply(mutation)
        if self.state.degraded:
            return self._keep_local(mutation, "degraded")
        try:
            payload = call()
        except ServerUnavailable as e:
            return self._keep_local(mutation, str(e))
        except ApiError:
            self.state = before
            self.showing_fallback = was_fallback
            raise
        return self._adopt_server(payload)

    def fetch(self) -> MirrorCart:
        """Load the server cart; fall back to the mirror, then to the fallback strategy."""
        try:
            payload = self.api.get_cart()
        except ServerUnavailable as e:
            logger.warning("Cart server unavailable (%s), showing local mirror", e)
            self.state = self.mirror.load()
            self.state.degraded = True
            if not self.state.items and not self.state.pending:
                self.state.items = self.fallback.items()
                self.showing_fallback = bool(self.state.items)
            return self.state
        return self._adopt_server(payload)

    def add(self, product: Union[Dict, ProductSnapshot], quantity: int = 1) -> MirrorCart:
        _require_positive(quantity)
        snapshot = product if isinstance(product, ProductSnapshot) else ProductSnapshot.model_validate(product)
        mutation = PendingMutation(op="add", product_id=snapshot.id, quantity=quantity, product=snapshot)
        return self._mutate(mutation, lambda: self.api.add_item(snapshot.id, quantity))

    def set_quantity(self, product_id, quantity: int) -> MirrorCart:
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise ValueError("quantity must be an integer")
        mutation = PendingMutation(op="set_quantity", product_id=product_id, quantity=quantity)
        return self._mutate(mutation, lambda: self.api.set_quantity(product_id, quantity))

    def remove(self, product_id) -> MirrorCart:
        mutation = PendingMutation(op="remove", product_id=product_id)
        return self._mutate(mutation, lambda: self.api.remove_item(product_id))

    def clear(self) -> MirrorCart:
        return self._mutate(PendingMutation(op="clear"), self.api.clear_cart)

    def _send(self, mutation: PendingMutation):
        if mutation.op == "add":
            return self.api.add_item(mutation.product_id, mutation.quantity)
        if mutation.op == "set_quantity":
            return self.api.set_quantity(mutation.product_id, mutation.quantity)
        if mutation.op == "remove":
            return self.api.remove_item(mutation.product_id)
        return self.api.clear_cart()

    def replay_pending(self) -> Optional[MirrorCart]:
        """Re-send queued changes in order, then adopt the server cart.

        Changes the server rejects are dropped into ``last_dropped``. If the
        server goes away mid-replay the unsent tail stays queued and ``None``
        is returned.
        """
        queue = list(self.state.pending)
        rejected: List[PendingMutation] = []
        for index, mutation in enumerate(queue):
            try:
                self._send(mutation)
            except ServerUnavailable as e:
                logger.warning("Replay interrupted after %d change(s): %s", index, e)
                self.state.pending = queue[index:]
                self.mirror.save(self.state)
                return None
            except ApiError as e:
                logger.warning("Server rejected queued %s for product %s: %s", mutation.op, mutation.product_id, e)
                rejected.append(mutation)

        self.state.pending = []
        try:
            payload = self.api.get_cart()
        except ServerUnavailable:
            self.mirror.save(self.state)
            return None
        state = self._adopt_server(payload)
        self.last_dropped = rejected
        return state
