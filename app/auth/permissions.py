"""
Capability resolution for the access gate.

A caller's role is resolved once, at the request boundary, into a frozen set
of permissions that every route checks the same way.
"""
from typing import FrozenSet, NamedTuple

CART = "cart"
ORDERS_OWN = "orders:own"
ORDERS_MANAGE = "orders:manage"
ORDERS_ALL = "orders:all"
PRODUCTS_WRITE = "products:write"

ALL_PERMISSIONS = frozenset({CART, ORDERS_OWN, ORDERS_MANAGE, ORDERS_ALL, PRODUCTS_WRITE})

ROLE_PERMISSIONS = {
    "customer": frozenset({CART, ORDERS_OWN}),
    "seller":   frozenset({CART, ORDERS_OWN, ORDERS_MANAGE, ORDERS_ALL, PRODUCTS_WRITE}),
    "admin":    ALL_PERMISSIONS,
}


class Principal(NamedTuple):
    user_id: int
    role: str
    permissions: FrozenSet[str]

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def can(self, permission: str) -> bool:
        return permission in self.permissions


def resolve_permissions(role: str) -> FrozenSet[str]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def principal_for(user_id: int, role: str) -> Principal:
    return Principal(user_id=user_id, role=role, permissions=resolve_permissions(role))
