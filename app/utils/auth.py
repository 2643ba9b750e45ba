from functools import wraps
from flask import request, g
from .responses import error
from app.auth.permissions import principal_for
from .jwt import decode_token, TokenError
from models import db
from models.user import User


def _authenticate():
    """Resolve the bearer credential into ``g.principal``; return an error response on failure."""
    auth = request.headers.get("Authorization", "")
    if not auth:
        return error("Auth header missing", status=401)
    token = auth.split(" ", 1)[1] if auth.startswith("Bearer ") else auth
    try:
        payload = decode_token(token, expected_type="access")
    except TokenError as e:
        return error(str(e), status=401)

    user = db.session.get(User, payload["sub"])
    role = user.role if user and user.role else payload.get("role")
    g.principal = principal_for(payload["sub"], role)
    request.user = g.principal
    return None


def auth_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        failure = _authenticate()
        if failure is not None:
            return failure
        return func(*args, **kwargs)

    return wrapper


def _to_set(obj):
    return set(obj) if isinstance(obj, (list, tuple, set, frozenset)) else {obj}


def permission_required(required):
    """Authorize when the resolved principal holds ANY of the required permissions."""
    required_set = _to_set(required)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            principal = getattr(g, "principal", None)
            if principal is None:
                return error("Auth header missing", status=401)
            if not principal.role:
                return error("Role missing", status=403)
            if not required_set & principal.permissions:
                return error("Forbidden", status=403)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
