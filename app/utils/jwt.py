import datetime as dt
from typing import Dict
import jwt
from flask import current_app


def _secret() -> str:
    return current_app.config["JWT_SECRET"]


def _utcnow():
    return dt.datetime.now(dt.timezone.utc)


def create_access_token(user_id: int, role: str) -> str:
    cfg = current_app.config
    payload: Dict = {
        "sub": str(user_id),
        "role": role,
        "type": "access",
        "exp": _utcnow() + dt.timedelta(minutes=cfg["ACCESS_TOKEN_LIFETIME_MIN"]),
    }
    return jwt.encode(payload, _secret(), algorithm="HS256")


class TokenError(Exception):
    pass


def decode_token(token: str, expected_type: str = "access") -> Dict:
    try:
        data = jwt.decode(token, _secret(), algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        raise TokenError("token expired")
    except jwt.InvalidTokenError:
        raise TokenError("invalid token")

    if data.get("type") != expected_type:
        raise TokenError(f"expected {expected_type} token")
    try:
        data["sub"] = int(data["sub"])
    except (KeyError, TypeError, ValueError):
        raise TokenError("invalid subject")
    return data
