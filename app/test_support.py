from flask import Blueprint, current_app, request
from app.utils.responses import ok
from app.utils.jwt import create_access_token
from models import db
from models.user import User


test_support_bp = Blueprint("test_support_bp", __name__)


@test_support_bp.route("/__ok", methods=["GET"])
def __ok():
    return ok({"ping": "pong"})


@test_support_bp.route("/__boom", methods=["GET"])
def __boom():
    raise RuntimeError("boom")


@test_support_bp.route("/__log", methods=["GET"])
def __log():
    current_app.logger.info("test log line")
    return ok({"logged": True})


@test_support_bp.route("/__auth/login_stub", methods=["POST"])
def __login_stub():
    """Stand-in for the external access gate: issue a token for a (new) user."""
    j = request.get_json() or {}
    role = j.get("role", "customer")
    user = None
    if j.get("user_id") is not None:
        user = db.session.get(User, j["user_id"])
    if user is None:
        user = User(email=j.get("email"), name=j.get("name"), role=role)
        db.session.add(user)
        db.session.commit()
    return ok({
        "user_id": user.id,
        "access": create_access_token(user.id, user.role),
    })
