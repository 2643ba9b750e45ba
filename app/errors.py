import logging
from flask import Blueprint
from werkzeug.exceptions import HTTPException
from app.utils.responses import error

errors_bp = Blueprint("errors_bp", __name__)


class CoreError(Exception):
    """Base for failures of the cart/order core that map onto a client response."""

    status = 400
    error_type = "core_error"

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__ or self.error_type)

    @property
    def message(self):
        return self.args[0]


class ValidationError(CoreError):
    """Request rejected by validation"""
    error_type = "validation_error"


class InvalidQuantity(ValidationError):
    """Quantity must be a positive integer"""
    error_type = "invalid_quantity"


class EmptyCart(ValidationError):
    """Cart is empty"""
    error_type = "empty_cart"


class InvalidSignature(CoreError):
    """Invalid payment signature"""
    error_type = "invalid_signature"


class NotFound(CoreError):
    """Not found"""
    status = 404
    error_type = "not_found"


class ItemNotFound(NotFound):
    """Item not found in cart"""
    error_type = "item_not_found"


class Forbidden(CoreError):
    """Forbidden"""
    status = 403
    error_type = "forbidden"


class InvalidStatusTransition(CoreError):
    """Order status transition not allowed"""
    status = 409
    error_type = "invalid_status_transition"


class ConcurrencyConflict(CoreError):
    """Resource was modified concurrently, please retry"""
    status = 409
    error_type = "concurrency_conflict"


class UpstreamFailure(CoreError):
    """Payment gateway unavailable"""
    status = 502
    error_type = "upstream_failure"


@errors_bp.app_errorhandler(CoreError)
def handle_core_error(e):
    if e.status >= 500:
        logging.warning("Core operation failed upstream: %s", e.message)
    return error(e.message, status=e.status, error=e.error_type)


@errors_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    msg = e.description or getattr(e, "name", "HTTP Error")
    return error(msg, status=e.code, code=e.code)


@errors_bp.app_errorhandler(Exception)
def handle_unexpected_exception(e):
    logging.exception("Unhandled exception")
    return error(
        "An unexpected error occurred. Please try again later.",
        status=500,
        code=500,
    )
