from functools import wraps
import logging

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.errors import ConcurrencyConflict
from models import db

logger = logging.getLogger(__name__)


def _rollback_before_retry(retry_state):
    db.session.rollback()
    logger.warning(
        "Concurrent update on %s, retrying (attempt %s)",
        getattr(retry_state.fn, "__name__", "operation"),
        retry_state.attempt_number,
    )


def conflict_retry(fn):
    """Re-run a versioned read-modify-write when another writer got there first.

    The wrapped function must load its rows and commit inside the call so that
    each attempt starts from fresh state.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(current_app.config.get("CART_CONFLICT_RETRIES", 3)),
            wait=wait_exponential(multiplier=0.01, min=0.01, max=0.2),
            retry=retry_if_exception_type(StaleDataError),
            before_sleep=_rollback_before_retry,
        )
        try:
            return retrying(fn, *args, **kwargs)
        except StaleDataError:
            db.session.rollback()
            raise ConcurrencyConflict()

    return wrapper
