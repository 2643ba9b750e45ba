from contextlib import contextmanager
import logging

from sqlalchemy.orm.exc import StaleDataError

from models import db

logger = logging.getLogger(__name__)


@contextmanager
def transactional(message="DB transaction failed"):
    """Commit the session when the block exits; roll back and re-raise on failure.

    A lost optimistic-lock race is only a warning here: ``conflict_retry``
    decides whether it becomes an error.
    """
    try:
        yield db.session
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        logger.warning("%s: row changed by a concurrent writer", message)
        raise
    except Exception as e:
        logger.error("%s: %s", message, e, exc_info=True)
        db.session.rollback()
        raise
