# shopcart/repos/base.py
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError

from shopcart.domain.errors import PersistenceError
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


def persistence_guard(fn):
    """Rolls back the session and re-raises storage failures as PersistenceError."""

    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"{type(self).__name__}.{fn.__name__} failed: {e}")
            self.db.rollback()
            raise PersistenceError() from e

    return wrapper
