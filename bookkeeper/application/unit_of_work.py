"""
Unit of work: one database transaction per use case.

Usage:
    with unit_of_work(self.db):
        ...  # reads, checks, mutations
    # committed here; any exception above rolled everything back
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bookkeeper.domain.errors import BookkeepingError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session):
    try:
        yield db
        db.commit()
    except BookkeepingError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Unit of work rolled back after a storage error")
        raise StorageError("Storage failure, nothing was changed") from exc
    except Exception:
        db.rollback()
        raise
