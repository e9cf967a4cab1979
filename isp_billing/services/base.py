# isp_billing/services/base.py - Transaction boundary shared by the services
import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from isp_billing.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@contextmanager
def atomic(db: Session, action: str):
    """
    Run a block as one unit of work: commit on success, roll back on any error.

    Database failures are re-raised as PersistenceError so callers never see a
    partially applied write; domain errors pass through unchanged.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{action} failed, transaction rolled back: {e}")
        raise PersistenceError(f"{action} failed: {e.__class__.__name__}") from e
    except Exception:
        db.rollback()
        raise
