"""
Transaction and retry plumbing shared by the services.

``transaction()`` gives a caller its own session, bound to one pooled
connection for the duration of the block. ``db_retry()`` runs a unit of
work through the retry executor, retrying only connection-class failures.
"""
import logging
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from crm_backend.extensions import db
from crm_backend.services.errors import ServiceError, TransientDatabaseError
from crm_backend.utils.retry import execute_with_retry

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)

# MySQL error numbers
ER_BAD_FIELD_ERROR = 1054
ER_ROW_IS_REFERENCED_2 = 1451
ER_NO_REFERENCED_ROW_2 = 1452
# Lost connection / server gone away / can't connect
MYSQL_CONNECTION_ERRORS = {2002, 2003, 2006, 2013}


def _mysql_errno(error):
    orig = getattr(error, 'orig', None)
    args = getattr(orig, 'args', None) or ()
    if args and isinstance(args[0], int):
        return args[0]
    return None


def is_unknown_column_error(error) -> bool:
    """True when the statement named a column the live table does not have."""
    if _mysql_errno(error) == ER_BAD_FIELD_ERROR:
        return True
    message = str(getattr(error, 'orig', error)).lower()
    return 'no such column' in message or 'has no column named' in message


def is_foreign_key_violation(error) -> bool:
    if not isinstance(error, sa_exc.IntegrityError):
        return False
    if _mysql_errno(error) in (ER_ROW_IS_REFERENCED_2, ER_NO_REFERENCED_ROW_2):
        return True
    return 'foreign key' in str(error.orig).lower()


def is_transient_error(error) -> bool:
    if isinstance(error, TRANSIENT_DB_ERRORS):
        return True
    if isinstance(error, sa_exc.OperationalError):
        if getattr(error, 'connection_invalidated', False):
            return True
        if _mysql_errno(error) in MYSQL_CONNECTION_ERRORS:
            return True
        return 'database is locked' in str(error.orig).lower()
    return False


class _TransientFailure(Exception):
    """Marks an error as retryable for execute_with_retry."""

    def __init__(self, error):
        super().__init__(str(error))
        self.error = error


def db_retry(unit_of_work):
    """
    Run ``unit_of_work`` with the configured retry policy.

    Only connection-class failures are retried; the shared session is rolled
    back between attempts. Everything else propagates on the first failure.
    When the attempts run out a TransientDatabaseError is raised.
    """
    config = current_app.config

    def attempt():
        try:
            return unit_of_work()
        except sa_exc.DBAPIError as e:
            if is_transient_error(e):
                raise _TransientFailure(e) from e
            raise

    try:
        return execute_with_retry(
            attempt,
            max_retries=config.get('DB_RETRY_ATTEMPTS', 3),
            delay=config.get('DB_RETRY_DELAY', 1.0),
            retry_on=(_TransientFailure,),
            on_retry=lambda _: db.session.rollback(),
        )
    except _TransientFailure as failure:
        db.session.rollback()
        logger.error(f"Database unavailable after retries: {failure.error}")
        raise TransientDatabaseError("Database temporarily unavailable. Please try again later.") from failure.error


@contextmanager
def transaction(name='transaction'):
    """
    Yield a session that commits on success and rolls back on any error.

    The session is closed in every case, which hands its connection back
    to the pool.
    """
    session = Session(bind=db.engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except ServiceError as e:
        session.rollback()
        logger.info(f"Rolled back {name}: {e.message}")
        raise
    except Exception as e:
        session.rollback()
        logger.error(f"Rolled back {name}: {e}", exc_info=True)
        raise
    finally:
        session.close()
