import logging
import sqlite3
from flask_sqlalchemy import SQLAlchemy
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from typing import Dict, Any

logger = logging.getLogger(__name__)


class MonitoredSQLAlchemy(SQLAlchemy):
    """Extended SQLAlchemy with connection pool monitoring."""

    def get_pool_stats(self) -> Dict[str, Any]:
        """Get current connection pool statistics."""
        try:
            pool = self.engine.pool
            size = pool.size() if hasattr(pool, 'size') else 0
            checked_out = pool.checkedout() if hasattr(pool, 'checkedout') else 0
            overflow = pool.overflow() if callable(getattr(pool, 'overflow', None)) else 0
            return {
                'pool_size': size,
                'checked_out': checked_out,
                'overflow': overflow,
                'utilization_percent': (checked_out / max(size, 1)) * 100,
            }
        except Exception as e:
            logger.error(f"Error getting pool stats: {e}")
            return {
                'pool_size': 0,
                'checked_out': 0,
                'overflow': 0,
                'utilization_percent': 0,
                'error': str(e)
            }

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            result = self.session.execute(text("SELECT 1")).scalar()
            return result == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def check_connection(app) -> bool:
    """Check out one pooled connection and give it back; never raises."""
    with app.app_context():
        try:
            with db.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            logger.info("Database connection successful")
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False


def close_pool(app) -> bool:
    """Dispose every pooled connection. Returns False if disposal failed."""
    try:
        logger.info("Closing database connection pool...")
        with app.app_context():
            db.session.remove()
            db.engine.dispose()
        logger.info("Database connections closed successfully")
        return True
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")
        return False


db = MonitoredSQLAlchemy()
limiter = Limiter(key_func=get_remote_address)
