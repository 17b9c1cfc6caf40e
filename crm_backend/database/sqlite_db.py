"""
SQLite Database Manager - Handles all SQLite-specific database configuration.
"""
import logging
import os
from pathlib import Path
from .base import BaseDBManager

logger = logging.getLogger(__name__)


class SqliteDB(BaseDBManager):
    """
    SQLite database manager implementation.
    Used for local development and the test suite.
    """

    def __init__(self, db_path=None):
        """
        Initialize SQLite database manager.

        Args:
            db_path: Optional database path.
                     If None, uses DB_PATH environment variable or default location.
                     ':memory:' selects an in-memory database.
        """
        super().__init__()

        if db_path is None:
            db_path = os.environ.get('DB_PATH')

        if db_path is None:
            fallback_path = Path(__file__).resolve().parents[2] / "crm-storage" / "database" / "crm.db"
            db_path = str(fallback_path)
            logger.warning(f"DB_PATH not set, using fallback default: {db_path}")

        self.db_path = db_path

        if self.db_path == ':memory:':
            self.sqlalchemy_uri = "sqlite:///:memory:"
        else:
            db_dir = os.path.dirname(self.db_path)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)
                logger.info(f"Created database directory: {db_dir}")
            self.sqlalchemy_uri = f"sqlite:///{self.db_path}"

        logger.info(f"SqliteDB initialized with database: {self.db_path}")

    def get_sqlalchemy_uri(self) -> str:
        """
        Get SQLAlchemy database URI for SQLite.

        Returns:
            str: SQLAlchemy database URI (sqlite:///path/to/database.db)
        """
        return self.sqlalchemy_uri

    def get_engine_options(self):
        # Flask-SQLAlchemy picks the right pool class for SQLite itself
        return {}

    def get_db_type(self) -> str:
        """Get the database type identifier"""
        return 'sqlite'
