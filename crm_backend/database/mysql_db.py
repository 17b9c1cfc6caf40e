"""
MySQL Database Manager - Handles all MySQL-specific database configuration.
"""
import logging
import os
from urllib.parse import quote_plus
from .base import BaseDBManager

logger = logging.getLogger(__name__)

# Fixed-size pool; callers queue for a free connection without limit.
POOL_SIZE = 10
CONNECT_TIMEOUT_SECONDS = 10


class MySQLDB(BaseDBManager):
    """
    MySQL database manager implementation.
    Builds the PyMySQL connection string and pool settings from the environment.
    """

    def __init__(self):
        """Initialize MySQL database manager from environment variables."""
        super().__init__()

        self.db_host = os.environ.get('DB_HOST', 'localhost')
        self.db_port = os.environ.get('DB_PORT', '3306')
        self.db_name = os.environ.get('DB_NAME', 'shipping_crm')
        self.db_user = os.environ.get('DB_USER', 'root')
        self.db_password = os.environ.get('DB_PASSWORD', '')

        password_escaped = quote_plus(self.db_password) if self.db_password else ''
        # Name mangled so the plaintext password stays out of casual inspection
        self.__sqlalchemy_uri = (
            f"mysql+pymysql://{self.db_user}:{password_escaped}@"
            f"{self.db_host}:{self.db_port}/{self.db_name}?charset=utf8mb4"
        )
        self._log_safe_uri = (
            f"mysql+pymysql://{self.db_user}:***@"
            f"{self.db_host}:{self.db_port}/{self.db_name}"
        )

        logger.info(f"MySQLDB initialized: {self._log_safe_uri}")

    def get_sqlalchemy_uri(self) -> str:
        """
        Get SQLAlchemy database URI for MySQL.

        Security Note: This returns the URI with plaintext password. Use
        get_log_safe_uri() for anything that ends up in logs.
        """
        return self.__sqlalchemy_uri

    def get_log_safe_uri(self) -> str:
        return self._log_safe_uri

    def get_engine_options(self):
        return {
            'pool_size': POOL_SIZE,
            'max_overflow': 0,
            'pool_timeout': None,
            'pool_pre_ping': True,
            'pool_recycle': 3600,
            'connect_args': {'connect_timeout': CONNECT_TIMEOUT_SECONDS},
        }

    def get_db_type(self) -> str:
        """Get the database type identifier"""
        return 'mysql'
