"""
Database Manager Package - Centralized database management.

This package provides a singleton factory pattern for database connections.
All database decisions are controlled through DBManager.

Usage:
    from crm_backend.database import DBManager

    # Get SQLAlchemy URI and pool options for Flask
    uri = DBManager.get_sqlalchemy_uri()
    options = DBManager.get_engine_options()
"""
from threading import Lock
import os
from .sqlite_db import SqliteDB
from .mysql_db import MySQLDB


class DBManager:
    """
    Singleton database manager - Factory and facade pattern.
    Single source of truth for ALL database decisions.

    Automatically selects the appropriate database implementation based on:
    - DB_TYPE environment variable ('mysql' or 'sqlite')
    - otherwise MySQL when DB_HOST is set, SQLite when it is not

    Thread-safe singleton implemented using __new__ pattern with double-checked locking.
    """

    _instance = None
    _lock = Lock()
    _initialized = False

    def __new__(cls):
        """Create or return the singleton instance with thread-safe double-checked locking."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(DBManager, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize DBManager with appropriate database implementation."""
        if DBManager._initialized:
            return

        default_type = 'mysql' if os.environ.get('DB_HOST') else 'sqlite'
        db_type = os.environ.get('DB_TYPE', default_type).lower()

        if db_type == 'mysql':
            self._db_impl = MySQLDB()
        else:
            self._db_impl = SqliteDB()

        DBManager._initialized = True

    @classmethod
    def reset(cls):
        """Forget the selected implementation so the environment is read again."""
        with cls._lock:
            cls._instance = None
            cls._initialized = False

    @classmethod
    def get_sqlalchemy_uri(cls) -> str:
        """
        Get SQLAlchemy database URI for Flask-SQLAlchemy configuration.
        This is the single source of truth for SQLAlchemy connections.
        """
        instance = cls()
        return instance._db_impl.get_sqlalchemy_uri()

    @classmethod
    def get_engine_options(cls) -> dict:
        """Pool and connection options for SQLALCHEMY_ENGINE_OPTIONS."""
        instance = cls()
        return instance._db_impl.get_engine_options()

    @classmethod
    def get_log_safe_uri(cls) -> str:
        instance = cls()
        return instance._db_impl.get_log_safe_uri()

    def get_db_type(self) -> str:
        """Get the database type ('sqlite' or 'mysql')"""
        return self._db_impl.get_db_type()

    def is_sqlite(self) -> bool:
        """Check if using SQLite database"""
        return self.get_db_type() == 'sqlite'

    def is_mysql(self) -> bool:
        """Check if using MySQL database"""
        return self.get_db_type() == 'mysql'
