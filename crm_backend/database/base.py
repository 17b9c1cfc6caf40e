"""
Base Database Manager class - Abstract base class for all database implementations.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class BaseDBManager(ABC):
    """
    Abstract base class for database managers.
    All database implementations (MySQL, SQLite) inherit from this.
    """

    def __init__(self):
        """Initialize the database manager"""
        self._initialized = True

    @abstractmethod
    def get_sqlalchemy_uri(self) -> str:
        """
        Get SQLAlchemy database URI for Flask-SQLAlchemy configuration.

        Returns:
            str: SQLAlchemy database URI
        """
        pass

    @abstractmethod
    def get_engine_options(self) -> Dict[str, Any]:
        """
        Get keyword arguments for ``create_engine`` (pool sizing, timeouts).

        Returns:
            dict: value for SQLALCHEMY_ENGINE_OPTIONS
        """
        pass

    @abstractmethod
    def get_db_type(self) -> str:
        """
        Get the database type identifier.

        Returns:
            str: Database type (e.g., 'sqlite', 'mysql')
        """
        pass

    def get_log_safe_uri(self) -> str:
        """URI suitable for log output. Defaults to the real URI."""
        return self.get_sqlalchemy_uri()
