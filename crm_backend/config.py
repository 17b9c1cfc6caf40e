import os
from pathlib import Path


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration - shared across all environments"""

    ENV_NAME = 'base'
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Filled from DBManager in create_app() unless a subclass pins it
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_ENGINE_OPTIONS = None
    AUTO_CREATE_TABLES = False

    # Retry executor settings used by every service
    DB_RETRY_ATTEMPTS = 3
    DB_RETRY_DELAY = 1.0

    # Demo/test payloads for well-known ids (see services/demo_fixtures.py)
    DEMO_FIXTURES_ENABLED = _env_flag('DEMO_FIXTURES', False)

    # Raw exception text is only returned to clients outside production
    EXPOSE_ERROR_DETAILS = True

    DISPLAY_TIMEZONE = os.environ.get('DISPLAY_TIMEZONE', 'UTC')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # Flask-Limiter
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "1000 per day;500 per hour"
    RATELIMIT_STORAGE_URI = "memory://"

    # Paths
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    LOGS_DIR = os.environ.get('LOGS_DIR', os.path.join(BASE_DIR, 'logs'))

    HOST = '0.0.0.0'
    PORT = int(os.environ.get('PORT', 5000))


class DevConfig(Config):
    """Development configuration"""
    ENV_NAME = 'development'
    DEBUG = True
    AUTO_CREATE_TABLES = True


class TestConfig(Config):
    """Test configuration - in-memory SQLite, no sleeping between retries"""
    ENV_NAME = 'test'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTO_CREATE_TABLES = True
    DB_RETRY_DELAY = 0
    DEMO_FIXTURES_ENABLED = False
    RATELIMIT_ENABLED = False
    LOGS_DIR = os.path.join(str(Path(Config.BASE_DIR).parent), 'crm-storage', 'test-logs')


class ProductionConfig(Config):
    """Production configuration"""
    ENV_NAME = 'production'
    DEBUG = False
    EXPOSE_ERROR_DETAILS = False
    AUTO_CREATE_TABLES = _env_flag('AUTO_CREATE_TABLES', False)


CONFIG_BY_ENV = {
    'development': DevConfig,
    'test': TestConfig,
    'production': ProductionConfig,
}


def get_config():
    """Pick the config class for NODE_ENV (development when unset)."""
    env = os.environ.get('NODE_ENV', 'development').lower()
    return CONFIG_BY_ENV.get(env, DevConfig)
