"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    # CSRF: JSON clients send the token in the X-CSRFToken header
    WTF_CSRF_ENABLED = os.getenv('WTF_CSRF_ENABLED', 'true').lower() == 'true'

    # Database - Support multiple environment variable naming conventions
    # Priority: DATABASE_URL > DB_* > POSTGRES_*
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST', 'localhost')
        DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
        DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'bizdesk')
        DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'bizdesk')
        DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'bizdesk')

        DATABASE_URL = (
            f"postgresql://{DB_USER}:{DB_PASSWORD}"
            f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        )

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_size': 10,
        'max_overflow': 20,
    }

    # Ledger transactions: retry budget for optimistic conflicts
    TXN_RETRY_ATTEMPTS = int(os.getenv('TXN_RETRY_ATTEMPTS', '3'))
    TXN_RETRY_BACKOFF = float(os.getenv('TXN_RETRY_BACKOFF', '0.05'))  # seconds

    # Redis Cache Configuration (app settings only)
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_SETTINGS_TTL = int(os.getenv('CACHE_SETTINGS_TTL', '300'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'bizdesk')

    # Text generation service (OpenAI-compatible chat completions endpoint)
    TEXTGEN_API_URL = os.getenv('TEXTGEN_API_URL', 'https://api.openai.com/v1/chat/completions')
    TEXTGEN_API_KEY = os.getenv('TEXTGEN_API_KEY', '')
    TEXTGEN_MODEL = os.getenv('TEXTGEN_MODEL', 'gpt-4o-mini')
    TEXTGEN_TIMEOUT = int(os.getenv('TEXTGEN_TIMEOUT', '30'))
    TEXTGEN_LANGUAGE = os.getenv('TEXTGEN_LANGUAGE', 'Roman Urdu')

    # Dashboard
    DASHBOARD_WINDOW_DAYS = int(os.getenv('DASHBOARD_WINDOW_DAYS', '30'))


class TestConfig(Config):
    """Configuration used by the test-suite: in-memory SQLite, no Redis, no CSRF."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CACHE_ENABLED = False
    TXN_RETRY_BACKOFF = 0.0
    TEXTGEN_API_KEY = 'test-key'
