"""Base configuration for Quantify application."""

import os
from datetime import timedelta


def env_int(name, default):
    return int(os.environ.get(name, default))


class Config:
    """Settings shared by every environment."""

    SECRET_KEY = os.environ.get('SECRET_KEY', 'quantify-dev-secret')
    BCRYPT_ROUNDS = env_int('BCRYPT_ROUNDS', 12)

    # JSON bodies only; nothing large is ever uploaded
    MAX_CONTENT_LENGTH = 1024 * 1024

    # Database
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
        'pool_size': env_int('DB_POOL_SIZE', 10),
        'max_overflow': 20,
        'connect_args': {'connect_timeout': 10},
    }

    # Cookie session used by Flask-Login
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    REMEMBER_COOKIE_DURATION = timedelta(days=14)
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_HTTPONLY = True

    # API clients fetch a token from /api/auth/csrf-token and send it as X-CSRFToken
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')
    LOG_TO_FILE = True

    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True

    # Ratings and dashboards
    MAX_STORES_PER_OWNER = env_int('MAX_STORES_PER_OWNER', 2)
    TOP_REVIEWERS_LIMIT = env_int('TOP_REVIEWERS_LIMIT', 5)
    PLATFORM_TREND_DAYS = env_int('PLATFORM_TREND_DAYS', 30)
    STORE_TREND_MONTHS = env_int('STORE_TREND_MONTHS', 6)

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
