"""Production configuration for Quantify application."""

import os

from .base import Config


def database_url():
    url = os.environ.get('DATABASE_URL', 'postgresql://quantify@localhost:5432/quantify')
    # Some hosts still hand out the legacy scheme SQLAlchemy 2 rejects
    if url.startswith('postgres://'):
        url = 'postgresql://' + url[len('postgres://'):]
    return url


class ProductionConfig(Config):
    """Served by gunicorn behind TLS."""

    DEBUG = False

    SQLALCHEMY_DATABASE_URI = database_url()
    SECRET_KEY = os.environ.get('SECRET_KEY')

    REMEMBER_COOKIE_SECURE = True
    PERMANENT_SESSION_LIFETIME = 8 * 3600
    WTF_CSRF_SSL_STRICT = True
    PREFERRED_URL_SCHEME = 'https'

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')

    # Shared across gunicorn workers
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'redis://localhost:6379/1')
