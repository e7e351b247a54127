"""Testing configuration for Quantify application."""

import os

from .base import Config


class TestingConfig(Config):
    """In-memory SQLite unless TEST_DATABASE_URL points elsewhere."""

    TESTING = True

    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # pool sizing is not valid for SQLite

    SECRET_KEY = 'test-secret-key'
    WTF_CSRF_ENABLED = False
    BCRYPT_ROUNDS = 4  # lowest bcrypt accepts
    SESSION_COOKIE_SECURE = False

    LOG_LEVEL = 'DEBUG'
    LOG_TO_FILE = False

    RATELIMIT_ENABLED = False
