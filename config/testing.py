"""
Testing configuration for the analytics API
"""


class TestingConfig:
    """Testing configuration settings."""

    # Flask settings
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'

    # JSON
    JSON_SORT_KEYS = False

    # Logging
    LOG_LEVEL = 'DEBUG'
    LOG_FILE = None
