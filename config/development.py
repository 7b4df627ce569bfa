"""
Development configuration for the analytics API
"""

import os


class DevelopmentConfig:
    """Development configuration settings."""

    # Flask settings
    DEBUG = True
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-this')

    # JSON
    JSON_SORT_KEYS = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/dev_analytics_api.log')
