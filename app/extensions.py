"""
Flask extensions initialization for the analytics API
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from utils.analytics_service import UsageAnalyticsService
from utils.analytics_store import AnalyticsStore
from utils.bi_service import BusinessIntelligenceService
from utils.exceptions import AnalyticsException


EXTENSION_KEY = 'analytics'
CONSOLE_HANDLER_NAME = 'analytics-console'
FILE_HANDLER_NAME = 'analytics-file'


def init_analytics(app, store: Optional[AnalyticsStore] = None):
    """Create the analytics store and services for an application.

    Args:
        app: Flask application instance
        store: Pre-built store, e.g. one with a controlled clock in tests
    """
    store = store or AnalyticsStore()
    app.extensions[EXTENSION_KEY] = {
        'store': store,
        'usage': UsageAnalyticsService(store),
        'bi': BusinessIntelligenceService(store)
    }


def get_usage_service() -> UsageAnalyticsService:
    """Usage analytics service of the current application."""
    return current_app.extensions[EXTENSION_KEY]['usage']


def get_bi_service() -> BusinessIntelligenceService:
    """Business intelligence service of the current application."""
    return current_app.extensions[EXTENSION_KEY]['bi']


def init_error_handlers(app):
    """Initialize custom error handlers.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(AnalyticsException)
    def handle_analytics_exception(error):
        """Handle analytics engine errors."""
        if error.status_code >= 500:
            app.logger.error(f'Analytics error: {error.message}', exc_info=True)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        """Handle HTTP exceptions."""
        return jsonify({
            'error': error.name,
            'message': error.description,
            'status_code': error.code
        }), error.code

    @app.errorhandler(Exception)
    def handle_unhandled_exception(error):
        """Handle unhandled exceptions."""
        app.logger.error(f'Unhandled exception: {str(error)}', exc_info=True)
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
            'status_code': 500
        }), 500


def init_logging(app):
    """Initialize logging configuration.

    Args:
        app: Flask application instance
    """
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    log_file = app.config.get('LOG_FILE')
    engine_logger = logging.getLogger('utils')

    if not app.debug and not app.testing and log_file:
        # Production logging
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        if not _has_handler(engine_logger, FILE_HANDLER_NAME):
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=app.config.get('LOG_MAX_SIZE', 10485760),
                backupCount=app.config.get('LOG_BACKUP_COUNT', 5)
            )
            file_handler.set_name(FILE_HANDLER_NAME)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
            ))
            file_handler.setLevel(log_level)
            _attach_handler(app.logger, file_handler)
            # Engine modules log through their own module loggers
            _attach_handler(engine_logger, file_handler)
        engine_logger.setLevel(log_level)

    # Always log to console in development
    if app.debug:
        if not _has_handler(engine_logger, CONSOLE_HANDLER_NAME):
            console_handler = logging.StreamHandler()
            console_handler.set_name(CONSOLE_HANDLER_NAME)
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ))
            _attach_handler(app.logger, console_handler)
            _attach_handler(engine_logger, console_handler)
        engine_logger.setLevel(logging.DEBUG)

    app.logger.setLevel(log_level)


def _has_handler(logger: logging.Logger, name: str) -> bool:
    return any(h.get_name() == name for h in logger.handlers)


def _attach_handler(logger: logging.Logger, handler: logging.Handler):
    """Add a named handler unless the logger already carries one of that name.

    Flask app loggers and the engine logger are process-wide, so repeated
    app creation would otherwise duplicate every log line.
    """
    if not _has_handler(logger, handler.get_name()):
        logger.addHandler(handler)
