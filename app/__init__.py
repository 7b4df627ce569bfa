"""
Flask Analytics API Application Factory
"""

import os
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from .extensions import init_analytics, init_error_handlers, init_logging
from config import DevelopmentConfig, ProductionConfig, TestingConfig
from config.settings import get_settings
from utils.analytics_store import AnalyticsStore


def create_app(config_name: Optional[str] = None, store: Optional[AnalyticsStore] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        config_name: Configuration name (development, production, testing)
        store: Optional analytics store to serve instead of a fresh one

    Returns:
        Configured Flask application instance
    """
    # Determine configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Configuration mapping
    config_map = {
        'development': DevelopmentConfig,
        'production': ProductionConfig,
        'testing': TestingConfig,
    }

    if config_name not in config_map:
        raise ValueError(f"Invalid configuration name: {config_name}")

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    config_class = config_map[config_name]
    app.config.from_object(config_class)

    settings = get_settings()

    # Initialize logging
    init_logging(app)

    # Initialize analytics services
    init_analytics(app, store)

    # Initialize error handlers
    init_error_handlers(app)

    # Register blueprints
    from routes import analytics_bp, bi_bp
    app.register_blueprint(analytics_bp, url_prefix='/api/v1/analytics')
    app.register_blueprint(bi_bp, url_prefix='/api/v1/bi')

    # Health check endpoint
    @app.route('/api/v1/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        services = app.extensions['analytics']
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.utcnow().isoformat(),
            'version': settings.APP_VERSION,
            'environment': config_name,
            'usage_analytics': services['usage'].get_status().model_dump(mode='json'),
            'business_intelligence': services['bi'].get_status().model_dump(mode='json')
        })

    # Root endpoint
    @app.route('/', methods=['GET'])
    def root():
        """Root endpoint with API information."""
        return jsonify({
            'name': settings.APP_NAME,
            'version': settings.APP_VERSION,
            'description': 'Usage and business analytics for the study platform',
            'docs': '/api/v1/health',
            'endpoints': {
                'analytics': '/api/v1/analytics',
                'bi': '/api/v1/bi',
                'health': '/api/v1/health'
            }
        })

    # Request logging middleware
    @app.before_request
    def log_request_info():
        """Log request information."""
        if app.config.get('LOG_LEVEL', 'INFO') == 'DEBUG':
            app.logger.debug(f'{request.method} {request.path} - {request.remote_addr}')

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all responses."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        if app.config.get('LOG_LEVEL', 'INFO') == 'DEBUG':
            app.logger.debug(f'Response: {response.status_code} - {response.content_length or 0} bytes')

        return response

    app.logger.info(f'{settings.APP_NAME} started in {config_name} mode')

    return app
