"""
Usage Analytics API Routes
Session and action ingestion, engagement metrics, behavior patterns and exports
"""

from datetime import datetime

from flask import Blueprint, jsonify, request

from app.extensions import get_usage_service
from utils.validators import (
    ActionTrackSchema, CleanupSchema, SessionStartSchema, parse_datetime,
    validate_non_negative, validate_payload
)

analytics_bp = Blueprint('analytics', __name__)


@analytics_bp.route('/sessions', methods=['POST'])
def start_session():
    """Start a user session.

    Returns:
        JSON response with the new session id
    """
    payload = validate_payload(SessionStartSchema, request.get_json(silent=True))

    session_id = get_usage_service().start_session(
        payload.user_id, payload.source, payload.device, payload.location
    )

    return jsonify({'session_id': session_id}), 201


@analytics_bp.route('/sessions/<session_id>/end', methods=['POST'])
def end_session(session_id: str):
    """End a user session.

    Unknown or already closed sessions are accepted without effect.
    """
    service = get_usage_service()
    service.end_session(session_id)

    session = service.sessions.get_session(session_id)
    return jsonify({
        'session_id': session_id,
        'session': session.model_dump(mode='json') if session else None
    })


@analytics_bp.route('/actions', methods=['POST'])
def track_action():
    """Track a user action.

    Returns:
        JSON response with the recorded action
    """
    payload = validate_payload(ActionTrackSchema, request.get_json(silent=True))

    action = get_usage_service().track_action(
        payload.user_id,
        payload.action,
        payload.category,
        payload.details,
        payload.session_id,
        payload.metadata or {
            'user_agent': request.headers.get('User-Agent'),
            'ip': request.remote_addr
        }
    )

    return jsonify(action.model_dump(mode='json')), 201


@analytics_bp.route('/engagement', methods=['GET'])
def get_engagement_metrics():
    """Get engagement metrics for sessions started within [start, end]."""
    start_date = parse_datetime(request.args.get('start'), 'start')
    end_date = parse_datetime(request.args.get('end'), 'end')

    metrics = get_usage_service().calculate_engagement_metrics(start_date, end_date)
    return jsonify(metrics.model_dump(mode='json'))


@analytics_bp.route('/patterns', methods=['GET'])
def get_behavior_patterns():
    """Get detected behavior patterns, optionally filtered by impact."""
    patterns = get_usage_service().get_behavior_patterns(request.args.get('impact'))

    return jsonify({
        'patterns': [p.model_dump(mode='json') for p in patterns],
        'count': len(patterns)
    })


@analytics_bp.route('/users/<user_id>/journey', methods=['GET'])
def get_user_journey(user_id: str):
    """Get a user's recent sessions, actions and patterns."""
    hours = validate_non_negative(request.args.get('hours'), 'hours', 24)

    journey = get_usage_service().get_user_journey(user_id, hours)
    return jsonify(journey.model_dump(mode='json'))


@analytics_bp.route('/export', methods=['GET'])
def export_analytics():
    """Export actions, sessions and patterns as JSON or CSV documents."""
    format_type = request.args.get('format', 'json').lower()

    documents = get_usage_service().export_analytics_data(format_type)
    return jsonify({
        'format': format_type,
        'exported_at': datetime.utcnow().isoformat(),
        'data': documents
    })


@analytics_bp.route('/cleanup', methods=['POST'])
def cleanup_old_data():
    """Remove old actions and closed sessions."""
    payload = validate_payload(CleanupSchema, request.get_json(silent=True) or {})

    result = get_usage_service().cleanup_old_data(payload.older_than_days)
    return jsonify(result)


@analytics_bp.route('/status', methods=['GET'])
def get_status():
    """Get usage analytics service status."""
    return jsonify(get_usage_service().get_status().model_dump(mode='json'))
