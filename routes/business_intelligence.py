"""
Business Intelligence API Routes
Metric tracking, KPI configuration, insights, executive summaries and exports
"""

from flask import Blueprint, Response, jsonify, request

from app.extensions import get_bi_service
from utils.exceptions import ValidationException
from utils.validators import (
    CleanupSchema, MetricTrackSchema, parse_datetime, validate_payload
)

bi_bp = Blueprint('business_intelligence', __name__)


@bi_bp.route('/metrics', methods=['POST'])
def track_metric():
    """Track a business metric observation.

    Returns:
        JSON response with the stored metric, including its trend and targets
    """
    payload = validate_payload(MetricTrackSchema, request.get_json(silent=True))

    metric = get_bi_service().track_metric(
        payload.name, payload.value, payload.category, payload.unit
    )

    return jsonify(metric.model_dump(mode='json')), 201


@bi_bp.route('/metrics', methods=['GET'])
def get_metrics():
    """Get current metrics, optionally filtered by category."""
    metrics = get_bi_service().get_metrics(request.args.get('category'))

    return jsonify({
        'metrics': [m.model_dump(mode='json') for m in metrics],
        'count': len(metrics)
    })


@bi_bp.route('/metrics/<name>/history', methods=['GET'])
def get_metric_history(name: str):
    """Get retained observations of one metric, oldest first."""
    history = get_bi_service().get_metric_history(name)

    return jsonify({
        'name': name,
        'history': [m.model_dump(mode='json') for m in history]
    })


@bi_bp.route('/insights', methods=['GET'])
def get_insights():
    """Get the most recent business insights."""
    limit = request.args.get('limit', 10, type=int)

    insights = get_bi_service().get_insights(limit)
    return jsonify({
        'insights': [i.model_dump(mode='json') for i in insights],
        'count': len(insights)
    })


@bi_bp.route('/summary', methods=['GET'])
def get_executive_summary():
    """Generate an executive summary for [start, end]."""
    start_date = parse_datetime(request.args.get('start'), 'start')
    end_date = parse_datetime(request.args.get('end'), 'end')

    summary = get_bi_service().generate_executive_summary(start_date, end_date)
    return jsonify(summary.model_dump(mode='json'))


@bi_bp.route('/kpis', methods=['GET'])
def get_kpis():
    """Get every KPI configuration."""
    kpis = get_bi_service().get_kpis()

    return jsonify({
        'kpis': [k.model_dump(mode='json') for k in kpis],
        'count': len(kpis)
    })


@bi_bp.route('/kpis', methods=['PUT'])
def configure_kpi():
    """Add or replace a KPI configuration."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationException('Request body must be a JSON object')

    kpi = get_bi_service().configure_kpi(data)
    return jsonify(kpi.model_dump(mode='json'))


@bi_bp.route('/export', methods=['GET'])
def export_metrics():
    """Export current metrics as a JSON or CSV document."""
    format_type = request.args.get('format', 'json').lower()

    document = get_bi_service().export_metrics_data(format_type)
    mimetype = 'text/csv' if format_type == 'csv' else 'application/json'
    return Response(
        document,
        mimetype=mimetype,
        headers={'Content-Disposition': f'attachment; filename=business_metrics.{format_type}'}
    )


@bi_bp.route('/cleanup', methods=['POST'])
def cleanup_old_metrics():
    """Remove metrics, insights and alerts older than the retention period."""
    payload = validate_payload(CleanupSchema, request.get_json(silent=True) or {})

    removed = get_bi_service().cleanup_old_metrics(payload.older_than_days)
    return jsonify({'metrics_removed': removed})


@bi_bp.route('/status', methods=['GET'])
def get_status():
    """Get business intelligence service status."""
    return jsonify(get_bi_service().get_status().model_dump(mode='json'))
