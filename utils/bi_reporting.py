"""
Analytics Reporting for the study platform
Handles JSON and CSV export of metrics, actions, sessions and patterns
"""

import csv
import io
import json
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Sequence

from pydantic import BaseModel

from models.analytics import BehaviorPattern, UserAction, UserSession
from models.business_intelligence import BusinessMetric
from utils.exceptions import UnsupportedExportFormatException


# CSV column -> record accessor
METRIC_COLUMNS: Dict[str, Callable[[BusinessMetric], Any]] = {
    'name': lambda m: m.name,
    'category': lambda m: m.category,
    'value': lambda m: m.value,
    'unit': lambda m: m.unit,
    'trend': lambda m: m.trend,
    'trendPercentage': lambda m: m.trend_percentage,
    'timestamp': lambda m: m.timestamp,
}

ACTION_COLUMNS: Dict[str, Callable[[UserAction], Any]] = {
    'id': lambda a: a.id,
    'userId': lambda a: a.user_id,
    'action': lambda a: a.action,
    'category': lambda a: a.category,
    'timestamp': lambda a: a.timestamp,
    'sessionId': lambda a: a.session_id,
}

SESSION_COLUMNS: Dict[str, Callable[[UserSession], Any]] = {
    'id': lambda s: s.id,
    'userId': lambda s: s.user_id,
    'startTime': lambda s: s.start_time,
    'endTime': lambda s: s.end_time,
    'duration': lambda s: s.duration,
    'pageViews': lambda s: s.page_views,
    'actions': lambda s: s.actions,
}

PATTERN_COLUMNS: Dict[str, Callable[[BehaviorPattern], Any]] = {
    'id': lambda p: p.id,
    'name': lambda p: p.name,
    'description': lambda p: p.description,
    'confidence': lambda p: p.confidence,
    'impact': lambda p: p.impact,
}


def _csv_value(value: Any) -> Any:
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class AnalyticsReporting:
    """Serializes analytics collections into export formats."""

    def __init__(self):
        self.export_formats = {
            'json': self._export_to_json,
            'csv': self._export_to_csv
        }

    def export_records(self, records: Sequence[BaseModel], columns: Dict[str, Callable],
                       format_type: str = 'json') -> str:
        """Export a list of records in the requested format."""
        exporter = self.export_formats.get(format_type)
        if exporter is None:
            raise UnsupportedExportFormatException(format_type, list(self.export_formats))
        return exporter(records, columns)

    def export_metrics(self, metrics: Sequence[BusinessMetric], format_type: str = 'json') -> str:
        """Export business metrics."""
        return self.export_records(metrics, METRIC_COLUMNS, format_type)

    def export_analytics(self, actions: Sequence[UserAction], sessions: Sequence[UserSession],
                         patterns: Sequence[BehaviorPattern], format_type: str = 'json') -> Dict[str, str]:
        """Export actions, sessions and patterns as separate documents."""
        return {
            'actions': self.export_records(actions, ACTION_COLUMNS, format_type),
            'sessions': self.export_records(sessions, SESSION_COLUMNS, format_type),
            'patterns': self.export_records(patterns, PATTERN_COLUMNS, format_type)
        }

    def _export_to_json(self, records: Sequence[BaseModel], columns: Dict[str, Callable]) -> str:
        """Full structural dump."""
        data: List[Dict[str, Any]] = [record.model_dump(mode='json') for record in records]
        return json.dumps(data, indent=2, default=str)

    def _export_to_csv(self, records: Sequence[BaseModel], columns: Dict[str, Callable]) -> str:
        """One row per record under a fixed header."""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator='\n')

        writer.writerow(list(columns))
        for record in records:
            writer.writerow([_csv_value(accessor(record)) for accessor in columns.values()])

        return output.getvalue()
