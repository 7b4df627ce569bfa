"""
Custom exceptions for the analytics engine
"""

from typing import Optional, Dict, Any


class AnalyticsException(Exception):
    """Base exception for the analytics engine."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an error response body."""
        return {
            'error': self.__class__.__name__,
            'message': self.message,
            'status_code': self.status_code,
            'details': self.details
        }


class ValidationException(AnalyticsException):
    """Exception for malformed call arguments."""

    def __init__(self, message: str, field: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, details)
        self.field = field

    @classmethod
    def from_pydantic(cls, error) -> 'ValidationException':
        """Build from a pydantic ValidationError, keeping the first failing field."""
        errors = error.errors()
        field = None
        if errors and errors[0].get('loc'):
            field = '.'.join(str(part) for part in errors[0]['loc'])
        message = errors[0]['msg'] if errors else str(error)
        return cls(message, field, {'errors': [
            {'loc': list(e.get('loc', ())), 'msg': e.get('msg'), 'type': e.get('type')}
            for e in errors
        ]})


class InvalidTimeRangeException(ValidationException):
    """Exception for range queries whose start is after their end."""

    def __init__(self, start, end, details: Optional[Dict[str, Any]] = None):
        message = f"Invalid time range: start {start} is after end {end}"
        super().__init__(message, 'start', details)
        self.start = start
        self.end = end


class UnsupportedExportFormatException(ValidationException):
    """Exception for export formats other than json and csv."""

    def __init__(self, format_type: str, supported_formats: Optional[list] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Unsupported export format: {format_type}", 'format', details)
        self.supported_formats = supported_formats or ['json', 'csv']
