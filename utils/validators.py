"""
Request validation utilities for the analytics API
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.analytics import ActionCategory
from models.business_intelligence import MetricCategory
from utils.exceptions import ValidationException


SchemaT = TypeVar('SchemaT', bound=BaseModel)


class SessionStartSchema(BaseModel):
    """Schema for starting a session."""

    user_id: str = Field(..., min_length=1)
    source: str = Field(default='direct', min_length=1)
    device: str = Field(default='unknown', min_length=1)
    location: Optional[str] = None


class ActionTrackSchema(BaseModel):
    """Schema for tracking a user action."""

    user_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    category: ActionCategory
    details: Dict[str, Any] = Field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('action')
    @classmethod
    def validate_action(cls, v):
        """Strip surrounding whitespace from the action verb."""
        if not v.strip():
            raise ValueError('Action cannot be empty')
        return v.strip()


class MetricTrackSchema(BaseModel):
    """Schema for tracking a business metric."""

    name: str = Field(..., min_length=1)
    value: float
    category: MetricCategory
    unit: str = ''


class CleanupSchema(BaseModel):
    """Schema for cleanup requests."""

    older_than_days: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


def validate_payload(schema: Type[SchemaT], data: Optional[Dict[str, Any]]) -> SchemaT:
    """Validate a JSON body against a schema.

    Args:
        schema: Pydantic model class
        data: Parsed JSON body, or None when the body was missing or malformed

    Returns:
        Validated schema instance

    Raises:
        ValidationException: If the body is missing or invalid
    """
    if not isinstance(data, dict):
        raise ValidationException('Request body must be a JSON object')

    try:
        return schema(**data)
    except ValidationError as e:
        raise ValidationException.from_pydantic(e)


def parse_datetime(value: Optional[str], field_name: str) -> datetime:
    """Parse an ISO-8601 query parameter.

    Raises:
        ValidationException: If the value is missing or not ISO-8601
    """
    if not value:
        raise ValidationException(f"{field_name} is required", field_name)

    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        raise ValidationException(f"{field_name} must be an ISO-8601 datetime", field_name)

    # Stored timestamps are naive UTC
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def validate_non_negative(value: Optional[str], field_name: str, default: float) -> float:
    """Parse an optional non-negative number query parameter."""
    if value is None or value == '':
        return default

    try:
        num_value = float(value)
    except (ValueError, TypeError):
        raise ValidationException(f"{field_name} must be a valid number", field_name)

    if math.isnan(num_value):
        raise ValidationException(f"{field_name} must be a valid number", field_name)
    if num_value < 0:
        raise ValidationException(f"{field_name} must not be negative", field_name)
    return num_value
