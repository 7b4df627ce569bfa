"""
Usage Analytics Models for the study platform
User actions, sessions, behavior patterns and engagement aggregates
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def generate_id(prefix: str) -> str:
    """Generate a unique, prefixed identifier."""
    return f"{prefix}-{uuid4().hex}"


class ActionCategory(str, Enum):
    """User action categories."""

    NAVIGATION = "navigation"
    INTERACTION = "interaction"
    STUDY = "study"
    SYSTEM = "system"


class PatternImpact(str, Enum):
    """Impact tiers shared by behavior patterns and insights."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionDetails(BaseModel):
    """Action payload: known fields plus caller-defined extension fields."""

    model_config = ConfigDict(extra='allow', frozen=True)

    page: Optional[str] = None
    study_id: Optional[str] = None
    duration_seconds: Optional[float] = None
    referrer: Optional[str] = None

    @property
    def extra_fields(self) -> Dict[str, Any]:
        """Fields outside the known set."""
        return dict(self.model_extra or {})


class ActionMetadata(BaseModel):
    """Client metadata captured alongside an action."""

    model_config = ConfigDict(frozen=True)

    user_agent: Optional[str] = None
    ip: Optional[str] = None


class UserAction(BaseModel):
    """One discrete, immutable user event."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: generate_id('action'))
    user_id: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1, description="Free-text verb, e.g. study_start")
    category: ActionCategory
    details: ActionDetails = Field(default_factory=ActionDetails)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    session_id: str = Field(..., min_length=1)
    user_agent: Optional[str] = None
    ip: Optional[str] = None


class UserSession(BaseModel):
    """A continuous period of user activity."""

    id: str = Field(default_factory=lambda: generate_id('session'))
    user_id: str = Field(..., min_length=1)
    start_time: datetime = Field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None
    duration: Optional[float] = Field(default=None, description="Seconds, set on close")
    page_views: int = 0
    actions: int = 0
    studies_viewed: int = 0
    studies_completed: int = 0
    bounced: bool = False
    source: str = "direct"
    device: str = "unknown"
    location: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        """Whether the session has been finalized."""
        return self.end_time is not None


class PatternConditions(BaseModel):
    """Trigger conditions of a behavior pattern."""

    actions: List[str] = Field(default_factory=list)
    timeframe: int = Field(..., ge=1, description="Minutes")
    frequency: int = Field(..., ge=1)


class BehaviorPattern(BaseModel):
    """A named, rule-triggered classification of recent user behavior."""

    id: str = Field(default_factory=lambda: generate_id('pattern'))
    name: str
    description: str
    conditions: PatternConditions
    users: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=1.0)
    impact: PatternImpact
    recommendation: str
    detected_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('users')
    @classmethod
    def validate_unique_users(cls, v):
        if len(v) != len(set(v)):
            raise ValueError('Pattern users must be unique')
        return v


class TimePeriod(BaseModel):
    """Closed time range of a query."""

    start: datetime
    end: datetime


class RetentionRate(BaseModel):
    """Cohort retention percentages."""

    day1: float = 0.0
    day7: float = 0.0
    day30: float = 0.0


class EngagementMetrics(BaseModel):
    """Engagement statistics over a time-bounded slice of sessions."""

    period: TimePeriod
    total_users: int = 0
    active_users: int = 0
    new_users: int = 0
    returning_users: int = 0
    average_session_duration: float = 0.0
    bounce_rate: float = 0.0
    page_views_per_session: float = 0.0
    conversion_rate: float = 0.0
    retention_rate: RetentionRate = Field(default_factory=RetentionRate)


class UserJourney(BaseModel):
    """A user's recent sessions, actions and matching patterns."""

    user_id: str
    sessions: List[UserSession] = Field(default_factory=list)
    actions: List[UserAction] = Field(default_factory=list)
    patterns: List[BehaviorPattern] = Field(default_factory=list)


class UsageAnalyticsStatus(BaseModel):
    """Health and size of the usage analytics collections."""

    is_healthy: bool = True
    actions_count: int = 0
    sessions_count: int = 0
    patterns_count: int = 0
    last_updated: datetime
