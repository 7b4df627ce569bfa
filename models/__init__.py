"""
Data models for the study analytics engine
"""

from .analytics import (
    ActionCategory,
    ActionDetails,
    ActionMetadata,
    BehaviorPattern,
    EngagementMetrics,
    PatternConditions,
    PatternImpact,
    RetentionRate,
    TimePeriod,
    UsageAnalyticsStatus,
    UserAction,
    UserJourney,
    UserSession,
    generate_id
)
from .business_intelligence import (
    AlertCounts,
    AlertSeverity,
    BusinessInsight,
    BusinessIntelligenceStatus,
    BusinessMetric,
    ExecutiveSummary,
    KPIAlertRules,
    KPIConfiguration,
    KPITargets,
    MetricAlert,
    MetricCategory,
    SummaryOverview,
    SummaryTrends,
    TrendDirection
)
