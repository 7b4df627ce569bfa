"""
Engagement statistics over a time-bounded slice of sessions
"""

from datetime import datetime
from typing import Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

from models.analytics import EngagementMetrics, RetentionRate, TimePeriod, UserSession
from utils.exceptions import InvalidTimeRangeException


RETENTION_WINDOWS_DAYS = {
    'day1': 1,
    'day7': 7,
    'day30': 30,
}


def _percentage(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def first_session_starts(sessions: Iterable[UserSession]) -> Dict[str, datetime]:
    """Earliest session start per user."""
    firsts: Dict[str, datetime] = {}
    for session in sessions:
        current = firsts.get(session.user_id)
        if current is None or session.start_time < current:
            firsts[session.user_id] = session.start_time
    return firsts


def calculate_retention(sessions: Sequence[UserSession], user_ids: Iterable[str]) -> RetentionRate:
    """Share of a user cohort that came back within 1, 7 and 30 days of their first session.

    Args:
        sessions: All known sessions; only those of cohort users are considered
        user_ids: The cohort

    Returns:
        Retention percentages, each in [0, 100]
    """
    cohort = set(user_ids)
    if not cohort:
        return RetentionRate()

    df = pd.DataFrame(
        [(s.user_id, s.start_time) for s in sessions if s.user_id in cohort],
        columns=['user_id', 'start_time']
    )
    if df.empty:
        return RetentionRate()

    df['start_time'] = pd.to_datetime(df['start_time'])
    first_start = df.groupby('user_id')['start_time'].transform('min')
    offset = df['start_time'] - first_start

    rates = {}
    for key, days in RETENTION_WINDOWS_DAYS.items():
        returned = (offset > pd.Timedelta(0)) & (offset <= pd.Timedelta(days=days))
        rates[key] = _percentage(df.loc[returned, 'user_id'].nunique(), len(cohort))

    return RetentionRate(**rates)


def calculate_engagement_metrics(sessions: Sequence[UserSession], start: datetime,
                                 end: datetime) -> EngagementMetrics:
    """Compute engagement statistics for sessions started within [start, end].

    Args:
        sessions: Snapshot of every known session
        start: Inclusive range start
        end: Inclusive range end

    Returns:
        Engagement metrics; every empty denominator yields 0
    """
    if start > end:
        raise InvalidTimeRangeException(start, end)

    period_sessions: List[UserSession] = [
        s for s in sessions if start <= s.start_time <= end
    ]
    session_count = len(period_sessions)

    unique_users = {s.user_id for s in period_sessions}
    total_users = len(unique_users)

    # New users had their first-ever session inside the range
    firsts = first_session_starts(sessions)
    new_users = sum(1 for user_id in unique_users if start <= firsts[user_id] <= end)

    durations = [s.duration for s in period_sessions if s.duration is not None]
    average_session_duration = float(np.mean(durations)) if durations else 0.0

    bounced = sum(1 for s in period_sessions if s.bounced)
    conversions = sum(1 for s in period_sessions if s.studies_completed > 0)
    page_views_per_session = (
        float(np.mean([s.page_views for s in period_sessions])) if period_sessions else 0.0
    )

    return EngagementMetrics(
        period=TimePeriod(start=start, end=end),
        total_users=total_users,
        active_users=total_users,
        new_users=new_users,
        returning_users=total_users - new_users,
        average_session_duration=average_session_duration,
        bounce_rate=_percentage(bounced, session_count),
        page_views_per_session=page_views_per_session,
        conversion_rate=_percentage(conversions, session_count),
        retention_rate=calculate_retention(sessions, unique_users)
    )
