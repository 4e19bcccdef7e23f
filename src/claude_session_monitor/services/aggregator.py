"""Cross-session rollups computed from a discovered session set.

Every function here is a pure computation over the sessions it is given, so
callers can run them concurrently against independent discoveries.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from claude_session_monitor.types.records import TokenUsage
from claude_session_monitor.types.sessions import (
    ACTIVE_WINDOW,
    ActivityEntry,
    DailyMetric,
    PeakHour,
    ProjectAggregate,
    Session,
)
from claude_session_monitor.utils.date_buckets import day_key, last_n_days, local_hour, local_now

RECENT_UPDATE_WINDOW = timedelta(minutes=15)
DEFAULT_DAILY_DAYS = 7
PEAK_HOUR_LIMIT = 4
PEAK_HOUR_THRESHOLD = 1.0
FALLBACK_MOST_USED_MODEL = "claude-3-opus"


# ------------------------------------------------------------------
# Per-project
# ------------------------------------------------------------------

def project_rollups(
    sessions: Iterable[Session],
    now: Optional[datetime] = None,
    active_window: timedelta = ACTIVE_WINDOW,
) -> dict[str, ProjectAggregate]:
    """Group sessions by project name and sum their usage."""
    now = local_now(now)
    projects: dict[str, ProjectAggregate] = {}

    for session in sessions:
        project = projects.get(session.project_name)
        if project is None:
            project = ProjectAggregate(
                project_name=session.project_name,
                project_path=session.project_path,
            )
            projects[session.project_name] = project

        project.session_count += 1
        if session.is_active(now, active_window):
            project.active_sessions += 1

        for record in session.records:
            project.total_tokens = project.total_tokens + record.usage
            if record.model:
                project.models[record.model] += 1

        if session.start_time is not None:
            if project.first_activity is None or session.start_time < project.first_activity:
                project.first_activity = session.start_time
        if session.last_activity is not None:
            if project.last_activity is None or session.last_activity > project.last_activity:
                project.last_activity = session.last_activity

    return projects


def tokens_by_project(sessions: Iterable[Session]) -> dict[str, TokenUsage]:
    return {name: p.total_tokens for name, p in project_rollups(sessions).items()}


# ------------------------------------------------------------------
# Daily / hourly
# ------------------------------------------------------------------

def daily_metrics(
    sessions: Iterable[Session],
    days: int = DEFAULT_DAILY_DAYS,
    now: Optional[datetime] = None,
) -> list[DailyMetric]:
    """Metrics for each of the last `days` local calendar days, oldest first.

    A session id counts once per day across the whole set, even when the same
    id turns up in more than one project directory.
    """
    if days <= 0:
        return []
    metrics = [DailyMetric(date=key) for key in last_n_days(days, now)]
    by_date = {m.date: m for m in metrics}
    counted: dict[str, set[str]] = {m.date: set() for m in metrics}

    for session in sessions:
        for record in session.records:
            key = day_key(record.timestamp)
            metric = by_date.get(key)
            if metric is None:
                continue

            if session.id and session.id not in counted[key]:
                counted[key].add(session.id)
                metric.session_count += 1

            metric.message_count += 1
            metric.total_tokens = metric.total_tokens + record.usage
            if record.model:
                metric.models[record.model] += 1

    return metrics


def hourly_activity(sessions: Iterable[Session]) -> dict[int, list[datetime]]:
    """Record timestamps bucketed by local hour of day."""
    hours: dict[int, list[datetime]] = defaultdict(list)
    for session in sessions:
        for record in session.records:
            hours[local_hour(record.timestamp)].append(record.timestamp)
    return dict(hours)


def peak_hours(sessions: Iterable[Session], limit: int = PEAK_HOUR_LIMIT) -> list[PeakHour]:
    """Hours whose average activity per observed day exceeds 1.0, busiest first."""
    peaks = []
    for hour, timestamps in sorted(hourly_activity(sessions).items()):
        if not timestamps:
            continue
        unique_days = {day_key(ts) for ts in timestamps}
        average = len(timestamps) / len(unique_days)
        if average > PEAK_HOUR_THRESHOLD:
            peaks.append(PeakHour(hour=hour, average_sessions=average))

    peaks.sort(key=lambda p: p.average_sessions, reverse=True)
    return peaks[:limit]


# ------------------------------------------------------------------
# Totals
# ------------------------------------------------------------------

def active_sessions(
    sessions: Iterable[Session],
    now: Optional[datetime] = None,
    active_window: timedelta = ACTIVE_WINDOW,
) -> list[Session]:
    now = local_now(now)
    return [s for s in sessions if s.is_active(now, active_window)]


def active_session_count(
    sessions: Iterable[Session],
    now: Optional[datetime] = None,
    active_window: timedelta = ACTIVE_WINDOW,
) -> int:
    return len(active_sessions(sessions, now, active_window))


def model_usage(sessions: Iterable[Session]) -> Counter:
    """How many records name each model."""
    usage: Counter = Counter()
    for session in sessions:
        for record in session.records:
            if record.model:
                usage[record.model] += 1
    return usage


def most_used_model(sessions: Iterable[Session]) -> str:
    usage = model_usage(sessions)
    if not usage:
        return FALLBACK_MOST_USED_MODEL
    return usage.most_common(1)[0][0]


def overall_token_usage(sessions: Iterable[Session]) -> TokenUsage:
    total = TokenUsage()
    for session in sessions:
        total = total + session.tokens_used
    return total


def estimated_total_cost(sessions: Iterable[Session]) -> float:
    """Sum of each session's cost at its own inferred model's rates."""
    return sum(s.tokens_used.estimated_cost for s in sessions)


def total_sessions(sessions: Sequence[Session]) -> int:
    return len(sessions)


def total_messages(sessions: Iterable[Session]) -> int:
    return sum(s.message_count for s in sessions)


def average_session_duration(sessions: Sequence[Session]) -> float:
    """Mean session duration in minutes."""
    if not sessions:
        return 0.0
    total = sum((s.duration for s in sessions), timedelta(0))
    return total.total_seconds() / 60.0 / len(sessions)


def recent_sessions(sessions: Iterable[Session], limit: int) -> list[Session]:
    """Most recently active sessions first."""
    ordered = sorted(
        (s for s in sessions if s.last_activity is not None),
        key=lambda s: s.last_activity,
        reverse=True,
    )
    return ordered[:max(limit, 0)]


def recent_activity(
    sessions: Iterable[Session],
    limit: int,
    now: Optional[datetime] = None,
) -> list[ActivityEntry]:
    """Timeline of session starts, latest messages and recent updates."""
    now = local_now(now)
    activities = []

    for session in sessions:
        if session.start_time is not None:
            activities.append(ActivityEntry(
                timestamp=session.start_time,
                activity_type="session_created",
                session_id=session.id,
                session_name=session.project_name,
                details=f"Session started in {session.project_name}",
            ))

        for record in session.records[-3:]:
            details = "Assistant responded" if record.record_type == "assistant" else "User sent a message"
            activities.append(ActivityEntry(
                timestamp=record.timestamp,
                activity_type="message_sent",
                session_id=session.id,
                session_name=session.project_name,
                details=details,
            ))

        if session.is_active(now, RECENT_UPDATE_WINDOW):
            activities.append(ActivityEntry(
                timestamp=session.last_activity,
                activity_type="session_updated",
                session_id=session.id,
                session_name=session.project_name,
                details="Session activity updated",
            ))

    activities.sort(key=lambda a: a.timestamp, reverse=True)
    return activities[:max(limit, 0)]
