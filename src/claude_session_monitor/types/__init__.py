"""Type definitions for Claude Session Monitor."""

from claude_session_monitor.types.records import LogRecord, MetadataValue, TokenUsage
from claude_session_monitor.types.sessions import (
    ActivityEntry,
    DailyMetric,
    PeakHour,
    ProjectAggregate,
    Session,
    SessionStatus,
)
from claude_session_monitor.types.events import WatchEvent, WatchEventType

__all__ = [
    "LogRecord",
    "MetadataValue",
    "TokenUsage",
    "ActivityEntry",
    "DailyMetric",
    "PeakHour",
    "ProjectAggregate",
    "Session",
    "SessionStatus",
    "WatchEvent",
    "WatchEventType",
]
