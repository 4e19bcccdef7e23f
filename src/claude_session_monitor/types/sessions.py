"""Session aggregate and derived rollup types."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from claude_session_monitor.types.records import LogRecord, TokenUsage

# A session counts as active while its last activity is this recent
ACTIVE_WINDOW = timedelta(minutes=2)


class SessionStatus(str, Enum):
    WORKING = "working"
    IDLE = "idle"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass
class Session:
    id: str
    file_path: str
    project_path: str = ""
    project_name: str = ""
    git_branch: str = ""
    git_worktree: str = ""
    status: SessionStatus = SessionStatus.IDLE
    start_time: Optional[datetime] = None
    last_activity: Optional[datetime] = None
    current_task: str = ""
    tokens_used: TokenUsage = field(default_factory=TokenUsage)
    files_modified: list[str] = field(default_factory=list)
    records: list[LogRecord] = field(default_factory=list)
    model: str = ""

    @property
    def duration(self) -> timedelta:
        if self.start_time is None:
            return timedelta(0)
        end = self.last_activity or datetime.now(timezone.utc)
        return end - self.start_time

    @property
    def message_count(self) -> int:
        return len(self.records)

    @property
    def user_message_count(self) -> int:
        return sum(1 for r in self.records if r.role == "user")

    @property
    def assistant_message_count(self) -> int:
        return sum(1 for r in self.records if r.role == "assistant")

    @property
    def last_user_message(self) -> str:
        for record in reversed(self.records):
            if record.role == "user":
                return record.content
        return ""

    @property
    def has_errors(self) -> bool:
        return any(r.record_type == "error" for r in self.records)

    @property
    def error_records(self) -> list[LogRecord]:
        return [r for r in self.records if r.record_type == "error"]

    def time_since_last_activity(self, now: Optional[datetime] = None) -> timedelta:
        if self.last_activity is None:
            return timedelta(0)
        now = now or datetime.now(timezone.utc)
        return now - self.last_activity

    def is_active(
        self,
        now: Optional[datetime] = None,
        window: timedelta = ACTIVE_WINDOW,
    ) -> bool:
        if self.last_activity is None:
            return False
        return self.time_since_last_activity(now) < window

    def refresh_status(self, now: Optional[datetime] = None) -> SessionStatus:
        """Recompute status against the wall clock and store it."""
        from claude_session_monitor.services.session_assembler import classify_status
        self.status = classify_status(self.records, self.last_activity, now)
        return self.status


@dataclass
class ProjectAggregate:
    project_name: str
    project_path: str
    session_count: int = 0
    active_sessions: int = 0
    models: Counter = field(default_factory=Counter)
    total_tokens: TokenUsage = field(default_factory=TokenUsage)
    first_activity: Optional[datetime] = None
    last_activity: Optional[datetime] = None


@dataclass
class DailyMetric:
    date: str  # YYYY-MM-DD, local calendar day
    session_count: int = 0
    message_count: int = 0
    total_tokens: TokenUsage = field(default_factory=TokenUsage)
    models: Counter = field(default_factory=Counter)


@dataclass
class PeakHour:
    hour: int
    average_sessions: float


@dataclass
class ActivityEntry:
    timestamp: datetime
    activity_type: str  # session_created, message_sent, session_updated
    session_id: str
    session_name: str
    details: str
