"""Query facade binding a projects root to discovery and aggregation."""

import logging
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from claude_session_monitor.errors import SessionNotFoundError
from claude_session_monitor.services import aggregator
from claude_session_monitor.services.discovery import default_projects_root, discover_sessions
from claude_session_monitor.services.git_resolver import VcsProvider, resolve_git_metadata
from claude_session_monitor.services.search_engine import search_sessions
from claude_session_monitor.types.records import TokenUsage
from claude_session_monitor.types.sessions import (
    ActivityEntry,
    DailyMetric,
    PeakHour,
    ProjectAggregate,
    Session,
)

if TYPE_CHECKING:
    from claude_session_monitor.services.config_manager import ConfigManager

logger = logging.getLogger(__name__)


class SessionRepository:
    """Answers session and analytics queries straight from the transcripts.

    Holds no session state: every call runs a fresh discovery, so concurrent
    callers each do their own scan and always see the current files.
    """

    def __init__(
        self,
        projects_root: str | Path | None = None,
        vcs_provider: Optional[VcsProvider] = resolve_git_metadata,
        config: Optional["ConfigManager"] = None,
    ):
        if projects_root is None and config is not None:
            projects_root = config.projects_root()
        self.projects_root = Path(projects_root) if projects_root else default_projects_root()
        self.vcs_provider = vcs_provider
        self._config = config

    def _active_window(self) -> timedelta:
        if self._config is not None:
            return self._config.active_window()
        return aggregator.ACTIVE_WINDOW

    def sessions(self, now: Optional[datetime] = None) -> list[Session]:
        return discover_sessions(self.projects_root, vcs_provider=self.vcs_provider, now=now)

    def get_session(self, session_id: str) -> Session:
        for session in self.sessions():
            if session.id == session_id:
                return session
        raise SessionNotFoundError(session_id)

    def project_rollups(self, now: Optional[datetime] = None) -> dict[str, ProjectAggregate]:
        return aggregator.project_rollups(self.sessions(now), now, self._active_window())

    def daily_metrics(self, days: Optional[int] = None, now: Optional[datetime] = None) -> list[DailyMetric]:
        if days is None:
            days = self._config.daily_metrics_days() if self._config is not None else aggregator.DEFAULT_DAILY_DAYS
        return aggregator.daily_metrics(self.sessions(now), days, now)

    def active_sessions(self, now: Optional[datetime] = None) -> list[Session]:
        return aggregator.active_sessions(self.sessions(now), now, self._active_window())

    def active_session_count(self, now: Optional[datetime] = None) -> int:
        return len(self.active_sessions(now))

    def model_usage(self) -> Counter:
        return aggregator.model_usage(self.sessions())

    def most_used_model(self) -> str:
        return aggregator.most_used_model(self.sessions())

    def peak_hours(self, limit: Optional[int] = None) -> list[PeakHour]:
        if limit is None:
            limit = self._config.peak_hour_limit() if self._config is not None else aggregator.PEAK_HOUR_LIMIT
        return aggregator.peak_hours(self.sessions(), limit)

    def search(self, query: str) -> list[Session]:
        return search_sessions(self.sessions(), query)

    def tokens_by_project(self) -> dict[str, TokenUsage]:
        return aggregator.tokens_by_project(self.sessions())

    def overall_token_usage(self) -> TokenUsage:
        return aggregator.overall_token_usage(self.sessions())

    def estimated_total_cost(self) -> float:
        return aggregator.estimated_total_cost(self.sessions())

    def total_sessions(self) -> int:
        return aggregator.total_sessions(self.sessions())

    def total_messages(self) -> int:
        return aggregator.total_messages(self.sessions())

    def average_session_duration(self) -> float:
        return aggregator.average_session_duration(self.sessions())

    def recent_sessions(self, limit: int) -> list[Session]:
        return aggregator.recent_sessions(self.sessions(), limit)

    def recent_activity(self, limit: int, now: Optional[datetime] = None) -> list[ActivityEntry]:
        return aggregator.recent_activity(self.sessions(now), limit, now)
