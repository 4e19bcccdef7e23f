"""Services for Claude Session Monitor."""

from claude_session_monitor.services.discovery import discover_sessions, parse_session_file
from claude_session_monitor.services.session_repository import SessionRepository
from claude_session_monitor.services.file_watcher import SessionWatcher
from claude_session_monitor.services.search_engine import search_sessions
from claude_session_monitor.services.config_manager import ConfigManager
from claude_session_monitor.services.git_resolver import resolve_git_metadata

__all__ = [
    "discover_sessions",
    "parse_session_file",
    "SessionRepository",
    "SessionWatcher",
    "search_sessions",
    "ConfigManager",
    "resolve_git_metadata",
]
