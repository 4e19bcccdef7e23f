"""Headless entry point: one-shot summary or a live watch loop."""

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from claude_session_monitor.errors import SessionMonitorError
from claude_session_monitor.services import aggregator
from claude_session_monitor.services.config_manager import ConfigManager
from claude_session_monitor.services.file_watcher import SessionWatcher
from claude_session_monitor.services.session_repository import SessionRepository
from claude_session_monitor.types.events import WatchEvent

logger = logging.getLogger("claude_session_monitor")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="claude-session-monitor")
    parser.add_argument("--root", help="Claude projects directory (default ~/.claude/projects)")
    parser.add_argument("--summary", action="store_true", help="print a rollup and exit")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def _print_summary(repo: SessionRepository, config: ConfigManager):
    sessions = repo.sessions()
    print(f"{len(sessions)} sessions under {repo.projects_root}")

    for name, project in sorted(aggregator.project_rollups(sessions, active_window=config.active_window()).items()):
        print(
            f"  {name}: {project.session_count} sessions, {project.active_sessions} active, "
            f"{project.total_tokens.total} tokens"
        )

    today = aggregator.daily_metrics(sessions, days=1)[0]
    print(f"Today ({today.date}): {today.session_count} sessions, {today.message_count} messages")
    print(f"Estimated cost: ${aggregator.estimated_total_cost(sessions):.2f}")
    failed = [s for s in sessions if s.has_errors]
    if failed:
        print(f"Sessions with errors: {len(failed)}")

    for peak in aggregator.peak_hours(sessions, config.peak_hour_limit()):
        print(f"  Peak hour {peak.hour:02d}:00 ({peak.average_sessions:.1f} per day)")


def _log_event(event: WatchEvent):
    if event.session is not None:
        logger.info(
            "%s %s [%s] %s (%d user, %d assistant)",
            event.event_type.value, event.session_id,
            event.session.status.label, event.session.current_task,
            event.session.user_message_count, event.session.assistant_message_count,
        )
    else:
        logger.info("%s %s", event.event_type.value, event.session_id)


def run(argv: list[str] | None = None) -> int:
    """Launch the monitor."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Claude Session Monitor")
    app.setOrganizationName("claude-session-monitor")

    config = ConfigManager()
    logging.basicConfig(
        level=logging.DEBUG if args.debug or config.debug_logging() else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    repo = SessionRepository(args.root, config=config)
    if args.summary:
        try:
            _print_summary(repo, config)
        except SessionMonitorError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        return 0

    watcher = SessionWatcher(repo.projects_root, config=config)
    watcher.set_event_callback(_log_event)
    try:
        watcher.start(lambda sessions: logger.info("Session set refreshed: %d sessions", len(sessions)))
    except SessionMonitorError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    # Allow Ctrl+C to quit; the timer lets Python see the signal
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    signal.signal(signal.SIGTERM, lambda *_: app.quit())
    ticker = QTimer()
    ticker.timeout.connect(lambda: None)
    ticker.start(250)

    try:
        return app.exec()
    finally:
        watcher.stop()
