"""Tests for claude_session_monitor.services.session_repository."""

from datetime import datetime, timedelta, timezone

import pytest

from claude_session_monitor.errors import SessionNotFoundError
from claude_session_monitor.services.git_resolver import no_vcs
from claude_session_monitor.services.session_repository import SessionRepository
from helpers import make_line, write_session


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def repo(projects_dir, now):
    """Two projects: one busy session, one stale session, and a summary file."""
    recent = now - timedelta(seconds=20)
    write_session(projects_dir / "-home-wiz-myapp" / "busy.jsonl", [
        make_line(content="Refactor the billing module", timestamp=now - timedelta(minutes=10)),
        make_line(role="assistant", content="On it", timestamp=recent,
                  model="claude-opus-4", usage={"input_tokens": 1000, "output_tokens": 1000}),
    ])
    write_session(projects_dir / "-srv-api" / "stale.jsonl", [
        make_line(content="Write the API docs", timestamp=now - timedelta(days=1)),
    ])
    write_session(projects_dir / "-srv-api" / "summary.jsonl", [make_line()])
    return SessionRepository(projects_dir, vcs_provider=no_vcs)


def test_sessions(repo):
    assert sorted(s.id for s in repo.sessions()) == ["busy", "stale"]


def test_get_session(repo):
    session = repo.get_session("busy")
    assert session.project_name == "myapp"
    assert session.model == "claude-opus-4"


def test_get_session_missing(repo):
    with pytest.raises(SessionNotFoundError):
        repo.get_session("nope")
    # Also usable as a lookup failure
    with pytest.raises(KeyError):
        repo.get_session("nope")


def test_rollups(repo, now):
    rollups = repo.project_rollups(now)
    assert set(rollups) == {"myapp", "api"}
    assert rollups["myapp"].active_sessions == 1
    assert rollups["api"].active_sessions == 0


def test_active_sessions(repo, now):
    assert [s.id for s in repo.active_sessions(now)] == ["busy"]
    assert repo.active_session_count(now) == 1


def test_totals(repo):
    assert repo.total_sessions() == 2
    assert repo.total_messages() == 3
    assert repo.overall_token_usage().total == 2000
    assert repo.estimated_total_cost() == pytest.approx(0.015 + 0.075)
    assert repo.tokens_by_project()["myapp"].total == 2000
    assert repo.model_usage() == {"claude-opus-4": 1}
    assert repo.most_used_model() == "claude-opus-4"


def test_daily_metrics_default_days(repo):
    metrics = repo.daily_metrics()
    assert len(metrics) == 7
    assert sum(m.session_count for m in metrics) >= 2


def test_search(repo):
    assert [s.id for s in repo.search("billing")] == ["busy"]
    assert [s.id for s in repo.search("API")] == ["stale"]


def test_recent_sessions(repo):
    assert [s.id for s in repo.recent_sessions(5)] == ["busy", "stale"]


def test_recent_activity(repo, now):
    entries = repo.recent_activity(3, now)
    assert len(entries) == 3
    assert entries[0].session_id == "busy"


def test_reflects_new_files(repo, projects_dir):
    """No caching: a transcript written after construction is visible."""
    write_session(projects_dir / "-srv-web" / "fresh.jsonl", [make_line()])
    assert repo.total_sessions() == 3


def test_missing_root(tmp_path):
    repo = SessionRepository(tmp_path / "absent", vcs_provider=no_vcs)
    assert repo.sessions() == []
    assert repo.most_used_model() == "claude-3-opus"
    assert repo.peak_hours() == []


def test_config_supplies_root(qapp, tmp_path, projects_dir):
    from PySide6.QtCore import QSettings
    from claude_session_monitor.services.config_manager import ConfigManager

    QSettings.setDefaultFormat(QSettings.IniFormat)
    QSettings.setPath(QSettings.IniFormat, QSettings.UserScope, str(tmp_path / "config"))
    config = ConfigManager()
    config.set_string("general/projectsRoot", str(projects_dir))

    repo = SessionRepository(config=config, vcs_provider=no_vcs)
    assert repo.projects_root == projects_dir
