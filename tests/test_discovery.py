"""Tests for claude_session_monitor.services.discovery."""

import os
import shutil
from datetime import datetime, timezone

import pytest

from claude_session_monitor.errors import DiscoveryError
from claude_session_monitor.services.discovery import (
    DiscoveryStats,
    default_projects_root,
    discover_sessions,
    is_transcript,
    iter_transcripts,
    parse_session_file,
)
from claude_session_monitor.services.git_resolver import no_vcs
from helpers import make_line, write_session

NOW = datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


def _discover(root, **kwargs):
    return discover_sessions(root, vcs_provider=no_vcs, now=NOW, **kwargs)


# ---------------------------------------------------------------------------
# 1. Transcript selection
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name, expected", [
    ("abc-123.jsonl", True),
    ("summary.jsonl", False),
    ("abc-summary-1.jsonl", False),
    ("notes.json", False),
    ("abc.jsonl.bak", False),
])
def test_is_transcript(name, expected):
    assert is_transcript(name) is expected


def test_iter_transcripts_recurses_in_order(projects_dir):
    write_session(projects_dir / "-b" / "2.jsonl", [make_line()])
    write_session(projects_dir / "-a" / "1.jsonl", [make_line()])
    write_session(projects_dir / "-a" / "nested" / "3.jsonl", [make_line()])
    (projects_dir / "-a" / "readme.txt").write_text("x")

    names = [p.relative_to(projects_dir).as_posix() for p in iter_transcripts(projects_dir)]
    assert names == ["-a/1.jsonl", "-a/nested/3.jsonl", "-b/2.jsonl"]


# ---------------------------------------------------------------------------
# 2. Discovery
# ---------------------------------------------------------------------------

def test_missing_root_returns_empty(tmp_path):
    assert _discover(tmp_path / "does-not-exist") == []


def test_empty_root_returns_empty(projects_dir):
    assert _discover(projects_dir) == []


def test_discovers_sessions_across_projects(projects_dir, simple_session_path):
    (projects_dir / "-home-wiz-myapp").mkdir()
    shutil.copy(simple_session_path, projects_dir / "-home-wiz-myapp" / "s1.jsonl")
    write_session(projects_dir / "-srv-api" / "s2.jsonl", [make_line()])

    sessions = _discover(projects_dir)
    by_id = {s.id: s for s in sessions}
    assert set(by_id) == {"s1", "s2"}
    assert by_id["s1"].project_path == "/home/wiz/myapp"
    assert by_id["s1"].project_name == "myapp"
    assert by_id["s1"].message_count == 5
    assert by_id["s2"].project_name == "api"


def test_summary_files_excluded(projects_dir):
    write_session(projects_dir / "-a" / "real.jsonl", [make_line()])
    write_session(projects_dir / "-a" / "summary.jsonl", [make_line()])
    assert [s.id for s in _discover(projects_dir)] == ["real"]


def test_malformed_lines_do_not_fail_discovery(projects_dir, malformed_session_path):
    (projects_dir / "-a").mkdir()
    shutil.copy(malformed_session_path, projects_dir / "-a" / "m.jsonl")
    write_session(projects_dir / "-a" / "garbage.jsonl", ["not json", "{{{"])

    by_id = {s.id: s for s in _discover(projects_dir)}
    assert by_id["m"].message_count == 2
    assert by_id["garbage"].message_count == 0


def test_deeply_nested_line_does_not_fail_discovery(projects_dir):
    """A valid line nested 1000 levels deep is kept and the scan continues."""
    deep = (
        '{"type":"user","timestamp":"2026-02-13T10:00:05Z",'
        '"message":{"role":"user","content":"deep"},"x":'
        + "[" * 1000 + "]" * 1000 + "}"
    )
    write_session(projects_dir / "-p" / "a.jsonl", [
        make_line(content="First request here", timestamp="2026-02-13T10:00:00Z"),
        deep,
        make_line(content="Last request here", timestamp="2026-02-13T10:00:10Z"),
    ])
    write_session(projects_dir / "-p" / "b.jsonl", [make_line()])

    by_id = {s.id: s for s in _discover(projects_dir)}
    assert set(by_id) == {"a", "b"}
    contents = [r.content for r in by_id["a"].records]
    assert contents == ["First request here", "deep", "Last request here"]
    assert by_id["a"].current_task == "Last request here"
    assert by_id["b"].message_count == 1


def test_unreadable_file_is_skipped(projects_dir):
    write_session(projects_dir / "-a" / "good.jsonl", [make_line()])
    os.symlink(projects_dir / "gone.jsonl", projects_dir / "-a" / "dangling.jsonl")

    stats = DiscoveryStats()
    sessions = _discover(projects_dir, stats=stats)
    assert [s.id for s in sessions] == ["good"]
    assert stats.parsed == 1
    assert stats.skipped == 1


def test_unlistable_root_raises(projects_dir, monkeypatch):
    def denied(path):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(os, "scandir", denied)
    with pytest.raises(DiscoveryError):
        _discover(projects_dir)


def test_discovery_uses_now_for_status(projects_dir):
    write_session(projects_dir / "-a" / "s.jsonl", [make_line(timestamp="2026-02-13T11:59:30Z")])
    (session,) = _discover(projects_dir)
    assert session.status.value == "working"


# ---------------------------------------------------------------------------
# 3. Single file and default root
# ---------------------------------------------------------------------------

def test_parse_session_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        parse_session_file(tmp_path / "nope.jsonl", vcs_provider=no_vcs)


def test_parse_session_file(projects_dir, tools_session_path):
    (projects_dir / "-home-wiz-myapp").mkdir()
    target = projects_dir / "-home-wiz-myapp" / "tools.jsonl"
    shutil.copy(tools_session_path, target)

    session = parse_session_file(target, projects_root=projects_dir, vcs_provider=no_vcs, now=NOW)
    assert session.id == "tools"
    assert session.model == "claude-opus-4"
    assert len(session.files_modified) == 3


def test_default_projects_root_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CLAUDE_DIR", str(tmp_path / "claude"))
    assert default_projects_root() == tmp_path / "claude" / "projects"


def test_default_projects_root_home(monkeypatch, tmp_path):
    monkeypatch.delenv("CLAUDE_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_projects_root() == tmp_path / ".claude" / "projects"
