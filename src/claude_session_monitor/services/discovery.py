"""Locate transcript files under the projects root and assemble sessions."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from claude_session_monitor.errors import DiscoveryError
from claude_session_monitor.services.git_resolver import VcsProvider, resolve_git_metadata
from claude_session_monitor.services.jsonl_parser import parse_session_file as parse_records
from claude_session_monitor.services.session_assembler import TRANSCRIPT_SUFFIX, assemble_session
from claude_session_monitor.types.sessions import Session

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryStats:
    parsed: int = 0
    skipped: int = 0


def default_projects_root() -> Path:
    """$CLAUDE_DIR/projects, or ~/.claude/projects."""
    claude_dir = os.environ.get("CLAUDE_DIR")
    base = Path(claude_dir).expanduser() if claude_dir else Path.home() / ".claude"
    return base / "projects"


def is_transcript(path: str | Path) -> bool:
    """A session transcript: *.jsonl whose name does not mark it as a summary."""
    name = Path(path).name
    return name.endswith(TRANSCRIPT_SUFFIX) and "summary" not in name


def parse_session_file(
    file_path: str | Path,
    *,
    projects_root: str | Path | None = None,
    vcs_provider: Optional[VcsProvider] = resolve_git_metadata,
    now: Optional[datetime] = None,
) -> Session:
    """Read one transcript and assemble its Session.

    Raises OSError if the file cannot be read.
    """
    records = parse_records(file_path)
    return assemble_session(
        file_path, records,
        projects_root=projects_root,
        vcs_provider=vcs_provider,
        now=now,
    )


def iter_transcripts(projects_root: Path) -> list[Path]:
    """All transcript files below projects_root in a stable order."""
    found = []
    for dirpath, dirnames, filenames in os.walk(projects_root):
        dirnames.sort()
        for name in sorted(filenames):
            if is_transcript(name):
                found.append(Path(dirpath) / name)
    return found


def discover_sessions(
    projects_root: str | Path | None = None,
    *,
    vcs_provider: Optional[VcsProvider] = resolve_git_metadata,
    now: Optional[datetime] = None,
    stats: Optional[DiscoveryStats] = None,
) -> list[Session]:
    """Parse every transcript under the projects root.

    A missing root yields no sessions. Raises DiscoveryError if the root exists
    but cannot be listed. Files that fail to read are skipped.
    """
    root = Path(projects_root) if projects_root is not None else default_projects_root()
    if not root.exists():
        logger.debug("Projects root does not exist: %s", root)
        return []

    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise DiscoveryError(f"Cannot read projects root {root}: {e}") from e

    sessions = []
    for path in iter_transcripts(root):
        try:
            session = parse_session_file(
                path, projects_root=root, vcs_provider=vcs_provider, now=now,
            )
        except OSError as e:
            # Removed or unreadable mid-scan
            logger.warning("Skipping transcript %s: %s", path, e)
            if stats is not None:
                stats.skipped += 1
            continue
        sessions.append(session)
        if stats is not None:
            stats.parsed += 1
    return sessions
