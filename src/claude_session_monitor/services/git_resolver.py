"""Git metadata resolver: reads .git for branch and worktree info."""

import logging
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

# (project_path) -> (branch, worktree); empty strings when unknown
VcsProvider = Callable[[str], tuple[str, str]]


def resolve_git_metadata(project_path: str) -> tuple[str, str]:
    """Default VCS provider: branch name and linked-worktree name."""
    if not project_path:
        return "", ""
    return resolve_git_branch(project_path), resolve_worktree_name(project_path)


def no_vcs(project_path: str) -> tuple[str, str]:
    """Provider that never touches the filesystem."""
    return "", ""


def resolve_git_branch(project_path: str) -> str:
    """Read the current git branch from a project path.

    Handles both regular repos and worktrees (.git as file with gitdir pointer).
    """
    git_path = Path(project_path) / ".git"
    try:
        if not git_path.exists():
            return ""

        if git_path.is_file():
            gitdir = _read_gitdir_pointer(git_path)
            if not gitdir:
                return ""
            head_path = Path(gitdir) / "HEAD"
        else:
            head_path = git_path / "HEAD"

        if not head_path.exists():
            return ""

        head = head_path.read_text().strip()
        if head.startswith("ref: refs/heads/"):
            return head[len("ref: refs/heads/"):]
        # Detached HEAD, return short hash
        return head[:8] if len(head) >= 8 else head

    except (OSError, ValueError):
        logger.debug("Failed to resolve git branch for %s", project_path, exc_info=True)
        return ""


def resolve_worktree_name(project_path: str) -> str:
    """Name of the linked worktree checked out at project_path, if any.

    A linked worktree has a .git file pointing at <repo>/.git/worktrees/<name>.
    """
    git_path = Path(project_path) / ".git"
    try:
        if not git_path.is_file():
            return ""
        gitdir = _read_gitdir_pointer(git_path)
    except (OSError, ValueError):
        logger.debug("Failed to resolve worktree for %s", project_path, exc_info=True)
        return ""

    if ".git/worktrees/" not in gitdir.replace("\\", "/"):
        return ""
    parts = gitdir.replace("\\", "/").split("/")
    for i, part in enumerate(parts):
        if part == "worktrees" and i + 1 < len(parts):
            return parts[i + 1]
    return ""


def _read_gitdir_pointer(git_file: Path) -> str:
    """Return the path after "gitdir:" in a .git file, or ""."""
    for line in git_file.read_text().splitlines():
        line = line.strip()
        if line.startswith("gitdir:"):
            return line[len("gitdir:"):].strip()
    return ""
