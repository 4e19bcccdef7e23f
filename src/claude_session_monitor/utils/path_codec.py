"""Decode Claude Code project directory names back into project paths."""

import re
from pathlib import Path
from urllib.parse import unquote_plus

UNKNOWN_PROJECT = "Unknown Project"

_BAD_ESCAPE_RE = re.compile(r'%(?![0-9a-fA-F]{2})')


def decode_path(encoded: str) -> str:
    """Decode a Claude project directory name to a filesystem path.

    -home-wiz-AI-LLM → /home/wiz/AI/LLM
    %2Fhome%2Fwiz%2FAI → /home/wiz/AI (legacy percent-encoded names)
    """
    if not encoded:
        return ""
    if encoded.startswith("-"):
        return "/" + encoded[1:].replace("-", "/")
    try:
        return _strict_unquote(encoded)
    except ValueError:
        return encoded.replace("%2F", "/").replace("%20", " ")


def _strict_unquote(encoded: str) -> str:
    """Percent-decode, treating a malformed escape as an error."""
    if _BAD_ESCAPE_RE.search(encoded):
        raise ValueError(f"invalid percent escape in {encoded!r}")
    return unquote_plus(encoded, errors="strict")


def project_name_from_path(decoded: str) -> str:
    """Last path segment of a decoded project path."""
    name = decoded.rstrip("/").rsplit("/", 1)[-1] if decoded else ""
    return name or UNKNOWN_PROJECT


def project_dir_name(file_path: str | Path, projects_root: str | Path | None = None) -> str:
    """Find the encoded project directory that holds a transcript file.

    Uses the first component below projects_root when given, then the component
    after a "projects" segment, then the immediate parent directory.
    """
    path = Path(file_path)
    if projects_root is not None:
        try:
            relative = path.parent.relative_to(projects_root)
        except ValueError:
            relative = None
        if relative is not None and relative.parts:
            return relative.parts[0]

    parts = path.parent.parts
    for i, part in enumerate(parts):
        if part == "projects" and i + 1 < len(parts):
            return parts[i + 1]
    return path.parent.name
