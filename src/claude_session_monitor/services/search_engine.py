"""Cross-session substring search."""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from claude_session_monitor.types.sessions import Session

logger = logging.getLogger(__name__)

CONTEXT_WINDOW = 50  # chars of context around match
RECENT_RECORDS = 10  # trailing records searched per session


@dataclass
class SearchMatch:
    session: Session
    field: str  # project, content, file
    matched_text: str
    context: str


def search_sessions(sessions: Iterable[Session], query: str) -> list[Session]:
    """Sessions whose project name, recent content or edited files contain query.

    Matching is case-insensitive; results keep the input order.
    """
    return [m.session for m in find_matches(sessions, query)]


def find_matches(sessions: Iterable[Session], query: str) -> list[SearchMatch]:
    """Like search_sessions, reporting where each session first matched."""
    if not query:
        return []

    pattern = re.compile(re.escape(query), re.IGNORECASE)
    matches = []
    for session in sessions:
        match = match_session(session, pattern)
        if match is not None:
            matches.append(match)
    logger.debug("Search %r matched %d sessions", query, len(matches))
    return matches


def match_session(session: Session, pattern: re.Pattern) -> Optional[SearchMatch]:
    """First match in a session, checking project name, content, then files."""
    candidates = [("project", session.project_name)]
    candidates.extend(("content", r.content) for r in session.records[-RECENT_RECORDS:])
    candidates.extend(("file", path) for path in session.files_modified)

    for field_name, text in candidates:
        if not text:
            continue
        found = pattern.search(text)
        if found:
            start = max(0, found.start() - CONTEXT_WINDOW)
            end = min(len(text), found.end() + CONTEXT_WINDOW)
            return SearchMatch(
                session=session,
                field=field_name,
                matched_text=found.group(),
                context=text[start:end],
            )
    return None
