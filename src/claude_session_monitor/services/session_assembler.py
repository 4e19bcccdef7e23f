"""Build a Session aggregate from the parsed records of one transcript."""

import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator, Optional, Sequence

from claude_session_monitor.services.git_resolver import VcsProvider, resolve_git_metadata
from claude_session_monitor.types.records import LogRecord, MetadataValue, TokenUsage
from claude_session_monitor.types.sessions import Session, SessionStatus
from claude_session_monitor.utils.message_classifier import is_task_candidate
from claude_session_monitor.utils.path_codec import decode_path, project_dir_name, project_name_from_path
from claude_session_monitor.utils.pricing import DEFAULT_MODEL, lookup_pricing

logger = logging.getLogger(__name__)

TRANSCRIPT_SUFFIX = ".jsonl"

WORKING_WINDOW = timedelta(minutes=2)
IDLE_WINDOW = timedelta(minutes=15)

RECENT_TASK_SCAN = 20
RECENT_TASK_MIN_LENGTH = 10
EARLY_TASK_SCAN = 10
EARLY_TASK_MIN_LENGTH = 20
TASK_MAX_LENGTH = 80

EDIT_TOOL_KINDS = frozenset({"edit", "write", "multiedit"})

_WHITESPACE_RE = re.compile(r'\s+')


def session_id_from_path(file_path: str | Path) -> str:
    """Session id is the transcript file name minus its suffix."""
    name = Path(file_path).name
    if name.endswith(TRANSCRIPT_SUFFIX):
        return name[:-len(TRANSCRIPT_SUFFIX)]
    return name


def assemble_session(
    file_path: str | Path,
    records: Sequence[LogRecord],
    *,
    projects_root: str | Path | None = None,
    vcs_provider: Optional[VcsProvider] = resolve_git_metadata,
    now: Optional[datetime] = None,
) -> Session:
    """Group the records of one transcript into a Session."""
    records = list(records)
    encoded = project_dir_name(file_path, projects_root)
    project_path = decode_path(encoded)

    session = Session(
        id=session_id_from_path(file_path),
        file_path=str(file_path),
        project_path=project_path,
        project_name=project_name_from_path(project_path),
        records=records,
    )

    if records:
        timestamps = [r.timestamp for r in records]
        session.start_time = min(timestamps)
        session.last_activity = max(timestamps)

    if project_path and vcs_provider is not None:
        session.git_branch, session.git_worktree = vcs_provider(project_path)

    usage = TokenUsage()
    for record in records:
        usage = usage + record.usage
    session.model = infer_model(records)
    session.tokens_used = usage.priced_with(lookup_pricing(session.model))

    session.files_modified = extract_files_modified(records)
    session.current_task = extract_current_task(records)
    session.status = classify_status(records, session.last_activity, now)
    return session


# ------------------------------------------------------------------
# Model inference
# ------------------------------------------------------------------

def infer_model(records: Sequence[LogRecord]) -> str:
    """Find the model name used by a session, newest record first.

    Each record's metadata is checked at the top level, then in the nested
    "message" object, then in every other direct map value. The last check has
    no structural guarantee and can pick up an unrelated "model" key.
    """
    for record in reversed(records):
        model = _model_in(record.raw_metadata)
        if model:
            return model
    return DEFAULT_MODEL


def _model_in(metadata: dict[str, MetadataValue]) -> str:
    model = metadata.get("model")
    if isinstance(model, str):
        return model

    message = metadata.get("message")
    if isinstance(message, dict) and isinstance(message.get("model"), str):
        return message["model"]

    for value in metadata.values():
        if isinstance(value, dict) and isinstance(value.get("model"), str):
            return value["model"]
    return ""


# ------------------------------------------------------------------
# Status
# ------------------------------------------------------------------

def classify_status(
    records: Sequence[LogRecord],
    last_activity: Optional[datetime],
    now: Optional[datetime] = None,
) -> SessionStatus:
    """Status as a pure function of the records and the wall clock.

    Nothing is remembered between calls, so a Complete session becomes Working
    again as soon as new activity lands.
    """
    if not records:
        return SessionStatus.IDLE
    if records[-1].record_type == "error":
        return SessionStatus.ERROR
    if last_activity is None:
        return SessionStatus.COMPLETE

    now = now or datetime.now(timezone.utc)
    elapsed = now - last_activity
    if elapsed < WORKING_WINDOW:
        return SessionStatus.WORKING
    if elapsed < IDLE_WINDOW:
        return SessionStatus.IDLE
    return SessionStatus.COMPLETE


# ------------------------------------------------------------------
# Current task
# ------------------------------------------------------------------

def extract_current_task(records: Sequence[LogRecord]) -> str:
    """Describe what the session is working on from its user messages."""
    if not records:
        return "No activity"

    recent = min(RECENT_TASK_SCAN, len(records))
    for record in reversed(records[len(records) - recent:]):
        if is_task_candidate(record, RECENT_TASK_MIN_LENGTH):
            return _clean_task(record.content)

    # Long sessions: fall back to the opening request
    early = min(EARLY_TASK_SCAN, len(records))
    for record in records[:early]:
        if is_task_candidate(record, EARLY_TASK_MIN_LENGTH):
            return _clean_task(record.content)

    return "Session active"


def _clean_task(content: str) -> str:
    task = _WHITESPACE_RE.sub(" ", content).strip()
    if len(task) > TASK_MAX_LENGTH:
        task = task[:TASK_MAX_LENGTH - 3] + "..."
    return task


# ------------------------------------------------------------------
# Modified files
# ------------------------------------------------------------------

def extract_files_modified(records: Sequence[LogRecord]) -> list[str]:
    """Paths written by edit-type tool invocations, in first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        for file_path in _iter_edited_paths(record.raw_metadata):
            seen.setdefault(file_path, None)
    return list(seen)


def _iter_edited_paths(value: MetadataValue) -> Iterator[str]:
    """Walk a metadata tree yielding file_path of every edit-type invocation.

    Two shapes are recognized:
      {"type": "edit", "parameters": {"file_path": ...}}
      {"type": "tool_use", "name": "Edit", "input": {"file_path": ...}}

    Iterative pre-order walk; nesting depth is bounded only by the decoder.
    """
    stack = [value]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            file_path = _edited_path(node)
            if file_path:
                yield file_path
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))


def _edited_path(node: dict) -> str:
    kind = node.get("type")
    if not isinstance(kind, str):
        return ""
    if kind.lower() in EDIT_TOOL_KINDS:
        params = node.get("parameters")
    elif kind == "tool_use" and isinstance(node.get("name"), str) \
            and node["name"].lower() in EDIT_TOOL_KINDS:
        params = node.get("input")
    else:
        return ""
    if isinstance(params, dict) and isinstance(params.get("file_path"), str):
        return params["file_path"]
    return ""
