"""Shared test helpers."""

import json
import time
from datetime import datetime, timezone
from pathlib import Path


def make_line(
    role="user",
    content="Hello there, please help",
    timestamp: datetime | str | None = None,
    msg_type=None,
    model=None,
    usage=None,
    **extra,
) -> str:
    """Build one raw transcript line."""
    if isinstance(timestamp, datetime):
        timestamp = timestamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    message = {"role": role, "content": content}
    if model:
        message["model"] = model
    if usage:
        message["usage"] = usage
    raw = {
        "type": msg_type or role,
        "timestamp": timestamp or "2026-02-13T10:00:00.000Z",
        "message": message,
    }
    raw.update(extra)
    return json.dumps(raw)


def write_session(path: Path, lines: list[str]) -> Path:
    """Write JSONL lines to a transcript file, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")
    return path


def process_events_until(qapp, condition, timeout=3.0, step=0.02) -> bool:
    """Pump the Qt event loop until condition() is true or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        qapp.processEvents()
        if condition():
            return True
        time.sleep(step)
    qapp.processEvents()
    return condition()
