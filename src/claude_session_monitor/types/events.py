"""Watcher notification types."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from claude_session_monitor.types.sessions import Session


class WatchEventType(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class WatchEvent:
    event_type: WatchEventType
    session_id: str
    session: Optional[Session] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
