"""Streaming JSONL parser for Claude Code transcript files."""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import orjson

from claude_session_monitor.types.records import LogRecord, TokenUsage
from claude_session_monitor.utils.message_classifier import extract_text

logger = logging.getLogger(__name__)

# Max size for a single JSONL line (10MB)
MAX_LINE_SIZE = 10 * 1024 * 1024

# Tried in order; the first format that parses wins
TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",   # RFC 3339 with fraction
    "%Y-%m-%dT%H:%M:%S%z",      # RFC 3339
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d %H:%M:%S",
)

_LONG_FRACTION_RE = re.compile(r'(\.\d{6})\d+')

USAGE_FIELDS = (
    "input_tokens",
    "output_tokens",
    "cache_creation_input_tokens",
    "cache_read_input_tokens",
)


def parse_session_file(file_path: str | Path) -> list[LogRecord]:
    """Parse an entire JSONL transcript into a list of LogRecord objects."""
    return list(stream_session_file(file_path))


def stream_session_file(file_path: str | Path) -> Iterator[LogRecord]:
    """Stream-parse a JSONL transcript, yielding LogRecord objects.

    Malformed lines are logged and skipped.
    Lines exceeding MAX_LINE_SIZE are skipped with a warning.
    Raises OSError if the file cannot be opened.
    """
    path = Path(file_path)
    line_num = 0
    with open(path, "rb") as f:
        for line in f:
            line_num += 1
            line = line.strip()
            if not line:
                continue

            if len(line) > MAX_LINE_SIZE:
                logger.warning(
                    "Line %d in %s exceeds %dMB, skipping",
                    line_num, path.name, MAX_LINE_SIZE // (1024 * 1024),
                )
                continue

            record = parse_line(line)
            if record is None:
                logger.debug("Skipped line %d in %s", line_num, path.name)
                continue
            yield record


def parse_line(line: bytes | str) -> LogRecord | None:
    """Parse one transcript line.

    Returns None for malformed JSON, non-object values and summary entries.
    """
    try:
        raw = orjson.loads(line)
    except orjson.JSONDecodeError:
        return None

    if not isinstance(raw, dict):
        return None

    if raw.get("type") == "summary":
        return None

    return _parse_raw_record(raw)


def _parse_raw_record(raw: dict) -> LogRecord:
    """Build a LogRecord from a decoded line, keeping the whole line as metadata."""
    record_type = raw.get("type", "")
    if not isinstance(record_type, str):
        record_type = ""

    message = raw.get("message", {})
    if not isinstance(message, dict):
        message = {}

    role = message.get("role", "")
    message_id = message.get("id", "")
    model = message.get("model", "")

    return LogRecord(
        timestamp=parse_timestamp(raw.get("timestamp")),
        record_type=record_type,
        role=role if isinstance(role, str) else "",
        content=extract_text(message.get("content", "")),
        usage=_parse_usage(message.get("usage")),
        raw_metadata=raw,
        message_id=message_id if isinstance(message_id, str) else "",
        model=model if isinstance(model, str) else "",
    )


def _parse_usage(raw_usage) -> TokenUsage:
    """Read the four token counters; missing or non-numeric counters are zero."""
    if not isinstance(raw_usage, dict):
        return TokenUsage()
    counters = {}
    for name in USAGE_FIELDS:
        value = raw_usage.get(name, 0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            value = 0
        counters[name] = int(value)
    return TokenUsage(**counters)


def parse_timestamp(ts_value) -> datetime:
    """Parse a timestamp, trying TIMESTAMP_FORMATS in order.

    Numeric epoch seconds or milliseconds are also accepted. Naive results are
    taken as UTC. When nothing parses the current time is returned, which can
    misorder records in a backfill of old transcripts.
    """
    if isinstance(ts_value, (int, float)) and not isinstance(ts_value, bool):
        try:
            seconds = ts_value / 1000 if ts_value > 1e12 else ts_value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OSError, OverflowError):
            pass
    elif isinstance(ts_value, str) and ts_value:
        text = _LONG_FRACTION_RE.sub(r'\1', ts_value.strip())
        for fmt in TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    logger.debug("Unparsable timestamp %r, using current time", ts_value)
    return datetime.now(timezone.utc)
