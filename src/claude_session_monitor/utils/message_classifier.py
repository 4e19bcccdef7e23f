"""Classify transcript content for task extraction and search."""

from claude_session_monitor.types.records import LogRecord

# Serialized tool results fed back to the model as user messages
TOOL_RESULT_MARKERS = (
    '"tool_use_id"',
    '"type":"tool_result"',
)

# Slash-command echoes and captured local command output
COMMAND_MARKERS = (
    "<command-name>",
    "<local-command-stdout>",
)

CAVEAT_PREFIX = "Caveat:"


def is_tool_result_text(text: str) -> bool:
    return any(marker in text for marker in TOOL_RESULT_MARKERS)


def is_command_echo(text: str) -> bool:
    """Command output or the caveat preamble that precedes it."""
    return text.startswith(CAVEAT_PREFIX) or any(m in text for m in COMMAND_MARKERS)


def is_task_candidate(record: LogRecord, min_length: int) -> bool:
    """A user-authored record that reads like a typed request.

    Content must be longer than min_length after stripping.
    """
    if record.role != "user":
        return False
    text = record.content.strip()
    if len(text) <= min_length:
        return False
    return not (is_tool_result_text(text) or is_command_echo(text))


def extract_text(content) -> str:
    """Flatten message content to plain text.

    Strings pass through; for block lists only text blocks contribute.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text", "")
                if isinstance(text, str) and text:
                    parts.append(text)
        return " ".join(parts)
    return ""
