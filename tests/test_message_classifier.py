"""Tests for message classification."""

from datetime import datetime, timezone

import pytest

from claude_session_monitor.types.records import LogRecord
from claude_session_monitor.utils.message_classifier import (
    extract_text,
    is_command_echo,
    is_task_candidate,
    is_tool_result_text,
)


def _record(content, role="user"):
    return LogRecord(
        timestamp=datetime(2026, 2, 13, tzinfo=timezone.utc),
        record_type=role, role=role, content=content,
    )


class TestTaskCandidate:
    def test_real_request(self):
        assert is_task_candidate(_record("Add a retry to the uploader"), 10) is True

    def test_assistant_is_not_candidate(self):
        assert is_task_candidate(_record("Add a retry to the uploader", "assistant"), 10) is False

    def test_length_is_strict(self):
        assert is_task_candidate(_record("x" * 10), 10) is False
        assert is_task_candidate(_record("x" * 11), 10) is True

    def test_whitespace_is_stripped(self):
        assert is_task_candidate(_record("   short   "), 10) is False

    @pytest.mark.parametrize("content", [
        '[{"tool_use_id":"toolu_1","content":"ok"}]',
        '{"type":"tool_result","content":"ok"}',
        "<command-name>/compact</command-name>",
        "<local-command-stdout>done</local-command-stdout>",
        "Caveat: The messages below were generated by the user while running local commands.",
    ])
    def test_markers_exclude(self, content):
        assert is_task_candidate(_record(content), 10) is False


class TestMarkers:
    def test_tool_result_text(self):
        assert is_tool_result_text('{"tool_use_id":"x"}') is True
        assert is_tool_result_text("plain text") is False

    def test_command_echo(self):
        assert is_command_echo("Caveat: something") is True
        assert is_command_echo("<command-name>/help</command-name>") is True
        assert is_command_echo("a caveat in the middle") is False


class TestExtractText:
    def test_string_passes_through(self):
        assert extract_text("hello") == "hello"

    def test_text_blocks_joined(self):
        content = [
            {"type": "text", "text": "first"},
            {"type": "tool_use", "name": "Edit", "input": {}},
            {"type": "text", "text": "second"},
        ]
        assert extract_text(content) == "first second"

    def test_only_tool_blocks(self):
        assert extract_text([{"type": "tool_result", "content": "ok"}]) == ""

    @pytest.mark.parametrize("content", [None, 42, {"type": "text", "text": "x"}])
    def test_other_shapes(self, content):
        assert extract_text(content) == ""
