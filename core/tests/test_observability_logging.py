"""Tests for run-context logging and ANSI stripping."""

import json
import logging

from headless.observability.logging import (
    HumanReadableFormatter,
    StructuredFormatter,
    clear_run_context,
    get_run_context,
    set_run_context,
    strip_ansi_codes,
)


def _record(message: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("headless.test", level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRunContext:
    def test_set_merges_fields(self):
        set_run_context(prompt_id="p1")
        set_run_context(turn=2)
        assert get_run_context() == {"prompt_id": "p1", "turn": 2}

    def test_get_returns_copy(self):
        set_run_context(prompt_id="p1")
        get_run_context()["prompt_id"] = "changed"
        assert get_run_context()["prompt_id"] == "p1"

    def test_clear(self):
        set_run_context(prompt_id="p1")
        clear_run_context()
        assert get_run_context() == {}


class TestStripAnsi:
    def test_plain_text_untouched(self):
        assert strip_ansi_codes("hello [1m] world") == "hello [1m] world"

    def test_removes_sgr_and_cursor_sequences(self):
        assert strip_ansi_codes("\x1b[1;31mred\x1b[0m\x1b[2K") == "red"

    def test_removes_osc_with_st_terminator(self):
        assert strip_ansi_codes("\x1b]0;title\x1b\\text") == "text"


class TestStructuredFormatter:
    def test_includes_context_and_extra_fields(self):
        set_run_context(prompt_id="p1", turn=3)
        record = _record("\x1b[31mtool failed\x1b[0m", event="tool_error", tool_name="ls")

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["message"] == "tool failed"
        assert entry["prompt_id"] == "p1"
        assert entry["turn"] == 3
        assert entry["event"] == "tool_error"
        assert entry["tool_name"] == "ls"
        assert entry["level"] == "info"
        assert "error_type" not in entry


class TestHumanReadableFormatter:
    def test_context_prefix(self):
        set_run_context(prompt_id="prompt-12345678", turn=1)
        line = HumanReadableFormatter().format(_record("hello", event="loop_started"))
        assert "[prompt:12345678 | turn:1] hello [loop_started]" in line

    def test_no_prefix_without_context(self):
        line = HumanReadableFormatter().format(_record("hello"))
        assert "] hello" in line
        assert "prompt:" not in line
