"""
Tests for the REPL presentation layer (no terminal, no model).
"""

import io
import logging
import os
import sys
from contextlib import redirect_stdout

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from tests.helpers import env, run_tests

from mini_code.cli import ConsoleListener, setup_logging
from mini_code.loop import LoopEvent


def render(*events):
    listener = ConsoleListener()
    out = io.StringIO()
    with redirect_stdout(out):
        for event in events:
            listener(event)
    return out.getvalue()


def test_tool_events_rendered():
    out = render(
        LoopEvent("tool_start", 0, {"name": "bash", "input": {"command": "ls"}}),
        LoopEvent("tool_end", 0, {"name": "bash", "output": "a.txt"}),
        LoopEvent("tool_end", 0, {"name": "read_file", "output": "Error: Path escapes workspace: .."}),
    )
    assert "\033[34m>\033[0m bash" in out
    assert "a.txt" in out
    assert "Error: Path escapes workspace" in out
    print("PASS: test_tool_events_rendered")


def test_subagent_events_indented():
    out = render(
        LoopEvent("tool_start", 0, {"name": "Task", "input": {"agent_type": "explore", "description": "find auth"}}),
        LoopEvent("tool_start", 1, {"name": "read_file", "input": {"path": "auth.py"}}),
        LoopEvent("done", 1, {"stop_reason": "end_turn", "text": "nested summary"}),
        LoopEvent("done", 0, {"stop_reason": "end_turn", "text": "final answer"}),
    )
    assert "Task [explore]" in out
    assert "find auth" in out
    assert "\n  \033[34m>\033[0m read_file" in out
    assert "nested summary" not in out
    assert "final answer" in out
    print("PASS: test_subagent_events_indented")


def test_spinner_starts_and_stops():
    listener = ConsoleListener()
    with redirect_stdout(io.StringIO()):
        listener(LoopEvent("model_request", 0, {"max_tokens": 1000, "messages": 1}))
        assert listener.spinner._thread is not None
        listener(LoopEvent("model_response", 0, {"stop_reason": "end_turn"}))
    assert listener.spinner._thread is None
    print("PASS: test_spinner_starts_and_stops")


def test_setup_logging_levels():
    with env(MINI_CODE_DEBUG=None):
        setup_logging()
        assert logging.getLogger("mini_code").level == logging.WARNING
    with env(MINI_CODE_DEBUG="1"):
        setup_logging()
        assert logging.getLogger("mini_code").level == logging.DEBUG
    print("PASS: test_setup_logging_levels")


if __name__ == "__main__":
    run_tests([
        test_tool_events_rendered,
        test_subagent_events_indented,
        test_spinner_starts_and_stops,
        test_setup_logging_levels,
    ])
