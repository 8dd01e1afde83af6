"""
Tests for SubagentSpawner - isolated history, filtered tools, bounded depth.
"""

import os
import sys
import tempfile
from pathlib import Path

import anthropic

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from tests.helpers import (
    REQUEST,
    calls,
    make_config,
    make_model,
    response,
    run_tests,
    text,
    tool_use,
)

from mini_code.session import Session
from mini_code.skills import SkillLoader
from mini_code.subagent import NO_TEXT, SubagentSpawner
from mini_code.todo import TodoManager
from mini_code.tools import ToolContext, build_registry


def make_spawner(tmpdir, model, **overrides):
    config = make_config(tmpdir, **overrides)
    skills = SkillLoader()
    registry = build_registry(skills)
    spawner = SubagentSpawner(model, registry, config, skills)
    context = ToolContext(config.workdir, TodoManager(), skills, spawner)
    return spawner, context


def test_isolated_history():
    """The subagent sees exactly one user message: the prompt."""
    with tempfile.TemporaryDirectory() as tmpdir:
        model = make_model(response("end_turn", text("Auth lives in src/auth.py")))
        spawner, ctx = make_spawner(tmpdir, model)

        out = spawner.spawn("explore", "find auth", "find auth code", ctx)
        assert out == "Auth lives in src/auth.py"
        sent = calls(model)[0]
        assert sent["messages"] == [{"role": "user", "content": [{"type": "text", "text": "find auth code"}]}]
        assert sent["system"].startswith("You are a explore subagent at ")
        assert sent["max_tokens"] == 8000
    print("PASS: test_isolated_history")


def test_filtered_tools():
    with tempfile.TemporaryDirectory() as tmpdir:
        spawner, _ = make_spawner(tmpdir, make_model())
        assert spawner.tool_names("explore") == ["bash", "read_file", "Skill"]
        assert spawner.tool_names("plan") == ["bash", "read_file", "Skill"]
        assert spawner.tool_names("code") == [
            "bash", "read_file", "write_file", "edit_file", "web_search", "TodoWrite", "Skill",
        ]
        assert "web_search" not in spawner.tool_names("explore")
    print("PASS: test_filtered_tools")


def test_subagent_cannot_call_task():
    with tempfile.TemporaryDirectory() as tmpdir:
        model = make_model(
            response("tool_use", tool_use("t1", "Task", {
                "description": "recurse", "prompt": "again", "agent_type": "explore"})),
            response("end_turn", text("gave up")),
        )
        spawner, ctx = make_spawner(tmpdir, model)
        assert spawner.spawn("code", "d", "p", ctx) == "gave up"
        assert "Task" not in [t["name"] for t in calls(model)[0]["tools"]]
        result = calls(model)[1]["messages"][2]["content"][0]
        assert result["content"] == "Unknown tool: Task"
        assert len(calls(model)) == 2
    print("PASS: test_subagent_cannot_call_task")


def test_unknown_type_and_depth_limit_make_no_calls():
    with tempfile.TemporaryDirectory() as tmpdir:
        model = make_model()
        spawner, ctx = make_spawner(tmpdir, model)
        assert spawner.spawn("wizard", "d", "p", ctx) == \
            "Error: Unknown agent type 'wizard'. Available: explore, code, plan"
        assert spawner.spawn("explore", "d", "p", ctx.child()) == "Error: Subagent depth limit (1) reached"
        assert calls(model) == []
    print("PASS: test_unknown_type_and_depth_limit_make_no_calls")


def test_failure_becomes_error_string():
    with tempfile.TemporaryDirectory() as tmpdir:
        model = make_model(anthropic.APIConnectionError(request=REQUEST))
        spawner, ctx = make_spawner(tmpdir, model)
        out = spawner.spawn("explore", "d", "p", ctx)
        assert out.startswith("[ERROR] Subagent explore failed: [network]"), out
    print("PASS: test_failure_becomes_error_string")


def test_own_truncation_budget():
    with tempfile.TemporaryDirectory() as tmpdir:
        model = make_model(response("max_tokens", text("1")), response("max_tokens", text("2")))
        spawner, ctx = make_spawner(tmpdir, model, max_truncation_retries=2)
        out = spawner.spawn("plan", "d", "p", ctx)
        assert out.startswith("[ERROR] Subagent plan failed: Response truncated 2 times")
        assert "(current: 8000)" in out
    print("PASS: test_own_truncation_budget")


def test_no_text():
    with tempfile.TemporaryDirectory() as tmpdir:
        spawner, ctx = make_spawner(tmpdir, make_model(response("end_turn")))
        assert spawner.spawn("explore", "d", "p", ctx) == NO_TEXT
    print("PASS: test_no_text")


def test_parent_sees_only_summary():
    """End to end: Task from a session returns one tool_result, nested traffic is discarded."""
    with tempfile.TemporaryDirectory() as tmpdir:
        Path(tmpdir, "notes.txt").write_text("secret details")
        model = make_model(
            response("tool_use", tool_use("p1", "Task", {
                "description": "read notes", "prompt": "Summarize notes.txt", "agent_type": "explore"})),
            response("tool_use", tool_use("s1", "read_file", {"path": "notes.txt"})),
            response("end_turn", text("Notes are about details.")),
            response("end_turn", text("Done.")),
        )
        session = Session(make_config(tmpdir), model, SkillLoader())
        result = session.submit("What is in notes.txt?")

        assert result.text == "Done."
        assert [m["role"] for m in session.history] == ["user", "assistant", "user", "assistant"]
        assert session.history[2]["content"] == [
            {"type": "tool_result", "tool_use_id": "p1", "content": "Notes are about details."}
        ]
        assert "secret details" not in str(session.history)
        # Subagent's second call carried its own tool result
        assert calls(model)[2]["messages"][2]["content"][0]["content"] == "secret details"
    print("PASS: test_parent_sees_only_summary")


if __name__ == "__main__":
    run_tests([
        test_isolated_history,
        test_filtered_tools,
        test_subagent_cannot_call_task,
        test_unknown_type_and_depth_limit_make_no_calls,
        test_failure_becomes_error_string,
        test_own_truncation_budget,
        test_no_text,
        test_parent_sees_only_summary,
    ])
