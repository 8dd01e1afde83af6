"""
Tool dispatch.

    tool_use(name, input) --> registry.dispatch --> handler(args, context) --> str

Every tool is registered once as a Tool (schema + handler). The registry
validates schemas at registration, so dispatch has exactly one fallback
branch for names it does not know. Handlers always produce a string; bad
input comes back as "Error: ..." so the model can correct itself.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .agents import AGENT_TYPES, get_agent_descriptions
from .errors import LoopError, ToolError
from .skills import SkillLoader, run_skill
from .todo import TodoManager
from .web import run_web_search
from .workspace import run_bash, run_edit, run_read, run_write

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 50000
TRUNCATION_MARKER = "...(truncated)"

TASK_TOOL = "Task"
SKILL_TOOL = "Skill"
TODO_TOOL = "TodoWrite"
WEB_SEARCH_TOOL = "web_search"
BASE_TOOLS = ("bash", "read_file", "write_file", "edit_file", WEB_SEARCH_TOOL, TODO_TOOL)


def safe_truncate(text: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Cap text at max_bytes of UTF-8 without splitting a character.

    Lone surrogates (from JSON input echoed back) become "?".
    """
    data = text.encode("utf-8", errors="replace")
    if len(data) <= max_bytes:
        return data.decode("utf-8")
    return data[:max_bytes].decode("utf-8", errors="ignore") + TRUNCATION_MARKER


def is_error_output(output: str) -> bool:
    return output.startswith(("Error:", "Unknown tool:", "[ERROR]"))


@dataclass
class ToolContext:
    """What a handler may touch. One per loop instance."""

    workdir: Path
    todo: TodoManager
    skills: SkillLoader
    spawner: Any = None
    depth: int = 0
    http: Any = None  # httpx.Client for web_search; a fresh one per call when None

    def child(self) -> "ToolContext":
        return ToolContext(self.workdir, self.todo, self.skills, self.spawner, self.depth + 1, self.http)


@dataclass
class Tool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Callable[[dict, ToolContext], str] = field(repr=False, default=None)

    @property
    def required(self) -> list:
        return list(self.input_schema.get("required", []))

    def schema(self) -> dict:
        return {"name": self.name, "description": self.description, "input_schema": self.input_schema}


class ToolRegistry:
    def __init__(self, tools=()):
        self._tools: Dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool):
        if not tool.name:
            raise ValueError("Tool name required")
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        if tool.handler is None:
            raise ValueError(f"Tool '{tool.name}' has no handler")
        schema = tool.input_schema
        if schema.get("type") != "object":
            raise ValueError(f"Tool '{tool.name}': input_schema must be an object schema")
        missing = [f for f in tool.required if f not in schema.get("properties", {})]
        if missing:
            raise ValueError(f"Tool '{tool.name}': required fields not in properties: {missing}")
        self._tools[tool.name] = tool

    def __contains__(self, name):
        return name in self._tools

    def names(self) -> list:
        return list(self._tools)

    def schemas(self, names=None) -> list:
        """API schemas in registration order, optionally restricted to `names`."""
        return [t.schema() for t in self._tools.values() if names is None or t.name in names]

    def dispatch(self, name: str, args: dict, context: ToolContext, allowed: Optional[set] = None) -> str:
        tool = self._tools.get(name)
        if tool is None or (allowed is not None and name not in allowed):
            return f"Unknown tool: {name}"
        args = args if isinstance(args, dict) else {}
        for f in tool.required:
            if args.get(f) is None:
                return f"Error: Missing '{f}' parameter"
        logger.debug("dispatch %s(%s) depth=%d", name, ", ".join(args), context.depth)
        try:
            output = tool.handler(args, context)
        except LoopError:
            raise
        except (ToolError, ValueError, TypeError, OSError) as e:
            output = f"Error: {e}"
        except Exception as e:
            logger.exception("Tool %s failed", name)
            output = f"Error: {type(e).__name__}: {e}"
        return safe_truncate(str(output))


# -- Handlers --

def _bash(args, ctx):
    return run_bash(ctx.workdir, str(args["command"]))


def _read(args, ctx):
    limit = args.get("limit")
    return run_read(ctx.workdir, str(args["path"]), int(limit) if limit is not None else None)


def _write(args, ctx):
    return run_write(ctx.workdir, str(args["path"]), str(args["content"]))


def _edit(args, ctx):
    return run_edit(ctx.workdir, str(args["path"]), str(args["old_text"]), str(args["new_text"]))


def _web_search(args, ctx):
    limit = args.get("max_results")
    return run_web_search(ctx.http, str(args["query"]), int(limit) if limit is not None else None)


def _todo(args, ctx):
    return ctx.todo.update(args["items"])


def _skill(args, ctx):
    return run_skill(ctx.skills, str(args["skill"]))


def _task(args, ctx):
    if ctx.spawner is None:
        raise ToolError("Subagents are not available in this context")
    return ctx.spawner.spawn(str(args["agent_type"]), str(args["description"]), str(args["prompt"]), ctx)


def _object(properties: dict, required: list) -> dict:
    return {"type": "object", "properties": properties, "required": required}


def base_tools() -> list:
    return [
        Tool("bash", "Run a shell command.",
             _object({"command": {"type": "string", "description": "The shell command to execute"}}, ["command"]),
             _bash),
        Tool("read_file", "Read file contents.",
             _object({"path": {"type": "string", "description": "Relative path to the file"},
                      "limit": {"type": "integer", "description": "Max lines to read (default: all)"}}, ["path"]),
             _read),
        Tool("write_file", "Write content to file.",
             _object({"path": {"type": "string", "description": "Relative path for the file"},
                      "content": {"type": "string", "description": "Content to write"}}, ["path", "content"]),
             _write),
        Tool("edit_file", "Replace exact text in file.",
             _object({"path": {"type": "string", "description": "Relative path to the file"},
                      "old_text": {"type": "string", "description": "Exact text to find (must match precisely)"},
                      "new_text": {"type": "string", "description": "Replacement text"}},
                     ["path", "old_text", "new_text"]),
             _edit),
        Tool(WEB_SEARCH_TOOL, "Search the web using DuckDuckGo. Use this to find current information about any topic.",
             _object({"query": {"type": "string", "description": "The search query to find information about"},
                      "max_results": {"type": "integer", "minimum": 1, "maximum": 10,
                                      "description": "Maximum number of results to return (default: 5)"}},
                     ["query"]),
             _web_search),
        Tool(TODO_TOOL, "Update the task list. Use to plan and track progress.",
             _object({"items": {
                 "type": "array",
                 "description": "Complete list of tasks (replaces existing)",
                 "items": _object({
                     "content": {"type": "string", "description": "Task description"},
                     "status": {"type": "string", "enum": ["pending", "in_progress", "completed"]},
                     "activeForm": {"type": "string", "description": "Present tense action, e.g. 'Reading files'"},
                 }, ["content", "status", "activeForm"]),
             }}, ["items"]),
             _todo),
    ]


def task_tool() -> Tool:
    return Tool(
        TASK_TOOL,
        f"""Spawn a subagent for a focused subtask.

Agent types:
{get_agent_descriptions()}

Example uses:
- Task(explore): "Find all files using the auth module"
- Task(plan): "Design a migration strategy for the database"
- Task(code): "Implement the user registration form"
""",
        _object({
            "description": {"type": "string", "description": "Short task name (3-5 words) for progress display"},
            "prompt": {"type": "string", "description": "Detailed instructions for the subagent"},
            "agent_type": {"type": "string", "enum": list(AGENT_TYPES), "description": "Type of agent to spawn"},
        }, ["description", "prompt", "agent_type"]),
        _task,
    )


def skill_tool(skills: SkillLoader) -> Tool:
    return Tool(
        SKILL_TOOL,
        f"""Load a skill to gain specialized knowledge for a task.

Available skills:
{skills.descriptions()}

When to use:
- IMMEDIATELY when user task matches a skill description
- Before attempting domain-specific work (PDF, MCP, etc.)

The skill content will be injected into the conversation, giving you
detailed instructions and access to resources.""",
        _object({"skill": {"type": "string", "description": "Name of the skill to load"}}, ["skill"]),
        _skill,
    )


def build_registry(skills: SkillLoader) -> ToolRegistry:
    return ToolRegistry(base_tools() + [task_tool(), skill_tool(skills)])
