"""
mini_code - a small coding agent: tool loop, subagents, todos, skills.

    Session.submit(text)
        -> AgentLoop.run(history, system, tools, budget)
            -> ModelService.create(...)
            -> ToolRegistry.dispatch(...)        bash / files / TodoWrite / Skill
                -> SubagentSpawner.spawn(...)    Task: nested AgentLoop
"""

from .budget import Budget, compute_max_output, estimate_context_tokens, max_output
from .config import Config
from .errors import (
    AgentError,
    ConfigError,
    LoopError,
    ModelServiceError,
    TodoValidationError,
    ToolError,
    TruncationExhaustedError,
)
from .loop import AgentLoop, LoopEvent, LoopResult
from .model import ModelService
from .session import Session
from .skills import Skill, SkillLoader
from .subagent import SubagentSpawner
from .todo import TodoItem, TodoManager, TodoStatus
from .tools import Tool, ToolContext, ToolRegistry, build_registry

__version__ = "0.1.0"
