"""
Subagents - context isolation through a nested loop.

    Parent agent                     Subagent
    +------------------+             +------------------+
    | history=[...]    |             | history=[prompt] |  <-- fresh
    |                  |  dispatch   |                  |
    | tool: Task       | ----------> | AgentLoop.run    |
    |   agent_type     |             |   own budget     |
    |   prompt         |  summary    |   filtered tools |
    |   result = "..." | <---------- | first text block |
    +------------------+             +------------------+

The parent only ever sees one tool_result string; the nested conversation
and its tool traffic are discarded. The Task tool is never given to a
subagent, and the spawner also refuses to go deeper than
Config.max_subagent_depth.
"""

import logging

from .agents import AGENT_TYPES
from .budget import Budget
from .config import Config
from .errors import LoopError
from .loop import AgentLoop
from .messages import first_text, user_message
from .skills import SkillLoader
from .tools import BASE_TOOLS, SKILL_TOOL, TASK_TOOL, ToolContext, ToolRegistry

logger = logging.getLogger(__name__)

NO_TEXT = "(subagent returned no text)"


class SubagentSpawner:
    def __init__(self, model, registry: ToolRegistry, config: Config, skills: SkillLoader, listener=None):
        self.model = model
        self.registry = registry
        self.config = config
        self.skills = skills
        self.listener = listener

    def system_prompt(self, agent_type: str) -> str:
        cfg = AGENT_TYPES[agent_type]
        return (f"You are a {agent_type} subagent at {self.config.workdir}.\n\n"
                f"{cfg.prompt}\n\n"
                "Complete the task and return a clear, concise summary.")

    def tool_names(self, agent_type: str) -> list:
        cfg = AGENT_TYPES[agent_type]
        names = [n for n in BASE_TOOLS if cfg.allows(n)]
        if cfg.skills:
            names.append(SKILL_TOOL)
        return [n for n in names if n != TASK_TOOL and n in self.registry]

    def spawn(self, agent_type: str, description: str, prompt: str, context: ToolContext) -> str:
        if agent_type not in AGENT_TYPES:
            return f"Error: Unknown agent type '{agent_type}'. Available: {', '.join(AGENT_TYPES)}"
        if context.depth >= self.config.max_subagent_depth:
            return f"Error: Subagent depth limit ({self.config.max_subagent_depth}) reached"

        history = [user_message(prompt)]
        tools = self.registry.schemas(self.tool_names(agent_type))
        budget = Budget(self.config.subagent_max_output_tokens, self.config.max_truncation_retries)
        loop = AgentLoop(self.model, self.registry, context.child(), self.listener)

        logger.info("Spawning %s subagent: %s", agent_type, description)
        try:
            loop.run(history, self.system_prompt(agent_type), tools, budget)
        except LoopError as e:
            logger.warning("%s subagent failed: %s", agent_type, e)
            return f"[ERROR] Subagent {agent_type} failed: {e}"
        return first_text(history[-1]) or NO_TEXT
