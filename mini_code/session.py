"""
Session - one conversation.

Owns the history, the todo list and the tool context, and builds the system
prompt exactly once. Skill content is only ever appended to history as a
tool_result, so the system prompt (and the tool list) stay byte-identical
across turns and the backend prompt cache keeps hitting.

Reminders ride along with what the model reads next:
    first user message                               -> INITIAL_REMINDER
    > NAG_AFTER_ROUNDS tool rounds without TodoWrite -> NAG_REMINDER, appended
        to each further tool_result message and to the next user message
"""

import logging

from .agents import get_agent_descriptions
from .budget import Budget
from .config import Config
from .loop import AgentLoop, LoopResult
from .messages import text_block, user_message
from .skills import SkillLoader
from .subagent import SubagentSpawner
from .todo import TodoManager
from .tools import TODO_TOOL, ToolContext, build_registry

logger = logging.getLogger(__name__)

NAG_AFTER_ROUNDS = 10

INITIAL_REMINDER = """<system-reminder>
For multi-step tasks, use the TodoWrite tool to track progress:
- Mark a task in_progress before starting it, completed right after finishing
- Only one task in_progress at a time
- Maximum 20 tasks to keep plans manageable
</system-reminder>"""

NAG_REMINDER = """<system-reminder>
More than 10 tool rounds have passed without updating the todo list.

Please update the TodoWrite to:
1. Mark completed tasks as "completed"
2. Update current task to "in_progress" with activeForm
3. Add any new tasks discovered during work
</system-reminder>"""

ABORTED_TURN = "(previous turn ended with an error)"


def build_system_prompt(config: Config, skills: SkillLoader) -> str:
    return f"""You are a coding agent at {config.workdir}.

Loop: plan -> act with tools -> report.

**Skills available** (invoke with Skill tool when task matches):
{skills.descriptions()}

**Subagents available** (invoke with Task tool for focused subtasks):
{get_agent_descriptions()}

Rules:
- Use Skill tool IMMEDIATELY when a task matches a skill description
- Use Task tool for subtasks needing focused exploration or implementation
- Use TodoWrite to track multi-step work
- Prefer tools over prose. Act, don't just explain.
- After finishing, summarize what changed."""


class Session:
    def __init__(self, config: Config, model, skills: SkillLoader = None, listener=None):
        self.config = config
        self.model = model
        self.skills = skills if skills is not None else SkillLoader(config.skills_dir)
        self.todo = TodoManager()
        self.registry = build_registry(self.skills)
        self.spawner = SubagentSpawner(model, self.registry, config, self.skills, listener)
        self.context = ToolContext(config.workdir, self.todo, self.skills, self.spawner)
        self.loop = AgentLoop(model, self.registry, self.context, listener, self._after_round)
        self.system = build_system_prompt(config, self.skills)
        self.tools = self.registry.schemas()
        self.history = []
        self.rounds_without_todo = 0

    def _after_round(self, names: list):
        self.rounds_without_todo = 0 if TODO_TOOL in names else self.rounds_without_todo + 1
        if self.rounds_without_todo > NAG_AFTER_ROUNDS:
            logger.debug("Nagging: %d rounds without %s", self.rounds_without_todo, TODO_TOOL)
            return NAG_REMINDER
        return None

    def submit(self, text: str) -> LoopResult:
        """Run one user turn to completion. LoopError propagates to the caller."""
        content = []
        if not self.history:
            content.append(text_block(INITIAL_REMINDER))
        elif self.rounds_without_todo > NAG_AFTER_ROUNDS:
            content.append(text_block(NAG_REMINDER))
        content.append(text_block(text))

        # A failed turn can leave a user message last; keep roles alternating.
        if self.history and self.history[-1]["role"] == "user":
            self.history.append({"role": "assistant", "content": [text_block(ABORTED_TURN)]})
        self.history.append(user_message(content))

        budget = Budget(self.config.max_output_tokens, self.config.max_truncation_retries)
        result = self.loop.run(self.history, self.system, self.tools, budget)
        logger.debug("Turn done: %d rounds, %d without todo", result.rounds, self.rounds_without_todo)
        return result
