"""
Agent type registry.

Each subagent type is a prompt fragment plus a tool allowlist:

    | Type    | Tools                 | Purpose                      |
    |---------|-----------------------|------------------------------|
    | explore | bash, read_file       | Read-only exploration        |
    | code    | all base tools        | Implementation               |
    | plan    | bash, read_file       | Design without modifying     |
"""

from dataclasses import dataclass

WILDCARD = "*"


@dataclass(frozen=True)
class AgentTypeConfig:
    name: str
    description: str
    tools: object  # tuple of tool names, or WILDCARD
    prompt: str
    skills: bool = True

    def allows(self, tool_name: str) -> bool:
        return self.tools == WILDCARD or tool_name in self.tools


AGENT_TYPES = {
    cfg.name: cfg
    for cfg in (
        AgentTypeConfig(
            name="explore",
            description="Read-only agent for exploring code, finding files, searching",
            tools=("bash", "read_file"),
            prompt="You are an exploration agent. Search and analyze, but never modify files. Return a concise summary.",
        ),
        AgentTypeConfig(
            name="code",
            description="Full agent for implementing features and fixing bugs",
            tools=WILDCARD,
            prompt="You are a coding agent. Implement the requested changes efficiently.",
        ),
        AgentTypeConfig(
            name="plan",
            description="Planning agent for designing implementation strategies",
            tools=("bash", "read_file"),
            prompt="You are a planning agent. Analyze the codebase and output a numbered implementation plan. Do NOT make changes.",
        ),
    )
}


def get_agent_descriptions() -> str:
    return "\n".join(f"- {name}: {cfg.description}" for name, cfg in AGENT_TYPES.items())
