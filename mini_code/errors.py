"""
Exception taxonomy.

    AgentError
     +-- ConfigError               bad credentials / unreadable skills dir
     +-- ToolError                 model-correctable, becomes "Error: ..."
     |    +-- TodoValidationError
     +-- LoopError                 fatal to the current turn
          +-- ModelServiceError
          +-- TruncationExhaustedError

Anything the model can fix stays in the conversation as a tool_result.
Anything that reflects infrastructure failure escapes the loop.
"""


class AgentError(Exception):
    pass


class ConfigError(AgentError):
    pass


class ToolError(AgentError):
    pass


class TodoValidationError(ToolError, ValueError):
    pass


class LoopError(AgentError):
    pass


class ModelServiceError(LoopError):
    """Model backend failure. `category` is one of auth, timeout, network, rate_limit, api."""

    def __init__(self, message: str, category: str = "api"):
        super().__init__(message)
        self.category = category

    def __str__(self):
        return f"[{self.category}] {super().__str__()}"


class TruncationExhaustedError(LoopError):
    def __init__(self, truncations: int, max_output_tokens: int):
        self.truncations = truncations
        self.max_output_tokens = max_output_tokens
        super().__init__(
            f"Response truncated {truncations} times in a row. Task may be too complex.\n\n"
            "Hint: Break the task into smaller steps, or write large outputs\n"
            "to files using write_file.\n\n"
            f"You can also increase MINI_CODE_MAX_OUTPUT_TOKENS (current: {max_output_tokens})"
        )
