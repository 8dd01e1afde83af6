"""
The agent loop.

    AwaitingModel --end_turn--------> Done
         |  ^  +---tool_use--------> ToolExecution ----+
         |  |                                          |
         |  +------------------------------------------+
         |  +---- RetryAfterTruncation <--max_tokens---+ (counter < limit)
         |
         +--error / timeout / counter >= limit-----> Fatal (raises LoopError)

One implementation serves both the top-level conversation and nested
subagent runs: the caller supplies history, system prompt, toolset and
budget. Tool calls run sequentially in response order and results keep
that order, so every tool_use id is answered by the matching tool_result.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .budget import Budget
from .errors import TruncationExhaustedError
from .messages import normalize_content, text_block, texts, tool_result_block, user_message
from .tools import ToolContext, ToolRegistry, is_error_output

logger = logging.getLogger(__name__)

TRUNCATION_NOTICE = (
    "[SYSTEM: Your response was truncated due to length. "
    "Please provide a shorter summary of the key points "
    "(max 3-4 sentences), or write detailed content to a file instead.]"
)


@dataclass
class LoopEvent:
    kind: str  # model_request, model_response, tool_start, tool_end, truncated, done
    depth: int = 0
    data: dict = field(default_factory=dict)


@dataclass
class LoopResult:
    text: str
    stop_reason: Optional[str]
    round_tools: list  # tool names per tool round, in order
    final_message: dict

    @property
    def rounds(self) -> int:
        return len(self.round_tools)


class AgentLoop:
    """
    `after_round(names)` is called once per tool round with the tool names
    dispatched in it; a returned string is appended as a text block to that
    round's tool_result message.
    """

    def __init__(self, model, registry: ToolRegistry, context: ToolContext,
                 listener: Callable[[LoopEvent], None] = None,
                 after_round: Callable[[list], Optional[str]] = None):
        self.model = model
        self.registry = registry
        self.context = context
        self.listener = listener
        self.after_round = after_round

    def _emit(self, kind: str, **data):
        if self.listener is not None:
            self.listener(LoopEvent(kind, self.context.depth, data))

    def run(self, history: list, system: str, tools: list, budget: Budget) -> LoopResult:
        allowed = {t["name"] for t in tools}
        round_tools = []

        while True:
            max_tokens = budget.ceiling(history, system)
            self._emit("model_request", max_tokens=max_tokens, messages=len(history))
            response = None
            try:
                response = self.model.create(history, system, tools, max_tokens)
            finally:
                self._emit("model_response", stop_reason=getattr(response, "stop_reason", None))

            stop_reason = response.stop_reason
            content = normalize_content(response.content)

            if stop_reason == "max_tokens":
                exhausted = budget.record_truncation()
                logger.warning("Response truncated (attempt %d/%d, max_tokens=%d)",
                               budget.truncations, budget.max_truncation_retries, max_tokens)
                self._emit("truncated", attempt=budget.truncations, limit=budget.max_truncation_retries)
                if exhausted:
                    raise TruncationExhaustedError(budget.truncations, budget.max_output_tokens)
                history.append({"role": "assistant", "content": _partial(content)})
                history.append(user_message(TRUNCATION_NOTICE))
                continue

            budget.reset()
            calls = [b for b in content if b.get("type") == "tool_use"]

            if stop_reason == "tool_use" and calls:
                names = []
                results = []
                for call in calls:
                    name = call["name"]
                    self._emit("tool_start", name=name, input=call.get("input", {}))
                    output = self.registry.dispatch(name, call.get("input"), self.context, allowed)
                    self._emit("tool_end", name=name, output=output)
                    names.append(name)
                    results.append(tool_result_block(call["id"], output, is_error_output(output)))
                round_tools.append(names)
                note = self.after_round(names) if self.after_round is not None else None
                if note:
                    results.append(text_block(note))
                history.append({"role": "assistant", "content": content})
                history.append({"role": "user", "content": results})
                continue

            final = {"role": "assistant", "content": content}
            history.append(final)
            text = "\n".join(t for t in texts(content) if t.strip())
            self._emit("done", stop_reason=stop_reason, text=text)
            return LoopResult(text, stop_reason, round_tools, final)


def _partial(content: list) -> list:
    """A truncated response minus its incomplete tool_use blocks."""
    kept = [b for b in content
            if b.get("type") != "tool_use" and not (b.get("type") == "text" and not b.get("text", "").strip())]
    return kept or [text_block("(truncated)")]
