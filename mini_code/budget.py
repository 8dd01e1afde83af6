"""
Token budget: how many output tokens can we safely ask for?

    estimated context = chars(history + system) / 4
    available         = CONTEXT_WINDOW - estimated context
    max_tokens        = clamp(available * OUTPUT_RATIO, MIN_OUTPUT_TOKENS, configured max)

Recomputed before every model call because history grows within a turn.
"""

from dataclasses import dataclass

from .messages import block_chars

CONTEXT_WINDOW = 200000
OUTPUT_RATIO = 0.4
MIN_OUTPUT_TOKENS = 4000
CHARS_PER_TOKEN = 4


def estimate_context_tokens(messages: list, system: str = "") -> int:
    chars = len(system or "")
    for msg in messages:
        content = msg.get("content")
        if isinstance(content, str):
            chars += len(content)
        else:
            chars += sum(block_chars(b) for b in content or [])
    return chars // CHARS_PER_TOKEN


def compute_max_output(context_tokens: int, configured_max: int) -> int:
    available = max(0, CONTEXT_WINDOW - context_tokens)
    candidate = int(available * OUTPUT_RATIO)
    return max(MIN_OUTPUT_TOKENS, min(candidate, configured_max))


def max_output(messages: list, system: str, configured_max: int) -> int:
    return compute_max_output(estimate_context_tokens(messages, system), configured_max)


@dataclass
class Budget:
    """Output ceiling and truncation-retry bookkeeping for one loop instance."""

    max_output_tokens: int
    max_truncation_retries: int
    truncations: int = 0

    def ceiling(self, messages: list, system: str) -> int:
        return max_output(messages, system, self.max_output_tokens)

    def record_truncation(self) -> bool:
        """Count a truncated response. True once the retry limit is reached."""
        self.truncations += 1
        return self.truncations >= self.max_truncation_retries

    def reset(self):
        self.truncations = 0
