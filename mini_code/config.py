"""
Configuration from the environment (and .env).

Every numeric bound is clamped to a sane range when read, so the rest of the
package can trust it.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


def _env_int(name: str, default: int, low: int, high: int) -> int:
    raw = os.getenv(name)
    value = default
    if raw is not None and raw.strip():
        try:
            value = int(raw.strip())
        except ValueError:
            logger.warning("Ignoring %s=%r (not an integer), using %d", name, raw, default)
    return max(low, min(high, value))


@dataclass
class Config:
    model: str
    workdir: Path
    skills_dir: Path
    api_key: str = ""
    base_url: str = None
    max_output_tokens: int = 160000
    max_truncation_retries: int = 3
    subagent_max_output_tokens: int = 8000
    max_subagent_depth: int = 1
    request_timeout: float = 600.0

    @classmethod
    def from_env(cls, workdir: Path = None, require_credentials: bool = True) -> "Config":
        load_dotenv(override=True)

        # Third-party endpoints reject a conflicting authorization header.
        if os.getenv("ANTHROPIC_BASE_URL"):
            os.environ.pop("ANTHROPIC_AUTH_TOKEN", None)

        api_key = os.getenv("ANTHROPIC_API_KEY") or os.getenv("ANTHROPIC_AUTH_TOKEN") or ""
        if require_credentials and not api_key:
            raise ConfigError("Missing API key: set ANTHROPIC_API_KEY or ANTHROPIC_AUTH_TOKEN")

        workdir = (workdir or Path.cwd()).resolve()
        skills_dir = Path(os.getenv("MINI_CODE_SKILLS_DIR") or workdir / "skills")

        return cls(
            model=os.getenv("MODEL_ID") or DEFAULT_MODEL,
            workdir=workdir,
            skills_dir=skills_dir,
            api_key=api_key,
            base_url=os.getenv("ANTHROPIC_BASE_URL") or None,
            max_output_tokens=_env_int("MINI_CODE_MAX_OUTPUT_TOKENS", 160000, 1000, 100_000_000),
            max_truncation_retries=_env_int("MINI_CODE_MAX_TRUNCATION_RETRIES", 3, 1, 10),
            subagent_max_output_tokens=_env_int("MINI_CODE_SUBAGENT_MAX_OUTPUT_TOKENS", 8000, 1000, 100_000_000),
            max_subagent_depth=_env_int("MINI_CODE_MAX_SUBAGENT_DEPTH", 1, 1, 5),
            request_timeout=float(_env_int("MINI_CODE_REQUEST_TIMEOUT", 600, 1, 3600)),
        )
