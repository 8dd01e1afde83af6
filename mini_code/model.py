"""
Model Service: one Messages API call, bounded by a timeout.

The SDK's own retries are disabled. A failed or timed-out call is fatal to
the turn and surfaces as ModelServiceError with a category; the only retry
policy in the system is the loop's bounded truncation retry.
"""

import logging

import anthropic
from anthropic import Anthropic

from .config import Config
from .errors import ModelServiceError

logger = logging.getLogger(__name__)


def categorize(error: Exception) -> str:
    if isinstance(error, anthropic.APITimeoutError):
        return "timeout"
    if isinstance(error, anthropic.APIConnectionError):
        return "network"
    if isinstance(error, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
        return "auth"
    if isinstance(error, anthropic.RateLimitError):
        return "rate_limit"
    return "api"


def create_client(config: Config) -> Anthropic:
    return Anthropic(
        api_key=config.api_key or None,
        base_url=config.base_url,
        timeout=config.request_timeout,
        max_retries=0,
    )


class ModelService:
    def __init__(self, client, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls, config: Config) -> "ModelService":
        return cls(create_client(config), config.model)

    def create(self, messages: list, system: str, tools: list, max_tokens: int):
        logger.debug("messages.create model=%s messages=%d tools=%d max_tokens=%d",
                     self.model, len(messages), len(tools), max_tokens)
        try:
            response = self.client.messages.create(
                model=self.model, system=system, messages=messages,
                tools=tools, max_tokens=max_tokens,
            )
        except anthropic.APIError as e:
            category = categorize(e)
            logger.error("Model service error (%s): %s", category, e)
            raise ModelServiceError(str(e), category) from e
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug("stop_reason=%s input_tokens=%s output_tokens=%s",
                         response.stop_reason, usage.input_tokens, usage.output_tokens)
        return response
