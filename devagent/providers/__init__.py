"""AI provider module for devagent.

This module provides a unified interface over external AI coding CLIs
(Claude Code, Gemini CLI, OpenAI Codex) plus the factory that selects one
and falls back between them.
"""

from devagent.providers.base import (
    AIResponse,
    BaseAIProvider,
    ProviderConfig,
    TokenUsage,
    detect_rate_limit,
    estimate_tokens,
    exit_code_hint,
)
from devagent.providers.exceptions import (
    AllProvidersFailedError,
    CLINotFoundError,
    MalformedOutputError,
    MissingAPIKeyError,
    OutputTooLargeError,
    ProviderError,
    ProviderExitError,
    ProviderTimeoutError,
    RateLimitError,
    UnsupportedProviderError,
)
from devagent.providers.claude_provider import ClaudeProvider
from devagent.providers.gemini_provider import GeminiProvider
from devagent.providers.openai_provider import OpenAIProvider
from devagent.providers.factory import (
    PROVIDER_CLASSES,
    ProviderAvailability,
    ProviderFactory,
    ProviderRun,
)


__all__ = [
    # Base
    "AIResponse",
    "BaseAIProvider",
    "ProviderConfig",
    "TokenUsage",
    "detect_rate_limit",
    "estimate_tokens",
    "exit_code_hint",
    # Exceptions
    "AllProvidersFailedError",
    "CLINotFoundError",
    "MalformedOutputError",
    "MissingAPIKeyError",
    "OutputTooLargeError",
    "ProviderError",
    "ProviderExitError",
    "ProviderTimeoutError",
    "RateLimitError",
    "UnsupportedProviderError",
    # Providers
    "ClaudeProvider",
    "GeminiProvider",
    "OpenAIProvider",
    # Factory
    "PROVIDER_CLASSES",
    "ProviderAvailability",
    "ProviderFactory",
    "ProviderRun",
]
