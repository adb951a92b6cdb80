"""Provider selection and fallback.

Selection is fully determined by the settings: an explicit provider wins,
otherwise the first provider in priority order (Claude > Gemini > OpenAI)
with an API key, otherwise Claude. Fallback walks the same order.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from devagent.config import API_KEY_ENV_VARS, PROVIDER_PRIORITY, AIProvider
from devagent.providers.base import AIResponse, BaseAIProvider, ProviderConfig
from devagent.providers.claude_provider import ClaudeProvider
from devagent.providers.exceptions import (
    AllProvidersFailedError,
    ProviderError,
    UnsupportedProviderError,
)
from devagent.providers.gemini_provider import GeminiProvider
from devagent.providers.openai_provider import OpenAIProvider
from devagent.settings import AgentSettings

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[AIProvider, type[BaseAIProvider]] = {
    AIProvider.CLAUDE: ClaudeProvider,
    AIProvider.GEMINI: GeminiProvider,
    AIProvider.OPENAI: OpenAIProvider,
}


@dataclass
class ProviderAvailability:
    """Whether a provider can be used, and why not."""

    provider: AIProvider
    available: bool
    reason: Optional[str] = None


@dataclass
class ProviderRun:
    """Outcome of running a prompt with fallback."""

    response: AIResponse
    provider: BaseAIProvider
    config: ProviderConfig
    failures: list[tuple[AIProvider, ProviderError]] = field(default_factory=list)


class ProviderFactory:
    """Creates providers and applies the fallback policy."""

    def __init__(self, settings: AgentSettings, log_dir: Optional[Path] = None):
        self.settings = settings
        self.log_dir = log_dir or settings.log_dir

    def create_provider(self, config: ProviderConfig) -> BaseAIProvider:
        """Instantiate the provider named in config.

        Raises:
            UnsupportedProviderError: If there is no implementation.
            MissingAPIKeyError: If the config has no API key.
        """
        provider_cls = PROVIDER_CLASSES.get(config.provider)
        if provider_cls is None:
            raise UnsupportedProviderError(f"Unsupported AI provider: {config.provider}")
        return provider_cls(config, self.log_dir)

    def detect_provider(self) -> AIProvider:
        """Pick the highest-priority provider that has an API key."""
        for priority, provider in enumerate(PROVIDER_PRIORITY, start=1):
            if self.settings.get_api_key(provider):
                logger.info(
                    f"Using {provider.value} provider (priority {priority}) via {API_KEY_ENV_VARS[provider]}"
                )
                return provider

        logger.warning("No AI provider detected via API keys, defaulting to Claude")
        return AIProvider.CLAUDE

    def get_provider_config(self, provider: Optional[AIProvider] = None) -> ProviderConfig:
        """Build the config for a provider.

        Args:
            provider: Provider to configure as a fallback. When omitted the
                primary is configured: the explicit AI_PROVIDER setting, else
                the auto-detected provider.

        Returns:
            The provider configuration. The model override only applies to the
            primary provider, since model names are provider-specific.
        """
        if provider is not None:
            return self._build_config(provider, model=None)

        if self.settings.ai_provider:
            provider = self.settings.ai_provider
            logger.info(f"Using AI provider from AI_PROVIDER: {provider.value}")
        else:
            provider = self.detect_provider()
        return self._build_config(provider, model=self.settings.ai_model)

    def _build_config(self, provider: AIProvider, model: Optional[str]) -> ProviderConfig:
        return ProviderConfig(
            provider=provider,
            model=model,
            api_key=self.settings.get_api_key(provider),
            timeout=self.settings.timeout_seconds,
            max_buffer_size=self.settings.max_buffer_bytes,
            allowed_tools=self.settings.allowed_tools,
        )

    @staticmethod
    def get_fallback_providers(primary: AIProvider) -> list[AIProvider]:
        """Remaining providers in priority order."""
        return [p for p in PROVIDER_PRIORITY if p != primary]

    def _candidates(self) -> list[ProviderConfig]:
        primary = self.get_provider_config()
        candidates = [primary]
        for fallback in self.get_fallback_providers(primary.provider):
            config = self.get_provider_config(fallback)
            if not config.api_key:
                logger.info(f"Skipping {fallback.value} fallback: no API key available")
                continue
            candidates.append(config)
        return candidates

    def _all_failed(self, failures: list[tuple[AIProvider, ProviderError]]) -> AllProvidersFailedError:
        details = "; ".join(f"{p.value}: {e}" for p, e in failures)
        available = ", ".join(p.value for p in PROVIDER_PRIORITY)
        return AllProvidersFailedError(
            f"All AI providers failed. Available providers: {available}. Failures: {details or 'none'}",
            failures,
        )

    def create_provider_with_fallback(self) -> tuple[BaseAIProvider, ProviderConfig]:
        """Return the first provider that constructs and validates.

        Raises:
            AllProvidersFailedError: If every candidate fails.
        """
        failures = []
        for index, config in enumerate(self._candidates()):
            try:
                provider = self.create_provider(config)
                provider.validate_cli()
            except ProviderError as e:
                logger.warning(f"Failed to initialize {config.provider.value} provider: {e}")
                failures.append((config.provider, e))
                continue

            if index == 0:
                logger.info(f"Successfully initialized {config.provider.value} provider")
            else:
                logger.info(f"Successfully fell back to {config.provider.value} provider")
            return provider, config

        raise self._all_failed(failures)

    def run_with_fallback(self, prompt: str) -> ProviderRun:
        """Run a prompt, moving to the next provider on any provider failure.

        Raises:
            AllProvidersFailedError: If no provider produced a response.
        """
        failures = []
        for config in self._candidates():
            try:
                provider = self.create_provider(config)
                provider.validate_cli()
                response = provider.run_prompt(prompt, config)
            except ProviderError as e:
                logger.warning(f"{config.provider.value} provider failed: {e}")
                failures.append((config.provider, e))
                continue
            return ProviderRun(response=response, provider=provider, config=config, failures=failures)

        raise self._all_failed(failures)

    def validate_provider_availability(self, provider: AIProvider) -> ProviderAvailability:
        if provider not in PROVIDER_CLASSES:
            return ProviderAvailability(provider, False, f"Unknown provider: {provider}")
        if not self.settings.get_api_key(provider):
            return ProviderAvailability(provider, False, f"{API_KEY_ENV_VARS[provider]} not set")
        return ProviderAvailability(provider, True)

    def list_available_providers(self) -> list[ProviderAvailability]:
        """Availability of every provider, in priority order."""
        return [self.validate_provider_availability(p) for p in PROVIDER_PRIORITY]
