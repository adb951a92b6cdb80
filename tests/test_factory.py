"""Tests for devagent.providers.factory module."""

import os

import pytest

from devagent.config import AIProvider
from devagent.providers import (
    AIResponse,
    AllProvidersFailedError,
    ClaudeProvider,
    CLINotFoundError,
    GeminiProvider,
    MalformedOutputError,
    MissingAPIKeyError,
    OpenAIProvider,
    ProviderConfig,
    ProviderFactory,
    RateLimitError,
    UnsupportedProviderError,
)
from devagent.settings import AgentSettings


def _factory(temp_dir, **overrides):
    values = {"repository": "octo/widgets", "log_dir": temp_dir / "logs"}
    values.update(overrides)
    return ProviderFactory(AgentSettings(**values))


class TestDetectProvider:
    """Tests for ProviderFactory.detect_provider."""

    def test_claude_has_priority(self, temp_dir):
        """Test that Claude wins when several keys are present."""
        factory = _factory(temp_dir, api_keys={
            AIProvider.OPENAI: "sk-openai",
            AIProvider.CLAUDE: "sk-ant",
        })
        assert factory.detect_provider() == AIProvider.CLAUDE

    def test_gemini_before_openai(self, temp_dir):
        """Test the Gemini over OpenAI ordering."""
        factory = _factory(temp_dir, api_keys={
            AIProvider.OPENAI: "sk-openai",
            AIProvider.GEMINI: "g-key",
        })
        assert factory.detect_provider() == AIProvider.GEMINI

    def test_claude_over_gemini(self, temp_dir):
        """Test the Claude over Gemini ordering."""
        factory = _factory(temp_dir, api_keys={
            AIProvider.GEMINI: "g-key",
            AIProvider.CLAUDE: "sk-ant",
        })
        assert factory.detect_provider() == AIProvider.CLAUDE

    def test_defaults_to_claude(self, temp_dir, caplog):
        """Test the default when no key is configured."""
        factory = _factory(temp_dir)

        assert factory.detect_provider() == AIProvider.CLAUDE
        assert "defaulting to Claude" in caplog.text


class TestGetProviderConfig:
    """Tests for ProviderFactory.get_provider_config."""

    def test_explicit_provider_and_model(self, temp_dir):
        """Test that AI_PROVIDER and AI_MODEL shape the primary config."""
        factory = _factory(
            temp_dir,
            api_keys={AIProvider.CLAUDE: "sk-ant", AIProvider.GEMINI: "g-key"},
            ai_provider=AIProvider.GEMINI,
            ai_model="gemini-2.5-pro",
            timeout_seconds=120,
        )

        config = factory.get_provider_config()

        assert config.provider == AIProvider.GEMINI
        assert config.api_key == "g-key"
        assert config.model == "gemini-2.5-pro"
        assert config.timeout == 120

    def test_detected_provider(self, temp_dir):
        """Test the primary config without an explicit provider."""
        factory = _factory(temp_dir, api_keys={AIProvider.OPENAI: "sk-openai"})

        config = factory.get_provider_config()

        assert config.provider == AIProvider.OPENAI
        assert config.api_key == "sk-openai"

    def test_fallback_config_has_no_model(self, temp_dir):
        """Test that the model override is not applied to fallbacks."""
        factory = _factory(
            temp_dir,
            api_keys={AIProvider.CLAUDE: "sk-ant", AIProvider.GEMINI: "g-key"},
            ai_model="claude-opus",
        )

        config = factory.get_provider_config(AIProvider.GEMINI)

        assert config.model is None
        assert config.api_key == "g-key"

    def test_fallback_order(self):
        """Test that fallbacks keep priority order minus the primary."""
        assert ProviderFactory.get_fallback_providers(AIProvider.GEMINI) == [
            AIProvider.CLAUDE,
            AIProvider.OPENAI,
        ]


class TestCreateProvider:
    """Tests for ProviderFactory.create_provider."""

    def test_creates_matching_class(self, temp_dir):
        """Test that each provider maps to its implementation."""
        factory = _factory(temp_dir)

        for provider, cls in (
            (AIProvider.CLAUDE, ClaudeProvider),
            (AIProvider.GEMINI, GeminiProvider),
            (AIProvider.OPENAI, OpenAIProvider),
        ):
            instance = factory.create_provider(ProviderConfig(provider=provider, api_key="k"))
            assert isinstance(instance, cls)

    def test_missing_key(self, temp_dir):
        """Test that construction fails without a key."""
        factory = _factory(temp_dir)

        with pytest.raises(MissingAPIKeyError):
            factory.create_provider(ProviderConfig(provider=AIProvider.CLAUDE))

    def test_unsupported_provider(self, temp_dir):
        """Test that unknown providers are rejected."""
        factory = _factory(temp_dir)

        with pytest.raises(UnsupportedProviderError):
            factory.create_provider(ProviderConfig(provider="bogus", api_key="k"))


class TestCreateProviderWithFallback:
    """Tests for ProviderFactory.create_provider_with_fallback."""

    def test_all_keys_absent(self, temp_dir):
        """Test that no configured key means every provider fails."""
        factory = _factory(temp_dir)

        with pytest.raises(AllProvidersFailedError) as exc_info:
            factory.create_provider_with_fallback()

        assert "All AI providers failed" in str(exc_info.value)
        assert [p for p, _ in exc_info.value.failures] == [AIProvider.CLAUDE]

    def test_primary_succeeds(self, mocker, temp_dir):
        """Test that a working primary is returned directly."""
        mocker.patch.object(ClaudeProvider, "validate_cli")
        factory = _factory(temp_dir, api_keys={AIProvider.CLAUDE: "sk-ant"})

        provider, config = factory.create_provider_with_fallback()

        assert isinstance(provider, ClaudeProvider)
        assert config.provider == AIProvider.CLAUDE

    def test_falls_back_when_cli_missing(self, mocker, temp_dir):
        """Test fallback to the next provider with a key."""
        mocker.patch.object(ClaudeProvider, "validate_cli", side_effect=CLINotFoundError("no claude"))
        mocker.patch.object(GeminiProvider, "validate_cli")
        factory = _factory(temp_dir, api_keys={
            AIProvider.CLAUDE: "sk-ant",
            AIProvider.GEMINI: "g-key",
        })

        provider, config = factory.create_provider_with_fallback()

        assert isinstance(provider, GeminiProvider)
        assert config.provider == AIProvider.GEMINI

    def test_skips_fallbacks_without_keys(self, mocker, temp_dir):
        """Test that keyless fallbacks are not attempted."""
        mocker.patch.object(ClaudeProvider, "validate_cli", side_effect=CLINotFoundError("no claude"))
        gemini_validate = mocker.patch.object(GeminiProvider, "validate_cli")
        factory = _factory(temp_dir, api_keys={AIProvider.CLAUDE: "sk-ant"})

        with pytest.raises(AllProvidersFailedError):
            factory.create_provider_with_fallback()

        gemini_validate.assert_not_called()


class TestRunWithFallback:
    """Tests for ProviderFactory.run_with_fallback."""

    def test_rate_limited_primary_falls_back(self, mocker, temp_dir):
        """Test that a runtime failure moves on to the next provider."""
        mocker.patch.object(ClaudeProvider, "validate_cli")
        mocker.patch.object(ClaudeProvider, "run_prompt", side_effect=RateLimitError("limit"))
        mocker.patch.object(GeminiProvider, "validate_cli")
        response = AIResponse(messages=[{"role": "assistant", "content": "done"}])
        mocker.patch.object(GeminiProvider, "run_prompt", return_value=response)
        factory = _factory(temp_dir, api_keys={
            AIProvider.CLAUDE: "sk-ant",
            AIProvider.GEMINI: "g-key",
        })

        run = factory.run_with_fallback("fix it")

        assert run.response is response
        assert run.config.provider == AIProvider.GEMINI
        assert [p for p, _ in run.failures] == [AIProvider.CLAUDE]
        assert isinstance(run.failures[0][1], RateLimitError)

    def test_all_fail(self, mocker, temp_dir):
        """Test exhaustion of every candidate."""
        mocker.patch.object(ClaudeProvider, "validate_cli")
        mocker.patch.object(ClaudeProvider, "run_prompt", side_effect=RateLimitError("limit"))
        factory = _factory(temp_dir, api_keys={AIProvider.CLAUDE: "sk-ant"})

        with pytest.raises(AllProvidersFailedError, match="claude: limit"):
            factory.run_with_fallback("fix it")

    def test_undecodable_output_falls_back(self, monkeypatch, temp_dir):
        """Test that a CLI printing invalid UTF-8 fails over to the next provider."""
        bin_dir = temp_dir / "bin"
        bin_dir.mkdir()
        for name, body in (("claude", r"printf '\377\376 bad'"), ("gemini", "echo done")):
            script = bin_dir / name
            script.write_text(f"#!/bin/sh\n{body}\n")
            script.chmod(0o755)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        factory = _factory(temp_dir, api_keys={
            AIProvider.CLAUDE: "sk-ant",
            AIProvider.GEMINI: "g-key",
        })

        run = factory.run_with_fallback("fix it")

        assert run.config.provider == AIProvider.GEMINI
        assert run.response.text == "done"
        assert isinstance(run.failures[0][1], MalformedOutputError)


class TestAvailability:
    """Tests for provider availability listing."""

    def test_list_available_providers(self, temp_dir):
        """Test availability in priority order with reasons."""
        factory = _factory(temp_dir, api_keys={AIProvider.GEMINI: "g-key"})

        listing = factory.list_available_providers()

        assert [item.provider for item in listing] == [
            AIProvider.CLAUDE,
            AIProvider.GEMINI,
            AIProvider.OPENAI,
        ]
        assert [item.available for item in listing] == [False, True, False]
        assert "ANTHROPIC_API_KEY" in listing[0].reason
