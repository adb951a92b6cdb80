"""Anthropic Claude Code CLI provider implementation."""

import json
import logging
from pathlib import Path

from devagent.config import CLAUDE_DEFAULT_ALLOWED_TOOLS, AIProvider
from devagent.providers.base import (
    AIResponse,
    BaseAIProvider,
    ProviderConfig,
    TokenUsage,
    detect_rate_limit,
)
from devagent.providers.exceptions import MalformedOutputError, RateLimitError

logger = logging.getLogger(__name__)


class ClaudeProvider(BaseAIProvider):
    """Claude Code CLI (`claude`) with JSON output."""

    provider = AIProvider.CLAUDE
    display_name = "Claude"
    executable = "claude"
    cli_api_key_env_var = "ANTHROPIC_API_KEY"
    PRICING = {
        "input": 3.0,
        "output": 15.0,
        "cached": 0.3,
    }

    def auth_check_args(self) -> list[str]:
        return ["-p", "hello", "--output-format", "json"]

    def build_command(self, prompt_file: Path, config: ProviderConfig) -> list[str]:
        allowed_tools = config.allowed_tools or CLAUDE_DEFAULT_ALLOWED_TOOLS
        logger.info(f"Allowed tools: {allowed_tools}")
        args = [
            self.executable,
            "-p", f"@{prompt_file}",
            "--allowedTools", allowed_tools,
            "--permission-mode", "acceptEdits",
            "--output-format", "json",
        ]
        if config.model:
            args.extend(["--model", config.model])
        return args

    def parse_response(self, raw_output: str) -> AIResponse:
        """Parse Claude's single JSON document.

        Raises:
            RateLimitError: If the output is not JSON and mentions rate limiting.
            MalformedOutputError: If the output is not a JSON object.
        """
        try:
            parsed = json.loads(raw_output)
        except json.JSONDecodeError as e:
            logger.error(f"JSON parsing failed: {e}")
            logger.error(f"Raw output preview: {raw_output[:500]}")
            if detect_rate_limit(raw_output):
                logger.error("Output contains rate limiting message instead of JSON")
                raise RateLimitError(f"Claude API rate limited. Output: {raw_output[:200]}...")
            raise MalformedOutputError(f"Claude returned invalid JSON: {e}")

        if not isinstance(parsed, dict):
            raise MalformedOutputError(
                f"Claude returned JSON {type(parsed).__name__}, expected an object"
            )

        messages = parsed.get("messages")
        if not messages and isinstance(parsed.get("result"), str):
            # --output-format json reports the final answer as "result"
            messages = [{"role": "assistant", "content": parsed["result"]}]

        error = parsed.get("error")
        if error is None and parsed.get("is_error"):
            error = {"message": str(parsed.get("result") or "Claude reported an error")}
        elif isinstance(error, str):
            error = {"message": error}

        return AIResponse(
            messages=messages or [],
            usage=self._parse_token_usage(parsed),
            error=error,
            provider=self.provider,
        )

    @staticmethod
    def _parse_token_usage(parsed: dict) -> TokenUsage:
        usage = parsed.get("usage") or {}
        return TokenUsage(
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
            cached_tokens=usage.get("cache_read_input_tokens") or 0,
        )
