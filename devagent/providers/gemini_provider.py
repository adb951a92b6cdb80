"""Google Gemini CLI provider implementation."""

from pathlib import Path

from devagent.config import AIProvider
from devagent.providers.base import (
    AIResponse,
    BaseAIProvider,
    ProviderConfig,
    plain_text_response,
)


class GeminiProvider(BaseAIProvider):
    """Gemini CLI (`gemini`), plain-text output."""

    provider = AIProvider.GEMINI
    display_name = "Gemini"
    executable = "gemini"
    cli_api_key_env_var = "GEMINI_API_KEY"
    PRICING = {
        "input": 1.25,
        "output": 5.0,
    }

    def auth_check_args(self) -> list[str]:
        return ["-p", "hello"]

    def build_command(self, prompt_file: Path, config: ProviderConfig) -> list[str]:
        args = [self.executable, "-p", f"@{prompt_file}"]
        if config.model:
            args.extend(["-m", config.model])
        return args

    def parse_response(self, raw_output: str) -> AIResponse:
        return plain_text_response(self.provider, raw_output)
