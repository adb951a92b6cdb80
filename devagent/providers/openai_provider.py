"""OpenAI Codex CLI provider implementation."""

from pathlib import Path
from typing import Optional

from devagent.config import AIProvider
from devagent.providers.base import (
    AIResponse,
    BaseAIProvider,
    ProviderConfig,
    plain_text_response,
)


class OpenAIProvider(BaseAIProvider):
    """OpenAI Codex CLI (`codex`), prompt piped on stdin."""

    provider = AIProvider.OPENAI
    display_name = "OpenAI Codex"
    executable = "codex"
    cli_api_key_env_var = "OPENAI_API_KEY"
    PRICING = {
        "input": 30.0,
        "output": 60.0,
    }

    def auth_check_args(self) -> list[str]:
        return ["exec", "-"]

    def auth_check_input(self) -> Optional[str]:
        return "hello\n"

    def build_command(self, prompt_file: Path, config: ProviderConfig) -> list[str]:
        # "-" makes codex read the prompt from stdin
        args = [self.executable, "exec", "--full-auto"]
        if config.model:
            args.extend(["-m", config.model])
        args.append("-")
        return args

    def build_stdin(self, prompt: str) -> Optional[str]:
        return prompt + "\n"

    def parse_response(self, raw_output: str) -> AIResponse:
        return plain_text_response(self.provider, raw_output)
