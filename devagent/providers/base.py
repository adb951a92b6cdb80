"""Base classes and shared utilities for AI CLI providers.

Every provider wraps an external coding CLI that receives a prompt and may
edit files in the working directory. A single invocation goes through
validation, prompt writing and one blocking subprocess run, and ends in
success, timeout, non-zero exit or rate limiting. Providers never retry;
fallback across providers belongs to the factory.
"""

import logging
import math
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Optional

from devagent.config import (
    AUTH_CHECK_TIMEOUT_SECONDS,
    DEFAULT_MAX_BUFFER_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    EXIT_CODE_HINTS,
    RATE_LIMIT_INDICATORS,
    VERSION_CHECK_TIMEOUT_SECONDS,
    AIProvider,
)
from devagent.providers.exceptions import (
    CLINotFoundError,
    MissingAPIKeyError,
    OutputTooLargeError,
    ProviderError,
    ProviderExitError,
    ProviderTimeoutError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

# Exit status reported when a process is killed by SIGTERM
TERMINATED_EXIT_CODE = 143


@dataclass
class TokenUsage:
    """Token counts for one provider call."""

    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0


@dataclass
class AIResponse:
    """Normalized response from any provider."""

    messages: list[dict] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    error: Optional[dict] = None
    provider: Optional[AIProvider] = None

    @property
    def text(self) -> str:
        """Content of the last message, or an empty string."""
        if not self.messages:
            return ""
        return str(self.messages[-1].get("content", ""))


@dataclass(frozen=True)
class ProviderConfig:
    """Per-run provider configuration."""

    provider: AIProvider
    model: Optional[str] = None
    api_key: Optional[str] = None
    timeout: Optional[int] = None  # seconds
    max_buffer_size: Optional[int] = None  # bytes
    allowed_tools: Optional[str] = None


def estimate_tokens(text: Optional[str]) -> int:
    """Estimate tokens with the 1 token ~ 4 characters rule."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def detect_rate_limit(text: Optional[str]) -> Optional[str]:
    """Return the first rate-limit phrase found in text, case-insensitively."""
    if not text:
        return None
    lowered = text.lower()
    for indicator in RATE_LIMIT_INDICATORS:
        if indicator in lowered:
            return indicator
    return None


def exit_code_hint(exit_code: int) -> str:
    """Return a parenthesized hint for a known exit status, or an empty string."""
    hint = EXIT_CODE_HINTS.get(exit_code)
    return f" ({hint})" if hint else ""


def plain_text_response(provider: AIProvider, output: str) -> AIResponse:
    """Wrap raw stdout as a single assistant message with estimated usage.

    These CLIs expose no usage metadata, so input tokens are reported as 0.
    """
    return AIResponse(
        messages=[{"role": "assistant", "content": output.strip()}],
        usage=TokenUsage(input_tokens=0, output_tokens=estimate_tokens(output), cached_tokens=0),
        error=None,
        provider=provider,
    )


class BaseAIProvider(ABC):
    """Abstract base class for CLI-backed AI providers."""

    provider: ClassVar[AIProvider]
    display_name: ClassVar[str]
    executable: ClassVar[str]
    # Variable the CLI itself reads its key from
    cli_api_key_env_var: ClassVar[str]
    # USD per 1M tokens; a "cached" rate means prompt caching is billed separately
    PRICING: ClassVar[dict[str, float]]

    def __init__(self, config: ProviderConfig, log_dir: Path):
        """Initialize the provider.

        Args:
            config: Provider configuration; must carry an API key.
            log_dir: Directory for prompt and output artifacts.

        Raises:
            MissingAPIKeyError: If the config has no API key.
        """
        if not config.api_key:
            raise MissingAPIKeyError(f"{self.display_name} API key is not configured")
        self.config = config
        self.log_dir = log_dir
        self._validated = False

    # ------------------------------------------------------------------
    # Subprocess helpers
    # ------------------------------------------------------------------

    def build_env(self, config: Optional[ProviderConfig] = None) -> dict[str, str]:
        """Child process environment with the provider key injected."""
        config = config or self.config
        env = dict(os.environ)
        if config.api_key:
            env[self.cli_api_key_env_var] = config.api_key
        return env

    def version_args(self) -> list[str]:
        return ["--version"]

    @abstractmethod
    def auth_check_args(self) -> list[str]:
        """Arguments for a minimal prompt used to probe authentication."""

    def auth_check_input(self) -> Optional[str]:
        return None

    @abstractmethod
    def build_command(self, prompt_file: Path, config: ProviderConfig) -> list[str]:
        """Full argument list for running a prompt."""

    def build_stdin(self, prompt: str) -> Optional[str]:
        """Data piped to the CLI; None when the prompt goes by file."""
        return None

    def _artifact_path(self, suffix: str) -> Path:
        return self.log_dir / f"{self.provider.value}-{suffix}"

    def save_artifact(self, suffix: str, content: str) -> Optional[Path]:
        path = self._artifact_path(suffix)
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not save {path}: {e}")
            return None
        return path

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_cli(self) -> None:
        """Check that the CLI is installed and probe its authentication.

        A missing executable or failed version check is definite and raises.
        Auth probe failures are ambiguous (rate limiting looks the same as a
        bad key), so they are only logged and the real run decides.

        Raises:
            CLINotFoundError: If the executable is missing or broken.
        """
        logger.info(f"Checking {self.display_name} CLI availability...")
        try:
            version = subprocess.run(
                [self.executable, *self.version_args()],
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=VERSION_CHECK_TIMEOUT_SECONDS,
            )
        except FileNotFoundError as e:
            raise CLINotFoundError(f"{self.display_name} CLI not found: {e}")
        except subprocess.TimeoutExpired:
            logger.warning(f"{self.display_name} CLI version check timed out. Will proceed anyway.")
        except OSError as e:
            raise CLINotFoundError(f"{self.display_name} CLI could not be started: {e}")
        else:
            if version.returncode != 0:
                raise CLINotFoundError(
                    f"{self.display_name} CLI version check failed with status {version.returncode}"
                )
            logger.info(f"{self.display_name} CLI available: {(version.stdout or '').strip()}")

        self._check_auth()
        self._validated = True

    def _check_auth(self) -> None:
        logger.info(f"Checking {self.display_name} CLI authentication...")
        try:
            result = subprocess.run(
                [self.executable, *self.auth_check_args()],
                input=self.auth_check_input(),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=AUTH_CHECK_TIMEOUT_SECONDS,
                env=self.build_env(),
            )
        except subprocess.TimeoutExpired:
            logger.warning("Auth check timed out - this may indicate rate limiting. Will proceed anyway.")
            return
        except OSError as e:
            logger.warning(f"Auth check error: {e}. Will proceed without auth validation.")
            return

        if result.returncode != 0:
            logger.warning(f"Auth check failed. stdout: {result.stdout}")
            logger.warning(f"Auth check failed. stderr: {result.stderr}")
            if result.returncode == TERMINATED_EXIT_CODE:
                logger.warning("Auth check was terminated (likely timeout or system limit). Will proceed anyway.")
            else:
                logger.warning(f"Auth check failed with status {result.returncode}. Will proceed anyway.")
            return

        logger.info(f"{self.display_name} CLI authentication successful")

    # ------------------------------------------------------------------
    # Running prompts
    # ------------------------------------------------------------------

    def write_prompt(self, prompt: str) -> Path:
        """Write the prompt to the log directory to avoid shell escaping."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        prompt_file = self._artifact_path("prompt.txt")
        prompt_file.write_text(prompt, encoding="utf-8")
        logger.info(f"Wrote prompt to file: {prompt_file}")
        return prompt_file

    def run_prompt(self, prompt: str, config: Optional[ProviderConfig] = None) -> AIResponse:
        """Run a prompt through the CLI.

        Args:
            prompt: The full prompt text.
            config: Overrides for this call. Defaults to the provider's config.

        Returns:
            The normalized response.

        Raises:
            CLINotFoundError: If the CLI is missing.
            ProviderTimeoutError: If the CLI exceeds its timeout.
            ProviderExitError: If the CLI exits non-zero.
            RateLimitError: If rate limiting is detected.
            MalformedOutputError: If structured output cannot be parsed.
            OutputTooLargeError: If output exceeds the buffer size.
        """
        config = config or self.config
        timeout = config.timeout or DEFAULT_TIMEOUT_SECONDS
        max_buffer = config.max_buffer_size or DEFAULT_MAX_BUFFER_BYTES

        logger.info(f"Running {self.display_name} with prompt: {prompt[:100]}...")
        if not self._validated:
            self.validate_cli()

        try:
            prompt_file = self.write_prompt(prompt)
        except OSError as e:
            raise ProviderError(f"Could not write prompt file: {e}")

        args = self.build_command(prompt_file, config)
        logger.info(f"Executing: {self.executable} {' '.join(args[1:])}")
        logger.info(f"Setting {timeout}s timeout for {self.display_name} execution")

        try:
            result = subprocess.run(
                args,
                input=self.build_stdin(prompt),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                env=self.build_env(config),
            )
        except subprocess.TimeoutExpired:
            raise ProviderTimeoutError(
                f"{self.display_name} CLI timed out after {timeout}s. This could be due to:\n"
                f"- Rate limiting ({self.display_name} API usage limits reached)\n"
                f"- Network issues\n"
                f"- Large prompt processing\n"
                f"Consider trying again later or checking your API usage limits."
            )
        except FileNotFoundError as e:
            raise CLINotFoundError(f"{self.display_name} CLI not found: {e}")
        except OSError as e:
            raise ProviderError(f"{self.display_name} CLI could not be started: {e}")

        stdout = result.stdout or ""
        stderr = result.stderr or ""

        # Advisory: run() has already buffered the full output by this point
        output_size = len(stdout.encode("utf-8")) + len(stderr.encode("utf-8"))
        if output_size > max_buffer:
            raise OutputTooLargeError(
                f"{self.display_name} output ({output_size} bytes) exceeded the {max_buffer} byte buffer"
            )

        if result.returncode != 0:
            self._raise_for_exit(result.returncode, stdout, stderr)

        logger.info(f"{self.display_name} raw output length: {len(stdout)}")
        saved = self.save_artifact("output.txt", stdout)
        if saved:
            logger.info(f"Saved raw output to: {saved}")

        # Providers can report limits on stderr while still exiting 0
        phrase = detect_rate_limit(stderr)
        if phrase:
            raise RateLimitError(
                f"{self.display_name} reported rate limiting (\"{phrase}\"): {stderr.strip()[:200]}"
            )
        phrase = detect_rate_limit(stdout)
        if phrase:
            logger.warning(f"Detected potential rate limiting: \"{phrase}\" found in output")

        response = self.parse_response(stdout)
        if response.error:
            message = str(response.error.get("message", response.error))
            if detect_rate_limit(message):
                raise RateLimitError(f"{self.display_name} API rate limited: {message[:200]}")
            raise ProviderError(f"{self.display_name} reported an error: {message}")
        return response

    def _raise_for_exit(self, exit_code: int, stdout: str, stderr: str) -> None:
        logger.error(f"{self.display_name} process details:")
        logger.error(f"  Exit status: {exit_code}")
        logger.error(f"  stdout length: {len(stdout)}")
        logger.error(f"  stderr length: {len(stderr)}")
        if stdout:
            logger.error(f"{self.display_name} stdout:\n{stdout}")
            self.save_artifact("stdout.txt", stdout)
        if stderr:
            logger.error(f"{self.display_name} stderr:\n{stderr}")
            self.save_artifact("stderr.txt", stderr)

        message = f"{self.display_name} exited with status {exit_code}{exit_code_hint(exit_code)}"

        phrase = detect_rate_limit(stderr) or detect_rate_limit(stdout)
        if phrase:
            raise RateLimitError(
                f"{message}. This appears to be a rate limiting issue (\"{phrase}\"); "
                f"{self.display_name} usage limits may delay retries for several hours."
            )

        raise ProviderExitError(f"{message}. Check logs for details.", exit_code)

    @abstractmethod
    def parse_response(self, raw_output: str) -> AIResponse:
        """Normalize the CLI's stdout into an AIResponse."""

    def calculate_cost(self, usage: TokenUsage) -> float:
        """Cost in USD for the given usage under this provider's price table."""
        cost = usage.input_tokens / 1_000_000 * self.PRICING["input"]
        cost += usage.output_tokens / 1_000_000 * self.PRICING["output"]
        if "cached" in self.PRICING:
            cost += usage.cached_tokens / 1_000_000 * self.PRICING["cached"]
        return cost
