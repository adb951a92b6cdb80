"""Run settings for devagent.

AgentSettings is built once at process start and passed explicitly to every
component, so nothing below the CLI layer reads the environment.
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError

from devagent.config import (
    API_KEY_ENV_VARS,
    DEFAULT_BASE_BRANCH,
    DEFAULT_CACHE_DIR,
    DEFAULT_GIT_USER_EMAIL,
    DEFAULT_GIT_USER_NAME,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_BUFFER_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    AIProvider,
)
from devagent.exceptions import ConfigurationError
from devagent.global_config import get_config_file_path, load_global_config
from devagent.validation import create_safe_branch_name, sanitize_title


class AgentSettings(BaseModel):
    """Immutable configuration for a single devagent run."""

    model_config = ConfigDict(frozen=True)

    repository: Optional[str] = None
    github_token: Optional[str] = None
    issue_number: Optional[str] = None
    issue_title: Optional[str] = None
    issue_body: Optional[str] = None
    base_branch: str = DEFAULT_BASE_BRANCH
    git_user_name: str = DEFAULT_GIT_USER_NAME
    git_user_email: str = DEFAULT_GIT_USER_EMAIL
    api_keys: Dict[AIProvider, str] = {}
    ai_provider: Optional[AIProvider] = None  # Explicit override (AI_PROVIDER)
    ai_model: Optional[str] = None
    changed_files_path: Optional[Path] = None
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES
    allowed_tools: Optional[str] = None
    cache_dir: Path = DEFAULT_CACHE_DIR
    log_dir: Path = DEFAULT_LOG_DIR
    log_level: str = "INFO"

    def get_api_key(self, provider: AIProvider) -> Optional[str]:
        """Return the API key configured for a provider, if any."""
        return self.api_keys.get(provider)

    @property
    def branch_name(self) -> Optional[str]:
        """Working branch for the configured issue."""
        if not self.issue_number:
            return None
        return create_safe_branch_name(self.issue_number)


def _read(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    return value


def parse_provider(value: str) -> AIProvider:
    """Parse a provider name case-insensitively.

    Raises:
        ConfigurationError: If the name is not a known provider.
    """
    try:
        return AIProvider(value.strip().lower())
    except ValueError:
        valid = ", ".join(p.value for p in AIProvider)
        raise ConfigurationError(f"Unknown AI provider: {value} (expected one of: {valid})")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AgentSettings:
    """Build AgentSettings from the environment and the optional YAML file.

    Args:
        environ: Environment mapping. Defaults to os.environ after loading .env.

    Returns:
        The settings for this run.

    Raises:
        ConfigurationError: If the config file, a provider name or a value is invalid.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    file_config = load_global_config(get_config_file_path(environ))

    api_keys = {}
    for provider, env_var in API_KEY_ENV_VARS.items():
        key = _read(environ, env_var)
        if key:
            api_keys[provider] = key

    provider_name = _read(environ, "AI_PROVIDER") or file_config.get("provider")
    raw_title = _read(environ, "ISSUE_TITLE")
    changed_files = _read(environ, "CHANGED_FILES")

    values = {
        "repository": _read(environ, "REPOSITORY"),
        "github_token": _read(environ, "GITHUB_TOKEN"),
        "issue_number": _read(environ, "ISSUE_NUMBER"),
        "issue_title": sanitize_title(raw_title) if raw_title else None,
        "issue_body": _read(environ, "ISSUE_BODY"),
        "base_branch": _read(environ, "BASE_BRANCH") or file_config.get("base_branch") or DEFAULT_BASE_BRANCH,
        "git_user_name": _read(environ, "GIT_USER_NAME") or DEFAULT_GIT_USER_NAME,
        "git_user_email": _read(environ, "GIT_USER_EMAIL") or DEFAULT_GIT_USER_EMAIL,
        "api_keys": api_keys,
        "ai_provider": parse_provider(provider_name) if provider_name else None,
        "ai_model": _read(environ, "AI_MODEL") or file_config.get("model"),
        "changed_files_path": Path(changed_files) if changed_files else None,
        "allowed_tools": file_config.get("allowed_tools"),
        "log_level": _read(environ, "DEVAGENT_LOG_LEVEL") or file_config.get("log_level") or "INFO",
    }

    for key in ("timeout_seconds", "max_buffer_bytes"):
        if file_config.get(key) is not None:
            values[key] = file_config[key]

    cache_dir = _read(environ, "DEVAGENT_CACHE_DIR") or file_config.get("cache_dir")
    if cache_dir:
        values["cache_dir"] = Path(cache_dir)

    log_dir = _read(environ, "DEVAGENT_LOG_DIR") or file_config.get("log_dir")
    if log_dir:
        values["log_dir"] = Path(log_dir)

    try:
        return AgentSettings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
