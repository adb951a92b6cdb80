"""Environment validation and input sanitizers.

Contains:
- validate_settings: Check required variables and formats for a run mode
- sanitize_title: Make an issue title safe for commit and branch use
- create_safe_branch_name: Branch name for an issue number
- sanitize_branch_name: Normalize arbitrary text into a git ref component
"""

import re

from devagent.config import (
    API_KEY_ENV_VARS,
    BRANCH_PREFIX,
    REQUIRED_ENV_VARS,
    AgentMode,
)
from devagent.exceptions import ConfigurationError

REPOSITORY_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+$")
ISSUE_NUMBER_PATTERN = re.compile(r"^\d+$")

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
MAX_TITLE_LENGTH = 100


def validate_settings(settings, mode: AgentMode) -> None:
    """Validate settings for the given mode.

    Args:
        settings: The AgentSettings built from the environment.
        mode: The run mode.

    Raises:
        ConfigurationError: If anything required is missing or malformed.
    """
    values = {
        "GITHUB_TOKEN": settings.github_token,
        "ISSUE_NUMBER": settings.issue_number,
        "REPOSITORY": settings.repository,
    }
    missing = [name for name in REQUIRED_ENV_VARS[mode] if not values.get(name)]
    if missing:
        mode_text = "cache update" if mode == AgentMode.CACHE_UPDATE else "fix mode"
        raise ConfigurationError(
            f"Missing required environment variables for {mode_text}: {', '.join(missing)}"
        )

    if settings.repository and not REPOSITORY_PATTERN.match(settings.repository):
        raise ConfigurationError(f"Invalid repository format: {settings.repository}")

    if mode == AgentMode.FIX:
        if settings.issue_number and not ISSUE_NUMBER_PATTERN.match(settings.issue_number):
            raise ConfigurationError(f"Invalid issue number: {settings.issue_number}")

        # An explicit provider choice must come with its key
        if settings.ai_provider is not None and not settings.get_api_key(settings.ai_provider):
            env_var = API_KEY_ENV_VARS[settings.ai_provider]
            raise ConfigurationError(
                f"AI_PROVIDER is set to {settings.ai_provider.value} but {env_var} is not set"
            )


def sanitize_title(title: str) -> str:
    """Strip control and filesystem-unsafe characters from an issue title.

    Args:
        title: Raw issue title.

    Returns:
        The sanitized title, at most 100 characters.
    """
    cleaned = _CONTROL_CHARS.sub("", title)
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", cleaned)
    return cleaned[:MAX_TITLE_LENGTH].strip()


def create_safe_branch_name(issue_number: str) -> str:
    """Return the working branch name for an issue."""
    return f"{BRANCH_PREFIX}{issue_number}"


def sanitize_branch_name(branch_name: str) -> str:
    """Normalize text into a valid branch name component.

    Args:
        branch_name: Arbitrary text.

    Returns:
        Text containing only letters, digits, underscores and single dashes.
    """
    cleaned = re.sub(r"[^a-zA-Z0-9_-]", "-", branch_name)
    cleaned = re.sub(r"--+", "-", cleaned)
    return cleaned.strip("-")
