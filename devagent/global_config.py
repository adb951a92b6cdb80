"""Optional YAML defaults for devagent.

Looks for a config file at $DEVAGENT_CONFIG or ~/.devagent/config.yaml:

    provider: gemini
    model: gemini-2.5-pro
    timeout_seconds: 600
    allowed_tools: Bash,Read,Edit
    base_branch: develop
    cache_dir: /var/cache/devagent
    log_dir: /var/log/devagent
    log_level: DEBUG

Environment variables always take precedence over these values.
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from devagent.exceptions import ConfigurationError

CONFIG_ENV_VAR = "DEVAGENT_CONFIG"

KNOWN_KEYS = {
    "provider",
    "model",
    "timeout_seconds",
    "max_buffer_bytes",
    "allowed_tools",
    "base_branch",
    "cache_dir",
    "log_dir",
    "log_level",
}


def get_global_config_dir() -> Path:
    """Get the global devagent configuration directory.

    Returns:
        Path to ~/.devagent/
    """
    return Path.home() / ".devagent"


def get_config_file_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Get path to the YAML config file.

    Args:
        environ: Environment mapping to consult for DEVAGENT_CONFIG.

    Returns:
        The explicit path from DEVAGENT_CONFIG, else ~/.devagent/config.yaml.
    """
    explicit = (environ or {}).get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    return get_global_config_dir() / "config.yaml"


def load_global_config(path: Path) -> Dict[str, Any]:
    """Load configuration defaults from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Dictionary with the recognized keys. Empty dict if the file doesn't exist.

    Raises:
        ConfigurationError: If the file exists but cannot be parsed.
    """
    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config from {path}: {e}")

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    return {key: value for key, value in config.items() if key in KNOWN_KEYS}
