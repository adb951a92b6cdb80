"""Top-level exception classes for devagent.

Contains:
- DevAgentError: Base exception for all devagent errors
- ConfigurationError: Raised when the environment or config file is invalid
"""


class DevAgentError(Exception):
    """Base exception for devagent errors."""

    pass


class ConfigurationError(DevAgentError):
    """Raised when required configuration is missing or invalid."""

    pass
