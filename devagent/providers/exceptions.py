"""Provider-related exception classes.

Contains all exception classes for AI provider operations:
- ProviderError: Base exception for provider failures
- MissingAPIKeyError: The provider has no API key configured
- UnsupportedProviderError: No implementation for the requested provider
- CLINotFoundError: The provider's executable is missing or unusable
- ProviderTimeoutError: The CLI exceeded its wall-clock timeout
- ProviderExitError: The CLI exited with a non-zero status
- RateLimitError: Output or exit indicates rate limiting
- MalformedOutputError: Structured output could not be parsed
- OutputTooLargeError: Output exceeded the configured buffer size
- AllProvidersFailedError: Every eligible provider failed
"""

from devagent.exceptions import DevAgentError


class ProviderError(DevAgentError):
    """Base exception for AI provider errors."""

    pass


class MissingAPIKeyError(ProviderError):
    """Raised when the required API key is not set."""

    pass


class UnsupportedProviderError(ProviderError):
    """Raised when a provider has no implementation."""

    pass


class CLINotFoundError(ProviderError):
    """Raised when the provider CLI is not installed or not runnable."""

    pass


class ProviderTimeoutError(ProviderError):
    """Raised when the provider CLI times out."""

    pass


class ProviderExitError(ProviderError):
    """Raised when the provider CLI exits with a non-zero status."""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


class RateLimitError(ProviderError):
    """Raised when the provider appears to be rate limited."""

    pass


class MalformedOutputError(ProviderError):
    """Raised when the provider output cannot be parsed."""

    pass


class OutputTooLargeError(ProviderError):
    """Raised when provider output exceeds the buffer limit."""

    pass


class AllProvidersFailedError(ProviderError):
    """Raised when no provider could be initialized or run."""

    def __init__(self, message: str, failures: list):
        super().__init__(message)
        self.failures = failures
