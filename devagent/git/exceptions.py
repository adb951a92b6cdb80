"""Git-related exception classes."""

from devagent.exceptions import DevAgentError


class GitError(DevAgentError):
    """Custom exception for git-related errors."""

    pass
