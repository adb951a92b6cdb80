"""DevAgent: AI-driven GitHub issue fixer."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("devagent")
except PackageNotFoundError:
    # Fallback for development mode
    __version__ = "0.0.0-dev"
