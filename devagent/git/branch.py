"""Branch utilities."""

import logging
from pathlib import Path
from typing import Optional

from devagent.git.exceptions import GitError
from devagent.git.runner import run_git_command

logger = logging.getLogger(__name__)


def branch_exists(branch_name: str, cwd: Optional[Path] = None) -> bool:
    try:
        run_git_command(["rev-parse", "--verify", "--quiet", branch_name], cwd=cwd)
    except GitError:
        return False
    return True


def create_or_switch_branch(branch_name: str, cwd: Optional[Path] = None) -> None:
    """Switch to branch_name, creating it from HEAD if it doesn't exist.

    Raises:
        GitError: If the checkout fails.
    """
    if branch_exists(branch_name, cwd):
        logger.info(f"Branch {branch_name} already exists, switching to it")
        run_git_command(["checkout", branch_name], cwd=cwd)
    else:
        logger.info(f"Creating branch: {branch_name}")
        run_git_command(["checkout", "-b", branch_name], cwd=cwd)
