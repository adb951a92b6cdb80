"""Staging, committing and pushing."""

import logging
from pathlib import Path
from typing import Optional

from devagent.git.exceptions import GitError
from devagent.git.runner import run_git_command

logger = logging.getLogger(__name__)


def stage_all(cwd: Optional[Path] = None) -> None:
    run_git_command(["add", "--all"], cwd=cwd)


def commit(
    message_file: Path,
    author_name: str,
    author_email: str,
    cwd: Optional[Path] = None,
) -> str:
    """Commit staged changes using a message file as the given identity.

    Returns:
        git commit output.

    Raises:
        GitError: If the commit fails.
    """
    return run_git_command(
        [
            "-c", f"user.name={author_name}",
            "-c", f"user.email={author_email}",
            "commit", "-F", str(message_file),
        ],
        cwd=cwd,
    )


def push_branch(branch_name: str, remote: str = "origin", cwd: Optional[Path] = None) -> str:
    """Push a branch, setting upstream; retry without -u on failure.

    Raises:
        GitError: If both attempts fail.
    """
    logger.info(f"Pushing to {remote}/{branch_name}...")
    try:
        return run_git_command(["push", "-u", remote, branch_name], cwd=cwd)
    except GitError as e:
        logger.warning(f"Push with upstream failed ({e}); retrying without -u flag...")
        return run_git_command(["push", remote, branch_name], cwd=cwd)
