"""Working tree status utilities."""

from pathlib import Path
from typing import Optional

from devagent.git.runner import run_git_command


def get_changed_files(cwd: Optional[Path] = None) -> list[str]:
    """List paths reported by git status --porcelain.

    Raises:
        GitError: If git status fails.
    """
    output = run_git_command(["status", "--porcelain"], cwd=cwd, strip=False)
    files = []
    for line in output.split("\n"):
        if len(line) < 4:
            continue
        path = line[3:]
        # Renames are reported as "old -> new"
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        files.append(path)
    return files


def has_changes(cwd: Optional[Path] = None) -> bool:
    """Report whether the working tree is dirty.

    Raises:
        GitError: If git status fails.
    """
    return bool(run_git_command(["status", "--porcelain"], cwd=cwd))
