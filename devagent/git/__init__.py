"""Git operations used by devagent.

- exceptions: GitError
- runner: run_git_command, get_repo_root
- branch: branch_exists, create_or_switch_branch
- status: get_changed_files, has_changes
- commit: stage_all, commit, push_branch
"""

from devagent.git.exceptions import GitError
from devagent.git.runner import get_repo_root, run_git_command
from devagent.git.branch import branch_exists, create_or_switch_branch
from devagent.git.status import get_changed_files, has_changes
from devagent.git.commit import commit, push_branch, stage_all


__all__ = [
    "GitError",
    "branch_exists",
    "commit",
    "create_or_switch_branch",
    "get_changed_files",
    "get_repo_root",
    "has_changes",
    "push_branch",
    "run_git_command",
    "stage_all",
]
