"""GitHub API access for opening pull requests."""

import logging
from dataclasses import dataclass
from typing import Optional

from github import Github, GithubException

from devagent.exceptions import DevAgentError

logger = logging.getLogger(__name__)


class GitHubError(DevAgentError):
    """Raised when a GitHub API call fails."""

    pass


@dataclass(frozen=True)
class PullRequestInfo:
    number: int
    url: str


class GitHubService:
    """Thin wrapper over PyGithub for one repository."""

    def __init__(self, token: str, repository: str, client: Optional[Github] = None):
        self.repository = repository
        self._token = token
        self._client = client

    @property
    def client(self) -> Github:
        if self._client is None:
            self._client = Github(self._token)
        return self._client

    def create_pull_request(self, title: str, body: str, head: str, base: str) -> PullRequestInfo:
        """Open a pull request from head into base.

        Raises:
            GitHubError: If the repository lookup or PR creation fails.
        """
        logger.info(f"Creating pull request {head} -> {base} in {self.repository}")
        try:
            repo = self.client.get_repo(self.repository)
            pr = repo.create_pull(title=title, body=body, head=head, base=base)
        except GithubException as e:
            message = e.data.get("message") if isinstance(e.data, dict) else None
            raise GitHubError(f"Failed to create pull request: {message or e}") from e
        logger.info(f"Created pull request #{pr.number}: {pr.html_url}")
        return PullRequestInfo(number=pr.number, url=pr.html_url)
