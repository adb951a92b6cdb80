"""DevAgent orchestrator.

Two modes:
- fix: branch, analyze, prompt an AI CLI, and open a pull request if the
  working tree changed
- cache-update: refresh cached file summaries for changed files and
  re-detect the repository structure after structural changes
"""

import logging
import time
from pathlib import Path
from typing import Optional

from devagent import git as git_ops
from devagent import prompts
from devagent.analysis.relevance import is_relevant_file_for_cache
from devagent.analysis.repository import RepositoryAnalyzer
from devagent.analysis.summaries import build_file_summary
from devagent.cache.repository import RepositoryCache
from devagent.config import STRUCTURAL_FILE_MARKERS, AgentMode
from devagent.exceptions import ConfigurationError
from devagent.github import GitHubService, PullRequestInfo
from devagent.providers.exceptions import AllProvidersFailedError, RateLimitError
from devagent.providers.factory import ProviderFactory
from devagent.settings import AgentSettings
from devagent.telemetry import CostTracker

logger = logging.getLogger(__name__)


def read_changed_files(path: Optional[Path]) -> list[str]:
    """Read a newline-delimited file list; missing file means no changes."""
    if path is None or not path.exists():
        return []
    content = path.read_text(encoding="utf-8")
    return [line.strip() for line in content.split("\n") if line.strip()]


def is_structural_change(file: str) -> bool:
    return any(marker in file for marker in STRUCTURAL_FILE_MARKERS)


class DevAgent:
    """Runs one devagent invocation for the given settings and mode."""

    def __init__(
        self,
        settings: AgentSettings,
        mode: AgentMode = AgentMode.FIX,
        root: Optional[Path] = None,
        cache: Optional[RepositoryCache] = None,
        analyzer: Optional[RepositoryAnalyzer] = None,
        factory: Optional[ProviderFactory] = None,
        github: Optional[GitHubService] = None,
        tracker: Optional[CostTracker] = None,
    ):
        if not settings.repository:
            raise ConfigurationError("REPOSITORY is required")
        self.settings = settings
        self.mode = mode
        self.root = root or Path.cwd()
        self.cache = cache or RepositoryCache(settings.repository, settings.cache_dir)
        self.analyzer = analyzer or RepositoryAnalyzer(self.cache, self.root)
        self.tracker = tracker or CostTracker(settings.log_dir)
        self.factory = factory
        self.github = github

        if mode == AgentMode.FIX:
            if not settings.github_token:
                raise ConfigurationError("GITHUB_TOKEN is required for fix mode")
            self.factory = self.factory or ProviderFactory(settings)
            self.github = self.github or GitHubService(settings.github_token, settings.repository)

    def run(self) -> Optional[PullRequestInfo]:
        """Run the configured mode, recording duration and outcome.

        Returns:
            The pull request opened in fix mode, if any.

        Raises:
            DevAgentError: Whatever the mode raised, after it is recorded.
        """
        start = time.monotonic()
        try:
            if self.mode == AgentMode.CACHE_UPDATE:
                result = None
                self.run_cache_update_mode()
            else:
                result = self.run_fix_mode()
        except Exception as e:
            duration = time.monotonic() - start
            self.tracker.record_error(None, e)
            self.tracker.record_execution(duration, "failure")
            logger.error(f"DevAgent {self.mode.value} failed after {duration:.1f}s: {e}")
            raise

        duration = time.monotonic() - start
        self.tracker.record_execution(duration, "success")
        logger.info(f"DevAgent {self.mode.value} completed successfully in {duration:.1f}s")
        return result

    # ============================================================
    # FIX MODE
    # ============================================================

    def run_fix_mode(self) -> Optional[PullRequestInfo]:
        settings = self.settings
        branch_name = settings.branch_name
        if not branch_name:
            raise ConfigurationError("Issue number is required for fix mode")
        title = settings.issue_title or ""

        logger.info("Starting DevAgent execution")
        logger.info(f"Issue: #{settings.issue_number} - {title}")
        logger.info(f"Repository: {settings.repository}")
        logger.info(f"Base branch: {settings.base_branch}")

        git_ops.create_or_switch_branch(branch_name, cwd=self.root)

        logger.info("Gathering repository context...")
        context = self.analyzer.get_context(title, settings.issue_body or "")
        logger.info(f"Context: {context.type} repository with {len(context.relevant_files)} relevant files")
        self.tracker.record_cache_hit(context.from_cache)

        prompt = prompts.build_fix_prompt(
            context,
            settings.repository,
            settings.issue_number,
            title,
            settings.issue_body or "",
        )
        logger.info(f"Prompt length: {len(prompt)} characters")

        try:
            run = self.factory.run_with_fallback(prompt)
        except AllProvidersFailedError as e:
            self._record_failures(e.failures)
            raise
        self._record_failures(run.failures)
        self.tracker.record_request(run.provider, prompt, run.response)
        logger.info(f"{run.provider.display_name} completed with {len(run.response.messages)} messages")

        logger.info("Checking for file changes...")
        if not git_ops.has_changes(cwd=self.root):
            logger.warning("No changes were made by the agent")
            return None

        changed_files = git_ops.get_changed_files(cwd=self.root)
        logger.info(f"Changes detected in {len(changed_files)} files, creating PR")
        self._commit_and_push(branch_name, title)
        pr = self.github.create_pull_request(
            title=prompts.build_pr_title(title, settings.issue_number),
            body=prompts.build_pr_body(
                settings.issue_number,
                changed_files,
                run.provider.display_name,
                settings.git_user_name,
                settings.git_user_email,
            ),
            head=branch_name,
            base=settings.base_branch,
        )
        logger.info(f"Successfully created PR: {pr.url}")
        return pr

    def _record_failures(self, failures) -> None:
        for provider, error in failures:
            if isinstance(error, RateLimitError):
                self.tracker.record_rate_limit(provider.value)
            self.tracker.record_error(provider.value, error)

    def _commit_and_push(self, branch_name: str, title: str) -> None:
        settings = self.settings
        message = prompts.build_commit_message(
            title, settings.issue_number, settings.git_user_name, settings.git_user_email
        )
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        message_file = settings.log_dir / "commit-message.txt"
        message_file.write_text(message, encoding="utf-8")

        git_ops.stage_all(cwd=self.root)
        git_ops.commit(message_file, settings.git_user_name, settings.git_user_email, cwd=self.root)
        git_ops.push_branch(branch_name, cwd=self.root)

    # ============================================================
    # CACHE UPDATE MODE
    # ============================================================

    def run_cache_update_mode(self) -> int:
        """Refresh cached summaries for the changed-files list.

        Returns:
            Number of relevant files processed.
        """
        logger.info("Running in cache update mode")
        changed_files = read_changed_files(self.settings.changed_files_path)
        logger.info(f"Processing {len(changed_files)} changed files")

        updated = 0
        for file in changed_files:
            if is_relevant_file_for_cache(file):
                self.update_file_summary(file)
                updated += 1

        if any(is_structural_change(f) for f in changed_files):
            logger.info("Structural changes detected, updating repository structure")
            self.analyzer.refresh_structure()

        logger.info(f"Cache update completed. Updated {updated} file summaries")
        return updated

    def update_file_summary(self, file: str) -> None:
        path = self.root / file
        if not path.exists():
            logger.info(f"File {file} no longer exists, removing from cache")
            self.cache.remove_file_summary(file)
            return

        logger.info(f"Updating summary for {file}")
        try:
            summary = build_file_summary(path, file)
        except OSError as e:
            logger.warning(f"Failed to update summary for {file}: {e}")
            return
        self.cache.save_file_summary(file, summary)
