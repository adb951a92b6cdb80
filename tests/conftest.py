"""Shared test fixtures and configuration."""

import tempfile
from pathlib import Path

import pytest

from devagent.config import AIProvider
from devagent.settings import AgentSettings


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_repo_root(temp_dir):
    """Create a mock git repository root directory."""
    repo = temp_dir / "repo"
    repo.mkdir()
    (repo / ".git").mkdir()
    return repo


@pytest.fixture
def settings(temp_dir):
    """Fix-mode settings with a Claude key and temp cache/log dirs."""
    return AgentSettings(
        repository="octo/widgets",
        github_token="ghp_test",
        issue_number="42",
        issue_title="Login fails on submit",
        issue_body="Clicking submit in auth.ts throws an error",
        api_keys={AIProvider.CLAUDE: "sk-ant-test"},
        cache_dir=temp_dir / "cache",
        log_dir=temp_dir / "logs",
    )


@pytest.fixture
def base_env(temp_dir):
    """Minimal environment mapping for load_settings."""
    return {
        "DEVAGENT_CONFIG": str(temp_dir / "missing-config.yaml"),
        "DEVAGENT_CACHE_DIR": str(temp_dir / "cache"),
        "DEVAGENT_LOG_DIR": str(temp_dir / "logs"),
    }
