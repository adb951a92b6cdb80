"""Cache file path utilities for devagent.

Contains functions for getting paths to cache files:
- repository_slug: Filesystem-safe name for an owner/repo identifier
- get_cache_dir: Get (and create) the per-repository cache directory
- get_cache_file: Get path to a named cache store
"""

from pathlib import Path


def repository_slug(repository: str) -> str:
    """Convert an owner/repo identifier into a directory name.

    Args:
        repository: Repository identifier in owner/repo format.

    Returns:
        The identifier with path separators replaced.
    """
    return repository.strip("/").replace("/", "__")


def get_cache_dir(cache_root: Path, repository: str) -> Path:
    """Return the cache directory for a repository, creating it if needed.

    Args:
        cache_root: Root directory shared by all repositories.
        repository: Repository identifier in owner/repo format.

    Returns:
        Path to the repository's cache directory.

    Raises:
        OSError: If the directory cannot be created.
    """
    cache_dir = cache_root / repository_slug(repository)
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def get_cache_file(cache_dir: Path, name: str) -> Path:
    """Return path to a named cache store.

    Args:
        cache_dir: The repository's cache directory.
        name: Store name (repo-structure, file-summaries, issue-patterns).

    Returns:
        Path to <name>.json.
    """
    return cache_dir / f"{name}.json"
