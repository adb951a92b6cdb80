"""Cache module for devagent.

This package keeps a per-repository, TTL-based cache that reduces how much
repository context has to be rebuilt (and sent to the AI) on each run:
- models: RepositoryStructure, FileSummary and the on-disk envelopes
- paths: Functions for getting cache file paths
- repository: RepositoryCache, the only writer of cache files
"""

from devagent.cache.models import (
    FileSummary,
    PatternsCacheEntry,
    RepositoryStructure,
    StructureCacheEntry,
    SummariesCacheEntry,
)
from devagent.cache.paths import (
    get_cache_dir,
    get_cache_file,
    repository_slug,
)
from devagent.cache.repository import RepositoryCache


__all__ = [
    # Models
    "FileSummary",
    "PatternsCacheEntry",
    "RepositoryStructure",
    "StructureCacheEntry",
    "SummariesCacheEntry",
    # Path utilities
    "get_cache_dir",
    "get_cache_file",
    "repository_slug",
    # Cache
    "RepositoryCache",
]
