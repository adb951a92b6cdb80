"""Persistent repository cache.

Three independently expiring JSON stores per repository. Expiry is judged by
the file's modification time, not by the timestamp inside the payload.
Every I/O or parse failure is logged and treated as a miss; callers must
work on an all-miss cache. Read-modify-write cycles are not locked.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from devagent.cache.models import (
    FileSummary,
    PatternsCacheEntry,
    RepositoryStructure,
    StructureCacheEntry,
    SummariesCacheEntry,
)
from devagent.cache.paths import get_cache_dir, get_cache_file, repository_slug
from devagent.config import (
    CACHE_EXPIRY,
    DEFAULT_CACHE_DIR,
    PATTERNS_CACHE,
    STRUCTURE_CACHE,
    SUMMARIES_CACHE,
)

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT", bound=BaseModel)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RepositoryCache:
    """Cache of repository structure, file summaries and issue patterns."""

    def __init__(self, repository: str, cache_root: Path = DEFAULT_CACHE_DIR):
        self.repository = repository
        self.cache_root = cache_root
        try:
            self.cache_dir = get_cache_dir(cache_root, repository)
        except OSError as e:
            logger.warning(f"Cache directory unavailable: {e}")
            self.cache_dir = cache_root / repository_slug(repository)

    def cache_file(self, name: str) -> Path:
        return get_cache_file(self.cache_dir, name)

    def age_minutes(self, name: str) -> Optional[float]:
        """Age of a store's file in minutes, or None if it cannot be stat'd."""
        try:
            mtime = self.cache_file(name).stat().st_mtime
        except OSError:
            return None
        return (time.time() - mtime) / 60

    def is_expired(self, name: str) -> bool:
        """Check whether a named store is missing or older than its TTL."""
        age = self.age_minutes(name)
        if age is None:
            return True
        return age > CACHE_EXPIRY[name]

    def _read_entry(self, name: str, model: Type[EntryT]) -> Optional[EntryT]:
        if self.is_expired(name):
            return None
        try:
            return model.model_validate_json(self.cache_file(name).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Cache read error for {name}: {e}")
            return None

    def _write_entry(self, name: str, entry: BaseModel) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self.cache_file(name).write_text(entry.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Cache write error for {name}: {e}")

    # ------------------------------------------------------------------
    # Repository structure
    # ------------------------------------------------------------------

    def get_structure(self) -> Optional[RepositoryStructure]:
        """Return the cached structure marked from_cache, or None on miss/expiry."""
        entry = self._read_entry(STRUCTURE_CACHE, StructureCacheEntry)
        if entry is None:
            return None
        return entry.structure.model_copy(update={"from_cache": True})

    def save_structure(self, structure: RepositoryStructure) -> None:
        """Overwrite the structure store, without issue-specific data."""
        persisted = structure.model_copy(update={"relevant_files": [], "from_cache": False})
        entry = StructureCacheEntry(
            repository=self.repository,
            timestamp=_now_ms(),
            structure=persisted,
        )
        self._write_entry(STRUCTURE_CACHE, entry)

    # ------------------------------------------------------------------
    # File summaries
    # ------------------------------------------------------------------

    def get_file_summaries(self) -> dict[str, FileSummary]:
        """Return all cached summaries; empty on miss/expiry."""
        entry = self._read_entry(SUMMARIES_CACHE, SummariesCacheEntry)
        if entry is None:
            return {}
        return dict(entry.summaries)

    def _write_summaries(self, summaries: dict[str, FileSummary]) -> None:
        entry = SummariesCacheEntry(
            repository=self.repository,
            timestamp=_now_ms(),
            summaries=summaries,
        )
        self._write_entry(SUMMARIES_CACHE, entry)

    def save_file_summaries(self, summaries: dict[str, FileSummary]) -> None:
        """Merge several summaries into the store."""
        merged = self.get_file_summaries()
        merged.update(summaries)
        self._write_summaries(merged)

    def save_file_summary(self, path: str, summary: FileSummary) -> None:
        """Add or replace the summary for one file."""
        self.save_file_summaries({path: summary})

    def remove_file_summary(self, path: str) -> None:
        """Drop the summary for a file. No-op if there is none."""
        summaries = self.get_file_summaries()
        if path not in summaries:
            return
        del summaries[path]
        self._write_summaries(summaries)

    # ------------------------------------------------------------------
    # Issue patterns
    # ------------------------------------------------------------------

    def get_issue_patterns(self) -> dict[str, list[str]]:
        """Return issue type -> relevant files; empty on miss/expiry."""
        entry = self._read_entry(PATTERNS_CACHE, PatternsCacheEntry)
        if entry is None:
            return {}
        return dict(entry.patterns)

    def save_issue_pattern(self, issue_type: str, files: list[str]) -> None:
        """Record the files selected for an issue type."""
        patterns = self.get_issue_patterns()
        patterns[issue_type] = list(files)
        entry = PatternsCacheEntry(
            repository=self.repository,
            timestamp=_now_ms(),
            patterns=patterns,
        )
        self._write_entry(PATTERNS_CACHE, entry)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clear(self) -> int:
        """Delete every store for this repository.

        Returns:
            Number of files removed.
        """
        removed = 0
        for name in (STRUCTURE_CACHE, SUMMARIES_CACHE, PATTERNS_CACHE):
            path = self.cache_file(name)
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to remove {path}: {e}")
        return removed
