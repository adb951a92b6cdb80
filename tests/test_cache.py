"""Tests for devagent.cache module."""

import os
import time
from datetime import datetime, timezone

import pytest

from devagent.cache import (
    FileSummary,
    RepositoryCache,
    RepositoryStructure,
    get_cache_dir,
    get_cache_file,
    repository_slug,
)
from devagent.config import PATTERNS_CACHE, STRUCTURE_CACHE, SUMMARIES_CACHE


def _age(path, minutes):
    old = time.time() - minutes * 60
    os.utime(path, (old, old))


@pytest.fixture
def cache(temp_dir):
    return RepositoryCache("octo/widgets", temp_dir / "cache")


@pytest.fixture
def structure():
    return RepositoryStructure(
        type="React App",
        main_language="TypeScript",
        directories=["src", "components"],
        config_files=["package.json"],
        relevant_files=["src/auth.ts"],
    )


def _summary(purpose="Source Code"):
    return FileSummary(
        line_count=12,
        functions=["login", "logout"],
        last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc),
        purpose=purpose,
    )


class TestCachePaths:
    """Tests for cache path helpers."""

    def test_repository_slug(self):
        """Test that slashes are replaced."""
        assert repository_slug("octo/widgets") == "octo__widgets"

    def test_get_cache_dir_creates_directory(self, temp_dir):
        """Test that the per-repository directory is created."""
        path = get_cache_dir(temp_dir, "octo/widgets")
        assert path == temp_dir / "octo__widgets"
        assert path.is_dir()

    def test_get_cache_file(self, temp_dir):
        """Test the JSON file naming."""
        assert get_cache_file(temp_dir, "repo-structure") == temp_dir / "repo-structure.json"


class TestStructureStore:
    """Tests for repository structure caching."""

    def test_miss_when_empty(self, cache):
        """Test that a fresh cache has no structure."""
        assert cache.get_structure() is None

    def test_round_trip_marks_from_cache(self, cache, structure):
        """Test that a saved structure comes back flagged as cached."""
        cache.save_structure(structure)
        loaded = cache.get_structure()

        assert loaded.type == "React App"
        assert loaded.main_language == "TypeScript"
        assert loaded.directories == ["src", "components"]
        assert loaded.from_cache is True

    def test_relevant_files_not_persisted(self, cache, structure):
        """Test that issue-specific files are stripped before saving."""
        cache.save_structure(structure)
        assert cache.get_structure().relevant_files == []

    def test_expires_after_thirty_minutes(self, cache, structure):
        """Test structure TTL judged by file mtime."""
        cache.save_structure(structure)
        _age(cache.cache_file(STRUCTURE_CACHE), 31)

        assert cache.is_expired(STRUCTURE_CACHE)
        assert cache.get_structure() is None

    def test_fresh_within_ttl(self, cache, structure):
        """Test that a 29 minute old structure is still served."""
        cache.save_structure(structure)
        _age(cache.cache_file(STRUCTURE_CACHE), 29)

        assert cache.get_structure() is not None

    def test_corrupt_file_is_a_miss(self, cache):
        """Test that unparseable JSON is treated as absent."""
        cache.cache_file(STRUCTURE_CACHE).write_text("{not json")
        assert cache.get_structure() is None

    def test_namespaced_per_repository(self, temp_dir, structure):
        """Test that repositories do not share cache entries."""
        first = RepositoryCache("octo/widgets", temp_dir / "cache")
        second = RepositoryCache("octo/gadgets", temp_dir / "cache")
        first.save_structure(structure)

        assert second.get_structure() is None


class TestSummariesStore:
    """Tests for file summary caching."""

    def test_empty_on_miss(self, cache):
        """Test that missing summaries yield an empty dict."""
        assert cache.get_file_summaries() == {}

    def test_save_and_merge(self, cache):
        """Test that saving one summary keeps the others."""
        cache.save_file_summary("src/a.ts", _summary())
        cache.save_file_summary("src/b.ts", _summary("Utility"))

        summaries = cache.get_file_summaries()
        assert set(summaries) == {"src/a.ts", "src/b.ts"}
        assert summaries["src/b.ts"].purpose == "Utility"

    def test_remove_summary(self, cache):
        """Test removing a summary drops only that entry."""
        cache.save_file_summaries({"src/a.ts": _summary(), "src/b.ts": _summary()})
        cache.remove_file_summary("src/a.ts")

        assert set(cache.get_file_summaries()) == {"src/b.ts"}

    def test_remove_is_idempotent(self, cache):
        """Test that removing an absent path changes nothing."""
        cache.save_file_summary("src/a.ts", _summary())
        cache.remove_file_summary("src/missing.ts")
        cache.remove_file_summary("src/missing.ts")

        assert set(cache.get_file_summaries()) == {"src/a.ts"}

    def test_summaries_outlive_structure_ttl(self, cache):
        """Test that summaries use their own seven day TTL."""
        cache.save_file_summary("src/a.ts", _summary())
        _age(cache.cache_file(SUMMARIES_CACHE), 60 * 24)

        assert "src/a.ts" in cache.get_file_summaries()

        _age(cache.cache_file(SUMMARIES_CACHE), 60 * 24 * 8)
        assert cache.get_file_summaries() == {}


class TestPatternsStore:
    """Tests for issue pattern caching."""

    def test_save_issue_pattern(self, cache):
        """Test that patterns are stored per issue type."""
        cache.save_issue_pattern("bug", ["src/auth.ts"])
        cache.save_issue_pattern("feature", ["src/app.ts"])

        assert cache.get_issue_patterns() == {
            "bug": ["src/auth.ts"],
            "feature": ["src/app.ts"],
        }

    def test_overwrites_same_type(self, cache):
        """Test that a later selection replaces the earlier one."""
        cache.save_issue_pattern("bug", ["a.ts"])
        cache.save_issue_pattern("bug", ["b.ts"])

        assert cache.get_issue_patterns() == {"bug": ["b.ts"]}

    def test_expires_after_a_day(self, cache):
        """Test pattern TTL."""
        cache.save_issue_pattern("bug", ["a.ts"])
        _age(cache.cache_file(PATTERNS_CACHE), 60 * 25)

        assert cache.get_issue_patterns() == {}


class TestClear:
    """Tests for RepositoryCache.clear."""

    def test_clear_removes_all_stores(self, cache, structure):
        """Test that clear deletes every store and reports the count."""
        cache.save_structure(structure)
        cache.save_issue_pattern("bug", ["a.ts"])

        assert cache.clear() == 2
        assert cache.get_structure() is None
        assert cache.get_issue_patterns() == {}

    def test_clear_empty_cache(self, cache):
        """Test that clearing an empty cache removes nothing."""
        assert cache.clear() == 0
