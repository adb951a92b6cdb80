"""Cache data models for devagent.

Contains Pydantic models for the persisted cache stores:
- RepositoryStructure: Snapshot of a repository's shape
- FileSummary: Per-file summary maintained by cache-update mode
- StructureCacheEntry, SummariesCacheEntry, PatternsCacheEntry: On-disk envelopes
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RepositoryStructure(BaseModel):
    """Shape of a repository as seen by the analyzer."""

    type: str
    main_language: str
    directories: list[str] = []
    config_files: list[str] = []
    relevant_files: list[str] = []  # Issue-specific, never persisted
    from_cache: bool = False


class FileSummary(BaseModel):
    """Summary of a single source file."""

    line_count: int
    functions: list[str] = Field(default_factory=list, max_length=10)
    last_modified: datetime
    purpose: str


class CacheEntry(BaseModel):
    """Common envelope fields for every cache store."""

    repository: str
    timestamp: int  # epoch milliseconds at write time; not used for expiry


class StructureCacheEntry(CacheEntry):
    """Envelope for the repo-structure store."""

    structure: RepositoryStructure


class SummariesCacheEntry(CacheEntry):
    """Envelope for the file-summaries store."""

    summaries: dict[str, FileSummary] = {}


class PatternsCacheEntry(CacheEntry):
    """Envelope for the issue-patterns store."""

    patterns: dict[str, list[str]] = {}
