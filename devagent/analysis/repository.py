"""Repository context analysis.

Builds a RepositoryStructure for the working directory, preferring the cached
structure and always recomputing issue-specific relevant files.
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Optional

from devagent.analysis.relevance import (
    discover_files,
    extract_issue_keywords,
    find_relevant_files,
)
from devagent.cache.models import RepositoryStructure
from devagent.cache.repository import RepositoryCache
from devagent.config import (
    CONFIG_FILES,
    KEY_DIRECTORIES,
    LANGUAGE_BY_EXTENSION,
    MAX_LANGUAGE_SCAN_FILES,
)

logger = logging.getLogger(__name__)

# Ordered: more specific frameworks first
PACKAGE_JSON_FRAMEWORKS = [
    ("next", "Next.js App"),
    ("react", "React App"),
    ("vue", "Vue App"),
    ("express", "Express Server"),
]

MARKER_FILE_TYPES = [
    (("requirements.txt", "setup.py", "pyproject.toml"), "Python Project"),
    (("go.mod",), "Go Project"),
    (("Cargo.toml",), "Rust Project"),
    (("pom.xml", "build.gradle"), "Java Project"),
    (("Gemfile",), "Ruby Project"),
]


class RepositoryAnalyzer:
    """Builds repository context, consulting the cache first."""

    def __init__(self, cache: RepositoryCache, root: Optional[Path] = None):
        self.cache = cache
        self.root = root or Path.cwd()

    def get_context(
        self,
        issue_title: Optional[str] = None,
        issue_body: Optional[str] = None,
    ) -> RepositoryStructure:
        """Return the repository context for an (optional) issue.

        On a cache hit the cached shape is reused and relevant files are
        recomputed against the current filesystem. On a miss the structure is
        detected from scratch and written through to the cache.

        Args:
            issue_title: Issue title, if any.
            issue_body: Issue body, if any.

        Returns:
            The repository structure with relevant_files for this issue.
        """
        has_issue = bool(issue_title and issue_body)

        logger.info("Checking for cached repository structure...")
        cached = self.cache.get_structure()
        if cached is not None:
            logger.info("Using cached repository structure")
            if has_issue:
                return cached.model_copy(
                    update={"relevant_files": self.find_relevant_files(issue_title, issue_body)}
                )
            return cached

        logger.info("Building fresh repository context...")
        structure = self.refresh_structure()
        if has_issue:
            structure = structure.model_copy(
                update={"relevant_files": self.find_relevant_files(issue_title, issue_body)}
            )
        return structure

    def build_fresh_structure(self) -> RepositoryStructure:
        """Detect the repository shape without touching the cache."""
        return RepositoryStructure(
            type=self.detect_repository_type(),
            main_language=self.detect_main_language(),
            directories=self.get_key_directories(),
            config_files=self.get_config_files(),
            relevant_files=[],
            from_cache=False,
        )

    def refresh_structure(self) -> RepositoryStructure:
        """Detect the repository shape and persist it."""
        structure = self.build_fresh_structure()
        self.cache.save_structure(structure)
        return structure

    def detect_repository_type(self) -> str:
        """Classify the project from well-known marker files."""
        package_json = self.root / "package.json"
        if package_json.is_file():
            try:
                pkg = json.loads(package_json.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read package.json: {e}")
            else:
                if not isinstance(pkg, dict):
                    pkg = {}
                deps = {}
                for section in ("dependencies", "devDependencies"):
                    if isinstance(pkg.get(section), dict):
                        deps.update(pkg[section])
                for dependency, label in PACKAGE_JSON_FRAMEWORKS:
                    if dependency in deps:
                        return label
                if pkg.get("type") == "module":
                    return "ES Module Project"
                return "Node.js Project"

        for markers, label in MARKER_FILE_TYPES:
            if any((self.root / marker).exists() for marker in markers):
                return label

        return "Generic Project"

    def detect_main_language(self) -> str:
        """Return the most common source language in a bounded scan."""
        extensions = [ext.lstrip(".") for ext in LANGUAGE_BY_EXTENSION]
        files = discover_files(self.root, extensions, limit=MAX_LANGUAGE_SCAN_FILES)

        counts = Counter(
            LANGUAGE_BY_EXTENSION[Path(f).suffix.lower()]
            for f in files
            if Path(f).suffix.lower() in LANGUAGE_BY_EXTENSION
        )
        if not counts:
            return "Unknown"
        return counts.most_common(1)[0][0]

    def get_key_directories(self) -> list[str]:
        return [d for d in KEY_DIRECTORIES if (self.root / d).is_dir()]

    def get_config_files(self) -> list[str]:
        return [f for f in CONFIG_FILES if (self.root / f).exists()]

    def find_relevant_files(self, issue_title: str, issue_body: str) -> list[str]:
        """Rank files for an issue and remember the selection by issue type."""
        keywords = extract_issue_keywords(issue_title, issue_body)
        files = find_relevant_files(keywords, issue_body, self.root)
        if files:
            self.cache.save_issue_pattern(keywords.type, files)
        return files
