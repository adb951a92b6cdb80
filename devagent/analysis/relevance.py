"""File relevance scoring for issues.

Contains:
- extract_issue_keywords: Derive keywords and an issue type from title/body
- calculate_file_relevance: Additive relevance score for one file
- score_files / find_relevant_files: Rank files discovered in a repository
- discover_files: Bounded, deterministic scan of source files
- is_relevant_file_for_cache: Whether a path deserves a cached summary
"""

import logging
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from devagent.config import (
    BACKEND_EXTENSIONS,
    CACHE_INCLUDE_PATTERNS,
    CACHE_SKIP_PATTERNS,
    CONFIG_EXTENSIONS,
    MAX_KEYWORDS,
    MAX_RELEVANT_FILES,
    MAX_SCANNED_FILES,
    RECENCY_THRESHOLD_DAYS,
    RELEVANCE_SCORES,
    SCAN_EXCLUDED_DIRS,
    SCANNED_EXTENSIONS,
    TEST_FILE_PATTERN,
    WEB_EXTENSIONS,
)

logger = logging.getLogger(__name__)

KEYWORD_PATTERN = re.compile(r"\b[a-zA-Z][a-zA-Z0-9_-]{2,}\b")

# Checked in order; the first matching rule decides the type
ISSUE_TYPE_RULES = [
    ("bug", ("bug", "error", "fail")),
    ("feature", ("feature", "add")),
    ("enhancement", ("enhance", "improve")),
    ("fix", ("fix",)),
]


@dataclass(frozen=True)
class IssueKeywords:
    """Keywords and classification derived from an issue."""

    terms: list[str]
    type: str = "general"


@dataclass
class FileRelevanceScore:
    """A scored file with the reasons that contributed to its score."""

    file: str
    score: int
    reasons: list[str] = field(default_factory=list)


def classify_issue(text: str) -> str:
    """Classify an issue by substring checks on its lowercased text.

    Args:
        text: Issue title and body.

    Returns:
        One of bug, feature, enhancement, fix, general.
    """
    lowered = text.lower()
    for issue_type, needles in ISSUE_TYPE_RULES:
        if any(needle in lowered for needle in needles):
            return issue_type
    return "general"


def extract_issue_keywords(issue_title: str, issue_body: str) -> IssueKeywords:
    """Extract up to ten unique keywords and the issue type.

    Args:
        issue_title: The issue title.
        issue_body: The issue body.

    Returns:
        IssueKeywords with deduplicated terms in order of first appearance.
    """
    text = f"{issue_title or ''} {issue_body or ''}".lower()
    terms = list(dict.fromkeys(KEYWORD_PATTERN.findall(text)))
    return IssueKeywords(terms=terms[:MAX_KEYWORDS], type=classify_issue(text))


def _extension(file: str) -> str:
    return Path(file).suffix.lstrip(".").lower()


def is_relevant_extension(file: str, issue_type: str) -> bool:
    """Check whether a file's extension matters for the issue type."""
    ext = _extension(file)
    if not ext:
        return False

    if issue_type in ("feature", "enhancement"):
        return ext in WEB_EXTENSIONS | BACKEND_EXTENSIONS | CONFIG_EXTENSIONS
    # bug, fix and everything else
    return ext in WEB_EXTENSIONS | BACKEND_EXTENSIONS


def is_test_file(file: str) -> bool:
    return bool(TEST_FILE_PATTERN.search(file))


def _score_with_reasons(
    file: str,
    keywords: IssueKeywords,
    issue_body: str,
    root: Optional[Path] = None,
    now: Optional[float] = None,
) -> FileRelevanceScore:
    score = 0
    reasons = []
    file_lower = file.lower()
    file_name = file_lower.rsplit("/", 1)[-1]

    if file_name and file_name in (issue_body or "").lower():
        score += RELEVANCE_SCORES["mentioned_in_issue"]
        reasons.append("mentioned in issue")

    matches = [
        term for term in keywords.terms
        if term.lower() in file_name or term.lower() in file_lower
    ]
    if matches:
        score += len(matches) * RELEVANCE_SCORES["keyword_match"]
        reasons.append(f"keywords: {', '.join(matches)}")

    if is_relevant_extension(file, keywords.type):
        score += RELEVANCE_SCORES["relevant_extension"]
        reasons.append(f"relevant extension for {keywords.type}")

    path = (root / file) if root is not None else Path(file)
    try:
        age_days = ((now or time.time()) - path.stat().st_mtime) / 86400
        if age_days < RECENCY_THRESHOLD_DAYS:
            score += RELEVANCE_SCORES["recently_modified"]
            reasons.append("recently modified")
    except OSError:
        pass

    if "test" not in keywords.terms and is_test_file(file):
        score += RELEVANCE_SCORES["test_file_penalty"]
        reasons.append("test file")

    return FileRelevanceScore(file=file, score=max(0, score), reasons=reasons)


def calculate_file_relevance(
    file: str,
    keywords: IssueKeywords,
    issue_body: str,
    root: Optional[Path] = None,
) -> int:
    """Score how likely a file is to need editing for an issue.

    Args:
        file: Repository-relative file path.
        keywords: Keywords extracted from the issue.
        issue_body: The raw issue body.
        root: Repository root used to stat the file. Defaults to the cwd.

    Returns:
        A non-negative score.
    """
    return _score_with_reasons(file, keywords, issue_body, root).score


def discover_files(
    root: Path,
    extensions: Iterable[str] = SCANNED_EXTENSIONS,
    limit: int = MAX_SCANNED_FILES,
) -> list[str]:
    """List source files under root in a stable order.

    Args:
        root: Directory to scan.
        extensions: Allowed extensions without the leading dot.
        limit: Maximum number of files to return.

    Returns:
        Repository-relative POSIX paths.
    """
    allowed = {ext.lower() for ext in extensions}
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SCAN_EXCLUDED_DIRS)
        for name in sorted(filenames):
            if _extension(name) not in allowed:
                continue
            found.append(Path(dirpath, name).relative_to(root).as_posix())
            if len(found) >= limit:
                return found
    return found


def score_files(
    files: Iterable[str],
    keywords: IssueKeywords,
    issue_body: str,
    root: Optional[Path] = None,
) -> list[FileRelevanceScore]:
    """Score files, drop non-positive ones and sort by descending score."""
    now = time.time()
    scored = [_score_with_reasons(f, keywords, issue_body, root, now) for f in files]
    positive = [item for item in scored if item.score > 0]
    return sorted(positive, key=lambda item: item.score, reverse=True)


def find_relevant_files(
    keywords: IssueKeywords,
    issue_body: str,
    root: Optional[Path] = None,
    limit: int = MAX_RELEVANT_FILES,
) -> list[str]:
    """Return the top relevant files for an issue.

    Args:
        keywords: Keywords extracted from the issue.
        issue_body: The raw issue body.
        root: Repository root. Defaults to the current directory.
        limit: Maximum number of files to return.

    Returns:
        File paths ordered by descending relevance.
    """
    root = root or Path.cwd()
    files = discover_files(root)
    ranked = score_files(files, keywords, issue_body, root)
    for item in ranked[:limit]:
        logger.debug(f"{item.file}: {item.score} ({'; '.join(item.reasons)})")
    return [item.file for item in ranked[:limit]]


def is_relevant_file_for_cache(file: str) -> bool:
    """Check whether a changed file should get a cached summary."""
    if any(pattern.search(file) for pattern in CACHE_SKIP_PATTERNS):
        return False
    return any(pattern.search(file) for pattern in CACHE_INCLUDE_PATTERNS)
