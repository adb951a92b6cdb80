"""Repository analysis for devagent.

- relevance: Issue keyword extraction and file relevance scoring
- repository: RepositoryAnalyzer, cached repository context
- summaries: Per-file summaries for cache-update mode
"""

from devagent.analysis.relevance import (
    FileRelevanceScore,
    IssueKeywords,
    calculate_file_relevance,
    classify_issue,
    discover_files,
    extract_issue_keywords,
    find_relevant_files,
    is_relevant_extension,
    is_relevant_file_for_cache,
    score_files,
)
from devagent.analysis.repository import RepositoryAnalyzer
from devagent.analysis.summaries import (
    build_file_summary,
    extract_functions,
    infer_file_purpose,
)


__all__ = [
    "FileRelevanceScore",
    "IssueKeywords",
    "RepositoryAnalyzer",
    "build_file_summary",
    "calculate_file_relevance",
    "classify_issue",
    "discover_files",
    "extract_functions",
    "extract_issue_keywords",
    "find_relevant_files",
    "infer_file_purpose",
    "is_relevant_extension",
    "is_relevant_file_for_cache",
    "score_files",
]
