"""Prompt, commit message and pull request templates.

The fix prompt starts with a prefix that depends only on the repository,
so it is byte-identical across issues and can be served from the
provider's prompt cache. Everything issue specific follows it.
"""

from devagent.cache.models import RepositoryStructure

STABLE_PREFIX_TEMPLATE = """You are DevAgent, an AI assistant that fixes GitHub issues.

REPOSITORY INFO:
Type: {repo_type}
Project: {repository}

INSTRUCTIONS:
- Make minimal, targeted changes
- Follow existing code patterns
- Focus on the specific issue described
- Avoid unnecessary modifications

"""

ISSUE_CONTEXT_TEMPLATE = """CURRENT ISSUE:
Number: #{issue_number}
Title: {issue_title}
Description:
{issue_body}

RELEVANT FILES:
{relevant_files}

{provenance}

TASK: Analyze the issue and implement the necessary fix. Start by exploring the most relevant files to understand the current implementation."""

COMMIT_TEMPLATE = """[AI Fix] {title}

Fixes #{issue_number}

🤖 Generated with DevAgent
Co-Authored-By: {author_name} <{author_email}>
"""

PR_BODY_TEMPLATE = """## Summary
This PR addresses the issue described in #{issue_number}.

## Changes Made
The AI agent analyzed the issue and implemented the following changes:
{changes}

## Issue Reference
Fixes #{issue_number}

---
🤖 Generated with DevAgent using {provider}

Co-Authored-By: {author_name} <{author_email}>"""


def build_stable_prefix(structure: RepositoryStructure, repository: str) -> str:
    return STABLE_PREFIX_TEMPLATE.format(repo_type=structure.type, repository=repository)


def build_fix_prompt(
    structure: RepositoryStructure,
    repository: str,
    issue_number: str,
    issue_title: str,
    issue_body: str,
) -> str:
    """Build the full fix prompt for an issue.

    Args:
        structure: Repository context, including issue-specific relevant files.
        repository: "owner/name" of the repository.
        issue_number: The GitHub issue number.
        issue_title: Sanitized issue title.
        issue_body: Issue body text.

    Returns:
        The stable prefix followed by the issue context.
    """
    provenance = (
        "(Using cached repository analysis)"
        if structure.from_cache
        else "(Fresh repository analysis)"
    )
    issue_context = ISSUE_CONTEXT_TEMPLATE.format(
        issue_number=issue_number,
        issue_title=issue_title,
        issue_body=issue_body or "",
        relevant_files="\n".join(structure.relevant_files),
        provenance=provenance,
    )
    return build_stable_prefix(structure, repository) + issue_context


def build_commit_message(title: str, issue_number: str, author_name: str, author_email: str) -> str:
    return COMMIT_TEMPLATE.format(
        title=title,
        issue_number=issue_number,
        author_name=author_name,
        author_email=author_email,
    )


def build_pr_title(title: str, issue_number: str) -> str:
    return f"[AI Fix] {title or f'Issue #{issue_number}'}"


def build_pr_body(
    issue_number: str,
    changed_files: list[str],
    provider: str,
    author_name: str,
    author_email: str,
) -> str:
    if changed_files:
        changes = "\n".join(f"- `{f}`" for f in changed_files)
    else:
        changes = "- Analyzed the codebase and issue requirements"
    return PR_BODY_TEMPLATE.format(
        issue_number=issue_number,
        changes=changes,
        provider=provider,
        author_name=author_name,
        author_email=author_email,
    )
