"""File summary extraction used by cache-update mode."""

import re
from datetime import datetime, timezone
from pathlib import Path

from devagent.cache.models import FileSummary
from devagent.config import MAX_SUMMARY_FUNCTIONS

DEFINITION_PATTERN = re.compile(
    r"(?:function\s+(\w+)|const\s+(\w+)\s*=|class\s+(\w+)|def\s+(\w+))"
)


def extract_functions(content: str) -> list[str]:
    """Return up to ten function/class/const names defined in the content."""
    names = []
    for match in DEFINITION_PATTERN.finditer(content):
        names.append(next(group for group in match.groups() if group))
        if len(names) >= MAX_SUMMARY_FUNCTIONS:
            break
    return names


def infer_file_purpose(file: str, content: str) -> str:
    """Guess what a file is for from its path and content."""
    file_name = file.rsplit("/", 1)[-1]

    if "test" in file_name or "spec" in file_name:
        return "Testing"
    if "config" in file_name:
        return "Configuration"
    if "api/" in file or "routes/" in file:
        return "API/Routes"
    if "component" in file or "Component" in file_name:
        return "UI Component"
    if "util" in file or "helper" in file:
        return "Utility"
    if "export default" in content and "React" in content:
        return "React Component"
    if "app.use" in content or "express" in content:
        return "Server/Express"
    return "Source Code"


def build_file_summary(path: Path, file: str) -> FileSummary:
    """Build a summary for a file on disk.

    Args:
        path: Absolute or cwd-relative path used to read the file.
        file: Repository-relative path used for purpose inference.

    Returns:
        The summary.

    Raises:
        OSError: If the file cannot be read.
    """
    content = path.read_text(encoding="utf-8", errors="replace")
    return FileSummary(
        line_count=len(content.split("\n")),
        functions=extract_functions(content),
        last_modified=datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc),
        purpose=infer_file_purpose(file, content),
    )
