"""Static configuration for devagent.

Runtime values (API keys, issue data, overrides) live in
devagent.settings.AgentSettings. This module only holds constants.
"""

import re
import tempfile
from enum import Enum
from pathlib import Path


class AIProvider(Enum):
    """Supported AI coding CLI providers."""

    CLAUDE = "claude"
    GEMINI = "gemini"
    OPENAI = "openai"


class AgentMode(Enum):
    """Modes the agent can run in."""

    FIX = "fix"
    CACHE_UPDATE = "cache-update"


# ============================================================
# PROVIDER PRIORITY AND API KEYS
# ============================================================

# Detection and fallback share this order
PROVIDER_PRIORITY = [AIProvider.CLAUDE, AIProvider.GEMINI, AIProvider.OPENAI]

API_KEY_ENV_VARS = {
    AIProvider.CLAUDE: "ANTHROPIC_API_KEY",
    AIProvider.GEMINI: "GOOGLE_API_KEY",
    AIProvider.OPENAI: "OPENAI_API_KEY",
}


# ============================================================
# PROVIDER CLI DEFAULTS
# ============================================================

DEFAULT_TIMEOUT_SECONDS = 5 * 60
DEFAULT_MAX_BUFFER_BYTES = 20 * 1024 * 1024
VERSION_CHECK_TIMEOUT_SECONDS = 5
AUTH_CHECK_TIMEOUT_SECONDS = 30

CLAUDE_DEFAULT_ALLOWED_TOOLS = "Bash,Read,Edit,Write,Glob,Grep"

RATE_LIMIT_INDICATORS = [
    "rate limit",
    "rate-limit",
    "usage limit",
    "quota exceeded",
    "quota",
    "too many requests",
    "try again later",
]

EXIT_CODE_HINTS = {
    1: "common causes: authentication failure, rate limits, invalid prompt, or permission issues",
    127: "command not found - the CLI may not be installed",
    130: "interrupted by signal",
}

# ============================================================
# CACHE
# ============================================================

DEFAULT_CACHE_DIR = Path(tempfile.gettempdir()) / "devagent-cache"
DEFAULT_LOG_DIR = Path(tempfile.gettempdir()) / "agent-logs"

STRUCTURE_CACHE = "repo-structure"
SUMMARIES_CACHE = "file-summaries"
PATTERNS_CACHE = "issue-patterns"

# Minutes
CACHE_EXPIRY = {
    STRUCTURE_CACHE: 30,
    SUMMARIES_CACHE: 60 * 24 * 7,
    PATTERNS_CACHE: 60 * 24,
}

# ============================================================
# FILE RELEVANCE
# ============================================================

MAX_RELEVANT_FILES = 20
MAX_SCANNED_FILES = 100
MAX_LANGUAGE_SCAN_FILES = 50
RECENCY_THRESHOLD_DAYS = 7
MAX_KEYWORDS = 10
MAX_SUMMARY_FUNCTIONS = 10

RELEVANCE_SCORES = {
    "mentioned_in_issue": 100,
    "keyword_match": 50,
    "relevant_extension": 25,
    "recently_modified": 10,
    "test_file_penalty": -20,
}

SCANNED_EXTENSIONS = {
    "js", "ts", "jsx", "tsx", "py", "go", "java", "rb", "php", "vue", "css", "html",
}

WEB_EXTENSIONS = {"js", "ts", "jsx", "tsx", "css", "html", "vue"}
BACKEND_EXTENSIONS = {"py", "java", "go", "rb", "php", "cs"}
CONFIG_EXTENSIONS = {"json", "yml", "yaml", "toml", "ini"}

LANGUAGE_BY_EXTENSION = {
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".go": "Go",
    ".java": "Java",
    ".rb": "Ruby",
    ".php": "PHP",
    ".cpp": "C++",
    ".c": "C",
    ".rs": "Rust",
}

KEY_DIRECTORIES = [
    "src", "lib", "components", "pages", "api", "routes", "controllers", "services",
]

CONFIG_FILES = [
    "package.json", "tsconfig.json", "next.config.js", "webpack.config.js",
    "requirements.txt", "pyproject.toml", "go.mod", "Cargo.toml", "pom.xml",
    "build.gradle",
]

# Directories never descended into while scanning
SCAN_EXCLUDED_DIRS = {
    ".git", "node_modules", "dist", "build", "out", "__pycache__", ".venv", "venv",
}

TEST_FILE_PATTERN = re.compile(r"\.test\.|\.spec\.|test/|tests/")

CACHE_SKIP_PATTERNS = [
    re.compile(r"node_modules"),
    re.compile(r"\.git/"),
    re.compile(r"dist/|build/|out/"),
    re.compile(r"\.test\.|\.spec\."),
    re.compile(r"test/|tests/|__tests__"),
    re.compile(r"\.md$|\.txt$"),
    re.compile(r"\.lock$|yarn\.lock|package-lock\.json"),
]

CACHE_INCLUDE_PATTERNS = [
    re.compile(r"\.(js|ts|jsx|tsx|py|go|java|cpp|c|php|rb)$"),
    re.compile(r"(^|/)package\.json$"),
]

STRUCTURAL_FILE_MARKERS = [
    "package.json", ".config.", "tsconfig.json", "webpack.config", "next.config",
    "requirements.txt", "pyproject.toml", "go.mod", "Cargo.toml", "pom.xml",
    "build.gradle", "Gemfile",
]

# ============================================================
# GIT
# ============================================================

DEFAULT_BASE_BRANCH = "main"
BRANCH_PREFIX = "ai/issue-"
DEFAULT_GIT_USER_NAME = "DevAgent"
DEFAULT_GIT_USER_EMAIL = "devagent@github-actions.local"

REQUIRED_ENV_VARS = {
    AgentMode.FIX: ["GITHUB_TOKEN", "ISSUE_NUMBER", "REPOSITORY"],
    AgentMode.CACHE_UPDATE: ["GITHUB_TOKEN", "REPOSITORY"],
}
