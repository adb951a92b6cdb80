"""CLI entry point for devagent.

The bare command runs fix mode for the issue described by the environment;
--update-cache-mode refreshes the repository cache instead. Subcommands
inspect providers, repository context and the cache.
"""

import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import typer

from devagent import __version__
from devagent.agent import DevAgent
from devagent.analysis.repository import RepositoryAnalyzer
from devagent.cache.repository import RepositoryCache
from devagent.config import (
    CACHE_EXPIRY,
    PATTERNS_CACHE,
    STRUCTURE_CACHE,
    SUMMARIES_CACHE,
    AgentMode,
)
from devagent.exceptions import DevAgentError
from devagent.log import configure_logging
from devagent.providers.factory import ProviderFactory
from devagent.settings import AgentSettings, load_settings
from devagent.telemetry import CostTracker
from devagent.validation import validate_settings

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="devagent",
    help="devagent: AI-powered GitHub issue fixer",
    add_completion=False,
)

cache_app = typer.Typer(
    name="cache",
    help="Inspect or clear the repository cache",
    add_completion=False,
)
app.add_typer(cache_app, name="cache")


def _load(log_to_file: bool = False) -> AgentSettings:
    try:
        settings = load_settings()
    except DevAgentError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)
    configure_logging(settings.log_level, settings.log_dir if log_to_file else None)
    return settings


def _repository_name(settings: AgentSettings) -> str:
    # Local inspection works without REPOSITORY; the cache is keyed by directory name
    return settings.repository or f"local/{Path.cwd().name}"


def install_signal_handlers(tracker: CostTracker) -> None:
    """Flush telemetry and exit with 128 + signum on SIGTERM/SIGINT."""

    def handler(signum, frame):
        logger.warning(f"Received signal {signum}, flushing telemetry and exiting")
        tracker.flush()
        sys.exit(128 + signum)

    signal.signal(signal.SIGTERM, handler)
    signal.signal(signal.SIGINT, handler)


def run_agent(mode: AgentMode) -> None:
    """Validate settings and run DevAgent in the given mode."""
    settings = _load(log_to_file=True)
    tracker = CostTracker(settings.log_dir)
    install_signal_handlers(tracker)

    try:
        validate_settings(settings, mode)
        agent = DevAgent(settings, mode, tracker=tracker)
        pr = agent.run()
    except DevAgentError as e:
        logger.error(f"DevAgent execution failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        tracker.flush()

    if pr is not None:
        typer.echo(f"Created pull request #{pr.number}: {pr.url}")
    elif mode == AgentMode.FIX:
        typer.echo("No changes were made; no pull request created.")
    else:
        typer.echo("Cache update completed.")


@app.callback(invoke_without_command=True)
def main_command(
    ctx: typer.Context,
    update_cache_mode: bool = typer.Option(
        False,
        "--update-cache-mode",
        help="Refresh cached file summaries instead of fixing an issue",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Fix the GitHub issue described by the environment and open a PR."""
    if version:
        typer.echo(f"devagent {__version__}")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is not None:
        return
    run_agent(AgentMode.CACHE_UPDATE if update_cache_mode else AgentMode.FIX)


@app.command("providers")
def providers_command() -> None:
    """List AI providers in priority order with availability."""
    settings = _load()
    factory = ProviderFactory(settings)
    primary = settings.ai_provider or factory.detect_provider()

    for item in factory.list_available_providers():
        marker = "*" if item.provider == primary else " "
        status = "available" if item.available else f"unavailable ({item.reason})"
        typer.echo(f"{marker} {item.provider.value}: {status}")


@app.command("context")
def context_command(
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Issue title"),
    body: Optional[str] = typer.Option(None, "--body", "-b", help="Issue body"),
    as_json: bool = typer.Option(False, "--json", help="Print the context as JSON"),
) -> None:
    """Print the repository context for the current directory."""
    settings = _load()
    cache = RepositoryCache(_repository_name(settings), settings.cache_dir)
    context = RepositoryAnalyzer(cache).get_context(title, body)

    if as_json:
        typer.echo(context.model_dump_json(indent=2))
        return

    typer.echo(f"Type: {context.type}")
    typer.echo(f"Main language: {context.main_language}")
    typer.echo(f"Directories: {', '.join(context.directories) or '(none)'}")
    typer.echo(f"Config files: {', '.join(context.config_files) or '(none)'}")
    typer.echo(f"Source: {'cache' if context.from_cache else 'fresh analysis'}")
    if context.relevant_files:
        typer.echo("Relevant files:")
        for file in context.relevant_files:
            typer.echo(f"  - {file}")


@cache_app.command("show")
def cache_show() -> None:
    """Show the cache stores for the configured repository."""
    settings = _load()
    cache = RepositoryCache(_repository_name(settings), settings.cache_dir)

    typer.echo(f"Cache directory: {cache.cache_dir}")
    for name in (STRUCTURE_CACHE, SUMMARIES_CACHE, PATTERNS_CACHE):
        age = cache.age_minutes(name)
        if age is None:
            typer.echo(f"  {name}: not cached")
            continue
        state = "expired" if cache.is_expired(name) else "fresh"
        typer.echo(f"  {name}: {age:.0f} min old, {state} (ttl {CACHE_EXPIRY[name]} min)")

    structure = cache.get_structure()
    if structure is not None:
        typer.echo(f"Structure: {structure.type} ({structure.main_language})")
    typer.echo(f"File summaries: {len(cache.get_file_summaries())}")
    patterns = cache.get_issue_patterns()
    if patterns:
        typer.echo("Issue patterns:")
        typer.echo(json.dumps(patterns, indent=2))


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete the cache stores for the configured repository."""
    settings = _load()
    cache = RepositoryCache(_repository_name(settings), settings.cache_dir)
    removed = cache.clear()
    typer.echo(f"Removed {removed} cache file(s) from {cache.cache_dir}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
