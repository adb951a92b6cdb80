"""Run telemetry: token usage, cost, cache hits and errors.

Contains:
- ProviderStats: Per-provider counters
- CostTracker: Accumulates stats for a run and flushes them to JSON
"""

import json
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from devagent.providers.base import AIResponse, BaseAIProvider, estimate_tokens

logger = logging.getLogger(__name__)

TELEMETRY_FILE = "telemetry.json"


class ProviderStats(BaseModel):
    requests: int = 0
    errors: int = 0
    rate_limits: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0
    cost: float = 0.0


class RunTelemetry(BaseModel):
    started_at: float
    finished_at: Optional[float] = None
    cache_hits: int = 0
    cache_misses: int = 0
    execution_seconds: Optional[float] = None
    outcome: Optional[str] = None
    providers: dict[str, ProviderStats] = {}
    errors: list[str] = []


class CostTracker:
    """Collects telemetry for one run.

    Counters are in-memory; flush() writes the snapshot to
    <log_dir>/telemetry.json and may be called more than once.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.log_dir = log_dir
        self.data = RunTelemetry(started_at=time.time())

    def _stats(self, provider: str) -> ProviderStats:
        if provider not in self.data.providers:
            self.data.providers[provider] = ProviderStats()
        return self.data.providers[provider]

    def record_request(
        self,
        provider: BaseAIProvider,
        prompt: str,
        response: AIResponse,
    ) -> float:
        """Record a successful call and return its estimated cost.

        Token counts reported by the CLI take precedence; otherwise they are
        estimated from prompt and response text.
        """
        usage = replace(
            response.usage,
            input_tokens=response.usage.input_tokens or estimate_tokens(prompt),
            output_tokens=response.usage.output_tokens or estimate_tokens(response.text),
        )
        cost = provider.calculate_cost(usage)

        stats = self._stats(provider.provider.value)
        stats.requests += 1
        stats.input_tokens += usage.input_tokens
        stats.output_tokens += usage.output_tokens
        stats.cached_tokens += usage.cached_tokens
        stats.cost += cost
        logger.info(
            f"{provider.display_name}: {usage.input_tokens} input, "
            f"{usage.output_tokens} output tokens, ${cost:.4f}"
        )
        return cost

    def record_cache_hit(self, hit: bool = True) -> None:
        if hit:
            self.data.cache_hits += 1
        else:
            self.data.cache_misses += 1

    def record_error(self, provider: Optional[str], error: Exception) -> None:
        if provider:
            self._stats(provider).errors += 1
        self.data.errors.append(f"{type(error).__name__}: {error}")

    def record_rate_limit(self, provider: str) -> None:
        self._stats(provider).rate_limits += 1

    def record_execution(self, seconds: float, outcome: str) -> None:
        self.data.execution_seconds = round(seconds, 3)
        self.data.outcome = outcome

    @property
    def total_cost(self) -> float:
        return sum(stats.cost for stats in self.data.providers.values())

    def flush(self) -> Optional[Path]:
        """Write the telemetry snapshot; returns the file written, if any."""
        if self.log_dir is None:
            return None
        self.data.finished_at = time.time()
        path = self.log_dir / TELEMETRY_FILE
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.data.model_dump(), indent=2))
        except OSError as e:
            logger.warning(f"Could not write telemetry to {path}: {e}")
            return None
        return path
