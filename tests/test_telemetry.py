"""Tests for devagent.telemetry module."""

import json

import pytest

from devagent.config import AIProvider
from devagent.providers import (
    AIResponse,
    ClaudeProvider,
    GeminiProvider,
    ProviderConfig,
    RateLimitError,
    TokenUsage,
)
from devagent.telemetry import TELEMETRY_FILE, CostTracker


@pytest.fixture
def tracker(temp_dir):
    return CostTracker(temp_dir / "logs")


def _claude(log_dir):
    return ClaudeProvider(ProviderConfig(provider=AIProvider.CLAUDE, api_key="k"), log_dir)


class TestRecordRequest:
    """Tests for CostTracker.record_request."""

    def test_uses_reported_usage(self, tracker, temp_dir):
        """Test that CLI-reported tokens drive the cost."""
        provider = _claude(temp_dir)
        response = AIResponse(usage=TokenUsage(input_tokens=1_000_000, output_tokens=0))

        cost = tracker.record_request(provider, "prompt", response)

        assert cost == pytest.approx(3.0)
        stats = tracker.data.providers["claude"]
        assert stats.requests == 1
        assert stats.input_tokens == 1_000_000

    def test_estimates_missing_usage(self, tracker, temp_dir):
        """Test estimation when the CLI reports no tokens."""
        provider = GeminiProvider(ProviderConfig(provider=AIProvider.GEMINI, api_key="k"), temp_dir)
        response = AIResponse(messages=[{"content": "x" * 8}])

        tracker.record_request(provider, "p" * 40, response)

        stats = tracker.data.providers["gemini"]
        assert stats.input_tokens == 10
        assert stats.output_tokens == 2

    def test_response_usage_left_untouched(self, tracker, temp_dir):
        """Test that estimates do not leak into the caller's response."""
        provider = GeminiProvider(ProviderConfig(provider=AIProvider.GEMINI, api_key="k"), temp_dir)
        response = AIResponse(messages=[{"content": "done"}])

        tracker.record_request(provider, "p" * 40, response)

        assert response.usage == TokenUsage()

    def test_total_cost_accumulates(self, tracker, temp_dir):
        """Test that costs add up across requests."""
        provider = _claude(temp_dir)
        for _ in range(2):
            tracker.record_request(
                provider, "p", AIResponse(usage=TokenUsage(input_tokens=1, output_tokens=1_000_000))
            )

        assert tracker.total_cost == pytest.approx(30.0, rel=1e-3)


class TestEvents:
    """Tests for cache, error and execution events."""

    def test_cache_hits_and_misses(self, tracker):
        """Test cache event counters."""
        tracker.record_cache_hit(True)
        tracker.record_cache_hit(False)
        tracker.record_cache_hit()

        assert tracker.data.cache_hits == 2
        assert tracker.data.cache_misses == 1

    def test_errors_and_rate_limits(self, tracker):
        """Test provider error bookkeeping."""
        tracker.record_rate_limit("claude")
        tracker.record_error("claude", RateLimitError("limit"))
        tracker.record_error(None, ValueError("boom"))

        assert tracker.data.providers["claude"].rate_limits == 1
        assert tracker.data.providers["claude"].errors == 1
        assert tracker.data.errors == ["RateLimitError: limit", "ValueError: boom"]

    def test_record_execution(self, tracker):
        """Test execution outcome recording."""
        tracker.record_execution(1.23456, "success")

        assert tracker.data.execution_seconds == 1.235
        assert tracker.data.outcome == "success"


class TestFlush:
    """Tests for CostTracker.flush."""

    def test_writes_json(self, tracker, temp_dir):
        """Test that flush writes telemetry.json in the log dir."""
        tracker.record_cache_hit(True)

        path = tracker.flush()

        assert path == temp_dir / "logs" / TELEMETRY_FILE
        data = json.loads(path.read_text())
        assert data["cache_hits"] == 1
        assert data["finished_at"] is not None

    def test_flush_is_repeatable(self, tracker):
        """Test that flushing twice overwrites the snapshot."""
        tracker.flush()
        tracker.record_cache_hit(False)
        path = tracker.flush()

        assert json.loads(path.read_text())["cache_misses"] == 1

    def test_no_log_dir(self):
        """Test that flush without a log dir is a no-op."""
        assert CostTracker().flush() is None
