"""
Metrics Store for Comparison Tracking

Aggregates per-comparison metrics for the /metrics endpoint. Storage is
in-memory and per process; nothing survives a restart.

The store is thread-safe using threading.Lock, since the FastAPI
event loop and the background webhook tasks record into the same
instance.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field


@dataclass
class ProviderCallMetric:
    """
    One provider's part in a comparison.

    Attributes:
        provider: Provider identifier
        success: Whether the provider answered
        score: Quality score given to the answer
        latency_ms: Wall-clock time of the call
        cost_usd: Estimated cost of the call
        error_code: Failure category, None on success
    """

    provider: str
    success: bool
    score: float
    latency_ms: float
    cost_usd: float = 0.0
    error_code: str | None = None


@dataclass
class ComparisonMetric:
    """
    Metric record for one comparison request.

    Attributes:
        timestamp: Unix timestamp when the comparison finished
        order_id: Order the comparison belongs to
        calls: One entry per selected provider
        winner: Winning provider, None if all failed
        credits_used: Credits charged (0 outside credit mode)
        credits_refunded: Credits refunded for failed providers
        email_sent: Whether the report email was accepted
    """

    timestamp: float
    order_id: str
    calls: list[ProviderCallMetric]
    winner: str | None
    credits_used: int = 0
    credits_refunded: int = 0
    email_sent: bool = False

    @property
    def failures(self) -> int:
        return sum(1 for call in self.calls if not call.success)

    @property
    def total_cost_usd(self) -> float:
        return sum(call.cost_usd for call in self.calls)


@dataclass
class _ProviderAggregate:
    """Internal aggregate for per-provider metrics."""

    calls: int = 0
    failures: int = 0
    wins: int = 0
    total_cost: float = 0.0
    scores: list[float] = field(default_factory=list)
    latencies: list[float] = field(default_factory=list)
    errors: dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class AggregatedMetrics:
    """
    Aggregated metrics snapshot for reporting.

    All fields are copies captured at a specific moment.
    """

    total_comparisons: int = 0
    total_provider_calls: int = 0
    failed_provider_calls: int = 0
    credits_used: int = 0
    credits_refunded: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    total_cost: float = 0.0
    by_provider: dict[str, _ProviderAggregate] = field(default_factory=dict)


class MetricsStore:
    """
    Thread-safe in-memory metrics storage.

    Example:
        store = MetricsStore()
        store.record(ComparisonMetric(
            timestamp=time.time(),
            order_id="ORD-1042",
            calls=[ProviderCallMetric("claude", True, 8.5, 1200.0)],
            winner="claude",
        ))
        print(store.get_aggregated().total_comparisons)
    """

    def __init__(self, max_history: int = 10000):
        """
        Initialize the metrics store.

        Args:
            max_history: Maximum latency and score samples kept per provider.
                         Counts and totals are preserved regardless of this limit.
        """
        self._lock = threading.Lock()
        self._max_history = max_history
        self._reset_aggregates()

    def _reset_aggregates(self) -> None:
        self._total_comparisons = 0
        self._total_calls = 0
        self._failed_calls = 0
        self._credits_used = 0
        self._credits_refunded = 0
        self._emails_sent = 0
        self._emails_failed = 0
        self._total_cost = 0.0
        self._by_provider: dict[str, _ProviderAggregate] = defaultdict(_ProviderAggregate)

    def record(self, metric: ComparisonMetric) -> None:
        """
        Record one comparison.

        Thread-safe. Updates the pre-computed aggregates.
        """
        with self._lock:
            self._total_comparisons += 1
            self._credits_used += metric.credits_used
            self._credits_refunded += metric.credits_refunded
            if metric.email_sent:
                self._emails_sent += 1
            else:
                self._emails_failed += 1

            for call in metric.calls:
                self._total_calls += 1
                self._total_cost += call.cost_usd

                agg = self._by_provider[call.provider]
                agg.calls += 1
                agg.total_cost += call.cost_usd
                agg.latencies.append(call.latency_ms)
                if call.success:
                    agg.scores.append(call.score)
                else:
                    self._failed_calls += 1
                    agg.failures += 1
                    agg.errors[call.error_code or "unexpected"] += 1

                if len(agg.latencies) > self._max_history:
                    agg.latencies = agg.latencies[-self._max_history :]
                if len(agg.scores) > self._max_history:
                    agg.scores = agg.scores[-self._max_history :]

            if metric.winner is not None:
                self._by_provider[metric.winner].wins += 1

    def get_aggregated(self) -> AggregatedMetrics:
        """
        Get current aggregated metrics.

        Thread-safe. The returned object is a copy and safe to use
        outside the lock.
        """
        with self._lock:
            by_provider = {
                provider: _ProviderAggregate(
                    calls=agg.calls,
                    failures=agg.failures,
                    wins=agg.wins,
                    total_cost=agg.total_cost,
                    scores=list(agg.scores),
                    latencies=list(agg.latencies),
                    errors=dict(agg.errors),
                )
                for provider, agg in self._by_provider.items()
            }
            return AggregatedMetrics(
                total_comparisons=self._total_comparisons,
                total_provider_calls=self._total_calls,
                failed_provider_calls=self._failed_calls,
                credits_used=self._credits_used,
                credits_refunded=self._credits_refunded,
                emails_sent=self._emails_sent,
                emails_failed=self._emails_failed,
                total_cost=self._total_cost,
                by_provider=by_provider,
            )

    def reset(self) -> None:
        """
        Reset all metrics.

        Thread-safe. Primarily used for testing.
        """
        with self._lock:
            self._reset_aggregates()


_store: MetricsStore | None = None


def get_metrics_store() -> MetricsStore:
    """
    Get the global metrics store instance.

    Returns:
        Singleton MetricsStore instance
    """
    global _store
    if _store is None:
        _store = MetricsStore()
    return _store
