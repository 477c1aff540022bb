"""
Metrics Reporter for API Responses

Turns the aggregated store contents into the MetricsResponse served by
GET /metrics, adding averages, the provider failure rate and each
provider's share of wins.
"""

from promptarena.metrics.store import AggregatedMetrics, MetricsStore, get_metrics_store
from promptarena.schemas.comparison import MetricsResponse, ProviderMetrics


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class MetricsReporter:
    """
    Generate metrics reports from aggregated data.

    Example:
        reporter = MetricsReporter()
        return reporter.generate_report()
    """

    def __init__(self, store: MetricsStore | None = None):
        """
        Initialize the reporter.

        Args:
            store: MetricsStore instance to report from.
                   If None, uses the global singleton.
        """
        self._store = store or get_metrics_store()

    def generate_report(self) -> MetricsResponse:
        """
        Generate a complete metrics report.

        Returns:
            MetricsResponse ready for API serialization
        """
        agg = self._store.get_aggregated()

        providers: dict[str, ProviderMetrics] = {}
        for provider, data in agg.by_provider.items():
            providers[provider] = ProviderMetrics(
                provider=provider,
                call_count=data.calls,
                failure_count=data.failures,
                win_count=data.wins,
                avg_score=round(_mean(data.scores), 2),
                avg_latency_ms=round(_mean(data.latencies), 2),
                total_cost_usd=round(data.total_cost, 6),
                errors_by_code=dict(data.errors),
            )

        if agg.total_provider_calls > 0:
            failure_percent = agg.failed_provider_calls / agg.total_provider_calls * 100
        else:
            failure_percent = 0.0

        return MetricsResponse(
            total_comparisons=agg.total_comparisons,
            total_provider_calls=agg.total_provider_calls,
            failed_provider_calls=agg.failed_provider_calls,
            provider_failure_percent=round(failure_percent, 2),
            credits_used=agg.credits_used,
            credits_refunded=agg.credits_refunded,
            emails_sent=agg.emails_sent,
            emails_failed=agg.emails_failed,
            total_cost_usd=round(agg.total_cost, 6),
            providers=providers,
            win_distribution=self._win_distribution(agg),
        )

    @staticmethod
    def _win_distribution(agg: AggregatedMetrics) -> dict[str, float]:
        """Share of comparisons won by each provider, in percent."""
        if agg.total_comparisons == 0:
            return {}
        return {
            provider: round(data.wins / agg.total_comparisons * 100, 1)
            for provider, data in agg.by_provider.items()
        }

