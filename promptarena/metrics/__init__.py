"""
Metrics Module: Comparison Tracking and Reporting

Components:
    MetricsStore: Thread-safe in-memory aggregation of comparisons
    ComparisonMetric: One comparison's record
    ProviderCallMetric: One provider's part in a comparison
    AggregatedMetrics: Pre-computed aggregates for reporting
    MetricsReporter: Generate MetricsResponse for GET /metrics

Singleton Access:
    get_metrics_store(): Returns global MetricsStore instance
"""

from promptarena.metrics.store import (
    AggregatedMetrics,
    ComparisonMetric,
    MetricsStore,
    ProviderCallMetric,
    get_metrics_store,
)

from promptarena.metrics.reporter import MetricsReporter


__all__ = [
    # Storage
    "MetricsStore",
    "ComparisonMetric",
    "ProviderCallMetric",
    "AggregatedMetrics",
    "get_metrics_store",
    # Reporting
    "MetricsReporter",
]
