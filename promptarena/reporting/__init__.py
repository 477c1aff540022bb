"""
Reporting module: ranking and markdown rendering of comparisons.

Public API:
- RankedEntry: One provider's rank, outcome and score
- ComparisonReport: Immutable ranked report for one request
- ReportBuilder: build(prompt, outcomes, scores, credit_info) -> ComparisonReport
"""

from promptarena.reporting.builder import ComparisonReport, RankedEntry, ReportBuilder

__all__ = [
    "RankedEntry",
    "ComparisonReport",
    "ReportBuilder",
]
