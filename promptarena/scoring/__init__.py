"""
Scoring module: deterministic heuristic quality scores.

Public API:
- ToolContext: Comparison context (general or specialized)
- ScoreResult: Score, text metrics, pros and cons for one response
- QualityScorer: score(text, tool_context) and score_outcome(outcome, tool_context)
"""

from promptarena.scoring.scorer import QualityScorer, ScoreResult, ToolContext

__all__ = [
    "ToolContext",
    "ScoreResult",
    "QualityScorer",
]
