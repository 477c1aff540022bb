"""
Quality Scorer for Provider Responses

Scores a response from 0 to 10 using shape heuristics only: length,
structure markers, sentence/paragraph counts and a few keyword checks.
No model calls, no I/O, no hidden state: the same text and tool
context always produce the same ScoreResult.

Weighting (general context, base 5):
- Detailed (> 75 words)                +1.5
- Structured (newline, bullet, list)   +1.0
- Coherent (> 1 sentence, < 40 w/s)    +1.0
- Examples ("example", "for instance") +0.5
- Actionable ("recommend", ...)        +0.5
- Length > 300 characters              +0.5
- More than one paragraph              +0.5

Specialized contexts (professional, financial, real estate) start at 6,
need > 150 words to count as detailed, and earn +0.5 each for
financial-analysis and market/risk vocabulary.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from promptarena.dispatcher.handlers import Outcome


class ToolContext(str, Enum):
    """Kind of comparison the customer ordered."""

    GENERAL = "general"
    PROFESSIONAL = "professional"
    FINANCIAL = "financial"
    REAL_ESTATE = "real_estate"

    @property
    def is_specialized(self) -> bool:
        return self is not ToolContext.GENERAL

    @classmethod
    def parse(cls, value: "str | ToolContext | None") -> "ToolContext":
        """
        Map a client-supplied value to a ToolContext.

        Accepts any case and "-" or " " separators ("Real Estate").
        Unknown or missing values fall back to GENERAL.
        """
        if isinstance(value, ToolContext):
            return value
        if not value:
            return cls.GENERAL
        normalized = re.sub(r"[\s-]+", "_", value.strip().lower())
        try:
            return cls(normalized)
        except ValueError:
            return cls.GENERAL


GENERAL_BASE_SCORE = 5.0
SPECIALIZED_BASE_SCORE = 6.0
GENERAL_DETAIL_THRESHOLD = 75
SPECIALIZED_DETAIL_THRESHOLD = 150
BRIEF_WORD_THRESHOLD = 50
LONG_RESPONSE_CHARS = 300
MAX_WORDS_PER_SENTENCE = 40
MAX_SCORE = 10.0
MAX_PROS = 3
MAX_CONS = 2

UNAVAILABLE_CON = "Response unavailable"
EMPTY_CON = "Empty response"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_STRUCTURE = re.compile(r"\n|[*•]|(?:^|\s)-\s|(?:^|\s)\d+[.)]\s", re.MULTILINE)
_EXAMPLES = re.compile(r"example|for instance", re.IGNORECASE)
_ACTIONABLE = re.compile(r"recommend|suggest|should", re.IGNORECASE)
_FINANCIAL = re.compile(
    r"\b(?:cash flow|roi|return on investment|cap rate|net operating income|"
    r"noi|valuation|appreciation|mortgage|revenue|profit margin|equity)\b",
    re.IGNORECASE,
)
_MARKET_RISK = re.compile(
    r"\b(?:market|risks?|volatility|comparables?|comps|vacancy|demand|"
    r"interest rates?)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ScoreResult:
    """
    Heuristic quality assessment of one response.

    Attributes:
        score: Quality score in [0, 10], one decimal
        word_count: Whitespace-separated tokens
        sentences: Non-empty segments between ., ! and ?
        paragraphs: Non-empty segments between blank lines
        length: Character length of the response
        pros: Up to 3 strengths, in fixed precedence order
        cons: Up to 2 weaknesses, in fixed precedence order
    """

    score: float
    word_count: int = 0
    sentences: int = 0
    paragraphs: int = 0
    length: int = 0
    pros: tuple[str, ...] = ()
    cons: tuple[str, ...] = ()

    @classmethod
    def unavailable(cls) -> "ScoreResult":
        """Score given to a provider that failed to answer."""
        return cls(score=0.0, cons=(UNAVAILABLE_CON,))

    @classmethod
    def empty(cls) -> "ScoreResult":
        """Score given to an empty or whitespace-only answer."""
        return cls(score=0.0, cons=(EMPTY_CON,))


class QualityScorer:
    """
    Deterministic heuristic scorer.

    Example:
        scorer = QualityScorer()
        result = scorer.score(text, ToolContext.GENERAL)
        print(f"{result.score}/10", result.pros, result.cons)
    """

    def score(
        self, text: str | None, tool_context: ToolContext | str | None = None
    ) -> ScoreResult:
        """
        Score one response text.

        Args:
            text: Provider response. None, empty and whitespace-only score 0.
            tool_context: Comparison context; specialized contexts use
                          a higher base, a higher detail bar and domain bonuses.

        Returns:
            ScoreResult with score, metrics, pros and cons.
        """
        if text is None or not text.strip():
            return ScoreResult.empty()

        context = ToolContext.parse(tool_context)

        word_count = len(text.split())
        sentences = sum(1 for s in _SENTENCE_SPLIT.split(text) if s.strip())
        paragraphs = sum(1 for p in _PARAGRAPH_SPLIT.split(text) if p.strip())
        length = len(text)

        detail_threshold = (
            SPECIALIZED_DETAIL_THRESHOLD if context.is_specialized else GENERAL_DETAIL_THRESHOLD
        )
        has_structure = bool(_STRUCTURE.search(text))
        is_detailed = word_count > detail_threshold
        is_coherent = sentences > 1 and word_count / sentences < MAX_WORDS_PER_SENTENCE
        has_examples = bool(_EXAMPLES.search(text))
        is_actionable = bool(_ACTIONABLE.search(text))
        is_brief = word_count < BRIEF_WORD_THRESHOLD

        score = SPECIALIZED_BASE_SCORE if context.is_specialized else GENERAL_BASE_SCORE
        if is_detailed:
            score += 1.5
        if has_structure:
            score += 1.0
        if is_coherent:
            score += 1.0
        if has_examples:
            score += 0.5
        if is_actionable:
            score += 0.5
        if length > LONG_RESPONSE_CHARS:
            score += 0.5
        if paragraphs > 1:
            score += 0.5
        if context.is_specialized:
            if _FINANCIAL.search(text):
                score += 0.5
            if _MARKET_RISK.search(text):
                score += 0.5

        pros: list[str] = []
        if is_detailed:
            pros.append("Detailed and comprehensive")
        if has_structure:
            pros.append("Well-structured format")
        if is_coherent:
            pros.append("Clear and coherent")
        if has_examples:
            pros.append("Includes helpful examples")
        if is_actionable:
            pros.append("Provides actionable advice")

        cons: list[str] = []
        if is_brief:
            cons.append("Quite brief")
        elif not is_detailed:
            cons.append("Could be more detailed")
        if not has_structure:
            cons.append("Could use better formatting")
        if not is_coherent:
            cons.append("Could improve flow")

        return ScoreResult(
            score=min(round(score, 1), MAX_SCORE),
            word_count=word_count,
            sentences=sentences,
            paragraphs=paragraphs,
            length=length,
            pros=tuple(pros[:MAX_PROS]),
            cons=tuple(cons[:MAX_CONS]),
        )

    def score_outcome(
        self, outcome: "Outcome", tool_context: ToolContext | str | None = None
    ) -> ScoreResult:
        """Score an outcome; failed outcomes get the fixed unavailable score."""
        if not outcome.success:
            return ScoreResult.unavailable()
        return self.score(outcome.response_text, tool_context)
