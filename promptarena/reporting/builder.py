"""
Comparison Report Builder

Ranks the providers of one comparison by score and renders the markdown
report that is emailed to the customer.

Ranking is a stable descending sort on score, so ties keep the order in
which the customer selected the providers. The winner is the best-ranked
provider that actually answered; a failed provider never wins.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from promptarena.billing.credits import CreditInfo, RefundStatus
from promptarena.scoring.scorer import ScoreResult

if TYPE_CHECKING:
    from promptarena.dispatcher.handlers import Outcome


REPORT_TITLE = "# AI Comparison Report"
PROMPT_EXCERPT_CHARS = 100


@dataclass(frozen=True)
class RankedEntry:
    """One provider's place in the ranking."""

    rank: int
    outcome: "Outcome"
    score: ScoreResult

    @property
    def provider(self) -> str:
        return self.outcome.provider

    @property
    def display_name(self) -> str:
        return self.outcome.display_name


@dataclass(frozen=True)
class ComparisonReport:
    """
    Ranked comparison of every provider for one request.

    Attributes:
        prompt: The customer's prompt
        entries: Providers in ranked order (rank 1 first)
        winner: Best-ranked successful provider, None if all failed
        all_failed: True when no provider answered
        summary: One-line summary
        recommendation: Closing recommendation
        text: Rendered markdown report
        credit_info: Credit usage, when the request was billed in credits
        refund_status: Outcome of the refund for failed providers
        generated_at: Report timestamp (UTC)
    """

    prompt: str
    entries: tuple[RankedEntry, ...]
    winner: RankedEntry | None
    all_failed: bool
    summary: str
    recommendation: str
    text: str
    credit_info: CreditInfo | None = None
    refund_status: RefundStatus = RefundStatus.NOT_ATTEMPTED
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _excerpt(text: str, limit: int) -> str:
    text = text.strip()
    return text[:limit] + "..." if len(text) > limit else text


def _format_score(score: float) -> str:
    return f"{score:.1f}/10"


def _refund_label(credit_info: CreditInfo, refund_status: RefundStatus) -> str:
    if not credit_info.refunded or refund_status is RefundStatus.COMPLETED:
        return "refunded"
    if refund_status is RefundStatus.FAILED:
        return "refund pending"
    return "refundable"


class ReportBuilder:
    """
    Build ComparisonReports from outcomes and scores.

    Example:
        builder = ReportBuilder(max_response_chars=2000)
        report = builder.build(prompt, outcomes, scores, credit_info)
        send(report.text)
    """

    def __init__(self, max_response_chars: int = 2000):
        """
        Initialize the builder.

        Args:
            max_response_chars: Responses longer than this are truncated
                                in the rendered report.
        """
        self._max_response_chars = max_response_chars

    def rank(
        self, outcomes: Sequence["Outcome"], scores: Sequence[ScoreResult]
    ) -> list[RankedEntry]:
        """
        Rank providers by score, highest first; ties keep selection order.

        Raises:
            ValueError: If outcomes and scores differ in length.
        """
        if len(outcomes) != len(scores):
            raise ValueError(
                f"Got {len(outcomes)} outcomes but {len(scores)} scores"
            )
        order = sorted(range(len(outcomes)), key=lambda i: -scores[i].score)
        return [
            RankedEntry(rank=position + 1, outcome=outcomes[i], score=scores[i])
            for position, i in enumerate(order)
        ]

    def build(
        self,
        prompt: str,
        outcomes: Sequence["Outcome"],
        scores: Sequence[ScoreResult],
        credit_info: CreditInfo | None = None,
        refund_status: RefundStatus = RefundStatus.NOT_ATTEMPTED,
        generated_at: datetime | None = None,
    ) -> ComparisonReport:
        """
        Build the comparison report.

        Args:
            prompt: The customer's prompt.
            outcomes: One outcome per selected provider, in selection order.
            scores: Score for each outcome, aligned with outcomes.
            credit_info: Credit usage to show in the header, if billed in credits.
            refund_status: Whether the refund for failed providers went through;
                           the credit wording never claims more than that.
            generated_at: Report timestamp; defaults to now (UTC).

        Returns:
            Immutable ComparisonReport with rendered markdown text.
        """
        generated_at = generated_at or datetime.now(timezone.utc)
        entries = self.rank(outcomes, scores)
        winner = next((e for e in entries if e.outcome.success), None)

        if winner is None:
            summary = f"All {len(entries)} providers failed to respond."
            recommendation = "Please try again later."
            text = self._render_total_failure(
                prompt, outcomes, credit_info, refund_status, generated_at
            )
        else:
            summary = (
                f"{winner.display_name} won with {_format_score(winner.score.score)} "
                f"across {len(entries)} providers."
            )
            recommendation = (
                f"{winner.display_name} provided the best response for this type of prompt."
            )
            text = self._render(
                prompt, outcomes, entries, winner, credit_info, refund_status, generated_at
            )

        return ComparisonReport(
            prompt=prompt,
            entries=tuple(entries),
            winner=winner,
            all_failed=winner is None,
            summary=summary,
            recommendation=recommendation,
            text=text,
            credit_info=credit_info,
            refund_status=refund_status,
            generated_at=generated_at,
        )

    def _render_header(
        self,
        prompt: str,
        outcomes: Sequence["Outcome"],
        credit_info: CreditInfo | None,
        refund_status: RefundStatus,
        generated_at: datetime,
    ) -> list[str]:
        providers = ", ".join(o.display_name for o in outcomes)
        lines = [
            REPORT_TITLE,
            "",
            f'**Prompt:** "{_excerpt(prompt, PROMPT_EXCERPT_CHARS)}"',
            f"**Date:** {generated_at.strftime('%Y-%m-%d')}",
            f"**AIs Tested:** {providers}",
        ]
        if credit_info is not None:
            lines.append(
                f"**Credits:** {credit_info.used} used, "
                f"{credit_info.refunded} {_refund_label(credit_info, refund_status)}, "
                f"{credit_info.net} net"
            )
        lines.append("")
        return lines

    def _render_total_failure(
        self,
        prompt: str,
        outcomes: Sequence["Outcome"],
        credit_info: CreditInfo | None,
        refund_status: RefundStatus,
        generated_at: datetime,
    ) -> str:
        lines = self._render_header(
            prompt, outcomes, credit_info, refund_status, generated_at
        )
        lines.append("## Summary")
        lines.append("")
        lines.append(
            f"All {len(outcomes)} providers failed to respond, so no comparison "
            "could be made."
        )
        owed = credit_info.refunded if credit_info is not None else 0
        if owed and refund_status is RefundStatus.COMPLETED:
            lines.append(f"Your {owed} credits have been refunded.")
        elif owed and refund_status is RefundStatus.FAILED:
            lines.append(
                f"Your {owed} credits will be refunded; the refund is still being processed."
            )
        else:
            lines.append(
                "No credits were deducted for this comparison, so nothing needed to be refunded."
            )
        lines.append("")
        return "\n".join(lines)

    def _render(
        self,
        prompt: str,
        outcomes: Sequence["Outcome"],
        entries: Sequence[RankedEntry],
        winner: RankedEntry,
        credit_info: CreditInfo | None,
        refund_status: RefundStatus,
        generated_at: datetime,
    ) -> str:
        lines = self._render_header(
            prompt, outcomes, credit_info, refund_status, generated_at
        )

        lines += [
            "## Summary",
            "",
            f"**Winner:** {winner.display_name} ({_format_score(winner.score.score)})",
            "",
            "## Detailed Results",
            "",
        ]
        for entry in entries:
            lines += self._render_entry(entry)

        lines += self._render_insights(entries)
        lines += [
            "## Recommendations",
            "",
            f"**Best Overall:** {winner.display_name} with score "
            f"{_format_score(winner.score.score)}",
            "",
        ]
        return "\n".join(lines)

    def _render_entry(self, entry: RankedEntry) -> list[str]:
        score = entry.score
        lines = [f"### {entry.rank}. {entry.display_name} - {_format_score(score.score)}", ""]

        if not entry.outcome.success:
            lines += [
                f"**Status:** Unavailable ({entry.outcome.error})",
                "",
                "---",
                "",
            ]
            return lines

        response = entry.outcome.response_text.strip()
        if len(response) > self._max_response_chars:
            response = response[: self._max_response_chars].rstrip() + "\n\n*[Response truncated]*"

        lines += [
            "**Response:**",
            response,
            "",
            "**Analysis:**",
            f"- Word Count: {score.word_count}",
            f"- Sentences: {score.sentences}",
            f"- Paragraphs: {score.paragraphs}",
            f"- Response Time: {entry.outcome.latency_ms / 1000:.1f}s",
            "",
        ]
        if score.pros:
            lines.append(f"**Strengths:** {', '.join(score.pros)}")
        if score.cons:
            lines.append(f"**Areas for Improvement:** {', '.join(score.cons)}")
        lines += ["", "---", ""]
        return lines

    def _render_insights(self, entries: Sequence[RankedEntry]) -> list[str]:
        answered = [e for e in entries if e.outcome.success]
        lengths = [e.score.length for e in answered]
        lines = ["## Insights", ""]
        lines.append(f"- {len(answered)} of {len(entries)} providers responded successfully")
        if lengths:
            lines.append(
                f"- Response lengths varied from {min(lengths)} to {max(lengths)} characters"
            )
        lines.append("")
        return lines
