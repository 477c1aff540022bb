"""
Comparison Pipeline

Runs one comparison end to end:

1. Validate the request (nothing is charged for a request that cannot run)
2. Deduct credits when the request is billed and a ledger is configured
3. Dispatch to every selected provider, score and reconcile
4. Refund credits for failed providers, then build the report so its
   refund wording matches what the ledger actually did
5. Email the report and record a metrics entry

A failed refund or email never changes the comparison result. Anything
unexpected after the deduction returns the credits not yet refunded.
"""

import logging
import time
from dataclasses import dataclass, field

from promptarena.billing.cost import CostBreakdown, CostCalculator
from promptarena.billing.credits import CreditInfo, CreditReconciler, RefundStatus
from promptarena.dispatcher.handlers import Dispatcher, Outcome
from promptarena.exceptions import LedgerError, UnknownProviderError
from promptarena.metrics.store import ComparisonMetric, MetricsStore, ProviderCallMetric
from promptarena.reporting.builder import ComparisonReport, ReportBuilder
from promptarena.schemas.comparison import ComparisonRequest
from promptarena.scoring.scorer import QualityScorer, ScoreResult
from promptarena.services.email import EmailSender
from promptarena.services.ledger import CreditLedgerClient

logger = logging.getLogger(__name__)

# Metrics bucket for every provider name the registry does not know
UNKNOWN_PROVIDER_METRIC = "unknown"


@dataclass
class PipelineResult:
    """
    Everything produced by one comparison.

    Attributes:
        order_id: Order the comparison belongs to
        email: Customer address the report was sent to
        report: Ranked, rendered comparison report
        outcomes: One outcome per selected provider, in selection order
        scores: Scores aligned with outcomes
        credit_info: Credit usage, None when the request was not billed in credits
        refund_status: Whether the refund for failed providers went through
        email_sent: Whether the email API accepted the report
        costs: Estimated cost per provider identifier
    """

    order_id: str
    email: str
    report: ComparisonReport
    outcomes: list[Outcome]
    scores: list[ScoreResult]
    credit_info: CreditInfo | None = None
    refund_status: RefundStatus = RefundStatus.NOT_ATTEMPTED
    email_sent: bool = False
    costs: dict[str, CostBreakdown] = field(default_factory=dict)

    @property
    def winner(self) -> str | None:
        return self.report.winner.provider if self.report.winner else None


class ComparisonPipeline:
    """
    Orchestrates dispatch, scoring, reporting and the post-report side effects.

    Collaborators are injected; email_sender, ledger and metrics_store are
    optional so scripts and tests can run the bare comparison.

    Example:
        pipeline = ComparisonPipeline(dispatcher, email_sender=sender, ledger=ledger)
        result = await pipeline.run(request)
        print(result.report.text)
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        scorer: QualityScorer | None = None,
        report_builder: ReportBuilder | None = None,
        reconciler: CreditReconciler | None = None,
        cost_calculator: CostCalculator | None = None,
        email_sender: EmailSender | None = None,
        ledger: CreditLedgerClient | None = None,
        metrics_store: MetricsStore | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._scorer = scorer or QualityScorer()
        self._report_builder = report_builder or ReportBuilder()
        self._reconciler = reconciler or CreditReconciler()
        self._cost_calculator = cost_calculator or CostCalculator(dispatcher.registry)
        self._email_sender = email_sender
        self._ledger = ledger
        self._metrics_store = metrics_store

    async def run(
        self, request: ComparisonRequest, send_email: bool = True
    ) -> PipelineResult:
        """
        Run one comparison.

        Args:
            request: Validated comparison request.
            send_email: Email the report when an email sender is configured.

        Returns:
            PipelineResult with the report, credits and email status.

        Raises:
            ValidationError: The prompt or provider selection is unusable.
            CreditDeductionError: Credits could not be deducted; no provider was called.
        """
        prompt = request.composed_prompt()
        providers = request.selected_providers
        self._dispatcher.validate(prompt, providers)

        credits_used = request.credits_used
        deducted = False
        if credits_used and self._ledger is not None:
            await self._ledger.deduct(request.email, request.order_id, credits_used)
            deducted = True
        refund_status = RefundStatus.NOT_ATTEMPTED
        credits_returned = 0

        logger.info(
            f"Running comparison for order {request.order_id}: "
            f"providers={len(providers)}, context={request.tool_context.value}"
        )

        try:
            outcomes = await self._dispatcher.dispatch(prompt, providers)
            scores = [
                self._scorer.score_outcome(outcome, request.tool_context)
                for outcome in outcomes
            ]
            credit_info = None
            if credits_used is not None:
                credit_info = self._reconciler.reconcile(credits_used, outcomes)

            if deducted and credit_info.refunded > 0:
                refunded = await self._refund(
                    request,
                    credit_info.refunded,
                    reason=f"{credit_info.refunded} provider(s) failed to respond",
                )
                if refunded:
                    refund_status = RefundStatus.COMPLETED
                    credits_returned = credit_info.refunded
                else:
                    refund_status = RefundStatus.FAILED

            report = self._report_builder.build(
                request.prompt, outcomes, scores, credit_info, refund_status
            )
            costs = self._estimate_costs(outcomes)
        except Exception:
            remaining = (credits_used or 0) - credits_returned
            if deducted and remaining > 0:
                await self._refund(
                    request, remaining, reason="Comparison failed before completion"
                )
            raise

        result = PipelineResult(
            order_id=request.order_id,
            email=request.email,
            report=report,
            outcomes=outcomes,
            scores=scores,
            credit_info=credit_info,
            refund_status=refund_status,
            costs=costs,
        )

        if send_email and self._email_sender is not None:
            result.email_sent = await self._email_sender.send_report(
                request.email,
                request.order_id,
                request.prompt,
                report,
                payment_id=request.payment_id,
                amount=request.amount,
            )

        self._record_metrics(result)

        logger.info(
            f"Comparison for order {request.order_id} complete: "
            f"winner={result.winner}, email_sent={result.email_sent}"
        )
        return result

    async def _refund(self, request: ComparisonRequest, credits: int, reason: str) -> bool:
        """Refund credits; a ledger failure is logged and reported as False."""
        try:
            await self._ledger.refund(request.email, request.order_id, credits, reason=reason)
        except LedgerError as e:
            logger.error(
                f"Refund of {credits} credits for order {request.order_id} failed: {e}"
            )
            return False
        return True

    def _estimate_costs(self, outcomes: list[Outcome]) -> dict[str, CostBreakdown]:
        costs: dict[str, CostBreakdown] = {}
        for outcome in outcomes:
            if not outcome.success:
                continue
            cost = self._cost_calculator.calculate_for_outcome(outcome)
            if cost is not None:
                costs[outcome.provider] = cost
        return costs

    def _record_metrics(self, result: PipelineResult) -> None:
        if self._metrics_store is None:
            return
        calls = [
            ProviderCallMetric(
                provider=(
                    UNKNOWN_PROVIDER_METRIC
                    if outcome.error_code == UnknownProviderError.code
                    else outcome.provider
                ),
                success=outcome.success,
                score=score.score,
                latency_ms=outcome.latency_ms,
                cost_usd=(
                    result.costs[outcome.provider].total_cost_usd
                    if outcome.provider in result.costs
                    else 0.0
                ),
                error_code=outcome.error_code,
            )
            for outcome, score in zip(result.outcomes, result.scores)
        ]
        credit_info = result.credit_info
        self._metrics_store.record(
            ComparisonMetric(
                timestamp=time.time(),
                order_id=result.order_id,
                calls=calls,
                winner=result.winner,
                credits_used=credit_info.used if credit_info else 0,
                credits_refunded=credit_info.refunded if credit_info else 0,
                email_sent=result.email_sent,
            )
        )
