#!/usr/bin/env python3
"""
Comparison Runner Script

Runs one prompt through the PromptArena pipeline from the command line
and prints the ranked markdown report.

This script:
1. Loads settings from the environment / .env
2. Builds the provider registry and pipeline the same way the API does
3. Runs the comparison (optionally emailing the report)
4. Prints the report and a per-provider summary

Usage:
    python scripts/run_comparison.py "Explain photosynthesis"
    python scripts/run_comparison.py "Explain photosynthesis" --providers ChatGPT Claude
    python scripts/run_comparison.py "Is 12 Elm St a good buy?" --tool-context real_estate
    python scripts/run_comparison.py "Explain photosynthesis" --email me@example.com
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import httpx

from promptarena.config import configure_logging, get_settings
from promptarena.dispatcher import ProviderClients
from promptarena.exceptions import PromptArenaError
from promptarena.main import build_pipeline
from promptarena.pipeline import PipelineResult
from promptarena.registry import build_provider_registry
from promptarena.schemas import ComparisonRequest
from promptarena.scoring import ToolContext
from promptarena.services.webhook import generate_order_id

DEFAULT_PROVIDERS = ["ChatGPT", "Claude", "Gemini"]


async def run(request: ComparisonRequest, send_email: bool) -> PipelineResult:
    """Build the pipeline, run one comparison and close the clients."""
    settings = get_settings()
    registry = build_provider_registry(settings)
    clients = ProviderClients(httpx.AsyncClient())
    try:
        pipeline = build_pipeline(settings, registry, clients)
        return await pipeline.run(request, send_email=send_email)
    finally:
        await clients.aclose()


def print_summary(result: PipelineResult, elapsed_seconds: float) -> None:
    """Print a per-provider table after the report."""

    print("\n" + "=" * 60)
    print("PROMPTARENA COMPARISON")
    print("=" * 60)

    print(f"\nOrder:   {result.order_id}")
    print(f"Winner:  {result.winner or 'none'}")
    print(f"Elapsed: {elapsed_seconds:.2f}s")
    if result.email:
        print(f"Email:   {'sent' if result.email_sent else 'not sent'}")

    print(f"\n  {'Rank':<5} {'Provider':<12} {'Score':>6} {'Latency':>9} {'Status':<20}")
    print(f"  {'-'*5} {'-'*12} {'-'*6} {'-'*9} {'-'*20}")
    for entry in result.report.entries:
        outcome = entry.outcome
        status = "ok" if outcome.success else (outcome.error or "failed")
        print(
            f"  {entry.rank:<5} {entry.display_name:<12} "
            f"{entry.score.score:>6.1f} {outcome.latency_ms:>7.0f}ms "
            f"{status[:20]:<20}"
        )

    if result.costs:
        total = sum(cost.total_cost_usd for cost in result.costs.values())
        print(f"\nEstimated cost: ${total:.6f}")

    print("\n" + "=" * 60)


def main():
    """Main entry point for the comparison runner."""

    parser = argparse.ArgumentParser(
        description="Compare LLM answers to one prompt",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_comparison.py "Explain photosynthesis"
  python scripts/run_comparison.py "Explain photosynthesis" --providers Claude Gemini
  python scripts/run_comparison.py "Rental yield?" --tool-context financial
        """
    )

    parser.add_argument("prompt", help="Prompt sent to every provider")
    parser.add_argument(
        "--providers",
        nargs="+",
        default=DEFAULT_PROVIDERS,
        help="Providers to compare (default: ChatGPT Claude Gemini)"
    )
    parser.add_argument(
        "--tool-context",
        choices=[context.value for context in ToolContext],
        default=ToolContext.GENERAL.value,
        help="Scoring context (default: general)"
    )
    parser.add_argument(
        "--property-address",
        help="Property address appended to the prompt"
    )
    parser.add_argument(
        "--email",
        default="",
        help="Email the report to this address"
    )
    parser.add_argument(
        "--no-email",
        action="store_true",
        help="Never send the report email"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Print only the summary, not the full report"
    )

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)

    try:
        request = ComparisonRequest(
            prompt=args.prompt,
            selected_providers=args.providers,
            order_id=generate_order_id(),
            email=args.email,
            tool_context=args.tool_context,
            property_address=args.property_address,
        )
    except ValueError as e:
        print(f"ERROR: Invalid request: {e}")
        sys.exit(1)

    send_email = bool(args.email) and not args.no_email

    start_time = time.time()
    try:
        result = asyncio.run(run(request, send_email))
    except PromptArenaError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if not args.quiet:
        print(result.report.text)
    print_summary(result, time.time() - start_time)

    sys.exit(0 if result.winner else 1)


if __name__ == "__main__":
    main()
