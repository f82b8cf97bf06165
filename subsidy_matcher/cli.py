"""Command line interface for eligibility-criteria inheritance."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import Settings, get_settings
from .exceptions import SubsidyMatcherError
from .models.inheritance import InheritanceAnalysis, InheritanceSummary
from .services.llm_service import LLMService
from .services.mongo_service import MongoService
from .services.template_inheritance import TemplateInheritanceService

logger = logging.getLogger(__name__)


def _print_analysis(analysis: InheritanceAnalysis) -> None:
    print(f"Found {analysis.templates} template subsidies spanning {analysis.template_agencies} agencies\n")
    print(f"Found {analysis.matched} potential matches out of {analysis.analyzed} incomplete subsidies")
    print(f"Match rate: {analysis.match_rate * 100:.1f}%\n")
    print("Top agencies with matchable subsidies:")
    for agency, count in analysis.top_agencies.items():
        print(f"  {agency}: {count} matches")
    print()


def _print_summary(summary: InheritanceSummary) -> None:
    for outcome in summary.outcomes:
        confidence = f"{outcome.confidence}%" if outcome.confidence is not None else "?"
        print(f"- {outcome.subsidy_id}: {outcome.status} (conf: {confidence}) {outcome.reason}")
    print("\n=== SUMMARY ===")
    print(f"Inherited: {summary.inherited}")
    print(f"Skipped: {summary.skipped}")
    print(f"Errors: {summary.errors}")
    if summary.dry_run:
        print("\nDRY RUN - No changes were made")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inherit eligibility criteria from similar template subsidies"
    )
    parser.add_argument("--analyze", action="store_true", help="Report potential template matches")
    parser.add_argument("--inherit", action="store_true", help="Validate matches and write criteria")
    parser.add_argument("--dry-run", action="store_true", help="Run the inherit pipeline without writing")
    parser.add_argument("--batch", type=int, default=None, help="Number of subsidies to process")
    parser.add_argument("--threshold", type=float, default=None, help="Minimum similarity score")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    llm = LLMService(settings)
    if args.inherit and not llm.is_configured:
        print("ERROR: AI API key not configured (set AI_API_KEY)", file=sys.stderr)
        await llm.close()
        return 1

    storage = MongoService(settings)
    try:
        await storage.connect()
        service = TemplateInheritanceService(settings, storage, llm)

        if args.analyze or not args.inherit:
            print("=== ANALYZING POTENTIAL MATCHES ===\n")
            _print_analysis(await service.analyze(threshold=args.threshold))

        if args.inherit:
            print("=== INHERITING ELIGIBILITY CRITERIA ===\n")
            summary = await service.run(batch_size=args.batch, dry_run=args.dry_run, threshold=args.threshold)
            _print_summary(summary)
    except SubsidyMatcherError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        await llm.close()
        await storage.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
