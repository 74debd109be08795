"""
Command-line entry point for the GreenPick model advisor.

Loads environment variables, configures logging, builds the advisor from the
configuration and prints a tiered recommendation for one task description.

Exit codes: 0 when the task was classified confidently, 2 when the user has
to pick one of the suggested tasks, 1 on errors.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .common.utils import load_dotenv_vars, setup_logging
from .core.entities import OutcomeStatus, Recommendation

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NEEDS_CLARIFICATION = 2

NOISY_LOGGERS = ["urllib3.connectionpool", "httpcore", "filelock",
                 "sentence_transformers.SentenceTransformer", "huggingface_hub"]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="greenpick",
        description="Recommend the smallest model that fits a machine-learning task."
    )
    parser.add_argument("text", nargs="?", default=None,
                        help="Free-text task description, e.g. 'classify product images'.")
    parser.add_argument("--category", type=str, default=None,
                        help="Known task category; skips classification.")
    parser.add_argument("--subcategory", type=str, default=None,
                        help="Known task subcategory; skips classification.")
    parser.add_argument("--accuracy", type=float, default=0,
                        help="Minimum accuracy in percent (0 disables the filter).")
    parser.add_argument("--deployment", type=str, default=None,
                        choices=["browser", "edge", "cloud", "mobile", "server"],
                        help="Deployment target.")
    parser.add_argument("--no-embedder", action="store_true",
                        help="Use the keyword classifier only.")
    args = parser.parse_args(argv)

    if args.text is None and (args.category is None or args.subcategory is None):
        parser.error("a task description or both --category and --subcategory are required")
    return args


def format_recommendation(recommendation: Recommendation, advisor) -> str:
    outcome = recommendation.outcome
    lines = []

    if outcome.status == OutcomeStatus.ERROR:
        return f"Error: {outcome.reason}"

    if outcome.status == OutcomeStatus.NEEDS_CLARIFICATION:
        lines.append("Could not determine the task confidently. Did you mean:")
        lines.extend(f"  - {label}" for label in outcome.candidates)
        lines.append("Re-run with --category and --subcategory to pick one.")
        return "\n".join(lines)

    result = outcome.result
    lines.append(f"Task: {result.label} (confidence {result.confidence:.2f}, via {result.source.value})")

    models = recommendation.models
    for tier, group in models.iter_tiers():
        if not group.models and not group.hidden:
            continue
        lines.append(f"[{tier.value}]")
        for model in group.models:
            impact = advisor.impact(model)
            accuracy = f"{model.accuracy:.0%}" if model.accuracy is not None else "n/a"
            lines.append(f"  {model.name or model.id:<32} {model.size_mb:>10,.0f} MB  "
                         f"accuracy {accuracy:>4}  {impact.score_label}")
        if group.hidden:
            lines.append(f"  ({group.hidden} hidden by filters)")

    lines.append(f"{models.total_shown} models shown, {models.total_hidden} hidden.")
    if recommendation.top_picks:
        lines.append("Top picks: " + ", ".join(model.id for model in recommendation.top_picks))
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    from .orchestrator import AdvisorFactory

    advisor = AdvisorFactory.build(use_embedder=False if args.no_embedder else None)

    # classify waits for initialization up to the configured timeout
    init_task = advisor.launch() if args.category is None else None
    try:
        recommendation = await advisor.recommend(text=args.text,
                                                 category=args.category,
                                                 subcategory=args.subcategory,
                                                 accuracy_threshold=args.accuracy,
                                                 deployment_target=args.deployment)
    finally:
        if init_task is not None:
            init_task.cancel()
            await asyncio.gather(init_task, return_exceptions=True)

    print(format_recommendation(recommendation, advisor))

    status = recommendation.outcome.status
    if status == OutcomeStatus.CONFIDENT:
        return EXIT_OK
    if status == OutcomeStatus.NEEDS_CLARIFICATION:
        return EXIT_NEEDS_CLARIFICATION
    return EXIT_ERROR


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    load_dotenv_vars()
    setup_logging(disable_logger_names=NOISY_LOGGERS)

    try:
        return asyncio.run(run(args))
    except Exception as e:
        logger.error("GreenPick failed.", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
