"""Entry point for the PR cycle time report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from .ado_client import AdoClient
from .cli import parse_args
from .config import load_config
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    CycleTimeError,
    DataValidationError,
)
from .metrics import (
    compute_metrics_by_project,
    compute_org_or_project_metrics,
    compute_review_wait_by_project,
    compute_review_wait_metrics,
)
from .report import build_payload, generate_report
from .sources import InMemoryPullRequestSource, PullRequestSource
from .week import get_current_week, get_week_boundaries

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_DATA = 5


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_source(args: argparse.Namespace) -> PullRequestSource:
    if args.snapshot:
        return InMemoryPullRequestSource.from_json_file(args.snapshot)

    config = load_config(
        organization=args.org,
        exclude_projects=args.exclude_project,
        include_reviews=args.metric == "review-wait",
    )
    return AdoClient(config=config)


def orchestrate_cycle_time_report(argv: Optional[Sequence[str]] = None) -> int:
    """Resolve the week, fetch pull requests, compute metrics and print them.

    Returns:
        Process exit code: 0 on success, 2 configuration error, 3 authentication
        error, 4 Azure DevOps API error, 5 invalid snapshot data, 1 otherwise.
    """
    try:
        args = parse_args(argv)
        _configure_logging(args.verbose)

        week = args.week or get_current_week()
        interval = get_week_boundaries(week)
        source = _build_source(args)

        scope = "all projects" if args.all_projects else (args.project or "organization")
        print(f"Computing {args.metric} for {week} ({scope})...", file=sys.stderr)

        if args.all_projects:
            compute = (
                compute_review_wait_by_project if args.metric == "review-wait" else compute_metrics_by_project
            )
            projects = compute(source, interval.start, interval.end)
            payload = build_payload(interval, projects=projects)
            text = generate_report(args.metric, interval, projects=projects)
        else:
            compute = (
                compute_review_wait_metrics if args.metric == "review-wait" else compute_org_or_project_metrics
            )
            result = compute(source, interval.start, interval.end, args.project)
            payload = build_payload(interval, result=result, project=args.project)
            text = generate_report(args.metric, interval, result=result, project=args.project)

        print(json.dumps(payload, indent=2) if args.json else text)
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        print(f"Authentication error: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except ApiError as exc:
        print(f"Azure DevOps API error: {exc}", file=sys.stderr)
        return EXIT_API
    except DataValidationError as exc:
        print(f"Invalid data: {exc}", file=sys.stderr)
        return EXIT_DATA
    except CycleTimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected failure while generating the cycle time report")
        return EXIT_UNEXPECTED


def main() -> None:
    """Console script entry point."""
    raise SystemExit(orchestrate_cycle_time_report())


if __name__ == "__main__":
    main()
