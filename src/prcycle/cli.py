"""Command-line argument parsing for the PR cycle time report."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .week import is_valid_week_identifier


def _week_identifier(value: str) -> str:
    """Validate an ISO week identifier CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not an existing ``YYYY-Wnn`` week.
    """
    if not is_valid_week_identifier(value):
        raise argparse.ArgumentTypeError(
            f"invalid week {value!r}: expected ISO 8601 format YYYY-Wnn (e.g. 2025-W02)"
        )
    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for the cycle time report.

    Returns:
        Parsed CLI arguments with the data source (``org`` or ``snapshot``),
        week, project selection, metric and output options.
    """
    parser = argparse.ArgumentParser(
        prog="pr-cycle-time",
        description=(
            "Report p50/p90 pull-request cycle time (creation to merge) for an ISO week, "
            "organization-wide, for one project, or per project."
        ),
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--org",
        help="Azure DevOps organization to query (requires ADO_PAT).",
    )
    source.add_argument(
        "--snapshot",
        help="Path to a JSON snapshot of pull requests to use instead of Azure DevOps.",
    )

    parser.add_argument(
        "--week",
        type=_week_identifier,
        default=None,
        help="ISO week to report on, e.g. 2025-W02 (default: current UTC week).",
    )

    scope = parser.add_mutually_exclusive_group()
    scope.add_argument(
        "--project",
        default=None,
        help="Only count pull requests from this project (exact, case-sensitive).",
    )
    scope.add_argument(
        "--all-projects",
        action="store_true",
        help="Report one result per project instead of a single aggregate.",
    )

    parser.add_argument(
        "--metric",
        choices=("cycle-time", "review-wait"),
        default="cycle-time",
        help="Latency to report (default: cycle-time).",
    )
    parser.add_argument(
        "--exclude-project",
        action="append",
        default=[],
        help="Azure DevOps project to skip when listing the organization (repeatable).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a text report.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log progress at INFO level to stderr.",
    )

    return parser.parse_args(argv)
