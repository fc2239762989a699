"""Rendering of cycle time results as text reports and JSON payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .models import MetricsResult, ProjectMetrics, WeekInterval

METRIC_TITLES = {
    "cycle-time": "PR Cycle Time (Creation to Merge)",
    "review-wait": "PR Review Wait Time (Creation to First Review)",
}


def format_hours(hours: float) -> str:
    """Format an hour value with two decimals, e.g. ``"5.50h"``."""
    return f"{hours:.2f}h"


def format_timestamp(value: datetime) -> str:
    """Format a datetime as UTC ISO8601 with a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _result_lines(result: MetricsResult, indent: str = "   ") -> List[str]:
    lines = [
        f"{indent}Samples: {result.count}",
        f"{indent}P50: {format_hours(result.p50_hours)}",
        f"{indent}P90: {format_hours(result.p90_hours)}",
    ]
    if result.excluded:
        lines.append(f"{indent}Excluded (corrupt records): {result.excluded}")
    return lines


def generate_report(
    metric: str,
    interval: WeekInterval,
    result: Optional[MetricsResult] = None,
    projects: Optional[Mapping[str, MetricsResult]] = None,
    project: Optional[str] = None,
) -> str:
    """Generate a human-readable report for a single result or a per-project mapping.

    Args:
        metric: ``"cycle-time"`` or ``"review-wait"``.
        interval: Week the metrics were computed for.
        result: Organization-wide or single-project result.
        projects: Per-project results; takes precedence over ``result``.
        project: Project filter used to compute ``result``, if any.

    Returns:
        Formatted multi-line text report.
    """
    lines = [
        f"{METRIC_TITLES[metric]} Report",
        f"Week: {interval.week} ({format_timestamp(interval.start)} to {format_timestamp(interval.end)})",
        "",
    ]

    if projects is not None:
        unlisted = projects.unlisted_excluded if isinstance(projects, ProjectMetrics) else 0
        if not projects and not unlisted:
            lines.append("No merged pull requests in this week.")
        for name, project_result in projects.items():
            lines.append(f"Project: {name}")
            lines.extend(_result_lines(project_result))
            lines.append("")
        if unlisted:
            lines.append(f"Excluded (corrupt records, projects without samples): {unlisted}")
        return "\n".join(lines).rstrip("\n")

    lines.append(f"Project: {project}" if project else "Scope: Organization")
    if result is not None:
        lines.extend(_result_lines(result))
    return "\n".join(lines)


def build_payload(
    interval: WeekInterval,
    result: Optional[MetricsResult] = None,
    projects: Optional[Mapping[str, MetricsResult]] = None,
    project: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the JSON envelope for a single result or a per-project mapping."""
    envelope: Dict[str, Any] = {}

    if projects is not None:
        envelope["projects"] = {name: value.to_dict() for name, value in projects.items()}
    elif result is not None:
        envelope.update(result.to_dict())

    envelope["week"] = interval.week
    envelope["startDate"] = format_timestamp(interval.start)
    envelope["endDate"] = format_timestamp(interval.end)
    if projects is None and project:
        envelope["project"] = project
    return envelope
