"""PR latency metrics over a time window.

Entry points for callers such as the CLI or an HTTP handler:

- :func:`compute_org_or_project_metrics` / :func:`compute_metrics_by_project`
  for PR cycle time (creation to merge).
- :func:`compute_review_wait_metrics` / :func:`compute_review_wait_by_project`
  for PR review wait time (creation to first review).

Each call fetches one snapshot from the source. Fetch errors propagate
unchanged; corrupt records are excluded and counted in
``MetricsResult.excluded``, and per-project calls also total them in
``ProjectMetrics.excluded``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from .extract import extract_cycle_samples, extract_review_wait_samples
from .models import ExtractionResult, MetricsResult, ProjectMetrics, PullRequestRecord, WeekInterval
from .sources import PullRequestSource
from .stats import aggregate, group_by_project
from .week import as_utc, get_current_week, get_week_boundaries, get_week_identifier, is_valid_week_identifier

__all__ = [
    "compute_metrics_by_project",
    "compute_org_or_project_metrics",
    "compute_review_wait_by_project",
    "compute_review_wait_metrics",
    "get_current_week",
    "get_week_boundaries",
    "is_valid_week_identifier",
]

logger = logging.getLogger(__name__)

Extractor = Callable[[Iterable[PullRequestRecord], WeekInterval, Optional[str]], ExtractionResult]


def _interval(start: datetime, end: datetime) -> WeekInterval:
    start, end = as_utc(start), as_utc(end)
    return WeekInterval(week=get_week_identifier(start), start=start, end=end)


def _log_result(metric: str, scope: str, interval: WeekInterval, result: MetricsResult) -> None:
    logger.info(
        "Computed PR %s for %s (%s to %s): p50=%.2fh, p90=%.2fh, count=%d",
        metric,
        scope,
        interval.start.isoformat(),
        interval.end.isoformat(),
        result.p50_hours,
        result.p90_hours,
        result.count,
        extra={"scope": scope, "excluded": result.excluded},
    )


def _single(
    source: PullRequestSource,
    start: datetime,
    end: datetime,
    project: Optional[str],
    extractor: Extractor,
    metric: str,
) -> MetricsResult:
    interval = _interval(start, end)
    records = source.fetch_pull_requests(interval.start, interval.end, project)

    extraction = extractor(records, interval, project)
    result = aggregate(sample.hours for sample in extraction.samples)
    result.excluded = extraction.excluded

    _log_result(metric, project or "Organization", interval, result)
    return result


def _by_project(
    source: PullRequestSource,
    start: datetime,
    end: datetime,
    extractor: Extractor,
    metric: str,
) -> ProjectMetrics:
    interval = _interval(start, end)
    records = source.fetch_pull_requests(interval.start, interval.end, None)

    extraction = extractor(records, interval, None)
    grouped = ProjectMetrics(group_by_project(extraction.samples), excluded=extraction.excluded)

    for project, excluded in extraction.excluded_by_project().items():
        if project in grouped:
            grouped[project].excluded = excluded

    for project, result in grouped.items():
        _log_result(metric, project, interval, result)
    if grouped.unlisted_excluded:
        logger.warning(
            "Excluded %d corrupt PR records from projects without %s samples",
            grouped.unlisted_excluded,
            metric,
            extra={"week": interval.week},
        )
    return grouped


def compute_org_or_project_metrics(
    source: PullRequestSource,
    start: datetime,
    end: datetime,
    project: Optional[str] = None,
) -> MetricsResult:
    """Compute PR cycle time p50/p90 for PRs merged in ``[start, end)``.

    Args:
        source: Pull request data source.
        start: Inclusive window start; naive values are read as UTC.
        end: Exclusive window end; naive values are read as UTC.
        project: Optional exact project name; all projects when omitted.
    """
    return _single(source, start, end, project, extract_cycle_samples, "cycle time")


def compute_metrics_by_project(
    source: PullRequestSource,
    start: datetime,
    end: datetime,
) -> ProjectMetrics:
    """Compute PR cycle time p50/p90 per project, in first-seen project order.

    Projects with no samples in the window are absent from the mapping.
    Corrupt records of those projects still count towards
    ``ProjectMetrics.excluded``.
    """
    return _by_project(source, start, end, extract_cycle_samples, "cycle time")


def compute_review_wait_metrics(
    source: PullRequestSource,
    start: datetime,
    end: datetime,
    project: Optional[str] = None,
) -> MetricsResult:
    """Compute PR review wait time p50/p90 for PRs merged in ``[start, end)``."""
    return _single(source, start, end, project, extract_review_wait_samples, "review wait time")


def compute_review_wait_by_project(
    source: PullRequestSource,
    start: datetime,
    end: datetime,
) -> ProjectMetrics:
    """Compute PR review wait time p50/p90 per project."""
    return _by_project(source, start, end, extract_review_wait_samples, "review wait time")
