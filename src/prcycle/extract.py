"""Sample extraction for pull request latency metrics.

This module reduces a snapshot of pull requests to hour-based samples for:
- PR cycle time (creation to merge)
- PR review wait time (creation to first review response)

Selection is defined on merge time: only non-draft PRs merged inside the
week's half-open interval contribute. Records whose merge time cannot be
placed in the interval, or that cannot produce a non-negative duration, are
reported as anomalies instead of samples.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from .models import (
    CycleSample,
    ExtractionAnomaly,
    ExtractionResult,
    PullRequestRecord,
    WeekInterval,
)

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600.0


def is_selected(
    record: PullRequestRecord,
    interval: WeekInterval,
    project: Optional[str] = None,
) -> bool:
    """Return ``True`` when ``record`` counts towards ``interval``.

    Business logic:
    - Draft PRs never count, merged or not.
    - Unmerged PRs never count.
    - ``merged_at`` must fall inside ``[interval.start, interval.end)``.
    - When ``project`` is given, ``record.project`` must equal it exactly.

    Raises:
        ValueError: If ``merged_at`` cannot be compared with the interval
            bounds, e.g. a naive datetime.
    """
    if record.is_draft or record.merged_at is None:
        return False
    if project is not None and record.project != project:
        return False

    try:
        return interval.contains(record.merged_at)
    except TypeError as exc:
        raise ValueError("incomparable merge timestamp") from exc


def _elapsed_hours(start: Optional[datetime], end: datetime) -> float:
    if start is None:
        raise ValueError("missing creation timestamp")
    try:
        seconds = (end - start).total_seconds()
    except TypeError as exc:
        raise ValueError("incomparable timestamps") from exc
    if seconds < 0:
        raise ValueError(f"negative duration of {seconds} seconds")
    return seconds / _SECONDS_PER_HOUR


def _extract(
    records: Iterable[PullRequestRecord],
    interval: WeekInterval,
    project: Optional[str],
    end_of: Callable[[PullRequestRecord], Optional[datetime]],
    metric: str,
) -> ExtractionResult:
    result = ExtractionResult()
    selected = 0

    for record in records:
        try:
            if not is_selected(record, interval, project):
                continue
            end = end_of(record)
            if end is None:
                continue
            selected += 1
            hours = _elapsed_hours(record.created_at, end)
        except ValueError as exc:
            logger.warning(
                "Excluding corrupt PR record from %s samples: %s",
                metric,
                exc,
                extra={"pr_id": record.pr_id, "project": record.project},
            )
            result.anomalies.append(
                ExtractionAnomaly(pr_id=record.pr_id, project=record.project, reason=str(exc))
            )
            continue

        result.samples.append(CycleSample(hours=hours, project=record.project, pr_id=record.pr_id))

    logger.debug(
        "Extracted %s samples",
        metric,
        extra={
            "week": interval.week,
            "project": project,
            "selected": selected,
            "samples": len(result.samples),
            "excluded": result.excluded,
        },
    )
    return result


def extract_cycle_samples(
    records: Iterable[PullRequestRecord],
    interval: WeekInterval,
    project: Optional[str] = None,
) -> ExtractionResult:
    """Extract cycle time samples (``merged_at - created_at``) in hours."""
    return _extract(records, interval, project, lambda record: record.merged_at, "cycle time")


def extract_review_wait_samples(
    records: Iterable[PullRequestRecord],
    interval: WeekInterval,
    project: Optional[str] = None,
) -> ExtractionResult:
    """Extract review wait samples (``first_review_at - created_at``) in hours.

    Uses the same selection as cycle time, so the samples describe PRs merged
    during the week. Selected PRs without a review are skipped, not flagged.
    """
    return _extract(
        records, interval, project, lambda record: record.first_review_at, "review wait"
    )
