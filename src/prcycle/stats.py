"""Percentile aggregation for cycle time samples.

This module provides utilities for:
- Computing linear-interpolation percentiles from pre-sorted samples.
- Aggregating samples into ``MetricsResult`` values (P50, P90, count).
- Grouping samples by project and aggregating each group independently.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence

from .models import CycleSample, MetricsResult

_PRECISION = 2


def calculate_percentile(sorted_values: Sequence[float], p: float) -> Optional[float]:
    """Calculate a percentile using linear interpolation between closest ranks.

    The input sequence is expected to already be sorted in ascending order.

    Args:
        sorted_values: Sorted numeric samples.
        p: Percentile in the inclusive range ``[0, 100]``.

    Returns:
        Percentile value as ``float`` or ``None`` when input is empty.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    rank = (len(sorted_values) - 1) * (p / 100.0)
    lower_index = math.floor(rank)
    upper_index = math.ceil(rank)

    if lower_index == upper_index:
        return float(sorted_values[lower_index])

    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return float(lower_value + (rank - lower_index) * (upper_value - lower_value))


def aggregate(samples: Iterable[float]) -> MetricsResult:
    """Compute P50, P90 and sample count for hour-based samples.

    Samples are sorted internally, so the result does not depend on arrival
    order. Percentiles are rounded to two decimals. An empty input yields
    ``MetricsResult(0, 0, 0)``.
    """
    ordered = sorted(samples)
    count = len(ordered)
    if count == 0:
        return MetricsResult(p50_hours=0, p90_hours=0, count=0)

    return MetricsResult(
        p50_hours=round(calculate_percentile(ordered, 50), _PRECISION),
        p90_hours=round(calculate_percentile(ordered, 90), _PRECISION),
        count=count,
    )


def group_by_project(samples: Iterable[CycleSample]) -> Dict[str, MetricsResult]:
    """Aggregate samples per project label.

    Buckets are created in the order labels are first seen. Every sample goes
    to exactly one bucket and projects without samples are absent.
    """
    buckets: Dict[str, List[float]] = {}
    for sample in samples:
        buckets.setdefault(sample.project, []).append(sample.hours)

    return {project: aggregate(hours) for project, hours in buckets.items()}
