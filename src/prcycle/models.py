"""Domain models for pull request cycle time computation.

These dataclasses intentionally model only the subset of pull request fields
that are required to select records and derive latency samples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True, slots=True)
class WeekInterval:
    """Half-open UTC interval ``[start, end)`` covering one ISO week."""

    week: str
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        """Return ``True`` when ``start <= instant < end``."""
        return self.start <= instant < self.end


@dataclass(slots=True)
class PullRequestRecord:
    """Represents the minimal pull request data required for cycle time metrics."""

    pr_id: int
    project: str
    created_at: Optional[datetime]
    merged_at: Optional[datetime]
    is_draft: bool = False
    first_review_at: Optional[datetime] = None
    repository: Optional[str] = None
    title: Optional[str] = None


@dataclass(slots=True)
class Project:
    """Represents a team project returned by Azure DevOps APIs."""

    id: str
    name: str


@dataclass(slots=True)
class Comment:
    """Represents the minimal comment data used to find the first review response."""

    authorId: str
    publishedDate: Optional[datetime]
    commentType: str = "text"


@dataclass(slots=True)
class Thread:
    """Represents a pull request discussion thread with its inline comments."""

    id: int
    isDeleted: bool = False
    comments: List[Comment] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CycleSample:
    """Represents one PR-level latency measurement in hours."""

    hours: float
    project: str
    pr_id: int


@dataclass(frozen=True, slots=True)
class ExtractionAnomaly:
    """A record excluded as corrupt instead of yielding a sample."""

    pr_id: int
    project: str
    reason: str


@dataclass(slots=True)
class ExtractionResult:
    """Samples extracted from a snapshot plus the records excluded as corrupt."""

    samples: List[CycleSample] = field(default_factory=list)
    anomalies: List[ExtractionAnomaly] = field(default_factory=list)

    @property
    def excluded(self) -> int:
        return len(self.anomalies)

    def excluded_by_project(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for anomaly in self.anomalies:
            counts[anomaly.project] = counts.get(anomaly.project, 0) + 1
        return counts


@dataclass(slots=True)
class MetricsResult:
    """Aggregated p50/p90 latency for a set of samples.

    ``excluded`` counts corrupt records dropped during extraction. It is not
    part of :meth:`to_dict` so serialized results keep a uniform shape.
    """

    p50_hours: float
    p90_hours: float
    count: int
    excluded: int = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "p50_hours": self.p50_hours,
            "p90_hours": self.p90_hours,
            "count": self.count,
        }


class ProjectMetrics(Dict[str, MetricsResult]):
    """Per-project results keyed by project label in first-seen order.

    Only projects with at least one sample are keys. ``excluded`` is the
    total number of corrupt records across every project, so records of
    projects missing from the mapping are still accounted for.
    """

    def __init__(self, results: Optional[Dict[str, MetricsResult]] = None, excluded: int = 0) -> None:
        super().__init__(results or {})
        self.excluded = excluded

    @property
    def unlisted_excluded(self) -> int:
        """Corrupt records belonging to projects absent from the mapping."""
        return self.excluded - sum(result.excluded for result in self.values())
