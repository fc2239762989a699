"""Pull request data sources consumed by the metrics service."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from .errors import DataValidationError
from .models import PullRequestRecord
from .week import as_utc

logger = logging.getLogger(__name__)


class PullRequestSource(Protocol):
    """Anything able to fetch the pull requests merged in ``[start, end)``."""

    def fetch_pull_requests(
        self,
        start: datetime,
        end: datetime,
        project: Optional[str] = None,
    ) -> List[PullRequestRecord]:
        ...


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into a UTC-aware datetime.

    ``Z`` suffixes are accepted and naive values are treated as UTC. Empty
    values return ``None``.
    """
    if not value:
        return None

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    return as_utc(datetime.fromisoformat(normalized))


class InMemoryPullRequestSource:
    """Serves pull requests from an in-memory snapshot."""

    def __init__(self, records: Iterable[PullRequestRecord]) -> None:
        self._records = list(records)

    def __len__(self) -> int:
        return len(self._records)

    def fetch_pull_requests(
        self,
        start: datetime,
        end: datetime,
        project: Optional[str] = None,
    ) -> List[PullRequestRecord]:
        """Return records merged in ``[start, end)``, optionally for one project.

        Naive bounds are interpreted as UTC. Records whose merge timestamp
        cannot be compared with the bounds are returned so the extractor can
        report them.
        """
        start, end = as_utc(start), as_utc(end)
        return [
            record
            for record in self._records
            if _merged_within(record, start, end) and (project is None or record.project == project)
        ]

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryPullRequestSource":
        """Load a snapshot written as a JSON list of pull request objects.

        Raises:
            DataValidationError: If the file is unreadable, is not a JSON list,
                or an entry lacks ``id``/``project`` or has a bad timestamp.
        """
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DataValidationError(f"Could not read pull request snapshot '{path}': {exc}") from exc

        if not isinstance(payload, list):
            raise DataValidationError(
                f"Pull request snapshot '{path}' must contain a JSON list, got {type(payload).__name__}."
            )

        records = [_record_from_mapping(item, index) for index, item in enumerate(payload)]
        logger.debug("Loaded pull request snapshot", extra={"path": str(path), "records": len(records)})
        return cls(records)


def _merged_within(record: PullRequestRecord, start: datetime, end: datetime) -> bool:
    if record.merged_at is None:
        return False
    try:
        return start <= record.merged_at < end
    except TypeError:
        return True


def _record_from_mapping(item: Any, index: int) -> PullRequestRecord:
    if not isinstance(item, Mapping):
        raise DataValidationError(f"Snapshot entry #{index} is not an object.")

    pr_id = item.get("id")
    project = item.get("project")
    if pr_id is None or not project:
        raise DataValidationError(f"Snapshot entry #{index} is missing required fields 'id' and 'project'.")

    try:
        return PullRequestRecord(
            pr_id=int(pr_id),
            project=str(project),
            created_at=parse_iso_datetime(item.get("createdAt")),
            merged_at=parse_iso_datetime(item.get("mergedAt")),
            is_draft=bool(item.get("isDraft", False)),
            first_review_at=parse_iso_datetime(item.get("firstReviewAt")),
            repository=item.get("repository"),
            title=item.get("title"),
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise DataValidationError(f"Snapshot entry #{index} has an invalid value: {exc}") from exc
