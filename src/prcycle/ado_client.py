"""Azure DevOps REST API client used as a pull request data source."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests
from requests.auth import HTTPBasicAuth

from .config import Config
from .errors import ApiError, AuthenticationError
from .models import Comment, Project, PullRequestRecord, Thread
from .sources import parse_iso_datetime
from .week import as_utc

logger = logging.getLogger(__name__)


def first_review_time(threads: Iterable[Thread], author_id: Optional[str]) -> Optional[datetime]:
    """Return the earliest review comment left by someone other than the PR author.

    Deleted threads, system comments and comments without ``publishedDate``
    are ignored.
    """
    earliest: Optional[datetime] = None

    for thread in threads:
        if thread.isDeleted:
            continue
        for comment in thread.comments:
            if comment.commentType == "system" or comment.publishedDate is None:
                continue
            if author_id and comment.authorId == author_id:
                continue
            if earliest is None or comment.publishedDate < earliest:
                earliest = comment.publishedDate

    return earliest


class AdoClient:
    """Small, typed client for Azure DevOps Git pull request APIs.

    Implements ``PullRequestSource``: the project label of each record is the
    Azure DevOps project name and the merge timestamp is the ``closedDate`` of
    completed pull requests.
    """

    _API_VERSION = "7.1"
    _PAGE_SIZE = 100
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config) -> None:
        """Initialize an authenticated Azure DevOps API client.

        Args:
            config: Validated runtime configuration including organization and PAT.
        """
        self._config = config
        self._timeout_seconds = config.timeout_seconds
        self._max_retries = config.max_retries
        self._base_url = f"https://dev.azure.com/{quote(config.organization)}"

        self._session = requests.Session()
        self._session.auth = HTTPBasicAuth("", config.pat)
        self._session.headers.update({"Accept": "application/json"})

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from an organization-relative path."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _project_path(self, project: str, path: str) -> str:
        return f"{quote(project)}/_apis/{path.lstrip('/')}"

    def _format_datetime(self, value: datetime) -> str:
        """Format a datetime as UTC ISO8601 suitable for Azure DevOps query params."""
        utc_value = value.astimezone(timezone.utc)
        return utc_value.isoformat().replace("+00:00", "Z")

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            AuthenticationError: If the PAT is rejected (HTTP 401/403).
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object.
        """
        url = self._build_url(path)
        query = dict(params or {})
        query["api-version"] = self._API_VERSION

        last_error: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._max_retries:
                    raise ApiError(f"Azure DevOps request failed after retries: GET {url}") from exc
                logger.debug("Retrying after transport error", extra={"url": url, "attempt": attempt})
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._max_retries:
                logger.debug(
                    "Retrying after retryable status",
                    extra={"url": url, "status_code": status_code, "attempt": attempt},
                )
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code in (401, 403):
                raise AuthenticationError(
                    f"Azure DevOps rejected the Personal Access Token: GET {url} returned {status_code}"
                )

            if status_code >= 400:
                raise ApiError(
                    "Azure DevOps API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ApiError(f"Azure DevOps API returned invalid JSON: GET {url}") from exc

            if not isinstance(payload, dict):
                raise ApiError(f"Azure DevOps API returned unexpected payload shape: GET {url}")

            return payload

        raise ApiError(f"Azure DevOps request failed after retries: GET {url}") from last_error

    def _get_paged(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Collect ``value`` items across ``$top``/``$skip`` pages."""
        items: List[Dict[str, Any]] = []
        skip = 0

        while True:
            query = dict(params or {})
            query["$top"] = self._PAGE_SIZE
            query["$skip"] = skip

            page_items = self._get_json(path, params=query).get("value", [])
            items.extend(page_items)

            if len(page_items) < self._PAGE_SIZE:
                return items

            skip += self._PAGE_SIZE

    def list_projects(self) -> List[Project]:
        """List projects in the organization, minus ``config.exclude_projects``."""
        excluded = {name.lower() for name in self._config.exclude_projects}
        projects: List[Project] = []

        for item in self._get_paged("_apis/projects"):
            project_id = item.get("id")
            name = item.get("name")
            if not project_id or not name:
                continue
            if str(name).lower() in excluded:
                logger.debug("Skipping excluded project", extra={"project": name})
                continue
            projects.append(Project(id=str(project_id), name=str(name)))

        return projects

    def list_pull_requests(
        self,
        project: str,
        min_time: datetime,
        max_time: datetime,
    ) -> List[PullRequestRecord]:
        """List completed pull requests of ``project`` closed between the two bounds.

        Queries the project-level endpoint with ``searchCriteria.status=completed``
        and ``queryTimeRangeType=closed``, paginating via ``$top``/``$skip``.
        """
        params: Dict[str, Any] = {
            "searchCriteria.status": "completed",
            "searchCriteria.queryTimeRangeType": "closed",
            "searchCriteria.minTime": self._format_datetime(min_time),
            "searchCriteria.maxTime": self._format_datetime(max_time),
        }

        records: List[PullRequestRecord] = []
        for item in self._get_paged(self._project_path(project, "git/pullrequests"), params=params):
            pr_id = item.get("pullRequestId")
            status = item.get("status")
            repository = item.get("repository") or {}

            if pr_id is None or not status:
                raise ApiError(
                    "Azure DevOps pull request payload is missing required fields: "
                    f"project={project}, payload={item}"
                )

            closed_date = parse_iso_datetime(item.get("closedDate"))
            records.append(
                PullRequestRecord(
                    pr_id=int(pr_id),
                    project=project,
                    created_at=parse_iso_datetime(item.get("creationDate")),
                    merged_at=closed_date if status == "completed" else None,
                    is_draft=bool(item.get("isDraft", False)),
                    repository=repository.get("name"),
                    title=item.get("title"),
                )
            )

            if self._config.include_reviews and repository.get("id"):
                author_id = (item.get("createdBy") or {}).get("id")
                threads = self.list_threads(project, str(repository["id"]), int(pr_id))
                records[-1].first_review_at = first_review_time(threads, author_id)

        return records

    def list_threads(self, project: str, repo_id: str, pr_id: int) -> List[Thread]:
        """List discussion threads, with their comments, for a pull request."""
        payload = self._get_json(
            self._project_path(project, f"git/repositories/{repo_id}/pullRequests/{pr_id}/threads")
        )
        threads: List[Thread] = []

        for item in payload.get("value", []):
            thread_id = item.get("id")
            if thread_id is None:
                continue

            comments: List[Comment] = []
            for raw_comment in item.get("comments") or []:
                author_id = (raw_comment.get("author") or {}).get("id")
                if not author_id:
                    continue
                comments.append(
                    Comment(
                        authorId=str(author_id),
                        publishedDate=parse_iso_datetime(raw_comment.get("publishedDate")),
                        commentType=str(raw_comment.get("commentType") or "text"),
                    )
                )

            threads.append(
                Thread(id=int(thread_id), isDeleted=bool(item.get("isDeleted", False)), comments=comments)
            )

        return threads

    def fetch_pull_requests(
        self,
        start: datetime,
        end: datetime,
        project: Optional[str] = None,
    ) -> List[PullRequestRecord]:
        """Fetch pull requests merged in ``[start, end)`` across one or all projects.

        Naive bounds are interpreted as UTC.
        """
        start, end = as_utc(start), as_utc(end)
        projects = [project] if project is not None else [p.name for p in self.list_projects()]
        records: List[PullRequestRecord] = []

        for name in projects:
            fetched = self.list_pull_requests(name, min_time=start, max_time=end)
            in_window = [r for r in fetched if r.merged_at is not None and start <= r.merged_at < end]
            records.extend(in_window)
            logger.debug(
                "Fetched pull requests",
                extra={"project": name, "fetched": len(fetched), "in_window": len(in_window)},
            )

        return records
