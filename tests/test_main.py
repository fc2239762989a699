"""Tests for application orchestration in the main module."""

import json
import sys
from datetime import timedelta
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from prcycle.config import Config
from prcycle.errors import ApiError, AuthenticationError, ConfigurationError
from prcycle.main import orchestrate_cycle_time_report
from prcycle.models import MetricsResult, PullRequestRecord
from prcycle.week import get_week_boundaries

WEEK = get_week_boundaries("2025-W02")


def _snapshot_file(tmp_path: Path) -> Path:
    path = tmp_path / "prs.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "project": "web", "createdAt": "2025-01-06T00:00:00Z", "mergedAt": "2025-01-06T02:00:00Z"},
                {"id": 2, "project": "api", "createdAt": "2025-01-06T00:00:00Z", "mergedAt": "2025-01-06T04:00:00Z"},
                {"id": 3, "project": "web", "createdAt": "2025-01-06T00:00:00Z", "mergedAt": "2025-01-07T00:00:00Z"},
                {
                    "id": 4,
                    "project": "web",
                    "createdAt": "2025-01-06T00:00:00Z",
                    "mergedAt": "2025-01-06T01:00:00Z",
                    "isDraft": True,
                },
                {"id": 5, "project": "web", "createdAt": "2025-01-06T00:00:00Z", "mergedAt": "2025-01-13T00:00:00Z"},
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_orchestrate_with_snapshot_prints_json_for_single_project(tmp_path, capsys):
    """Verify a snapshot run prints the single-result JSON envelope."""
    path = _snapshot_file(tmp_path)

    exit_code = orchestrate_cycle_time_report(
        ["--snapshot", str(path), "--week", "2025-W02", "--project", "web", "--json"]
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {
        "p50_hours": 13.0,
        "p90_hours": 21.8,
        "count": 2,
        "week": "2025-W02",
        "startDate": "2025-01-06T00:00:00Z",
        "endDate": "2025-01-13T00:00:00Z",
        "project": "web",
    }


def test_orchestrate_with_snapshot_all_projects_prints_report(tmp_path, capsys):
    """Verify the per-project text report lists projects in first-seen order."""
    path = _snapshot_file(tmp_path)

    exit_code = orchestrate_cycle_time_report(["--snapshot", str(path), "--week", "2025-W02", "--all-projects"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert out.index("Project: web") < out.index("Project: api")
    assert "P50: 4.00h" in out


def test_orchestrate_defaults_to_current_week(tmp_path, capsys):
    """Verify the current week is used when --week is omitted."""
    path = _snapshot_file(tmp_path)

    with patch("prcycle.main.get_current_week", return_value="2025-W02") as current_week_mock:
        exit_code = orchestrate_cycle_time_report(["--snapshot", str(path), "--json"])

    assert exit_code == 0
    current_week_mock.assert_called_once_with()
    assert json.loads(capsys.readouterr().out)["count"] == 3


def test_orchestrate_with_org_wires_config_and_client(capsys):
    """Verify an Azure DevOps run builds config and client and computes per-project review wait."""
    config = Config(organization="org", pat="secret")
    ado_client = Mock()
    projects = {"web": MetricsResult(p50_hours=1.0, p90_hours=2.0, count=3)}

    with patch("prcycle.main.load_config", return_value=config) as load_config_mock, patch(
        "prcycle.main.AdoClient", return_value=ado_client
    ) as ado_client_ctor_mock, patch(
        "prcycle.main.compute_review_wait_by_project", return_value=projects
    ) as compute_mock:
        exit_code = orchestrate_cycle_time_report(
            [
                "--org",
                "org",
                "--week",
                "2025-W02",
                "--all-projects",
                "--metric",
                "review-wait",
                "--exclude-project",
                "Sandbox",
                "--json",
            ]
        )

    assert exit_code == 0
    load_config_mock.assert_called_once_with(
        organization="org",
        exclude_projects=["Sandbox"],
        include_reviews=True,
    )
    ado_client_ctor_mock.assert_called_once_with(config=config)
    compute_mock.assert_called_once_with(ado_client, WEEK.start, WEEK.end)
    assert json.loads(capsys.readouterr().out)["projects"]["web"]["count"] == 3


def test_orchestrate_missing_pat_returns_auth_error():
    """Verify missing PAT/authentication failures return the authentication exit code."""
    with patch(
        "prcycle.main.load_config",
        side_effect=AuthenticationError("Missing required Azure DevOps Personal Access Token."),
    ):
        exit_code = orchestrate_cycle_time_report(["--org", "org", "--week", "2025-W02"])

    assert exit_code == 3


def test_orchestrate_configuration_error_returns_configuration_exit_code():
    """Verify invalid configuration returns exit code 2."""
    with patch("prcycle.main.load_config", side_effect=ConfigurationError("bad timeout")):
        exit_code = orchestrate_cycle_time_report(["--org", "org", "--week", "2025-W02"])

    assert exit_code == 2


def test_orchestrate_api_error_returns_api_exit_code():
    """Verify Azure DevOps API failures propagate to the API error exit code."""
    ado_client = Mock()
    ado_client.fetch_pull_requests.side_effect = ApiError("Service unavailable")

    with patch("prcycle.main.load_config", return_value=Config(organization="org", pat="secret")), patch(
        "prcycle.main.AdoClient", return_value=ado_client
    ):
        exit_code = orchestrate_cycle_time_report(["--org", "org", "--week", "2025-W02"])

    assert exit_code == 4


def test_orchestrate_invalid_snapshot_returns_data_exit_code(tmp_path):
    """Verify unreadable snapshots return the data validation exit code."""
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    exit_code = orchestrate_cycle_time_report(["--snapshot", str(path), "--week", "2025-W02"])

    assert exit_code == 5


def test_orchestrate_corrupt_record_is_counted_not_fatal(tmp_path, capsys):
    """Verify corrupt records are reported in the text output while the run succeeds."""
    source = Mock()
    source.fetch_pull_requests.return_value = [
        PullRequestRecord(
            pr_id=1,
            project="web",
            created_at=WEEK.start + timedelta(days=2),
            merged_at=WEEK.start + timedelta(days=1),
        )
    ]

    with patch("prcycle.main._build_source", return_value=source):
        exit_code = orchestrate_cycle_time_report(["--snapshot", "ignored.json", "--week", "2025-W02"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Samples: 0" in out
    assert "Excluded (corrupt records): 1" in out


def test_orchestrate_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("prcycle.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_cycle_time_report()

    assert exit_code == 1


def test_orchestrate_all_projects_reports_corrupt_records_of_projects_without_samples(capsys):
    """Verify the per-project report accounts for projects whose only records are corrupt."""
    merged_at = WEEK.start + timedelta(days=1)
    source = Mock()
    source.fetch_pull_requests.return_value = [
        PullRequestRecord(pr_id=1, project="web", created_at=merged_at - timedelta(hours=2), merged_at=merged_at),
        PullRequestRecord(pr_id=2, project="api", created_at=merged_at + timedelta(hours=5), merged_at=merged_at),
    ]

    with patch("prcycle.main._build_source", return_value=source):
        exit_code = orchestrate_cycle_time_report(
            ["--snapshot", "ignored.json", "--week", "2025-W02", "--all-projects"]
        )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Project: web" in out
    assert "Project: api" not in out
    assert "Excluded (corrupt records, projects without samples): 1" in out
