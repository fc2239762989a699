"""Tests for configuration loading and validation."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from prcycle.config import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT_SECONDS, load_config
from prcycle.errors import AuthenticationError, ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ADO_PAT", "ADO_REQUEST_TIMEOUT", "ADO_MAX_RETRIES", "ADO_EXCLUDE_PROJECTS"):
        monkeypatch.delenv(name, raising=False)


def test_load_config_reads_pat_and_defaults(monkeypatch):
    """Verify a minimal environment yields default timeout and retry settings."""
    monkeypatch.setenv("ADO_PAT", "  secret  ")

    config = load_config(organization="org")

    assert config.organization == "org"
    assert config.pat == "secret"
    assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert config.max_retries == DEFAULT_MAX_RETRIES
    assert config.exclude_projects == ()
    assert config.include_reviews is False


def test_load_config_missing_pat_raises_authentication_error():
    """Verify a missing PAT is reported as an authentication problem."""
    with pytest.raises(AuthenticationError):
        load_config(organization="org")


def test_load_config_empty_organization_raises_configuration_error(monkeypatch):
    """Verify an empty organization name is rejected."""
    monkeypatch.setenv("ADO_PAT", "secret")

    with pytest.raises(ConfigurationError):
        load_config(organization="  ")


@pytest.mark.parametrize(
    "name, value",
    [
        ("ADO_REQUEST_TIMEOUT", "0"),
        ("ADO_REQUEST_TIMEOUT", "301"),
        ("ADO_REQUEST_TIMEOUT", "soon"),
        ("ADO_MAX_RETRIES", "0"),
        ("ADO_MAX_RETRIES", "11"),
    ],
)
def test_load_config_out_of_range_numbers_raise_configuration_error(monkeypatch, name, value):
    """Verify numeric environment settings are range-checked."""
    monkeypatch.setenv("ADO_PAT", "secret")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        load_config(organization="org")


def test_load_config_merges_and_deduplicates_excluded_projects(monkeypatch):
    """Verify CLI and environment project exclusions are combined in order without duplicates."""
    monkeypatch.setenv("ADO_PAT", "secret")
    monkeypatch.setenv("ADO_EXCLUDE_PROJECTS", "Sandbox, Archive ,,")
    monkeypatch.setenv("ADO_REQUEST_TIMEOUT", "60")
    monkeypatch.setenv("ADO_MAX_RETRIES", "2")

    config = load_config(organization="org", exclude_projects=["Archive", " "], include_reviews=True)

    assert config.exclude_projects == ("Archive", "Sandbox")
    assert config.timeout_seconds == 60
    assert config.max_retries == 2
    assert config.include_reviews is True
