"""Configuration parsing and validation for the PR cycle time tool."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Tuple

from .errors import AuthenticationError, ConfigurationError

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_RETRIES = 5


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the Azure DevOps source."""

    organization: str
    pat: str
    exclude_projects: Tuple[str, ...] = ()
    include_reviews: bool = False
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES


def _int_from_env(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default

    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer, got {raw!r}.") from exc

    if not minimum <= value <= maximum:
        raise ConfigurationError(
            f"Invalid value for '{name}': expected an integer between {minimum} and {maximum}."
        )
    return value


def load_config(
    organization: str,
    exclude_projects: Iterable[str] = (),
    include_reviews: bool = False,
) -> Config:
    """Build and validate application configuration.

    Args:
        organization: Azure DevOps organization name.
        exclude_projects: Project names to skip when listing the organization.
            Merged with the comma-separated ``ADO_EXCLUDE_PROJECTS`` variable.
        include_reviews: Fetch PR threads to derive first review timestamps.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If ``organization`` is empty or ``ADO_REQUEST_TIMEOUT``
            / ``ADO_MAX_RETRIES`` are not integers within range.
        AuthenticationError: If ``ADO_PAT`` is not configured.
    """
    organization = (organization or "").strip()
    if not organization:
        raise ConfigurationError("Invalid value for 'organization': expected a non-empty name.")

    timeout_seconds = _int_from_env("ADO_REQUEST_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, 1, 300)
    max_retries = _int_from_env("ADO_MAX_RETRIES", DEFAULT_MAX_RETRIES, 1, 10)

    excluded = [name.strip() for name in exclude_projects if name.strip()]
    excluded.extend(
        name.strip() for name in os.getenv("ADO_EXCLUDE_PROJECTS", "").split(",") if name.strip()
    )

    pat: str = os.getenv("ADO_PAT", "").strip()
    if not pat:
        raise AuthenticationError(
            "Missing required Azure DevOps Personal Access Token. "
            "Set the 'ADO_PAT' environment variable before running the cycle time report."
        )

    return Config(
        organization=organization,
        pat=pat,
        exclude_projects=tuple(dict.fromkeys(excluded)),
        include_reviews=include_reviews,
        timeout_seconds=timeout_seconds,
        max_retries=max_retries,
    )
