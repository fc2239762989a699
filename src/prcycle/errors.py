"""Custom exception types for the PR cycle time metrics tool."""


class CycleTimeError(Exception):
    """Base exception for failures the CLI reports with a dedicated exit code."""


class ConfigurationError(CycleTimeError):
    """Raised when the organization name or an ``ADO_*`` setting has an unusable value."""


class AuthenticationError(CycleTimeError):
    """Raised when no Personal Access Token is configured or the service rejects it."""


class ApiError(CycleTimeError):
    """Raised when a pull request source cannot deliver its snapshot.

    Covers transport failures, non-success HTTP statuses and payloads missing
    the fields needed to build a :class:`~prcycle.models.PullRequestRecord`.
    Metric computations let it propagate rather than report an empty week.
    """


class DataValidationError(CycleTimeError):
    """Raised when a pull request snapshot file cannot be turned into records."""


class InvalidWeekError(DataValidationError):
    """Raised when a week identifier is not of the form ``YYYY-Wnn``."""
