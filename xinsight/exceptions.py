"""Custom exception hierarchy for xinsight."""

from xinsight.models.request import JobStatus


class XinsightError(Exception):
    """Base exception for all xinsight errors."""


class ValidationError(XinsightError, ValueError):
    """Missing or malformed caller input. Never sent over the network."""


class AuthError(XinsightError):
    """Provider credentials are missing or were rejected."""


class TransportError(XinsightError):
    """Network failure or unexpected non-2xx response."""

    def __init__(self, phase: str, message: str):
        self.phase = phase
        super().__init__(f"{phase} failed: {message}")


class JobFailedError(XinsightError):
    """Scrape job reached a terminal status other than SUCCEEDED."""

    def __init__(self, status: JobStatus, message: str | None = None):
        self.status = status
        super().__init__(message or f"Scraping job finished with status {status.value}")


class PollDeadlineError(JobFailedError):
    """Client-side polling deadline elapsed before a terminal status."""

    def __init__(self, deadline_seconds: float):
        self.deadline_seconds = deadline_seconds
        super().__init__(
            JobStatus.TIMED_OUT,
            f"No terminal job status within {deadline_seconds:g}s",
        )


class ApiError(XinsightError):
    """Completion endpoint returned an error payload."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"Completion request failed with status {status}: {message}")


class ProfileError(XinsightError):
    """Analysis profile operation failed."""


class ProfileNotFoundError(ProfileError):
    """No analysis profile with the given id."""


class BuiltinProfileError(ProfileError):
    """Built-in analysis profiles cannot be changed or deleted."""


class WorkflowBusyError(XinsightError):
    """A scrape run is already in flight."""
