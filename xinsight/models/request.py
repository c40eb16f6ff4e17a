"""Scrape request and job models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, SecretStr

MIN_DESIRED_COUNT = 1
MAX_DESIRED_COUNT = 3000


class JobStatus(str, Enum):
    """Client-observed status of a provider job."""

    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED-OUT"
    ABORTED = "ABORTED"

    @classmethod
    def from_provider(cls, value: object) -> "JobStatus":
        """
        Project a provider status string onto JobStatus.

        Only the four terminal strings map to themselves. Transitional
        provider states (READY, TIMING-OUT, ABORTING) and anything
        unrecognized are still running from the client's point of view.
        """
        if isinstance(value, str):
            try:
                status = cls(value.upper())
            except ValueError:
                return cls.RUNNING
            return status
        return cls.RUNNING

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING


class ScrapeRequest(BaseModel):
    """Parameters for one scrape run."""

    credentials: SecretStr
    targets: list[str] = []
    desired_count: int = Field(default=10, ge=MIN_DESIRED_COUNT, le=MAX_DESIRED_COUNT)
    include_replies: bool = True
    include_user_info: bool = True


class JobHandle(BaseModel):
    """Reference to a submitted provider job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    created_at: datetime
    # Token the job was submitted with, reused for polling and fetching
    credentials: SecretStr | None = Field(default=None, exclude=True)
