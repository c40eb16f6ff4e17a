"""Pydantic models for xinsight."""

from xinsight.models.request import JobHandle, JobStatus, ScrapeRequest
from xinsight.models.row import NormalizedRow, RawRecord
from xinsight.models.profile import AnalysisProfile

__all__ = [
    "ScrapeRequest",
    "JobHandle",
    "JobStatus",
    "NormalizedRow",
    "RawRecord",
    "AnalysisProfile",
]
