"""xinsight - X/Twitter scrape-and-analyze pipeline."""

from xinsight.models.request import JobHandle, JobStatus, ScrapeRequest
from xinsight.models.row import NormalizedRow
from xinsight.models.profile import AnalysisProfile
from xinsight.config import XinsightConfig
from xinsight.core.orchestrator import AnalysisOutcome, Workflow, WorkflowState, WorkflowStatus
from xinsight.core.profiles import ProfileStore
from xinsight.core.normalizer import normalize
from xinsight.core.exporter import to_csv, to_json, save_export

__version__ = "0.1.0"

__all__ = [
    # Main interface
    "Workflow",
    "WorkflowState",
    "WorkflowStatus",
    "AnalysisOutcome",
    "XinsightConfig",
    "ProfileStore",
    # Models
    "ScrapeRequest",
    "JobHandle",
    "JobStatus",
    "NormalizedRow",
    "AnalysisProfile",
    # Pipeline utilities
    "normalize",
    "to_csv",
    "to_json",
    "save_export",
    "__version__",
]
