"""Workflow orchestrator - coordinates scrape, normalization, export and analysis."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

import httpx

from xinsight.config import XinsightConfig
from xinsight.core.analysis import AnalysisClient
from xinsight.core.exporter import raw_to_csv, to_csv, to_json
from xinsight.core.jobs import ScrapeJobClient
from xinsight.core.normalizer import normalize
from xinsight.exceptions import ValidationError, WorkflowBusyError, XinsightError
from xinsight.logging import configure_logging, get_logger
from xinsight.models.request import ScrapeRequest
from xinsight.models.row import NormalizedRow, RawRecord


class WorkflowStatus(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Phase(str, Enum):
    SUBMITTING = "submitting"
    POLLING = "polling"
    NORMALIZING = "normalizing"


@dataclass(frozen=True)
class WorkflowState:
    """Observable state of a workflow run."""

    status: WorkflowStatus
    phase: Phase | None = None
    rows: list[NormalizedRow] = field(default_factory=list)
    error: Exception | None = None

    @classmethod
    def idle(cls) -> "WorkflowState":
        return cls(WorkflowStatus.IDLE)

    @classmethod
    def in_progress(cls, phase: Phase) -> "WorkflowState":
        return cls(WorkflowStatus.IN_PROGRESS, phase=phase)

    @classmethod
    def completed(cls, rows: list[NormalizedRow]) -> "WorkflowState":
        return cls(WorkflowStatus.COMPLETED, rows=rows)

    @classmethod
    def failed(cls, error: Exception) -> "WorkflowState":
        return cls(WorkflowStatus.FAILED, error=error)

    @property
    def message(self) -> str | None:
        return str(self.error) if self.error else None


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of an analysis request: text on success, error otherwise."""

    text: str | None = None
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


StateListener = Callable[[WorkflowState], None]


class Workflow:
    """
    End-to-end scrape and analysis workflow.

    Example:
        async with Workflow() as workflow:
            state = await workflow.run(ScrapeRequest(credentials=token, targets=["OpenAI"]))
            if state.status is WorkflowStatus.COMPLETED:
                print(workflow.export_csv())
    """

    def __init__(
        self,
        config: XinsightConfig | None = None,
        jobs: ScrapeJobClient | None = None,
        analysis: AnalysisClient | None = None,
    ):
        """
        Initialize workflow with optional configuration and clients.

        Args:
            config: XinsightConfig instance, uses defaults if None
            jobs: Scrape job client, created on enter if None
            analysis: Analysis client, created on enter if None
        """
        self.config = config or XinsightConfig()
        self._jobs = jobs
        self._analysis = analysis
        self._http: httpx.AsyncClient | None = None
        self._state = WorkflowState.idle()
        self._raw: list[RawRecord] = []
        self._in_flight = False
        self._listeners: list[StateListener] = []
        self._log = get_logger("workflow")

    async def __aenter__(self) -> "Workflow":
        """Async context manager entry - initialize HTTP clients."""
        configure_logging(self.config)

        if self._jobs is None or self._analysis is None:
            self._http = httpx.AsyncClient(timeout=self.config.http_timeout_seconds)
            if self._jobs is None:
                self._jobs = ScrapeJobClient(self._http, self.config)
            if self._analysis is None:
                self._analysis = AnalysisClient(self._http, self.config)

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - cleanup resources."""
        if self._http:
            await self._http.aclose()
            self._http = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def rows(self) -> list[NormalizedRow]:
        return self._state.rows

    @property
    def raw_records(self) -> list[RawRecord]:
        return self._raw

    @property
    def busy(self) -> bool:
        return self._in_flight

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a callback for every state transition.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def run(self, request: ScrapeRequest) -> WorkflowState:
        """
        Scrape, poll and normalize for one request.

        Never raises for provider or input failures; they end the run in
        the FAILED state. A call made while another run is in flight gets a
        FAILED state back and leaves the running workflow untouched.

        Returns:
            Terminal WorkflowState (COMPLETED or FAILED)
        """
        if self._in_flight:
            self._log.warning("run_rejected_busy")
            return WorkflowState.failed(WorkflowBusyError("A scrape run is already in progress"))
        if self._jobs is None:
            raise RuntimeError("Workflow must be used as an async context manager")

        self._in_flight = True
        try:
            self._raw = []
            self._set(WorkflowState.idle())
            return await self._run(request)
        finally:
            self._in_flight = False

    async def _run(self, request: ScrapeRequest) -> WorkflowState:
        targets = [t.strip() for t in request.targets if t.strip()]
        self._log.info("run_start", targets=len(targets), desired_count=request.desired_count)

        try:
            if not targets:
                raise ValidationError("At least one target account is required")
            request = request.model_copy(update={"targets": targets})

            self._set(WorkflowState.in_progress(Phase.SUBMITTING))
            handle = await self._jobs.submit(request)

            self._set(WorkflowState.in_progress(Phase.POLLING))
            raw = await self._jobs.await_completion(handle)

            self._set(WorkflowState.in_progress(Phase.NORMALIZING))
            rows = normalize(raw)
        except XinsightError as e:
            self._log.error("run_failed", error=str(e), error_type=type(e).__name__)
            return self._set(WorkflowState.failed(e))
        except Exception as e:
            self._log.exception("run_crashed")
            return self._set(WorkflowState.failed(e))

        self._raw = list(raw)
        self._log.info("run_complete", rows=len(rows))
        return self._set(WorkflowState.completed(rows))

    def export_csv(self) -> str:
        return to_csv(self.rows)

    def export_json(self) -> str:
        return to_json(self.rows)

    def export_raw_csv(self) -> str:
        """CSV of the unnormalized provider records of the last run."""
        return raw_to_csv(self._raw)

    async def analyze(
        self,
        api_key: str,
        prompt: str,
        model: str | None = None,
        data: str | None = None,
    ) -> AnalysisOutcome:
        """
        Analyze the current rows, sent as exported JSON, under ``prompt``.

        Args:
            api_key: OpenAI API key
            prompt: Analysis instructions, usually a profile's prompt_template
            model: Completion model, config default if None
            data: Serialized data to send instead of the current rows

        Never raises for provider or input failures.
        """
        if self._analysis is None:
            raise RuntimeError("Workflow must be used as an async context manager")

        payload = self.export_json() if data is None else data
        try:
            text = await self._analysis.analyze(api_key, prompt, payload, model=model)
        except XinsightError as e:
            self._log.error("analysis_failed", error=str(e), error_type=type(e).__name__)
            return AnalysisOutcome(error=e)
        except Exception as e:
            self._log.exception("analysis_crashed")
            return AnalysisOutcome(error=e)
        return AnalysisOutcome(text=text)

    def _set(self, state: WorkflowState) -> WorkflowState:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                self._log.exception("listener_failed", status=state.status.value)
        return state
