"""FastAPI web server for the xinsight workflow."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from xinsight import ScrapeRequest, Workflow, WorkflowStatus, XinsightConfig, __version__
from xinsight.core.exporter import export_filename
from xinsight.core.profiles import ProfileStore
from xinsight.exceptions import (
    ApiError,
    AuthError,
    BuiltinProfileError,
    ProfileNotFoundError,
    ValidationError,
    WorkflowBusyError,
)
from xinsight.models.profile import AnalysisProfile
from xinsight.models.request import MAX_DESIRED_COUNT, MIN_DESIRED_COUNT
from xinsight.models.row import NormalizedRow


# Request/Response models
class ScrapeBody(BaseModel):
    """Request body for a scrape run."""

    apify_token: str = Field(..., description="Apify API token, used for this run only")
    targets: list[str] = Field(..., description="Account handles or profile URLs")
    desired_count: int = Field(
        default=10,
        ge=MIN_DESIRED_COUNT,
        le=MAX_DESIRED_COUNT,
        description="Posts to fetch per account",
    )
    include_replies: bool = True
    include_user_info: bool = True


class ScrapeResponse(BaseModel):
    """Normalized rows of a completed run."""

    count: int
    rows: list[NormalizedRow]


class AnalyzeBody(BaseModel):
    """Request body for analysis of the last run."""

    openai_api_key: str
    profile_id: Optional[str] = Field(
        default=None, description="Profile to use, the selected profile if omitted"
    )
    prompt: Optional[str] = Field(default=None, description="Custom prompt, overrides the profile")
    model: Optional[str] = None


class AnalyzeResponse(BaseModel):
    profile_id: Optional[str]
    analysis: str


class ProfileBody(BaseModel):
    name: str
    prompt_template: str


class ProfileUpdateBody(BaseModel):
    name: Optional[str] = None
    prompt_template: Optional[str] = None


class ProfilesResponse(BaseModel):
    selected_id: str
    profiles: list[AnalysisProfile]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


# Process-wide session state
_workflow: Optional[Workflow] = None
_profiles = ProfileStore()


def get_workflow() -> Workflow:
    if _workflow is None:
        raise HTTPException(status_code=503, detail="Workflow not initialized")
    return _workflow


def get_profiles() -> ProfileStore:
    return _profiles


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage workflow lifecycle."""
    global _workflow
    _workflow = Workflow(XinsightConfig())
    await _workflow.__aenter__()
    yield
    await _workflow.__aexit__(None, None, None)
    _workflow = None


app = FastAPI(
    title="xinsight API",
    description="X/Twitter scrape-and-analyze pipeline",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now().isoformat(),
    )


@app.post("/api/scrape", response_model=ScrapeResponse, response_model_exclude_none=True, tags=["Scraping"])
async def scrape(body: ScrapeBody, workflow: Workflow = Depends(get_workflow)):
    """
    Run a scrape job to completion and return the normalized rows.

    The rows stay available for /api/export and /api/analyze until the next run.
    """
    request = ScrapeRequest(
        credentials=body.apify_token,
        targets=body.targets,
        desired_count=body.desired_count,
        include_replies=body.include_replies,
        include_user_info=body.include_user_info,
    )
    state = await workflow.run(request)

    if state.status is not WorkflowStatus.COMPLETED:
        raise HTTPException(status_code=_status_for(state.error), detail=state.message)

    return ScrapeResponse(count=len(state.rows), rows=state.rows)


@app.get("/api/export/{kind}", tags=["Scraping"])
async def export(
    kind: Literal["csv", "json", "raw-csv"],
    workflow: Workflow = Depends(get_workflow),
):
    """Download the rows of the last completed run."""
    if kind == "csv":
        content, media_type, ext = workflow.export_csv(), "text/csv", "csv"
    elif kind == "raw-csv":
        content, media_type, ext = workflow.export_raw_csv(), "text/csv", "csv"
    else:
        content, media_type, ext = workflow.export_json(), "application/json", "json"

    if not content:
        raise HTTPException(status_code=404, detail="No data to export, run a scrape first")

    return Response(
        content=content,
        media_type=f"{media_type}; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(ext)}"'},
    )


@app.post("/api/analyze", response_model=AnalyzeResponse, tags=["Analysis"])
async def analyze(
    body: AnalyzeBody,
    workflow: Workflow = Depends(get_workflow),
    profiles: ProfileStore = Depends(get_profiles),
):
    """Analyze the rows of the last completed run."""
    profile_id = None
    prompt = body.prompt
    if not prompt:
        try:
            profile = profiles.get(body.profile_id) if body.profile_id else profiles.selected
        except ProfileNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        profile_id, prompt = profile.id, profile.prompt_template

    outcome = await workflow.analyze(body.openai_api_key, prompt, model=body.model)
    if not outcome.success:
        raise HTTPException(status_code=_status_for(outcome.error), detail=str(outcome.error))

    return AnalyzeResponse(profile_id=profile_id, analysis=outcome.text)


@app.get("/api/profiles", response_model=ProfilesResponse, tags=["Profiles"])
async def list_profiles(profiles: ProfileStore = Depends(get_profiles)):
    return ProfilesResponse(selected_id=profiles.selected_id, profiles=profiles.list())


@app.post("/api/profiles", response_model=AnalysisProfile, status_code=201, tags=["Profiles"])
async def create_profile(body: ProfileBody, profiles: ProfileStore = Depends(get_profiles)):
    """Create a profile; it becomes the selected one."""
    try:
        return profiles.create(body.name, body.prompt_template)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.put("/api/profiles/{profile_id}", response_model=AnalysisProfile, tags=["Profiles"])
async def update_profile(
    profile_id: str,
    body: ProfileUpdateBody,
    profiles: ProfileStore = Depends(get_profiles),
):
    try:
        return profiles.update(profile_id, name=body.name, prompt_template=body.prompt_template)
    except (ProfileNotFoundError, BuiltinProfileError, ValidationError) as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))


@app.delete("/api/profiles/{profile_id}", response_model=ProfilesResponse, tags=["Profiles"])
async def delete_profile(profile_id: str, profiles: ProfileStore = Depends(get_profiles)):
    """Delete a user profile. Built-in profiles are rejected with 403."""
    try:
        profiles.delete(profile_id)
    except (ProfileNotFoundError, BuiltinProfileError) as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))
    return ProfilesResponse(selected_id=profiles.selected_id, profiles=profiles.list())


@app.put("/api/profiles/{profile_id}/select", response_model=AnalysisProfile, tags=["Profiles"])
async def select_profile(profile_id: str, profiles: ProfileStore = Depends(get_profiles)):
    try:
        return profiles.select(profile_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))



def _status_for(error: Exception | None) -> int:
    """HTTP status for a workflow or profile error."""
    if isinstance(error, ValidationError):
        return 422
    if isinstance(error, AuthError):
        return 401
    if isinstance(error, BuiltinProfileError):
        return 403
    if isinstance(error, ProfileNotFoundError):
        return 404
    if isinstance(error, WorkflowBusyError):
        return 409
    if isinstance(error, ApiError) and error.status == 401:
        return 401
    return 502


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
