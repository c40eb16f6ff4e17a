"""Tests for the FastAPI server - dependencies overridden, no internet."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from xinsight.api import app, get_profiles, get_workflow
from xinsight.core.analysis import AnalysisClient
from xinsight.core.jobs import ScrapeJobClient
from xinsight.core.orchestrator import Workflow
from xinsight.core.profiles import ProfileStore
from xinsight.exceptions import ApiError, AuthError
from xinsight.models.request import JobHandle

RAW_RECORDS = [
    {"text": "hello", "url": "https://x.com/a/status/1", "likes": 3, "user": {"description": "bio"}},
    {"text": "world", "likes": 4},
]


@pytest.fixture
def jobs() -> MagicMock:
    jobs = MagicMock(spec=ScrapeJobClient)
    jobs.submit = AsyncMock(
        return_value=JobHandle(job_id="run-1", created_at=datetime.now(timezone.utc))
    )
    jobs.await_completion = AsyncMock(return_value=RAW_RECORDS)
    return jobs


@pytest.fixture
def analysis() -> MagicMock:
    analysis = MagicMock(spec=AnalysisClient)
    analysis.analyze = AsyncMock(return_value="the analysis")
    return analysis


@pytest.fixture
def store() -> ProfileStore:
    return ProfileStore()


@pytest.fixture
def client(jobs, analysis, store):
    workflow = Workflow(jobs=jobs, analysis=analysis)
    app.dependency_overrides[get_workflow] = lambda: workflow
    app.dependency_overrides[get_profiles] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


SCRAPE_BODY = {"apify_token": "apify-token", "targets": ["acct1"], "desired_count": 10}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestScrape:
    """Test scrape and export endpoints."""

    def test_scrape_returns_rows(self, client):
        response = client.post("/api/scrape", json=SCRAPE_BODY)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["rows"][0] == {
            "accountBio": "bio",
            "postText": "hello",
            "postUrl": "https://x.com/a/status/1",
            "likeCount": 3,
        }
        assert body["rows"][1] == {"postText": "world", "likeCount": 4}

    def test_count_out_of_bounds(self, client, jobs):
        response = client.post("/api/scrape", json={**SCRAPE_BODY, "desired_count": 5000})
        assert response.status_code == 422
        jobs.submit.assert_not_called()

    def test_empty_targets(self, client, jobs):
        response = client.post("/api/scrape", json={**SCRAPE_BODY, "targets": []})
        assert response.status_code == 422
        jobs.submit.assert_not_called()

    def test_auth_failure(self, client, jobs):
        jobs.submit.side_effect = AuthError("Apify rejected the API token (HTTP 401)")
        response = client.post("/api/scrape", json=SCRAPE_BODY)
        assert response.status_code == 401

    def test_export_before_scrape(self, client):
        assert client.get("/api/export/csv").status_code == 404

    def test_export_csv(self, client):
        client.post("/api/scrape", json=SCRAPE_BODY)
        response = client.get("/api/export/csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "twitter-data-" in response.headers["content-disposition"]
        assert response.text.splitlines()[0] == "accountBio,likeCount,postText,postUrl"

    def test_export_json(self, client):
        client.post("/api/scrape", json=SCRAPE_BODY)
        response = client.get("/api/export/json")

        assert response.status_code == 200
        assert response.json()[1] == {"postText": "world", "likeCount": 4}

    def test_export_unknown_kind(self, client):
        assert client.get("/api/export/xml").status_code == 422


class TestAnalyze:
    """Test analysis endpoint."""

    def test_analyze_with_selected_profile(self, client, analysis, store):
        client.post("/api/scrape", json=SCRAPE_BODY)
        response = client.post("/api/analyze", json={"openai_api_key": "sk-key"})

        assert response.status_code == 200
        assert response.json() == {"profile_id": "sentiment", "analysis": "the analysis"}
        args = analysis.analyze.call_args.args
        assert args[1] == store.get("sentiment").prompt_template

    def test_analyze_custom_prompt(self, client, analysis):
        client.post("/api/scrape", json=SCRAPE_BODY)
        response = client.post("/api/analyze", json={"openai_api_key": "sk-key", "prompt": "Mine"})

        assert response.json()["profile_id"] is None
        assert analysis.analyze.call_args.args[1] == "Mine"

    def test_analyze_unknown_profile(self, client):
        response = client.post("/api/analyze", json={"openai_api_key": "k", "profile_id": "nope"})
        assert response.status_code == 404

    def test_analyze_provider_error(self, client, analysis):
        analysis.analyze.side_effect = ApiError(429, "Rate limit reached")
        client.post("/api/scrape", json=SCRAPE_BODY)

        response = client.post("/api/analyze", json={"openai_api_key": "sk-key"})

        assert response.status_code == 502
        assert "Rate limit reached" in response.json()["detail"]


class TestProfiles:
    """Test profile management endpoints."""

    def test_list(self, client):
        body = client.get("/api/profiles").json()
        assert body["selected_id"] == "sentiment"
        assert len(body["profiles"]) == 3

    def test_create_update_delete(self, client):
        created = client.post("/api/profiles", json={"name": "Mine", "prompt_template": "Do it"})
        assert created.status_code == 201
        profile_id = created.json()["id"]

        updated = client.put(f"/api/profiles/{profile_id}", json={"name": "Renamed"})
        assert updated.json()["name"] == "Renamed"

        deleted = client.delete(f"/api/profiles/{profile_id}")
        assert deleted.status_code == 200
        assert deleted.json()["selected_id"] == "sentiment"
        assert len(deleted.json()["profiles"]) == 3

    def test_delete_builtin_forbidden(self, client, store):
        response = client.delete("/api/profiles/topics")
        assert response.status_code == 403
        assert "topics" in store

    def test_update_builtin_forbidden(self, client):
        response = client.put("/api/profiles/topics", json={"name": "x"})
        assert response.status_code == 403

    def test_delete_unknown(self, client):
        assert client.delete("/api/profiles/nope").status_code == 404

    def test_create_blank(self, client):
        response = client.post("/api/profiles", json={"name": " ", "prompt_template": "p"})
        assert response.status_code == 422

    def test_select(self, client, store):
        response = client.put("/api/profiles/engagement/select")
        assert response.status_code == 200
        assert store.selected_id == "engagement"
