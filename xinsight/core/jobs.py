"""Apify job client: submit a scrape run, poll it, fetch the dataset."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import SecretStr

from xinsight.config import XinsightConfig
from xinsight.exceptions import (
    AuthError,
    JobFailedError,
    PollDeadlineError,
    TransportError,
    ValidationError,
)
from xinsight.logging import get_logger
from xinsight.models.request import JobHandle, JobStatus, ScrapeRequest
from xinsight.models.row import RawRecord

Sleep = Callable[[float], Awaitable[Any]]

PROFILE_BASE_URL = "https://x.com"


def to_start_url(target: str) -> str:
    """
    Turn an account handle into a profile URL.

    Examples:
        "OpenAI" -> "https://x.com/OpenAI"
        "@OpenAI" -> "https://x.com/OpenAI"
        "https://x.com/elonmusk" -> unchanged
    """
    target = target.strip()
    if "://" in target:
        return target
    return f"{PROFILE_BASE_URL}/{target.lstrip('@')}"


def build_run_input(request: ScrapeRequest, config: XinsightConfig) -> dict[str, Any]:
    """Actor input payload for a scrape request."""
    return {
        "includeUserInfo": request.include_user_info,
        "profilesDesired": len(request.targets),
        "proxyConfig": {
            "useApifyProxy": True,
            "apifyProxyGroups": list(config.proxy_groups),
        },
        "startUrls": [
            {"url": to_start_url(target), "method": "GET"} for target in request.targets
        ],
        "tweetsDesired": request.desired_count,
        "withReplies": request.include_replies,
        "storeUserIfNoTweets": False,
        "repliesDepth": config.replies_depth,
    }


class ScrapeJobClient:
    """
    Client for one scrape provider job at a time.

    Example:
        async with httpx.AsyncClient() as http:
            jobs = ScrapeJobClient(http)
            handle = await jobs.submit(request)
            records = await jobs.await_completion(handle)
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        config: XinsightConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Args:
            http: Shared HTTP client
            config: XinsightConfig instance, uses defaults if None
            sleep: Awaitable used between polls, injectable for tests
        """
        self.config = config or XinsightConfig()
        self._http = http
        self._sleep = sleep
        self._log = get_logger("jobs")

    async def submit(self, request: ScrapeRequest) -> JobHandle:
        """
        Start a scrape run.

        Raises:
            AuthError: Credentials empty, not usable in a header, or rejected
            ValidationError: No targets
            TransportError: Network failure or unexpected response
        """
        token = request.credentials.get_secret_value().strip()
        if not token:
            raise AuthError("Apify API token is required")
        if not token.isascii():
            raise AuthError("Apify API token contains non-ASCII characters")
        if not [t for t in request.targets if t.strip()]:
            raise ValidationError("At least one target account is required")

        url = f"{self.config.apify_base_url}/acts/{self.config.actor_id}/runs"
        body = await self._request("submit", "POST", url, token, json=build_run_input(request, self.config))

        job_id = _dig(body, "data", "id")
        if not isinstance(job_id, str) or not job_id:
            raise TransportError("submit", "response did not include a run id")

        handle = JobHandle(
            job_id=job_id,
            created_at=datetime.now(timezone.utc),
            credentials=token,
        )
        self._log.info("job_submitted", job_id=job_id, targets=len(request.targets))
        return handle

    async def poll_status(self, handle: JobHandle) -> tuple[JobStatus, str | None]:
        """
        Read the current status of a run.

        Returns:
            (status, dataset_id); dataset_id is None until the provider reports one
        """
        url = f"{self.config.apify_base_url}/actor-runs/{handle.job_id}"
        body = await self._request("poll", "GET", url, _secret(handle.credentials))

        status = JobStatus.from_provider(_dig(body, "data", "status"))
        dataset_id = _dig(body, "data", "defaultDatasetId")
        return status, dataset_id if isinstance(dataset_id, str) and dataset_id else None

    async def fetch_items(self, dataset_id: str, token: str | None = None) -> list[RawRecord]:
        """Fetch every item of a result dataset in one request."""
        url = f"{self.config.apify_base_url}/datasets/{dataset_id}/items"
        body = await self._request("fetch", "GET", url, token)
        if not isinstance(body, list):
            raise TransportError("fetch", "dataset items response is not a list")
        return body

    async def await_completion(
        self,
        handle: JobHandle,
        deadline: float | None = None,
    ) -> list[RawRecord]:
        """
        Poll a run at a fixed interval until it reaches a terminal status.

        Args:
            handle: Submitted run
            deadline: Seconds before giving up, config default if None.
                No deadline at all when both are None.

        Returns:
            Raw dataset items of a SUCCEEDED run

        Raises:
            JobFailedError: Run ended FAILED, TIMED-OUT or ABORTED
            PollDeadlineError: Deadline elapsed first
            TransportError: Poll or fetch failed
        """
        deadline = deadline if deadline is not None else self.config.poll_deadline_seconds
        interval = self.config.poll_interval_seconds
        started = time.monotonic()
        polls = 0

        while True:
            await self._sleep(interval)
            status, dataset_id = await self.poll_status(handle)
            polls += 1
            self._log.debug("job_status", job_id=handle.job_id, status=status.value, polls=polls)

            if not status.is_terminal:
                if deadline is not None and time.monotonic() - started >= deadline:
                    self._log.warning("job_deadline_exceeded", job_id=handle.job_id, polls=polls)
                    raise PollDeadlineError(deadline)
                continue

            if status is not JobStatus.SUCCEEDED:
                self._log.error("job_failed", job_id=handle.job_id, status=status.value)
                raise JobFailedError(status)

            if dataset_id is None:
                raise TransportError("fetch", "run info has no default dataset id")

            items = await self.fetch_items(dataset_id, _secret(handle.credentials))
            self._log.info("job_complete", job_id=handle.job_id, items=len(items), polls=polls)
            return items

    async def _request(
        self,
        phase: str,
        method: str,
        url: str,
        token: str | None,
        **kwargs: Any,
    ) -> Any:
        """Send an authorized request and decode the JSON body."""
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(phase, str(e) or type(e).__name__) from e

        if response.status_code in (401, 403):
            raise AuthError(f"Apify rejected the API token (HTTP {response.status_code})")
        if response.is_error:
            raise TransportError(phase, f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(phase, "response body is not valid JSON") from e


def _secret(value: SecretStr | None) -> str | None:
    return value.get_secret_value() if value is not None else None


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data
