"""OpenAI chat-completion client for analysing exported rows."""

from typing import Any

import httpx

from xinsight.config import XinsightConfig
from xinsight.exceptions import ApiError, TransportError, ValidationError
from xinsight.logging import get_logger

SYSTEM_MESSAGE = "You are an analytical assistant that helps analyze data from Twitter/X."
DATA_LABEL = "Data for analysis:"
NO_CONTENT = "No content returned from API."


def build_user_message(prompt: str, serialized_data: str) -> str:
    return f"{prompt}\n\n{DATA_LABEL}\n{serialized_data}"


class AnalysisClient:
    """Sends a prompt plus serialized data to the completion endpoint."""

    def __init__(self, http: httpx.AsyncClient, config: XinsightConfig | None = None):
        self.config = config or XinsightConfig()
        self._http = http
        self._log = get_logger("analysis")

    async def analyze(
        self,
        api_key: str,
        prompt: str,
        serialized_data: str,
        model: str | None = None,
    ) -> str:
        """
        Request an analysis of ``serialized_data`` under ``prompt``.

        Args:
            api_key: OpenAI API key
            prompt: Analysis instructions
            serialized_data: Exported rows (JSON or CSV text)
            model: Model name, config default if None

        Returns:
            Text of the first completion, or NO_CONTENT when the response has none

        Raises:
            ValidationError: Any input is empty, or the key is not usable in a header
            ApiError: Endpoint returned an error status
            TransportError: Network failure
        """
        if not api_key or not api_key.strip():
            raise ValidationError("OpenAI API key is required")
        if not api_key.isascii():
            raise ValidationError("OpenAI API key contains non-ASCII characters")
        if not prompt or not prompt.strip():
            raise ValidationError("Analysis prompt is required")
        if not serialized_data or not serialized_data.strip():
            raise ValidationError("Data for analysis is required")

        model = model or self.config.openai_model
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_MESSAGE},
                {"role": "user", "content": build_user_message(prompt, serialized_data)},
            ],
            "temperature": self.config.openai_temperature,
        }

        self._log.info("analysis_start", model=model, data_chars=len(serialized_data))
        try:
            response = await self._http.post(
                f"{self.config.openai_base_url}/chat/completions",
                headers={"Authorization": f"Bearer {api_key.strip()}"},
                json=payload,
            )
        except httpx.HTTPError as e:
            raise TransportError("analyze", str(e) or type(e).__name__) from e

        if response.is_error:
            message = _error_message(response)
            self._log.error("analysis_failed", status=response.status_code, error=message)
            raise ApiError(response.status_code, message)

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("analyze", "response body is not valid JSON") from e

        content = _first_content(body)
        self._log.info("analysis_complete", model=model, empty=content is None)
        return content or NO_CONTENT


def _error_message(response: httpx.Response) -> str:
    """Provider error message from the body, else the HTTP reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
    return response.reason_phrase or f"HTTP {response.status_code}"


def _first_content(body: Any) -> str | None:
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None
