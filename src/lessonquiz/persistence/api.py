"""Attempts API boundary and its REST implementation."""

import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from ..config.settings import Settings
from ..errors import ApiError
from ..models.attempt import AttemptCreate, AttemptUpdate, QuizAttempt
from ..models.quiz import QuizStep

logger = logging.getLogger(__name__)


class AttemptsApi(Protocol):
    """Server operations the reconciler depends on."""

    async def list_attempts(self, step_id: int | str) -> list[QuizAttempt]: ...

    async def create_attempt(self, attempt: AttemptCreate) -> QuizAttempt: ...

    async def update_attempt(self, attempt_id: int | str, update: AttemptUpdate) -> QuizAttempt: ...

    async def get_step(self, step_id: int | str) -> QuizStep: ...


class HttpAttemptsApi:
    """
    AttemptsApi over the platform's REST endpoints.

    Example:
        >>> async with HttpAttemptsApi.from_settings(get_settings()) as api:
        ...     attempts = await api.list_attempts(42)
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            base_url: API root, e.g. ``https://lms.example.com/api``
            token: Bearer token sent with every request
            timeout: Request timeout in seconds
            client: Preconfigured client; its base URL and headers are used as is
        """
        if client is None:
            headers = {"Authorization": f"Bearer {token}"} if token else {}
            client = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpAttemptsApi":
        return cls(settings.api_base_url, settings.api_token, settings.request_timeout)

    async def __aenter__(self) -> "HttpAttemptsApi":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> Any:
        try:
            response = await self.client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ApiError(
                f"{method} {path} failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e
        logger.debug("%s %s -> %d", method, path, response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned invalid JSON", status_code=response.status_code) from e

    async def list_attempts(self, step_id: int | str) -> list[QuizAttempt]:
        """Attempts for a step, most recent first."""
        data = await self._request("GET", f"/progress/quiz-attempts/step/{step_id}")
        try:
            return [QuizAttempt.model_validate(item) for item in data or []]
        except (ValidationError, TypeError) as e:
            raise ApiError(f"Unexpected attempt payload for step {step_id}: {e}") from e

    async def create_attempt(self, attempt: AttemptCreate) -> QuizAttempt:
        data = await self._request("POST", "/progress/quiz-attempt", json=attempt.model_dump(exclude_none=True))
        return self._attempt(data)

    async def update_attempt(self, attempt_id: int | str, update: AttemptUpdate) -> QuizAttempt:
        data = await self._request("PATCH", f"/progress/quiz-attempts/{attempt_id}", json=update.to_payload())
        return self._attempt(data)

    async def get_step(self, step_id: int | str) -> QuizStep:
        data = await self._request("GET", f"/courses/steps/{step_id}")
        try:
            return QuizStep.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Unexpected step payload for step {step_id}: {e}") from e

    @staticmethod
    def _attempt(data: Any) -> QuizAttempt:
        try:
            return QuizAttempt.model_validate(data)
        except ValidationError as e:
            raise ApiError(f"Unexpected attempt payload: {e}") from e
