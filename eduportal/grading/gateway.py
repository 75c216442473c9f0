import logging
from typing import Protocol, Sequence

import httpx
from pydantic import ValidationError

from eduportal.core.config import API_URL, HTTP_TIMEOUT_SECONDS
from eduportal.grading.entities import GradeChange, GradingDataset, SubmissionInfo
from eduportal.grading.errors import GatewayError

logger = logging.getLogger(__name__)


class GradingGateway(Protocol):
    async def fetch_dataset(self, task_id: int) -> GradingDataset: ...

    async def persist_batch(self, task_id: int, changes: Sequence[GradeChange]) -> None: ...

    async def fetch_submission(self, submission_id: int) -> SubmissionInfo: ...


class HttpGradingGateway:
    """REST client for the faculty grading endpoints.

    The caller owns ``client`` (base URL, identity headers, transport) and
    closes it; the gateway only issues requests and maps failures to
    ``GatewayError``.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_settings(cls, headers: dict[str, str] | None = None) -> "HttpGradingGateway":
        client = httpx.AsyncClient(
            base_url=API_URL,
            headers=headers or {},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        return cls(client)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            detail = _error_detail(exc.response)
            logger.warning("%s %s -> %s: %s", method, url, status_code, detail)
            raise GatewayError(detail, status_code=status_code) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise GatewayError(f"Request failed: {exc}") from exc
        return response

    async def fetch_dataset(self, task_id: int) -> GradingDataset:
        response = await self._request("GET", f"/faculty/tasks/{task_id}/grades")
        try:
            return GradingDataset.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GatewayError(f"Malformed grading dataset: {exc}") from exc

    async def persist_batch(self, task_id: int, changes: Sequence[GradeChange]) -> None:
        payload = {"grades": [change.model_dump() for change in changes]}
        await self._request("POST", f"/faculty/tasks/{task_id}/grades", json=payload)

    async def fetch_submission(self, submission_id: int) -> SubmissionInfo:
        response = await self._request("GET", f"/faculty/submissions/{submission_id}")
        try:
            return SubmissionInfo.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise GatewayError(f"Malformed submission: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    detail = data.get("detail") if isinstance(data, dict) else None
    return str(detail) if detail else f"HTTP {response.status_code}"
