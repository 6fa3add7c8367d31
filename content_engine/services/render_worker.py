"""
HTTP client for the isolated Remotion render worker.

Worker API:
    POST /render            queue a job {jobId, code, outputConfig}
    GET  /status/{jobId}    job status {status, resultUrl?, error?}
    GET  /health            liveness
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from content_engine.schemas.render import WorkerJobStatus

logger = logging.getLogger(__name__)


WORKER_UNAVAILABLE_MESSAGE = "Render worker not available. Please start the render-worker service."


class RenderWorkerError(Exception):
    """Raised when the render worker cannot be reached or answers unexpectedly."""


@dataclass(frozen=True)
class OutputConfig:
    fps: int
    width: int
    height: int
    duration_in_frames: int

    def to_payload(self) -> Dict[str, int]:
        return {
            "fps": self.fps,
            "width": self.width,
            "height": self.height,
            "durationInFrames": self.duration_in_frames,
        }


@dataclass
class RenderJob:
    """A validated composition addressed to the render worker."""

    job_id: str
    scene_spec_id: str
    code: str
    output_config: OutputConfig
    status: str = "queued"


@dataclass
class DispatchResult:
    success: bool
    error: Optional[str] = None
    worker_unavailable: bool = False


class RenderWorkerClient:
    """Submits render jobs to the worker and reads their status. No retries."""

    def __init__(
        self,
        base_url: str,
        dispatch_timeout: float = 30.0,
        status_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._dispatch_timeout = dispatch_timeout
        self._status_timeout = status_timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self._base_url, timeout=timeout, transport=self._transport)

    async def dispatch(self, job: RenderJob) -> DispatchResult:
        """
        Queue a render job on the worker.

        Connection refusal is reported with ``worker_unavailable=True``;
        any other failure carries the worker's or transport's error message.
        """
        logger.info(f"Dispatching render job {job.job_id} to {self._base_url}")
        payload = {
            "jobId": job.job_id,
            "code": job.code,
            "outputConfig": job.output_config.to_payload(),
        }

        try:
            async with self._client(self._dispatch_timeout) as client:
                response = await client.post("/render", json=payload)
        except httpx.ConnectError as e:
            logger.warning(f"Render worker not available at {self._base_url}: {e}")
            return DispatchResult(success=False, error=WORKER_UNAVAILABLE_MESSAGE, worker_unavailable=True)
        except httpx.HTTPError as e:
            logger.error(f"Render dispatch error: {e!r}")
            return DispatchResult(success=False, error=str(e) or "Failed to dispatch render job")

        body = _json_or_empty(response)
        if response.is_success and (body.get("accepted") or body.get("success") or body.get("jobId")):
            logger.info(f"Render job dispatched: {job.job_id}")
            return DispatchResult(success=True)

        error = body.get("error") or f"Render worker rejected the job (HTTP {response.status_code})"
        logger.error(f"Render dispatch rejected for job {job.job_id}: {error}")
        return DispatchResult(success=False, error=error)

    async def get_status(self, job_id: str) -> WorkerJobStatus:
        """
        Fetch the worker's status for a job.

        Raises:
            RenderWorkerError: On transport errors, non-2xx responses or
                               malformed bodies
        """
        try:
            async with self._client(self._status_timeout) as client:
                response = await client.get(f"/status/{job_id}")
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise RenderWorkerError(f"Status check failed for job {job_id}: {e!r}") from e

        try:
            return WorkerJobStatus.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RenderWorkerError(f"Malformed status response for job {job_id}: {e}") from e

    async def check_health(self) -> Dict[str, Any]:
        """Return the worker's health payload, or an unhealthy marker."""
        try:
            async with self._client(self._status_timeout) as client:
                response = await client.get("/health")
                response.raise_for_status()
        except httpx.HTTPError as e:
            return {"status": "unhealthy", "error": str(e) or type(e).__name__}
        return {**_json_or_empty(response), "status": "healthy"}


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
