"""MJ proxy HTTP client.

Submits imagine / change / describe tasks and converts every outcome,
including transport failures, into a TaskResult. No retries.
"""

import logging

import httpx

from mjbot.command import MSG_SUBMIT_ERROR
from mjbot.models import INTERNAL_ERROR_CODE, TaskRequest, TaskResult

logger = logging.getLogger("mjbot.task_client")


class TaskClient:
    """MJ proxy task submission client."""

    def __init__(
        self,
        base_url: str,
        notify_hook: str = "",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the MJ proxy (e.g., "http://127.0.0.1:8080/mj")
            notify_hook: Callback URL sent along with each task (empty = omitted)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.notify_hook = notify_hook
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def submit(self, request: TaskRequest) -> TaskResult:
        """Submit a task.

        Returns the proxy's result on HTTP 200, the HTTP status and reason on
        any other status, and an internal error result if the call itself fails.
        """
        payload = request.to_payload()
        if self.notify_hook:
            payload["notifyHook"] = self.notify_hook

        url = f"{self.base_url}{request.path}"
        try:
            resp = await self._client.post(url, json=payload)
            if resp.status_code != 200:
                logger.error(
                    "Submit mj task failed, %d: %s", resp.status_code, resp.reason_phrase
                )
                return TaskResult(code=resp.status_code, description=resp.reason_phrase)
            data = resp.json()
            code = data.get("code")
            return TaskResult(
                code=INTERNAL_ERROR_CODE if code is None else int(code),
                description=str(data.get("description", "")),
                result=str(data.get("result") or ""),
            )
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
            logger.error("Submit mj task error (%s): %s", url, e, exc_info=True)
            return TaskResult(code=INTERNAL_ERROR_CODE, description=MSG_SUBMIT_ERROR)
