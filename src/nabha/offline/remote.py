"""HTTP client for the platform's remote API.

Wraps an httpx.AsyncClient bound to the API base URL. Every call sends the
session cookie and JSON body; any transport error or non-2xx status is
raised as RemoteDeliveryFailed.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from nabha.config.app_config import SyncConfig, load_app_config
from nabha.offline.errors import RemoteDeliveryFailed
from nabha.offline.models import AssignmentSubmission, ProgressRecord

logger = structlog.get_logger(__name__)

PROGRESS_PATH = "/progress"
SUBMIT_ASSIGNMENT_PATH = "/assignments/submit"


class RemoteClient:
    """Async client for progress and assignment endpoints."""

    def __init__(
        self,
        config: SyncConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        session_cookie: str | None = None,
    ):
        """Initialize remote client.

        Args:
            config: Sync configuration (loads app config if not provided)
            transport: Custom httpx transport (tests, ASGI apps)
            session_cookie: Override the session cookie from the environment
        """
        if config is None:
            config = load_app_config().sync

        self.config = config

        cookies = {}
        cookie_value = session_cookie or config.get_session_cookie()
        if cookie_value:
            cookies[config.session_cookie_name] = cookie_value

        self._client = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.request_timeout,
            cookies=cookies,
            headers={"Accept": "application/json"},
            transport=transport,
        )

        logger.debug("remote_client_initialized", base_url=config.api_base_url)

    async def post_progress(self, record: ProgressRecord) -> dict[str, Any]:
        """Upsert progress on the server."""
        return await self._post(PROGRESS_PATH, record.to_wire())

    async def submit_assignment(self, submission: AssignmentSubmission) -> dict[str, Any]:
        """Submit assignment answers."""
        return await self._post(SUBMIT_ASSIGNMENT_PATH, submission.to_wire())

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        start_time = time.time()
        try:
            response = await self._client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.warning("remote.request_failed", path=path, error=str(e))
            raise RemoteDeliveryFailed(f"POST {path} failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.is_success:
            logger.warning(
                "remote.bad_status",
                path=path,
                status=response.status_code,
                latency_ms=latency_ms,
            )
            raise RemoteDeliveryFailed(
                f"POST {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("remote.delivered", path=path, latency_ms=latency_ms)

        try:
            return response.json()
        except ValueError:
            return {}

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RemoteClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
