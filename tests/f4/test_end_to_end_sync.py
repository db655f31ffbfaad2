"""End-to-end sync against the real remote API app (F4).

The coordinator talks to the FastAPI app in-process through
httpx.ASGITransport.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from nabha.config.app_config import SyncConfig
from nabha.db.submissions_repository import get_submissions_for_assignment
from nabha.offline.connectivity import ConnectivityMonitor
from nabha.offline.models import AssignmentSubmission, ProgressRecord
from nabha.offline.remote import RemoteClient
from nabha.offline.store import OfflineStore
from nabha.offline.sync import SaveOutcome, SyncCoordinator


@pytest.fixture
def asgi_config():
    return SyncConfig(api_base_url="http://testserver/api", session_cookie_env=None)


@pytest.fixture
def coordinator(tmp_path, server_app, asgi_config):
    """Coordinator starting offline, delivering to the in-process API."""
    remote = RemoteClient(asgi_config, transport=httpx.ASGITransport(app=server_app))
    coordinator = SyncCoordinator(
        OfflineStore(tmp_path / "offline.db"),
        remote,
        ConnectivityMonitor(online=False),
    )
    yield coordinator
    coordinator.close()


class TestEndToEnd:
    """Offline saves reach the server after reconnect."""

    @pytest.mark.asyncio
    async def test_offline_lesson_progress_reaches_server(self, coordinator, server_app):
        """Slides advanced offline end up as one upserted row."""
        for pct in [25, 50, 75, 100]:
            outcome = await coordinator.save_progress(
                ProgressRecord(student_id="s1", content_item_id="lesson-1", progress_percentage=pct)
            )
            assert outcome is SaveOutcome.QUEUED

        await coordinator.monitor.set_online(True)

        assert await coordinator.pending_count() == 0
        listing = TestClient(server_app).get("/api/progress/student/s1").json()
        assert listing["count"] == 1
        assert listing["progress"][0]["progressPercentage"] == 100

    @pytest.mark.asyncio
    async def test_offline_submission_reaches_server(self, coordinator, server_app):
        await coordinator.submit_assignment(
            AssignmentSubmission(assignment_id="a1", student_id="s1", answers={"q1": 1})
        )

        await coordinator.monitor.set_online(True)

        assert await coordinator.pending_count() == 0
        submissions = get_submissions_for_assignment("a1")
        assert len(submissions) == 1
        assert submissions[0].answers == {"q1": 1}

    @pytest.mark.asyncio
    async def test_online_save_delivered_directly(self, coordinator, server_app):
        await coordinator.monitor.set_online(True)

        outcome = await coordinator.save_progress(
            ProgressRecord(student_id="s2", content_item_id="lesson-9", progress_percentage=10)
        )

        assert outcome is SaveOutcome.DELIVERED
        listing = TestClient(server_app).get("/api/progress/student/s2").json()
        assert listing["count"] == 1
