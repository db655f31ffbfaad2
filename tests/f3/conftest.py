"""Fixtures for F3 tests - Sync coordinator."""

import pytest

from nabha.offline.connectivity import ConnectivityMonitor
from nabha.offline.remote import RemoteClient
from nabha.offline.store import OfflineStore
from nabha.offline.sync import SyncCoordinator


@pytest.fixture
def store(tmp_path):
    """Offline store on a temp database."""
    return OfflineStore(tmp_path / "offline.db")


@pytest.fixture
def remote(sync_config, fake_api):
    """Remote client wired to the fake API."""
    return RemoteClient(sync_config, transport=fake_api.transport)


@pytest.fixture
def make_coordinator(store, remote):
    """Factory building a coordinator with a fresh monitor."""
    created = []

    def _make(online: bool = True) -> SyncCoordinator:
        coordinator = SyncCoordinator(store, remote, ConnectivityMonitor(online=online))
        created.append(coordinator)
        return coordinator

    yield _make

    for coordinator in created:
        coordinator.close()
