"""Tests for ConnectivityMonitor (F2)."""

import asyncio

import pytest

from nabha.offline.connectivity import ConnectivityMonitor, ConnectivityState


class Recorder:
    """Async listener that records the states it receives."""

    def __init__(self):
        self.states: list[ConnectivityState] = []

    async def __call__(self, state: ConnectivityState) -> None:
        self.states.append(state)


class TestInitialState:
    """Tests for construction."""

    def test_starts_online(self):
        monitor = ConnectivityMonitor(online=True)
        assert monitor.is_online
        assert monitor.state is ConnectivityState.ONLINE

    def test_starts_offline(self):
        monitor = ConnectivityMonitor(online=False)
        assert not monitor.is_online
        assert monitor.state is ConnectivityState.OFFLINE


class TestTransitions:
    """Tests for edge-triggered notifications."""

    @pytest.mark.asyncio
    async def test_transition_notifies_listener(self):
        """Offline -> online notifies once with ONLINE."""
        monitor = ConnectivityMonitor(online=False)
        recorder = Recorder()
        monitor.subscribe(recorder)

        changed = await monitor.set_online(True)

        assert changed is True
        assert recorder.states == [ConnectivityState.ONLINE]

    @pytest.mark.asyncio
    async def test_same_state_is_ignored(self):
        """Repeating the current state does not notify."""
        monitor = ConnectivityMonitor(online=True)
        recorder = Recorder()
        monitor.subscribe(recorder)

        changed = await monitor.set_online(True)

        assert changed is False
        assert recorder.states == []

    @pytest.mark.asyncio
    async def test_each_flap_notifies(self):
        """Every transition is reported, without coalescing."""
        monitor = ConnectivityMonitor(online=False)
        recorder = Recorder()
        monitor.subscribe(recorder)

        for online in [True, False, True, True, False]:
            await monitor.set_online(online)

        assert recorder.states == [
            ConnectivityState.ONLINE,
            ConnectivityState.OFFLINE,
            ConnectivityState.ONLINE,
            ConnectivityState.OFFLINE,
        ]

    @pytest.mark.asyncio
    async def test_state_updated_before_listeners_run(self):
        """Listeners see the new state on the monitor."""
        monitor = ConnectivityMonitor(online=False)
        seen = []

        async def listener(state):
            seen.append(monitor.is_online)

        monitor.subscribe(listener)
        await monitor.set_online(True)

        assert seen == [True]


class TestSubscriptions:
    """Tests for subscribe/unsubscribe."""

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self):
        """An unsubscribed listener is not called."""
        monitor = ConnectivityMonitor(online=False)
        recorder = Recorder()
        unsubscribe = monitor.subscribe(recorder)

        unsubscribe()
        await monitor.set_online(True)

        assert recorder.states == []
        assert monitor.listener_count == 0

    def test_unsubscribe_twice_is_safe(self):
        monitor = ConnectivityMonitor()
        unsubscribe = monitor.subscribe(Recorder())
        unsubscribe()
        unsubscribe()
        assert monitor.listener_count == 0

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self):
        """A listener error is logged; later listeners still run."""
        monitor = ConnectivityMonitor(online=False)

        async def broken(state):
            raise RuntimeError("listener exploded")

        recorder = Recorder()
        monitor.subscribe(broken)
        monitor.subscribe(recorder)

        await monitor.set_online(True)

        assert recorder.states == [ConnectivityState.ONLINE]


class TestFollow:
    """Tests for consuming a host signal stream."""

    @pytest.mark.asyncio
    async def test_follow_applies_signals(self):
        """Each value from the stream is applied in order."""
        monitor = ConnectivityMonitor(online=True)
        recorder = Recorder()
        monitor.subscribe(recorder)

        async def host_signals():
            for online in [False, False, True]:
                yield online

        await monitor.follow(host_signals())

        assert recorder.states == [
            ConnectivityState.OFFLINE,
            ConnectivityState.ONLINE,
        ]
        assert monitor.is_online

    @pytest.mark.asyncio
    async def test_signal_applied_while_listener_blocked(self):
        """A slow listener does not hold back later host signals."""
        monitor = ConnectivityMonitor(online=False)
        started = asyncio.Event()
        release = asyncio.Event()
        went_offline = asyncio.Event()

        async def slow_listener(state):
            if state is ConnectivityState.ONLINE:
                started.set()
                await release.wait()

        monitor.subscribe(slow_listener)

        async def host_signals():
            yield True
            await asyncio.wait_for(started.wait(), timeout=5)
            yield False
            went_offline.set()

        following = asyncio.create_task(monitor.follow(host_signals()))
        await asyncio.wait_for(went_offline.wait(), timeout=5)

        assert not monitor.is_online
        assert not following.done()

        release.set()
        await asyncio.wait_for(following, timeout=5)
        assert monitor.state is ConnectivityState.OFFLINE


class TestShutdown:
    """Tests for wait_idle / aclose."""

    @pytest.mark.asyncio
    async def test_aclose_cancels_pending_notifications(self):
        monitor = ConnectivityMonitor(online=False)
        cancelled = asyncio.Event()
        started = asyncio.Event()

        async def stuck_listener(state):
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        monitor.subscribe(stuck_listener)

        async def host_signals():
            yield True

        following = asyncio.create_task(monitor.follow(host_signals()))
        await asyncio.wait_for(started.wait(), timeout=5)

        await monitor.aclose()

        assert cancelled.is_set()
        await asyncio.wait_for(following, timeout=5)

    @pytest.mark.asyncio
    async def test_wait_idle_without_notifications(self):
        monitor = ConnectivityMonitor(online=True)
        await asyncio.wait_for(monitor.wait_idle(), timeout=5)
