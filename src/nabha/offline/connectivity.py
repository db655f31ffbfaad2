"""Connectivity monitor: online/offline state fed by host notifications.

The monitor never probes the network. The host (browser bridge, OS hook,
CLI flag) reports reachability through set_online() or follow(); the
monitor keeps the current state and notifies subscribers only when the
state actually changes.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import AsyncIterable, Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class ConnectivityState(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


Listener = Callable[[ConnectivityState], Awaitable[None]]


class ConnectivityMonitor:
    """Edge-triggered online/offline state holder.

    The state switches as soon as the host reports a change. Listeners
    are async callables receiving the new state; each transition notifies
    them in a tracked background task, in registration order, one after
    another. A failing listener is logged and the rest still run.
    """

    def __init__(self, online: bool = True):
        self._state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state is ConnectivityState.ONLINE

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for state transitions.

        Returns:
            Callable that removes the listener. Safe to call twice.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def set_online(self, online: bool) -> bool:
        """Apply a host reachability notification and wait for its listeners.

        Args:
            online: Reachability reported by the host

        Returns:
            True if the state changed (listeners were notified)
        """
        task = self._apply(online)
        if task is None:
            return False
        await task
        return True

    async def follow(self, signals: AsyncIterable[bool]) -> None:
        """Consume a stream of host reachability values until it ends.

        Each value is applied as soon as it arrives; listener work runs in
        the background and is awaited once the stream ends.
        """
        async for online in signals:
            self._apply(online)
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every pending listener notification has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel pending listener notifications."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _apply(self, online: bool) -> asyncio.Task | None:
        """Switch state now; notify listeners in a tracked task."""
        new_state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE
        if new_state is self._state:
            return None

        self._state = new_state
        logger.info("connectivity.changed", state=new_state.value)

        task = asyncio.create_task(self._notify(new_state, list(self._listeners)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _notify(self, state: ConnectivityState, listeners: list[Listener]) -> None:
        for listener in listeners:
            try:
                await listener(state)
            except Exception as exc:
                logger.warning(
                    "connectivity.listener_failed",
                    state=state.value,
                    error=str(exc),
                )
