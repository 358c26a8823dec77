"""Runtime orchestration: periodic refresh, control actions, shutdown."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional, Sequence, Set

from plexwatch.browser.session import SessionManager
from plexwatch.core.models import ActionOutcome, ControlAction, ServerConfig, StatusSnapshot
from plexwatch.dashboard.actions import ActionExecutor
from plexwatch.dashboard.debug import capture_dashboard
from plexwatch.dashboard.probe import StatusProbe
from plexwatch.reporting.reconciler import StatusReconciler
from plexwatch.utils.logging import get_logger


class InvalidServerSelection(ValueError):
    """Index does not point at a configured server."""


class MonitorRuntime:
    """Owns the session and wires probes, actions and reconciliation together.

    Refresh cycles are serialized, which keeps probes strictly sequential in
    configuration order no matter whether the periodic task, a ``/status``
    command or a post-action refresh triggered them.
    """

    def __init__(
        self,
        servers: Sequence[ServerConfig],
        *,
        session: SessionManager,
        reconciler: StatusReconciler,
        probe: Optional[StatusProbe] = None,
        executor: Optional[ActionExecutor] = None,
        refresh_interval_seconds: float = 300,
        post_action_refresh_seconds: float = 5,
    ) -> None:
        self.servers = list(servers)
        self.session = session
        self.reconciler = reconciler
        self.probe = probe if probe is not None else StatusProbe(session)
        self.executor = executor if executor is not None else ActionExecutor(session)
        self.refresh_interval_seconds = refresh_interval_seconds
        self.post_action_refresh_seconds = post_action_refresh_seconds
        self.logger = get_logger("MonitorRuntime")
        self.last_snapshots: List[StatusSnapshot] = []
        self._refresh_lock = asyncio.Lock()
        self._lifecycle_lock = asyncio.Lock()
        self._started = False
        self._stop_event = asyncio.Event()
        self._periodic_task: Optional[asyncio.Task[None]] = None
        self._pending: Set[asyncio.Task[None]] = set()

    @property
    def started(self) -> bool:
        return self._started

    def server_at(self, index: int) -> ServerConfig:
        if index < 0 or index >= len(self.servers):
            raise InvalidServerSelection(f"No server at index {index}")
        return self.servers[index]

    async def probe_all(self) -> List[StatusSnapshot]:
        snapshots = []
        for server in self.servers:
            snapshots.append(await self.probe.probe(server))
        return snapshots

    async def refresh(self) -> List[StatusSnapshot]:
        """Probe every server in order, then upsert the status message."""
        async with self._refresh_lock:
            snapshots = await self.probe_all()
            self.last_snapshots = snapshots
            await self.reconciler.reconcile(snapshots)
            return snapshots

    async def _safe_refresh(self) -> None:
        try:
            await self.refresh()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.logger.exception("Error refreshing status: %s", exc)

    async def start(self) -> None:
        async with self._lifecycle_lock:
            if self._started:
                return
            self.logger.info("Starting runtime for %d servers", len(self.servers))
            try:
                await self.session.ensure_session()
            except Exception as exc:
                # page() relaunches lazily, so the periodic loop still gets a chance
                self.logger.exception("Browser session failed to launch: %s", exc)
            self._stop_event.clear()
            await self._safe_refresh()
            self._periodic_task = asyncio.create_task(self._periodic(), name="status-refresh")
            self._started = True

    async def _periodic(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.refresh_interval_seconds)
            except asyncio.TimeoutError:
                await self._safe_refresh()

    async def stop(self) -> None:
        async with self._lifecycle_lock:
            if not self._started:
                await self.session.close_session()
                return
            self.logger.info("Stopping runtime")
            self._stop_event.set()
            tasks = [t for t in (self._periodic_task, *self._pending) if t is not None]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._periodic_task = None
            self._pending.clear()
            await self.session.close_session()
            self._started = False

    def schedule_refresh(self, delay: float) -> asyncio.Task[None]:
        async def _delayed() -> None:
            await asyncio.sleep(delay)
            await self._safe_refresh()

        task = asyncio.create_task(_delayed(), name="status-refresh-delayed")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def perform_action(self, index: int, action: ControlAction | str) -> ActionOutcome:
        server = self.server_at(index)
        outcome = await self.executor.execute(server, action)
        self.schedule_refresh(self.post_action_refresh_seconds)
        return outcome

    async def capture_debug(self, index: int) -> Optional[Path]:
        return await capture_dashboard(self.session, self.server_at(index))

    async def run_forever(self) -> None:
        """Convenience helper for long-running processes without a chat client loop."""
        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()
