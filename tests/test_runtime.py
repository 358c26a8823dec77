from __future__ import annotations

import asyncio

import pytest

from conftest import FakeChannel, FakePage
from plexwatch.core.models import ActionOutcome, ControlAction, ServerConfig, StatusSnapshot, StatusText
from plexwatch.core.runtime import InvalidServerSelection, MonitorRuntime
from plexwatch.data.state_store import StatusMessageStore
from plexwatch.reporting.reconciler import StatusReconciler


SERVERS = [
    ServerConfig(name="A", dashboard_url="https://box.example.tv/app/dashboard/a"),
    ServerConfig(name="B", dashboard_url="https://box.example.tv/app/dashboard/b"),
    ServerConfig(name="C", dashboard_url="https://box.example.tv/app/dashboard/c"),
]


class StubSession:
    def __init__(self) -> None:
        self.ensured = 0
        self.closed = 0

    async def ensure_session(self):
        self.ensured += 1

    async def close_session(self) -> None:
        self.closed += 1


class RecordingProbe:
    """Yields control mid-probe so overlapping refreshes would interleave."""

    def __init__(self) -> None:
        self.calls: list = []
        self.active = 0
        self.max_active = 0

    async def probe(self, server: ServerConfig) -> StatusSnapshot:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0)
        self.calls.append(server.name)
        self.active -= 1
        return StatusSnapshot(
            name=server.name,
            dashboard_url=server.dashboard_url,
            online=True,
            status_text=StatusText.ONLINE,
        )


class RecordingReconciler:
    def __init__(self) -> None:
        self.batches: list = []
        self.updated = asyncio.Event()

    async def reconcile(self, snapshots) -> int:
        self.batches.append([s.name for s in snapshots])
        self.updated.set()
        return 1


class StubExecutor:
    def __init__(self) -> None:
        self.calls: list = []

    async def execute(self, server, action) -> ActionOutcome:
        self.calls.append((server.name, ControlAction(action)))
        return ActionOutcome(action=action, server=server.name, success=True)


def _runtime(**kwargs) -> MonitorRuntime:
    options = dict(
        session=StubSession(),
        reconciler=RecordingReconciler(),
        probe=RecordingProbe(),
        executor=StubExecutor(),
        post_action_refresh_seconds=0,
    )
    options.update(kwargs)
    return MonitorRuntime(SERVERS, **options)


@pytest.mark.asyncio
async def test_refresh_probes_in_configuration_order():
    runtime = _runtime()
    snapshots = await runtime.refresh()

    assert [s.name for s in snapshots] == ["A", "B", "C"]
    assert runtime.reconciler.batches == [["A", "B", "C"]]
    assert runtime.last_snapshots == snapshots


@pytest.mark.asyncio
async def test_overlapping_refreshes_never_probe_concurrently():
    runtime = _runtime()
    await asyncio.gather(runtime.refresh(), runtime.refresh())

    assert runtime.probe.max_active == 1
    assert runtime.probe.calls == ["A", "B", "C", "A", "B", "C"]


@pytest.mark.asyncio
async def test_action_selects_by_index_and_schedules_refresh():
    runtime = _runtime()
    outcome = await runtime.perform_action(1, "restart")

    assert outcome.success
    assert runtime.executor.calls == [("B", ControlAction.RESTART)]
    await asyncio.wait_for(runtime.reconciler.updated.wait(), timeout=1)
    assert runtime.reconciler.batches == [["A", "B", "C"]]


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [-1, 3, 99])
async def test_invalid_index_is_rejected(index):
    runtime = _runtime()
    with pytest.raises(InvalidServerSelection):
        await runtime.perform_action(index, "start")
    assert runtime.executor.calls == []


@pytest.mark.asyncio
async def test_start_refreshes_periodically_and_stop_cleans_up():
    runtime = _runtime(refresh_interval_seconds=0.01)
    await runtime.start()
    await runtime.start()

    assert runtime.session.ensured == 1
    assert runtime.reconciler.batches[0] == ["A", "B", "C"]

    while len(runtime.reconciler.batches) < 3:
        await asyncio.sleep(0.01)

    await runtime.stop()
    await runtime.stop()
    settled = len(runtime.reconciler.batches)
    await asyncio.sleep(0.05)

    assert len(runtime.reconciler.batches) == settled
    assert runtime.session.closed == 2
    assert not runtime.started


@pytest.mark.asyncio
async def test_start_keeps_running_when_first_launch_fails():
    class FlakySession(StubSession):
        async def ensure_session(self):
            self.ensured += 1
            if self.ensured == 1:
                raise RuntimeError("Executable doesn't exist")

    runtime = _runtime(session=FlakySession(), refresh_interval_seconds=0.01)
    await runtime.start()

    assert runtime.started
    assert runtime.session.ensured == 1
    assert runtime.reconciler.batches[0] == ["A", "B", "C"]

    while len(runtime.reconciler.batches) < 3:
        await asyncio.sleep(0.01)

    await runtime.stop()
    assert runtime.session.closed == 1
    assert not runtime.started


@pytest.mark.asyncio
async def test_stop_cancels_pending_post_action_refresh():
    runtime = _runtime(post_action_refresh_seconds=60)
    await runtime.start()
    await runtime.perform_action(0, "stop")
    await runtime.stop()

    assert runtime.reconciler.batches == [["A", "B", "C"]]


@pytest.mark.asyncio
async def test_failing_reconcile_does_not_break_the_loop():
    class Broken:
        calls = 0

        async def reconcile(self, snapshots):
            Broken.calls += 1
            raise ConnectionError("discord unreachable")

    runtime = _runtime(reconciler=Broken(), refresh_interval_seconds=0.01)
    await runtime.start()
    while Broken.calls < 2:
        await asyncio.sleep(0.01)
    await runtime.stop()


@pytest.mark.asyncio
async def test_one_failing_server_does_not_hide_the_others(make_browser, tmp_path):
    pages = iter(
        [
            FakePage(indicator="Running"),
            FakePage(goto_error=TimeoutError("Timeout 30000ms exceeded.")),
            FakePage(body="stopped"),
        ]
    )
    browser = make_browser(lambda: next(pages))
    channel = FakeChannel()
    runtime = MonitorRuntime(
        SERVERS,
        session=browser.session,
        reconciler=StatusReconciler(channel, StatusMessageStore(tmp_path / "data.json")),
    )

    snapshots = await runtime.refresh()

    assert [s.status_text for s in snapshots] == [StatusText.ONLINE, StatusText.ERROR, StatusText.OFFLINE]
    (view,) = channel.sent
    assert view.all_clear is False
    assert [line.label for line in view.lines] == ["Online", "Error", "Offline"]


@pytest.mark.asyncio
async def test_capture_debug_saves_screenshot(make_browser, tmp_path, monkeypatch):
    monkeypatch.setenv("PLEXWATCH_ARTIFACTS", str(tmp_path / "artifacts"))
    browser = make_browser(FakePage)
    runtime = MonitorRuntime(SERVERS, session=browser.session, reconciler=RecordingReconciler())

    path = await runtime.capture_debug(2)

    assert path is not None and path.exists()
    assert path.parent == (tmp_path / "artifacts").resolve()
    assert path.name.startswith("debug_C_")
    assert browser.pages[0].screenshots == [(str(path), True)]
    assert browser.pages[0].closed
