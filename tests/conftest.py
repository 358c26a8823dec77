from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

from plexwatch.browser.session import SessionManager
from plexwatch.core.models import ServerConfig


class FakeElement:
    def __init__(self, page: "FakePage", text: Optional[str]) -> None:
        self._page = page
        self.text = text

    async def text_content(self) -> Optional[str]:
        return self.text

    async def click(self) -> None:
        self._page.clicked.append(self.text)


class FakeLocator:
    def __init__(self, elements: List[FakeElement]) -> None:
        self._elements = elements

    async def count(self) -> int:
        return len(self._elements)

    @property
    def first(self) -> FakeElement:
        return self._elements[0]


class FakePage:
    """Just enough of playwright's Page for the dashboard heuristics."""

    def __init__(
        self,
        *,
        landing_url: Optional[str] = None,
        indicator: Optional[str] = None,
        body: str = "",
        role_buttons: Sequence[str] = (),
        signature_buttons: Sequence[str] = (),
        goto_error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.url = "about:blank"
        self.landing_url = landing_url
        self.indicator = indicator
        self.body = body
        self.role_buttons = list(role_buttons)
        self.signature_buttons = list(signature_buttons)
        self.goto_error = goto_error
        self.gate = gate
        self.goto_calls: list = []
        self.selectors: list = []
        self.clicked: list = []
        self.waits: list = []
        self.screenshots: list = []
        self.closed = False

    async def goto(self, url: str, *, wait_until: str | None = None, timeout: int | None = None) -> None:
        self.goto_calls.append((url, wait_until, timeout))
        if self.gate is not None:
            await self.gate.wait()
        if self.goto_error is not None:
            raise self.goto_error
        self.url = self.landing_url or url

    async def query_selector(self, selector: str) -> Optional[FakeElement]:
        self.selectors.append(selector)
        if self.indicator is None:
            return None
        return FakeElement(self, self.indicator)

    async def query_selector_all(self, selector: str) -> List[FakeElement]:
        self.selectors.append(selector)
        return [FakeElement(self, text) for text in self.signature_buttons]

    async def text_content(self, selector: str) -> str:
        self.selectors.append(selector)
        return self.body

    def get_by_role(self, role: str, *, name=None) -> FakeLocator:
        assert role == "button"
        return FakeLocator([FakeElement(self, text) for text in self.role_buttons if name.search(text)])

    async def wait_for_timeout(self, timeout: float) -> None:
        self.waits.append(timeout)

    async def screenshot(self, *, path: str, full_page: bool = False) -> None:
        self.screenshots.append((path, full_page))
        Path(path).write_bytes(b"\x89PNG")

    async def close(self) -> None:
        self.closed = True


class FakeContext:
    def __init__(self, page_factory: Callable[[], FakePage]) -> None:
        self.page_factory = page_factory
        self.pages: list = []
        self.opened: List[FakePage] = []
        self.closed = False
        self.handlers: dict = {}

    async def new_page(self) -> FakePage:
        page = self.page_factory()
        self.opened.append(page)
        for handler in self.handlers.get("page", []):
            handler(page)
        return page

    def on(self, event: str, handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    async def close(self) -> None:
        self.closed = True


class FakeChromium:
    def __init__(self, context: FakeContext) -> None:
        self.context = context
        self.launches: list = []

    async def launch_persistent_context(self, user_data_dir: str, **kwargs) -> FakeContext:
        self.launches.append((user_data_dir, kwargs))
        return self.context


class FakePlaywright:
    def __init__(self, context: FakeContext) -> None:
        self.chromium = FakeChromium(context)
        self.starts = 0
        self.stopped = False
        self.stop_error: Optional[BaseException] = None

    async def start(self) -> "FakePlaywright":
        self.starts += 1
        return self

    async def stop(self) -> None:
        self.stopped = True
        if self.stop_error is not None:
            raise self.stop_error


class FakeBrowser:
    """Bundles a real SessionManager with a fake playwright driver underneath."""

    def __init__(self, user_data_dir: Path, page_factory: Callable[[], FakePage]) -> None:
        self.context = FakeContext(page_factory)
        self.playwright = FakePlaywright(self.context)
        self.session = SessionManager(user_data_dir, playwright_factory=lambda: self.playwright)

    @property
    def pages(self) -> List[FakePage]:
        return self.context.opened


class FakeChannel:
    """In-memory StatusChannel."""

    def __init__(self, *, first_id: int = 1000) -> None:
        self.messages: dict = {}
        self.sent: list = []
        self.edits: list = []
        self.fetches: list = []
        self.fail_edit = False
        self._next_id = first_id

    async def fetch(self, message_id: int):
        self.fetches.append(message_id)
        if message_id not in self.messages:
            raise LookupError(f"Unknown Message {message_id}")
        return message_id

    async def edit(self, message, view) -> None:
        if self.fail_edit:
            raise PermissionError("Missing Access")
        self.edits.append((message, view))
        self.messages[message] = view

    async def send(self, view) -> int:
        self._next_id += 1
        self.messages[self._next_id] = view
        self.sent.append(view)
        return self._next_id


@pytest.fixture
def server() -> ServerConfig:
    return ServerConfig(name="Plex Main", dashboard_url="https://box.example.tv/app/dashboard/1111")


@pytest.fixture
def make_browser(tmp_path):
    def _make(page_factory: Callable[[], FakePage]) -> FakeBrowser:
        return FakeBrowser(tmp_path / "user_data", page_factory)

    return _make
