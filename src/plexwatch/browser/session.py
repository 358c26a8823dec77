"""Shared persistent Playwright session for probing and controlling dashboards."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, Sequence, Set

from playwright.async_api import BrowserContext, Page, async_playwright

from plexwatch.utils.logging import get_logger


logger = get_logger("SessionManager")


try:  # optional stealth add-on
    from playwright_stealth import stealth_async
except ImportError:  # pragma: no cover - only loaded when extra is installed
    stealth_async = None  # type: ignore


class SessionManager:
    """Owns the single browser context rooted at a persistent profile directory.

    The profile directory keeps cookies and local storage across restarts, so a
    login performed once through ``scripts/login.py`` is reused by every probe
    and action. Pages are short-lived and handed out through :meth:`page`.

    ``ensure_session`` is not synchronized: call it once during startup, before
    any probe or action can run concurrently.
    """

    DEFAULT_LAUNCH_ARGS = [
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--no-sandbox",
    ]

    def __init__(
        self,
        user_data_dir: Path,
        *,
        headless: bool = True,
        extra_launch_args: Sequence[str] | None = None,
        enable_stealth: bool = False,
        playwright_factory: Callable[[], object] = async_playwright,
    ) -> None:
        self.user_data_dir = Path(user_data_dir)
        self.headless = headless
        self.enable_stealth = enable_stealth
        self._playwright_factory = playwright_factory
        self._pw = None
        self._context: Optional[BrowserContext] = None
        self._stealth_tasks: Set[asyncio.Task[None]] = set()
        self._launch_args = list(self.DEFAULT_LAUNCH_ARGS)
        if extra_launch_args:
            for arg in extra_launch_args:
                if arg not in self._launch_args:
                    self._launch_args.append(arg)

    @property
    def is_open(self) -> bool:
        return self._context is not None

    def _cleanup_chromium_locks(self) -> None:
        """Remove Chromium singleton files left behind by a crashed process."""
        for lock_name in ("SingletonLock", "SingletonCookie", "SingletonSocket"):
            lock_path = self.user_data_dir / lock_name
            if not (lock_path.exists() or lock_path.is_symlink()):
                continue
            try:
                lock_path.unlink()
                logger.debug("Removed stale lock file: %s", lock_path)
            except OSError as exc:
                logger.warning("Could not remove lock file %s: %s", lock_path, exc)

    async def _enable_stealth(self, context: BrowserContext) -> None:
        if not self.enable_stealth:
            return
        if stealth_async is None:
            logger.warning("Stealth requested but playwright-stealth is not installed")
            return

        async def _stealth_page(page: Page) -> None:
            try:
                await stealth_async(page)
            except Exception as exc:  # pragma: no cover - best effort hook
                logger.warning("Failed to apply stealth scripts: %s", exc)

        for page in context.pages:
            await _stealth_page(page)

        def _on_page(page: Page) -> None:
            task = asyncio.create_task(_stealth_page(page))
            self._stealth_tasks.add(task)
            task.add_done_callback(self._stealth_tasks.discard)

        context.on("page", _on_page)
        logger.info("playwright-stealth enabled for persistent context")

    async def ensure_session(self) -> BrowserContext:
        """Return the live context, launching it on first use."""
        if self._context is not None:
            return self._context

        self.user_data_dir.mkdir(parents=True, exist_ok=True)
        self._cleanup_chromium_locks()

        if self._pw is None:
            self._pw = await self._playwright_factory().start()
        logger.info(
            "Launching Chromium context (headless=%s, dir=%s)", self.headless, self.user_data_dir
        )
        context = await self._pw.chromium.launch_persistent_context(
            str(self.user_data_dir),
            headless=self.headless,
            args=self._launch_args,
        )
        await self._enable_stealth(context)
        self._context = context
        return context

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Yield a fresh page; it is closed on every exit path."""
        context = await self.ensure_session()
        page = await context.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except Exception as exc:
                logger.debug("Page close failed: %s", exc)

    async def close_session(self) -> None:
        """Release the context and Playwright driver. Safe to call repeatedly."""
        context, self._context = self._context, None
        pw, self._pw = self._pw, None
        if context is not None:
            logger.info("Closing browser session")
            try:
                await context.close()
            except Exception as exc:
                logger.warning("Error while closing browser context: %s", exc)
        for task in list(self._stealth_tasks):
            task.cancel()
        self._stealth_tasks.clear()
        if pw is not None:
            try:
                await pw.stop()
            except Exception as exc:
                logger.warning("Error while stopping Playwright driver: %s", exc)
