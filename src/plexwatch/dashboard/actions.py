"""Control actions (start/stop/restart) invoked through the dashboard UI."""

from __future__ import annotations

from typing import Optional, Sequence

from plexwatch.browser.session import SessionManager
from plexwatch.core.locks import LockManager, LockTable
from plexwatch.core.models import ActionOutcome, ControlAction, ServerConfig
from plexwatch.dashboard.probe import NAVIGATION_TIMEOUT_MS, open_dashboard
from plexwatch.dashboard.strategies import DEFAULT_CONTROL_LOCATORS, ControlLocator
from plexwatch.services.audit_logger import AuditLogger
from plexwatch.utils.logging import get_logger


SETTLE_DELAY_MS = 3_000
ACTION_IN_PROGRESS = "Another action is already in progress for this server"


class ControlNotFoundError(RuntimeError):
    """No locator could find the requested control on the page."""


class ActionExecutor:
    """Clicks dashboard controls, at most one action in flight per dashboard URL."""

    def __init__(
        self,
        session: SessionManager,
        *,
        locks: LockManager | None = None,
        locators: Optional[Sequence[ControlLocator]] = None,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        settle_ms: int = SETTLE_DELAY_MS,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.session = session
        self.locks = locks if locks is not None else LockTable()
        self.locators = list(locators) if locators is not None else list(DEFAULT_CONTROL_LOCATORS)
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_ms = settle_ms
        self._audit = audit_logger
        self.logger = get_logger("ActionExecutor")

    async def execute(self, server: ServerConfig, action: ControlAction | str) -> ActionOutcome:
        action = ControlAction(action)
        async with self.locks.lock(server.dashboard_url) as acquired:
            if not acquired:
                self.logger.info("[%s] %s rejected: action in progress", server.name, action.value)
                outcome = ActionOutcome(
                    action=action, server=server.name, success=False, error=ACTION_IN_PROGRESS
                )
            else:
                outcome = await self._run(server, action)
        await self._record(server, outcome)
        return outcome

    async def _run(self, server: ServerConfig, action: ControlAction) -> ActionOutcome:
        try:
            async with self.session.page() as page:
                await open_dashboard(page, server.dashboard_url, timeout_ms=self.navigation_timeout_ms)
                target = await self._locate(page, action)
                await target.click()
                self.logger.info("[%s] %s button clicked", server.name, action.value)
                # the dashboard transitions asynchronously; give it a head start
                await page.wait_for_timeout(self.settle_ms)
        except Exception as exc:
            self.logger.warning("[%s] %s failed: %s", server.name, action.value, exc)
            return ActionOutcome(
                action=action,
                server=server.name,
                success=False,
                error=str(exc) or exc.__class__.__name__,
            )
        return ActionOutcome(action=action, server=server.name, success=True)

    async def _locate(self, page, action: ControlAction):
        for locator in self.locators:
            target = await locator.locate(page, action)
            if target is not None:
                self.logger.debug("%s control found via %s locator", action.value, locator.name)
                return target
        raise ControlNotFoundError(f"Could not find {action.value} button on dashboard")

    async def _record(self, server: ServerConfig, outcome: ActionOutcome) -> None:
        if not self._audit:
            return
        try:
            await self._audit.log(
                event="action_result",
                server=server.name,
                payload=outcome.model_dump(mode="json"),
            )
        except Exception:
            self.logger.debug("Failed to persist audit log", exc_info=True)
