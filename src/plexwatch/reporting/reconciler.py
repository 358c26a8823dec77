"""Keeps exactly one chat message showing the latest aggregate status."""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence

from plexwatch.core.models import StatusSnapshot
from plexwatch.data.state_store import StatusMessageStore
from plexwatch.reporting.view import StatusView, build_status_view
from plexwatch.utils.logging import get_logger


class StatusChannel(Protocol):
    """Minimal chat surface the reconciler needs."""

    async def fetch(self, message_id: int) -> Any:
        ...

    async def edit(self, message: Any, view: StatusView) -> None:
        ...

    async def send(self, view: StatusView) -> int:
        """Post a new message and return its id."""
        ...


class StatusReconciler:
    """Upserts the status message referenced by the persisted pointer.

    With a pointer, the referenced message is fetched and edited. If that fails
    for any reason (deleted, no access) a new message is sent instead and the
    pointer moves to it. Without a pointer a new message is sent.
    """

    def __init__(
        self,
        channel: StatusChannel,
        store: StatusMessageStore,
        *,
        renderer: Callable[[Sequence[StatusSnapshot]], StatusView] = build_status_view,
    ) -> None:
        self.channel = channel
        self.store = store
        self.renderer = renderer
        self.logger = get_logger("StatusReconciler")

    async def reconcile(self, snapshots: Sequence[StatusSnapshot]) -> int:
        view = self.renderer(snapshots)
        message_id = self.store.message_id
        if message_id is not None:
            try:
                message = await self.channel.fetch(message_id)
                await self.channel.edit(message, view)
            except Exception as exc:
                self.logger.info("Previous status message %s unavailable (%s); sending new one", message_id, exc)
            else:
                self.logger.info("Status message %s updated", message_id)
                return message_id

        new_id = await self.channel.send(view)
        await self.store.set(new_id)
        self.logger.info("Status message sent (message ID: %s)", new_id)
        return new_id
