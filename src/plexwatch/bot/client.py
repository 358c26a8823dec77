"""discord.py client wiring for the status channel and slash commands."""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands

from plexwatch.bot.commands import ServerControl
from plexwatch.browser.session import SessionManager
from plexwatch.core.locks import LockTable
from plexwatch.core.runtime import MonitorRuntime
from plexwatch.core.settings import RuntimeSettings
from plexwatch.dashboard.actions import ActionExecutor
from plexwatch.dashboard.probe import StatusProbe
from plexwatch.data.state_store import StatusMessageStore
from plexwatch.reporting.reconciler import StatusReconciler
from plexwatch.reporting.view import StatusView
from plexwatch.services.audit_logger import AuditLogger
from plexwatch.utils.env import get_bool_env, get_list_env
from plexwatch.utils.logging import get_logger


logger = get_logger("StatusBot")


def to_embed(view: StatusView) -> discord.Embed:
    embed = discord.Embed(
        title=view.title,
        color=view.color,
        timestamp=view.timestamp,
        description=view.notice,
    )
    embed.set_footer(text=view.footer)
    for line in view.lines:
        embed.add_field(name=line.name, value=line.value, inline=False)
    return embed


class DiscordStatusChannel:
    """StatusChannel backed by a Discord text channel, resolved on first use."""

    def __init__(self, client: discord.Client, channel_id: int) -> None:
        self._client = client
        self._channel_id = channel_id
        self._channel: Optional[discord.abc.Messageable] = None

    async def _resolve(self) -> discord.abc.Messageable:
        if self._channel is None:
            channel = self._client.get_channel(self._channel_id)
            if channel is None:
                channel = await self._client.fetch_channel(self._channel_id)
            if not isinstance(channel, discord.abc.Messageable):
                raise RuntimeError(f"Channel {self._channel_id} cannot hold messages")
            self._channel = channel
        return self._channel

    async def fetch(self, message_id: int) -> discord.Message:
        channel = await self._resolve()
        return await channel.fetch_message(message_id)

    async def edit(self, message: discord.Message, view: StatusView) -> None:
        await message.edit(embed=to_embed(view))

    async def send(self, view: StatusView) -> int:
        channel = await self._resolve()
        message = await channel.send(embed=to_embed(view))
        return message.id


class StatusBot(commands.Bot):
    """Bot that keeps the status message fresh and exposes admin controls."""

    def __init__(self, settings: RuntimeSettings, *, session: Optional[SessionManager] = None) -> None:
        super().__init__(command_prefix=commands.when_mentioned, intents=discord.Intents.default())
        self.settings = settings
        if session is None:
            session = SessionManager(
                settings.user_data_dir,
                headless=get_bool_env("PLEXWATCH_HEADLESS", default=True),
                extra_launch_args=get_list_env("PLEXWATCH_BROWSER_ARGS"),
                enable_stealth=get_bool_env("PLEXWATCH_STEALTH", default=False),
            )
        reconciler = StatusReconciler(
            DiscordStatusChannel(self, settings.channel_id),
            StatusMessageStore(settings.state_path),
        )
        self.runtime = MonitorRuntime(
            settings.servers,
            session=session,
            reconciler=reconciler,
            probe=StatusProbe(session),
            executor=ActionExecutor(session, locks=LockTable(), audit_logger=AuditLogger()),
            refresh_interval_seconds=settings.refresh_interval_seconds,
            post_action_refresh_seconds=settings.post_action_refresh_seconds,
        )

    async def setup_hook(self) -> None:
        await self.add_cog(ServerControl(self.runtime))
        logger.info("Registering slash commands...")
        synced = await self.tree.sync()
        logger.info("Registered %d slash commands", len(synced))

    async def on_ready(self) -> None:
        logger.info("Logged in as %s", self.user)
        # on_ready fires again after reconnects; start() is idempotent
        await self.runtime.start()

    async def close(self) -> None:
        logger.info("Shutting down...")
        await self.runtime.stop()
        await super().close()
