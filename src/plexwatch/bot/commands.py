"""Admin slash commands: start/stop/restart a server, refresh, debug."""

from __future__ import annotations

from typing import List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from plexwatch.core.models import ActionOutcome, ControlAction
from plexwatch.core.runtime import MonitorRuntime
from plexwatch.utils.logging import get_logger


logger = get_logger("StatusBot")

INVALID_SELECTION = "Invalid server selection."


def describe_outcome(outcome: ActionOutcome) -> str:
    if outcome.success:
        return (
            f"Successfully executed **{outcome.action.value}** on **{outcome.server}**. "
            "Status will update shortly."
        )
    return f"Failed to execute **{outcome.action.value}** on **{outcome.server}**: {outcome.error}"


class ServerControl(commands.Cog):
    def __init__(self, runtime: MonitorRuntime) -> None:
        self.runtime = runtime

    def server_choices(self, current: str) -> List[app_commands.Choice[str]]:
        needle = current.lower()
        return [
            app_commands.Choice(name=server.name, value=str(index))
            for index, server in enumerate(self.runtime.servers)
            if needle in server.name.lower()
        ][:25]

    def _parse_index(self, raw: str) -> Optional[int]:
        try:
            index = int(raw)
        except (TypeError, ValueError):
            return None
        if index < 0 or index >= len(self.runtime.servers):
            return None
        return index

    async def _run_action(self, interaction: discord.Interaction, action: ControlAction, server: str) -> None:
        index = self._parse_index(server)
        if index is None:
            await interaction.response.send_message(INVALID_SELECTION, ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            outcome = await self.runtime.perform_action(index, action)
        except Exception as exc:
            logger.exception("Action %s failed unexpectedly", action.value)
            await interaction.edit_original_response(content=f"Error: {exc}")
            return
        await interaction.edit_original_response(content=describe_outcome(outcome))

    @app_commands.command(name="start", description="Start a Plex server")
    @app_commands.describe(server="Which server to start")
    @app_commands.default_permissions(administrator=True)
    async def start_command(self, interaction: discord.Interaction, server: str) -> None:
        await self._run_action(interaction, ControlAction.START, server)

    @start_command.autocomplete("server")
    async def _start_server(self, interaction: discord.Interaction, current: str):
        return self.server_choices(current)

    @app_commands.command(name="stop", description="Stop a Plex server")
    @app_commands.describe(server="Which server to stop")
    @app_commands.default_permissions(administrator=True)
    async def stop_command(self, interaction: discord.Interaction, server: str) -> None:
        await self._run_action(interaction, ControlAction.STOP, server)

    @stop_command.autocomplete("server")
    async def _stop_server(self, interaction: discord.Interaction, current: str):
        return self.server_choices(current)

    @app_commands.command(name="restart", description="Restart a Plex server")
    @app_commands.describe(server="Which server to restart")
    @app_commands.default_permissions(administrator=True)
    async def restart_command(self, interaction: discord.Interaction, server: str) -> None:
        await self._run_action(interaction, ControlAction.RESTART, server)

    @restart_command.autocomplete("server")
    async def _restart_server(self, interaction: discord.Interaction, current: str):
        return self.server_choices(current)

    @app_commands.command(name="status", description="Force refresh the server status embed")
    @app_commands.default_permissions(administrator=True)
    async def status_command(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            await self.runtime.refresh()
        except Exception as exc:
            logger.exception("Manual refresh failed")
            await interaction.edit_original_response(content=f"Error: {exc}")
            return
        await interaction.edit_original_response(content="Status embed refreshed.")

    @app_commands.command(name="debug", description="Screenshot a server dashboard")
    @app_commands.describe(server="Which dashboard to capture")
    @app_commands.default_permissions(administrator=True)
    async def debug_command(self, interaction: discord.Interaction, server: str) -> None:
        index = self._parse_index(server)
        if index is None:
            await interaction.response.send_message(INVALID_SELECTION, ephemeral=True)
            return
        await interaction.response.defer(ephemeral=True, thinking=True)
        path = await self.runtime.capture_debug(index)
        if path is None:
            await interaction.edit_original_response(content="Could not capture the dashboard; see logs.")
            return
        await interaction.edit_original_response(
            content=f"Dashboard of **{self.runtime.servers[index].name}**",
            attachments=[discord.File(path, filename=path.name)],
        )

    @debug_command.autocomplete("server")
    async def _debug_server(self, interaction: discord.Interaction, current: str):
        return self.server_choices(current)
