from __future__ import annotations

from typing import Any

import discord

from ..auth import StaffGate


async def ensure_review_channel(guild: discord.Guild, name: str) -> discord.TextChannel:
    """Return the text channel called ``name`` in ``guild``, creating it if needed."""
    channel = discord.utils.get(guild.text_channels, name=name)
    if channel is None:
        channel = await guild.create_text_channel(name)
    return channel


def has_staff_access(interaction: discord.Interaction, gate: StaffGate) -> bool:
    """Staff are users logged in with the staff code or server managers."""
    perms = getattr(interaction.user, "guild_permissions", None)
    return gate.is_staff(interaction.user.id) or bool(perms and perms.manage_guild)


async def reply(interaction: discord.Interaction, content: str | None = None, **kwargs: Any) -> None:
    """Send an ephemeral reply whether or not the interaction was deferred."""
    kwargs.setdefault("ephemeral", True)
    if interaction.response.is_done():
        await interaction.followup.send(content, **kwargs)
    else:
        await interaction.response.send_message(content, **kwargs)
