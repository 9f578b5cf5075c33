"""Discord bot that hosts the application intake and review commands."""

from __future__ import annotations

from typing import Any

import discord
from discord.ext import commands

from .adapters.base import AuthorityAdapter
from .commands.utils import ensure_review_channel
from .logging_config import setup_logging


class IntakeBot(commands.Bot):
    """Small ``discord.py`` bot exposing slash commands for applications."""

    def __init__(
        self,
        authority: AuthorityAdapter,
        review_channel: str = "applications-review",
        **kwargs: Any,
    ) -> None:  # pragma: no cover - trivial
        """Initialize the bot with the minimal intents required."""
        intents = kwargs.pop("intents", None) or discord.Intents.default()
        # Slash commands and components only; message content is not needed.
        intents.message_content = False
        super().__init__(
            command_prefix=kwargs.pop("command_prefix", "!"),
            intents=intents,
        )
        self.log = setup_logging()
        self.authority = authority
        self.review_channel = review_channel

    async def setup_hook(self) -> None:
        """Sync slash commands so new ones show up for users."""
        await self.tree.sync()
        await super().setup_hook()

    async def on_ready(self) -> None:  # pragma: no cover - requires discord
        """Make sure every guild has a review channel, then log in."""
        for guild in self.guilds:
            try:
                await ensure_review_channel(guild, self.review_channel)
            except discord.HTTPException:
                self.log.exception(
                    "Failed to ensure review channel for guild %s", guild.id
                )
        await self.change_presence(activity=discord.Game(name="Applications"))
        self.log.info(
            "Logged in as %s (%s)",
            self.user,
            self.user.id if self.user else "?",
        )

    async def close(self) -> None:
        """Close the authority client together with the gateway connection."""
        await self.authority.close()
        await super().close()


__all__ = ["IntakeBot"]
