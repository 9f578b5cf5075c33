from __future__ import annotations

import asyncio

from dotenv import load_dotenv

from .adapters.authority import HttpAuthority
from .auth import StaffGate
from .bot import IntakeBot
from .commands.register import register_commands
from .config import load_settings
from .data import build_services
from .logging_config import setup_logging


def main() -> int:
    load_dotenv()
    log = setup_logging()
    settings = load_settings()
    if not settings.token:
        log.error(
            "DISCORD_BOT_TOKEN is not set. "
            "Export it in your environment before running."
        )
        return 2
    if not settings.authority_secret:
        log.warning("BOT_INTERNAL_API_SECRET is not set; approvals will fail.")

    authority = HttpAuthority(settings)
    services = build_services(settings, authority)
    # Seed and repair the collections before the first command arrives.
    services.forms.list()
    services.bases.list()
    bot = IntakeBot(authority, review_channel=settings.review_channel)
    register_commands(bot, services, StaffGate(settings.staff_code))

    async def runner():
        try:
            async with bot:
                await bot.start(settings.token)
        except KeyboardInterrupt:
            log.info("Shutting down...")
        return 0

    return asyncio.run(runner())


if __name__ == "__main__":
    raise SystemExit(main())
