from __future__ import annotations

import asyncio
import logging
import os
import sys

import discord
from discord.ext import commands

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("learnerbot.app")

INTENTS = discord.Intents.default()
INTENTS.members = True
INTENTS.invites = True
INTENTS.dm_messages = True
INTENTS.message_content = True


def build_bot() -> commands.Bot:
    bot = commands.Bot(command_prefix=commands.when_mentioned, intents=INTENTS)
    bot.remove_command("help")
    return bot


async def run() -> int:
    try:
        from shared import config
    except RuntimeError as exc:
        log.error("%s", exc)
        return 1

    from modules.common.runtime import Runtime

    runtime = Runtime(build_bot())
    try:
        await runtime.start(config.get_discord_token())
    except discord.LoginFailure as exc:
        log.error("Failed to login to Discord: %s", exc)
        return 1
    finally:
        await runtime.close()
    return 0


def main() -> int:
    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
