"""Gateway listeners for the learner onboarding flow."""

from __future__ import annotations

import discord
from discord.ext import commands

from modules.onboarding.router import OnboardingRouter
from modules.onboarding.ui.views import StartOnboardingView


class OnboardingCog(commands.Cog):
    """Forward gateway events into the onboarding router."""

    def __init__(self, bot: commands.Bot, router: OnboardingRouter | None = None) -> None:
        self.bot = bot
        self.router = router or OnboardingRouter(bot)

    async def cog_load(self) -> None:
        # Persistent start button: routes clicks on DMs sent before a restart.
        self.bot.add_view(StartOnboardingView(self.router))

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        await self.router.dispatch("ready")

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self.router.dispatch("guild_join", guild)

    @commands.Cog.listener()
    async def on_invite_create(self, invite: discord.Invite) -> None:
        await self.router.dispatch("invite_create", invite)

    @commands.Cog.listener()
    async def on_invite_delete(self, invite: discord.Invite) -> None:
        await self.router.dispatch("invite_delete", invite)

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        await self.router.dispatch("member_join", member)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        await self.router.dispatch("direct_message", message)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(OnboardingCog(bot))
